"""
Unit tests for the command-line entry points
"""

from datetime import datetime
from unittest.mock import patch

from core.config import settings
from models import BackfillProgress
from models.base import BackfillStatus
from schemas.api import BackfillProgressResponse
from scripts import run_api
from scripts.database_status import describe_backfill


def test_run_api_serves_configured_host_and_port():
    with patch("scripts.run_api.uvicorn.run") as mock_run, patch("scripts.run_api.setup_logging"):
        run_api.main()

    mock_run.assert_called_once()
    args, kwargs = mock_run.call_args
    assert args == ("api.main:app",)
    assert kwargs["host"] == settings.API_HOST
    assert kwargs["port"] == settings.API_PORT
    assert kwargs["log_level"] == settings.LOG_LEVEL.lower()


def test_describe_backfill_row():
    row = BackfillProgress(
        id=7,
        data_kind="generation,price",
        start_date="2024-01-01",
        end_date="2024-02-04",
        status=BackfillStatus.COMPLETED,
        records_fetched=840,
        last_processed_date="2024-02-04",
        error_message="Failed at chunk 3 (price): timeout",
        created_at=datetime(2024, 2, 5, 10, 0),
        completed_at=datetime(2024, 2, 5, 10, 5),
    )

    progress = BackfillProgressResponse.model_validate(row)
    line = describe_backfill(progress)

    assert progress.status == BackfillStatus.COMPLETED
    assert line.startswith("#7 generation,price 2024-01-01..2024-02-04 completed 840 records")
    assert "(last 2024-02-04)" in line
    assert line.endswith("Failed at chunk 3 (price): timeout")


def test_describe_backfill_in_progress_without_dates():
    progress = BackfillProgressResponse(
        id=1,
        data_kind="weather",
        start_date="2024-01-01",
        end_date="2024-01-31",
        status="in_progress",
        records_fetched=0,
    )

    assert describe_backfill(progress) == "#1 weather 2024-01-01..2024-01-31 in_progress 0 records (last -)"
