"""
Unit tests for backfill configuration and chunking
"""

import pytest
from datetime import date
from pydantic import ValidationError

from ingestion.backfill import BackfillConfig, iter_chunks, months_ago
from models.base import DataKind


class TestChunking:

    def test_chunks_cover_range_and_clamp_last(self):
        chunks = list(iter_chunks(date(2024, 1, 1), date(2024, 2, 4), 7))

        assert len(chunks) == 5
        assert chunks[0] == (date(2024, 1, 1), date(2024, 1, 7))
        assert chunks[-1] == (date(2024, 1, 29), date(2024, 2, 4))

    def test_partial_final_chunk(self):
        chunks = list(iter_chunks(date(2024, 1, 1), date(2024, 1, 10), 7))

        assert chunks == [
            (date(2024, 1, 1), date(2024, 1, 7)),
            (date(2024, 1, 8), date(2024, 1, 10)),
        ]

    def test_single_day_range(self):
        assert list(iter_chunks(date(2024, 3, 1), date(2024, 3, 1), 30)) == [(date(2024, 3, 1), date(2024, 3, 1))]

    @pytest.mark.parametrize(
        "day, months, expected",
        [
            (date(2024, 10, 15), 6, date(2024, 4, 15)),
            (date(2024, 3, 31), 1, date(2024, 2, 29)),
            (date(2024, 1, 10), 12, date(2023, 1, 10)),
        ],
    )
    def test_months_ago(self, day, months, expected):
        assert months_ago(day, months) == expected


class TestBackfillConfig:

    def test_generation_defaults(self):
        config = BackfillConfig(end_date=date(2024, 10, 15))

        assert config.kinds == [DataKind.GENERATION]
        assert (config.months, config.chunk_days, config.delay_seconds) == (6, 7, 2.0)
        assert config.start_date == date(2024, 4, 15)
        assert config.use_staging is True

    def test_price_consumption_defaults(self):
        config = BackfillConfig(kinds=["price", "consumption"], end_date=date(2024, 10, 15))

        assert (config.months, config.chunk_days, config.delay_seconds) == (12, 30, 3.0)
        assert config.start_date == date(2023, 10, 15)

    def test_weather_defaults(self):
        config = BackfillConfig(kinds=["weather"], end_date=date(2024, 10, 15))

        assert (config.months, config.chunk_days, config.delay_seconds) == (12, 30, 2.0)

    def test_explicit_values_win(self):
        config = BackfillConfig(
            kinds=["generation", "generation"],
            chunk_days=3,
            delay_seconds=0,
            start_date=date(2024, 1, 1),
            end_date=date(2024, 1, 9)
        )

        assert config.kinds == [DataKind.GENERATION]
        assert config.chunk_days == 3
        assert config.delay_seconds == 0
        assert config.start_date == date(2024, 1, 1)

    def test_start_after_end_rejected(self):
        with pytest.raises(ValidationError):
            BackfillConfig(start_date=date(2024, 2, 1), end_date=date(2024, 1, 1))

    def test_unknown_kind_rejected(self):
        with pytest.raises(ValidationError):
            BackfillConfig(kinds=["coal"])
