"""
Health check endpoint with database and collection status
"""

from fastapi import APIRouter, Depends
from api.dependencies import get_store, get_scheduler
from core.exceptions import PersistenceError
from ingestion.loaders.energy_store import EnergyStore
from ingestion.scheduler import CollectionScheduler
from schemas.api import HealthCheckResponse, CollectionLogResponse
import logging

logger = logging.getLogger(__name__)
router = APIRouter(tags=["Health"])


@router.get("/health", response_model=HealthCheckResponse)
async def health_check(
    store: EnergyStore = Depends(get_store),
    scheduler: CollectionScheduler = Depends(get_scheduler)
):
    """
    Health check endpoint.

    Returns:
    - Database connectivity status
    - Scheduler state
    - Stored generation record count and the latest collection run
    """
    db_connected = await store.health_check()

    total_records = 0
    last_collection = None
    if db_connected:
        try:
            total_records = await store.count_energy_records()
            logs = await store.get_recent_collection_logs(limit=1)
            if logs:
                last_collection = CollectionLogResponse.model_validate(logs[0])
        except PersistenceError as e:
            logger.error(f"Failed to read collection status: {e.message}")

    return HealthCheckResponse(
        status="healthy" if db_connected else "unhealthy",
        database_connected=db_connected,
        scheduler_running=scheduler.is_running,
        total_records=total_records,
        last_collection=last_collection
    )
