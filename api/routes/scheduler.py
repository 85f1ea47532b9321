"""
Scheduler control endpoints
"""

from fastapi import APIRouter, Depends
from api.dependencies import get_scheduler
from ingestion.scheduler import CollectionScheduler
from schemas.api import SchedulerStatus, CollectionResult
import logging

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/scheduler", tags=["Scheduler"])


@router.get("/status", response_model=SchedulerStatus)
async def get_status(scheduler: CollectionScheduler = Depends(get_scheduler)):
    return scheduler.get_status()


@router.post("/start", response_model=SchedulerStatus)
async def start_scheduler(scheduler: CollectionScheduler = Depends(get_scheduler)):
    scheduler.start()
    return scheduler.get_status()


@router.post("/stop", response_model=SchedulerStatus)
async def stop_scheduler(scheduler: CollectionScheduler = Depends(get_scheduler)):
    scheduler.stop()
    return scheduler.get_status()


@router.post("/collect", response_model=CollectionResult)
async def trigger_collection(scheduler: CollectionScheduler = Depends(get_scheduler)):
    """
    Run generation collection now.

    Waits for any scheduled run in flight; upstream failures surface as 502.
    """
    return await scheduler.trigger_manual_collection()
