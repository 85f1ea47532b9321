import logging
from datetime import datetime
from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from core.config import settings
from ingestion.runner import CollectionRunner
from schemas.api import CollectionResult, SchedulerStatus

logger = logging.getLogger(__name__)

JOB_ID = "energy_collection"


def describe_cron(cron_expression: str, timezone: str) -> str:
    """Human-readable cadence for a 5-field crontab expression"""
    fields = cron_expression.split()
    if len(fields) == 5 and fields[1:] == ["*", "*", "*", "*"]:
        minute = fields[0]
        if minute == "*":
            return f"Every minute ({timezone})"
        if minute.startswith("*/") and minute[2:].isdigit():
            return f"Every {int(minute[2:])} minutes ({timezone})"
        if minute.isdigit():
            return f"Every hour at minute {int(minute)} ({timezone})"
    return f"Cron: {cron_expression} ({timezone})"


class CollectionScheduler:
    """
    Cron-driven collection on an AsyncIOScheduler.

    The job is installed once, paused; start/stop resume and pause it
    without recreating it. Stopping never interrupts a run in flight.
    """

    def __init__(
        self,
        runner: CollectionRunner,
        cron_expression: Optional[str] = None,
        timezone: Optional[str] = None
    ):
        self.runner = runner
        self.cron_expression = cron_expression or settings.SCHEDULER_CRON
        self.timezone = timezone or settings.MARKET_TIMEZONE
        self.scheduler = AsyncIOScheduler(timezone=self.timezone)
        self._installed = False

    def install(self):
        """Create the collection job (paused); later calls are no-ops"""
        if self._installed:
            return
        self.scheduler.add_job(
            self.runner.run_scheduled,
            trigger=CronTrigger.from_crontab(self.cron_expression, timezone=self.timezone),
            id=JOB_ID,
            name="Hourly energy data collection",
            next_run_time=None,  # paused until start()
            max_instances=1,
            coalesce=True,
            misfire_grace_time=300,
            replace_existing=True
        )
        self._installed = True
        logger.info(f"Collection job installed: {describe_cron(self.cron_expression, self.timezone)}")

    def start(self):
        """Start the scheduler"""
        self.install()
        if not self.scheduler.running:
            self.scheduler.start()
        self.scheduler.resume_job(JOB_ID)
        logger.info("Collection scheduler started")

    def stop(self):
        """Pause the job; a run already in flight completes"""
        if not self._installed:
            return
        self.scheduler.pause_job(JOB_ID)
        logger.info("Collection scheduler stopped")

    def shutdown(self):
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
            logger.info("Collection scheduler shut down")
        self._installed = False

    @property
    def is_running(self) -> bool:
        job = self.scheduler.get_job(JOB_ID) if self._installed else None
        return bool(self.scheduler.running and job is not None and job.next_run_time is not None)

    def get_status(self) -> SchedulerStatus:
        next_run_time: Optional[datetime] = None
        if self.is_running:
            next_run_time = self.scheduler.get_job(JOB_ID).next_run_time
        return SchedulerStatus(
            is_running=self.is_running,
            next_run=describe_cron(self.cron_expression, self.timezone),
            next_run_time=next_run_time,
            cron_expression=self.cron_expression,
            timezone=self.timezone
        )

    async def trigger_manual_collection(self) -> CollectionResult:
        return await self.runner.run_manual()
