"""
Print row counts, date coverage and recent activity for every table.

Usage: python -m scripts.database_status
"""

import asyncio
import logging

from core.config import settings
from core.database import Database
from core.logging import setup_logging
from core.migrations import get_migration_status, run_migrations
from ingestion.loaders.energy_store import EnergyStore
from schemas.api import BackfillProgressResponse

logger = logging.getLogger(__name__)

# One year of hourly rows
EXPECTED_YEARLY_ROWS = 8760


def describe_backfill(progress: BackfillProgressResponse) -> str:
    line = (
        f"#{progress.id} {progress.data_kind} {progress.start_date}..{progress.end_date} "
        f"{progress.status.value} {progress.records_fetched} records "
        f"(last {progress.last_processed_date or '-'}) {progress.error_message or ''}"
    )
    return line.rstrip()


async def report_status():
    database = Database(settings.DATABASE_URL)
    try:
        await database.connect()
        await run_migrations(database)
        store = EnergyStore(database)

        counts = await store.get_table_counts()
        ranges = await store.get_table_date_ranges()

        logger.info("Table coverage:")
        for table_name, count in counts.items():
            coverage = count / EXPECTED_YEARLY_ROWS * 100
            span = ranges[table_name]
            logger.info(
                f"  {table_name:<22} {count:>7} rows ({coverage:6.2f}% of a year) "
                f"{span['earliest_date'] or '-'} .. {span['latest_date'] or '-'}"
            )

        logger.info("Recent collection runs:")
        for log in await store.get_recent_collection_logs(limit=5):
            logger.info(
                f"  {log.created_at} {log.status.value:<14} +{log.records_inserted} ~{log.records_updated} "
                f"{log.execution_time_ms or 0}ms {log.error_message or ''}"
            )

        logger.info("Recent backfills:")
        for row in await store.get_recent_backfill_progress(limit=5):
            logger.info(f"  {describe_backfill(BackfillProgressResponse.model_validate(row))}")

        logger.info("Applied migrations:")
        for migration in await get_migration_status(database):
            logger.info(f"  {migration['id']} ({migration['applied_at']})")
    finally:
        await database.dispose()


if __name__ == "__main__":
    setup_logging()
    asyncio.run(report_status())
