"""
Create or upgrade the database schema.

Usage: python -m scripts.init_db
"""

import asyncio
import logging

from core.config import settings
from core.database import Database
from core.logging import setup_logging
from core.migrations import run_migrations, get_migration_status

logger = logging.getLogger(__name__)


async def init_database():
    database = Database(settings.DATABASE_URL)
    try:
        logger.info("Connecting to database...")
        await database.connect()

        applied = await run_migrations(database)
        logger.info(f"Applied {len(applied)} new migration(s)")

        for migration in await get_migration_status(database):
            logger.info(f"  {migration['id']}: {migration['description']} ({migration['applied_at']})")
    finally:
        await database.dispose()


if __name__ == "__main__":
    setup_logging()
    asyncio.run(init_database())
