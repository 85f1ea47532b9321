"""
Run one collection pass outside the API process.

Usage:
    python -m scripts.run_collection            # full scheduled pass
    python -m scripts.run_collection --manual   # generation only
"""

import argparse
import asyncio
import logging
import sys

from core.config import settings, validate_settings
from core.database import Database
from core.exceptions import EnergyPipelineError
from core.logging import setup_logging
from core.migrations import run_migrations
from ingestion.auth import TicketProvider
from ingestion.extractors.market_client import MarketDataClient
from ingestion.extractors.weather_client import WeatherClient
from ingestion.loaders.energy_store import EnergyStore
from ingestion.runner import CollectionRunner

logger = logging.getLogger(__name__)


async def run_collection(manual: bool) -> int:
    validate_settings(settings)

    database = Database(settings.DATABASE_URL)
    try:
        await database.connect()
        await run_migrations(database)

        store = EnergyStore(database)
        runner = CollectionRunner(
            store,
            MarketDataClient(TicketProvider()),
            WeatherClient()
        )

        if manual:
            try:
                result = await runner.run_manual()
            except EnergyPipelineError as e:
                logger.error(f"Manual collection failed: {e}")
                return 1
            logger.info(f"Manual collection: {result.inserted} inserted, {result.updated} updated "
                        f"in {result.execution_time_ms}ms")
            return 0

        summary = await runner.run_scheduled()
        logger.info(f"Collection summary: {summary}")
        return 0 if summary and summary["status"] == "success" else 1
    finally:
        await database.dispose()


def main():
    parser = argparse.ArgumentParser(description="Collect live market and weather data once")
    parser.add_argument("--manual", action="store_true", help="Collect generation only")
    args = parser.parse_args()

    setup_logging()
    sys.exit(asyncio.run(run_collection(args.manual)))


if __name__ == "__main__":
    main()
