"""
Backfill historical data in chunks.

Usage:
    python -m scripts.run_backfill                                 # 6 months of generation into staging
    python -m scripts.run_backfill --kind price --kind consumption # 12 months, 30-day chunks
    python -m scripts.run_backfill --kind weather --start 2024-01-01 --end 2024-06-30
    python -m scripts.run_backfill --no-staging --chunk-days 7 --delay 2

Ctrl+C stops the run before the next chunk; the progress row is marked failed.
"""

import argparse
import asyncio
import logging
import signal
import sys
from datetime import date

from pydantic import ValidationError

from core.config import settings, validate_settings
from core.database import Database
from core.logging import setup_logging
from core.migrations import run_migrations
from ingestion.auth import TicketProvider
from ingestion.backfill import BackfillConfig, BackfillRunner
from ingestion.extractors.market_client import MarketDataClient
from ingestion.extractors.weather_client import WeatherClient
from ingestion.loaders.energy_store import EnergyStore
from models.base import DataKind

logger = logging.getLogger(__name__)


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Chunked historical backfill")
    parser.add_argument(
        "--kind",
        action="append",
        choices=[k.value for k in DataKind],
        help="Data kind to backfill (repeatable, default: generation)"
    )
    parser.add_argument("--months", type=int, help="Span in months ending today")
    parser.add_argument("--chunk-days", type=int, help="Days per upstream request")
    parser.add_argument("--delay", type=float, help="Seconds to wait between chunks")
    parser.add_argument("--kind-delay", type=float, default=1.0, help="Seconds to wait between kinds within a chunk")
    parser.add_argument("--start", type=date.fromisoformat, help="Start date (YYYY-MM-DD)")
    parser.add_argument("--end", type=date.fromisoformat, help="End date (YYYY-MM-DD)")
    parser.add_argument("--city", default=settings.WEATHER_CITY, help="City for weather backfill")
    parser.add_argument("--no-staging", action="store_true", help="Write generation straight to energy_data")
    parser.add_argument("--promote", action="store_true", help="Promote valid staged generation afterwards")
    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> BackfillConfig:
    return BackfillConfig(
        kinds=args.kind or [DataKind.GENERATION],
        months=args.months,
        chunk_days=args.chunk_days,
        delay_seconds=args.delay,
        kind_delay_seconds=args.kind_delay,
        start_date=args.start,
        end_date=args.end,
        city=args.city,
        use_staging=not args.no_staging,
        promote_staging=args.promote
    )


async def run_backfill(config: BackfillConfig) -> int:
    needs_market = any(kind != DataKind.WEATHER for kind in config.kinds)
    validate_settings(settings, require_credentials=needs_market)

    cancel_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    try:
        loop.add_signal_handler(signal.SIGINT, cancel_event.set)
    except NotImplementedError:
        pass  # Windows event loops

    database = Database(settings.DATABASE_URL)
    try:
        await database.connect()
        await run_migrations(database)

        runner = BackfillRunner(
            EnergyStore(database),
            MarketDataClient(TicketProvider()),
            WeatherClient()
        )
        result = await runner.run(config, cancel_event=cancel_event)
    finally:
        await database.dispose()

    logger.info(f"Backfill {result.progress_id} {result.status}: {result.records_fetched} records "
                f"over {result.chunks} chunk(s), {result.start_date} to {result.end_date}")
    for kind, percentage in result.completeness.items():
        logger.info(f"  {kind}: {result.records_by_kind[kind]} records, {percentage:.2f}% complete")
    if result.failed_chunks:
        logger.warning(f"  Failed chunks: {result.failed_chunks}")
    return 0 if result.status == "completed" else 1


def main():
    setup_logging()
    args = parse_args()
    try:
        config = build_config(args)
    except ValidationError as e:
        logger.error(f"Invalid backfill options: {e}")
        sys.exit(2)
    sys.exit(asyncio.run(run_backfill(config)))


if __name__ == "__main__":
    main()
