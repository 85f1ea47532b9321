"""
Chunked historical backfill with persisted progress.

A run covers [start_date, end_date] in chunks of `chunk_days`, fetching and
persisting every requested data kind per chunk. Failures are isolated per
chunk and kind: they are written to the progress row and the run moves on.
Cancellation is cooperative and checked before each chunk.
"""

import asyncio
import calendar
from datetime import date, datetime, timedelta
from typing import Dict, Iterator, List, Optional, Tuple
from zoneinfo import ZoneInfo
import logging

from pydantic import BaseModel, Field, field_validator, model_validator

from core.config import settings
from core.exceptions import EnergyPipelineError, PersistenceError
from ingestion.extractors.market_client import MarketDataClient
from ingestion.extractors.weather_client import WeatherClient
from ingestion.loaders.energy_store import EnergyStore
from models.base import BackfillStatus, DataKind
from schemas.api import BackfillResult, SaveResult

logger = logging.getLogger(__name__)

# (months, chunk_days, delay_seconds) per data kind
KIND_DEFAULTS: Dict[DataKind, Tuple[int, int, float]] = {
    DataKind.GENERATION: (6, 7, 2.0),
    DataKind.PRICE: (12, 30, 3.0),
    DataKind.CONSUMPTION: (12, 30, 3.0),
    DataKind.WEATHER: (12, 30, 2.0),
}

COMPLETENESS_WARNING_THRESHOLD = 90.0


def months_ago(day: date, months: int) -> date:
    """Same day-of-month `months` earlier, clamped to the month's length"""
    month_index = day.year * 12 + (day.month - 1) - months
    year, month = divmod(month_index, 12)
    month += 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(day.day, last_day))


def iter_chunks(start: date, end: date, chunk_days: int) -> Iterator[Tuple[date, date]]:
    """Consecutive inclusive [chunk_start, chunk_end] spans; the last is clamped to `end`"""
    current = start
    while current <= end:
        chunk_end = min(current + timedelta(days=chunk_days - 1), end)
        yield current, chunk_end
        current = chunk_end + timedelta(days=1)


def _error_message(error: Exception) -> str:
    if isinstance(error, EnergyPipelineError):
        return error.message
    return str(error) or type(error).__name__


class BackfillConfig(BaseModel):
    """
    Backfill parameters.

    months, chunk_days and delay_seconds default from the first requested
    kind; start_date defaults to `months` before end_date, end_date to
    today in the market timezone.
    """

    kinds: List[DataKind] = Field(default_factory=lambda: [DataKind.GENERATION], min_length=1)
    months: Optional[int] = Field(None, ge=1)
    chunk_days: Optional[int] = Field(None, ge=1)
    delay_seconds: Optional[float] = Field(None, ge=0)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    use_staging: bool = True
    promote_staging: bool = False
    city: Optional[str] = None
    kind_delay_seconds: float = Field(1.0, ge=0)

    @field_validator("kinds")
    @classmethod
    def dedupe_kinds(cls, v):
        return list(dict.fromkeys(v))

    @model_validator(mode="after")
    def apply_defaults(self):
        months, chunk_days, delay_seconds = KIND_DEFAULTS[self.kinds[0]]
        if self.months is None:
            self.months = months
        if self.chunk_days is None:
            self.chunk_days = chunk_days
        if self.delay_seconds is None:
            self.delay_seconds = delay_seconds
        if self.end_date is None:
            self.end_date = datetime.now(ZoneInfo(settings.MARKET_TIMEZONE)).date()
        if self.start_date is None:
            self.start_date = months_ago(self.end_date, self.months)
        if self.start_date > self.end_date:
            raise ValueError("start_date must not be after end_date")
        return self


class BackfillRunner:
    """
    Run chunked backfills for generation, price, consumption and weather.

    Generation goes to the staging table unless use_staging is off.
    """

    def __init__(self, store: EnergyStore, market_client: MarketDataClient, weather_client: WeatherClient):
        self.store = store
        self.market_client = market_client
        self.weather_client = weather_client

    async def run(self, config: BackfillConfig, cancel_event: Optional[asyncio.Event] = None) -> BackfillResult:
        """
        Execute a backfill.

        Returns:
            BackfillResult with per-kind totals and completeness

        Raises:
            PersistenceError: progress tracking itself failed (run marked failed when possible)
        """
        start, end = config.start_date, config.end_date
        kinds = config.kinds
        chunks = list(iter_chunks(start, end, config.chunk_days))
        total_days = (end - start).days

        logger.info(
            f"Starting backfill of {', '.join(k.value for k in kinds)}: "
            f"{start} to {end}, {len(chunks)} chunk(s) of {config.chunk_days} days, "
            f"{config.delay_seconds}s between chunks"
        )

        progress_id = await self.store.create_backfill_progress(start, end, [k.value for k in kinds])

        records_by_kind: Dict[str, int] = {k.value: 0 for k in kinds}
        records_fetched = 0
        failed_chunks: List[int] = []
        error_message: Optional[str] = None

        try:
            for number, (chunk_start, chunk_end) in enumerate(chunks, start=1):
                if cancel_event is not None and cancel_event.is_set():
                    error_message = f"Cancelled before chunk {number}"
                    logger.warning(f"Backfill {progress_id}: {error_message}")
                    await self.store.update_backfill_progress(
                        progress_id,
                        status=BackfillStatus.FAILED,
                        error_message=error_message
                    )
                    return self._result(
                        progress_id, BackfillStatus.FAILED, config, len(chunks), records_fetched,
                        records_by_kind, total_days, failed_chunks, error_message
                    )

                logger.info(f"Chunk {number}/{len(chunks)}: {chunk_start} to {chunk_end}")
                chunk_ok = True

                for index, kind in enumerate(kinds):
                    if index > 0 and config.kind_delay_seconds:
                        await asyncio.sleep(config.kind_delay_seconds)
                    try:
                        saved = await self._backfill_kind(kind, chunk_start, chunk_end, config)
                    except Exception as e:
                        chunk_ok = False
                        error_message = f"Failed at chunk {number} ({kind.value}): {_error_message(e)}"
                        logger.error(error_message)
                        await self.store.update_backfill_progress(progress_id, error_message=error_message)
                        continue

                    records_by_kind[kind.value] += saved.total
                    records_fetched += saved.total

                await self.store.update_backfill_progress(
                    progress_id,
                    records_fetched=records_fetched,
                    last_processed_date=chunk_end if chunk_ok else None
                )
                if not chunk_ok:
                    failed_chunks.append(number)
                logger.info(f"Total progress: {records_fetched} records")

                if number < len(chunks) and config.delay_seconds:
                    await asyncio.sleep(config.delay_seconds)

            if config.promote_staging and config.use_staging and DataKind.GENERATION in kinds:
                promoted = await self.store.promote_staging_data(start, end)
                logger.info(f"Promoted staged generation: {promoted.inserted} inserted, {promoted.updated} updated")

            await self.store.update_backfill_progress(progress_id, status=BackfillStatus.COMPLETED)

        except Exception as e:
            logger.error(f"Backfill {progress_id} aborted: {_error_message(e)}")
            try:
                await self.store.update_backfill_progress(
                    progress_id,
                    status=BackfillStatus.FAILED,
                    error_message=f"Backfill aborted: {_error_message(e)}"
                )
            except PersistenceError as mark_error:
                logger.error(f"Could not mark backfill {progress_id} as failed: {mark_error.message}")
            raise

        result = self._result(
            progress_id, BackfillStatus.COMPLETED, config, len(chunks), records_fetched,
            records_by_kind, total_days, failed_chunks, error_message
        )
        logger.info(f"Backfill {progress_id} completed: {records_fetched} records")
        for kind, percentage in result.completeness.items():
            expected = max(total_days, 1) * 24
            logger.info(f"Completeness {kind}: {percentage:.2f}% ({records_by_kind[kind]}/{expected} hours)")
            if percentage < COMPLETENESS_WARNING_THRESHOLD:
                logger.warning(f"Completeness for {kind} is below {COMPLETENESS_WARNING_THRESHOLD:.0f}%")
        return result

    async def _backfill_kind(self, kind: DataKind, chunk_start: date, chunk_end: date, config: BackfillConfig) -> SaveResult:
        """Fetch one chunk of one kind, then persist it"""
        if kind == DataKind.GENERATION:
            data = await self.market_client.fetch_historical_generation(chunk_start, chunk_end)
            save = self.store.save_staging_data if config.use_staging else self.store.save_energy_data
        elif kind == DataKind.PRICE:
            data = await self.market_client.fetch_price(chunk_start, chunk_end)
            save = self.store.save_price_data
        elif kind == DataKind.CONSUMPTION:
            data = await self.market_client.fetch_consumption(chunk_start, chunk_end)
            save = self.store.save_consumption_data
        elif kind == DataKind.WEATHER:
            data = await self.weather_client.fetch_historical_weather(chunk_start, chunk_end, config.city)
            save = self.store.save_weather_data
        else:
            raise ValueError(f"Unsupported data kind: {kind}")

        if not data:
            logger.warning(f"No {kind.value} data received for {chunk_start} to {chunk_end}")
            return SaveResult()

        saved = await save(data)
        logger.info(f"{kind.value}: received {len(data)}, saved {saved.total}")
        return saved

    @staticmethod
    def _result(
        progress_id: int,
        status: BackfillStatus,
        config: BackfillConfig,
        chunks: int,
        records_fetched: int,
        records_by_kind: Dict[str, int],
        total_days: int,
        failed_chunks: List[int],
        error_message: Optional[str]
    ) -> BackfillResult:
        # A same-day span still expects one day of hours
        expected_hours = max(total_days, 1) * 24
        return BackfillResult(
            progress_id=progress_id,
            status=status.value,
            start_date=config.start_date.isoformat(),
            end_date=config.end_date.isoformat(),
            chunks=chunks,
            records_fetched=records_fetched,
            records_by_kind=dict(records_by_kind),
            completeness={
                kind: round(count / expected_hours * 100, 2)
                for kind, count in records_by_kind.items()
            },
            failed_chunks=failed_chunks,
            error_message=error_message
        )
