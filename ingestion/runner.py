# ============================================================================
# File: ingestion/runner.py
# Description: Hourly collection orchestrator with per-source error isolation
# ============================================================================
"""
Collection Runner - fetches every live source once and persists it.

Step order for a scheduled run:
1. Realtime generation (fatal: a failure aborts the run)
2. Price for [yesterday, today] (isolated)
3. Consumption for [yesterday, today] (isolated)
4. Current weather (isolated)
5. Audit row with the generation counts and the elapsed time of all steps

Runs are serialized by one lock: a scheduled fire that finds a run in
flight is dropped, a manual trigger waits its turn.
"""

import asyncio
import time
from datetime import datetime, timedelta
from typing import Dict, Any, List, Optional
from zoneinfo import ZoneInfo
import logging

from core.config import settings
from core.exceptions import EnergyPipelineError
from ingestion.extractors.market_client import MarketDataClient
from ingestion.extractors.weather_client import WeatherClient
from ingestion.loaders.energy_store import EnergyStore
from models.base import CollectionStatus
from schemas.api import CollectionResult

logger = logging.getLogger(__name__)


def _error_message(error: Exception) -> str:
    if isinstance(error, EnergyPipelineError):
        return error.message
    return str(error) or type(error).__name__


class CollectionRunner:
    """
    Orchestrates one collection pass over all live sources.

    Responsibilities:
    - Fetch fully before persisting (no transaction open during network I/O)
    - Isolate non-generation sources from each other
    - Record the generation outcome in the collection audit log
    """

    def __init__(
        self,
        store: EnergyStore,
        market_client: MarketDataClient,
        weather_client: WeatherClient,
        city: Optional[str] = None,
        timezone: Optional[str] = None
    ):
        self.store = store
        self.market_client = market_client
        self.weather_client = weather_client
        self.city = city or settings.WEATHER_CITY
        self.timezone = timezone or settings.MARKET_TIMEZONE
        self._lock = asyncio.Lock()

    @property
    def is_collecting(self) -> bool:
        return self._lock.locked()

    def _market_day_window(self):
        today = datetime.now(ZoneInfo(self.timezone)).date()
        return today - timedelta(days=1), today

    async def run_scheduled(self) -> Optional[Dict[str, Any]]:
        """
        Full collection pass.

        Returns:
            Run summary, or None when the fire was dropped because another
            run was in flight
        """
        if self._lock.locked():
            logger.warning("Collection already in progress, skipping scheduled run")
            return None

        async with self._lock:
            return await self._collect_all()

    async def _collect_all(self) -> Dict[str, Any]:
        started = time.perf_counter()
        logger.info("Starting scheduled data collection")

        # --------------------------------------------------
        # STEP 1: GENERATION (fatal)
        # --------------------------------------------------
        try:
            generation = await self.market_client.fetch_realtime_generation()
            saved = await self.store.save_energy_data(generation)
        except Exception as e:
            elapsed_ms = int((time.perf_counter() - started) * 1000)
            message = _error_message(e)
            logger.error(f"Generation collection failed, aborting run: {message}")
            await self.store.log_collection(CollectionStatus.ERROR, 0, 0, message, elapsed_ms)
            return {
                "status": CollectionStatus.ERROR.value,
                "inserted": 0,
                "updated": 0,
                "execution_time_ms": elapsed_ms,
                "error": message,
                "failed_steps": ["generation"],
            }

        logger.info(f"Generation: {saved.inserted} inserted, {saved.updated} updated")

        # --------------------------------------------------
        # STEPS 2-4: PRICE, CONSUMPTION, WEATHER (isolated)
        # --------------------------------------------------
        yesterday, today = self._market_day_window()
        failed_steps: List[str] = []

        steps = (
            ("price", lambda: self.market_client.fetch_price(yesterday, today), self.store.save_price_data),
            ("consumption", lambda: self.market_client.fetch_consumption(yesterday, today), self.store.save_consumption_data),
            ("weather", lambda: self.weather_client.fetch_current_weather(self.city), self.store.save_weather_data),
        )
        for name, fetch, save in steps:
            try:
                records = await fetch()
                result = await save(records)
                logger.info(f"{name.capitalize()}: {result.inserted} inserted, {result.updated} updated")
            except Exception as e:
                failed_steps.append(name)
                logger.warning(f"{name.capitalize()} collection failed, continuing: {_error_message(e)}")

        # --------------------------------------------------
        # STEP 5: AUDIT
        # --------------------------------------------------
        elapsed_ms = int((time.perf_counter() - started) * 1000)
        await self.store.log_collection(CollectionStatus.SUCCESS, saved.inserted, saved.updated, None, elapsed_ms)
        logger.info(f"Scheduled data collection finished in {elapsed_ms}ms")

        return {
            "status": CollectionStatus.SUCCESS.value,
            "inserted": saved.inserted,
            "updated": saved.updated,
            "execution_time_ms": elapsed_ms,
            "failed_steps": failed_steps,
        }

    async def run_manual(self) -> CollectionResult:
        """
        Generation-only collection, queued behind any run in flight.

        Raises:
            The generation fetch/persist error, after it has been logged
        """
        async with self._lock:
            started = time.perf_counter()
            logger.info("Starting manual data collection")
            try:
                generation = await self.market_client.fetch_realtime_generation()
                saved = await self.store.save_energy_data(generation)
            except Exception as e:
                elapsed_ms = int((time.perf_counter() - started) * 1000)
                message = _error_message(e)
                logger.error(f"Manual collection failed: {message}")
                await self.store.log_collection(CollectionStatus.MANUAL_ERROR, 0, 0, message, elapsed_ms)
                raise

            elapsed_ms = int((time.perf_counter() - started) * 1000)
            await self.store.log_collection(
                CollectionStatus.MANUAL_SUCCESS, saved.inserted, saved.updated, None, elapsed_ms
            )
            logger.info(f"Manual collection finished: {saved.inserted} inserted, {saved.updated} updated")
            return CollectionResult(
                inserted=saved.inserted,
                updated=saved.updated,
                execution_time_ms=elapsed_ms
            )
