"""
Integration tests for the collection runner: real store, mocked clients
"""

import asyncio
import pytest
from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock

from core.exceptions import UpstreamFetchError, WeatherFetchError
from ingestion.runner import CollectionRunner
from models.base import CollectionStatus
from schemas.records import WeatherRecord


@pytest.fixture
def weather_rows():
    return [
        WeatherRecord(
            date="2024-01-01T00:00:00+03:00",
            hour="00:00",
            city="Istanbul",
            temperature=8.5,
            latitude=41.01,
            longitude=28.94,
        )
    ]


@pytest.fixture
def market_client(generation_day, mock_price_data, mock_consumption_data):
    client = MagicMock()
    client.fetch_realtime_generation = AsyncMock(return_value=generation_day)
    client.fetch_price = AsyncMock(return_value=mock_price_data)
    client.fetch_consumption = AsyncMock(return_value=mock_consumption_data)
    return client


@pytest.fixture
def weather_client(weather_rows):
    client = MagicMock()
    client.fetch_current_weather = AsyncMock(return_value=weather_rows)
    return client


@pytest.fixture
def runner(store, market_client, weather_client):
    return CollectionRunner(store, market_client, weather_client, city="Istanbul", timezone="Europe/Istanbul")


class TestScheduledRun:

    @pytest.mark.asyncio
    async def test_full_run(self, runner, store, market_client, weather_client):
        summary = await runner.run_scheduled()

        assert summary["status"] == "success"
        assert summary["inserted"] == 24
        assert summary["failed_steps"] == []

        counts = await store.get_table_counts()
        assert counts["energy_data"] == 24
        assert counts["ptf_data"] == 2
        assert counts["consumption_data"] == 2
        assert counts["weather_data"] == 1

        yesterday, today = market_client.fetch_price.await_args.args
        assert today - yesterday == timedelta(days=1)
        weather_client.fetch_current_weather.assert_awaited_once_with("Istanbul")

        logs = await store.get_recent_collection_logs(1)
        assert logs[0].status == CollectionStatus.SUCCESS
        assert (logs[0].records_inserted, logs[0].records_updated) == (24, 0)
        assert logs[0].execution_time_ms >= 0

    @pytest.mark.asyncio
    async def test_second_run_reports_updates(self, runner, store):
        await runner.run_scheduled()
        summary = await runner.run_scheduled()

        assert (summary["inserted"], summary["updated"]) == (0, 24)

    @pytest.mark.asyncio
    async def test_generation_failure_aborts_run(self, runner, store, market_client, weather_client):
        market_client.fetch_realtime_generation.side_effect = UpstreamFetchError(
            "Failed to fetch realtime_generation data", kind="realtime_generation"
        )

        summary = await runner.run_scheduled()

        assert summary["status"] == "error"
        market_client.fetch_price.assert_not_awaited()
        market_client.fetch_consumption.assert_not_awaited()
        weather_client.fetch_current_weather.assert_not_awaited()

        logs = await store.get_recent_collection_logs(5)
        assert len(logs) == 1
        assert logs[0].status == CollectionStatus.ERROR
        assert (logs[0].records_inserted, logs[0].records_updated) == (0, 0)
        assert logs[0].error_message == "Failed to fetch realtime_generation data"

    @pytest.mark.asyncio
    async def test_price_failure_is_isolated(self, runner, store, market_client, weather_client):
        market_client.fetch_price.side_effect = UpstreamFetchError("Failed to fetch price data", kind="price")

        summary = await runner.run_scheduled()

        assert summary["status"] == "success"
        assert summary["failed_steps"] == ["price"]
        market_client.fetch_consumption.assert_awaited_once()
        weather_client.fetch_current_weather.assert_awaited_once()

        counts = await store.get_table_counts()
        assert counts["ptf_data"] == 0
        assert counts["consumption_data"] == 2
        assert counts["weather_data"] == 1

        logs = await store.get_recent_collection_logs(1)
        assert logs[0].status == CollectionStatus.SUCCESS
        assert logs[0].records_inserted == 24

    @pytest.mark.asyncio
    async def test_weather_failure_is_isolated(self, runner, store, weather_client):
        weather_client.fetch_current_weather.side_effect = WeatherFetchError("No hourly data")

        summary = await runner.run_scheduled()

        assert summary["failed_steps"] == ["weather"]
        assert (await store.get_table_counts())["consumption_data"] == 2

    @pytest.mark.asyncio
    async def test_overlapping_fire_is_dropped(self, runner, market_client, generation_day):
        release = asyncio.Event()

        async def slow_generation():
            await release.wait()
            return generation_day

        market_client.fetch_realtime_generation.side_effect = slow_generation

        first = asyncio.create_task(runner.run_scheduled())
        while not runner.is_collecting:
            await asyncio.sleep(0)

        assert await runner.run_scheduled() is None

        release.set()
        summary = await first

        assert summary["status"] == "success"
        assert market_client.fetch_realtime_generation.await_count == 1


class TestManualRun:

    @pytest.mark.asyncio
    async def test_manual_collects_generation_only(self, runner, store, market_client, weather_client):
        result = await runner.run_manual()

        assert result.inserted == 24
        assert result.updated == 0
        market_client.fetch_price.assert_not_awaited()
        weather_client.fetch_current_weather.assert_not_awaited()

        logs = await store.get_recent_collection_logs(1)
        assert logs[0].status == CollectionStatus.MANUAL_SUCCESS

    @pytest.mark.asyncio
    async def test_manual_failure_is_logged_and_raised(self, runner, store, market_client):
        market_client.fetch_realtime_generation.side_effect = UpstreamFetchError(
            "Failed to fetch realtime_generation data", kind="realtime_generation"
        )

        with pytest.raises(UpstreamFetchError):
            await runner.run_manual()

        logs = await store.get_recent_collection_logs(1)
        assert logs[0].status == CollectionStatus.MANUAL_ERROR
        assert logs[0].records_inserted == 0

    @pytest.mark.asyncio
    async def test_manual_waits_for_run_in_flight(self, runner, market_client, generation_day):
        release = asyncio.Event()
        calls = []

        async def generation():
            calls.append(len(calls))
            if len(calls) == 1:
                await release.wait()
            return generation_day

        market_client.fetch_realtime_generation.side_effect = generation

        scheduled = asyncio.create_task(runner.run_scheduled())
        while not runner.is_collecting:
            await asyncio.sleep(0)
        manual = asyncio.create_task(runner.run_manual())
        await asyncio.sleep(0)

        assert len(calls) == 1

        release.set()
        await scheduled
        result = await manual

        assert len(calls) == 2
        assert result.updated == 24
