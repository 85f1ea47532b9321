"""
API endpoint tests

Components are wired onto app.state by hand against a temporary database;
the ASGI transport does not run startup events.
"""

import pytest
import pytest_asyncio
import httpx
from unittest.mock import AsyncMock

from api.main import create_app, wire_components
from core.exceptions import UpstreamFetchError
from models.base import CollectionStatus


@pytest_asyncio.fixture
async def app(database):
    application = create_app()
    wire_components(application, database)
    yield application
    application.state.scheduler.shutdown()


@pytest_asyncio.fixture
async def client(app):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


class TestHealth:

    @pytest.mark.asyncio
    async def test_health_on_empty_store(self, client):
        response = await client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["database_connected"] is True
        assert body["scheduler_running"] is False
        assert body["total_records"] == 0
        assert body["last_collection"] is None

    @pytest.mark.asyncio
    async def test_health_reports_last_collection(self, client, store):
        await store.log_collection(CollectionStatus.SUCCESS, 24, 0, None, 500)

        body = (await client.get("/health")).json()

        assert body["last_collection"]["status"] == "success"
        assert body["last_collection"]["records_inserted"] == 24

    @pytest.mark.asyncio
    async def test_request_id_is_echoed(self, client):
        response = await client.get("/health", headers={"X-Request-ID": "req_test"})

        assert response.headers["X-Request-ID"] == "req_test"
        assert "X-API-Latency-ms" in response.headers

    @pytest.mark.asyncio
    async def test_root(self, client):
        body = (await client.get("/")).json()

        assert body["endpoints"]["energy"] == "/api/v1/energy"


class TestEnergyEndpoints:

    @pytest.mark.asyncio
    async def test_recent(self, client, store, generation_day):
        await store.save_energy_data(generation_day)

        body = (await client.get("/api/v1/energy/recent", params={"hours": 5})).json()

        assert body["count"] == 5
        assert body["data"][0]["hour"] == "23:00"
        assert body["data"][0]["naturalGas"] == 9000.0

    @pytest.mark.asyncio
    async def test_range(self, client, store, make_generation):
        await store.save_energy_data([
            make_generation(day, "12:00") for day in ("2024-01-01", "2024-01-02", "2024-01-03")
        ])

        response = await client.get(
            "/api/v1/energy/range", params={"start_date": "2024-01-02", "end_date": "2024-01-03"}
        )

        assert response.status_code == 200
        assert response.json()["count"] == 2

    @pytest.mark.asyncio
    async def test_range_rejects_inverted_bounds(self, client):
        response = await client.get(
            "/api/v1/energy/range", params={"start_date": "2024-01-03", "end_date": "2024-01-01"}
        )

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_range_requires_dates(self, client):
        response = await client.get("/api/v1/energy/range")

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_stats(self, client, store, generation_day):
        await store.save_energy_data(generation_day)

        body = (await client.get("/api/v1/energy/stats", params={"hours": 24})).json()

        assert body["total_records"] == 24
        assert body["hours"] == 24
        assert body["max_generation"] == 30300.0
        assert len(body["peak_hours"]) == 3

    @pytest.mark.asyncio
    async def test_price_consumption_weather(self, client, store, mock_price_data, mock_consumption_data):
        await store.save_price_data(mock_price_data)
        await store.save_consumption_data(mock_consumption_data)
        await store.save_weather_data([
            {"date": "2024-01-01T00:00:00+03:00", "hour": "00:00", "city": "Istanbul", "latitude": 41.01, "longitude": 28.94}
        ])

        prices = (await client.get("/api/v1/energy/ptf/recent")).json()
        consumption = (await client.get("/api/v1/energy/consumption/recent", params={"limit": 1})).json()
        weather = (await client.get("/api/v1/energy/weather/recent", params={"city": "Ankara"})).json()

        assert prices["count"] == 2
        assert prices["data"][0]["price"] == 2400.5
        assert consumption["count"] == 1
        assert consumption["data"][0]["consumption"] == 30500.0
        assert weather["count"] == 0


class TestSchedulerEndpoints:

    @pytest.mark.asyncio
    async def test_status_start_stop(self, client):
        status = (await client.get("/api/v1/scheduler/status")).json()
        assert status["is_running"] is False
        assert status["next_run"].startswith("Every hour at minute 0")

        started = (await client.post("/api/v1/scheduler/start")).json()
        assert started["is_running"] is True
        assert started["next_run_time"] is not None

        stopped = (await client.post("/api/v1/scheduler/stop")).json()
        assert stopped["is_running"] is False

    @pytest.mark.asyncio
    async def test_manual_collect(self, client, app, generation_day):
        app.state.runner.market_client.fetch_realtime_generation = AsyncMock(return_value=generation_day)

        response = await client.post("/api/v1/scheduler/collect")

        assert response.status_code == 200
        assert response.json()["inserted"] == 24

    @pytest.mark.asyncio
    async def test_upstream_failure_maps_to_bad_gateway(self, client, app, store):
        app.state.runner.market_client.fetch_realtime_generation = AsyncMock(
            side_effect=UpstreamFetchError(
                "Failed to fetch realtime_generation data",
                kind="realtime_generation",
                context={"status_code": 503}
            )
        )

        response = await client.post("/api/v1/scheduler/collect", headers={"X-Request-ID": "req_fail"})

        assert response.status_code == 502
        body = response.json()
        assert body["success"] is False
        assert body["request_id"] == "req_fail"
        assert body["error"]["error_type"] == "UpstreamFetchError"
        assert body["error"]["context"]["kind"] == "realtime_generation"

        logs = await store.get_recent_collection_logs(1)
        assert logs[0].status == CollectionStatus.MANUAL_ERROR
