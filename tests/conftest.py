"""
Pytest configuration and fixtures
"""

import pytest
import pytest_asyncio
from typing import AsyncGenerator, Dict, Any, List

from core.database import Database
from core.migrations import run_migrations
from ingestion.loaders.energy_store import EnergyStore


@pytest_asyncio.fixture(scope="function")
async def database(tmp_path) -> AsyncGenerator[Database, None]:
    """Fresh SQLite file per test with every migration applied"""
    db = Database(f"sqlite+aiosqlite:///{tmp_path / 'energy_test.db'}")
    await db.connect()
    await run_migrations(db)

    yield db

    await db.dispose()


@pytest_asyncio.fixture(scope="function")
async def store(database) -> EnergyStore:
    return EnergyStore(database)


def generation_record(day: str, hour: str, total: float = 30000.0, **sources) -> Dict[str, Any]:
    """Upstream-shaped (camelCase) generation item"""
    record = {
        "date": f"{day}T00:00:00+03:00",
        "hour": hour,
        "total": total,
        "naturalGas": 9000.0,
        "dammedHydro": 4000.0,
        "lignite": 3000.0,
        "river": 1000.0,
        "importCoal": 5000.0,
        "wind": 3500.0,
        "sun": 1500.0,
        "fuelOil": 50.0,
        "geothermal": 900.0,
        "asphaltiteCoal": 100.0,
        "blackCoal": 200.0,
        "biomass": 600.0,
        "naphta": 0.0,
        "lng": 0.0,
        "importExport": -150.0,
        "wasteHeat": 100.0,
    }
    record.update(sources)
    return record


@pytest.fixture
def make_generation():
    """Factory for upstream-shaped generation items"""
    return generation_record


@pytest.fixture
def generation_day(make_generation) -> List[Dict[str, Any]]:
    """24 hourly generation items for 2024-01-01"""
    return [
        make_generation("2024-01-01", f"{h:02d}:00", total=28000.0 + h * 100)
        for h in range(24)
    ]


@pytest.fixture
def mock_price_data():
    return [
        {"date": "2024-01-01T00:00:00+03:00", "hour": "00:00", "price": 2500.0, "priceUsd": 84.1, "priceEur": 76.3},
        {"date": "2024-01-01T01:00:00+03:00", "hour": "01:00", "price": 2400.5, "priceUsd": 80.7, "priceEur": 73.2},
    ]


@pytest.fixture
def mock_consumption_data():
    return [
        {"date": "2024-01-01T00:00:00+03:00", "time": "00:00", "consumption": 32000.5},
        {"date": "2024-01-01T01:00:00+03:00", "time": "01:00", "consumption": 30500.0},
    ]


@pytest.fixture
def mock_open_meteo_payload():
    """Open-Meteo response with parallel hourly arrays"""
    return {
        "latitude": 41.0,
        "longitude": 28.94,
        "timezone": "Europe/Istanbul",
        "hourly": {
            "time": ["2024-10-12T00:00", "2024-10-12T01:00", "2024-10-12T14:00"],
            "temperature_2m": [17.2, 16.8, 22.4],
            "windspeed_10m": [11.5, 10.9, 14.0],
            "winddirection_10m": [40, 35, 20],
            "direct_radiation": [0.0, 0.0, 512.0],
            "precipitation": [0.0, 0.1, None],
            "cloudcover": [20, 25, 5],
            "relativehumidity_2m": [78, 80, 55],
        },
    }
