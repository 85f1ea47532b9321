"""
SQLAlchemy ORM models for database tables.

This package defines the SQLite schema using SQLAlchemy ORM models:

Models:
    base: Base declarative class and shared enums (DataKind, CollectionStatus, BackfillStatus)
    energy_data: Hourly generation by source, plus the backfill staging twin
    market_data: Market clearing price (PTF) and consumption series
    weather_data: Hourly weather per city
    tracking: Collection audit log, backfill progress, applied migrations

Database Schema:
    Every hourly series is keyed by its natural time key, (date, hour) or
    (date, hour, city), and written exclusively through idempotent upserts.
    Tables are created by core.migrations, not by metadata.create_all.

Usage:
    from models import EnergyData, PtfData, WeatherData
    from models.base import CollectionStatus, BackfillStatus
"""

from models.base import Base, DataKind, CollectionStatus, BackfillStatus
from models.energy_data import EnergyData, EnergyDataStaging
from models.market_data import PtfData, ConsumptionData
from models.weather_data import WeatherData
from models.tracking import DataCollectionLog, BackfillProgress, AppliedMigration

__all__ = [
    "Base",
    "DataKind",
    "CollectionStatus",
    "BackfillStatus",
    "EnergyData",
    "EnergyDataStaging",
    "PtfData",
    "ConsumptionData",
    "WeatherData",
    "DataCollectionLog",
    "BackfillProgress",
    "AppliedMigration",
]
