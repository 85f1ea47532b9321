"""
Pydantic schemas for data validation and serialization.

Schemas:
    records: Normalized hourly records (generation, staging, price,
             consumption, weather) mapped from upstream payloads
    stats: Generation statistics returned by the statistics engine
    api: Save tallies, collection/backfill results and API responses

Usage:
    from schemas.records import GenerationRecord, WeatherRecord
    from schemas.api import SaveResult, BackfillResult
    from schemas.stats import EnergyStats

Example:
    # Upstream camelCase fields map onto column names
    record = GenerationRecord.model_validate(
        {"date": "2024-01-01T00:00:00+03:00", "hour": "00:00",
         "total": 31000.0, "naturalGas": 9100.0, "dammedHydro": None}
    )
    assert record.natural_gas == 9100.0
    assert record.dammed_hydro == 0
"""

__all__ = [
    "GenerationRecord",
    "StagingRecord",
    "PriceRecord",
    "ConsumptionRecord",
    "WeatherRecord",
    "EnergyStats",
    "SaveResult",
    "BackfillResult",
    "SchedulerStatus",
]
