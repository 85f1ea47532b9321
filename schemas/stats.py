"""
Pydantic schemas for generation statistics
"""

from pydantic import BaseModel, Field
from typing import Optional, List


class DateRange(BaseModel):
    """Earliest/latest stored date across the whole table"""
    earliest_date: Optional[str] = None
    latest_date: Optional[str] = None


class PeakHour(BaseModel):
    hour: str
    avg_generation: float


class SourceAverages(BaseModel):
    """Per-source means over the requested window"""
    avg_total: float = 0
    avg_natural_gas: float = 0
    avg_wind: float = 0
    avg_sun: float = 0
    avg_hydro: float = 0
    avg_import_coal: float = 0
    avg_lignite: float = 0


class EnergyStats(BaseModel):
    """
    Generation statistics for a row-count window.

    total_records, date_range and peak_hours cover the whole table; every
    other figure covers only the most recent `hours` rows.
    """
    total_records: int = 0
    date_range: DateRange = Field(default_factory=DateRange)
    time_range_avg: float = 0
    max_generation: float = 0
    min_generation: float = 0
    renewable_percentage: float = 0
    peak_hours: List[PeakHour] = Field(default_factory=list)
    source_averages: SourceAverages = Field(default_factory=SourceAverages)
    hours: int

    model_config = {
        "json_schema_extra": {
            "example": {
                "total_records": 4380,
                "date_range": {
                    "earliest_date": "2024-04-01T00:00:00+03:00",
                    "latest_date": "2024-10-01T00:00:00+03:00",
                },
                "time_range_avg": 34120.5,
                "max_generation": 39870.2,
                "min_generation": 27650.0,
                "renewable_percentage": 42.7,
                "peak_hours": [{"hour": "20:00", "avg_generation": 38110.4}],
                "source_averages": {"avg_total": 34120.5, "avg_wind": 5200.1},
                "hours": 24,
            }
        }
    }
