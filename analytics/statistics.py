"""
Generation statistics over a row-count window
"""

from typing import Any, Optional

from ingestion.loaders.energy_store import EnergyStore
from schemas.stats import EnergyStats, DateRange, PeakHour, SourceAverages
import logging

logger = logging.getLogger(__name__)

_SOURCE_AVERAGE_KEYS = (
    "avg_natural_gas",
    "avg_wind",
    "avg_sun",
    "avg_hydro",
    "avg_import_coal",
    "avg_lignite",
)


def _number(value: Optional[Any]) -> float:
    return float(value) if value is not None else 0.0


class StatisticsEngine:
    """
    Compute dashboard statistics.

    The window is the same one get_recent_energy_data(hours) returns: the
    most recent `hours` rows by (date desc, hour desc). Record count, date
    range and peak hours deliberately cover the whole table instead.
    """

    def __init__(self, store: EnergyStore):
        self.store = store

    async def compute_stats(self, hours: int = 24) -> EnergyStats:
        total_records = await self.store.count_energy_records()
        date_range = await self.store.get_energy_date_range()
        window = await self.store.get_window_aggregates(hours)
        peak_hours = await self.store.get_peak_hours(limit=3)

        avg_total = _number(window.get("avg_total"))
        avg_renewable = _number(window.get("avg_renewable_total"))
        renewable_percentage = (avg_renewable / avg_total) * 100 if avg_total > 0 else 0.0

        stats = EnergyStats(
            total_records=total_records,
            date_range=DateRange(**date_range),
            time_range_avg=avg_total,
            max_generation=_number(window.get("max_generation")),
            min_generation=_number(window.get("min_generation")),
            renewable_percentage=renewable_percentage,
            peak_hours=[
                PeakHour(hour=row["hour"], avg_generation=_number(row["avg_generation"]))
                for row in peak_hours
            ],
            source_averages=SourceAverages(
                avg_total=avg_total,
                **{key: _number(window.get(key)) for key in _SOURCE_AVERAGE_KEYS}
            ),
            hours=hours,
        )

        logger.debug(
            f"Stats for {hours}h window: {window.get('row_count', 0)} rows, "
            f"renewable {renewable_percentage:.1f}%"
        )
        return stats
