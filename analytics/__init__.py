"""
Analytics over stored series.

Modules:
    statistics: Generation statistics for the dashboard (window averages,
                extremes, renewable share, peak hours)
"""

from analytics.statistics import StatisticsEngine

__all__ = ["StatisticsEngine"]
