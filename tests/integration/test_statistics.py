"""
Integration tests for the statistics engine
"""

import pytest
from datetime import date, timedelta

from analytics.statistics import StatisticsEngine


@pytest.fixture
def engine(store):
    return StatisticsEngine(store)


@pytest.mark.asyncio
async def test_empty_table(engine):
    stats = await engine.compute_stats(24)

    assert stats.total_records == 0
    assert stats.date_range.earliest_date is None
    assert stats.time_range_avg == 0
    assert stats.max_generation == 0
    assert stats.min_generation == 0
    assert stats.renewable_percentage == 0
    assert stats.peak_hours == []
    assert stats.hours == 24


@pytest.mark.asyncio
async def test_zero_totals_give_zero_renewable_share(engine, store, make_generation):
    await store.save_energy_data([
        make_generation("2024-01-01", f"{h:02d}:00", total=0.0, wind=500.0) for h in range(4)
    ])

    stats = await engine.compute_stats(4)

    assert stats.renewable_percentage == 0
    assert stats.time_range_avg == 0


@pytest.mark.asyncio
async def test_renewable_share_of_average_total(engine, store, make_generation):
    await store.save_energy_data([make_generation("2024-01-01", "00:00", total=30000.0)])

    stats = await engine.compute_stats(24)

    # wind 3500 + sun 1500 + dammed hydro 4000 + river 1000 + geothermal 900
    assert stats.renewable_percentage == pytest.approx(10900 / 30000 * 100)
    assert stats.source_averages.avg_hydro == 4000.0
    assert stats.source_averages.avg_total == 30000.0


@pytest.mark.asyncio
async def test_window_versus_whole_table(engine, store, make_generation):
    start = date(2024, 1, 1)
    slots = [
        ((start + timedelta(days=i // 24)).isoformat(), f"{i % 24:02d}:00")
        for i in range(1000)
    ]
    await store.save_energy_data([
        make_generation(day, hour, total=50000.0 if i >= 990 else 10000.0)
        for i, (day, hour) in enumerate(slots)
    ])

    stats = await engine.compute_stats(10)

    assert stats.total_records == 1000
    assert stats.time_range_avg == 50000.0
    assert stats.max_generation == 50000.0
    assert stats.min_generation == 50000.0
    assert stats.date_range.earliest_date.startswith("2024-01-01")
    assert stats.date_range.latest_date.startswith(slots[-1][0])


@pytest.mark.asyncio
async def test_peak_hours_cover_the_whole_table(engine, store, generation_day):
    await store.save_energy_data(generation_day)

    stats = await engine.compute_stats(1)

    assert [p.hour for p in stats.peak_hours] == ["23:00", "22:00", "21:00"]
    assert stats.peak_hours[0].avg_generation == 28000.0 + 23 * 100
    assert stats.time_range_avg == 28000.0 + 23 * 100
