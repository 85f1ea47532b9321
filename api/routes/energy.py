"""
Read endpoints for stored generation, price, consumption and weather series
"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, HTTPException
from api.dependencies import get_store, get_stats_engine
from analytics.statistics import StatisticsEngine
from ingestion.loaders.energy_store import EnergyStore
from schemas.api import (
    DataListResponse,
    EnergyDataResponse,
    PriceDataResponse,
    ConsumptionDataResponse,
    WeatherDataResponse,
)
from schemas.stats import EnergyStats

router = APIRouter(prefix="/api/v1/energy", tags=["Energy"])


@router.get("/recent", response_model=DataListResponse)
async def get_recent_energy(
    hours: int = Query(24, ge=1, le=8760, description="Number of most recent hourly rows"),
    store: EnergyStore = Depends(get_store)
):
    rows = await store.get_recent_energy_data(hours)
    data = [EnergyDataResponse.model_validate(row).model_dump(by_alias=True) for row in rows]
    return DataListResponse(count=len(data), data=data)


@router.get("/range", response_model=DataListResponse)
async def get_energy_range(
    start_date: date = Query(..., description="Inclusive start (YYYY-MM-DD)"),
    end_date: date = Query(..., description="Inclusive end (YYYY-MM-DD)"),
    store: EnergyStore = Depends(get_store)
):
    if start_date > end_date:
        raise HTTPException(status_code=400, detail="start_date must not be after end_date")
    rows = await store.get_energy_data_by_date_range(start_date, end_date)
    data = [EnergyDataResponse.model_validate(row).model_dump(by_alias=True) for row in rows]
    return DataListResponse(count=len(data), data=data)


@router.get("/stats", response_model=EnergyStats)
async def get_energy_stats(
    hours: int = Query(24, ge=1, le=8760, description="Window size in rows"),
    engine: StatisticsEngine = Depends(get_stats_engine)
):
    return await engine.compute_stats(hours)


@router.get("/ptf/recent", response_model=DataListResponse)
async def get_recent_price(
    limit: int = Query(24, ge=1, le=8760),
    store: EnergyStore = Depends(get_store)
):
    rows = await store.get_recent_price_data(limit)
    data = [PriceDataResponse.model_validate(row).model_dump() for row in rows]
    return DataListResponse(count=len(data), data=data)


@router.get("/consumption/recent", response_model=DataListResponse)
async def get_recent_consumption(
    limit: int = Query(24, ge=1, le=8760),
    store: EnergyStore = Depends(get_store)
):
    rows = await store.get_recent_consumption_data(limit)
    data = [ConsumptionDataResponse.model_validate(row).model_dump() for row in rows]
    return DataListResponse(count=len(data), data=data)


@router.get("/weather/recent", response_model=DataListResponse)
async def get_recent_weather(
    limit: int = Query(24, ge=1, le=8760),
    city: Optional[str] = Query(None, description="Filter by city"),
    store: EnergyStore = Depends(get_store)
):
    rows = await store.get_recent_weather_data(limit, city=city)
    data = [WeatherDataResponse.model_validate(row).model_dump() for row in rows]
    return DataListResponse(count=len(data), data=data)
