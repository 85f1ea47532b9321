"""
Pydantic schemas for normalized hourly records.

Upstream payloads arrive in camelCase (generation, price) or with the hour
under a different key (consumption); these models are the single place
where that shape is mapped onto column names.
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from typing import Optional, Any

from models.energy_data import GENERATION_SOURCE_FIELDS


def _zero_if_missing(v: Any) -> Any:
    return 0 if v is None or v == "" else v


def _hour_label(value: Any) -> Optional[str]:
    """'5:00', '14:00:00', '2024-01-01T14:00:00+03:00' -> '05:00', '14:00', '14:00'"""
    if value is None:
        return None
    text = str(value).strip()
    if "T" in text:
        text = text.split("T", 1)[1]
    hours, sep, rest = text.partition(":")
    if sep and hours.isdigit():
        return f"{int(hours):02d}:{rest[:2]}"
    return text[:5]


class GenerationRecord(BaseModel):
    """
    One hour of generation by source (MWh).

    `total` is kept exactly as supplied; it is never recomputed from the
    source columns and the two may diverge.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    date: str = Field(..., min_length=10)
    hour: str = Field(..., min_length=1)
    total: float = 0

    natural_gas: float = Field(0, alias="naturalGas")
    dammed_hydro: float = Field(0, alias="dammedHydro")
    lignite: float = 0
    river: float = 0
    import_coal: float = Field(0, alias="importCoal")
    wind: float = 0
    sun: float = 0
    fuel_oil: float = Field(0, alias="fuelOil")
    geothermal: float = 0
    asphaltite_coal: float = Field(0, alias="asphaltiteCoal")
    black_coal: float = Field(0, alias="blackCoal")
    biomass: float = 0
    naphta: float = 0
    lng: float = 0
    import_export: float = Field(0, alias="importExport")
    waste_heat: float = Field(0, alias="wasteHeat")

    @field_validator("total", *GENERATION_SOURCE_FIELDS, mode="before")
    @classmethod
    def default_missing_quantities(cls, v):
        return _zero_if_missing(v)

    @field_validator("hour", mode="before")
    @classmethod
    def normalize_hour(cls, v):
        return _hour_label(v)


class StagingRecord(GenerationRecord):
    """Generation record plus data-quality flags for the staging table"""

    is_valid: bool = Field(True, alias="isValid")
    is_interpolated: bool = Field(False, alias="isInterpolated")
    is_outlier: bool = Field(False, alias="isOutlier")
    validation_errors: Optional[str] = Field(None, alias="validationErrors")


class PriceRecord(BaseModel):
    """Market clearing price (PTF) for one hour, TRY/MWh"""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    date: str = Field(..., min_length=10)
    hour: str = Field(..., min_length=1)
    price: float
    price_usd: Optional[float] = Field(None, alias="priceUsd")
    price_eur: Optional[float] = Field(None, alias="priceEur")

    @model_validator(mode="before")
    @classmethod
    def hour_from_date(cls, data):
        if isinstance(data, dict) and not data.get("hour") and data.get("date"):
            data = {**data, "hour": _hour_label(data["date"])}
        return data

    @field_validator("hour", mode="before")
    @classmethod
    def normalize_hour(cls, v):
        return _hour_label(v)


class ConsumptionRecord(BaseModel):
    """
    Real-time consumption for one hour, MWh.

    Upstream keys the hour as `time` on some endpoints and `hour` on others;
    `time` wins when both are present, and the time part of `date` is the
    last resort.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    date: str = Field(..., min_length=10)
    hour: str = Field(..., min_length=1)
    consumption: float

    @model_validator(mode="before")
    @classmethod
    def coalesce_hour(cls, data):
        if not isinstance(data, dict):
            return data
        hour = data.get("time") or data.get("hour")
        if not hour and data.get("date"):
            hour = data["date"]
        return {**data, "hour": _hour_label(hour)}


class WeatherRecord(BaseModel):
    """One hourly weather observation; missing measurements are 0"""

    model_config = ConfigDict(extra="ignore")

    date: str = Field(..., min_length=10)
    hour: str = Field(..., min_length=1)
    city: str = Field(..., min_length=1, max_length=100)

    temperature: float = 0
    windspeed: float = 0
    winddirection: float = 0
    direct_radiation: float = 0
    precipitation: float = 0
    cloudcover: float = 0
    humidity: float = 0

    latitude: float
    longitude: float

    @field_validator(
        "temperature",
        "windspeed",
        "winddirection",
        "direct_radiation",
        "precipitation",
        "cloudcover",
        "humidity",
        mode="before",
    )
    @classmethod
    def default_missing_measurements(cls, v):
        return _zero_if_missing(v)
