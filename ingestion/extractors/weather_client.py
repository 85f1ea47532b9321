"""
Open-Meteo client for hourly weather at fixed city coordinates.

The upstream returns parallel `hourly` arrays indexed by timestamp; they
are zipped positionally into one WeatherRecord per hour.
"""

import httpx
from typing import List, Dict, Any, Optional, Tuple

from core.config import settings
from core.exceptions import WeatherFetchError
from ingestion.extractors.market_client import DateLike, as_date
from schemas.records import WeatherRecord
import logging

logger = logging.getLogger(__name__)

CITY_COORDINATES: Dict[str, Tuple[float, float]] = {
    "Istanbul": (41.01, 28.94),
}

# Upstream parameter -> WeatherRecord field
WEATHER_PARAMS: Dict[str, str] = {
    "temperature_2m": "temperature",
    "windspeed_10m": "windspeed",
    "winddirection_10m": "winddirection",
    "direct_radiation": "direct_radiation",
    "precipitation": "precipitation",
    "cloudcover": "cloudcover",
    "relativehumidity_2m": "humidity",
}


class WeatherClient:
    """Fetch current-day and historical hourly weather"""

    def __init__(
        self,
        forecast_url: Optional[str] = None,
        archive_url: Optional[str] = None,
        current_timeout: Optional[float] = None,
        historical_timeout: Optional[float] = None,
        timezone: Optional[str] = None,
        utc_offset: Optional[str] = None
    ):
        self.forecast_url = forecast_url or settings.WEATHER_FORECAST_URL
        self.archive_url = archive_url or settings.WEATHER_ARCHIVE_URL
        self.current_timeout = current_timeout or settings.WEATHER_CURRENT_TIMEOUT
        self.historical_timeout = historical_timeout or settings.WEATHER_HISTORICAL_TIMEOUT
        self.timezone = timezone or settings.MARKET_TIMEZONE
        self.utc_offset = utc_offset or settings.MARKET_UTC_OFFSET

    async def fetch_current_weather(self, city: Optional[str] = None) -> List[WeatherRecord]:
        """Today's hourly series from the forecast endpoint"""
        city = city or settings.WEATHER_CITY
        return await self._fetch(
            city,
            self.forecast_url,
            {"forecast_days": 1},
            self.current_timeout
        )

    async def fetch_historical_weather(
        self,
        start_date: DateLike,
        end_date: DateLike,
        city: Optional[str] = None
    ) -> List[WeatherRecord]:
        """Hourly series for an inclusive date range from the archive endpoint"""
        city = city or settings.WEATHER_CITY
        start, end = as_date(start_date), as_date(end_date)
        return await self._fetch(
            city,
            self.archive_url,
            {"start_date": start.isoformat(), "end_date": end.isoformat()},
            self.historical_timeout
        )

    def split_timestamp(self, timestamp: str) -> Tuple[str, str]:
        """'2024-10-12T14:00' -> ('2024-10-12T00:00:00+03:00', '14:00')"""
        day, _, clock = timestamp.partition("T")
        return f"{day}T00:00:00{self.utc_offset}", (clock or "00:00")[:5]

    async def _fetch(
        self,
        city: str,
        url: str,
        extra_params: Dict[str, Any],
        timeout: float
    ) -> List[WeatherRecord]:
        if city not in CITY_COORDINATES:
            raise WeatherFetchError(
                f"No coordinates configured for city: {city}",
                context={"city": city}
            )
        latitude, longitude = CITY_COORDINATES[city]

        params = {
            "latitude": latitude,
            "longitude": longitude,
            "hourly": ",".join(WEATHER_PARAMS),
            "timezone": self.timezone,
            **extra_params,
        }

        try:
            async with httpx.AsyncClient(timeout=timeout) as client:
                response = await client.get(url, params=params)
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPStatusError as e:
            raise WeatherFetchError(
                f"Weather API returned {e.response.status_code}: {e.response.text[:200]}",
                context={"city": city, "api_url": url, "status_code": e.response.status_code},
                original_exception=e
            )
        except (httpx.HTTPError, ValueError) as e:
            raise WeatherFetchError(
                f"Weather API request failed: {str(e)}",
                context={"city": city, "api_url": url},
                original_exception=e
            )

        hourly = data.get("hourly") if isinstance(data, dict) else None
        if not isinstance(hourly, dict) or hourly.get("time") is None:
            raise WeatherFetchError(
                "Invalid weather API response: missing hourly.time",
                context={"city": city, "api_url": url}
            )

        records = self._zip_hourly(hourly, city, latitude, longitude)
        logger.info(f"Weather data fetched for {city}: {len(records)} hourly records")
        return records

    def _zip_hourly(self, hourly: Dict[str, List[Any]], city: str, latitude: float, longitude: float) -> List[WeatherRecord]:
        records = []
        for i, timestamp in enumerate(hourly["time"]):
            day, hour = self.split_timestamp(timestamp)
            values = {}
            for param, field in WEATHER_PARAMS.items():
                series = hourly.get(param) or []
                value = series[i] if i < len(series) else None
                values[field] = 0 if value is None else value
            records.append(
                WeatherRecord(
                    date=day,
                    hour=hour,
                    city=city,
                    latitude=latitude,
                    longitude=longitude,
                    **values
                )
            )
        return records
