from ingestion.extractors.market_client import MarketDataClient
from ingestion.extractors.weather_client import WeatherClient, CITY_COORDINATES

__all__ = ["MarketDataClient", "WeatherClient", "CITY_COORDINATES"]
