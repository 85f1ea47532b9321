"""
Application configuration using Pydantic Settings
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List, Optional

from core.exceptions import ConfigurationError


class Settings(BaseSettings):
    """Application settings with environment variable support"""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )

    # Database
    DATABASE_URL: str = "sqlite+aiosqlite:///./data/energy.db"

    # API
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 5001
    CORS_ORIGINS: List[str] = ["http://localhost:3000"]

    # Environment
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    # EPİAŞ transparency platform
    EPIAS_USERNAME: Optional[str] = None
    EPIAS_PASSWORD: Optional[str] = None
    EPIAS_AUTH_URL: str = "https://giris.epias.com.tr/cas/v1/tickets"
    EPIAS_BASE_URL: str = "https://seffaflik.epias.com.tr/electricity-service/v1"
    EPIAS_TIMEOUT: float = 30.0

    # Market clock
    MARKET_TIMEZONE: str = "Europe/Istanbul"
    MARKET_UTC_OFFSET: str = "+03:00"

    # Open-Meteo
    WEATHER_FORECAST_URL: str = "https://api.open-meteo.com/v1/forecast"
    WEATHER_ARCHIVE_URL: str = "https://archive-api.open-meteo.com/v1/archive"
    WEATHER_CURRENT_TIMEOUT: float = 10.0
    WEATHER_HISTORICAL_TIMEOUT: float = 30.0
    WEATHER_CITY: str = "Istanbul"

    # Scheduler
    SCHEDULER_ENABLED: bool = True
    SCHEDULER_CRON: str = "0 * * * *"


def validate_settings(settings: Settings, require_credentials: bool = True) -> None:
    """
    Fail fast on missing required configuration.

    Raises:
        ConfigurationError: listing every missing value
    """
    missing: List[str] = []

    if not settings.DATABASE_URL:
        missing.append("DATABASE_URL")

    if require_credentials:
        if not settings.EPIAS_USERNAME:
            missing.append("EPIAS_USERNAME")
        if not settings.EPIAS_PASSWORD:
            missing.append("EPIAS_PASSWORD")

    if missing:
        raise ConfigurationError(
            "Missing required configuration values",
            context={"missing": ",".join(missing)}
        )


settings = Settings()
