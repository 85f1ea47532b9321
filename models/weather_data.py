from sqlalchemy import Column, Integer, String, Float, DateTime, Index, UniqueConstraint
from sqlalchemy.sql import func
from models.base import Base


class WeatherData(Base):
    """
    Hourly weather observations for a fixed-coordinate city.

    Units follow Open-Meteo: °C, km/h, degrees, W/m², mm, %.
    """
    __tablename__ = "weather_data"

    id = Column(Integer, primary_key=True, autoincrement=True)
    date = Column(String(32), nullable=False)
    hour = Column(String(5), nullable=False)
    city = Column(String(100), nullable=False)

    temperature = Column(Float, default=0)
    windspeed = Column(Float, default=0)
    winddirection = Column(Float, default=0)
    direct_radiation = Column(Float, default=0)
    precipitation = Column(Float, default=0)
    cloudcover = Column(Float, default=0)
    humidity = Column(Float, default=0)

    latitude = Column(Float, nullable=False)
    longitude = Column(Float, nullable=False)

    created_at = Column(DateTime, nullable=False, server_default=func.current_timestamp())
    updated_at = Column(DateTime, nullable=False, server_default=func.current_timestamp())

    __table_args__ = (
        UniqueConstraint("date", "hour", "city", name="uq_weather_data_date_hour_city"),
        Index("idx_weather_data_date", "date"),
    )
