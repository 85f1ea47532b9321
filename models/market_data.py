from sqlalchemy import Column, Integer, String, Float, DateTime, Index, UniqueConstraint
from sqlalchemy.sql import func
from models.base import Base


class PtfData(Base):
    """Hourly market clearing price (PTF) in TRY/MWh with optional USD/EUR conversions"""
    __tablename__ = "ptf_data"

    id = Column(Integer, primary_key=True, autoincrement=True)
    date = Column(String(32), nullable=False)
    hour = Column(String(5), nullable=False)

    price = Column(Float, nullable=False)
    price_usd = Column(Float, nullable=True)
    price_eur = Column(Float, nullable=True)

    created_at = Column(DateTime, nullable=False, server_default=func.current_timestamp())
    updated_at = Column(DateTime, nullable=False, server_default=func.current_timestamp())

    __table_args__ = (
        UniqueConstraint("date", "hour", name="uq_ptf_data_date_hour"),
        Index("idx_ptf_data_date", "date"),
    )


class ConsumptionData(Base):
    """Hourly real-time consumption in MWh"""
    __tablename__ = "consumption_data"

    id = Column(Integer, primary_key=True, autoincrement=True)
    date = Column(String(32), nullable=False)
    hour = Column(String(5), nullable=False)

    consumption = Column(Float, nullable=False)

    created_at = Column(DateTime, nullable=False, server_default=func.current_timestamp())
    updated_at = Column(DateTime, nullable=False, server_default=func.current_timestamp())

    __table_args__ = (
        UniqueConstraint("date", "hour", name="uq_consumption_data_date_hour"),
        Index("idx_consumption_data_date", "date"),
    )
