from sqlalchemy import Column, Integer, String, DateTime, Text, Index
from sqlalchemy.sql import func
from models.base import Base, CollectionStatus, BackfillStatus, value_enum


class DataCollectionLog(Base):
    """
    Append-only audit row per scheduled or manual collection run.

    Counts reflect the generation step only; duration covers the whole run.
    """
    __tablename__ = "data_collection_logs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    status = Column(value_enum(CollectionStatus), nullable=False)
    records_inserted = Column(Integer, default=0)
    records_updated = Column(Integer, default=0)
    error_message = Column(Text, nullable=True)
    execution_time_ms = Column(Integer, nullable=True)
    created_at = Column(DateTime, nullable=False, server_default=func.current_timestamp())

    __table_args__ = (
        Index("idx_collection_logs_created", "created_at"),
    )


class BackfillProgress(Base):
    """
    Tracks one backfill run across its chunks.

    Purpose:
    - Resume a span after chunk-level failures (last_processed_date)
    - Cumulative record count for completeness reporting
    - Error trail of failed chunks
    """
    __tablename__ = "backfill_progress"

    id = Column(Integer, primary_key=True, autoincrement=True)
    data_kind = Column(String(100), nullable=False)
    start_date = Column(String(10), nullable=False)
    end_date = Column(String(10), nullable=False)
    status = Column(value_enum(BackfillStatus), nullable=False, default=BackfillStatus.IN_PROGRESS)
    records_fetched = Column(Integer, nullable=False, default=0)
    last_processed_date = Column(String(10), nullable=True)
    error_message = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False, server_default=func.current_timestamp())
    completed_at = Column(DateTime, nullable=True)


class AppliedMigration(Base):
    """Schema migrations applied to this store"""
    __tablename__ = "migrations"

    id = Column(String(100), primary_key=True)
    description = Column(String(255), nullable=False)
    applied_at = Column(DateTime, nullable=False, server_default=func.current_timestamp())
