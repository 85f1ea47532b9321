"""
Pydantic schemas for API request/response models
"""

from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List, Dict, Any
from datetime import datetime, timezone

from models.base import BackfillStatus
from schemas.records import GenerationRecord, PriceRecord, ConsumptionRecord, WeatherRecord


class SaveResult(BaseModel):
    """Per-call upsert tally, classified by a pre-write existence check"""
    inserted: int = 0
    updated: int = 0

    @property
    def total(self) -> int:
        return self.inserted + self.updated


# ============================================================================
# Stored record responses
# ============================================================================

class EnergyDataResponse(GenerationRecord):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class PriceDataResponse(PriceRecord):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: int


class ConsumptionDataResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    date: str
    hour: str
    consumption: float


class WeatherDataResponse(WeatherRecord):
    model_config = ConfigDict(from_attributes=True)

    id: int


class DataListResponse(BaseModel):
    """List envelope shared by the read endpoints"""
    count: int
    data: List[Any]


# ============================================================================
# Collection / scheduler
# ============================================================================

class CollectionResult(BaseModel):
    """Outcome of a manual collection run (generation step only)"""
    inserted: int
    updated: int
    execution_time_ms: int


class SchedulerStatus(BaseModel):
    is_running: bool
    next_run: str = Field(..., description="Human-readable cadence computed from the cron expression")
    next_run_time: Optional[datetime] = None
    cron_expression: str
    timezone: str


class CollectionLogResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    status: str
    records_inserted: int
    records_updated: int
    error_message: Optional[str] = None
    execution_time_ms: Optional[int] = None
    created_at: Optional[datetime] = None


# ============================================================================
# Backfill
# ============================================================================

class BackfillProgressResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    data_kind: str
    start_date: str
    end_date: str
    status: BackfillStatus
    records_fetched: int
    last_processed_date: Optional[str] = None
    error_message: Optional[str] = None
    created_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None


class BackfillResult(BaseModel):
    """Summary of one backfill run"""
    progress_id: int
    status: str
    start_date: str
    end_date: str
    chunks: int
    records_fetched: int
    records_by_kind: Dict[str, int] = Field(default_factory=dict)
    completeness: Dict[str, float] = Field(default_factory=dict)
    failed_chunks: List[int] = Field(default_factory=list)
    error_message: Optional[str] = None


# ============================================================================
# Health
# ============================================================================

class HealthCheckResponse(BaseModel):
    """Health check response model"""
    status: str = Field(..., description="Overall system status: healthy, unhealthy")
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    database_connected: bool
    scheduler_running: bool = False
    total_records: int = 0
    last_collection: Optional[CollectionLogResponse] = None
