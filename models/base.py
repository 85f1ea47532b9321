from sqlalchemy import Enum
from sqlalchemy.orm import declarative_base
import enum

Base = declarative_base()


# ============================================================================
# ENUMS
# ============================================================================

class DataKind(str, enum.Enum):
    """Kinds of hourly series the pipeline collects"""
    GENERATION = "generation"
    PRICE = "price"
    CONSUMPTION = "consumption"
    WEATHER = "weather"


class CollectionStatus(str, enum.Enum):
    """Outcome of a scheduled or manual collection run"""
    SUCCESS = "success"
    ERROR = "error"
    MANUAL_SUCCESS = "manual_success"
    MANUAL_ERROR = "manual_error"


class BackfillStatus(str, enum.Enum):
    """Backfill run status"""
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"


def value_enum(enum_cls):
    """Store enum values ('success') rather than member names ('SUCCESS')"""
    return Enum(
        enum_cls,
        values_callable=lambda members: [m.value for m in members],
        native_enum=False,
        length=32,
    )
