"""
Persistence layer: idempotent upserts and reads for every hourly series.

This is the only module that touches tables. Every save call validates the
whole batch first, then applies it in a single transaction: per record an
existence check on the natural key followed by INSERT ... ON CONFLICT DO
UPDATE overwriting every field.
"""

from typing import List, Optional, Dict, Any, Sequence, Type, Union, Iterable
from datetime import date

from sqlalchemy import select, update, func, and_, desc
from sqlalchemy.dialects.sqlite import insert
from sqlalchemy.exc import SQLAlchemyError
from pydantic import BaseModel

from core.database import Database
from core.exceptions import PersistenceError
from ingestion.transformers.normalizer import RecordNormalizer
from models import (
    EnergyData,
    EnergyDataStaging,
    PtfData,
    ConsumptionData,
    WeatherData,
    DataCollectionLog,
    BackfillProgress,
)
from models.base import CollectionStatus, BackfillStatus
from models.energy_data import GENERATION_SOURCE_FIELDS, RENEWABLE_FIELDS
from schemas.api import SaveResult
import logging

logger = logging.getLogger(__name__)

RecordInput = Union[Dict[str, Any], BaseModel]
DateInput = Union[date, str]

HOURLY_TABLES = {
    "energy_data": EnergyData,
    "ptf_data": PtfData,
    "consumption_data": ConsumptionData,
    "weather_data": WeatherData,
    "energy_data_staging": EnergyDataStaging,
}

TERMINAL_BACKFILL_STATUSES = (BackfillStatus.COMPLETED, BackfillStatus.FAILED)


def _date_key(value: DateInput) -> str:
    """Calendar-date prefix (YYYY-MM-DD) used for range matching"""
    if isinstance(value, date):
        return value.isoformat()[:10]
    return str(value)[:10]


class EnergyStore:
    """
    Read/write access to the embedded store.

    Writers return a SaveResult tally; the inserted/updated split comes from
    the pre-write existence check. Readers return ORM rows detached from
    their session (expire_on_commit is off).
    """

    def __init__(self, database: Database):
        self.database = database

    # ------------------------------------------------------------------
    # Writers
    # ------------------------------------------------------------------

    async def save_energy_data(self, records: Iterable[RecordInput]) -> SaveResult:
        return await self._upsert("generation", EnergyData, records, ("date", "hour"))

    async def save_staging_data(self, records: Iterable[RecordInput]) -> SaveResult:
        return await self._upsert("staging", EnergyDataStaging, records, ("date", "hour"))

    async def save_price_data(self, records: Iterable[RecordInput]) -> SaveResult:
        return await self._upsert("price", PtfData, records, ("date", "hour"))

    async def save_consumption_data(self, records: Iterable[RecordInput]) -> SaveResult:
        return await self._upsert("consumption", ConsumptionData, records, ("date", "hour"))

    async def save_weather_data(self, records: Iterable[RecordInput]) -> SaveResult:
        return await self._upsert("weather", WeatherData, records, ("date", "hour", "city"))

    async def _upsert(
        self,
        kind: str,
        model: Type,
        records: Iterable[RecordInput],
        key_fields: Sequence[str]
    ) -> SaveResult:
        """
        Upsert one batch atomically.

        Raises:
            PersistenceError: invalid record (nothing written) or database
                failure (batch rolled back)
        """
        items = RecordNormalizer(kind).normalize_batch(records)
        if not items:
            return SaveResult()

        has_updated_at = "updated_at" in model.__table__.c
        inserted = 0
        updated = 0

        try:
            async with self.database.session() as session:
                async with session.begin():
                    for item in items:
                        values = item.model_dump()

                        key_clause = and_(*(getattr(model, k) == values[k] for k in key_fields))
                        existing = await session.execute(select(model.id).where(key_clause).limit(1))
                        exists = existing.scalar_one_or_none() is not None

                        stmt = insert(model).values(**values)
                        set_ = {
                            field: getattr(stmt.excluded, field)
                            for field in values
                            if field not in key_fields
                        }
                        if has_updated_at:
                            set_["updated_at"] = func.current_timestamp()
                        stmt = stmt.on_conflict_do_update(index_elements=list(key_fields), set_=set_)

                        await session.execute(stmt)

                        if exists:
                            updated += 1
                        else:
                            inserted += 1
        except SQLAlchemyError as e:
            logger.error(f"Upsert into {model.__tablename__} failed, batch rolled back: {str(e)}")
            raise PersistenceError(
                f"Failed to save {kind} data",
                context={
                    "operation": "UPSERT",
                    "table_name": model.__tablename__,
                    "batch_size": len(items)
                },
                original_exception=e
            )

        logger.info(f"Saved {kind} data into {model.__tablename__}: {inserted} inserted, {updated} updated")
        return SaveResult(inserted=inserted, updated=updated)

    async def promote_staging_data(
        self,
        start_date: Optional[DateInput] = None,
        end_date: Optional[DateInput] = None
    ) -> SaveResult:
        """
        Merge staged rows flagged valid into energy_data through the regular
        upsert path. Staged rows are left in place.
        """
        filters = [EnergyDataStaging.is_valid.is_(True)]
        if start_date is not None:
            filters.append(func.substr(EnergyDataStaging.date, 1, 10) >= _date_key(start_date))
        if end_date is not None:
            filters.append(func.substr(EnergyDataStaging.date, 1, 10) <= _date_key(end_date))

        staged = await self._select(
            select(EnergyDataStaging)
            .where(*filters)
            .order_by(EnergyDataStaging.date, EnergyDataStaging.hour),
            EnergyDataStaging
        )
        if not staged:
            logger.info("No valid staged rows to promote")
            return SaveResult()

        records = [
            {
                "date": row.date,
                "hour": row.hour,
                "total": row.total,
                **{field: getattr(row, field) for field in GENERATION_SOURCE_FIELDS}
            }
            for row in staged
        ]
        result = await self.save_energy_data(records)
        logger.info(f"Promoted {len(records)} staged rows into energy_data")
        return result

    # ------------------------------------------------------------------
    # Readers
    # ------------------------------------------------------------------

    async def _select(self, stmt, model: Type) -> List[Any]:
        try:
            async with self.database.session() as session:
                result = await session.execute(stmt)
                return list(result.scalars().all())
        except SQLAlchemyError as e:
            raise PersistenceError(
                f"Failed to read {model.__tablename__}",
                context={"operation": "SELECT", "table_name": model.__tablename__},
                original_exception=e
            )

    async def _scalar(self, stmt, table_name: str) -> Any:
        try:
            async with self.database.session() as session:
                result = await session.execute(stmt)
                return result.scalar()
        except SQLAlchemyError as e:
            raise PersistenceError(
                f"Failed to read {table_name}",
                context={"operation": "SELECT", "table_name": table_name},
                original_exception=e
            )

    async def _first_row(self, stmt, table_name: str) -> Optional[Dict[str, Any]]:
        try:
            async with self.database.session() as session:
                result = await session.execute(stmt)
                row = result.first()
                return dict(row._mapping) if row is not None else None
        except SQLAlchemyError as e:
            raise PersistenceError(
                f"Failed to read {table_name}",
                context={"operation": "SELECT", "table_name": table_name},
                original_exception=e
            )

    async def _recent(self, model: Type, limit: int, *filters) -> List[Any]:
        """Most recent `limit` rows by (date desc, hour desc); no wall-clock filter"""
        stmt = (
            select(model)
            .where(*filters)
            .order_by(model.date.desc(), model.hour.desc())
            .limit(max(limit, 0))
        )
        return await self._select(stmt, model)

    async def _by_date_range(self, model: Type, start_date: DateInput, end_date: DateInput, *filters) -> List[Any]:
        """Inclusive on the calendar date of `date`; hour is not bounded"""
        stmt = (
            select(model)
            .where(
                func.substr(model.date, 1, 10).between(_date_key(start_date), _date_key(end_date)),
                *filters
            )
            .order_by(model.date, model.hour)
        )
        return await self._select(stmt, model)

    async def get_recent_energy_data(self, hours: int = 24) -> List[EnergyData]:
        """
        At most `hours` rows, newest first.

        `hours` is a row-count limit: sparse or gappy data makes the result
        span more (or fewer) wall-clock hours than the number suggests.
        """
        return await self._recent(EnergyData, hours)

    async def get_energy_data_by_date_range(self, start_date: DateInput, end_date: DateInput) -> List[EnergyData]:
        return await self._by_date_range(EnergyData, start_date, end_date)

    async def get_recent_price_data(self, limit: int = 24) -> List[PtfData]:
        return await self._recent(PtfData, limit)

    async def get_price_data_by_date_range(self, start_date: DateInput, end_date: DateInput) -> List[PtfData]:
        return await self._by_date_range(PtfData, start_date, end_date)

    async def get_recent_consumption_data(self, limit: int = 24) -> List[ConsumptionData]:
        return await self._recent(ConsumptionData, limit)

    async def get_consumption_data_by_date_range(self, start_date: DateInput, end_date: DateInput) -> List[ConsumptionData]:
        return await self._by_date_range(ConsumptionData, start_date, end_date)

    async def get_recent_weather_data(self, limit: int = 24, city: Optional[str] = None) -> List[WeatherData]:
        filters = [WeatherData.city == city] if city else []
        return await self._recent(WeatherData, limit, *filters)

    async def get_weather_data_by_date_range(
        self,
        start_date: DateInput,
        end_date: DateInput,
        city: Optional[str] = None
    ) -> List[WeatherData]:
        filters = [WeatherData.city == city] if city else []
        return await self._by_date_range(WeatherData, start_date, end_date, *filters)

    # ------------------------------------------------------------------
    # Aggregates (statistics engine)
    # ------------------------------------------------------------------

    async def count_energy_records(self) -> int:
        count = await self._scalar(select(func.count()).select_from(EnergyData), "energy_data")
        return count or 0

    async def get_energy_date_range(self) -> Dict[str, Optional[str]]:
        row = await self._first_row(
            select(
                func.min(EnergyData.date).label("earliest_date"),
                func.max(EnergyData.date).label("latest_date")
            ),
            "energy_data"
        )
        return row or {"earliest_date": None, "latest_date": None}

    async def get_window_aggregates(self, hours: int) -> Dict[str, Any]:
        """
        Aggregates over the most recent `hours` rows.

        The window uses the same ordering and limit as get_recent_energy_data.
        Averages are None when the window is empty.
        """
        window = (
            select(EnergyData)
            .order_by(EnergyData.date.desc(), EnergyData.hour.desc())
            .limit(max(hours, 0))
            .subquery()
        )
        renewable_sum = sum((window.c[field] for field in RENEWABLE_FIELDS[1:]), window.c[RENEWABLE_FIELDS[0]])

        stmt = select(
            func.count().label("row_count"),
            func.avg(window.c.total).label("avg_total"),
            func.max(window.c.total).label("max_generation"),
            func.min(window.c.total).label("min_generation"),
            func.avg(renewable_sum).label("avg_renewable_total"),
            func.avg(window.c.natural_gas).label("avg_natural_gas"),
            func.avg(window.c.wind).label("avg_wind"),
            func.avg(window.c.sun).label("avg_sun"),
            func.avg(window.c.dammed_hydro).label("avg_hydro"),
            func.avg(window.c.import_coal).label("avg_import_coal"),
            func.avg(window.c.lignite).label("avg_lignite"),
        ).select_from(window)

        return await self._first_row(stmt, "energy_data") or {}

    async def get_peak_hours(self, limit: int = 3) -> List[Dict[str, Any]]:
        """Hour labels with the highest average total across the whole table"""
        stmt = (
            select(
                EnergyData.hour.label("hour"),
                func.avg(EnergyData.total).label("avg_generation")
            )
            .group_by(EnergyData.hour)
            .order_by(desc("avg_generation"), EnergyData.hour)
            .limit(limit)
        )
        try:
            async with self.database.session() as session:
                result = await session.execute(stmt)
                return [dict(row._mapping) for row in result]
        except SQLAlchemyError as e:
            raise PersistenceError(
                "Failed to read peak hours",
                context={"operation": "SELECT", "table_name": "energy_data"},
                original_exception=e
            )

    # ------------------------------------------------------------------
    # Status report
    # ------------------------------------------------------------------

    async def get_table_counts(self) -> Dict[str, int]:
        counts = {}
        for table_name, model in HOURLY_TABLES.items():
            count = await self._scalar(select(func.count()).select_from(model), table_name)
            counts[table_name] = count or 0
        return counts

    async def get_table_date_ranges(self) -> Dict[str, Dict[str, Optional[str]]]:
        ranges = {}
        for table_name, model in HOURLY_TABLES.items():
            row = await self._first_row(
                select(
                    func.min(model.date).label("earliest_date"),
                    func.max(model.date).label("latest_date")
                ),
                table_name
            )
            ranges[table_name] = row or {"earliest_date": None, "latest_date": None}
        return ranges

    async def health_check(self) -> bool:
        return await self.database.health_check()

    # ------------------------------------------------------------------
    # Collection audit log
    # ------------------------------------------------------------------

    async def log_collection(
        self,
        status: Union[CollectionStatus, str],
        inserted: int,
        updated: int,
        error_message: Optional[str] = None,
        duration_ms: Optional[int] = None
    ) -> bool:
        """
        Append one audit row.

        A failed log write is logged and reported as False; it never masks
        the outcome of the collection being logged.
        """
        try:
            async with self.database.session() as session:
                async with session.begin():
                    session.add(
                        DataCollectionLog(
                            status=CollectionStatus(status),
                            records_inserted=inserted,
                            records_updated=updated,
                            error_message=error_message,
                            execution_time_ms=duration_ms
                        )
                    )
            return True
        except (SQLAlchemyError, RuntimeError) as e:
            logger.error(f"Failed to write collection log ({status}): {str(e)}")
            return False

    async def get_recent_collection_logs(self, limit: int = 10) -> List[DataCollectionLog]:
        stmt = (
            select(DataCollectionLog)
            .order_by(DataCollectionLog.created_at.desc(), DataCollectionLog.id.desc())
            .limit(limit)
        )
        return await self._select(stmt, DataCollectionLog)

    # ------------------------------------------------------------------
    # Backfill progress
    # ------------------------------------------------------------------

    async def create_backfill_progress(self, start_date: DateInput, end_date: DateInput, kinds: Sequence[str]) -> int:
        """Insert an in_progress row and return its id"""
        try:
            async with self.database.session() as session:
                async with session.begin():
                    progress = BackfillProgress(
                        data_kind=",".join(kinds),
                        start_date=_date_key(start_date),
                        end_date=_date_key(end_date),
                        status=BackfillStatus.IN_PROGRESS,
                        records_fetched=0
                    )
                    session.add(progress)
                    await session.flush()
                    return progress.id
        except SQLAlchemyError as e:
            raise PersistenceError(
                "Failed to create backfill progress",
                context={"operation": "INSERT", "table_name": "backfill_progress"},
                original_exception=e
            )

    async def update_backfill_progress(
        self,
        progress_id: int,
        status: Optional[Union[BackfillStatus, str]] = None,
        records_fetched: Optional[int] = None,
        last_processed_date: Optional[DateInput] = None,
        error_message: Optional[str] = None
    ) -> None:
        """Update the given fields; completed_at is stamped on terminal status"""
        values: Dict[str, Any] = {}
        if status is not None:
            status = BackfillStatus(status)
            values["status"] = status
            if status in TERMINAL_BACKFILL_STATUSES:
                values["completed_at"] = func.current_timestamp()
        if records_fetched is not None:
            values["records_fetched"] = records_fetched
        if last_processed_date is not None:
            values["last_processed_date"] = _date_key(last_processed_date)
        if error_message is not None:
            values["error_message"] = error_message
        if not values:
            return

        try:
            async with self.database.session() as session:
                async with session.begin():
                    result = await session.execute(
                        update(BackfillProgress)
                        .where(BackfillProgress.id == progress_id)
                        .values(**values)
                    )
                    matched = result.rowcount
        except SQLAlchemyError as e:
            raise PersistenceError(
                "Failed to update backfill progress",
                context={"operation": "UPDATE", "table_name": "backfill_progress", "progress_id": progress_id},
                original_exception=e
            )

        if matched == 0:
            raise PersistenceError(
                "Backfill progress row not found",
                context={"operation": "UPDATE", "table_name": "backfill_progress", "progress_id": progress_id}
            )

    async def get_backfill_progress(self, progress_id: int) -> Optional[BackfillProgress]:
        rows = await self._select(
            select(BackfillProgress).where(BackfillProgress.id == progress_id),
            BackfillProgress
        )
        return rows[0] if rows else None

    async def get_recent_backfill_progress(self, limit: int = 10) -> List[BackfillProgress]:
        stmt = (
            select(BackfillProgress)
            .order_by(BackfillProgress.created_at.desc(), BackfillProgress.id.desc())
            .limit(limit)
        )
        return await self._select(stmt, BackfillProgress)
