"""
Ordered schema migrations for the embedded store.

Each migration creates a fixed set of tables (with their indexes) inside one
transaction and is recorded once in the `migrations` table. Statements are
safe to replay: "already exists" errors are swallowed, everything else is
re-raised.
"""

from dataclasses import dataclass
from typing import List, Dict, Any, Tuple
import logging

from sqlalchemy import select, insert, Table
from sqlalchemy.exc import OperationalError
from sqlalchemy.schema import CreateTable, CreateIndex

from core.database import Database
from models import (
    EnergyData,
    EnergyDataStaging,
    PtfData,
    ConsumptionData,
    WeatherData,
    DataCollectionLog,
    BackfillProgress,
    AppliedMigration,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Migration:
    id: str
    description: str
    tables: Tuple[Table, ...]


MIGRATIONS: List[Migration] = [
    Migration(
        id="001_initial_schema",
        description="Generation data and collection audit log",
        tables=(EnergyData.__table__, DataCollectionLog.__table__),
    ),
    Migration(
        id="002_backfill_support",
        description="Backfill progress tracking and generation staging table",
        tables=(BackfillProgress.__table__, EnergyDataStaging.__table__),
    ),
    Migration(
        id="003_market_and_weather",
        description="Market clearing price, consumption and weather tables",
        tables=(PtfData.__table__, ConsumptionData.__table__, WeatherData.__table__),
    ),
]


def _is_already_exists(error: OperationalError) -> bool:
    return "already exists" in str(error.orig).lower()


async def _execute_ddl(conn, statement) -> bool:
    """Run one DDL statement; False when the object was already there"""
    try:
        await conn.execute(statement)
        return True
    except OperationalError as e:
        if _is_already_exists(e):
            return False
        raise


async def _create_table(conn, table: Table):
    created = await _execute_ddl(conn, CreateTable(table))
    for index in sorted(table.indexes, key=lambda i: i.name):
        await _execute_ddl(conn, CreateIndex(index))
    if created:
        logger.info(f"Created table {table.name}")


async def run_migrations(database: Database, migrations: List[Migration] = None) -> List[str]:
    """
    Apply pending migrations in order.

    Returns:
        Ids of the migrations recorded by this call
    """
    migrations = MIGRATIONS if migrations is None else migrations
    engine = await database.connect()
    migrations_table = AppliedMigration.__table__

    async with engine.begin() as conn:
        await _execute_ddl(conn, CreateTable(migrations_table))

    applied: List[str] = []
    for migration in migrations:
        async with engine.begin() as conn:
            for table in migration.tables:
                await _create_table(conn, table)

            existing = await conn.execute(
                select(migrations_table.c.id).where(migrations_table.c.id == migration.id)
            )
            if existing.scalar_one_or_none() is None:
                await conn.execute(
                    insert(migrations_table).values(
                        id=migration.id,
                        description=migration.description,
                    )
                )
                applied.append(migration.id)
                logger.info(f"Applied migration {migration.id}: {migration.description}")

    if not applied:
        logger.info("Database schema is up to date")
    return applied


async def get_migration_status(database: Database) -> List[Dict[str, Any]]:
    """List applied migrations, newest first"""
    migrations_table = AppliedMigration.__table__
    async with database.session() as session:
        result = await session.execute(
            select(migrations_table).order_by(
                migrations_table.c.applied_at.desc(),
                migrations_table.c.id.desc(),
            )
        )
        return [
            {
                "id": row.id,
                "description": row.description,
                "applied_at": row.applied_at,
            }
            for row in result
        ]
