"""
Database handle with SQLAlchemy async (SQLite via aiosqlite)
"""

from pathlib import Path
from typing import Optional

from sqlalchemy import event, text
from sqlalchemy.engine import make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

from core.config import settings
import logging

logger = logging.getLogger(__name__)


class Database:
    """
    Owns the engine and session factory for one embedded store.

    Constructed once at startup, passed to every component that needs it,
    and disposed once at shutdown.
    """

    def __init__(self, url: Optional[str] = None, echo: bool = False):
        self.url = url or settings.DATABASE_URL
        self.echo = echo
        self.engine: Optional[AsyncEngine] = None
        self._session_maker: Optional[async_sessionmaker] = None

    async def connect(self) -> AsyncEngine:
        """Create the engine on first use; later calls return the same engine"""
        if self.engine is not None:
            return self.engine

        self._ensure_data_dir()

        self.engine = create_async_engine(
            self.url,
            echo=self.echo,
            poolclass=NullPool,  # one connection per unit of work
            future=True
        )

        @event.listens_for(self.engine.sync_engine, "connect")
        def _set_sqlite_pragmas(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA journal_mode=WAL")
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        self._session_maker = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False
        )

        logger.info(f"Database connection initialized: {self._safe_url()}")
        return self.engine

    def session(self) -> AsyncSession:
        """Open a new session; use as an async context manager"""
        if self._session_maker is None:
            raise RuntimeError("Database not initialized. Call connect() first.")
        return self._session_maker()

    async def health_check(self) -> bool:
        """Run a trivial query against the store"""
        try:
            async with self.session() as session:
                result = await session.execute(text("SELECT 1"))
                return result.scalar() == 1
        except (SQLAlchemyError, RuntimeError) as e:
            logger.error(f"Database health check failed: {str(e)}")
            return False

    async def dispose(self):
        """Close the engine"""
        if self.engine is not None:
            await self.engine.dispose()
            self.engine = None
            self._session_maker = None
            logger.info("Database connection closed")

    def _ensure_data_dir(self):
        url = make_url(self.url)
        if url.get_backend_name() != "sqlite":
            return
        if not url.database or url.database == ":memory:":
            return
        Path(url.database).expanduser().parent.mkdir(parents=True, exist_ok=True)

    def _safe_url(self) -> str:
        return make_url(self.url).render_as_string(hide_password=True)
