"""
Core utilities and configuration for the energy ingestion backend.

This package provides foundational components used throughout the pipeline:

Modules:
    config: Application configuration and environment variable management
    database: Store handle owning the async engine and session factory
    exceptions: Custom exception hierarchy for error handling
    logging: Logging configuration
    migrations: Ordered, replayable schema migrations

Usage:
    from core.config import settings, validate_settings
    from core.database import Database
    from core.exceptions import AuthError, UpstreamFetchError, PersistenceError
    from core.logging import setup_logging
    from core.migrations import run_migrations

Example:
    setup_logging()

    database = Database(settings.DATABASE_URL)
    await database.connect()
    await run_migrations(database)

    async with database.session() as session:
        # Perform database operations
        pass
"""

__all__ = [
    "settings",
    "validate_settings",
    "Database",
    "setup_logging",
    "run_migrations",
    "get_migration_status",
    # Exceptions
    "EnergyPipelineError",
    "AuthError",
    "AuthFailureReason",
    "UpstreamFetchError",
    "WeatherFetchError",
    "PersistenceError",
    "ConfigurationError",
]
