"""
FastAPI application initialization
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from api.routes import health, energy, scheduler as scheduler_routes
from api.middleware import RequestContextMiddleware
from api.errors import register_error_handlers
from analytics.statistics import StatisticsEngine
from core.config import settings, validate_settings
from core.database import Database
from core.logging import setup_logging
from core.migrations import run_migrations
from ingestion.auth import TicketProvider
from ingestion.extractors.market_client import MarketDataClient
from ingestion.extractors.weather_client import WeatherClient
from ingestion.loaders.energy_store import EnergyStore
from ingestion.runner import CollectionRunner
from ingestion.scheduler import CollectionScheduler
import logging

logger = logging.getLogger(__name__)


def wire_components(app: FastAPI, database: Database):
    """Construct every component around one store handle and attach them to app.state"""
    store = EnergyStore(database)
    market_client = MarketDataClient(TicketProvider())
    weather_client = WeatherClient()
    runner = CollectionRunner(store, market_client, weather_client)

    app.state.database = database
    app.state.store = store
    app.state.stats_engine = StatisticsEngine(store)
    app.state.runner = runner
    app.state.scheduler = CollectionScheduler(runner, settings.SCHEDULER_CRON, settings.MARKET_TIMEZONE)


def create_app() -> FastAPI:
    app = FastAPI(
        title="Energy Analytics Backend API",
        description="Turkish electricity market and weather data ingestion and retrieval",
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc"
    )

    app.add_middleware(RequestContextMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )
    register_error_handlers(app)

    app.include_router(health.router)
    app.include_router(energy.router)
    app.include_router(scheduler_routes.router)

    @app.on_event("startup")
    async def startup_event():
        """Application startup event"""
        setup_logging()
        logger.info("Starting Energy Analytics Backend API")
        logger.info(f"Environment: {settings.ENVIRONMENT}")

        # Credentials are only needed when something will call the market API on its own
        validate_settings(settings, require_credentials=settings.SCHEDULER_ENABLED)

        database = Database(settings.DATABASE_URL)
        await database.connect()
        await run_migrations(database)
        wire_components(app, database)

        if settings.SCHEDULER_ENABLED:
            app.state.scheduler.start()
        else:
            app.state.scheduler.install()
            logger.info("Scheduler disabled; start it via POST /api/v1/scheduler/start")

    @app.on_event("shutdown")
    async def shutdown_event():
        """Application shutdown event"""
        logger.info("Shutting down Energy Analytics Backend API")
        scheduler = getattr(app.state, "scheduler", None)
        if scheduler is not None:
            scheduler.shutdown()
        database = getattr(app.state, "database", None)
        if database is not None:
            await database.dispose()

    @app.get("/")
    async def root():
        """Root endpoint"""
        return {
            "message": "Energy Analytics Backend API",
            "version": "1.0.0",
            "docs": "/docs",
            "health": "/health",
            "endpoints": {
                "energy": "/api/v1/energy",
                "scheduler": "/api/v1/scheduler"
            }
        }

    return app


app = create_app()
