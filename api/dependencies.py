"""
FastAPI dependencies resolving the components wired at startup
"""

from fastapi import Request

from analytics.statistics import StatisticsEngine
from ingestion.loaders.energy_store import EnergyStore
from ingestion.scheduler import CollectionScheduler


def get_store(request: Request) -> EnergyStore:
    return request.app.state.store


def get_stats_engine(request: Request) -> StatisticsEngine:
    return request.app.state.stats_engine


def get_scheduler(request: Request) -> CollectionScheduler:
    return request.app.state.scheduler
