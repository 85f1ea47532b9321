"""
Ingestion pipeline for market and weather data.

Modules:
    auth: EPİAŞ ticket (TGT) acquisition
    runner: Collection orchestrator with per-source error isolation
    scheduler: APScheduler integration for cron-driven collection
    backfill: Chunked historical backfill with persisted progress

Subpackages:
    extractors: Market data (EPİAŞ) and weather (Open-Meteo) clients
    transformers: Upstream payload normalization and validation
    loaders: Persistence layer with idempotent upserts

Architecture:
    Every pass follows the same two phases per source:

    1. Fetch - Complete the network call with an explicit timeout
    2. Persist - Validate the batch, then upsert it in one transaction

    No database transaction is ever open while a network call is pending.

Usage:
    from ingestion.auth import TicketProvider
    from ingestion.extractors import MarketDataClient, WeatherClient
    from ingestion.loaders import EnergyStore
    from ingestion.runner import CollectionRunner

Example:
    store = EnergyStore(database)
    runner = CollectionRunner(
        store,
        MarketDataClient(TicketProvider()),
        WeatherClient()
    )
    summary = await runner.run_scheduled()
"""
