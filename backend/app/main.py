"""FastAPI application entrypoint."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.routes import api_router
from app.config import AppSettings, get_settings
from app.core.logging import setup_logging
from app.core.telemetry import setup_telemetry
from app.db.init import init_database
from app.db.session import Database
from app.ingest.market_data import MarketDataIngestor
from app.ingest.scheduler import build_scheduler
from app.providers.polygon import PolygonClient
from app.services.store import SqlAlchemyPortfolioStore
from portfolio_metrics import PortfolioAnalyzer

logger = logging.getLogger(__name__)


def create_app(
    database: Database | None = None,
    *,
    settings: AppSettings | None = None,
    analyzer: PortfolioAnalyzer | None = None,
    ingestor: MarketDataIngestor | None = None,
) -> FastAPI:
    """Build the service; collaborators may be injected for tests."""

    settings = settings or get_settings()
    setup_logging()
    database = database or Database(settings.database_url)
    store = SqlAlchemyPortfolioStore(database)
    analyzer = analyzer or PortfolioAnalyzer(
        store,
        confidence=settings.var_confidence,
        simulations=settings.var_simulations,
    )
    polygon_client: PolygonClient | None = None
    if ingestor is None:
        polygon_client = PolygonClient(settings.polygon_api_key)
        ingestor = MarketDataIngestor(database, polygon_client, settings=settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        logger.info("Starting %s with settings %s", settings.app_name, settings.dict_for_logging())
        await init_database(database)
        scheduler = build_scheduler(ingestor, settings) if settings.ingest_schedule_enabled else None
        if scheduler is not None:
            scheduler.start()
        try:
            yield
        finally:
            if scheduler is not None:
                scheduler.shutdown(wait=False)
            if polygon_client is not None:
                await polygon_client.aclose()
            await database.dispose()

    app = FastAPI(title=settings.app_name, version="0.1.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.database = database
    app.state.store = store
    app.state.analyzer = analyzer
    app.state.ingestor = ingestor

    app.add_middleware(
        CORSMiddleware,
        allow_origin_regex=r"^https?://(localhost|127\.0\.0\.1)(:\d+)?$",
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    setup_telemetry(app, settings, engine=database.engine)

    @app.get("/health", tags=["health"])
    async def health() -> dict[str, str]:
        """Return service readiness metadata."""

        return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}

    app.include_router(api_router)
    return app


__all__ = ["create_app"]
