"""Accessors for the per-application collaborators stored on ``app.state``."""

from __future__ import annotations

from typing import AsyncIterator

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import AppSettings
from app.ingest.market_data import MarketDataIngestor
from portfolio_metrics import PortfolioAnalyzer, PortfolioStore


def get_app_settings(request: Request) -> AppSettings:
    return request.app.state.settings


def get_store(request: Request) -> PortfolioStore:
    return request.app.state.store


def get_analyzer(request: Request) -> PortfolioAnalyzer:
    return request.app.state.analyzer


def get_ingestor(request: Request) -> MarketDataIngestor:
    return request.app.state.ingestor


async def get_session(request: Request) -> AsyncIterator[AsyncSession]:
    async with request.app.state.database.session() as session:
        yield session


__all__ = ["get_analyzer", "get_app_settings", "get_ingestor", "get_session", "get_store"]
