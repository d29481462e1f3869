"""Pydantic schemas exposed by the API."""

from .portfolio import (
    AccountDataSchema,
    AssetSchema,
    LeaderboardEntrySchema,
    MarketUpdateResponse,
    PortfolioAnalysisSchema,
    PortfolioRequest,
    PortfolioSummarySchema,
)

__all__ = [
    "AccountDataSchema",
    "AssetSchema",
    "LeaderboardEntrySchema",
    "MarketUpdateResponse",
    "PortfolioAnalysisSchema",
    "PortfolioRequest",
    "PortfolioSummarySchema",
]
