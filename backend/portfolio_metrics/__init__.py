"""Core package for the portfolio performance and risk pipeline."""

from .analytics import build_record, monte_carlo_value_at_risk, summarize_returns
from .analyzer import PortfolioAnalyzer
from .errors import (
    AnalysisInputError,
    PortfolioMetricsError,
    RecordNotFoundError,
    StoreError,
    StoreReadError,
    StoreWriteError,
    UpstreamError,
)
from .models import AccountData, AnalysisRecord, Asset, LeaderboardEntry, Portfolio, PortfolioSummary
from .panel import PricePanel
from .store import PortfolioStore

__all__ = [
    "AccountData",
    "AnalysisInputError",
    "AnalysisRecord",
    "Asset",
    "LeaderboardEntry",
    "Portfolio",
    "PortfolioAnalyzer",
    "PortfolioMetricsError",
    "PortfolioStore",
    "PortfolioSummary",
    "PricePanel",
    "RecordNotFoundError",
    "StoreError",
    "StoreReadError",
    "StoreWriteError",
    "UpstreamError",
    "build_record",
    "monte_carlo_value_at_risk",
    "summarize_returns",
]
