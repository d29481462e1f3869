"""Exception hierarchy shared by the analytics core and the service layer."""

from __future__ import annotations


class PortfolioMetricsError(Exception):
    """Base class for every error raised by the portfolio metrics code."""


class AnalysisInputError(PortfolioMetricsError):
    """Raised when an analysis cannot start from the supplied inputs."""


class StoreError(PortfolioMetricsError):
    """Raised when the persistence layer fails."""


class StoreReadError(StoreError):
    """A query against the store failed."""


class StoreWriteError(StoreError):
    """A write was rejected or did not produce a row."""


class RecordNotFoundError(StoreReadError):
    """The requested analysis record does not exist."""


class UpstreamError(PortfolioMetricsError):
    """The external market-data provider returned an unusable response."""


__all__ = [
    "PortfolioMetricsError",
    "AnalysisInputError",
    "StoreError",
    "StoreReadError",
    "StoreWriteError",
    "RecordNotFoundError",
    "UpstreamError",
]
