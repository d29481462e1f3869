"""Database model exports."""

from .analysis import PortfolioAnalysis
from .prices import HistoricalPrice, TrackedAsset
from .users import AuthToken, User

__all__ = [
    "AuthToken",
    "HistoricalPrice",
    "PortfolioAnalysis",
    "TrackedAsset",
    "User",
]
