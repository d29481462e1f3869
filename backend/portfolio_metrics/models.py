"""Domain models used by the portfolio analytics pipeline."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional, Tuple


@dataclass(frozen=True)
class Asset:
    """A ticker held at a fixed fraction of the portfolio."""

    ticker: str
    weight: float

    def __str__(self) -> str:
        return f"{self.ticker}: {self.weight}"


@dataclass(frozen=True)
class Portfolio:
    """A named bag of weighted tickers with a notional current value.

    Weights are expected to sum to one but this is not checked; any mismatch
    simply scales the value series.
    """

    name: str
    current_value: int
    assets: Tuple[Asset, ...]

    @property
    def tickers(self) -> Tuple[str, ...]:
        """Distinct tickers in the order they first appear."""

        return tuple(dict.fromkeys(asset.ticker for asset in self.assets))


@dataclass(frozen=True)
class AnalysisRecord:
    """Immutable result of one portfolio analysis."""

    name: str
    user_id: int
    trading_dates: Tuple[date, ...]
    daily_values: Tuple[float, ...]
    daily_returns: Tuple[float, ...]
    cumulative_return: float
    mean_return: float
    volatility: float
    sharpe: float
    value_at_risk: float
    assets: Tuple[Asset, ...]
    id: Optional[int] = None
    username: Optional[str] = None


@dataclass(frozen=True)
class PortfolioSummary:
    """Row of a user's analysis history."""

    id: int
    name: str
    assets: Tuple[Asset, ...]
    start: date
    end: date
    sharpe: float
    value_at_risk: float


@dataclass(frozen=True)
class LeaderboardEntry:
    id: int
    username: str
    name: str
    sharpe: float
    start_date: date
    end_date: date


@dataclass(frozen=True)
class AccountData:
    portfolio_count: int
    best_sharpe: float
