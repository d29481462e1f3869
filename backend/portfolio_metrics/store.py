"""Store capability the analyzer depends on."""
from __future__ import annotations

from datetime import date
from typing import List, Protocol, Sequence

from .models import AccountData, AnalysisRecord, LeaderboardEntry, PortfolioSummary
from .panel import PricePanel


class PortfolioStore(Protocol):
    """Read the price panel and persist analysis records.

    Implementations raise :class:`~portfolio_metrics.errors.StoreReadError` or
    :class:`~portfolio_metrics.errors.StoreWriteError` on failure.
    """

    async def fetch_trading_dates(self) -> List[date]:
        """Distinct dates present in the price table, ascending."""

    async def fetch_closing_prices(self, tickers: Sequence[str], dates: Sequence[date]) -> PricePanel:
        """Observed closes for ``tickers`` on ``dates``; absent rows stay absent."""

    async def save_portfolio(self, record: AnalysisRecord) -> int:
        """Insert ``record`` and return its newly assigned id."""

    async def fetch_portfolio(self, portfolio_id: int) -> AnalysisRecord:
        ...

    async def fetch_user_portfolios(self, user_id: int) -> List[PortfolioSummary]:
        ...

    async def fetch_leaderboard(self, limit: int = 50) -> List[LeaderboardEntry]:
        ...

    async def fetch_account_data(self, user_id: int) -> AccountData:
        ...

    async def fetch_tickers(self, limit: int = 50) -> List[str]:
        ...


__all__ = ["PortfolioStore"]
