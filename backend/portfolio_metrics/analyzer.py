"""Portfolio analysis entry point tying the store to the metric pipeline."""
from __future__ import annotations

import logging
from typing import Optional

import numpy as np

from .analytics import DEFAULT_CONFIDENCE, DEFAULT_SIMULATIONS, build_record
from .errors import AnalysisInputError
from .models import Portfolio
from .store import PortfolioStore

logger = logging.getLogger(__name__)


class PortfolioAnalyzer:
    """Compute and persist the analysis of a single portfolio.

    The analyzer holds no per-request state, so one instance can serve
    concurrent analyses. Pass ``rng`` to make the Monte-Carlo step
    reproducible.
    """

    def __init__(
        self,
        store: PortfolioStore,
        *,
        confidence: float = DEFAULT_CONFIDENCE,
        simulations: int = DEFAULT_SIMULATIONS,
        rng: Optional[np.random.Generator] = None,
    ) -> None:
        self._store = store
        self._confidence = confidence
        self._simulations = simulations
        self._rng = rng

    async def analyze(self, user_id: int, portfolio: Portfolio) -> int:
        """Analyse ``portfolio`` over the full price history and return the new record id."""

        if not portfolio.assets:
            raise AnalysisInputError("Portfolio has no assets")

        trading_dates = await self._store.fetch_trading_dates()
        if not trading_dates:
            raise AnalysisInputError("No trading dates available")

        panel = await self._store.fetch_closing_prices(portfolio.tickers, trading_dates)
        logger.info(
            "Analysing portfolio %r for user %s (%d tickers, %d trading dates, %d missing closes)",
            portfolio.name,
            user_id,
            len(panel.tickers),
            len(panel.dates),
            panel.missing_count(),
        )

        record = build_record(
            user_id,
            portfolio,
            panel,
            confidence=self._confidence,
            simulations=self._simulations,
            rng=self._rng,
        )
        portfolio_id = await self._store.save_portfolio(record)
        logger.info("Saved analysis %d for user %s", portfolio_id, user_id)
        return portfolio_id


__all__ = ["PortfolioAnalyzer"]
