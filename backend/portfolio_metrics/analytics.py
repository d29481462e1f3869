"""Performance and risk metrics for a fixed-weight portfolio snapshot."""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional, Sequence

import numpy as np

from .errors import AnalysisInputError
from .models import AnalysisRecord, Asset, Portfolio
from .panel import PricePanel

TRADING_DAYS = 252
ANNUAL_RISK_FREE_RATE = 0.05
DEFAULT_SIMULATIONS = 10_000
DEFAULT_CONFIDENCE = 0.95


@dataclass(frozen=True)
class ReturnStatistics:
    cumulative_return: float
    mean_return: float
    volatility: float
    sharpe: float


def daily_risk_free_rate(
    annual_rate: float = ANNUAL_RISK_FREE_RATE, trading_days: int = TRADING_DAYS
) -> float:
    """Geometric de-annualisation of the risk-free rate."""

    return (1 + annual_rate) ** (1.0 / trading_days) - 1


def weight_vector(panel: PricePanel, assets: Sequence[Asset]) -> np.ndarray:
    """Return one weight per panel column, summing duplicate tickers."""

    columns = {ticker: index for index, ticker in enumerate(panel.tickers)}
    weights = np.zeros(len(panel.tickers), dtype=float)
    for asset in assets:
        weights[columns[asset.ticker]] += asset.weight
    return weights


def compute_daily_values(panel: PricePanel, assets: Sequence[Asset]) -> np.ndarray:
    """Weighted sum of closes per trading date; missing closes count as zero."""

    return panel.closes @ weight_vector(panel, assets)


def compute_daily_returns(values: np.ndarray) -> np.ndarray:
    """Simple returns between consecutive values.

    A zero previous value yields ``inf`` or ``nan`` rather than an error.
    """

    values = np.asarray(values, dtype=float)
    with np.errstate(divide="ignore", invalid="ignore"):
        return np.diff(values) / values[:-1]


def summarize_returns(
    returns: np.ndarray,
    *,
    risk_free_rate: Optional[float] = None,
    trading_days: int = TRADING_DAYS,
) -> ReturnStatistics:
    """Cumulative return, mean, sample volatility and annualised Sharpe.

    Degenerate inputs are not rejected: fewer than two returns leaves the
    volatility undefined (``nan``) and a zero volatility makes Sharpe infinite.
    """

    returns = np.asarray(returns, dtype=float)
    rf_daily = daily_risk_free_rate(trading_days=trading_days) if risk_free_rate is None else risk_free_rate

    with np.errstate(all="ignore"):
        cumulative = float(np.prod(1.0 + returns) - 1.0)
        mean = float(np.mean(returns)) if returns.size else math.nan
        volatility = float(np.std(returns, ddof=1)) if returns.size > 1 else math.nan
        sharpe = float(np.divide(mean - rf_daily, volatility) * np.sqrt(trading_days))

    return ReturnStatistics(
        cumulative_return=cumulative,
        mean_return=mean,
        volatility=volatility,
        sharpe=sharpe,
    )


def var_index(confidence: float, simulations: int) -> int:
    """Position of the reported order statistic in the sorted losses."""

    return math.floor((1 - confidence) * simulations)


def monte_carlo_value_at_risk(
    current_value: float,
    mean_return: float,
    volatility: float,
    *,
    confidence: float = DEFAULT_CONFIDENCE,
    simulations: int = DEFAULT_SIMULATIONS,
    rng: Optional[np.random.Generator] = None,
) -> float:
    """One-day Value-at-Risk from normally distributed simulated returns.

    Losses are ``current_value - current_value * (1 + r)`` so gains are
    negative. They are sorted ascending and the value at
    ``floor((1 - confidence) * simulations)`` is reported, which sits in the
    gain tail of the distribution.
    """

    if not (math.isfinite(mean_return) and math.isfinite(volatility)):
        return math.nan

    generator = rng if rng is not None else np.random.default_rng()
    samples = generator.normal(mean_return, volatility, simulations)
    simulated_values = current_value * (1.0 + samples)
    losses = np.sort(current_value - simulated_values)
    return float(losses[var_index(confidence, simulations)])


def build_record(
    user_id: int,
    portfolio: Portfolio,
    panel: PricePanel,
    *,
    confidence: float = DEFAULT_CONFIDENCE,
    simulations: int = DEFAULT_SIMULATIONS,
    rng: Optional[np.random.Generator] = None,
) -> AnalysisRecord:
    """Run the full metric pipeline over ``panel`` for ``portfolio``."""

    if not portfolio.assets:
        raise AnalysisInputError("Portfolio has no assets")
    if not panel.dates:
        raise AnalysisInputError("No trading dates available")

    values = compute_daily_values(panel, portfolio.assets)
    returns = compute_daily_returns(values)
    stats = summarize_returns(returns)
    value_at_risk = monte_carlo_value_at_risk(
        portfolio.current_value,
        stats.mean_return,
        stats.volatility,
        confidence=confidence,
        simulations=simulations,
        rng=rng,
    )

    return AnalysisRecord(
        name=portfolio.name,
        user_id=user_id,
        trading_dates=tuple(panel.dates),
        daily_values=tuple(values.tolist()),
        daily_returns=tuple(returns.tolist()),
        cumulative_return=stats.cumulative_return,
        mean_return=stats.mean_return,
        volatility=stats.volatility,
        sharpe=stats.sharpe,
        value_at_risk=value_at_risk,
        assets=tuple(portfolio.assets),
    )


__all__ = [
    "TRADING_DAYS",
    "ANNUAL_RISK_FREE_RATE",
    "DEFAULT_SIMULATIONS",
    "DEFAULT_CONFIDENCE",
    "ReturnStatistics",
    "daily_risk_free_rate",
    "weight_vector",
    "compute_daily_values",
    "compute_daily_returns",
    "summarize_returns",
    "var_index",
    "monte_carlo_value_at_risk",
    "build_record",
]
