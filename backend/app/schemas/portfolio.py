"""Schemas for portfolio analysis requests and stored results."""

from __future__ import annotations

import math
from datetime import date
from typing import Iterable

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from portfolio_metrics import (
    AccountData,
    AnalysisRecord,
    Asset,
    LeaderboardEntry,
    Portfolio,
    PortfolioSummary,
)


def _finite(value: float) -> float | None:
    """JSON has no NaN or infinity; degenerate metrics are reported as null."""

    return value if math.isfinite(value) else None


def _finite_list(values: Iterable[float]) -> list[float | None]:
    return [_finite(value) for value in values]


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class AssetSchema(_CamelModel):
    ticker: str = Field(..., min_length=1, max_length=20)
    weight: float

    @field_validator("ticker")
    @classmethod
    def _normalise_ticker(cls, value: str) -> str:
        normalized = value.strip().upper()
        if not normalized:
            raise ValueError("Ticker must not be empty.")
        return normalized

    @classmethod
    def from_domain(cls, asset: Asset) -> "AssetSchema":
        return cls(ticker=asset.ticker, weight=asset.weight)


class PortfolioRequest(_CamelModel):
    """Body of ``POST /analyze``.

    Weights are not required to sum to one and the current value is not
    range-checked; both are passed to the analyzer as given.
    """

    name: str = Field(..., min_length=1, max_length=255)
    current_value: int
    assets: list[AssetSchema]

    def to_domain(self) -> Portfolio:
        return Portfolio(
            name=self.name,
            current_value=self.current_value,
            assets=tuple(Asset(ticker=item.ticker, weight=item.weight) for item in self.assets),
        )


class PortfolioAnalysisSchema(_CamelModel):
    id: int | None = None
    name: str
    user_id: int
    username: str | None = None
    trading_dates: list[date]
    daily_values: list[float | None]
    daily_returns: list[float | None]
    cumulative_return: float | None
    mean_return: float | None
    volatility: float | None
    sharpe: float | None
    value_at_risk: float | None
    assets: list[AssetSchema]

    @classmethod
    def from_domain(cls, record: AnalysisRecord) -> "PortfolioAnalysisSchema":
        return cls(
            id=record.id,
            name=record.name,
            user_id=record.user_id,
            username=record.username,
            trading_dates=list(record.trading_dates),
            daily_values=_finite_list(record.daily_values),
            daily_returns=_finite_list(record.daily_returns),
            cumulative_return=_finite(record.cumulative_return),
            mean_return=_finite(record.mean_return),
            volatility=_finite(record.volatility),
            sharpe=_finite(record.sharpe),
            value_at_risk=_finite(record.value_at_risk),
            assets=[AssetSchema.from_domain(asset) for asset in record.assets],
        )


class PortfolioSummarySchema(_CamelModel):
    id: int
    name: str
    assets: list[AssetSchema]
    start: date
    end: date
    sharpe: float | None
    value_at_risk: float | None

    @classmethod
    def from_domain(cls, summary: PortfolioSummary) -> "PortfolioSummarySchema":
        return cls(
            id=summary.id,
            name=summary.name,
            assets=[AssetSchema.from_domain(asset) for asset in summary.assets],
            start=summary.start,
            end=summary.end,
            sharpe=_finite(summary.sharpe),
            value_at_risk=_finite(summary.value_at_risk),
        )


class LeaderboardEntrySchema(_CamelModel):
    id: int
    username: str
    name: str
    sharpe: float | None
    start_date: date
    end_date: date

    @classmethod
    def from_domain(cls, entry: LeaderboardEntry) -> "LeaderboardEntrySchema":
        return cls(
            id=entry.id,
            username=entry.username,
            name=entry.name,
            sharpe=_finite(entry.sharpe),
            start_date=entry.start_date,
            end_date=entry.end_date,
        )


class AccountDataSchema(_CamelModel):
    portfolio_count: int
    best_sharpe: float | None

    @classmethod
    def from_domain(cls, data: AccountData) -> "AccountDataSchema":
        return cls(portfolio_count=data.portfolio_count, best_sharpe=_finite(data.best_sharpe))


class MarketUpdateResponse(BaseModel):
    status: str
    detail: str


__all__ = [
    "AccountDataSchema",
    "AssetSchema",
    "LeaderboardEntrySchema",
    "MarketUpdateResponse",
    "PortfolioAnalysisSchema",
    "PortfolioRequest",
    "PortfolioSummarySchema",
]
