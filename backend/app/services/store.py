"""SQLAlchemy implementation of the portfolio store."""

from __future__ import annotations

import math
from datetime import date
from typing import Any, Sequence

from sqlalchemy import case, func, null, or_, select
from sqlalchemy.exc import SQLAlchemyError

from app.db.session import Database
from app.models import HistoricalPrice, PortfolioAnalysis, TrackedAsset, User
from portfolio_metrics import (
    AccountData,
    AnalysisRecord,
    Asset,
    LeaderboardEntry,
    PortfolioSummary,
    PricePanel,
    RecordNotFoundError,
    StoreReadError,
    StoreWriteError,
)


def _nan_if_null(value: float | None) -> float:
    return math.nan if value is None else float(value)


def _non_finite(column: Any) -> Any:
    """True where a float column holds NULL, NaN or an infinity."""

    return or_(column.is_(None), column.in_([math.inf, -math.inf, math.nan]))


def _assets_to_json(assets: Sequence[Asset]) -> list[dict[str, Any]]:
    return [{"ticker": asset.ticker, "weight": asset.weight} for asset in assets]


def _assets_from_json(payload: list[dict[str, Any]] | None) -> tuple[Asset, ...]:
    return tuple(Asset(ticker=str(item["ticker"]), weight=float(item["weight"])) for item in payload or [])


class SqlAlchemyPortfolioStore:
    """Read the price panel and read/write analysis records.

    Every call opens its own session so one store can be shared across
    concurrent requests.
    """

    def __init__(self, database: Database) -> None:
        self._database = database

    async def fetch_trading_dates(self) -> list[date]:
        stmt = select(HistoricalPrice.date).distinct().order_by(HistoricalPrice.date.asc())
        try:
            async with self._database.session() as session:
                return list((await session.execute(stmt)).scalars().all())
        except SQLAlchemyError as exc:
            raise StoreReadError("Database error in fetch_trading_dates") from exc

    async def fetch_closing_prices(self, tickers: Sequence[str], dates: Sequence[date]) -> PricePanel:
        if not tickers or not dates:
            return PricePanel.from_rows(dates, tickers, [])
        stmt = select(HistoricalPrice.date, HistoricalPrice.ticker, HistoricalPrice.close).where(
            HistoricalPrice.ticker.in_(list(tickers)),
            HistoricalPrice.date.between(min(dates), max(dates)),
        )
        try:
            async with self._database.session() as session:
                rows = (await session.execute(stmt)).all()
        except SQLAlchemyError as exc:
            raise StoreReadError("Database error in fetch_closing_prices") from exc
        return PricePanel.from_rows(dates, tickers, [tuple(row) for row in rows])

    async def save_portfolio(self, record: AnalysisRecord) -> int:
        row = PortfolioAnalysis(
            name=record.name,
            user_id=record.user_id,
            trading_dates=list(record.trading_dates),
            daily_values=list(record.daily_values),
            daily_returns=list(record.daily_returns),
            cumulative_return=record.cumulative_return,
            mean_return=record.mean_return,
            volatility=record.volatility,
            sharpe_ratio=record.sharpe,
            value_at_risk=record.value_at_risk,
            assets=_assets_to_json(record.assets),
        )
        try:
            async with self._database.session() as session:
                async with session.begin():
                    session.add(row)
                    await session.flush()
                    if row.id is None:
                        raise StoreWriteError("Creating portfolio failed, no ID obtained.")
                    portfolio_id = row.id
        except SQLAlchemyError as exc:
            raise StoreWriteError("Database error in save_portfolio") from exc
        return portfolio_id

    async def fetch_portfolio(self, portfolio_id: int) -> AnalysisRecord:
        stmt = (
            select(PortfolioAnalysis, User.username)
            .join(User, PortfolioAnalysis.user_id == User.id)
            .where(PortfolioAnalysis.id == portfolio_id)
        )
        try:
            async with self._database.session() as session:
                result = (await session.execute(stmt)).one_or_none()
        except SQLAlchemyError as exc:
            raise StoreReadError("Database error in fetch_portfolio") from exc
        if result is None:
            raise RecordNotFoundError(f"Portfolio with ID {portfolio_id} not found")

        row, username = result
        return AnalysisRecord(
            id=row.id,
            name=row.name,
            user_id=row.user_id,
            username=username,
            trading_dates=tuple(row.trading_dates or ()),
            daily_values=tuple(row.daily_values or ()),
            daily_returns=tuple(row.daily_returns or ()),
            cumulative_return=_nan_if_null(row.cumulative_return),
            mean_return=_nan_if_null(row.mean_return),
            volatility=_nan_if_null(row.volatility),
            sharpe=_nan_if_null(row.sharpe_ratio),
            value_at_risk=_nan_if_null(row.value_at_risk),
            assets=_assets_from_json(row.assets),
        )

    async def fetch_user_portfolios(self, user_id: int) -> list[PortfolioSummary]:
        stmt = (
            select(
                PortfolioAnalysis.id,
                PortfolioAnalysis.name,
                PortfolioAnalysis.assets,
                PortfolioAnalysis.trading_dates,
                PortfolioAnalysis.sharpe_ratio,
                PortfolioAnalysis.value_at_risk,
            )
            .where(PortfolioAnalysis.user_id == user_id)
            .order_by(PortfolioAnalysis.created_at.desc(), PortfolioAnalysis.id.desc())
        )
        try:
            async with self._database.session() as session:
                rows = (await session.execute(stmt)).all()
        except SQLAlchemyError as exc:
            raise StoreReadError("Database error in fetch_user_portfolios") from exc

        summaries: list[PortfolioSummary] = []
        for row in rows:
            if not row.trading_dates:
                continue
            summaries.append(
                PortfolioSummary(
                    id=row.id,
                    name=row.name,
                    assets=_assets_from_json(row.assets),
                    start=row.trading_dates[0],
                    end=row.trading_dates[-1],
                    sharpe=_nan_if_null(row.sharpe_ratio),
                    value_at_risk=_nan_if_null(row.value_at_risk),
                )
            )
        return summaries

    async def fetch_leaderboard(self, limit: int = 50) -> list[LeaderboardEntry]:
        """Best Sharpe first; undefined or infinite Sharpe ratios rank after every finite one."""

        stmt = (
            select(
                PortfolioAnalysis.id,
                PortfolioAnalysis.name,
                PortfolioAnalysis.sharpe_ratio,
                PortfolioAnalysis.trading_dates,
                User.username,
            )
            .join(User, PortfolioAnalysis.user_id == User.id)
            .order_by(
                case((_non_finite(PortfolioAnalysis.sharpe_ratio), 1), else_=0),
                PortfolioAnalysis.sharpe_ratio.desc(),
            )
            .limit(limit)
        )
        try:
            async with self._database.session() as session:
                rows = (await session.execute(stmt)).all()
        except SQLAlchemyError as exc:
            raise StoreReadError("Database error in fetch_leaderboard") from exc

        return [
            LeaderboardEntry(
                id=row.id,
                username=row.username,
                name=row.name,
                sharpe=_nan_if_null(row.sharpe_ratio),
                start_date=row.trading_dates[0],
                end_date=row.trading_dates[-1],
            )
            for row in rows
            if row.trading_dates
        ]

    async def fetch_account_data(self, user_id: int) -> AccountData:
        """Count the user's analyses; the best Sharpe ignores non-finite values and is 0.0 when none remain."""

        stmt = select(
            func.count(PortfolioAnalysis.id),
            func.coalesce(
                func.max(
                    case(
                        (_non_finite(PortfolioAnalysis.sharpe_ratio), null()),
                        else_=PortfolioAnalysis.sharpe_ratio,
                    )
                ),
                0.0,
            ),
        ).where(PortfolioAnalysis.user_id == user_id)
        try:
            async with self._database.session() as session:
                count, best_sharpe = (await session.execute(stmt)).one()
        except SQLAlchemyError as exc:
            raise StoreReadError("Database error in fetch_account_data") from exc
        return AccountData(portfolio_count=int(count), best_sharpe=float(best_sharpe))

    async def fetch_tickers(self, limit: int = 50) -> list[str]:
        """The first ``limit`` tracked tickers in alphabetical order, not table insertion order."""

        stmt = select(TrackedAsset.ticker).order_by(TrackedAsset.ticker.asc()).limit(limit)
        try:
            async with self._database.session() as session:
                return list((await session.execute(stmt)).scalars().all())
        except SQLAlchemyError as exc:
            raise StoreReadError("Database error in fetch_tickers") from exc


__all__ = ["SqlAlchemyPortfolioStore"]
