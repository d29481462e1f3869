"""Persisted portfolio analysis records."""

from __future__ import annotations

import datetime as dt
from typing import Any

from sqlalchemy import JSON, DateTime, Float, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base
from app.db.types import DateArray, FloatArray
from app.models.users import User


def _utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


class PortfolioAnalysis(Base):
    """One immutable analyzer output. Rows are inserted once and never updated."""

    __tablename__ = "portfolios"
    __table_args__ = (
        Index("ix_portfolios_user_id", "user_id"),
        Index("ix_portfolios_sharpe_ratio", "sharpe_ratio"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255))
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"))
    trading_dates: Mapped[list[dt.date]] = mapped_column(DateArray)
    daily_values: Mapped[list[float]] = mapped_column(FloatArray)
    daily_returns: Mapped[list[float]] = mapped_column(FloatArray)
    # Nullable because SQLite stores NaN as NULL.
    cumulative_return: Mapped[float | None] = mapped_column(Float, nullable=True)
    mean_return: Mapped[float | None] = mapped_column(Float, nullable=True)
    volatility: Mapped[float | None] = mapped_column(Float, nullable=True)
    sharpe_ratio: Mapped[float | None] = mapped_column(Float, nullable=True)
    value_at_risk: Mapped[float | None] = mapped_column(Float, nullable=True)
    assets: Mapped[list[dict[str, Any]]] = mapped_column(JSON)
    created_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)

    user: Mapped[User] = relationship("User")


__all__ = ["PortfolioAnalysis"]
