"""Daily closing prices and the tracked ticker universe."""

from __future__ import annotations

import datetime as dt

from sqlalchemy import Date, Float, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base


class HistoricalPrice(Base):
    __tablename__ = "historical_prices"
    __table_args__ = (Index("ix_historical_prices_date", "date"),)

    # The composite key doubles as the (ticker, date) uniqueness constraint.
    ticker: Mapped[str] = mapped_column(String(20), primary_key=True)
    date: Mapped[dt.date] = mapped_column(Date, primary_key=True)
    close: Mapped[float] = mapped_column(Float)


class TrackedAsset(Base):
    __tablename__ = "assets"

    ticker: Mapped[str] = mapped_column(String(20), primary_key=True)
    name: Mapped[str | None] = mapped_column(String(255), nullable=True)


__all__ = ["HistoricalPrice", "TrackedAsset"]
