"""Dense price panel used by the analytics pipeline."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Iterable, Mapping, Optional, Sequence, Tuple

import numpy as np
import pandas as pd


@dataclass(frozen=True)
class PricePanel:
    """Closing prices laid out as a ``dates x tickers`` matrix.

    ``closes`` holds 0.0 wherever the store had no row for a ``(date, ticker)``
    pair and ``present`` marks the cells that were actually observed.
    """

    dates: Tuple[date, ...]
    tickers: Tuple[str, ...]
    closes: np.ndarray
    present: np.ndarray

    @classmethod
    def from_rows(
        cls,
        dates: Sequence[date],
        tickers: Sequence[str],
        rows: Iterable[Tuple[date, str, float]],
    ) -> "PricePanel":
        """Build a panel from long-format ``(date, ticker, close)`` rows.

        Rows outside ``dates`` or ``tickers`` are ignored.
        """

        dates = tuple(dates)
        tickers = tuple(tickers)
        frame = pd.DataFrame.from_records(list(rows), columns=["date", "ticker", "close"])
        if frame.empty:
            shape = (len(dates), len(tickers))
            return cls(dates, tickers, np.zeros(shape, dtype=float), np.zeros(shape, dtype=bool))

        frame["close"] = frame["close"].astype(float)
        wide = frame.pivot_table(index="date", columns="ticker", values="close", aggfunc="last")
        wide = wide.reindex(index=list(dates), columns=list(tickers))
        present = wide.notna().to_numpy(dtype=bool)
        closes = wide.fillna(0.0).to_numpy(dtype=float)
        return cls(dates, tickers, closes, present)

    @classmethod
    def from_mapping(
        cls,
        dates: Sequence[date],
        tickers: Sequence[str],
        prices: Mapping[date, Mapping[str, float]],
    ) -> "PricePanel":
        """Build a panel from a sparse ``date -> ticker -> close`` mapping."""

        rows = [
            (day, ticker, close)
            for day, by_ticker in prices.items()
            for ticker, close in by_ticker.items()
        ]
        return cls.from_rows(dates, tickers, rows)

    def price(self, day: date, ticker: str) -> Optional[float]:
        """Return the observed close, or ``None`` when the cell is missing."""

        try:
            row = self.dates.index(day)
            column = self.tickers.index(ticker)
        except ValueError:
            return None
        if not self.present[row, column]:
            return None
        return float(self.closes[row, column])

    def missing_count(self) -> int:
        return int(self.present.size - np.count_nonzero(self.present))


__all__ = ["PricePanel"]
