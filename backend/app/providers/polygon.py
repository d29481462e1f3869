"""Polygon.io aggregates client used by the market-data ingest job."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Any

import httpx

from app.config import get_settings
from portfolio_metrics import UpstreamError


class PolygonError(UpstreamError):
    """Raised when Polygon returns an error status or an unusable payload."""


class NoTradingDataError(PolygonError):
    """Polygon answered successfully but had no bar for the requested day."""


@dataclass(frozen=True)
class DailyAggregate:
    ticker: str
    date: date
    close: float


class PolygonClient:
    """Thin async wrapper over the ``/v2/aggs`` endpoint."""

    def __init__(
        self,
        api_key: str | None = None,
        *,
        base_url: str | None = None,
        timeout: float | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        settings = get_settings()
        self._api_key = api_key if api_key is not None else settings.polygon_api_key
        self._base_url = (base_url or settings.polygon_base_url).rstrip("/")
        self._timeout = timeout if timeout is not None else settings.polygon_timeout_seconds
        self._client = client or httpx.AsyncClient(timeout=self._timeout)

    async def daily_aggregate(self, ticker: str, day: date) -> DailyAggregate:
        """Return the adjusted daily bar of ``ticker`` for ``day``.

        The stored date comes from the bar's epoch-millisecond timestamp in
        UTC, not from the requested day.
        """

        day_str = day.strftime("%Y-%m-%d")
        url = f"{self._base_url}/v2/aggs/ticker/{ticker}/range/1/day/{day_str}/{day_str}"
        params: dict[str, Any] = {
            "adjusted": "true",
            "sort": "asc",
            "limit": 1,
            "apiKey": self._api_key,
        }
        try:
            response = await self._client.get(url, params=params, timeout=self._timeout)
        except httpx.HTTPError as exc:
            raise PolygonError(f"Request for {ticker} failed: {exc}") from exc

        if not response.is_success:
            raise PolygonError(f"HTTP error for {ticker}: {response.status_code} - {response.reason_phrase}")

        try:
            payload = response.json()
        except ValueError as exc:
            raise PolygonError(f"Malformed JSON for {ticker}") from exc

        results = payload.get("results") if isinstance(payload, dict) else None
        if not isinstance(results, list) or not results:
            raise NoTradingDataError(f"No trading data for {ticker} on {day_str}")

        first = results[0]
        try:
            timestamp_ms = int(first["t"])
            close = float(first["c"])
            bar_date = datetime.fromtimestamp(timestamp_ms / 1000, tz=timezone.utc).date()
        except (KeyError, TypeError, ValueError, OverflowError, OSError) as exc:
            raise PolygonError(f"Unexpected aggregate payload for {ticker}: {first!r}") from exc

        return DailyAggregate(ticker=ticker, date=bar_date, close=close)

    async def aclose(self) -> None:
        await self._client.aclose()


__all__ = [
    "DailyAggregate",
    "NoTradingDataError",
    "PolygonClient",
    "PolygonError",
]
