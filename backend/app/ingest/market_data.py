"""Daily market-data ingest job.

For each tracked ticker the job fetches yesterday's Polygon bar, inserts it
with conflict-ignore semantics and trims the ticker back to the retention
cap. Each ticker is its own transaction and a failing ticker never stops the
job. Tickers are spaced by a fixed delay to stay inside the API rate limit.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone

from opentelemetry import trace
from sqlalchemy import delete, func, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import AppSettings, get_settings
from app.db.session import Database
from app.models import HistoricalPrice, TrackedAsset
from app.providers.polygon import DailyAggregate, NoTradingDataError, PolygonClient, PolygonError

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

_INSERTS = {"postgresql": pg_insert, "sqlite": sqlite_insert}


def _utc_today() -> date:
    return datetime.now(timezone.utc).date()


@dataclass
class IngestReport:
    """Outcome of one ``fetch_market_data`` run."""

    tickers: int = 0
    saved: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    trimmed: list[str] = field(default_factory=list)
    already_running: bool = False


class MarketDataIngestor:
    """Keep ``historical_prices`` fresh from the Polygon aggregates API."""

    def __init__(
        self,
        database: Database,
        client: PolygonClient,
        *,
        settings: AppSettings | None = None,
        sleep: Callable[[float], Awaitable[object]] = asyncio.sleep,
        today: Callable[[], date] = _utc_today,
    ) -> None:
        settings = settings or get_settings()
        self._database = database
        self._client = client
        self._ticker_limit = settings.ingest_ticker_limit
        self._delay_seconds = settings.ingest_delay_seconds
        self._retention = settings.price_retention_days
        self._sleep = sleep
        self._today = today
        self._lock = asyncio.Lock()

    @property
    def running(self) -> bool:
        return self._lock.locked()

    async def fetch_market_data(self) -> IngestReport:
        """Run the job once; an overlapping call returns immediately.

        Cancelling the job while it waits between tickers stops it after the
        tickers already committed.
        """

        if self._lock.locked():
            logger.warning("Market data update already running; skipping this trigger")
            return IngestReport(already_running=True)

        async with self._lock:
            return await self._run()

    async def _run(self) -> IngestReport:
        report = IngestReport()
        try:
            tickers = await self._fetch_tickers()
        except SQLAlchemyError:
            logger.exception("Database error while loading tracked tickers")
            return report

        day = self._today() - timedelta(days=1)
        report.tickers = len(tickers)
        logger.info("Starting market data update for %d tickers (%s)", len(tickers), day)

        for index, ticker in enumerate(tickers):
            if index:
                try:
                    await self._sleep(self._delay_seconds)
                except asyncio.CancelledError:
                    logger.warning(
                        "Market data update cancelled after %d of %d tickers", index, len(tickers)
                    )
                    raise
            await self._ingest_ticker(ticker, day, report)

        logger.info(
            "Market data update finished: %d saved, %d skipped, %d trimmed",
            len(report.saved),
            len(report.skipped),
            len(report.trimmed),
        )
        return report

    async def _fetch_tickers(self) -> list[str]:
        # Alphabetical, matching GET /tickers; insertion order is not used.
        stmt = select(TrackedAsset.ticker).order_by(TrackedAsset.ticker.asc()).limit(self._ticker_limit)
        async with self._database.session() as session:
            return list((await session.execute(stmt)).scalars().all())

    async def _ingest_ticker(self, ticker: str, day: date, report: IngestReport) -> None:
        with tracer.start_as_current_span("market_data.ingest_ticker") as span:
            span.set_attribute("ticker", ticker)
            try:
                aggregate = await self._client.daily_aggregate(ticker, day)
            except NoTradingDataError:
                logger.info("No trading data for %s on %s; skipping", ticker, day)
                report.skipped.append(ticker)
                return
            except PolygonError as exc:
                logger.warning("Failed to fetch market data for %s: %s", ticker, exc)
                report.skipped.append(ticker)
                return

            try:
                async with self._database.session() as session:
                    async with session.begin():
                        await self._insert_price(session, aggregate)
                        trimmed = await self._trim_history(session, ticker)
            except SQLAlchemyError:
                logger.exception("Database error while storing market data for %s", ticker)
                report.skipped.append(ticker)
                return

            report.saved.append(ticker)
            if trimmed:
                report.trimmed.append(ticker)
            logger.info("Saved recent market data for %s on %s", ticker, aggregate.date)

    async def _insert_price(self, session: AsyncSession, aggregate: DailyAggregate) -> None:
        insert = _INSERTS.get(self._database.dialect_name, pg_insert)
        stmt = (
            insert(HistoricalPrice)
            .values(ticker=aggregate.ticker, date=aggregate.date, close=aggregate.close)
            .on_conflict_do_nothing(index_elements=[HistoricalPrice.ticker, HistoricalPrice.date])
        )
        await session.execute(stmt)

    async def _trim_history(self, session: AsyncSession, ticker: str) -> bool:
        """Delete the single oldest row once ``ticker`` exceeds the retention cap."""

        count_stmt = select(func.count()).select_from(HistoricalPrice).where(HistoricalPrice.ticker == ticker)
        count = (await session.execute(count_stmt)).scalar_one()
        if count <= self._retention:
            return False

        oldest_stmt = select(func.min(HistoricalPrice.date)).where(HistoricalPrice.ticker == ticker)
        oldest = (await session.execute(oldest_stmt)).scalar_one()
        await session.execute(
            delete(HistoricalPrice).where(HistoricalPrice.ticker == ticker, HistoricalPrice.date == oldest)
        )
        logger.info("Deleted oldest record for %s (%s)", ticker, oldest)
        return True


__all__ = ["IngestReport", "MarketDataIngestor"]
