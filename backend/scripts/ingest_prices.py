"""CLI wrapper for the daily market-data job."""

from __future__ import annotations

import argparse
import asyncio
import logging

from app.config import get_settings
from app.core.logging import setup_logging
from app.db.init import init_database
from app.db.session import Database
from app.ingest.market_data import MarketDataIngestor
from app.providers.polygon import PolygonClient


async def _run(delay: float | None) -> None:
    settings = get_settings()
    if delay is not None:
        settings = settings.model_copy(update={"ingest_delay_seconds": delay})
    database = Database(settings.database_url)
    client = PolygonClient(settings.polygon_api_key)
    try:
        await init_database(database)
        report = await MarketDataIngestor(database, client, settings=settings).fetch_market_data()
        print(
            f"Processed {report.tickers} tickers: {len(report.saved)} saved, "
            f"{len(report.skipped)} skipped, {len(report.trimmed)} trimmed"
        )
    finally:
        await client.aclose()
        await database.dispose()


def main() -> None:
    parser = argparse.ArgumentParser(description="Fetch yesterday's Polygon bars for the tracked tickers")
    parser.add_argument("--delay", type=float, default=None, help="Seconds to wait between tickers")
    args = parser.parse_args()
    setup_logging(logging.INFO)
    asyncio.run(_run(args.delay))


if __name__ == "__main__":
    main()
