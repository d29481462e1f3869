"""Cron registration for the daily market-data job."""

from __future__ import annotations

import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from app.config import AppSettings
from app.ingest.market_data import MarketDataIngestor

logger = logging.getLogger(__name__)

MARKET_DATA_JOB_ID = "daily_market_data"


def build_scheduler(ingestor: MarketDataIngestor, settings: AppSettings) -> AsyncIOScheduler:
    """Return an unstarted scheduler running the ingest job once a day in UTC."""

    scheduler = AsyncIOScheduler(timezone="UTC")
    scheduler.add_job(
        ingestor.fetch_market_data,
        CronTrigger(
            hour=settings.ingest_cron_hour,
            minute=settings.ingest_cron_minute,
            second=0,
            timezone="UTC",
        ),
        id=MARKET_DATA_JOB_ID,
        replace_existing=True,
        max_instances=1,
        coalesce=True,
        misfire_grace_time=3600,
    )
    logger.info(
        "Market data job scheduled daily at %02d:%02d UTC",
        settings.ingest_cron_hour,
        settings.ingest_cron_minute,
    )
    return scheduler


__all__ = ["MARKET_DATA_JOB_ID", "build_scheduler"]
