"""Manual trigger for the daily market-data ingest job."""

from __future__ import annotations

import logging

from fastapi import APIRouter, BackgroundTasks, Depends

from app.api.dependencies.auth import require_ingest_secret
from app.api.dependencies.services import get_ingestor
from app.ingest.market_data import MarketDataIngestor
from app.schemas import MarketUpdateResponse

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/update", response_model=MarketUpdateResponse, dependencies=[Depends(require_ingest_secret)])
async def update_market_data(
    background_tasks: BackgroundTasks,
    ingestor: MarketDataIngestor = Depends(get_ingestor),
) -> MarketUpdateResponse:
    """Queue a run of the ingest job; the job itself takes minutes."""

    if ingestor.running:
        return MarketUpdateResponse(status="running", detail="Market data update already in progress")
    background_tasks.add_task(ingestor.fetch_market_data)
    logger.info("Market data update triggered manually")
    return MarketUpdateResponse(status="accepted", detail="Market data update triggered")


__all__ = ["router"]
