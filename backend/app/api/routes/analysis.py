"""Portfolio analysis and browsing endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from app.api.dependencies.auth import get_current_user
from app.api.dependencies.services import get_analyzer, get_store
from app.models import User
from app.schemas import (
    AccountDataSchema,
    LeaderboardEntrySchema,
    PortfolioAnalysisSchema,
    PortfolioRequest,
    PortfolioSummarySchema,
)
from portfolio_metrics import (
    AnalysisInputError,
    PortfolioAnalyzer,
    PortfolioStore,
    RecordNotFoundError,
    StoreError,
)

router = APIRouter()
logger = logging.getLogger(__name__)

LEADERBOARD_SIZE = 50
TICKER_LIST_SIZE = 50


def _store_failure(exc: StoreError) -> HTTPException:
    logger.error("Store failure: %s", exc, exc_info=exc)
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Database error")


@router.post("/analyze", response_model=int)
async def analyze_portfolio(
    payload: PortfolioRequest,
    current_user: User = Depends(get_current_user),
    analyzer: PortfolioAnalyzer = Depends(get_analyzer),
) -> int:
    """Analyse the submitted portfolio and return the id of the stored result."""

    try:
        return await analyzer.analyze(current_user.id, payload.to_domain())
    except AnalysisInputError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except StoreError as exc:
        raise _store_failure(exc) from exc


@router.get("/portfolios", response_model=list[PortfolioSummarySchema])
async def list_user_portfolios(
    current_user: User = Depends(get_current_user),
    store: PortfolioStore = Depends(get_store),
) -> list[PortfolioSummarySchema]:
    try:
        summaries = await store.fetch_user_portfolios(current_user.id)
    except StoreError as exc:
        raise _store_failure(exc) from exc
    return [PortfolioSummarySchema.from_domain(summary) for summary in summaries]


@router.get("/portfolios/{portfolio_id}", response_model=PortfolioAnalysisSchema)
async def get_portfolio(
    portfolio_id: int,
    current_user: User = Depends(get_current_user),
    store: PortfolioStore = Depends(get_store),
) -> PortfolioAnalysisSchema:
    try:
        record = await store.fetch_portfolio(portfolio_id)
    except RecordNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except StoreError as exc:
        raise _store_failure(exc) from exc
    return PortfolioAnalysisSchema.from_domain(record)


@router.get("/leaderboard", response_model=list[LeaderboardEntrySchema])
async def get_leaderboard(
    current_user: User = Depends(get_current_user),
    store: PortfolioStore = Depends(get_store),
) -> list[LeaderboardEntrySchema]:
    try:
        entries = await store.fetch_leaderboard(LEADERBOARD_SIZE)
    except StoreError as exc:
        raise _store_failure(exc) from exc
    return [LeaderboardEntrySchema.from_domain(entry) for entry in entries]


@router.get("/account", response_model=AccountDataSchema)
async def get_account_data(
    current_user: User = Depends(get_current_user),
    store: PortfolioStore = Depends(get_store),
) -> AccountDataSchema:
    try:
        data = await store.fetch_account_data(current_user.id)
    except StoreError as exc:
        raise _store_failure(exc) from exc
    return AccountDataSchema.from_domain(data)


@router.get("/tickers", response_model=list[str])
async def list_tickers(store: PortfolioStore = Depends(get_store)) -> list[str]:
    try:
        return await store.fetch_tickers(TICKER_LIST_SIZE)
    except StoreError as exc:
        raise _store_failure(exc) from exc


__all__ = ["router"]
