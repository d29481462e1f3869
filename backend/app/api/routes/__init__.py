"""Route registration helpers."""

from __future__ import annotations

from fastapi import APIRouter

from .analysis import router as analysis_router
from .market import router as market_router

api_router = APIRouter()
api_router.include_router(analysis_router, tags=["portfolio"])
api_router.include_router(market_router, prefix="/market", tags=["market"])

__all__ = ["api_router"]
