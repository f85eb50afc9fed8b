"""FastAPI route definitions for the candle-feed API."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

import candle_feed
from candle_feed.api.deps import get_service
from candle_feed.api.schemas import ErrorResponse, HealthResponse
from candle_feed.prices.models import Bar
from candle_feed.prices.service import StockDataService

router = APIRouter()

_ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Missing symbol"},
    404: {"model": ErrorResponse, "description": "Symbol not found"},
    405: {"model": ErrorResponse, "description": "Method not allowed"},
    429: {"model": ErrorResponse, "description": "Upstream rate limit"},
    500: {"model": ErrorResponse, "description": "Upstream failure"},
}


# -- Health --


@router.get("/health", response_model=HealthResponse)
async def health_check(service: StockDataService = Depends(get_service)):
    """Service liveness and cache occupancy."""
    return HealthResponse(
        status="ok",
        version=candle_feed.__version__,
        cache_entries=len(service.cache),
        cache_capacity=service.cache.capacity,
    )


# -- Stock data --


@router.get("/stock-data", response_model=list[Bar], responses=_ERROR_RESPONSES)
async def get_stock_data(
    symbol: str | None = Query(None, description="Ticker, e.g. RELIANCE"),
    range_: str | None = Query(
        None, alias="range", description="Yahoo range token (default 2y)"
    ),
    interval: str | None = Query(
        None, description="Yahoo interval token: 1d, 1wk or 1mo (default 1d)"
    ),
    service: StockDataService = Depends(get_service),
):
    """Split-adjusted OHLCV bars in ascending date order."""
    return await service.get_bars(symbol, range_, interval)
