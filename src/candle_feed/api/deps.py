"""Dependency injection for FastAPI routes."""

from __future__ import annotations

from dataclasses import dataclass

from fastapi import Request

from candle_feed.core.config import CandleFeedConfig
from candle_feed.prices.service import StockDataService


@dataclass
class AppState:
    """Shared application state, attached to app.state during lifespan."""

    config: CandleFeedConfig
    service: StockDataService


def get_service(request: Request) -> StockDataService:
    """Dependency: retrieve the stock-data service."""
    return request.app.state.app_state.service
