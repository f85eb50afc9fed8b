"""FastAPI application factory."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from candle_feed.api.deps import AppState
from candle_feed.api.routes import router
from candle_feed.core.config import CandleFeedConfig, load_config
from candle_feed.core.exceptions import CandleFeedError
from candle_feed.prices.service import StockDataService, create_service

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup/shutdown lifecycle."""
    config = app.state._pending_config or load_config()
    service = app.state._pending_service or create_service(config)

    app.state.app_state = AppState(config=config, service=service)

    yield


def create_app(
    config: CandleFeedConfig | None = None,
    service: StockDataService | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    ``service`` overrides the one built from config; tests use it to inject
    a fake fetcher or a pre-filled cache.
    """
    import candle_feed

    app = FastAPI(
        title="candle-feed API",
        description="Split-adjusted OHLCV bars for charting front-ends",
        version=candle_feed.__version__,
        lifespan=lifespan,
    )

    # Stash overrides so lifespan can retrieve them
    app.state._pending_config = config
    app.state._pending_service = service

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(router, prefix="/api")

    # Exception handlers
    @app.exception_handler(CandleFeedError)
    async def candle_feed_exception_handler(request: Request, exc: CandleFeedError):
        if exc.status_code >= 500:
            logger.error("%s: %s %s", type(exc).__name__, exc, exc.context)
        else:
            logger.info("%s: %s", type(exc).__name__, exc)
        return JSONResponse(
            status_code=exc.status_code,
            content={"details": exc.details, "error": type(exc).__name__},
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        details = "Method not allowed" if exc.status_code == 405 else str(exc.detail)
        return JSONResponse(
            status_code=exc.status_code,
            content={"details": details, "error": "HTTPException"},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ):
        return JSONResponse(
            status_code=400,
            content={"details": "Invalid request parameters", "error": "InvalidRequestError"},
        )

    return app
