"""
FastAPI application for the Elo Insight stats engine.

Exposes the aggregation orchestrator over HTTP:
- Selections and their canonical stats under /api/v1/stats
- The linked-account profile under /api/v1/profile
- The static game/platform table under /api/v1/games

Run with:
    uvicorn elo_insight.api.main:app
"""

import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.status import HTTP_500_INTERNAL_SERVER_ERROR

from .errors import APIError, api_error_handler, stats_error_handler
from .routers import stats
from ..cache import FreshnessCache
from ..core.config import get_settings
from ..core.errors import StatsError
from ..providers import BackendClient, UpstreamFetchDispatcher
from ..services import AggregationOrchestrator

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application lifecycle.

    Startup:
    - Build the backend client, dispatcher and orchestrator
    - Load profile and selections and run the first refresh

    Shutdown:
    - Cancel scheduled refreshes
    - Close HTTP clients
    """
    settings = get_settings()
    logger.info("Starting %s...", settings.app_name)

    backend = BackendClient(settings)
    dispatcher = UpstreamFetchDispatcher(settings)
    orchestrator = AggregationOrchestrator(
        backend,
        dispatcher,
        cache=FreshnessCache(window_ms=settings.freshness_window_ms),
        settings=settings,
    )
    app.state.orchestrator = orchestrator

    try:
        await orchestrator.start()
    except StatsError as e:
        # Serve anyway; the first request that needs the backend will surface the error.
        logger.error("Initial load failed: %s", e.message)

    yield

    logger.info("Shutting down %s...", settings.app_name)
    await orchestrator.close()
    await dispatcher.close()
    await backend.close()


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance
    """
    settings = get_settings()
    app = FastAPI(
        title=settings.app_name,
        description="Aggregated, normalized game stats for linked player accounts",
        version=settings.app_version,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_methods=settings.cors_allow_methods,
        allow_headers=["Accept", "Content-Type", "Authorization"],
    )

    @app.middleware("http")
    async def add_timing_header(request: Request, call_next):
        start_time = time.time()
        response = await call_next(request)
        process_time = (time.time() - start_time) * 1000
        response.headers["X-Process-Time"] = f"{process_time:.2f}ms"
        return response

    app.add_exception_handler(APIError, api_error_handler)
    app.add_exception_handler(StatsError, stats_error_handler)

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Handle unexpected exceptions with consistent format."""
        logger.error(f"Unhandled exception: {exc}", exc_info=True)
        return JSONResponse(
            status_code=HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "error": {
                    "code": "INTERNAL_ERROR",
                    "message": "An internal error occurred",
                    "detail": str(exc) if settings.debug else None,
                }
            },
        )

    @app.get("/health", tags=["health"])
    async def health_check():
        """Basic health check endpoint."""
        return {"status": "healthy", "timestamp": datetime.now(tz=timezone.utc).isoformat()}

    app.include_router(stats.router, prefix="/api/v1", tags=["stats"])

    return app


app = create_app()
