"""
FastAPI application entry point for the battery dashboard service.

Serves the single-cycle dashboard, trend and export views derived by the
cycle analytics pipeline.  AnalyticsSettings are loaded at startup; the
SnapshotClient built from them (with the device allow-list injected) is
stored on app.state for route handlers.

CHANGELOG:
- 2026-10-19: Serve /health alongside the root status (STORY-013)
- 2026-10-19: Register trends router (STORY-012)
- 2026-10-19: Register devices and cycles routers (STORY-011)
- 2026-10-19: Initial creation (STORY-011)
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from analytics.src.config import AnalyticsSettings
from analytics.src.main import build_client, configure_logging, log_config_summary
from dashboard.src.api.cycles import router as cycles_router
from dashboard.src.api.devices import router as devices_router
from dashboard.src.api.trends import router as trends_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan: load settings and build the snapshot client.

    Startup:
        - Loads and validates AnalyticsSettings from the environment.
        - Installs structured JSON logging at LOG_LEVEL.
        - Builds the SnapshotClient with the configured allow-list.

    Shutdown:
        - Logs that the service is shutting down.
    """
    settings = AnalyticsSettings()
    configure_logging(settings.log_level)
    log_config_summary(settings)

    app.state.settings = settings
    app.state.client = build_client(settings)

    logger.info(
        "Dashboard service ready for %d device(s)",
        len(settings.imei_allow_list),
    )
    yield
    logger.info("Dashboard service shutting down")


app = FastAPI(
    title="Battery Cycle Dashboard API",
    description="Per-cycle dashboards and degradation trends for tracked batteries.",
    version="0.1.0",
    lifespan=lifespan,
)


app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET"],
)

app.include_router(devices_router)
app.include_router(cycles_router)
app.include_router(trends_router)


@app.get("/")
@app.get("/health", tags=["health"])
async def root() -> dict[str, str]:
    """Liveness status for the root path and container HEALTHCHECK.

    Does not touch the snapshot API.

    Returns:
        dict: ``{"status": "ok"}``.
    """
    return {"status": "ok"}
