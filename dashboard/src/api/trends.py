"""
GET /v1/devices/{imei}/trends endpoint for long-term degradation trends.

Fetches one page of the device's cycles from the snapshot API and returns
the reconstructed per-cycle series (cumulative SOH, voltage spread, mean
temperature/SOC/speed) with lifetime aggregates.

CHANGELOG:
- 2026-10-19: Initial creation (STORY-012)

TODO:
- None
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Query
from pydantic import BaseModel

from analytics.src.client import UpstreamError
from analytics.src.models import LifetimeStats, TrendPoint
from analytics.src.trends import build_trend_series
from dashboard.src.api.deps import Client, KnownImei, Settings, upstream_failure

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1", tags=["trends"])


class TrendResponse(BaseModel):
    """Response model for the trends endpoint.

    Attributes:
        imei: Device identifier.
        points: Per-cycle series ascending by cycle number.
        stats: Lifetime aggregates over ``points``.
    """

    imei: str
    points: list[TrendPoint]
    stats: LifetimeStats


@router.get("/devices/{imei}/trends", response_model=TrendResponse)
async def get_trends(
    imei: KnownImei,
    client: Client,
    settings: Settings,
    limit: Annotated[
        int | None,
        Query(ge=1, le=10000, description="Cycles to fetch; defaults to TREND_CYCLE_LIMIT."),
    ] = None,
) -> TrendResponse:
    """Return the reconstructed trend series for a device.

    Raises:
        HTTPException: 404 if the device is unknown.
        HTTPException: 502 if the snapshot API fails.
    """
    page_size = limit if limit is not None else settings.trend_cycle_limit
    try:
        snapshots = await client.get_all_cycles(imei, limit=page_size)
    except UpstreamError as exc:
        raise upstream_failure(exc) from exc

    series = build_trend_series(snapshots)

    logger.debug("Trend query: imei=%s cycles=%d", imei, len(series.points))

    return TrendResponse(imei=imei, points=series.points, stats=series.stats)
