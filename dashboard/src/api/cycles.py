"""
Single-cycle dashboard and JSON report endpoints.

- ``GET /v1/devices/{imei}/dashboard``: the normalized snapshot of one
  cycle with its derived metrics.  Without ``cycle`` the device's summary
  is fetched first and its ``last_cycle`` is shown.
- ``GET /v1/devices/{imei}/cycles/{cycle_number}/export``: the cycle's
  JSON report as a file download.

A cycle the snapshot API reports absent yields 404 "No data for cycle N";
any other upstream failure yields 502.

CHANGELOG:
- 2026-10-19: Share cycle resolution with the CLI; reject negative export cycles (STORY-013)
- 2026-10-19: Add JSON report export (STORY-009)
- 2026-10-19: Initial creation (STORY-011)

TODO:
- None
"""

import logging
from typing import Annotated

from fastapi import APIRouter, HTTPException, Path, Query, Response
from pydantic import BaseModel

from analytics.src.client import UpstreamError
from analytics.src.metrics import (
    DEFAULT_RESOLUTION,
    TEMPERATURE_RESOLUTIONS,
    derive_cycle_metrics,
)
from analytics.src.models import CycleMetrics, CycleSnapshot
from analytics.src.report import render_cycle_report, report_filename
from analytics.src.session import ViewStatus, load_dashboard_view
from dashboard.src.api.deps import Client, KnownImei, upstream_failure

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1", tags=["cycles"])

# ---------------------------------------------------------------------------
# Pydantic response models
# ---------------------------------------------------------------------------


class DashboardResponse(BaseModel):
    """Response model for the single-cycle dashboard.

    Attributes:
        imei: Device identifier.
        cycle_number: Cycle shown.
        max_cycle: Highest navigable cycle for the device.
        cycle_options: Selectable cycles, newest first.
        snapshot: Normalized cycle snapshot.
        metrics: Metrics derived from the snapshot.
    """

    imei: str
    cycle_number: int
    max_cycle: int
    cycle_options: list[int]
    snapshot: CycleSnapshot
    metrics: CycleMetrics


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _check_resolution(resolution: str) -> None:
    """Reject unknown temperature bin widths with 422."""
    if resolution not in TEMPERATURE_RESOLUTIONS:
        raise HTTPException(
            status_code=422,
            detail=(
                f"Invalid resolution '{resolution}'. "
                f"Must be one of: {sorted(TEMPERATURE_RESOLUTIONS)}."
            ),
        )


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------


@router.get("/devices/{imei}/dashboard", response_model=DashboardResponse)
async def get_dashboard(
    imei: KnownImei,
    client: Client,
    cycle: Annotated[
        int | None,
        Query(ge=0, description="Cycle to show; defaults to the latest."),
    ] = None,
    resolution: Annotated[
        str,
        Query(description="Temperature bin width, e.g. temperature_dist_10deg."),
    ] = DEFAULT_RESOLUTION,
) -> DashboardResponse:
    """Return one cycle of a device with its derived metrics.

    Raises:
        HTTPException: 404 if the device is unknown or the cycle has no data.
        HTTPException: 422 if the resolution is not a known bin width.
        HTTPException: 502 if the snapshot API fails.
    """
    _check_resolution(resolution)

    try:
        view = await load_dashboard_view(client, imei, cycle, resolution=resolution)
    except UpstreamError as exc:
        raise upstream_failure(exc) from exc

    if view.status is ViewStatus.NO_DATA:
        raise HTTPException(
            status_code=404,
            detail=f"No data for cycle {view.cycle_number}.",
        )

    logger.debug(
        "Dashboard view: imei=%s cycle=%d max_cycle=%d",
        imei,
        view.cycle_number,
        view.max_cycle,
    )

    return DashboardResponse(
        imei=imei,
        cycle_number=view.cycle_number,
        max_cycle=view.max_cycle,
        cycle_options=view.cycle_options,
        snapshot=view.snapshot,
        metrics=view.metrics,
    )


@router.get("/devices/{imei}/cycles/{cycle_number}/export")
async def export_cycle(
    imei: KnownImei,
    cycle_number: Annotated[int, Path(ge=0)],
    client: Client,
    resolution: Annotated[str, Query()] = DEFAULT_RESOLUTION,
) -> Response:
    """Return the cycle's JSON report as an attachment.

    Raises:
        HTTPException: 404 if the device is unknown or the cycle has no data.
        HTTPException: 422 if the resolution is not a known bin width.
        HTTPException: 502 if the snapshot API fails.
    """
    _check_resolution(resolution)

    try:
        snapshot = await client.get_cycle_details(imei, cycle_number)
    except UpstreamError as exc:
        raise upstream_failure(exc) from exc

    if snapshot is None:
        raise HTTPException(status_code=404, detail=f"No data for cycle {cycle_number}.")

    body = render_cycle_report(snapshot, derive_cycle_metrics(snapshot, resolution))
    filename = report_filename(imei, cycle_number)
    return Response(
        content=body,
        media_type="application/json",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
