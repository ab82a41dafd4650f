"""
GET /v1/devices endpoint listing the configured devices.

Joins the configured allow-list with the upstream summary rows so the
dashboard can offer each device together with its last known cycle.
Devices without a summary row are listed with ``summary: null``.

CHANGELOG:
- 2026-10-19: Initial creation (STORY-011)

TODO:
- None
"""

import logging

from fastapi import APIRouter
from pydantic import BaseModel

from analytics.src.client import UpstreamError
from analytics.src.models import BatterySummary
from dashboard.src.api.deps import Client, upstream_failure

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1", tags=["devices"])


class DeviceOut(BaseModel):
    """One configured device and its summary row, if any."""

    imei: str
    summary: BatterySummary | None


class DevicesResponse(BaseModel):
    """Response model for the devices endpoint."""

    devices: list[DeviceOut]


@router.get("/devices", response_model=DevicesResponse)
async def list_devices(client: Client) -> DevicesResponse:
    """Return the allow-listed devices in configured order.

    Raises:
        HTTPException: 502 if the summary fetch fails.
    """
    try:
        summaries = await client.get_summary()
    except UpstreamError as exc:
        raise upstream_failure(exc) from exc

    by_imei = {summary.imei: summary for summary in summaries}
    return DevicesResponse(
        devices=[
            DeviceOut(imei=imei, summary=by_imei.get(imei))
            for imei in client.allowed_imeis
        ]
    )
