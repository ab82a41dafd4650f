"""
FastAPI dependency injection providers.

Provides the snapshot client built at startup and the device allow-list
check for use with FastAPI's Depends() mechanism.

CHANGELOG:
- 2026-10-19: Initial creation (STORY-011)
"""

from typing import Annotated

from fastapi import Depends, HTTPException, Request

from analytics.src.client import SnapshotClient, UpstreamError
from analytics.src.config import AnalyticsSettings


def get_client(request: Request) -> SnapshotClient:
    """Return the SnapshotClient stored on app.state at startup."""
    return request.app.state.client


def get_settings(request: Request) -> AnalyticsSettings:
    """Return the AnalyticsSettings stored on app.state at startup."""
    return request.app.state.settings


# Type aliases for injection via FastAPI Depends().
# Usage in route handlers:
#   async def my_route(client: Client):
#       summaries = await client.get_summary()
Client = Annotated[SnapshotClient, Depends(get_client)]
Settings = Annotated[AnalyticsSettings, Depends(get_settings)]


def known_imei(imei: str, client: Client) -> str:
    """Validate that the path ``imei`` is in the configured allow-list.

    Raises:
        HTTPException: 404 if the device is not configured.
    """
    if imei not in client.allowed_imeis:
        raise HTTPException(status_code=404, detail=f"Unknown device '{imei}'.")
    return imei


KnownImei = Annotated[str, Depends(known_imei)]


def upstream_failure(exc: UpstreamError) -> HTTPException:
    """Map an UpstreamError to the 502 returned to dashboard clients."""
    return HTTPException(status_code=502, detail=f"Snapshot API failure: {exc}")
