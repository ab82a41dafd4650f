"""
Async HTTP client for the upstream battery snapshot API.

Resolves the three reads the dashboard needs (summary, single cycle, cycle
page) plus the latest-cycle shortcut.  Every snapshot leaving this module
has passed through :func:`~analytics.src.normalizer.normalize_snapshot`
exactly once.

Upstream contract (relative to ``base_url``):

- ``GET /snapshots/summary``              -> ``{"summary": [BatterySummary]}``
- ``GET /snapshots/{imei}/latest``        -> ``{"data": CycleSnapshot}``
- ``GET /snapshots/{imei}/cycles/{n}``    -> ``{"data": CycleSnapshot}`` or 404
- ``GET /snapshots?imei=&limit=&offset=`` -> ``{"data": [CycleSnapshot]}``

A 404 on the single-cycle read is a normal outcome and returns ``None``.
Any other failure (network error, non-2xx status, undecodable body or a
payload that does not validate) raises :class:`UpstreamError`.

CHANGELOG:
- 2026-10-19: Default cycle listing limit from the configured page size (STORY-013)
- 2026-10-19: Accept the device allow-list as injected configuration (STORY-008)
- 2026-10-19: Add get_latest_cycle (STORY-006)
- 2026-10-19: Initial creation (STORY-006)

TODO:
- None
"""

from __future__ import annotations

import logging
from typing import Any

import httpx
from pydantic import ValidationError

from analytics.src.models import BatterySummary, CycleSnapshot
from analytics.src.normalizer import normalize_snapshot

logger = logging.getLogger(__name__)

_DEFAULT_TIMEOUT_S = 10.0
_DEFAULT_PAGE_SIZE = 100


class UpstreamError(RuntimeError):
    """The snapshot API failed or returned an unusable response.

    The originating ``httpx`` or pydantic exception is chained as
    ``__cause__`` when there is one.

    Attributes:
        status_code: HTTP status of the failed response, if any.
    """

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class SnapshotClient:
    """Read-only client for the snapshot API.

    The device allow-list is injected at construction so callers can
    offer the same devices the deployment is configured for.  The client
    itself passes ``imei`` through without checking it.

    Args:
        base_url: Base URL of the snapshot API, e.g.
            ``https://fleet.example.com/api``.
        allowed_imeis: Device identifiers known to the presentation layer.
        timeout_s: Timeout in seconds for each request.
        page_size: ``limit`` sent by :meth:`get_all_cycles` when the
            caller gives none.

    Usage::

        client = SnapshotClient(
            base_url="https://fleet.example.com/api",
            allowed_imeis=("865044073967657",),
        )
        snapshot = await client.get_cycle_details("865044073967657", 12)
        if snapshot is None:
            ...  # no data for this cycle
    """

    def __init__(
        self,
        base_url: str,
        allowed_imeis: tuple[str, ...] = (),
        timeout_s: float = _DEFAULT_TIMEOUT_S,
        page_size: int = _DEFAULT_PAGE_SIZE,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._allowed_imeis = tuple(allowed_imeis)
        self._timeout_s = timeout_s
        self._page_size = page_size

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def base_url(self) -> str:
        """Base URL requests are issued against."""
        return self._base_url

    @property
    def allowed_imeis(self) -> tuple[str, ...]:
        """Device identifiers configured for this deployment."""
        return self._allowed_imeis

    @property
    def page_size(self) -> int:
        """Default ``limit`` for cycle listings."""
        return self._page_size

    async def get_summary(self) -> list[BatterySummary]:
        """Fetch one summary row per device.

        Returns:
            Summary rows in upstream order; empty if the service reports
            none.
        """
        body = await self._get_json("/snapshots/summary")
        rows = body.get("summary") or []
        if not isinstance(rows, list):
            raise UpstreamError("Summary payload is not a list")
        try:
            return [BatterySummary.model_validate(row) for row in rows]
        except ValidationError as exc:
            raise UpstreamError("Summary payload failed validation") from exc

    async def get_latest_cycle(self, imei: str) -> CycleSnapshot:
        """Fetch the most recent cycle for a device."""
        body = await self._get_json(f"/snapshots/{imei}/latest")
        return self._snapshot_from(body.get("data"))

    async def get_cycle_details(
        self,
        imei: str,
        cycle_number: int,
    ) -> CycleSnapshot | None:
        """Fetch one cycle for a device.

        Args:
            imei: Device identifier.
            cycle_number: Cycle index to fetch.

        Returns:
            The normalized snapshot, or ``None`` when the service reports
            the cycle as not found.

        Raises:
            UpstreamError: On any failure other than not-found.
        """
        body = await self._get_json(
            f"/snapshots/{imei}/cycles/{cycle_number}",
            not_found_ok=True,
        )
        if body is None:
            logger.info("No data for imei=%s cycle=%d", imei, cycle_number)
            return None
        return self._snapshot_from(body.get("data"))

    async def get_all_cycles(
        self,
        imei: str,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[CycleSnapshot]:
        """Fetch one page of cycles for a device.

        The page bounds are passed straight to the service; results are
        returned in the order the service sent them.

        Args:
            imei: Device identifier.
            limit: Maximum number of cycles to return; defaults to the
                client's ``page_size``.
            offset: Number of cycles to skip.

        Returns:
            Normalized snapshots, possibly empty.
        """
        if limit is None:
            limit = self._page_size
        body = await self._get_json(
            "/snapshots",
            params={"imei": imei, "limit": limit, "offset": offset},
        )
        rows = body.get("data") or []
        if not isinstance(rows, list):
            raise UpstreamError("Cycle listing payload is not a list")
        snapshots = [self._snapshot_from(row) for row in rows]
        logger.debug(
            "Fetched %d cycles for imei=%s (limit=%d offset=%d)",
            len(snapshots),
            imei,
            limit,
            offset,
        )
        return snapshots

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    async def _get_json(
        self,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        not_found_ok: bool = False,
    ) -> dict[str, Any] | None:
        """GET *path* and return the decoded JSON object body.

        Returns ``None`` for a 404 when *not_found_ok* is set.
        """
        url = f"{self._base_url}{path}"
        try:
            async with httpx.AsyncClient(timeout=self._timeout_s) as client:
                response = await client.get(url, params=params)
        except httpx.HTTPError as exc:
            logger.warning("Snapshot API request failed (network error): %s", exc)
            raise UpstreamError(f"Request to {path} failed: {exc}") from exc

        if response.status_code == 404 and not_found_ok:
            return None

        if not 200 <= response.status_code < 300:
            logger.warning(
                "Snapshot API returned HTTP %d for %s",
                response.status_code,
                path,
            )
            raise UpstreamError(
                f"Snapshot API returned HTTP {response.status_code} for {path}",
                status_code=response.status_code,
            )

        try:
            body = response.json()
        except ValueError as exc:
            raise UpstreamError(f"Response from {path} is not valid JSON") from exc

        if not isinstance(body, dict):
            raise UpstreamError(f"Response from {path} is not a JSON object")
        return body

    @staticmethod
    def _snapshot_from(raw: Any) -> CycleSnapshot:
        """Normalize and validate one raw snapshot object."""
        if not isinstance(raw, dict):
            raise UpstreamError("Snapshot payload is not a JSON object")
        try:
            return CycleSnapshot.model_validate(normalize_snapshot(raw))
        except ValidationError as exc:
            raise UpstreamError("Snapshot payload failed validation") from exc
