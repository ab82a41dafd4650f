"""
Dashboard view loading and selection coordination.

Two layers:

1. **View loaders** (:func:`load_latest_view`, :func:`load_cycle_view`,
   :func:`load_dashboard_view`)
   fetch and derive one dashboard view.  Opening a device is strictly
   sequential: the summary fetch must finish before the cycle fetch is
   issued, because the cycle to show is the summary's ``last_cycle``.
   Loaders propagate :class:`~analytics.src.client.UpstreamError`.

2. **DashboardSession** tracks what the user has selected.  Every fetch
   runs as an ``asyncio.Task`` tagged with a :class:`SelectionKey`
   ``(imei, cycle_number)``.  A new selection cancels the in-flight task,
   and any result whose key no longer matches the current selection is
   discarded, so a slow response for an old cycle never overwrites a
   newer one.  Upstream failures put the view in the ERROR state; the
   user retries by navigating again.

CHANGELOG:
- 2026-10-19: Add load_dashboard_view shared by the CLI and service; reject unknown resolutions up front (STORY-013)
- 2026-10-19: Discard stale results by selection key (STORY-007)
- 2026-10-19: Initial creation (STORY-007)

TODO:
- None
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Coroutine
from dataclasses import dataclass, replace
from enum import StrEnum
from typing import TYPE_CHECKING, Any

from analytics.src.client import UpstreamError
from analytics.src.metrics import (
    DEFAULT_RESOLUTION,
    TEMPERATURE_RESOLUTIONS,
    derive_cycle_metrics,
)

if TYPE_CHECKING:
    from analytics.src.client import SnapshotClient
    from analytics.src.models import CycleMetrics, CycleSnapshot

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# View model
# ---------------------------------------------------------------------------


class ViewStatus(StrEnum):
    """Lifecycle of the dashboard view."""

    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"
    NO_DATA = "no_data"
    ERROR = "error"


@dataclass(frozen=True)
class SelectionKey:
    """Identity of one fetch: the device and the cycle it targets.

    ``cycle_number`` is ``None`` while the latest cycle is still being
    resolved from the summary.
    """

    imei: str
    cycle_number: int | None


@dataclass(frozen=True)
class DashboardView:
    """Everything the single-cycle dashboard renders.

    Attributes:
        imei: Selected device.
        cycle_number: Selected cycle.
        max_cycle: Highest navigable cycle (the summary's ``last_cycle``).
        status: Loading state of the view.
        snapshot: Normalized snapshot when READY.
        metrics: Derived metrics when READY.
        error: Failure description when ERROR.
    """

    imei: str
    cycle_number: int
    max_cycle: int
    status: ViewStatus
    snapshot: CycleSnapshot | None = None
    metrics: CycleMetrics | None = None
    error: str | None = None

    @property
    def cycle_options(self) -> list[int]:
        """Selectable cycle numbers, newest first."""
        return list(range(self.max_cycle, -1, -1))


# ---------------------------------------------------------------------------
# View loaders
# ---------------------------------------------------------------------------


def _view_for(
    imei: str,
    cycle_number: int,
    max_cycle: int,
    snapshot: CycleSnapshot | None,
    resolution: str,
) -> DashboardView:
    """Wrap a fetched snapshot (or its absence) into a view."""
    if snapshot is None:
        return DashboardView(
            imei=imei,
            cycle_number=cycle_number,
            max_cycle=max_cycle,
            status=ViewStatus.NO_DATA,
        )
    return DashboardView(
        imei=imei,
        cycle_number=cycle_number,
        max_cycle=max_cycle,
        status=ViewStatus.READY,
        snapshot=snapshot,
        metrics=derive_cycle_metrics(snapshot, resolution),
    )


async def load_latest_view(
    client: SnapshotClient,
    imei: str,
    *,
    resolution: str = DEFAULT_RESOLUTION,
) -> DashboardView:
    """Open a device on its most recent cycle.

    Fetches the summary first, then the cycle named by the device's
    ``last_cycle``.  A device missing from the summary yields a NO_DATA
    view on cycle 0.

    Args:
        client: Snapshot API client.
        imei: Device to open.
        resolution: Temperature bin width for the derived metrics.

    Returns:
        The loaded view.

    Raises:
        UpstreamError: If either fetch fails.
    """
    summaries = await client.get_summary()
    summary = next((s for s in summaries if s.imei == imei), None)
    if summary is None:
        logger.info("No summary row for imei=%s", imei)
        return _view_for(imei, 0, 0, None, resolution)

    last_cycle = summary.last_cycle
    snapshot = await client.get_cycle_details(imei, last_cycle)
    return _view_for(imei, last_cycle, last_cycle, snapshot, resolution)


async def load_cycle_view(
    client: SnapshotClient,
    imei: str,
    cycle_number: int,
    *,
    max_cycle: int,
    resolution: str = DEFAULT_RESOLUTION,
) -> DashboardView:
    """Load one specific cycle of a device whose ``max_cycle`` is known.

    Raises:
        UpstreamError: If the fetch fails.
    """
    snapshot = await client.get_cycle_details(imei, cycle_number)
    return _view_for(imei, cycle_number, max_cycle, snapshot, resolution)


async def load_dashboard_view(
    client: SnapshotClient,
    imei: str,
    cycle_number: int | None = None,
    *,
    resolution: str = DEFAULT_RESOLUTION,
) -> DashboardView:
    """Load the latest cycle, or exactly *cycle_number* when given.

    The summary is always read first.  A requested cycle beyond the
    summary's ``last_cycle`` (or for a device with no summary row) is
    still fetched as asked, and ``max_cycle`` is raised to include it.

    Raises:
        UpstreamError: If either fetch fails.
    """
    if cycle_number is None:
        return await load_latest_view(client, imei, resolution=resolution)

    summaries = await client.get_summary()
    summary = next((s for s in summaries if s.imei == imei), None)
    last_cycle = summary.last_cycle if summary is not None else 0
    return await load_cycle_view(
        client,
        imei,
        cycle_number,
        max_cycle=max(last_cycle, cycle_number),
        resolution=resolution,
    )


# ---------------------------------------------------------------------------
# Selection coordinator
# ---------------------------------------------------------------------------


class DashboardSession:
    """Tracks the selected device and cycle and applies only fresh results.

    Args:
        client: Snapshot API client.
        resolution: Temperature bin width for the derived metrics.

    Raises:
        ValueError: If *resolution* is not a known bin width.

    Usage::

        session = DashboardSession(client)
        session.select_device("865044073967657")
        view = await session.settle()
        session.previous_cycle()
        view = await session.settle()
    """

    def __init__(
        self,
        client: SnapshotClient,
        *,
        resolution: str = DEFAULT_RESOLUTION,
    ) -> None:
        if resolution not in TEMPERATURE_RESOLUTIONS:
            raise ValueError(
                f"Invalid resolution '{resolution}'. "
                f"Must be one of: {sorted(TEMPERATURE_RESOLUTIONS)}."
            )
        self._client = client
        self._resolution = resolution
        self._key: SelectionKey | None = None
        self._task: asyncio.Task[None] | None = None
        self._view: DashboardView | None = None

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def key(self) -> SelectionKey | None:
        """The current selection, or ``None`` before any device is chosen."""
        return self._key

    @property
    def view(self) -> DashboardView | None:
        """The current view, or ``None`` before any device is chosen."""
        return self._view

    @property
    def status(self) -> ViewStatus:
        """Status of the current view."""
        if self._view is None:
            return ViewStatus.IDLE
        return self._view.status

    def select_device(self, imei: str) -> asyncio.Task[None]:
        """Switch to a device and load its latest cycle."""
        key = SelectionKey(imei, None)
        self._view = DashboardView(
            imei=imei,
            cycle_number=0,
            max_cycle=0,
            status=ViewStatus.LOADING,
        )
        return self._start(
            key,
            load_latest_view(self._client, imei, resolution=self._resolution),
        )

    def select_cycle(self, cycle_number: int) -> asyncio.Task[None]:
        """Switch to a cycle of the current device.

        The cycle is clamped to ``[0, max_cycle]``.

        Raises:
            RuntimeError: If no device has been selected yet.
        """
        if self._view is None:
            raise RuntimeError("select_device() must be called before select_cycle()")
        max_cycle = self._view.max_cycle
        cycle_number = max(0, min(cycle_number, max_cycle))
        imei = self._view.imei
        self._view = replace(
            self._view,
            cycle_number=cycle_number,
            status=ViewStatus.LOADING,
            error=None,
        )
        return self._start(
            SelectionKey(imei, cycle_number),
            load_cycle_view(
                self._client,
                imei,
                cycle_number,
                max_cycle=max_cycle,
                resolution=self._resolution,
            ),
        )

    def previous_cycle(self) -> asyncio.Task[None] | None:
        """Step one cycle back; ``None`` when already at cycle 0."""
        if self._view is None or self._view.cycle_number <= 0:
            return None
        return self.select_cycle(self._view.cycle_number - 1)

    def next_cycle(self) -> asyncio.Task[None] | None:
        """Step one cycle forward; ``None`` when already at ``max_cycle``."""
        if self._view is None or self._view.cycle_number >= self._view.max_cycle:
            return None
        return self.select_cycle(self._view.cycle_number + 1)

    async def settle(self) -> DashboardView | None:
        """Wait until the current selection has finished loading."""
        while self._task is not None and not self._task.done():
            await asyncio.wait({self._task})
        return self._view

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _start(
        self,
        key: SelectionKey,
        load: Coroutine[Any, Any, DashboardView],
    ) -> asyncio.Task[None]:
        """Cancel any in-flight fetch and start *load* under *key*."""
        if self._task is not None and not self._task.done():
            logger.debug("Cancelling superseded fetch for %s", self._key)
            self._task.cancel()
        self._key = key
        self._task = asyncio.create_task(self._run(key, load))
        return self._task

    async def _run(
        self,
        key: SelectionKey,
        load: Coroutine[Any, Any, DashboardView],
    ) -> None:
        """Await *load* and apply its view if *key* is still current."""
        try:
            view = await load
        except UpstreamError as exc:
            logger.warning("Dashboard fetch for %s failed: %s", key, exc)
            current = self._view
            view = DashboardView(
                imei=key.imei,
                cycle_number=key.cycle_number or 0,
                max_cycle=current.max_cycle if current is not None else 0,
                status=ViewStatus.ERROR,
                error=str(exc),
            )

        if key != self._key:
            logger.debug("Discarding stale result for %s (current %s)", key, self._key)
            return

        if key.cycle_number is None:
            self._key = SelectionKey(key.imei, view.cycle_number)
        self._view = view
