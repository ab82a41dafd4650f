"""
JSON report export for a single cycle.

Serializes the normalized snapshot together with its derived metrics into
the pretty-printed document offered as a download from the dashboard
(``report_{imei}_cycle_{n}.json``).  Unknown upstream fields on the
snapshot are kept, so the export carries everything the service sent.

CHANGELOG:
- 2026-10-19: Initial creation (STORY-009)

TODO:
- None
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from analytics.src.models import CycleMetrics, CycleSnapshot


def report_filename(imei: str, cycle_number: int) -> str:
    """Download filename for a cycle report."""
    return f"report_{imei}_cycle_{cycle_number}.json"


def build_cycle_report(snapshot: CycleSnapshot, metrics: CycleMetrics) -> dict[str, Any]:
    """Assemble the JSON-compatible report document.

    Args:
        snapshot: Normalized cycle snapshot.
        metrics: Metrics derived from *snapshot*.

    Returns:
        dict: ``{"imei", "cycle_number", "snapshot", "metrics"}``.
    """
    return {
        "imei": snapshot.imei,
        "cycle_number": snapshot.cycle_number,
        "snapshot": snapshot.model_dump(mode="json"),
        "metrics": metrics.model_dump(mode="json"),
    }


def render_cycle_report(snapshot: CycleSnapshot, metrics: CycleMetrics) -> str:
    """Render the report as indented JSON text."""
    return json.dumps(build_cycle_report(snapshot, metrics), indent=2, ensure_ascii=False)


def write_cycle_report(
    snapshot: CycleSnapshot,
    metrics: CycleMetrics,
    out_dir: str | Path,
) -> Path:
    """Write the report into *out_dir* and return its path."""
    path = Path(out_dir) / report_filename(snapshot.imei, snapshot.cycle_number)
    path.write_text(render_cycle_report(snapshot, metrics), encoding="utf-8")
    return path
