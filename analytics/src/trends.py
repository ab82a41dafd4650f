"""
Trend reconstruction over a device's cycle history.

Folds a batch of normalized snapshots into the long-term series shown on
the trends view.  The snapshots may arrive in any order; the output is
always sorted by cycle number, so the same cycles always produce the same
series.

State of health is rebuilt from a fixed 100% baseline by accumulating each
cycle's ``soh_drop``: ``soh = 100 - sum(drops so far)``.  ``min_soh`` and
``max_soh`` are not read.  Negative drops are kept as-is (the series can
then rise above 100) and logged.

Lifetime aggregates are unweighted means and last-element reads over the
emitted points.  An empty batch yields an empty series, zero means and no
latest SOH.

CHANGELOG:
- 2026-10-19: Log negative SOH drops instead of silently accepting them (STORY-005)
- 2026-10-19: Initial creation (STORY-005)

TODO:
- None
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable, Sequence

from analytics.src.models import CycleSnapshot, LifetimeStats, TrendPoint, TrendSeries

logger = logging.getLogger(__name__)

SOH_BASELINE = 100.0
VOLTAGE_SPREAD_DIGITS = 3


def voltage_spread(snapshot: CycleSnapshot) -> float:
    """Max minus min pack voltage within the cycle, rounded to 3 digits."""
    return round(snapshot.voltage_max - snapshot.voltage_min, VOLTAGE_SPREAD_DIGITS)


def reconstruct_trend(snapshots: Iterable[CycleSnapshot]) -> list[TrendPoint]:
    """Build the per-cycle trend series from an unordered batch.

    Args:
        snapshots: Normalized snapshots for one device, in any order.

    Returns:
        One :class:`TrendPoint` per snapshot, ascending by cycle number.
        Snapshots sharing a cycle number keep their input order.
    """
    ordered = sorted(snapshots, key=lambda s: s.cycle_number)
    accumulated_drop = 0.0
    points: list[TrendPoint] = []
    for snapshot in ordered:
        if snapshot.soh_drop < 0:
            logger.warning(
                "Negative soh_drop %.4g on imei=%s cycle=%d; passing through",
                snapshot.soh_drop,
                snapshot.imei,
                snapshot.cycle_number,
            )
        accumulated_drop += snapshot.soh_drop
        points.append(
            TrendPoint(
                cycle_number=snapshot.cycle_number,
                soh=SOH_BASELINE - accumulated_drop,
                average_temperature=snapshot.average_temperature,
                average_soc=snapshot.average_soc,
                average_speed=snapshot.average_speed,
                voltage_spread=voltage_spread(snapshot),
            )
        )
    return points


def _mean(values: Sequence[float]) -> float:
    """Unweighted mean, ``0.0`` for an empty sequence."""
    if not values:
        return 0.0
    return math.fsum(values) / len(values)


def lifetime_stats(points: Sequence[TrendPoint]) -> LifetimeStats:
    """Lifetime aggregates over an emitted trend series.

    Args:
        points: Trend points in cycle order.

    Returns:
        Mean SOC and temperature (``0.0`` when empty) and the SOH of the
        last point (``None`` when empty).
    """
    return LifetimeStats(
        cycle_count=len(points),
        average_soc=_mean([p.average_soc for p in points]),
        average_temperature=_mean([p.average_temperature for p in points]),
        latest_soh=points[-1].soh if points else None,
    )


def build_trend_series(snapshots: Iterable[CycleSnapshot]) -> TrendSeries:
    """Reconstruct the trend series and its lifetime aggregates in one go."""
    points = reconstruct_trend(snapshots)
    return TrendSeries(points=points, stats=lifetime_stats(points))
