"""
Single-cycle presentation metrics derived from a normalized snapshot.

All functions are pure and stateless: identical input always yields
identical output.  Domain edge cases (zero SOC swing, zero distance,
unknown bin labels) resolve to defined sentinels rather than raising.

Rules implemented here:

- Efficiency = total_distance / (max_soc - min_soc), only when both are
  positive; otherwise ``None`` ("N/A").
- Charge start SOC is classified twice, independently: a three-tier
  status (< 15 deep discharge, > 80 shallow charge, else healthy zone)
  and a two-tier banner (< 20 deep discharge detected, else healthy).
- Temperature bins are ordered by the numeric lower bound of their label
  with the open-ended ``"N+"`` bin always last.
- A positive SOH drop is rendered as unhealthy, zero or negative as
  healthy.

CHANGELOG:
- 2026-10-19: Support negative lower bounds in temperature labels (STORY-004)
- 2026-10-19: Initial creation (STORY-004)

TODO:
- None
"""

from __future__ import annotations

import logging
import math
import re
from collections.abc import Mapping

from analytics.src.models import (
    ChargeBanner,
    ChargeHealth,
    CycleMetrics,
    CycleSnapshot,
    TemperatureBin,
    TemperatureDistribution,
    Tone,
)

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Thresholds and labels
# ---------------------------------------------------------------------------

DEEP_DISCHARGE_SOC = 15.0
SHALLOW_CHARGE_SOC = 80.0
BANNER_DEEP_DISCHARGE_SOC = 20.0

NOT_APPLICABLE = "N/A"

BANNER_MESSAGES: dict[ChargeBanner, str] = {
    ChargeBanner.DEEP_DISCHARGE_DETECTED: "Deep discharge detected. Battery health risk.",
    ChargeBanner.HEALTHY: "Healthy charging threshold.",
}

TEMPERATURE_RESOLUTIONS: dict[str, str] = {
    "temperature_dist_5deg": "5°C Bins",
    "temperature_dist_10deg": "10°C Bins",
    "temperature_dist_15deg": "15°C Bins",
    "temperature_dist_20deg": "20°C Bins",
}
"""Snapshot field -> display label, in toggle order."""

DEFAULT_RESOLUTION = "temperature_dist_5deg"

_LOWER_BOUND_RE = re.compile(r"^\s*(-?\d+(?:\.\d+)?)")

# Sort ranks: numeric labels, then unparseable labels, then open-ended bins.
_RANK_NUMERIC = 0
_RANK_UNPARSED = 1
_RANK_OPEN_ENDED = 2


# ---------------------------------------------------------------------------
# Efficiency
# ---------------------------------------------------------------------------


def soc_used(snapshot: CycleSnapshot) -> float:
    """SOC swing of the cycle in percentage points."""
    return snapshot.max_soc - snapshot.min_soc


def efficiency(snapshot: CycleSnapshot) -> float | None:
    """Distance travelled per SOC percent used, rounded to 2 decimals.

    Returns:
        The ratio, or ``None`` when the SOC swing or the distance is not
        strictly positive.
    """
    used = soc_used(snapshot)
    if used <= 0 or snapshot.total_distance <= 0:
        return None
    return round(snapshot.total_distance / used, 2)


def format_efficiency(value: float | None) -> str:
    """Render an efficiency value for display."""
    if value is None:
        return NOT_APPLICABLE
    return f"{value:.2f} km/%"


# ---------------------------------------------------------------------------
# Charging behaviour
# ---------------------------------------------------------------------------


def classify_charge_start(soc: float) -> ChargeHealth:
    """Three-tier status of the average SOC at which charging starts."""
    if soc < DEEP_DISCHARGE_SOC:
        return ChargeHealth.DEEP_DISCHARGE
    if soc > SHALLOW_CHARGE_SOC:
        return ChargeHealth.SHALLOW_CHARGE
    return ChargeHealth.HEALTHY_ZONE


def charge_banner(soc: float) -> ChargeBanner:
    """Two-tier banner: deep discharge below 20%, healthy otherwise."""
    if soc < BANNER_DEEP_DISCHARGE_SOC:
        return ChargeBanner.DEEP_DISCHARGE_DETECTED
    return ChargeBanner.HEALTHY


def charge_bar_percent(soc: float) -> float:
    """Width of the charge start gauge, clamped to ``[0, 100]``."""
    return max(0.0, min(soc, 100.0))


# ---------------------------------------------------------------------------
# SOH drop
# ---------------------------------------------------------------------------


def soh_drop_tone(drop: float) -> Tone:
    """Positive drops are unhealthy; zero or negative drops are healthy."""
    if drop > 0:
        return Tone.UNHEALTHY
    return Tone.HEALTHY


# ---------------------------------------------------------------------------
# Temperature distribution
# ---------------------------------------------------------------------------


def _bin_sort_key(label: str) -> tuple[int, float]:
    """Sort key for a temperature range label such as ``"20-25"``."""
    if label.rstrip().endswith("+"):
        return (_RANK_OPEN_ENDED, 0.0)
    match = _LOWER_BOUND_RE.match(label)
    if match is None:
        logger.warning("Temperature range '%s' has no numeric lower bound", label)
        return (_RANK_UNPARSED, 0.0)
    return (_RANK_NUMERIC, float(match.group(1)))


def order_temperature_bins(bins: Mapping[str, float]) -> list[tuple[str, float]]:
    """Order ``(label, minutes)`` pairs by numeric lower bound.

    The open-ended bin (label ending in ``+``) is always last regardless of
    its numeric prefix.  Minutes are rounded to one decimal.  The sort is
    stable, so ties keep their mapping order.

    Args:
        bins: Mapping of temperature range label to minutes.

    Returns:
        Ordered list of ``(label, minutes)`` pairs.
    """
    pairs = [(label, round(float(minutes), 1)) for label, minutes in bins.items()]
    return sorted(pairs, key=lambda pair: _bin_sort_key(pair[0]))


def temperature_distribution(
    snapshot: CycleSnapshot,
    resolution: str = DEFAULT_RESOLUTION,
) -> TemperatureDistribution:
    """Ordered temperature histogram for one of the four bin widths.

    Args:
        snapshot: Normalized cycle snapshot.
        resolution: One of the keys of :data:`TEMPERATURE_RESOLUTIONS`.

    Returns:
        The ordered bins and their total minutes.

    Raises:
        ValueError: If *resolution* is not a known bin width.
    """
    if resolution not in TEMPERATURE_RESOLUTIONS:
        raise ValueError(
            f"Invalid resolution '{resolution}'. "
            f"Must be one of: {sorted(TEMPERATURE_RESOLUTIONS)}."
        )
    ordered = order_temperature_bins(getattr(snapshot, resolution))
    total = math.fsum(minutes for _, minutes in ordered)
    return TemperatureDistribution(
        resolution=resolution,
        label=TEMPERATURE_RESOLUTIONS[resolution],
        bins=[TemperatureBin(range=label, minutes=minutes) for label, minutes in ordered],
        total_minutes=round(total, 1),
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def derive_cycle_metrics(
    snapshot: CycleSnapshot,
    resolution: str = DEFAULT_RESOLUTION,
) -> CycleMetrics:
    """Derive every single-cycle dashboard metric from one snapshot.

    Args:
        snapshot: Normalized cycle snapshot.
        resolution: Temperature bin width to order for display.

    Returns:
        The bundled :class:`CycleMetrics`.
    """
    start_soc = snapshot.average_charge_start_soc
    banner = charge_banner(start_soc)
    value = efficiency(snapshot)
    alerts = snapshot.alert_details
    return CycleMetrics(
        cycle_number=snapshot.cycle_number,
        soc_used=soc_used(snapshot),
        efficiency_km_per_pct=value,
        efficiency_display=format_efficiency(value),
        charge_health=classify_charge_start(start_soc),
        charge_banner=banner,
        charge_banner_message=BANNER_MESSAGES[banner],
        charge_bar_pct=charge_bar_percent(start_soc),
        soh_drop_tone=soh_drop_tone(snapshot.soh_drop),
        has_alerts=bool(alerts.warnings or alerts.protections),
        temperature=temperature_distribution(snapshot, resolution),
    )
