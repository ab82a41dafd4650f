"""
Pydantic models for battery cycle snapshots and their derived views.

Wire models (BatterySummary, CycleSnapshot, AlertDetails) mirror the
upstream snapshot API payloads after normalization.  Derived models
(CycleMetrics, TemperatureDistribution, TrendPoint, LifetimeStats,
TrendSeries) are what the dashboard views and exports consume.

CHANGELOG:
- 2026-10-19: Add trend and lifetime models (STORY-005)
- 2026-10-19: Add derived single-cycle metric models (STORY-004)
- 2026-10-19: Initial creation (STORY-002)

TODO:
- None
"""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field

# ---------------------------------------------------------------------------
# Wire models
# ---------------------------------------------------------------------------


class AlertDetails(BaseModel):
    """Warnings and protections raised by the BMS during a cycle.

    Both lists are always present after normalization, possibly empty.
    """

    model_config = ConfigDict(extra="allow")

    warnings: list[str] = Field(default_factory=list)
    protections: list[str] = Field(default_factory=list)


class BatterySummary(BaseModel):
    """One aggregate row per device from the summary endpoint.

    Only ``last_cycle`` drives behaviour: it seeds the highest cycle
    number offered for navigation.

    Attributes:
        imei: Device identifier.
        total_cycles: Number of cycles recorded for the device.
        avg_soc_across_cycles: Mean state of charge over all cycles (%).
        avg_soh_across_cycles: Mean state of health over all cycles (%).
        avg_temp_across_cycles: Mean temperature over all cycles (C).
        total_distance_all_cycles: Total distance over all cycles (km).
        last_cycle_time: Timestamp of the most recent cycle.
        last_cycle: Highest known cycle number.
    """

    model_config = ConfigDict(extra="allow")

    imei: str
    total_cycles: int = 0
    avg_soc_across_cycles: float = 0.0
    avg_soh_across_cycles: float = 0.0
    avg_temp_across_cycles: float = 0.0
    total_distance_all_cycles: float = 0.0
    last_cycle_time: datetime | None = None
    last_cycle: int = Field(default=0, ge=0)


class CycleSnapshot(BaseModel):
    """One charge/discharge cycle for one device, after normalization.

    Scalars the upstream omits default to zero so derived metrics fall
    back to their not-applicable sentinels instead of failing.  Unknown
    upstream fields are kept so exports serialize the full payload.

    Attributes:
        imei: Device identifier.
        cycle_number: Per-device cycle index assigned upstream.
        soh_drop: State of health lost during this cycle (%).
        temperature_dist_5deg: Minutes spent per 5 C temperature range.
        alert_details: Warnings and protections raised in the cycle.
    """

    model_config = ConfigDict(extra="allow")

    imei: str
    cycle_number: int = Field(ge=0)
    cycle_start_time: datetime | None = None
    cycle_end_time: datetime | None = None
    cycle_duration_hours: float = 0.0

    average_soc: float = 0.0
    min_soc: float = 0.0
    max_soc: float = 0.0
    soh_drop: float = 0.0
    min_soh: float = 0.0
    max_soh: float = 0.0
    voltage_avg: float = 0.0
    voltage_min: float = 0.0
    voltage_max: float = 0.0
    average_temperature: float = 0.0

    total_distance: float = 0.0
    average_speed: float = 0.0
    max_speed: float = 0.0

    average_charge_start_soc: float = 0.0
    charging_instances_count: int = 0

    temperature_dist_5deg: dict[str, float] = Field(default_factory=dict)
    temperature_dist_10deg: dict[str, float] = Field(default_factory=dict)
    temperature_dist_15deg: dict[str, float] = Field(default_factory=dict)
    temperature_dist_20deg: dict[str, float] = Field(default_factory=dict)

    alert_details: AlertDetails = Field(default_factory=AlertDetails)


# ---------------------------------------------------------------------------
# Single-cycle derived models
# ---------------------------------------------------------------------------


class ChargeHealth(StrEnum):
    """Three-tier classification of the average charge start SOC."""

    DEEP_DISCHARGE = "deep_discharge"
    SHALLOW_CHARGE = "shallow_charge"
    HEALTHY_ZONE = "healthy_zone"


class ChargeBanner(StrEnum):
    """Two-tier warning banner driven by the coarser 20% threshold."""

    DEEP_DISCHARGE_DETECTED = "deep_discharge_detected"
    HEALTHY = "healthy"


class Tone(StrEnum):
    """Presentation tone of a signed health value."""

    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"


class TemperatureBin(BaseModel):
    """Minutes spent inside one temperature range."""

    range: str
    minutes: float


class TemperatureDistribution(BaseModel):
    """One temperature histogram ordered for display.

    Attributes:
        resolution: Snapshot field the bins came from.
        label: Human label of the resolution, e.g. ``"5°C Bins"``.
        bins: Bins ordered by numeric lower bound, open-ended bin last.
        total_minutes: Sum of the (rounded) minutes across all bins.
    """

    resolution: str
    label: str
    bins: list[TemperatureBin]
    total_minutes: float


class CycleMetrics(BaseModel):
    """Presentation metrics derived from a single normalized snapshot.

    Attributes:
        cycle_number: Cycle the metrics were derived from.
        soc_used: ``max_soc - min_soc`` for the cycle.
        efficiency_km_per_pct: Distance per SOC percent, or ``None`` when
            not applicable.
        efficiency_display: ``"N/A"`` or ``"<x.xx> km/%"``.
        charge_health: Three-tier charge start classification.
        charge_banner: Two-tier deep discharge banner.
        charge_bar_pct: Charge start SOC clamped to ``[0, 100]``.
        soh_drop_tone: Tone used to colour the SOH drop.
        has_alerts: Whether any warning or protection was raised.
        temperature: Ordered temperature distribution.
    """

    cycle_number: int
    soc_used: float
    efficiency_km_per_pct: float | None
    efficiency_display: str
    charge_health: ChargeHealth
    charge_banner: ChargeBanner
    charge_banner_message: str
    charge_bar_pct: float
    soh_drop_tone: Tone
    has_alerts: bool
    temperature: TemperatureDistribution


# ---------------------------------------------------------------------------
# Multi-cycle derived models
# ---------------------------------------------------------------------------


class TrendPoint(BaseModel):
    """One reconstructed point of the long-term trend series."""

    cycle_number: int
    soh: float
    average_temperature: float
    average_soc: float
    average_speed: float
    voltage_spread: float


class LifetimeStats(BaseModel):
    """Lifetime aggregates read off a trend series.

    Means over an empty series are ``0.0`` and ``latest_soh`` is ``None``.
    """

    cycle_count: int
    average_soc: float
    average_temperature: float
    latest_soh: float | None


class TrendSeries(BaseModel):
    """Trend points plus their lifetime aggregates."""

    points: list[TrendPoint]
    stats: LifetimeStats
