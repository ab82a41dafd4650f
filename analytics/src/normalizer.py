"""
Pure normalizer that repairs shape inconsistencies in raw cycle snapshots.

The snapshot API is not consistent about ``alert_details``: some rows carry
a structured object, some carry the same object JSON-encoded as a string,
and some omit it entirely.  The temperature distribution mappings may also
be missing.  This module resolves all of that once, at the boundary, so
downstream code can rely on a single canonical shape:

- ``alert_details`` is always a dict with ``warnings`` and ``protections``.
- the four ``temperature_dist_*`` mappings are always dicts.

The alert payload is first classified into a tagged variant
(:class:`EncodedAlerts`, :class:`StructuredAlerts`, :class:`AbsentAlerts`)
and then resolved.  A structured payload is passed through unchanged; its
sub-fields are not validated here.

This is a pure function: no I/O and no mutation of the caller's dict.
Decode failures are logged and replaced with the empty default, never
raised.

CHANGELOG:
- 2026-10-19: Treat JSON-encoded null as an absent payload (STORY-003)
- 2026-10-19: Initial creation (STORY-003)

TODO:
- None
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)

ALERT_FIELD = "alert_details"

DISTRIBUTION_FIELDS: tuple[str, ...] = (
    "temperature_dist_5deg",
    "temperature_dist_10deg",
    "temperature_dist_15deg",
    "temperature_dist_20deg",
)
"""Snapshot fields holding a temperature-range -> minutes mapping."""


def empty_alerts() -> dict[str, list[str]]:
    """Return a fresh empty alert payload."""
    return {"warnings": [], "protections": []}


# ---------------------------------------------------------------------------
# Alert payload variants
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class EncodedAlerts:
    """Alert payload delivered as a JSON-encoded string."""

    text: str


@dataclass(frozen=True)
class StructuredAlerts:
    """Alert payload delivered already decoded."""

    value: Any


@dataclass(frozen=True)
class AbsentAlerts:
    """Alert payload missing or null."""


AlertPayload = EncodedAlerts | StructuredAlerts | AbsentAlerts


def classify_alert_payload(value: Any) -> AlertPayload:
    """Tag a raw ``alert_details`` value with its delivery shape."""
    if value is None:
        return AbsentAlerts()
    if isinstance(value, str):
        return EncodedAlerts(value)
    return StructuredAlerts(value)


def resolve_alert_payload(payload: AlertPayload) -> Any:
    """Resolve a classified alert payload into its canonical structured form.

    Args:
        payload: The tagged payload from :func:`classify_alert_payload`.

    Returns:
        The structured alert value.  Encoded payloads that fail to decode,
        or that decode to something other than an object, resolve to the
        empty default.  Structured payloads are returned as-is.
    """
    if isinstance(payload, AbsentAlerts):
        return empty_alerts()

    if isinstance(payload, StructuredAlerts):
        return payload.value

    try:
        decoded = json.loads(payload.text)
    except ValueError as exc:
        logger.warning("Failed to parse alert_details string: %s", exc)
        return empty_alerts()

    if decoded is None:
        return empty_alerts()
    if not isinstance(decoded, dict):
        logger.warning(
            "Decoded alert_details is %s, expected an object; using empty default",
            type(decoded).__name__,
        )
        return empty_alerts()
    return decoded


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def normalize_snapshot(raw: dict[str, Any]) -> dict[str, Any]:
    """Return a copy of *raw* with a canonical alert payload and distributions.

    Idempotent: normalizing an already-normalized snapshot returns an
    equal dict.

    Args:
        raw: One decoded-JSON object purporting to be a cycle snapshot.

    Returns:
        A new dict whose ``alert_details`` is structured and whose four
        ``temperature_dist_*`` fields are dicts (empty when absent).
    """
    snapshot = dict(raw)
    snapshot[ALERT_FIELD] = resolve_alert_payload(
        classify_alert_payload(raw.get(ALERT_FIELD))
    )
    for field_name in DISTRIBUTION_FIELDS:
        if snapshot.get(field_name) is None:
            snapshot[field_name] = {}
    return snapshot
