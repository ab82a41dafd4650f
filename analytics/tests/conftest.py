"""
Shared test fixtures for analytics pipeline tests.

Provides environment variable fixtures for AnalyticsSettings tests and a
factory for raw snapshot payloads as the upstream API sends them.
All analytics env vars are cleaned before each test to ensure isolation.

CHANGELOG:
- 2026-10-19: Add raw snapshot factory fixture (STORY-003)
- 2026-10-19: Initial creation (STORY-001)

TODO:
- None
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import pytest

# All AnalyticsSettings environment variable names, used for cleanup.
_ALL_ANALYTICS_ENV_VARS = (
    "SNAPSHOT_API_URL",
    "ALLOWED_IMEIS",
    "REQUEST_TIMEOUT_S",
    "TREND_CYCLE_LIMIT",
    "CYCLE_PAGE_SIZE",
    "LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def _clean_analytics_env(monkeypatch: pytest.MonkeyPatch, tmp_path: str) -> None:
    """Remove all analytics env vars and isolate from .env files before each test.

    Changes working directory to tmp_path so no .env file is accidentally
    loaded by Pydantic BaseSettings.
    """
    for var in _ALL_ANALYTICS_ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture()
def env_vars_full(monkeypatch: pytest.MonkeyPatch) -> dict[str, str]:
    """Set all required and optional environment variables for AnalyticsSettings."""
    env = {
        "SNAPSHOT_API_URL": "https://fleet.example.com/api",
        "ALLOWED_IMEIS": "111111111111111,222222222222222",
        "REQUEST_TIMEOUT_S": "5",
        "TREND_CYCLE_LIMIT": "500",
        "CYCLE_PAGE_SIZE": "50",
        "LOG_LEVEL": "debug",
    }
    for key, value in env.items():
        monkeypatch.setenv(key, value)
    return env


@pytest.fixture()
def env_vars_required_only(monkeypatch: pytest.MonkeyPatch) -> dict[str, str]:
    """Set only the required environment variables (no optional ones)."""
    env = {"SNAPSHOT_API_URL": "http://localhost:8000/api"}
    for key, value in env.items():
        monkeypatch.setenv(key, value)
    return env


@pytest.fixture()
def make_raw_snapshot() -> Callable[..., dict[str, Any]]:
    """Return a factory building raw snapshot dicts with sensible defaults."""

    def _make(**overrides: Any) -> dict[str, Any]:
        raw: dict[str, Any] = {
            "imei": "865044073967657",
            "cycle_number": 12,
            "cycle_start_time": "2026-10-01T08:00:00Z",
            "cycle_end_time": "2026-10-01T14:30:00Z",
            "cycle_duration_hours": 6.5,
            "soh_drop": 0.25,
            "average_soc": 55.0,
            "min_soc": 20.0,
            "max_soc": 90.0,
            "min_soh": 97.5,
            "max_soh": 97.75,
            "voltage_avg": 51.2,
            "voltage_min": 48.1,
            "voltage_max": 54.35,
            "average_temperature": 28.4,
            "total_distance": 84.0,
            "average_speed": 23.5,
            "max_speed": 61.0,
            "average_charge_start_soc": 35.0,
            "charging_instances_count": 3,
            "temperature_dist_5deg": {"25-30": 210.0, "20-25": 90.0, "30-35": 60.0},
            "temperature_dist_10deg": {"20-30": 300.0, "30-40": 60.0},
            "temperature_dist_15deg": {"15-30": 300.0, "30-45": 60.0},
            "temperature_dist_20deg": {"20-40": 360.0},
            "alert_details": {"warnings": [], "protections": []},
        }
        raw.update(overrides)
        return raw

    return _make
