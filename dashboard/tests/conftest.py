"""
Shared test fixtures for dashboard service tests.

Provides a configured TestClient for FastAPI integration testing with the
snapshot API reads mocked out.  Environment variables are set to test
values so the application can start without a real upstream service.

CHANGELOG:
- 2026-10-19: Initial creation with app fixture and mocked upstream (STORY-011)
"""

from collections.abc import Callable, Generator
from types import SimpleNamespace
from typing import Any
from unittest.mock import AsyncMock, patch

import pytest
from fastapi.testclient import TestClient

from analytics.src.client import SnapshotClient
from analytics.src.models import CycleSnapshot
from analytics.src.normalizer import normalize_snapshot

KNOWN_IMEI = "865044073967657"
OTHER_IMEI = "865044073949366"


@pytest.fixture(autouse=True)
def _set_test_env(monkeypatch: pytest.MonkeyPatch, tmp_path: str) -> None:
    """Set required environment variables for testing.

    Changes working directory to tmp_path so no .env file is picked up.
    """
    for var in ("REQUEST_TIMEOUT_S", "TREND_CYCLE_LIMIT", "CYCLE_PAGE_SIZE", "LOG_LEVEL"):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("SNAPSHOT_API_URL", "http://snapshots.test/api")
    monkeypatch.setenv("ALLOWED_IMEIS", f"{KNOWN_IMEI},{OTHER_IMEI}")
    monkeypatch.chdir(tmp_path)


@pytest.fixture()
def upstream() -> Generator[SimpleNamespace, None, None]:
    """Replace the SnapshotClient reads with AsyncMocks.

    Yields:
        SimpleNamespace: ``get_summary``, ``get_cycle_details`` and
        ``get_all_cycles`` mocks; configure return values per test.
    """
    mocks = SimpleNamespace(
        get_summary=AsyncMock(return_value=[]),
        get_cycle_details=AsyncMock(return_value=None),
        get_all_cycles=AsyncMock(return_value=[]),
    )
    with (
        patch.object(SnapshotClient, "get_summary", mocks.get_summary),
        patch.object(SnapshotClient, "get_cycle_details", mocks.get_cycle_details),
        patch.object(SnapshotClient, "get_all_cycles", mocks.get_all_cycles),
    ):
        yield mocks


@pytest.fixture()
def client(upstream: SimpleNamespace) -> Generator[TestClient, None, None]:
    """Create a FastAPI TestClient for integration testing.

    Uses a context manager to ensure the application lifespan events
    (startup/shutdown) are properly triggered.

    Yields:
        TestClient: Configured test client for the FastAPI app.
    """
    from dashboard.src.api.main import app

    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture()
def make_snapshot() -> Callable[..., CycleSnapshot]:
    """Return a factory building normalized snapshots with sensible defaults."""

    def _make(**overrides: Any) -> CycleSnapshot:
        raw: dict[str, Any] = {
            "imei": KNOWN_IMEI,
            "cycle_number": 12,
            "soh_drop": 0.25,
            "average_soc": 55.0,
            "min_soc": 20.0,
            "max_soc": 90.0,
            "voltage_min": 48.1,
            "voltage_max": 54.35,
            "average_temperature": 28.4,
            "total_distance": 84.0,
            "average_speed": 23.5,
            "average_charge_start_soc": 35.0,
            "temperature_dist_5deg": {"25-30": 210.0, "20-25": 90.0, "45+": 5.0},
            "temperature_dist_10deg": {"20-30": 300.0, "30-40": 60.0},
            "alert_details": '{"warnings": ["Cell imbalance"], "protections": []}',
        }
        raw.update(overrides)
        return CycleSnapshot.model_validate(normalize_snapshot(raw))

    return _make
