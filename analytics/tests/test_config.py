"""
Unit tests for analytics configuration (AnalyticsSettings).

Tests verify:
- Config loads from environment variables with correct defaults.
- SNAPSHOT_API_URL is required and must be http(s).
- ALLOWED_IMEIS is parsed into an ordered allow-list and must not be empty.
- Numeric constraints are enforced (timeout, trend limit, page size).
- LOG_LEVEL is validated and upper-cased.

CHANGELOG:
- 2026-10-19: Initial creation (STORY-001)

TODO:
- None
"""

import pytest
from pydantic import ValidationError

from analytics.src.config import AnalyticsSettings, parse_imei_list


class TestAnalyticsSettingsLoadsFromEnv:
    """Config loads all values from environment variables."""

    def test_loads_all_env_vars(self, env_vars_full: dict[str, str]) -> None:
        settings = AnalyticsSettings()

        assert settings.snapshot_api_url == env_vars_full["SNAPSHOT_API_URL"]
        assert settings.imei_allow_list == ("111111111111111", "222222222222222")
        assert settings.request_timeout_s == 5.0
        assert settings.trend_cycle_limit == 500
        assert settings.cycle_page_size == 50
        assert settings.log_level == "DEBUG"

    def test_defaults_applied_when_optional_vars_missing(
        self, env_vars_required_only: dict[str, str]
    ) -> None:
        settings = AnalyticsSettings()

        assert settings.snapshot_api_url == "http://localhost:8000/api"
        assert settings.imei_allow_list == ("865044073967657", "865044073949366")
        assert settings.request_timeout_s == 10.0
        assert settings.trend_cycle_limit == 1000
        assert settings.cycle_page_size == 100
        assert settings.log_level == "INFO"

    def test_trailing_slash_stripped(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SNAPSHOT_API_URL", "https://fleet.example.com/api/")
        assert AnalyticsSettings().snapshot_api_url == "https://fleet.example.com/api"


class TestAnalyticsSettingsValidation:
    """Invalid values are rejected at startup."""

    def test_missing_snapshot_api_url_raises(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            AnalyticsSettings()
        assert "snapshot_api_url" in str(exc_info.value).lower()

    def test_non_http_url_rejected(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SNAPSHOT_API_URL", "ftp://fleet.example.com")
        with pytest.raises(ValidationError, match="SNAPSHOT_API_URL"):
            AnalyticsSettings()

    def test_blank_allow_list_rejected(
        self, env_vars_required_only: dict[str, str], monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("ALLOWED_IMEIS", " , ,")
        with pytest.raises(ValidationError, match="ALLOWED_IMEIS"):
            AnalyticsSettings()

    @pytest.mark.parametrize("value", ["0", "-1"])
    def test_non_positive_timeout_rejected(
        self,
        value: str,
        env_vars_required_only: dict[str, str],
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        monkeypatch.setenv("REQUEST_TIMEOUT_S", value)
        with pytest.raises(ValidationError, match="REQUEST_TIMEOUT_S"):
            AnalyticsSettings()

    @pytest.mark.parametrize("value", ["0", "10001"])
    def test_trend_limit_out_of_range_rejected(
        self,
        value: str,
        env_vars_required_only: dict[str, str],
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        monkeypatch.setenv("TREND_CYCLE_LIMIT", value)
        with pytest.raises(ValidationError, match="TREND_CYCLE_LIMIT"):
            AnalyticsSettings()

    @pytest.mark.parametrize("value", ["0", "1001"])
    def test_page_size_out_of_range_rejected(
        self,
        value: str,
        env_vars_required_only: dict[str, str],
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        monkeypatch.setenv("CYCLE_PAGE_SIZE", value)
        with pytest.raises(ValidationError, match="CYCLE_PAGE_SIZE"):
            AnalyticsSettings()

    def test_unknown_log_level_rejected(
        self, env_vars_required_only: dict[str, str], monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("LOG_LEVEL", "chatty")
        with pytest.raises(ValidationError, match="LOG_LEVEL"):
            AnalyticsSettings()


class TestParseImeiList:
    """The allow-list parser keeps order and drops blanks and duplicates."""

    def test_strips_and_dedupes(self) -> None:
        assert parse_imei_list(" 1 ,2,,1, 3 ") == ("1", "2", "3")

    def test_empty_string(self) -> None:
        assert parse_imei_list("") == ()
