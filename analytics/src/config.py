"""
Analytics configuration loaded from environment variables.

Uses Pydantic BaseSettings for automatic env var loading and validation.
The snapshot API location and the device allow-list come from the
environment or a .env file, so each deployment (and each test) can swap
them without code changes.

CHANGELOG:
- 2026-10-19: Move device allow-list out of code into ALLOWED_IMEIS (STORY-008)
- 2026-10-19: Initial creation (STORY-001)

TODO:
- None
"""

import logging

from pydantic import field_validator
from pydantic_settings import BaseSettings

_DEFAULT_ALLOWED_IMEIS = "865044073967657,865044073949366"


def parse_imei_list(raw: str) -> tuple[str, ...]:
    """Parse a comma-separated IMEI list, dropping blanks and duplicates.

    Args:
        raw: The raw ``ALLOWED_IMEIS`` string, e.g. ``"123,456"``.

    Returns:
        tuple[str, ...]: IMEIs in their configured order.
    """
    seen: list[str] = []
    for entry in raw.split(","):
        imei = entry.strip()
        if imei and imei not in seen:
            seen.append(imei)
    return tuple(seen)


class AnalyticsSettings(BaseSettings):
    """Configuration for the cycle analytics pipeline and dashboard service.

    Attributes:
        snapshot_api_url: Base URL of the upstream snapshot API
            (e.g. ``https://fleet.example.com/api``).
        allowed_imeis: Comma-separated device allow-list shown to users.
        request_timeout_s: Timeout in seconds for each upstream request.
        trend_cycle_limit: Page size used when fetching cycles for trends.
        cycle_page_size: Default page size for plain cycle listings.
        log_level: Root log level name.
    """

    snapshot_api_url: str
    allowed_imeis: str = _DEFAULT_ALLOWED_IMEIS
    request_timeout_s: float = 10.0
    trend_cycle_limit: int = 1000
    cycle_page_size: int = 100
    log_level: str = "INFO"

    @property
    def imei_allow_list(self) -> tuple[str, ...]:
        """The parsed device allow-list, in configured order."""
        return parse_imei_list(self.allowed_imeis)

    @field_validator("snapshot_api_url")
    @classmethod
    def snapshot_api_url_must_be_http(cls, v: str) -> str:
        """Validate the URL scheme and strip any trailing slash."""
        if not v.lower().startswith(("http://", "https://")):
            raise ValueError(
                f"SNAPSHOT_API_URL must start with http:// or https:// (got: '{v[:20]}...')"
            )
        return v.rstrip("/")

    @field_validator("allowed_imeis")
    @classmethod
    def allowed_imeis_must_not_be_empty(cls, v: str) -> str:
        """Validate that at least one IMEI is configured."""
        if not parse_imei_list(v):
            raise ValueError("ALLOWED_IMEIS must contain at least one IMEI")
        return v

    @field_validator("request_timeout_s")
    @classmethod
    def request_timeout_must_be_positive(cls, v: float) -> float:
        """Validate the request timeout is strictly positive."""
        if v <= 0:
            raise ValueError("REQUEST_TIMEOUT_S must be > 0")
        return v

    @field_validator("trend_cycle_limit")
    @classmethod
    def trend_cycle_limit_must_be_valid(cls, v: int) -> int:
        """Validate trend page size is between 1 and 10000."""
        if v < 1 or v > 10000:
            raise ValueError("TREND_CYCLE_LIMIT must be >= 1 and <= 10000")
        return v

    @field_validator("cycle_page_size")
    @classmethod
    def cycle_page_size_must_be_valid(cls, v: int) -> int:
        """Validate cycle page size is between 1 and 1000."""
        if v < 1 or v > 1000:
            raise ValueError("CYCLE_PAGE_SIZE must be >= 1 and <= 1000")
        return v

    @field_validator("log_level")
    @classmethod
    def log_level_must_be_known(cls, v: str) -> str:
        """Validate the log level against the stdlib level names."""
        level = v.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"LOG_LEVEL must be a logging level name (got: '{v}')")
        return level

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}
