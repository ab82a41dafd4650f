"""
Command-line entrypoint for the cycle analytics pipeline.

Runs the dashboard views from a terminal against the configured snapshot
API and prints the derived result as JSON on stdout:

- ``dashboard --imei X [--cycle N]``: single-cycle view (latest by default).
- ``trends --imei X [--limit N]``: reconstructed trend series and lifetime
  stats.
- ``export --imei X --cycle N [--out DIR]``: write the cycle's JSON report.

Exit codes: 0 on success, 1 on upstream failure, 2 when there is no data
for the requested cycle or device.

Structured JSON logging goes to stderr.

Usage:
    python -m analytics.src.main dashboard --imei 865044073967657
    python -m analytics.src.main trends --imei 865044073967657 --limit 500

CHANGELOG:
- 2026-10-19: dashboard --cycle shows exactly the requested cycle (STORY-013)
- 2026-10-19: Add export command (STORY-009)
- 2026-10-19: Initial creation (STORY-010)

TODO:
- None
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from analytics.src.client import SnapshotClient, UpstreamError
from analytics.src.metrics import (
    DEFAULT_RESOLUTION,
    TEMPERATURE_RESOLUTIONS,
    derive_cycle_metrics,
)
from analytics.src.report import write_cycle_report
from analytics.src.session import ViewStatus, load_dashboard_view
from analytics.src.trends import build_trend_series

if TYPE_CHECKING:
    from analytics.src.config import AnalyticsSettings

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_UPSTREAM_ERROR = 1
EXIT_NO_DATA = 2


# ---------------------------------------------------------------------------
# Structured JSON logging setup
# ---------------------------------------------------------------------------


class JsonFormatter(logging.Formatter):
    """Minimal JSON log formatter."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info and record.exc_info[1] is not None:
            log_entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_entry)


def configure_logging(level: str = "INFO") -> None:
    """Configure structured JSON logging on stderr for the root logger."""
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(JsonFormatter())
    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)


def log_config_summary(settings: AnalyticsSettings) -> None:
    """Log the effective configuration at startup."""
    logger.info(
        "Analytics starting with config: snapshot_api_url=%s, allowed_imeis=%s, "
        "request_timeout_s=%s, trend_cycle_limit=%s, cycle_page_size=%s, log_level=%s",
        settings.snapshot_api_url,
        ",".join(settings.imei_allow_list),
        settings.request_timeout_s,
        settings.trend_cycle_limit,
        settings.cycle_page_size,
        settings.log_level,
    )


def build_client(settings: AnalyticsSettings) -> SnapshotClient:
    """Build the snapshot client from settings, injecting the allow-list."""
    return SnapshotClient(
        base_url=settings.snapshot_api_url,
        allowed_imeis=settings.imei_allow_list,
        timeout_s=settings.request_timeout_s,
        page_size=settings.cycle_page_size,
    )


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


def _emit(payload: object) -> None:
    print(json.dumps(payload, indent=2, ensure_ascii=False))


async def run_dashboard(
    client: SnapshotClient,
    imei: str,
    cycle: int | None,
    resolution: str,
) -> int:
    """Print the single-cycle view for a device.

    Without *cycle* the device's latest cycle is shown; otherwise exactly
    the requested cycle, even beyond the summary's ``last_cycle``.
    """
    view = await load_dashboard_view(client, imei, cycle, resolution=resolution)
    if view.status is ViewStatus.NO_DATA:
        logger.warning("No data for imei=%s cycle=%d", imei, view.cycle_number)
        _emit({"imei": imei, "cycle_number": view.cycle_number, "status": view.status})
        return EXIT_NO_DATA

    _emit(
        {
            "imei": imei,
            "cycle_number": view.cycle_number,
            "max_cycle": view.max_cycle,
            "status": view.status,
            "snapshot": view.snapshot.model_dump(mode="json"),
            "metrics": view.metrics.model_dump(mode="json"),
        }
    )
    return EXIT_OK


async def run_trends(client: SnapshotClient, imei: str, limit: int) -> int:
    """Print the trend series and lifetime stats for a device."""
    snapshots = await client.get_all_cycles(imei, limit=limit)
    series = build_trend_series(snapshots)
    _emit({"imei": imei, **series.model_dump(mode="json")})
    return EXIT_OK


async def run_export(
    client: SnapshotClient,
    imei: str,
    cycle: int,
    out_dir: str,
    resolution: str,
) -> int:
    """Write the JSON report for one cycle and print its path."""
    snapshot = await client.get_cycle_details(imei, cycle)
    if snapshot is None:
        logger.warning("No data for imei=%s cycle=%d, nothing exported", imei, cycle)
        return EXIT_NO_DATA
    path = write_cycle_report(snapshot, derive_cycle_metrics(snapshot, resolution), out_dir)
    logger.info("Wrote cycle report to %s", path)
    _emit({"path": str(path)})
    return EXIT_OK


# ---------------------------------------------------------------------------
# Entrypoint
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for all subcommands."""
    parser = argparse.ArgumentParser(
        prog="analytics",
        description="Battery cycle analytics against the snapshot API.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    dashboard = sub.add_parser("dashboard", help="Single-cycle dashboard view.")
    dashboard.add_argument("--imei", required=True)
    dashboard.add_argument("--cycle", type=int, default=None)
    dashboard.add_argument(
        "--resolution",
        choices=sorted(TEMPERATURE_RESOLUTIONS),
        default=DEFAULT_RESOLUTION,
    )

    trends = sub.add_parser("trends", help="Long-term trend series.")
    trends.add_argument("--imei", required=True)
    trends.add_argument("--limit", type=int, default=None)

    export = sub.add_parser("export", help="Write a cycle's JSON report.")
    export.add_argument("--imei", required=True)
    export.add_argument("--cycle", type=int, required=True)
    export.add_argument("--out", default=".")
    export.add_argument(
        "--resolution",
        choices=sorted(TEMPERATURE_RESOLUTIONS),
        default=DEFAULT_RESOLUTION,
    )
    return parser


async def async_main(argv: list[str] | None = None) -> int:
    """Async entrypoint: parse args, load config, run one command."""
    args = build_parser().parse_args(argv)

    from analytics.src.config import AnalyticsSettings

    settings = AnalyticsSettings()
    configure_logging(settings.log_level)
    log_config_summary(settings)
    client = build_client(settings)

    if args.imei not in client.allowed_imeis:
        logger.warning("imei=%s is not in ALLOWED_IMEIS", args.imei)

    try:
        if args.command == "dashboard":
            return await run_dashboard(client, args.imei, args.cycle, args.resolution)
        if args.command == "trends":
            limit = args.limit if args.limit is not None else settings.trend_cycle_limit
            return await run_trends(client, args.imei, limit)
        return await run_export(client, args.imei, args.cycle, args.out, args.resolution)
    except UpstreamError:
        logger.error("Snapshot API failure", exc_info=True)
        return EXIT_UPSTREAM_ERROR


def main() -> None:
    """Synchronous entrypoint for the CLI."""
    sys.exit(asyncio.run(async_main()))


if __name__ == "__main__":
    main()
