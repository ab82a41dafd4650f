"""
Cycle analytics package for battery telemetry dashboards.

Fetches per-cycle snapshots from the upstream snapshot API, repairs their
inconsistent shapes, and derives the single-cycle metrics and multi-cycle
trend series the dashboard views display.

CHANGELOG:
- 2026-10-19: Initial creation (STORY-001)

TODO:
- None
"""
