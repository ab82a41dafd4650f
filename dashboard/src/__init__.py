"""
Dashboard service package: JSON endpoints over the cycle analytics pipeline.

CHANGELOG:
- 2026-10-19: Initial creation (STORY-011)

TODO:
- None
"""
