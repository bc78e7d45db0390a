"""Shared enumerations and constants used across covpolicy."""

from __future__ import annotations

from enum import StrEnum

# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class Status(StrEnum):
    """Outcome of comparing a coverage percentage with its requirement."""

    PASS = "PASS"
    WARN = "WARN"
    FAIL = "FAIL"


class TrendDirection(StrEnum):
    """Direction of a coverage change between two measurements."""

    UP = "up"
    DOWN = "down"
    STABLE = "stable"


class SuggestStrategy(StrEnum):
    """How aggressively suggested thresholds should track current coverage."""

    CURRENT = "current"
    AGGRESSIVE = "aggressive"
    CONSERVATIVE = "conservative"


FULL_COVERAGE: int = 100

# Changes within +/- this many percentage points count as stable.
STABILITY_BAND: float = 0.5

# Changes beyond this many percentage points raise improved/regressed events.
SIGNIFICANT_CHANGE: float = 1.0

OVERALL = "overall"


__all__ = [
    "FULL_COVERAGE",
    "OVERALL",
    "SIGNIFICANT_CHANGE",
    "STABILITY_BAND",
    "Status",
    "SuggestStrategy",
    "TrendDirection",
]
