"""Validated value objects shared by the policy engine.

Every type here enforces its invariant at construction time and raises a
subclass of :class:`~covpolicy.errors.ValueObjectError` for invalid input, so a
live instance is always within its valid range.
"""

from __future__ import annotations

import math
import posixpath
from dataclasses import dataclass
from fnmatch import fnmatchcase
from typing import TYPE_CHECKING

from covpolicy.core.types import FULL_COVERAGE
from covpolicy.errors import EmptyDomainNameError, EmptyFilePathError, InvalidThresholdError

if TYPE_CHECKING:
    from collections.abc import Iterable


def round1(value: float) -> float:
    """Round *value* to one decimal place, halves away from zero.

    ``round()`` uses banker's rounding, which would turn ``80.25`` into ``80.2``.
    """
    rounded = math.floor(abs(value) * 10 + 0.5) / 10
    return -rounded if value < 0 and rounded else rounded


def match_glob(pattern: str, path: str) -> bool:
    """Return ``True`` if *path* matches the shell glob *pattern*.

    Wildcards never cross a ``/``: ``vendor/*`` matches ``vendor/lib.py`` but not
    ``vendor/pkg/lib.py``, and ``*.py`` only matches top-level files.
    """
    pattern_parts = pattern.split("/")
    path_parts = path.split("/")
    if len(pattern_parts) != len(path_parts):
        return False
    return all(fnmatchcase(part, pat) for part, pat in zip(path_parts, pattern_parts, strict=True))


def match_any_glob(patterns: Iterable[str], path: str) -> bool:
    return any(match_glob(pattern, path) for pattern in patterns)


@dataclass(frozen=True, slots=True, order=True)
class Threshold:
    """A required coverage percentage between 0 and 100 inclusive."""

    value: float

    def __post_init__(self) -> None:
        """Reject values outside the percentage range."""
        if math.isnan(self.value) or self.value < 0 or self.value > FULL_COVERAGE:
            msg = f"threshold must be between 0 and 100, got {self.value}"
            raise InvalidThresholdError(msg)
        object.__setattr__(self, "value", float(self.value))

    @classmethod
    def resolve(cls, value: float | None, default: float) -> Threshold:
        """Return a threshold for *value*, falling back to *default* when unset."""
        return cls(default if value is None else value)

    def is_met(self, percent: float) -> bool:
        return percent >= self.value

    def shortfall(self, percent: float) -> float:
        """Percentage points by which *percent* misses this threshold (0 when met)."""
        if self.is_met(percent):
            return 0.0
        return round1(self.value - percent)

    def __str__(self) -> str:
        return f"{self.value:.1f}%"


@dataclass(frozen=True, slots=True, order=True)
class Percentage:
    """A coverage percentage, always stored rounded to one decimal."""

    value: float

    def __post_init__(self) -> None:
        object.__setattr__(self, "value", round1(float(self.value)))

    @classmethod
    def from_ratio(cls, covered: int, total: int) -> Percentage:
        if total == 0:
            return cls(0.0)
        return cls(covered / total * FULL_COVERAGE)

    def meets(self, threshold: Threshold) -> bool:
        return threshold.is_met(self.value)

    def delta(self, other: Percentage) -> float:
        """Return ``self - other`` rounded to one decimal."""
        return round1(self.value - other.value)

    def is_zero(self) -> bool:
        return self.value == 0

    def __str__(self) -> str:
        return f"{self.value:.1f}%"


@dataclass(frozen=True, slots=True)
class DomainName:
    """Non-empty, whitespace-trimmed domain name."""

    value: str

    def __post_init__(self) -> None:
        trimmed = (self.value or "").strip()
        if not trimmed:
            msg = "domain name cannot be empty"
            raise EmptyDomainNameError(msg)
        object.__setattr__(self, "value", trimmed)

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True, slots=True)
class FilePath:
    """A cleaned, forward-slash file path."""

    value: str

    def __post_init__(self) -> None:
        if not self.value:
            msg = "file path cannot be empty"
            raise EmptyFilePathError(msg)
        object.__setattr__(self, "value", posixpath.normpath(self.value.replace("\\", "/")))

    @property
    def dir(self) -> FilePath:
        return FilePath(posixpath.dirname(self.value) or ".")

    @property
    def base(self) -> str:
        return posixpath.basename(self.value)

    def has_prefix(self, prefix: str) -> bool:
        return self.value.startswith(prefix)

    def matches(self, pattern: str) -> bool:
        return match_glob(pattern, self.value)

    def matches_any(self, patterns: Iterable[str]) -> bool:
        return match_any_glob(patterns, self.value)

    def __str__(self) -> str:
        return self.value


__all__ = [
    "DomainName",
    "FilePath",
    "Percentage",
    "Threshold",
    "match_any_glob",
    "match_glob",
    "round1",
]
