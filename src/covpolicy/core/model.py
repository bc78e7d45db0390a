from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING

from covpolicy.core.types import FULL_COVERAGE, Status
from covpolicy.core.values import round1

if TYPE_CHECKING:
    from covpolicy.core.history import History

# -----------------------------------------------------------------------------
# Inputs
# -----------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class CoverageStat:
    """Covered vs total statement counts.

    ``covered <= total`` is expected but not enforced; counts come straight from
    the coverage report.
    """

    covered: int = 0
    total: int = 0

    def percent(self) -> float:
        """Raw (unrounded) coverage percentage, 0 when there are no statements."""
        if self.total == 0:
            return 0.0
        return self.covered / self.total * FULL_COVERAGE

    def percent_rounded(self) -> float:
        return round1(self.percent())

    @property
    def uncovered(self) -> int:
        return self.total - self.covered

    def is_empty(self) -> bool:
        return self.total == 0

    def __add__(self, other: CoverageStat) -> CoverageStat:
        return CoverageStat(covered=self.covered + other.covered, total=self.total + other.total)


@dataclass(frozen=True, slots=True)
class Domain:
    """A named slice of the source tree and its coverage requirement.

    Fields
    ------
    match:
        Directory-prefix patterns, resolved by
        :func:`covpolicy.core.classify.resolve_domain_dirs`.
    min:
        Minimum percentage; ``None`` means "use the policy default".
    warn:
        Optional higher bar; coverage between ``min`` and ``warn`` yields WARN.
    exclude:
        Globs (relative to the module root) removed from this domain only.
    """

    name: str
    match: tuple[str, ...] = ()
    min: float | None = None
    warn: float | None = None
    exclude: tuple[str, ...] = ()

    def required(self, default_min: float) -> float:
        return default_min if self.min is None else self.min

    def has_warn(self) -> bool:
        return self.warn is not None


@dataclass(frozen=True, slots=True)
class Policy:
    default_min: float
    domains: tuple[Domain, ...] = ()

    def domain(self, name: str) -> Domain | None:
        for d in self.domains:
            if d.name == name:
                return d
        return None


@dataclass(frozen=True, slots=True)
class Annotation:
    """Per-file override keyed by module-relative path."""

    ignore: bool = False
    domain: str | None = None


@dataclass(frozen=True, slots=True)
class FileRule:
    """Minimum coverage for every file matched by one of ``match``."""

    match: tuple[str, ...]
    min: float


# -----------------------------------------------------------------------------
# Results
# -----------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class DomainResult:
    domain: str
    covered: int
    total: int
    percent: float
    required: float
    status: Status
    shortfall: float = 0.0
    delta: float | None = None  # change since the latest history entry

    @property
    def stat(self) -> CoverageStat:
        return CoverageStat(covered=self.covered, total=self.total)

    def is_passing(self) -> bool:
        return self.status is Status.PASS

    def is_failing(self) -> bool:
        return self.status is Status.FAIL

    def is_warning(self) -> bool:
        return self.status is Status.WARN


@dataclass(frozen=True, slots=True)
class FileResult:
    file: str
    covered: int
    total: int
    percent: float
    required: float
    status: Status
    shortfall: float = 0.0

    @property
    def stat(self) -> CoverageStat:
        return CoverageStat(covered=self.covered, total=self.total)

    def is_passing(self) -> bool:
        return self.status is Status.PASS

    def is_failing(self) -> bool:
        return self.status is Status.FAIL


@dataclass(frozen=True, slots=True)
class Result:
    """Outcome of one policy evaluation, consumed by reporters.

    ``passed`` is derived from ``domains`` and ``files``; there is no separate flag.
    """

    domains: tuple[DomainResult, ...] = ()
    files: tuple[FileResult, ...] = ()
    warnings: tuple[str, ...] = field(default=())

    @property
    def passed(self) -> bool:
        return not any(d.is_failing() for d in self.domains) and not any(f.is_failing() for f in self.files)

    def total_covered(self) -> int:
        return sum(d.covered for d in self.domains)

    def total_statements(self) -> int:
        return sum(d.total for d in self.domains)

    def overall_percent(self) -> float:
        total = self.total_statements()
        if total == 0:
            return 0.0
        return round1(self.total_covered() / total * FULL_COVERAGE)

    def domain(self, name: str) -> DomainResult | None:
        for d in self.domains:
            if d.domain == name:
                return d
        return None

    def passing_domains(self) -> list[DomainResult]:
        return [d for d in self.domains if d.is_passing()]

    def failing_domains(self) -> list[DomainResult]:
        return [d for d in self.domains if d.is_failing()]

    def warning_domains(self) -> list[DomainResult]:
        return [d for d in self.domains if d.is_warning()]

    def failing_files(self) -> list[FileResult]:
        return [f for f in self.files if f.is_failing()]

    def summary(self) -> str:
        return "All coverage thresholds met" if self.passed else "Coverage thresholds not met"

    def with_warnings(self, *warnings: str) -> Result:
        return replace(self, warnings=(*self.warnings, *warnings))

    def with_deltas(self, history: History) -> Result:
        """Return a copy whose domains carry the change since the latest history entry.

        Domains absent from the latest entry keep ``delta=None``.
        """
        latest = history.latest_entry()
        if latest is None:
            return self
        domains = []
        for d in self.domains:
            prev = latest.domains.get(d.domain)
            if prev is None:
                domains.append(d)
            else:
                domains.append(replace(d, delta=round1(d.percent - prev.percent)))
        return replace(self, domains=tuple(domains))


__all__ = [
    "Annotation",
    "CoverageStat",
    "Domain",
    "DomainResult",
    "FileResult",
    "FileRule",
    "Policy",
    "Result",
]
