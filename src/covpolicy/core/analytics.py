"""Threshold suggestions, coverage debt, and coverage comparisons."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from covpolicy.core.aggregate import total_stat
from covpolicy.core.model import CoverageStat
from covpolicy.core.types import FULL_COVERAGE, SuggestStrategy
from covpolicy.core.values import match_any_glob, round1

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from covpolicy.core.model import Annotation, FileRule, Policy

_SUGGEST_FLOOR = 50.0
_SUGGEST_CEILING = 95.0
_SUGGEST_BUFFER = 2.0
_SUGGEST_STEP = 5.0

# Per-file changes at or below this many points count as unchanged.
_COMPARE_EPSILON = 0.1


# -----------------------------------------------------------------------------
# Suggestions
# -----------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Suggestion:
    domain: str
    current_percent: float
    current_min: float
    suggested_min: float
    reason: str


def suggest_min(current: float, current_min: float, strategy: SuggestStrategy) -> tuple[float, str]:
    """Return ``(suggested_min, reason)`` for one domain."""
    if strategy is SuggestStrategy.AGGRESSIVE:
        suggested = min(current + _SUGGEST_STEP, _SUGGEST_CEILING)
        if suggested > current_min:
            return round1(suggested), "push for improvement (+5%)"
        return current_min, "already at or above aggressive target"

    if strategy is SuggestStrategy.CONSERVATIVE:
        suggested = max(current - _SUGGEST_STEP, current_min, _SUGGEST_FLOOR)
        return round1(suggested), "gradual improvement target"

    suggested = current - _SUGGEST_BUFFER
    if suggested < current_min:
        return current_min, "keep current threshold (coverage near minimum)"
    return round1(max(suggested, _SUGGEST_FLOOR)), "based on current coverage (-2% buffer)"


def suggest_thresholds(
    policy: Policy,
    coverage: Mapping[str, CoverageStat],
    strategy: SuggestStrategy = SuggestStrategy.CURRENT,
) -> list[Suggestion]:
    out: list[Suggestion] = []
    for d in policy.domains:
        current = coverage.get(d.name, CoverageStat()).percent_rounded()
        current_min = d.required(policy.default_min)
        suggested, reason = suggest_min(current, current_min, strategy)
        out.append(
            Suggestion(
                domain=d.name,
                current_percent=current,
                current_min=current_min,
                suggested_min=suggested,
                reason=reason,
            )
        )
    return out


# -----------------------------------------------------------------------------
# Debt
# -----------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class DebtItem:
    name: str
    kind: str  # "domain" or "file"
    current: float
    required: float
    shortfall: float
    lines: int  # uncovered statements that would have to be covered


@dataclass(frozen=True, slots=True)
class DebtResult:
    items: tuple[DebtItem, ...] = ()
    total_debt: float = 0.0
    total_lines: int = 0
    health_score: float = float(FULL_COVERAGE)


def _lines_needed(stat: CoverageStat, required: float) -> int:
    """Smallest number of extra covered statements that reaches *required*."""
    if stat.total == 0:
        return 0
    target = required * stat.total / FULL_COVERAGE
    return min(max(math.ceil(target - stat.covered), 0), stat.uncovered)


def coverage_debt(
    policy: Policy,
    domain_coverage: Mapping[str, CoverageStat],
    *,
    files: Mapping[str, CoverageStat] | None = None,
    file_rules: Sequence[FileRule] = (),
    exclude: Sequence[str] = (),
    annotations: Mapping[str, Annotation] | None = None,
) -> DebtResult:
    """Sum how far each domain and file-rule target is below its requirement."""
    items: list[DebtItem] = []
    passing = failing = 0

    for d in policy.domains:
        stat = domain_coverage.get(d.name, CoverageStat())
        current = stat.percent_rounded()
        required = d.required(policy.default_min)
        if current >= required:
            passing += 1
            continue
        failing += 1
        items.append(
            DebtItem(
                name=d.name,
                kind="domain",
                current=current,
                required=required,
                shortfall=round1(required - current),
                lines=_lines_needed(stat, required),
            )
        )

    annotations = annotations or {}
    for rule in file_rules:
        for file, stat in sorted((files or {}).items()):
            if match_any_glob(exclude, file):
                continue
            ann = annotations.get(file)
            if ann is not None and ann.ignore:
                continue
            if not match_any_glob(rule.match, file):
                continue
            current = stat.percent_rounded()
            if current >= rule.min:
                passing += 1
                continue
            failing += 1
            items.append(
                DebtItem(
                    name=file,
                    kind="file",
                    current=current,
                    required=rule.min,
                    shortfall=round1(rule.min - current),
                    lines=_lines_needed(stat, rule.min),
                )
            )

    items.sort(key=lambda item: item.shortfall, reverse=True)
    evaluated = passing + failing
    health = round1(passing / evaluated * FULL_COVERAGE) if evaluated else float(FULL_COVERAGE)
    return DebtResult(
        items=tuple(items),
        total_debt=round1(sum(i.shortfall for i in items)),
        total_lines=sum(i.lines for i in items),
        health_score=health,
    )


# -----------------------------------------------------------------------------
# Comparison
# -----------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class FileDelta:
    file: str
    base_percent: float
    head_percent: float
    delta: float


@dataclass(frozen=True, slots=True)
class CompareResult:
    base_overall: float
    head_overall: float
    delta: float
    improved: tuple[FileDelta, ...] = ()
    regressed: tuple[FileDelta, ...] = ()
    unchanged: int = 0
    domain_deltas: dict[str, float] = field(default_factory=dict)


def compare_coverage(
    base: Mapping[str, CoverageStat],
    head: Mapping[str, CoverageStat],
    *,
    base_domains: Mapping[str, CoverageStat] | None = None,
    head_domains: Mapping[str, CoverageStat] | None = None,
) -> CompareResult:
    """Compare two per-file coverage maps keyed the same way.

    Files present on one side only count as 0% on the other.
    """
    base_overall = total_stat(base).percent_rounded()
    head_overall = total_stat(head).percent_rounded()

    improved: list[FileDelta] = []
    regressed: list[FileDelta] = []
    unchanged = 0
    for file in sorted(set(base) | set(head)):
        before = base.get(file, CoverageStat()).percent_rounded()
        after = head.get(file, CoverageStat()).percent_rounded()
        delta = round1(after - before)
        if delta > _COMPARE_EPSILON:
            improved.append(FileDelta(file, before, after, delta))
        elif delta < -_COMPARE_EPSILON:
            regressed.append(FileDelta(file, before, after, delta))
        else:
            unchanged += 1

    improved.sort(key=lambda fd: fd.delta, reverse=True)
    regressed.sort(key=lambda fd: fd.delta)

    domain_deltas: dict[str, float] = {}
    if base_domains is not None and head_domains is not None:
        for name in dict.fromkeys([*base_domains, *head_domains]):
            before_stat = base_domains.get(name, CoverageStat())
            after_stat = head_domains.get(name, CoverageStat())
            domain_deltas[name] = round1(after_stat.percent() - before_stat.percent())

    return CompareResult(
        base_overall=base_overall,
        head_overall=head_overall,
        delta=round1(head_overall - base_overall),
        improved=tuple(improved),
        regressed=tuple(regressed),
        unchanged=unchanged,
        domain_deltas=domain_deltas,
    )


__all__ = [
    "CompareResult",
    "DebtItem",
    "DebtResult",
    "FileDelta",
    "Suggestion",
    "compare_coverage",
    "coverage_debt",
    "suggest_min",
    "suggest_thresholds",
]
