"""Coverage policy evaluation.

Domain rules
------------
For each configured domain, in declaration order::

    required  = domain.min or policy.default_min
    percent   = round1(stat.percent())
    status    = FAIL if percent < required
                WARN if domain.warn is set and percent < domain.warn
                PASS otherwise
    shortfall = max(0, round1(required - percent))

File rules
----------
Every file matched by any rule must meet the *largest* ``min`` among the
rules that match it. Excluded and annotation-ignored files are skipped.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from covpolicy import logger
from covpolicy.core.events import (
    CoverageEvaluatedEvent,
    CoverageEvent,
    EventCollector,
    ThresholdViolatedEvent,
)
from covpolicy.core.model import CoverageStat, DomainResult, FileResult, Result
from covpolicy.core.types import Status
from covpolicy.core.values import DomainName, Percentage, Threshold, match_any_glob, round1

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from covpolicy.core.model import Annotation, Domain, FileRule, Policy


@dataclass(frozen=True, slots=True)
class DomainSpec:
    """A domain whose thresholds have been validated."""

    name: DomainName
    match: tuple[str, ...]
    min: Threshold
    warn: Threshold | None
    exclude: tuple[str, ...]

    @classmethod
    def from_domain(cls, domain: Domain, default_min: Threshold) -> DomainSpec:
        warn = Threshold(domain.warn) if domain.warn is not None else None
        return cls(
            name=DomainName(domain.name),
            match=tuple(domain.match),
            min=Threshold.resolve(domain.min, default_min.value),
            warn=warn,
            exclude=tuple(domain.exclude),
        )

    def status_for(self, percent: Percentage) -> Status:
        if not percent.meets(self.min):
            return Status.FAIL
        if self.warn is not None and not percent.meets(self.warn):
            return Status.WARN
        return Status.PASS


class PolicyEvaluator:
    """Evaluate aggregated domain coverage against a validated policy.

    Construction validates every threshold and domain name and raises a
    :class:`~covpolicy.errors.ValueObjectError` for bad input. Each call to
    :meth:`evaluate` returns its own events and also appends them to the
    evaluator's :class:`EventCollector`.
    """

    def __init__(self, policy: Policy, *, name: str = "default") -> None:
        self.name = name
        self.default_min = Threshold(policy.default_min)
        self.specs = tuple(DomainSpec.from_domain(d, self.default_min) for d in policy.domains)
        self._events = EventCollector()

    def evaluate(
        self,
        coverage: Mapping[str, CoverageStat],
        *,
        files: Sequence[FileResult] = (),
        warnings: Sequence[str] = (),
    ) -> tuple[Result, tuple[CoverageEvent, ...]]:
        events: list[CoverageEvent] = []
        domains: list[DomainResult] = []

        for spec in self.specs:
            name = str(spec.name)
            stat = coverage.get(name, CoverageStat())
            percent = Percentage(stat.percent())
            status = spec.status_for(percent)
            if status is Status.FAIL:
                events.append(ThresholdViolatedEvent.create(name, percent.value, spec.min.value))
            logger.debug("domain %s: %s (required %s) -> %s", name, percent, spec.min, status)
            domains.append(
                DomainResult(
                    domain=name,
                    covered=stat.covered,
                    total=stat.total,
                    percent=percent.value,
                    required=spec.min.value,
                    status=status,
                    shortfall=spec.min.shortfall(percent.value),
                )
            )

        result = Result(domains=tuple(domains), files=tuple(files), warnings=tuple(warnings))
        events.append(
            CoverageEvaluatedEvent(
                policy_name=self.name,
                overall_percent=result.overall_percent(),
                passed=result.passed,
                domain_count=len(domains),
                failed_count=len(result.failing_domains()),
            )
        )
        self._events.extend(events)
        return result, tuple(events)

    def events(self) -> tuple[CoverageEvent, ...]:
        return self._events.events()

    def clear_events(self) -> None:
        self._events.clear()


def evaluate(
    policy: Policy,
    coverage: Mapping[str, CoverageStat],
    *,
    files: Sequence[FileResult] = (),
    warnings: Sequence[str] = (),
) -> tuple[Result, tuple[CoverageEvent, ...]]:
    """One-shot evaluation with a throwaway :class:`PolicyEvaluator`."""
    return PolicyEvaluator(policy).evaluate(coverage, files=files, warnings=warnings)


def evaluate_file_rules(
    files: Mapping[str, CoverageStat],
    rules: Sequence[FileRule],
    *,
    exclude: Sequence[str] = (),
    annotations: Mapping[str, Annotation] | None = None,
) -> tuple[FileResult, ...]:
    """Evaluate per-file minimums; *files* must be keyed by module-relative path.

    Results are sorted by file name. Files matched by no rule are not reported.
    """
    if not rules:
        return ()
    annotations = annotations or {}
    min_by_file: dict[str, float] = {}
    for file in files:
        if match_any_glob(exclude, file):
            continue
        ann = annotations.get(file)
        if ann is not None and ann.ignore:
            continue
        for rule in rules:
            if match_any_glob(rule.match, file):
                min_by_file[file] = max(min_by_file.get(file, rule.min), rule.min)

    results: list[FileResult] = []
    for file in sorted(min_by_file):
        stat = files[file]
        required = Threshold(min_by_file[file])
        percent = round1(stat.percent())
        results.append(
            FileResult(
                file=file,
                covered=stat.covered,
                total=stat.total,
                percent=percent,
                required=required.value,
                status=Status.PASS if required.is_met(percent) else Status.FAIL,
                shortfall=required.shortfall(percent),
            )
        )
    return tuple(results)


def domain_overlap_warnings(domain_dirs: Mapping[str, Sequence[str]]) -> list[str]:
    """Warn about directories claimed by more than one domain."""
    owners: dict[str, list[str]] = {}
    for name, dirs in domain_dirs.items():
        for directory in dict.fromkeys(dirs):
            owners.setdefault(directory.rstrip("/") or "/", []).append(name)
    warnings = [
        f"directory {directory} belongs to {', '.join(sorted(names))} domains"
        for directory, names in owners.items()
        if len(names) > 1
    ]
    return sorted(warnings)


def missing_coverage_warnings(domains: Sequence[Domain], coverage: Mapping[str, CoverageStat]) -> list[str]:
    """Warn about configured domains that received no coverage records at all."""
    missing = sorted(d.name for d in domains if d.name not in coverage)
    if not missing:
        return []
    return [f"coverage report did not include any files for domains: {', '.join(missing)}"]


def filter_domains_by_names(domains: Sequence[Domain], names: Sequence[str]) -> tuple[Domain, ...]:
    """Keep only *names* (in declaration order); an empty *names* keeps everything."""
    if not names:
        return tuple(domains)
    wanted = set(names)
    return tuple(d for d in domains if d.name in wanted)


__all__ = [
    "DomainSpec",
    "PolicyEvaluator",
    "domain_overlap_warnings",
    "evaluate",
    "evaluate_file_rules",
    "filter_domains_by_names",
    "missing_coverage_warnings",
]
