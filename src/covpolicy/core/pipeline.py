"""Compose classification, aggregation, and evaluation into one pass.

Nothing here touches the filesystem: callers hand in already-loaded
configuration, coverage, annotations, and history.
"""

from __future__ import annotations

import datetime
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from covpolicy import logger
from covpolicy.core.aggregate import (
    AggregationInput,
    CoverageAggregator,
    build_domain_excludes,
    normalize_coverage_map,
)
from covpolicy.core.classify import PathNormalizer, resolve_domain_dirs
from covpolicy.core.history import DomainEntry, HistoryEntry
from covpolicy.core.model import Policy
from covpolicy.core.policy import (
    PolicyEvaluator,
    domain_overlap_warnings,
    evaluate_file_rules,
    filter_domains_by_names,
    missing_coverage_warnings,
)
from covpolicy.errors import ConfigError

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from covpolicy.core.classify import Classification
    from covpolicy.core.config import Config
    from covpolicy.core.events import CoverageEvent
    from covpolicy.core.history import History
    from covpolicy.core.model import Annotation, CoverageStat, Domain, Result


@dataclass(frozen=True, slots=True)
class CoverageContext:
    """Coverage re-keyed by module-relative path plus the domain layout."""

    files: dict[str, CoverageStat]
    domains: tuple[Domain, ...]
    domain_dirs: dict[str, tuple[str, ...]]
    domain_coverage: dict[str, CoverageStat]
    annotations: Mapping[str, Annotation] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class CheckOutcome:
    result: Result
    events: tuple[CoverageEvent, ...]
    context: CoverageContext


def normalizer_for(config: Config) -> PathNormalizer:
    return PathNormalizer(module_root=config.module_root, module_path=config.module_path)


def _rekeyed(config: Config) -> PathNormalizer:
    # Keys are already module-relative; applying module_path again would strip
    # a real top-level directory that happens to share its name.
    return PathNormalizer(module_root=config.module_root)


def _aggregation_input(
    config: Config,
    files: Mapping[str, CoverageStat],
    domains: Sequence[Domain],
    annotations: Mapping[str, Annotation] | None,
) -> AggregationInput:
    return AggregationInput(
        file_coverage=files,
        domain_dirs=resolve_domain_dirs(domains, config.module_root),
        global_excludes=config.excludes,
        domain_excludes=build_domain_excludes(domains),
        annotations=annotations or {},
    )


def prepare(
    config: Config,
    file_coverage: Mapping[str, CoverageStat],
    *,
    annotations: Mapping[str, Annotation] | None = None,
    domains: Sequence[str] = (),
) -> CoverageContext:
    """Normalise *file_coverage* and aggregate it into the selected domains."""
    selected = filter_domains_by_names(config.policy.domains, domains)
    if domains and not selected:
        msg = f"no matching domains found for: {', '.join(domains)}"
        raise ConfigError(msg)
    unknown = sorted(set(domains) - {d.name for d in selected})
    if unknown:
        logger.warning("ignoring unknown domains: %s", ", ".join(unknown))

    files = normalize_coverage_map(file_coverage, normalizer_for(config))
    data = _aggregation_input(config, files, selected, annotations)
    domain_coverage = CoverageAggregator(_rekeyed(config)).aggregate(data)
    logger.info("aggregated %d files into %d domains", len(files), len(domain_coverage))
    return CoverageContext(
        files=files,
        domains=selected,
        domain_dirs=dict(data.domain_dirs),
        domain_coverage=domain_coverage,
        annotations=dict(annotations or {}),
    )


def check(
    config: Config,
    file_coverage: Mapping[str, CoverageStat],
    *,
    annotations: Mapping[str, Annotation] | None = None,
    domains: Sequence[str] = (),
    history: History | None = None,
) -> CheckOutcome:
    """Evaluate *file_coverage* against the configured domain and file policies."""
    ctx = prepare(config, file_coverage, annotations=annotations, domains=domains)

    warnings = [
        *domain_overlap_warnings(ctx.domain_dirs),
        *missing_coverage_warnings(ctx.domains, ctx.domain_coverage),
    ]
    files = evaluate_file_rules(
        ctx.files,
        config.file_rules,
        exclude=config.excludes,
        annotations=ctx.annotations,
    )
    evaluator = PolicyEvaluator(Policy(default_min=config.policy.default_min, domains=ctx.domains))
    result, events = evaluator.evaluate(ctx.domain_coverage, files=files, warnings=warnings)
    if history is not None:
        result = result.with_deltas(history)
    return CheckOutcome(result=result, events=events, context=ctx)


def classify(
    config: Config,
    file_coverage: Mapping[str, CoverageStat],
    *,
    annotations: Mapping[str, Annotation] | None = None,
) -> list[Classification]:
    files = normalize_coverage_map(file_coverage, normalizer_for(config))
    data = _aggregation_input(config, files, config.policy.domains, annotations)
    return CoverageAggregator(_rekeyed(config)).classify_files(data)


def snapshot(
    result: Result,
    *,
    timestamp: datetime.datetime | None = None,
    commit: str | None = None,
    branch: str | None = None,
) -> HistoryEntry:
    """Build a history entry from an evaluated result."""
    return HistoryEntry(
        timestamp=timestamp or datetime.datetime.now(datetime.UTC),
        overall=result.overall_percent(),
        domains={
            d.domain: DomainEntry(name=d.domain, percent=d.percent, min=d.required, status=d.status)
            for d in result.domains
        },
        commit=commit,
        branch=branch,
    )


__all__ = [
    "CheckOutcome",
    "CoverageContext",
    "check",
    "classify",
    "normalizer_for",
    "prepare",
    "snapshot",
]
