"""Fold per-file coverage into per-domain totals."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from covpolicy.core.classify import Classification, PathClassifier, PathNormalizer
from covpolicy.core.model import CoverageStat

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from covpolicy.core.model import Annotation, Domain


@dataclass(frozen=True, slots=True)
class AggregationInput:
    """Everything needed to attribute file coverage to domains."""

    file_coverage: Mapping[str, CoverageStat]
    domain_dirs: Mapping[str, Sequence[str]]
    global_excludes: Sequence[str] = ()
    domain_excludes: Mapping[str, Sequence[str]] = field(default_factory=dict)
    annotations: Mapping[str, Annotation] = field(default_factory=dict)


class CoverageAggregator:
    """Sum covered/total counts for every domain a file classifies into."""

    def __init__(self, normalizer: PathNormalizer | None = None) -> None:
        self.normalizer = normalizer or PathNormalizer()

    def _classifier(self, data: AggregationInput) -> PathClassifier:
        return PathClassifier(
            data.domain_dirs,
            normalizer=self.normalizer,
            global_excludes=data.global_excludes,
            domain_excludes=data.domain_excludes,
            annotations=data.annotations,
        )

    def aggregate(self, data: AggregationInput) -> dict[str, CoverageStat]:
        classifier = self._classifier(data)
        result: dict[str, CoverageStat] = {}
        for key, stat in data.file_coverage.items():
            for name in classifier.classify(key).domains:
                result[name] = result.get(name, CoverageStat()) + stat
        return result

    def classify_files(self, data: AggregationInput) -> list[Classification]:
        """Explain how each file is classified without aggregating anything.

        Files are reported in sorted order; a file matching several domains
        yields one record per domain.
        """
        classifier = self._classifier(data)
        out: list[Classification] = []
        for key in sorted(data.file_coverage):
            out.extend(classifier.classify(key).records)
        return out


def aggregate_by_domain(
    files: Mapping[str, CoverageStat],
    domain_dirs: Mapping[str, Sequence[str]],
    global_excludes: Sequence[str] = (),
    domain_excludes: Mapping[str, Sequence[str]] | None = None,
    annotations: Mapping[str, Annotation] | None = None,
    *,
    normalizer: PathNormalizer | None = None,
) -> dict[str, CoverageStat]:
    data = AggregationInput(
        file_coverage=files,
        domain_dirs=domain_dirs,
        global_excludes=global_excludes,
        domain_excludes=domain_excludes or {},
        annotations=annotations or {},
    )
    return CoverageAggregator(normalizer).aggregate(data)


def build_domain_excludes(domains: Sequence[Domain]) -> dict[str, tuple[str, ...]]:
    return {d.name: tuple(d.exclude) for d in domains if d.exclude}


def normalize_coverage_map(
    files: Mapping[str, CoverageStat], normalizer: PathNormalizer
) -> dict[str, CoverageStat]:
    """Re-key *files* by module-relative path, merging keys that collapse together."""
    out: dict[str, CoverageStat] = {}
    for key, stat in files.items():
        rel = normalizer.relative_key(key)
        out[rel] = out.get(rel, CoverageStat()) + stat
    return out


def total_stat(stats: Mapping[str, CoverageStat]) -> CoverageStat:
    total = CoverageStat()
    for stat in stats.values():
        total += stat
    return total


__all__ = [
    "AggregationInput",
    "CoverageAggregator",
    "aggregate_by_domain",
    "build_domain_excludes",
    "normalize_coverage_map",
    "total_stat",
]
