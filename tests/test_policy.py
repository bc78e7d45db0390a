import datetime

import pytest

from covpolicy.core.events import CoverageEvaluatedEvent, ThresholdViolatedEvent
from covpolicy.core.history import DomainEntry, History, HistoryEntry
from covpolicy.core.model import Annotation, CoverageStat, Domain, FileRule, Policy, Result
from covpolicy.core.policy import (
    PolicyEvaluator,
    domain_overlap_warnings,
    evaluate,
    evaluate_file_rules,
    filter_domains_by_names,
    missing_coverage_warnings,
)
from covpolicy.core.types import Status
from covpolicy.errors import EmptyDomainNameError, InvalidThresholdError


def test_core_fails_and_api_passes(core_api_policy: Policy) -> None:
    coverage = {"core": CoverageStat(16, 20), "api": CoverageStat(8, 10)}
    result, events = evaluate(core_api_policy, coverage)

    core, api = result.domains
    assert (core.domain, core.percent, core.required, core.status, core.shortfall) == (
        "core",
        80.0,
        85.0,
        Status.FAIL,
        5.0,
    )
    assert (api.domain, api.percent, api.required, api.status, api.shortfall) == (
        "api",
        80.0,
        80.0,
        Status.PASS,
        0.0,
    )
    assert result.passed is False

    violations = [e for e in events if isinstance(e, ThresholdViolatedEvent)]
    assert [(v.domain, v.actual, v.required, v.shortfall) for v in violations] == [("core", 80.0, 85.0, 5.0)]
    summary = events[-1]
    assert isinstance(summary, CoverageEvaluatedEvent)
    assert summary.passed is False
    assert summary.domain_count == 2
    assert summary.failed_count == 1
    assert summary.overall_percent == 80.0


def test_warn_band_passes_with_warning() -> None:
    policy = Policy(default_min=0, domains=(Domain(name="core", match=("src",), min=80, warn=90),))
    result, events = evaluate(policy, {"core": CoverageStat(85, 100)})
    assert result.domains[0].status is Status.WARN
    assert result.passed is True
    assert result.warning_domains() == [result.domains[0]]
    assert not any(isinstance(e, ThresholdViolatedEvent) for e in events)


@pytest.mark.parametrize("required", [0.0, 50.0, 80.0, 100.0])
def test_status_is_monotonic_in_percent(required: float) -> None:
    rank = {Status.FAIL: 0, Status.WARN: 1, Status.PASS: 2}
    policy = Policy(default_min=required, domains=(Domain(name="d", match=(".",), warn=min(required + 5, 100)),))
    evaluator = PolicyEvaluator(policy)
    previous = -1
    for covered in range(101):
        result, _ = evaluator.evaluate({"d": CoverageStat(covered, 100)})
        current = rank[result.domains[0].status]
        assert current >= previous
        previous = current


def test_missing_domain_coverage_is_zero_percent(core_api_policy: Policy) -> None:
    result, _ = evaluate(core_api_policy, {})
    assert [d.percent for d in result.domains] == [0.0, 0.0]
    assert all(d.status is Status.FAIL for d in result.domains)
    assert result.overall_percent() == 0.0


def test_evaluator_validates_policy_on_construction() -> None:
    with pytest.raises(InvalidThresholdError):
        PolicyEvaluator(Policy(default_min=120))
    with pytest.raises(InvalidThresholdError):
        PolicyEvaluator(Policy(default_min=80, domains=(Domain(name="x", min=-1),)))
    with pytest.raises(EmptyDomainNameError):
        PolicyEvaluator(Policy(default_min=80, domains=(Domain(name=" "),)))


def test_evaluator_collects_and_clears_events(core_api_policy: Policy) -> None:
    evaluator = PolicyEvaluator(core_api_policy, name="ci")
    _, first = evaluator.evaluate({"core": CoverageStat(9, 10), "api": CoverageStat(9, 10)})
    _, second = evaluator.evaluate({"core": CoverageStat(1, 10), "api": CoverageStat(9, 10)})
    assert len(first) == 1
    assert len(second) == 2
    assert evaluator.events() == (*first, *second)
    assert "ci passed" in first[0].message
    evaluator.clear_events()
    assert evaluator.events() == ()


def test_result_helpers(core_api_policy: Policy) -> None:
    coverage = {"core": CoverageStat(9, 10), "api": CoverageStat(1, 10)}
    result, _ = evaluate(core_api_policy, coverage, warnings=["w1"])
    assert result.total_covered() == 10
    assert result.total_statements() == 20
    assert result.overall_percent() == 50.0
    assert [d.domain for d in result.passing_domains()] == ["core"]
    assert [d.domain for d in result.failing_domains()] == ["api"]
    assert result.domain("api") is result.domains[1]
    assert result.domain("nope") is None
    assert result.summary() == "Coverage thresholds not met"
    assert result.with_warnings("w2").warnings == ("w1", "w2")


def test_overall_percent_of_empty_result() -> None:
    assert Result().overall_percent() == 0.0
    assert Result().passed is True


def test_with_deltas_uses_latest_entry() -> None:
    policy = Policy(default_min=0, domains=(Domain(name="core", match=("src",)), Domain(name="new", match=("n",))))
    result, _ = evaluate(policy, {"core": CoverageStat(80, 100), "new": CoverageStat(1, 2)})

    def snap(day: int, pct: float) -> HistoryEntry:
        return HistoryEntry(
            timestamp=datetime.datetime(2024, 1, day, tzinfo=datetime.UTC),
            overall=pct,
            domains={"core": DomainEntry(name="core", percent=pct, min=0, status=Status.PASS)},
        )

    history = History.of([snap(5, 75.5), snap(1, 10.0)])
    with_deltas = result.with_deltas(history)
    assert with_deltas.domain("core").delta == 4.5
    assert with_deltas.domain("new").delta is None
    assert result.with_deltas(History()) is result


# --------------------------------------------------------------------------- #
# file rules                                                                  #
# --------------------------------------------------------------------------- #


def test_file_rule_effective_min_is_max_of_matching_rules() -> None:
    rules = [FileRule(match=("*.go",), min=70), FileRule(match=("service.go",), min=80)]
    results = evaluate_file_rules({"service.go": CoverageStat(9, 10)}, rules)
    assert len(results) == 1
    assert results[0].required == 80.0
    assert results[0].status is Status.PASS


def test_file_rules_skip_excluded_ignored_and_unmatched_files() -> None:
    files = {
        "a.py": CoverageStat(1, 10),
        "b.py": CoverageStat(1, 10),
        "c.py": CoverageStat(1, 10),
        "README.md": CoverageStat(0, 1),
    }
    results = evaluate_file_rules(
        files,
        [FileRule(match=("*.py",), min=50)],
        exclude=("b.py",),
        annotations={"c.py": Annotation(ignore=True)},
    )
    assert [(r.file, r.status, r.shortfall) for r in results] == [("a.py", Status.FAIL, 40.0)]


def test_file_rules_results_are_sorted_and_fail_result() -> None:
    files = {"z.py": CoverageStat(1, 1), "a.py": CoverageStat(0, 4)}
    results = evaluate_file_rules(files, [FileRule(match=("*.py",), min=0)])
    assert [r.file for r in results] == ["a.py", "z.py"]
    assert all(r.status is Status.PASS for r in results)

    result, _ = evaluate(
        Policy(default_min=0, domains=(Domain(name="d", match=(".",)),)),
        {"d": CoverageStat(1, 1)},
        files=evaluate_file_rules(files, [FileRule(match=("a.py",), min=50)]),
    )
    assert result.passed is False
    assert [f.file for f in result.failing_files()] == ["a.py"]


def test_no_rules_no_results() -> None:
    assert evaluate_file_rules({"a.py": CoverageStat(1, 1)}, []) == ()


# --------------------------------------------------------------------------- #
# warnings and filters                                                        #
# --------------------------------------------------------------------------- #


def test_overlap_warning_lists_sorted_domains() -> None:
    dirs = {"zeta": ("src/shared", "src/z"), "alpha": ("src/shared/",), "core": ("src/core",)}
    assert domain_overlap_warnings(dirs) == ["directory src/shared belongs to alpha, zeta domains"]


def test_no_overlap_no_warnings() -> None:
    assert domain_overlap_warnings({"a": ("x",), "b": ("y",)}) == []


def test_missing_coverage_warning(core_api_policy: Policy) -> None:
    assert missing_coverage_warnings(core_api_policy.domains, {"core": CoverageStat(1, 1)}) == [
        "coverage report did not include any files for domains: api"
    ]
    assert missing_coverage_warnings(core_api_policy.domains, {"core": CoverageStat(), "api": CoverageStat()}) == []


def test_domain_name_filter(core_api_policy: Policy) -> None:
    assert filter_domains_by_names(core_api_policy.domains, []) == core_api_policy.domains
    assert [d.name for d in filter_domains_by_names(core_api_policy.domains, ["api", "ghost"])] == ["api"]
