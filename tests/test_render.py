import datetime
import json
from dataclasses import replace

import pytest
from jsonschema import ValidationError, validate

from covpolicy import __version__
from covpolicy.core.analytics import CompareResult, DebtItem, DebtResult, FileDelta, Suggestion
from covpolicy.core.classify import REASON_NO_MATCH, Classification
from covpolicy.core.config import get_schema
from covpolicy.core.history import calculate_trend
from covpolicy.core.model import CoverageStat, FileRule, Policy, Result
from covpolicy.core.policy import evaluate, evaluate_file_rules
from covpolicy.core.trends import DomainTrend, Forecast, HistoryAnalysis, TrendAnalysis
from covpolicy.core.values import Percentage
from covpolicy.render import format_json, render_result
from covpolicy.render.badge import BadgeStyle, badge_color, format_badge, percent_text
from covpolicy.render.html import format_html
from covpolicy.render.json import result_payload
from covpolicy.render.text import (
    render_classifications,
    render_compare,
    render_debt,
    render_events,
    render_history_analysis,
    render_suggestions,
    render_trend,
)


@pytest.fixture
def failing_result(core_api_policy: Policy) -> Result:
    files = evaluate_file_rules({"src/core/a.py": CoverageStat(1, 4)}, [FileRule(match=("src/core/*",), min=50)])
    result, _ = evaluate(
        core_api_policy,
        {"core": CoverageStat(16, 20), "api": CoverageStat(8, 10)},
        files=files,
        warnings=["coverage report did not include any files for domains: [docs]"],
    )
    return result


def test_render_result_plain_text(failing_result: Result) -> None:
    out = render_result(failing_result)
    assert "Coverage Policy" in out
    assert "core" in out
    assert "80.0%" in out
    assert "85.0%" in out
    assert "FAIL" in out
    assert "Overall" in out
    assert "File Rules" in out
    assert "src/core/a.py" in out
    assert "warning: coverage report did not include any files for domains: [docs]" in out
    assert out.endswith("Coverage thresholds not met")
    assert "Delta" not in out
    assert "\x1b[" not in out


def test_render_result_color_and_hidden_files(failing_result: Result) -> None:
    out = render_result(failing_result, color=True, show_files=False)
    assert "\x1b[" in out
    assert "File Rules" not in out


def test_render_result_shows_deltas(core_api_policy: Policy) -> None:
    result, _ = evaluate(core_api_policy, {"core": CoverageStat(9, 10), "api": CoverageStat(9, 10)})
    core, api = result.domains
    result = Result(domains=(replace(core, delta=2.5), api))
    out = render_result(result)
    assert "Delta" in out
    assert "+2.5" in out
    assert out.endswith("All coverage thresholds met")


def test_json_payload_matches_schema(failing_result: Result) -> None:
    payload = json.loads(format_json(failing_result))
    validate(payload, get_schema("v1"))
    assert payload["schema_version"] == 1
    assert payload["tool"] == {"name": "covpolicy", "version": __version__}
    assert payload["passed"] is False
    assert payload["overall"] == 80.0
    assert [d["domain"] for d in payload["domains"]] == ["core", "api"]
    assert payload["domains"][0]["status"] == "FAIL"
    assert payload["domains"][0]["shortfall"] == 5.0
    assert "delta" not in payload["domains"][0]
    assert payload["files"][0]["file"] == "src/core/a.py"
    assert payload["files"][0]["status"] == "FAIL"
    assert len(payload["warnings"]) == 1


def test_json_output_is_stable(failing_result: Result) -> None:
    text = format_json(failing_result)
    assert text == format_json(failing_result)
    assert text == json.dumps(json.loads(text), indent=2, sort_keys=True)


def test_schema_rejects_unknown_status(failing_result: Result) -> None:
    payload = result_payload(failing_result)
    payload["domains"][0]["status"] = "MAYBE"
    with pytest.raises(ValidationError):
        validate(payload, get_schema("v1"))


def test_render_classifications() -> None:
    out = render_classifications(
        [
            Classification(file="src/core/a.py", domain="core", reason="matches domain directory"),
            Classification(file="docs/conf.py"),
        ]
    )
    assert "Classification" in out
    assert "src/core/a.py" in out
    assert REASON_NO_MATCH in out


def test_render_events(core_api_policy: Policy) -> None:
    _, events = evaluate(core_api_policy, {"core": CoverageStat(1, 10), "api": CoverageStat(9, 10)})
    out = render_events(events)
    assert "ThresholdViolated core coverage 10.0% is below the required 85.0% (short by 75.0)" in out
    assert "CoverageEvaluated" in out
    assert render_events([]) == ""


def test_render_trend() -> None:
    assert render_trend(TrendAnalysis()) == "Not enough history to compute a trend."
    analysis = TrendAnalysis(
        overall_trend=calculate_trend(70.0, 75.0),
        domain_trends={
            "core": DomainTrend("core", Percentage(60.0), Percentage(59.0), calculate_trend(60.0, 59.0)),
        },
        previous=Percentage(70.0),
        current=Percentage(75.0),
    )
    out = render_trend(analysis)
    assert "Coverage Trend" in out
    assert "+5.0" in out
    assert "↑ up" in out
    assert "-1.0" in out
    assert "↓ down" in out


def test_render_history_analysis() -> None:
    assert render_history_analysis(HistoryAnalysis()) == "No history entries in the selected window."
    analysis = HistoryAnalysis(
        entries_count=3,
        highest=Percentage(80.0),
        lowest=Percentage(70.0),
        average=Percentage(75.0),
        up_days=2,
    )
    out = render_history_analysis(analysis, Forecast(predicted=Percentage(82.0), confidence=0.75))
    assert "2 / 0 / 0" in out
    assert "90.0" in out
    assert "82.0%" in out
    assert "0.75" in out


def test_render_suggestions() -> None:
    out = render_suggestions([Suggestion("core", 83.4, 80.0, 83.0, "lock in current coverage")])
    assert "Suggested Thresholds" in out
    assert "83.0%" in out
    assert "lock in current coverage" in out


def test_render_debt() -> None:
    assert render_debt(DebtResult()).startswith("No coverage debt.")
    debt = DebtResult(
        items=(DebtItem("core", "domain", 80.0, 85.0, 5.0, 1),),
        total_debt=5.0,
        total_lines=1,
        health_score=50.0,
    )
    out = render_debt(debt)
    assert "Coverage Debt" in out
    assert out.endswith("Health score 50.0; debt 5.0 points, 1 lines")


def test_render_compare_respects_limit() -> None:
    result = CompareResult(
        base_overall=70.0,
        head_overall=72.5,
        delta=2.5,
        improved=(FileDelta("a.py", 50.0, 100.0, 50.0), FileDelta("b.py", 0.0, 10.0, 10.0)),
        regressed=(FileDelta("c.py", 100.0, 50.0, -50.0),),
        unchanged=4,
        domain_deltas={"core": 1.5},
    )
    out = render_compare(result, limit=1)
    assert out.startswith("Overall 70.0% -> 72.5% (+2.5)")
    assert "a.py" in out
    assert "b.py" not in out
    assert "Regressed" in out
    assert "-50.0" in out
    assert "+1.5" in out
    assert out.endswith("4 file(s) unchanged")


def test_format_html(failing_result: Result) -> None:
    out = format_html(failing_result.with_warnings("missing <docs>"))
    assert out.startswith("<!DOCTYPE html>")
    assert out.endswith("</html>")
    assert "<strong>FAIL</strong> Coverage thresholds not met; overall 80.0%" in out
    assert "<h2>Domains</h2>" in out
    assert '<td>core</td><td>80.0%<div class="bar"><div class="fill fail" style="width: 80%"></div></div></td>' in out
    assert '<td>85.0%</td><td class="fail">FAIL</td>' in out
    assert "<h2>File Rules</h2>" in out
    assert "<td>src/core/a.py</td>" in out
    assert "<li>missing &lt;docs&gt;</li>" in out
    assert "Generated" not in out


def test_format_html_with_timestamp_and_no_files(core_api_policy: Policy) -> None:
    result, _ = evaluate(core_api_policy, {"core": CoverageStat(9, 10), "api": CoverageStat(9, 10)})
    out = format_html(result, generated=datetime.datetime(2024, 5, 1, 8, 30, tzinfo=datetime.UTC))
    assert "Generated 2024-05-01 08:30:00" in out
    assert "<strong>PASS</strong>" in out
    assert "File Rules" not in out
    assert "Warnings" not in out


@pytest.mark.parametrize(
    ("percent", "color"),
    [(100.0, "#4c1"), (90.0, "#4c1"), (89.9, "#97ca00"), (75.0, "#97ca00"), (60.0, "#dfb317"), (59.9, "#e05d44")],
)
def test_badge_color_bands(percent: float, color: str) -> None:
    assert badge_color(percent) == color


def test_badge_percent_text() -> None:
    assert percent_text(80.0) == "80%"
    assert percent_text(85.5) == "85.5%"


def test_format_badge() -> None:
    svg = format_badge(80.0)
    assert svg.startswith('<svg xmlns="http://www.w3.org/2000/svg" width="97" height="20"')
    assert 'aria-label="coverage: 80%"' in svg
    assert 'rx="3"' in svg
    assert 'fill="#97ca00"' in svg
    assert svg.endswith("</svg>")

    square = format_badge(42.5, label="a&b", style=BadgeStyle.FLAT_SQUARE)
    assert 'rx="0"' in square
    assert "<title>a&amp;b: 42.5%</title>" in square
