from __future__ import annotations

from io import StringIO
from typing import TYPE_CHECKING

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from covpolicy.core.types import Status, TrendDirection

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from covpolicy.core.analytics import CompareResult, DebtResult, Suggestion
    from covpolicy.core.classify import Classification
    from covpolicy.core.events import CoverageEvent
    from covpolicy.core.model import Result
    from covpolicy.core.trends import Forecast, HistoryAnalysis, TrendAnalysis

_STATUS_STYLE = {Status.PASS: "green", Status.WARN: "yellow", Status.FAIL: "red"}
_ARROWS = {TrendDirection.UP: "↑", TrendDirection.DOWN: "↓", TrendDirection.STABLE: "→"}


def _render(*renderables: object, color: bool) -> str:
    buf = StringIO()
    console = Console(
        file=buf,
        force_terminal=color,
        color_system="standard" if color else None,
        no_color=not color,
        width=10_000,
    )
    for item in renderables:
        console.print(item)
    return buf.getvalue().rstrip()


def _status(status: Status) -> str:
    style = _STATUS_STYLE[status]
    return f"[{style}]{status}[/{style}]"


def _pct(value: float) -> str:
    return f"{value:.1f}%"


def _signed(value: float | None) -> str:
    if value is None:
        return "-"
    return f"{value:+.1f}"


def _table(title: str | None = None) -> Table:
    return Table(title=title, box=box.SIMPLE_HEAVY, header_style="bold")


def render_result(result: Result, *, color: bool = False, show_files: bool = True) -> str:
    """Render domain and file results as tables, followed by warnings and a verdict."""
    with_delta = any(d.delta is not None for d in result.domains)
    table = _table("Coverage Policy")
    table.add_column("Domain", overflow="fold")
    table.add_column("Covered", justify="right")
    table.add_column("Total", justify="right")
    table.add_column("Coverage", justify="right")
    table.add_column("Required", justify="right")
    if with_delta:
        table.add_column("Delta", justify="right")
    table.add_column("Status")
    for d in result.domains:
        row = [escape(d.domain), str(d.covered), str(d.total), _pct(d.percent), _pct(d.required)]
        if with_delta:
            row.append(_signed(d.delta))
        row.append(_status(d.status))
        table.add_row(*row)
    table.add_section()
    overall = ["[bold]Overall[/bold]", str(result.total_covered()), str(result.total_statements())]
    overall += [_pct(result.overall_percent()), ""]
    if with_delta:
        overall.append("")
    overall.append("")
    table.add_row(*overall)

    parts: list[object] = [table]
    if show_files and result.files:
        files = _table("File Rules")
        files.add_column("File", overflow="fold")
        files.add_column("Coverage", justify="right")
        files.add_column("Required", justify="right")
        files.add_column("Status")
        for f in result.files:
            files.add_row(escape(f.file), _pct(f.percent), _pct(f.required), _status(f.status))
        parts.append(files)

    parts.extend(f"[yellow]warning:[/yellow] {escape(w)}" for w in result.warnings)
    verdict = "green" if result.passed else "red"
    parts.append(f"[bold {verdict}]{result.summary()}[/bold {verdict}]")
    return _render(*parts, color=color)


def render_classifications(records: Sequence[Classification], *, color: bool = False) -> str:
    table = _table("Classification")
    table.add_column("File", overflow="fold")
    table.add_column("Domain")
    table.add_column("Excluded")
    table.add_column("Annotated")
    table.add_column("Reason")
    for r in records:
        table.add_row(
            escape(r.file),
            escape(r.domain or "-"),
            "yes" if r.excluded else "no",
            "yes" if r.annotated else "no",
            r.reason,
        )
    return _render(table, color=color)


def render_events(events: Iterable[CoverageEvent], *, color: bool = False) -> str:
    lines = [f"[dim]{e.event_type}[/dim] {escape(e.message)}" for e in events]
    return _render(*lines, color=color) if lines else ""


def render_trend(analysis: TrendAnalysis, *, color: bool = False) -> str:
    if analysis.previous is None or analysis.current is None:
        return _render("Not enough history to compute a trend.", color=color)
    table = _table("Coverage Trend")
    table.add_column("Domain", overflow="fold")
    table.add_column("Previous", justify="right")
    table.add_column("Current", justify="right")
    table.add_column("Change", justify="right")
    table.add_column("Trend")
    for name in sorted(analysis.domain_trends):
        dt = analysis.domain_trends[name]
        table.add_row(
            escape(name),
            str(dt.previous),
            str(dt.current),
            _signed(dt.trend.delta),
            f"{_ARROWS[dt.trend.direction]} {dt.trend.direction}",
        )
    table.add_section()
    overall = analysis.overall_trend
    table.add_row(
        "[bold]Overall[/bold]",
        str(analysis.previous),
        str(analysis.current),
        _signed(overall.delta),
        f"{_ARROWS[overall.direction]} {overall.direction}",
    )
    return _render(table, color=color)


def render_history_analysis(
    analysis: HistoryAnalysis, forecast: Forecast | None = None, *, color: bool = False
) -> str:
    if analysis.entries_count == 0:
        return _render("No history entries in the selected window.", color=color)
    table = _table("History")
    table.add_column("Metric")
    table.add_column("Value", justify="right")
    table.add_row("Entries", str(analysis.entries_count))
    table.add_row("Highest", str(analysis.highest))
    table.add_row("Lowest", str(analysis.lowest))
    table.add_row("Average", str(analysis.average))
    table.add_row("Up / Down / Stable", f"{analysis.up_days} / {analysis.down_days} / {analysis.stable_days}")
    table.add_row("Volatility", f"{analysis.volatility():.2f}")
    table.add_row("Consistency", f"{analysis.consistency_score():.1f}")
    if forecast is not None:
        table.add_section()
        table.add_row("Forecast", str(forecast.predicted))
        table.add_row("Confidence", f"{forecast.confidence:.2f}")
    return _render(table, color=color)


def render_suggestions(suggestions: Sequence[Suggestion], *, color: bool = False) -> str:
    table = _table("Suggested Thresholds")
    table.add_column("Domain", overflow="fold")
    table.add_column("Current", justify="right")
    table.add_column("Min", justify="right")
    table.add_column("Suggested", justify="right")
    table.add_column("Reason")
    for s in suggestions:
        table.add_row(
            escape(s.domain), _pct(s.current_percent), _pct(s.current_min), _pct(s.suggested_min), s.reason
        )
    return _render(table, color=color)


def render_debt(debt: DebtResult, *, color: bool = False) -> str:
    summary = f"Health score {debt.health_score:.1f}; debt {debt.total_debt:.1f} points, {debt.total_lines} lines"
    if not debt.items:
        return _render("No coverage debt.", summary, color=color)
    table = _table("Coverage Debt")
    table.add_column("Name", overflow="fold")
    table.add_column("Kind")
    table.add_column("Current", justify="right")
    table.add_column("Required", justify="right")
    table.add_column("Shortfall", justify="right")
    table.add_column("Lines", justify="right")
    for item in debt.items:
        table.add_row(
            escape(item.name),
            item.kind,
            _pct(item.current),
            _pct(item.required),
            f"{item.shortfall:.1f}",
            str(item.lines),
        )
    return _render(table, summary, color=color)


def render_compare(result: CompareResult, *, color: bool = False, limit: int = 10) -> str:
    parts: list[object] = [
        f"Overall {_pct(result.base_overall)} -> {_pct(result.head_overall)} ({_signed(result.delta)})"
    ]
    for title, rows in (("Improved", result.improved), ("Regressed", result.regressed)):
        if not rows:
            continue
        table = _table(title)
        table.add_column("File", overflow="fold")
        table.add_column("Base", justify="right")
        table.add_column("Head", justify="right")
        table.add_column("Delta", justify="right")
        for fd in rows[:limit]:
            table.add_row(escape(fd.file), _pct(fd.base_percent), _pct(fd.head_percent), _signed(fd.delta))
        parts.append(table)
    if result.domain_deltas:
        domains = _table("Domains")
        domains.add_column("Domain", overflow="fold")
        domains.add_column("Delta", justify="right")
        for name, delta in result.domain_deltas.items():
            domains.add_row(escape(name), _signed(delta))
        parts.append(domains)
    parts.append(f"{result.unchanged} file(s) unchanged")
    return _render(*parts, color=color)


__all__ = [
    "render_classifications",
    "render_compare",
    "render_debt",
    "render_events",
    "render_history_analysis",
    "render_result",
    "render_suggestions",
    "render_trend",
]
