from __future__ import annotations

from html import escape
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import datetime
    from collections.abc import Sequence

    from covpolicy.core.model import DomainResult, FileResult, Result

_STYLE = """
body { font-family: -apple-system, 'Segoe UI', Roboto, sans-serif; margin: 2rem; }
table { border-collapse: collapse; margin-bottom: 2rem; }
th, td { padding: 0.4rem 0.8rem; text-align: left; border-bottom: 1px solid #ddd; }
.timestamp { color: #666; }
.bar { width: 8rem; height: 6px; background: #ddd; }
.fill { height: 100%; }
.pass { color: #16a34a; } .fill.pass { background: #16a34a; }
.warn { color: #ca8a04; } .fill.warn { background: #ca8a04; }
.fail { color: #dc2626; } .fill.fail { background: #dc2626; }
"""


def _pct(value: float) -> str:
    return f"{value:.1f}%"


def _coverage_cell(percent: float, css: str) -> str:
    width = f"{min(percent, 100.0):.0f}"
    return (
        f"<td>{_pct(percent)}"
        f'<div class="bar"><div class="fill {css}" style="width: {width}%"></div></div></td>'
    )


def _table(heading: str, rows: Sequence[DomainResult | FileResult], names: Sequence[str]) -> list[str]:
    parts = [
        f"<h2>{heading}</h2>",
        "<table>",
        "<tr><th>Name</th><th>Coverage</th><th>Required</th><th>Status</th></tr>",
    ]
    for row, name in zip(rows, names, strict=True):
        css = str(row.status).lower()
        parts.append(
            f"<tr><td>{escape(name)}</td>{_coverage_cell(row.percent, css)}"
            f'<td>{_pct(row.required)}</td><td class="{css}">{row.status}</td></tr>'
        )
    parts.append("</table>")
    return parts


def format_html(result: Result, *, generated: datetime.datetime | None = None) -> str:
    """Return a standalone HTML page with the domain and file tables of *result*."""
    verdict = "pass" if result.passed else "fail"
    parts: list[str] = [
        "<!DOCTYPE html>",
        '<html lang="en">',
        "<head>",
        '<meta charset="utf-8">',
        "<title>Coverage Report</title>",
        f"<style>{_STYLE}</style>",
        "</head>",
        "<body>",
        "<h1>Coverage Report</h1>",
    ]
    if generated is not None:
        parts.append(f'<p class="timestamp">Generated {generated:%Y-%m-%d %H:%M:%S}</p>')
    parts.append(
        f'<p class="{verdict}"><strong>{verdict.upper()}</strong> {escape(result.summary())}; '
        f"overall {_pct(result.overall_percent())}</p>"
    )
    if result.warnings:
        parts.append("<h2>Warnings</h2>")
        parts.append("<ul>")
        parts.extend(f"<li>{escape(w)}</li>" for w in result.warnings)
        parts.append("</ul>")
    if result.domains:
        parts.extend(_table("Domains", result.domains, [d.domain for d in result.domains]))
    if result.files:
        parts.extend(_table("File Rules", result.files, [f.file for f in result.files]))
    parts.extend(("</body>", "</html>"))
    return "\n".join(parts)


__all__ = ["format_html"]
