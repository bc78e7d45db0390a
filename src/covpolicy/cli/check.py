from __future__ import annotations

import datetime
from typing import Annotated

import typer

from covpolicy import logger
from covpolicy.cli._shared import (
    ColorOption,
    ConfigOption,
    CoverageArgument,
    NoColorOption,
    OutputOption,
    ReportFormat,
    exit_on_error,
    get_annotations,
    get_config,
    get_coverage,
    history_store,
    resolve_use_color,
    stdout_color_allowed,
    write_output,
)
from covpolicy.cli.exit_codes import EXIT_OK, EXIT_THRESHOLD
from covpolicy.core.pipeline import check
from covpolicy.render.html import format_html
from covpolicy.render.json import format_json
from covpolicy.render.text import render_events, render_result


def check_cmd(
    coverage: CoverageArgument = None,
    config: ConfigOption = None,
    domain: Annotated[
        list[str] | None,
        typer.Option("-d", "--domain", help="Only evaluate these domains (repeatable)."),
    ] = None,
    format_: Annotated[
        ReportFormat,
        typer.Option("--format", help="Output format.", case_sensitive=False),
    ] = ReportFormat.TEXT,
    history: Annotated[
        bool,
        typer.Option("--history/--no-history", help="Show the change since the last recorded entry."),
    ] = True,
    events: Annotated[
        bool,
        typer.Option("--events", help="Print the evaluation events after the report."),
    ] = False,
    output: OutputOption = None,
    color: ColorOption = False,
    no_color: NoColorOption = False,
) -> None:
    """Evaluate coverage against the configured policy."""
    with exit_on_error():
        cfg = get_config(config)
        file_coverage = get_coverage(coverage)
        annotations = get_annotations(cfg, file_coverage)
        past = history_store(cfg).load() if history else None
        outcome = check(cfg, file_coverage, annotations=annotations, domains=domain or (), history=past)

    result = outcome.result
    for warning in result.warnings:
        logger.warning(warning)

    if format_ is ReportFormat.JSON:
        text = format_json(result)
    elif format_ is ReportFormat.HTML:
        text = format_html(result, generated=datetime.datetime.now(datetime.UTC))
    else:
        use_color = resolve_use_color(color=color, no_color=no_color, color_allowed=stdout_color_allowed(output))
        text = render_result(result, color=use_color)
        if events:
            text = "\n".join(filter(None, [text, render_events(outcome.events, color=use_color)]))
    write_output(text, output)

    raise typer.Exit(code=EXIT_OK if result.passed else EXIT_THRESHOLD)


def register(app: typer.Typer) -> None:
    app.command("check")(check_cmd)


__all__ = ["register"]
