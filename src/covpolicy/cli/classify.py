from __future__ import annotations

import json
from dataclasses import asdict
from typing import Annotated

import typer

from covpolicy.cli._shared import (
    ColorOption,
    ConfigOption,
    CoverageArgument,
    NoColorOption,
    OutputFormat,
    OutputOption,
    exit_on_error,
    get_annotations,
    get_config,
    get_coverage,
    resolve_use_color,
    stdout_color_allowed,
    write_output,
)
from covpolicy.cli.exit_codes import EXIT_OK
from covpolicy.core.classify import REASON_NO_MATCH
from covpolicy.core.pipeline import classify
from covpolicy.render.text import render_classifications


def classify_cmd(
    coverage: CoverageArgument = None,
    config: ConfigOption = None,
    unmatched: Annotated[
        bool,
        typer.Option("--unmatched", help="Only list files that belong to no domain."),
    ] = False,
    format_: Annotated[
        OutputFormat,
        typer.Option("--format", help="Output format.", case_sensitive=False),
    ] = OutputFormat.TEXT,
    output: OutputOption = None,
    color: ColorOption = False,
    no_color: NoColorOption = False,
) -> None:
    """Explain which domain each covered file is attributed to."""
    with exit_on_error():
        cfg = get_config(config)
        file_coverage = get_coverage(coverage)
        records = classify(cfg, file_coverage, annotations=get_annotations(cfg, file_coverage))

    if unmatched:
        records = [r for r in records if r.reason == REASON_NO_MATCH]

    if format_ is OutputFormat.JSON:
        text = json.dumps([asdict(r) for r in records], indent=2, sort_keys=True)
    else:
        use_color = resolve_use_color(color=color, no_color=no_color, color_allowed=stdout_color_allowed(output))
        text = render_classifications(records, color=use_color)
    write_output(text, output)
    raise typer.Exit(code=EXIT_OK)


def register(app: typer.Typer) -> None:
    app.command("classify")(classify_cmd)


__all__ = ["register"]
