from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer

from covpolicy.cli._shared import (
    ConfigOption,
    CoverageArgument,
    exit_on_error,
    get_annotations,
    get_config,
    get_coverage,
    write_output,
)
from covpolicy.cli.exit_codes import EXIT_OK
from covpolicy.core.pipeline import check
from covpolicy.render.badge import BadgeStyle, format_badge


def badge_cmd(
    coverage: CoverageArgument = None,
    config: ConfigOption = None,
    output: Annotated[
        Path,
        typer.Option("-o", "--output", help="Write the SVG to PATH (use '-' for stdout)."),
    ] = Path("coverage.svg"),
    label: Annotated[str, typer.Option("--label", help="Badge label text.")] = "coverage",
    style: Annotated[
        BadgeStyle,
        typer.Option("--style", help="Badge style.", case_sensitive=False),
    ] = BadgeStyle.FLAT,
) -> None:
    """Write an SVG badge showing the overall coverage."""
    with exit_on_error():
        cfg = get_config(config)
        file_coverage = get_coverage(coverage)
        outcome = check(cfg, file_coverage, annotations=get_annotations(cfg, file_coverage))

    percent = outcome.result.overall_percent()
    write_output(format_badge(percent, label=label, style=style), output)
    if output != Path("-"):
        typer.echo(f"Badge written to {output} ({percent:.1f}%)")
    raise typer.Exit(code=EXIT_OK)


def register(app: typer.Typer) -> None:
    app.command("badge")(badge_cmd)


__all__ = ["register"]
