from __future__ import annotations

from typing import Annotated

import typer

from covpolicy.cli._shared import (
    ColorOption,
    ConfigOption,
    CoverageArgument,
    NoColorOption,
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
from covpolicy.core.analytics import suggest_thresholds
from covpolicy.core.pipeline import prepare
from covpolicy.core.types import SuggestStrategy
from covpolicy.render.text import render_suggestions


def suggest_cmd(
    coverage: CoverageArgument = None,
    config: ConfigOption = None,
    strategy: Annotated[
        SuggestStrategy,
        typer.Option("--strategy", help="How closely thresholds should track current coverage.", case_sensitive=False),
    ] = SuggestStrategy.CURRENT,
    output: OutputOption = None,
    color: ColorOption = False,
    no_color: NoColorOption = False,
) -> None:
    """Suggest per-domain minimums from current coverage."""
    with exit_on_error():
        cfg = get_config(config)
        file_coverage = get_coverage(coverage)
        ctx = prepare(cfg, file_coverage, annotations=get_annotations(cfg, file_coverage))

    suggestions = suggest_thresholds(cfg.policy, ctx.domain_coverage, strategy)
    use_color = resolve_use_color(color=color, no_color=no_color, color_allowed=stdout_color_allowed(output))
    write_output(render_suggestions(suggestions, color=use_color), output)
    raise typer.Exit(code=EXIT_OK)


def register(app: typer.Typer) -> None:
    app.command("suggest")(suggest_cmd)


__all__ = ["register"]
