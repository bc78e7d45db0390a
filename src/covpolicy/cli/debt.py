from __future__ import annotations

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
from covpolicy.core.analytics import coverage_debt
from covpolicy.core.pipeline import prepare
from covpolicy.render.text import render_debt


def debt_cmd(
    coverage: CoverageArgument = None,
    config: ConfigOption = None,
    output: OutputOption = None,
    color: ColorOption = False,
    no_color: NoColorOption = False,
) -> None:
    """Report how far domains and file rules are below their minimums."""
    with exit_on_error():
        cfg = get_config(config)
        file_coverage = get_coverage(coverage)
        ctx = prepare(cfg, file_coverage, annotations=get_annotations(cfg, file_coverage))

    debt = coverage_debt(
        cfg.policy,
        ctx.domain_coverage,
        files=ctx.files,
        file_rules=cfg.file_rules,
        exclude=cfg.excludes,
        annotations=ctx.annotations,
    )
    use_color = resolve_use_color(color=color, no_color=no_color, color_allowed=stdout_color_allowed(output))
    write_output(render_debt(debt, color=use_color), output)
    raise typer.Exit(code=EXIT_OK)


def register(app: typer.Typer) -> None:
    app.command("debt")(debt_cmd)


__all__ = ["register"]
