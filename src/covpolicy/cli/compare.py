from __future__ import annotations

from pathlib import Path  # noqa: TC003
from typing import Annotated

import typer

from covpolicy.cli._shared import (
    ColorOption,
    ConfigOption,
    NoColorOption,
    OutputOption,
    exit_on_error,
    get_config,
    resolve_use_color,
    stdout_color_allowed,
    write_output,
)
from covpolicy.cli.exit_codes import EXIT_OK
from covpolicy.core.analytics import compare_coverage
from covpolicy.core.pipeline import prepare
from covpolicy.inputs.cobertura import read_coverage
from covpolicy.render.text import render_compare


def compare_cmd(
    base: Annotated[Path, typer.Argument(help="Cobertura XML of the baseline.")],
    head: Annotated[Path, typer.Argument(help="Cobertura XML of the change.")],
    config: ConfigOption = None,
    limit: Annotated[int, typer.Option("--limit", help="Files listed per section.", min=1)] = 10,
    output: OutputOption = None,
    color: ColorOption = False,
    no_color: NoColorOption = False,
) -> None:
    """Compare two coverage reports file by file and per domain."""
    with exit_on_error():
        cfg = get_config(config)
        before = prepare(cfg, read_coverage([base]))
        after = prepare(cfg, read_coverage([head]))

    result = compare_coverage(
        before.files,
        after.files,
        base_domains=before.domain_coverage,
        head_domains=after.domain_coverage,
    )
    use_color = resolve_use_color(color=color, no_color=no_color, color_allowed=stdout_color_allowed(output))
    write_output(render_compare(result, color=use_color, limit=limit), output)
    raise typer.Exit(code=EXIT_OK)


def register(app: typer.Typer) -> None:
    app.command("compare")(compare_cmd)


__all__ = ["register"]
