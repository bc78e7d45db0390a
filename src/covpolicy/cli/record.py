from __future__ import annotations

from typing import Annotated

import typer

from covpolicy.cli._shared import (
    ConfigOption,
    CoverageArgument,
    exit_on_error,
    get_annotations,
    get_config,
    get_coverage,
    history_store,
)
from covpolicy.cli.exit_codes import EXIT_OK
from covpolicy.core.pipeline import check, snapshot


def record_cmd(
    coverage: CoverageArgument = None,
    config: ConfigOption = None,
    commit: Annotated[str | None, typer.Option("--commit", help="Commit id stored with the entry.")] = None,
    branch: Annotated[str | None, typer.Option("--branch", help="Branch name stored with the entry.")] = None,
) -> None:
    """Evaluate coverage and append the result to the history file."""
    with exit_on_error():
        cfg = get_config(config)
        file_coverage = get_coverage(coverage)
        outcome = check(cfg, file_coverage, annotations=get_annotations(cfg, file_coverage))
        entry = snapshot(outcome.result, commit=commit, branch=branch)
        store = history_store(cfg)
        history = store.append(entry)

    typer.echo(f"Recorded {entry.overall:.1f}% overall ({len(history)} entries in {store.path})")
    raise typer.Exit(code=EXIT_OK)


def register(app: typer.Typer) -> None:
    app.command("record")(record_cmd)


__all__ = ["register"]
