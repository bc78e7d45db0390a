from __future__ import annotations

from typing import Annotated

import typer
from typer.main import get_command

from covpolicy import __version__
from covpolicy.cli import badge, check, classify, compare, debt, record, suggest, trend
from covpolicy.cli._shared import configure_logging


def _version_callback(value: bool) -> None:  # noqa: FBT001
    if value:
        typer.echo(f"covpolicy {__version__}")
        raise typer.Exit


def create_app() -> typer.Typer:
    app = typer.Typer(help="Enforce per-domain coverage policies on Cobertura coverage XML.")

    @app.callback()
    def _root(
        *,
        version: Annotated[
            bool,
            typer.Option("--version", help="Show version and exit", callback=_version_callback, is_eager=True),
        ] = False,
        verbose: Annotated[bool, typer.Option("-v", "--verbose", help="Emit diagnostic logging")] = False,
        quiet: Annotated[bool, typer.Option("-q", "--quiet", help="Only log errors")] = False,
    ) -> None:
        configure_logging(quiet=quiet, verbose=verbose)

    check.register(app)
    classify.register(app)
    record.register(app)
    trend.register(app)
    suggest.register(app)
    debt.register(app)
    compare.register(app)
    badge.register(app)

    return app


def main() -> None:
    app = create_app()
    get_command(app)()


# Click-compatible object for tooling that imports it
cli = get_command(create_app())

__all__ = ["cli", "create_app", "main"]
