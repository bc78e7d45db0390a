from __future__ import annotations

import logging
import sys
from contextlib import contextmanager
from enum import StrEnum
from pathlib import Path
from typing import TYPE_CHECKING, Annotated

import click.utils as click_utils
import typer

from covpolicy import logger
from covpolicy.cli.exit_codes import EXIT_CONFIG, EXIT_DATAERR, EXIT_GENERIC, EXIT_NOINPUT
from covpolicy.core.aggregate import normalize_coverage_map
from covpolicy.core.config import LOG_FORMAT
from covpolicy.core.pipeline import normalizer_for
from covpolicy.errors import (
    ConfigError,
    CoverageFileNotFoundError,
    CovpolicyError,
    HistoryStoreError,
    InvalidCoverageFileError,
    ValueObjectError,
)
from covpolicy.inputs.annotations import scan_annotations
from covpolicy.inputs.cobertura import read_coverage
from covpolicy.inputs.config import load_config
from covpolicy.inputs.history import HistoryStore

if TYPE_CHECKING:
    from collections.abc import Iterator, Sequence

    from covpolicy.core.config import Config
    from covpolicy.core.model import Annotation, CoverageStat

DEFAULT_COVERAGE = Path("coverage.xml")

ConfigOption = Annotated[
    Path | None,
    typer.Option("-c", "--config", help="Configuration file. If omitted, discovery is used."),
]
CoverageArgument = Annotated[
    list[Path] | None,
    typer.Argument(help="Cobertura XML file(s). Defaults to ./coverage.xml."),
]
OutputOption = Annotated[
    Path | None,
    typer.Option("--output", help="Write output to PATH (use '-' for stdout)."),
]
ColorOption = Annotated[bool, typer.Option("--color", help="Force color output")]
NoColorOption = Annotated[bool, typer.Option("--no-color", help="Disable color output")]


class OutputFormat(StrEnum):
    TEXT = "text"
    JSON = "json"


class ReportFormat(StrEnum):
    TEXT = "text"
    JSON = "json"
    HTML = "html"


def configure_logging(*, quiet: bool, verbose: bool) -> None:
    """Configure logging based on *quiet*/*verbose*."""
    level = logging.ERROR if quiet else (logging.DEBUG if verbose else logging.WARNING)
    logging.basicConfig(level=level, format=LOG_FORMAT)
    logger.setLevel(level)


def resolve_use_color(*, color: bool, no_color: bool, color_allowed: bool) -> bool:
    # CLI flags take precedence over the terminal default.
    if no_color:
        return False
    if color:
        return True
    return color_allowed


def stdout_color_allowed(output: Path | None) -> bool:
    if output not in {None, Path("-")}:
        return False
    try:
        is_tty = bool(getattr(sys.stdout, "isatty", lambda: False)())
    except OSError:
        return False
    return is_tty and not click_utils.should_strip_ansi(sys.stdout)


def write_output(text: str, destination: Path | None) -> None:
    """Write output to stdout or a file (PATH or '-' for stdout)."""
    if destination is None or destination == Path("-"):
        typer.echo(text)
        return
    destination.parent.mkdir(parents=True, exist_ok=True)
    destination.write_text(text + "\n", encoding="utf-8")


@contextmanager
def exit_on_error() -> Iterator[None]:
    """Translate library errors into an ``ERROR:`` line and a sysexits code."""
    try:
        yield
    except (ConfigError, ValueObjectError) as exc:
        typer.echo(f"ERROR: {exc}", err=True)
        raise typer.Exit(code=EXIT_CONFIG) from exc
    except CoverageFileNotFoundError as exc:
        typer.echo(f"ERROR: {exc}", err=True)
        raise typer.Exit(code=EXIT_NOINPUT) from exc
    except (InvalidCoverageFileError, HistoryStoreError) as exc:
        typer.echo(f"ERROR: {exc}", err=True)
        raise typer.Exit(code=EXIT_DATAERR) from exc
    except CovpolicyError as exc:
        typer.echo(f"ERROR: {exc}", err=True)
        raise typer.Exit(code=EXIT_GENERIC) from exc


def get_config(path: Path | None) -> Config:
    return load_config(path, start=Path.cwd())


def get_coverage(paths: Sequence[Path] | None) -> dict[str, CoverageStat]:
    return read_coverage(list(paths) if paths else [DEFAULT_COVERAGE])


def get_annotations(config: Config, coverage: dict[str, CoverageStat]) -> dict[str, Annotation] | None:
    if not config.annotations_enabled:
        return None
    files = normalize_coverage_map(coverage, normalizer_for(config))
    return scan_annotations(config.module_root, files)


def history_store(config: Config) -> HistoryStore:
    path = Path(config.history_path)
    if not path.is_absolute():
        path = Path(config.module_root or ".") / path
    return HistoryStore(path, config.history_max_entries)


__all__ = [
    "DEFAULT_COVERAGE",
    "ColorOption",
    "ConfigOption",
    "CoverageArgument",
    "NoColorOption",
    "OutputFormat",
    "OutputOption",
    "ReportFormat",
    "configure_logging",
    "exit_on_error",
    "get_annotations",
    "get_config",
    "get_coverage",
    "history_store",
    "resolve_use_color",
    "stdout_color_allowed",
    "write_output",
]
