from __future__ import annotations

import datetime
from collections.abc import Callable, Iterable, Mapping
from pathlib import Path
from textwrap import dedent

import pytest
from click.testing import CliRunner

from covpolicy.core.config import Config
from covpolicy.core.history import DomainEntry, HistoryEntry
from covpolicy.core.model import Domain, Policy
from covpolicy.core.types import Status

LinesSpec = Mapping[int, int] | Iterable[int]


@pytest.fixture
def cli_runner() -> CliRunner:
    """Return a Click CLI runner for invoking the command-line interface."""
    return CliRunner()


@pytest.fixture
def coverage_xml_content() -> Callable[..., str]:
    def build(mapping: Mapping[Path | str, LinesSpec], *, sources: Path | str | None = None) -> str:
        classes: list[str] = []
        for file, lines in mapping.items():
            items = lines.items() if isinstance(lines, Mapping) else ((ln, 0) for ln in lines)
            lines_xml = "".join(f'<line number="{ln}" hits="{hits}"/>' for ln, hits in items)
            classes.append(f'<class filename="{file}"><lines>{lines_xml}</lines></class>')
        classes_xml = "".join(classes)
        sources_xml = f"<sources><source>{sources}</source></sources>" if sources else ""
        return (
            "<coverage>"
            f"{sources_xml}"
            f"<packages><package><classes>{classes_xml}</classes></package></packages>"
            "</coverage>"
        )

    return build


@pytest.fixture
def coverage_xml_file(
    tmp_path: Path,
    coverage_xml_content: Callable[..., str],
) -> Callable[..., Path]:
    def write(
        mapping: Mapping[Path | str, LinesSpec],
        *,
        sources: Path | str | None = None,
        filename: str = "coverage.xml",
    ) -> Path:
        xml_content = coverage_xml_content(mapping, sources=sources)
        xml_file = tmp_path / filename
        xml_file.write_text(xml_content)
        return xml_file

    return write


def lines(covered: int, total: int) -> dict[int, int]:
    """Line-hit mapping with the first *covered* of *total* lines hit."""
    return {n: (1 if n <= covered else 0) for n in range(1, total + 1)}


@pytest.fixture
def project(tmp_path: Path) -> Callable[[str], Path]:
    """Write ``covpolicy.toml`` into the temporary project root."""

    def write(body: str) -> Path:
        path = tmp_path / "covpolicy.toml"
        path.write_text(dedent(body), encoding="utf-8")
        return path

    return write


@pytest.fixture
def core_api_policy() -> Policy:
    return Policy(
        default_min=80.0,
        domains=(
            Domain(name="core", match=("src/core",), min=85.0),
            Domain(name="api", match=("src/api",)),
        ),
    )


@pytest.fixture
def core_api_config(core_api_policy: Policy) -> Config:
    return Config(policy=core_api_policy)


def entry(day: int, overall: float, **domains: float) -> HistoryEntry:
    """History entry on 2024-01-<day> with the given per-domain percents."""
    return HistoryEntry(
        timestamp=datetime.datetime(2024, 1, day, 12, tzinfo=datetime.UTC),
        overall=overall,
        domains={
            name: DomainEntry(name=name, percent=pct, min=0.0, status=Status.PASS) for name, pct in domains.items()
        },
    )
