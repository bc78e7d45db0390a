"""Central configuration model and constants for ``covpolicy``."""

from __future__ import annotations

import json
from dataclasses import dataclass
from functools import cache
from importlib import resources

from covpolicy.core.model import FileRule, Policy

# Default logging format used by the CLI entry point.
LOG_FORMAT = "%(levelname)s: %(message)s"

CONFIG_VERSION = 1
CONFIG_FILENAMES = ("covpolicy.toml", ".covpolicy.toml")
PYPROJECT = "pyproject.toml"

DEFAULT_HISTORY_PATH = ".covpolicy/history.json"
DEFAULT_HISTORY_MAX_ENTRIES = 100

_SCHEMA_FILES: dict[str, str] = {
    "v1": "schema.json",
}


@dataclass(frozen=True, slots=True)
class Config:
    """Fully resolved project configuration.

    ``module_root`` is absolute when loaded from disk; ``history_path`` is
    relative to it unless absolute.
    """

    policy: Policy
    excludes: tuple[str, ...] = ()
    file_rules: tuple[FileRule, ...] = ()
    module_root: str = ""
    module_path: str = ""
    annotations_enabled: bool = False
    history_path: str = DEFAULT_HISTORY_PATH
    history_max_entries: int = DEFAULT_HISTORY_MAX_ENTRIES
    source: str | None = None


@cache
def get_schema(version: str = "v1") -> dict[str, object]:
    """Load and cache the JSON schema for structured output."""
    try:
        filename = _SCHEMA_FILES[version]
    except KeyError as exc:
        choices = ", ".join(sorted(_SCHEMA_FILES))
        msg = f"Unsupported schema version: {version!r}. Available versions: {choices}"
        raise ValueError(msg) from exc
    return json.loads(resources.files("covpolicy.data").joinpath(filename).read_text(encoding="utf-8"))


__all__ = [
    "CONFIG_FILENAMES",
    "CONFIG_VERSION",
    "DEFAULT_HISTORY_MAX_ENTRIES",
    "DEFAULT_HISTORY_PATH",
    "LOG_FORMAT",
    "PYPROJECT",
    "Config",
    "get_schema",
]
