"""Locate and load ``covpolicy`` TOML configuration."""

from __future__ import annotations

import tomllib
from pathlib import Path
from typing import Any

from covpolicy import logger
from covpolicy.core.config import (
    CONFIG_FILENAMES,
    CONFIG_VERSION,
    DEFAULT_HISTORY_MAX_ENTRIES,
    DEFAULT_HISTORY_PATH,
    PYPROJECT,
    Config,
)
from covpolicy.core.model import Domain, FileRule, Policy
from covpolicy.core.values import DomainName, Threshold
from covpolicy.errors import ConfigError, ValueObjectError


def _has_tool_table(pyproject: Path) -> bool:
    try:
        with pyproject.open("rb") as f:
            data = tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        logger.warning("Failed to parse %s: %s", pyproject, e)
        return False
    return isinstance(data.get("tool", {}).get("covpolicy"), dict)


def find_config(start: Path | None = None) -> Path | None:
    """Walk up from *start* and return the first configuration file found.

    In each directory ``covpolicy.toml`` wins over ``.covpolicy.toml``, which
    wins over a ``pyproject.toml`` carrying a ``[tool.covpolicy]`` table.
    """
    here = (start or Path.cwd()).resolve()
    for directory in (here, *here.parents):
        for name in CONFIG_FILENAMES:
            candidate = directory / name
            if candidate.is_file():
                return candidate
        pyproject = directory / PYPROJECT
        if pyproject.is_file() and _has_tool_table(pyproject):
            return pyproject
    return None


def _read_table(path: Path) -> dict[str, Any]:
    try:
        with path.open("rb") as f:
            data = tomllib.load(f)
    except FileNotFoundError as e:
        msg = f"config file not found: {path}"
        raise ConfigError(msg) from e
    except OSError as e:
        msg = f"failed to read config {path}: {e}"
        raise ConfigError(msg) from e
    except tomllib.TOMLDecodeError as e:
        msg = f"invalid TOML in {path}: {e}"
        raise ConfigError(msg) from e

    if path.name == PYPROJECT:
        table = data.get("tool", {}).get("covpolicy")
        if not isinstance(table, dict):
            msg = f"{path} has no [tool.covpolicy] table"
            raise ConfigError(msg)
        return table
    return data


def _merge_domains(parent: list[dict[str, Any]], child: list[dict[str, Any]]) -> list[dict[str, Any]]:
    # Same-named domains are replaced in place; new ones are appended.
    by_name = {str(d.get("name", "")).strip(): d for d in child}
    merged = [by_name.pop(str(d.get("name", "")).strip(), d) for d in parent]
    merged.extend(d for d in child if str(d.get("name", "")).strip() in by_name)
    return merged


def _merge(parent: dict[str, Any], child: dict[str, Any]) -> dict[str, Any]:
    """Overlay *child* onto *parent*.

    Tables merge key by key, ``exclude`` lists accumulate, ``files`` is replaced
    wholesale and domains merge by name.
    """
    out = dict(parent)
    for key, value in child.items():
        if key == "extends":
            continue
        if key == "exclude":
            out[key] = [*parent.get("exclude", []), *value]
        elif key == "policy" and isinstance(value, dict):
            policy = {**parent.get("policy", {}), **value}
            if "domains" in value:
                policy["domains"] = _merge_domains(parent.get("policy", {}).get("domains", []), value["domains"])
            out[key] = policy
        elif isinstance(value, dict) and isinstance(parent.get(key), dict):
            out[key] = {**parent[key], **value}
        else:
            out[key] = value
    return out


def _load_raw(path: Path, seen: set[Path]) -> tuple[dict[str, Any], Path]:
    """Return the merged raw table and the directory ``[module].root`` is relative to."""
    resolved = path.resolve()
    if resolved in seen:
        msg = f"circular config inheritance detected: {resolved}"
        raise ConfigError(msg)
    seen.add(resolved)

    table = _read_table(resolved)
    _check_version(table.get("version"), resolved)

    extends = table.get("extends")
    if not extends:
        return table, resolved.parent
    if not isinstance(extends, str):
        msg = f"'extends' must be a path string in {resolved}"
        raise ConfigError(msg)

    parent_path = Path(extends)
    if not parent_path.is_absolute():
        parent_path = resolved.parent / parent_path
    logger.debug("config %s extends %s", resolved, parent_path)
    parent, parent_base = _load_raw(parent_path, seen)
    base = resolved.parent if "root" in table.get("module", {}) else parent_base
    return _merge(parent, table), base


def _check_version(raw: object, source: Path | str) -> None:
    version = CONFIG_VERSION if raw is None else raw
    if version != CONFIG_VERSION:
        msg = f"unsupported config version {version!r} in {source} (expected {CONFIG_VERSION})"
        raise ConfigError(msg)


def _str_list(value: object, what: str) -> tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        return (value,)
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        msg = f"{what} must be a list of strings"
        raise ConfigError(msg)
    return tuple(value)


def _threshold(value: object, what: str) -> float:
    if isinstance(value, bool) or not isinstance(value, int | float):
        msg = f"{what} must be a number, got {value!r}"
        raise ConfigError(msg)
    try:
        return Threshold(float(value)).value
    except ValueObjectError as e:
        msg = f"{what}: {e}"
        raise ConfigError(msg) from e


def _domain(raw: object, index: int) -> Domain:
    if not isinstance(raw, dict):
        msg = f"policy.domains[{index}] must be a table"
        raise ConfigError(msg)
    try:
        name = DomainName(str(raw.get("name") or "")).value
    except ValueObjectError as e:
        msg = f"policy.domains[{index}]: {e}"
        raise ConfigError(msg) from e

    match = _str_list(raw.get("match"), f"domain {name}: match")
    if not match:
        msg = f"domain {name}: match must list at least one directory"
        raise ConfigError(msg)
    min_ = _threshold(raw["min"], f"domain {name}: min") if raw.get("min") is not None else None
    warn = _threshold(raw["warn"], f"domain {name}: warn") if raw.get("warn") is not None else None
    return Domain(
        name=name,
        match=match,
        min=min_,
        warn=warn,
        exclude=_str_list(raw.get("exclude"), f"domain {name}: exclude"),
    )


def _file_rule(raw: object, index: int) -> FileRule:
    if not isinstance(raw, dict):
        msg = f"files[{index}] must be a table"
        raise ConfigError(msg)
    match = _str_list(raw.get("match"), f"files[{index}]: match")
    if not match:
        msg = f"files[{index}]: match must list at least one glob"
        raise ConfigError(msg)
    if raw.get("min") is None:
        msg = f"files[{index}]: min is required"
        raise ConfigError(msg)
    return FileRule(match=match, min=_threshold(raw["min"], f"files[{index}]: min"))


def config_from_mapping(data: dict[str, Any], *, base_dir: Path, source: str | None = None) -> Config:
    """Validate a raw configuration table and build a :class:`Config`.

    ``[module].root`` is resolved against *base_dir*.
    """
    _check_version(data.get("version"), source or "<config>")

    policy_raw = data.get("policy", {})
    if not isinstance(policy_raw, dict):
        msg = "policy must be a table"
        raise ConfigError(msg)
    default_min = _threshold(policy_raw.get("default_min", 0), "policy.default_min")

    domains_raw = policy_raw.get("domains") or []
    if not isinstance(domains_raw, list):
        msg = "policy.domains must be an array of tables"
        raise ConfigError(msg)
    domains = tuple(_domain(raw, i) for i, raw in enumerate(domains_raw))
    if not domains:
        msg = "policy must define at least one domain"
        raise ConfigError(msg)

    seen: set[str] = set()
    for d in domains:
        if d.name in seen:
            msg = f"duplicate domain name: {d.name}"
            raise ConfigError(msg)
        seen.add(d.name)
        required = d.required(default_min)
        if d.warn is not None and d.warn < required:
            logger.warning(
                "domain %s: warn (%.1f) is below min (%.1f) and will never trigger", d.name, d.warn, required
            )

    files_raw = data.get("files") or []
    if not isinstance(files_raw, list):
        msg = "files must be an array of tables"
        raise ConfigError(msg)
    file_rules = tuple(_file_rule(raw, i) for i, raw in enumerate(files_raw))

    module = data.get("module", {})
    root = Path(str(module.get("root", ".")))
    if not root.is_absolute():
        root = base_dir / root

    annotations = data.get("annotations", {})
    history = data.get("history", {})
    max_entries = history.get("max_entries", DEFAULT_HISTORY_MAX_ENTRIES)
    if isinstance(max_entries, bool) or not isinstance(max_entries, int) or max_entries < 1:
        msg = f"history.max_entries must be a positive integer, got {max_entries!r}"
        raise ConfigError(msg)

    return Config(
        policy=Policy(default_min=default_min, domains=domains),
        excludes=_str_list(data.get("exclude"), "exclude"),
        file_rules=file_rules,
        module_root=root.resolve().as_posix(),
        module_path=str(module.get("path", "")).strip().rstrip("/"),
        annotations_enabled=bool(annotations.get("enabled", False)),
        history_path=str(history.get("path", DEFAULT_HISTORY_PATH)),
        history_max_entries=max_entries,
        source=source,
    )


def load_config(path: Path | None = None, *, start: Path | None = None) -> Config:
    """Load configuration from *path*, or discover it from *start* upwards."""
    if path is None:
        path = find_config(start)
        if path is None:
            names = ", ".join((*CONFIG_FILENAMES, f"{PYPROJECT} [tool.covpolicy]"))
            msg = f"no configuration found (looked for {names})"
            raise ConfigError(msg)
    data, base_dir = _load_raw(path, set())
    config = config_from_mapping(data, base_dir=base_dir, source=str(path))
    logger.info("loaded config %s (%d domains)", path, len(config.policy.domains))
    return config


__all__ = ["config_from_mapping", "find_config", "load_config"]
