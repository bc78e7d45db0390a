import logging
from collections.abc import Callable
from pathlib import Path
from textwrap import dedent

import pytest

from covpolicy.core.config import DEFAULT_HISTORY_MAX_ENTRIES, DEFAULT_HISTORY_PATH, get_schema
from covpolicy.errors import ConfigError
from covpolicy.inputs.config import find_config, load_config

BASIC = """
    version = 1
    exclude = ["*_pb2.py"]

    [module]
    root = "."
    path = "example.com/pkg/"

    [policy]
    default_min = 80

    [[policy.domains]]
    name = "core"
    match = ["./src/core/..."]
    min = 85
    warn = 90
    exclude = ["src/core/gen_*.py"]

    [[policy.domains]]
    name = "api"
    match = "src/api"

    [[files]]
    match = ["*.py"]
    min = 70

    [annotations]
    enabled = true

    [history]
    path = "hist.json"
    max_entries = 5
"""


def test_load_full_config(tmp_path: Path, project: Callable[[str], Path]) -> None:
    path = project(BASIC)
    config = load_config(path)

    assert config.policy.default_min == 80.0
    core, api = config.policy.domains
    assert (core.name, core.match, core.min, core.warn, core.exclude) == (
        "core",
        ("./src/core/...",),
        85.0,
        90.0,
        ("src/core/gen_*.py",),
    )
    assert (api.name, api.match, api.min) == ("api", ("src/api",), None)
    assert config.excludes == ("*_pb2.py",)
    assert [(r.match, r.min) for r in config.file_rules] == [(("*.py",), 70.0)]
    assert config.module_root == tmp_path.resolve().as_posix()
    assert config.module_path == "example.com/pkg"
    assert config.annotations_enabled is True
    assert config.history_path == "hist.json"
    assert config.history_max_entries == 5
    assert config.source == str(path)


def test_defaults_for_optional_sections(project: Callable[[str], Path]) -> None:
    path = project(
        """
        [policy]
        default_min = 50

        [[policy.domains]]
        name = "all"
        match = ["."]
        """
    )
    config = load_config(path)
    assert config.excludes == ()
    assert config.file_rules == ()
    assert config.annotations_enabled is False
    assert config.history_path == DEFAULT_HISTORY_PATH
    assert config.history_max_entries == DEFAULT_HISTORY_MAX_ENTRIES


@pytest.mark.parametrize(
    ("body", "pattern"),
    [
        ("version = 2\n[[policy.domains]]\nname='a'\nmatch=['a']", "unsupported config version"),
        ("[policy]\ndefault_min = 80", "at least one domain"),
        ("[policy]\ndefault_min = 120\n[[policy.domains]]\nname='a'\nmatch=['a']", "between 0 and 100"),
        ("[[policy.domains]]\nname='  '\nmatch=['a']", "cannot be empty"),
        ("[[policy.domains]]\nname='a'\nmatch=['a']\nmin=-1", "between 0 and 100"),
        ("[[policy.domains]]\nname='a'\nmatch=[]", "at least one directory"),
        ("[[policy.domains]]\nname='a'\nmatch=['a']\n[[policy.domains]]\nname='a'\nmatch=['b']", "duplicate"),
        ("[[policy.domains]]\nname='a'\nmatch=['a']\n[[files]]\nmatch=['*.py']", "min is required"),
        ("[[policy.domains]]\nname='a'\nmatch=['a']\nmin='high'", "must be a number"),
        ("[[policy.domains]]\nname='a'\nmatch=['a']\n[history]\nmax_entries=0", "positive integer"),
        ("not toml = = 1", "invalid TOML"),
    ],
)
def test_invalid_configs_raise_config_error(project: Callable[[str], Path], body: str, pattern: str) -> None:
    with pytest.raises(ConfigError, match=pattern):
        load_config(project(body))


def test_warn_below_min_is_logged(project: Callable[[str], Path], caplog: pytest.LogCaptureFixture) -> None:
    path = project(
        """
        [policy]
        default_min = 80

        [[policy.domains]]
        name = "core"
        match = ["src"]
        warn = 70
        """
    )
    with caplog.at_level(logging.WARNING, logger="covpolicy"):
        config = load_config(path)
    assert config.policy.domains[0].warn == 70.0
    assert "warn (70.0) is below min (80.0)" in caplog.text


def test_missing_config_file(tmp_path: Path) -> None:
    with pytest.raises(ConfigError, match="not found"):
        load_config(tmp_path / "nope.toml")


def test_discovery_walks_up_and_prefers_covpolicy_toml(tmp_path: Path) -> None:
    nested = tmp_path / "a" / "b"
    nested.mkdir(parents=True)
    (tmp_path / "pyproject.toml").write_text(
        "[tool.covpolicy]\n[[tool.covpolicy.policy.domains]]\nname='x'\nmatch=['x']\n", encoding="utf-8"
    )
    assert find_config(nested) == (tmp_path / "pyproject.toml").resolve()

    (tmp_path / "a" / ".covpolicy.toml").write_text("", encoding="utf-8")
    assert find_config(nested) == (tmp_path / "a" / ".covpolicy.toml").resolve()

    (tmp_path / "a" / "covpolicy.toml").write_text("", encoding="utf-8")
    assert find_config(nested) == (tmp_path / "a" / "covpolicy.toml").resolve()


def test_pyproject_without_tool_table_is_skipped(tmp_path: Path) -> None:
    project_dir = tmp_path / "proj"
    project_dir.mkdir()
    (project_dir / "pyproject.toml").write_text("[project]\nname='x'\n", encoding="utf-8")
    (tmp_path / "covpolicy.toml").write_text("", encoding="utf-8")
    assert find_config(project_dir) == (tmp_path / "covpolicy.toml").resolve()


def test_load_from_pyproject(tmp_path: Path) -> None:
    (tmp_path / "pyproject.toml").write_text(
        dedent(
            """
            [tool.covpolicy.policy]
            default_min = 75

            [[tool.covpolicy.policy.domains]]
            name = "pkg"
            match = ["src/pkg"]
            """
        ),
        encoding="utf-8",
    )
    config = load_config(start=tmp_path)
    assert config.policy.default_min == 75.0
    assert [d.name for d in config.policy.domains] == ["pkg"]


def test_load_without_any_config(tmp_path: Path) -> None:
    with pytest.raises(ConfigError, match="no configuration found"):
        load_config(start=tmp_path)


def test_extends_merges_parent(tmp_path: Path) -> None:
    base = tmp_path / "base"
    base.mkdir()
    (base / "covpolicy.toml").write_text(
        dedent(
            """
            exclude = ["*_pb2.py"]

            [policy]
            default_min = 70

            [[policy.domains]]
            name = "core"
            match = ["src/core"]
            min = 80

            [[policy.domains]]
            name = "api"
            match = ["src/api"]

            [[files]]
            match = ["*.py"]
            min = 10

            [history]
            max_entries = 7
            """
        ),
        encoding="utf-8",
    )
    child = tmp_path / "covpolicy.toml"
    child.write_text(
        dedent(
            """
            extends = "base/covpolicy.toml"
            exclude = ["vendor/*"]

            [policy]
            default_min = 75

            [[policy.domains]]
            name = "core"
            match = ["lib/core"]
            min = 90

            [[policy.domains]]
            name = "cli"
            match = ["src/cli"]

            [[files]]
            match = ["main.py"]
            min = 50
            """
        ),
        encoding="utf-8",
    )
    config = load_config(child)
    assert config.policy.default_min == 75.0
    assert [(d.name, d.match, d.min) for d in config.policy.domains] == [
        ("core", ("lib/core",), 90.0),
        ("api", ("src/api",), None),
        ("cli", ("src/cli",), None),
    ]
    assert config.excludes == ("*_pb2.py", "vendor/*")
    assert [r.match for r in config.file_rules] == [("main.py",)]
    assert config.history_max_entries == 7
    assert config.module_root == base.resolve().as_posix()


def test_extends_cycle_is_rejected(tmp_path: Path) -> None:
    (tmp_path / "a.toml").write_text('extends = "b.toml"\n', encoding="utf-8")
    (tmp_path / "b.toml").write_text('extends = "a.toml"\n', encoding="utf-8")
    with pytest.raises(ConfigError, match="circular"):
        load_config(tmp_path / "a.toml")


def test_bundled_schema_loads() -> None:
    schema = get_schema("v1")
    assert schema["title"] == "covpolicy report"
    with pytest.raises(ValueError, match="Unsupported schema version"):
        get_schema("v9")
