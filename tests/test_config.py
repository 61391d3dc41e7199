from __future__ import annotations

from pathlib import Path

import pytest

from program.loader import load_program_from_config
from rules.config import ConfigError, load_config


def _write_config(repo_root: Path, toml_content: str) -> None:
    (repo_root / "symaddr.toml").write_text(toml_content, encoding="utf-8")


def test_unknown_top_level_key_rejected(tmp_path: Path) -> None:
    _write_config(tmp_path, "bogus_key = true")

    with pytest.raises(ConfigError):
        load_config(tmp_path)


def test_unknown_section_rejected(tmp_path: Path) -> None:
    _write_config(
        tmp_path,
        """
[layers]
unclassified = "deny"
""".strip(),
    )

    with pytest.raises(ConfigError):
        load_config(tmp_path)


def test_invalid_toml_rejected(tmp_path: Path) -> None:
    _write_config(tmp_path, "default_scope = ")

    with pytest.raises(ConfigError, match="Invalid TOML"):
        load_config(tmp_path)


@pytest.mark.parametrize(
    "content",
    [
        "glob_limit = -1",
        "search_limit = -5",
        'default_scope = "   "',
        "default_scope = 3",
        'include_tests = "sometimes"',
    ],
)
def test_invalid_values_rejected(tmp_path: Path, content: str) -> None:
    _write_config(tmp_path, content)

    with pytest.raises(ConfigError, match="Invalid config"):
        load_config(tmp_path)


def test_valid_config_accepted(tmp_path: Path) -> None:
    _write_config(
        tmp_path,
        """
default_scope = "project,-internal/..."
include_tests = false
exclude = "gen/**"
glob_limit = 50
""".strip(),
    )

    config = load_config(tmp_path)

    assert config.default_scope == "project,-internal/..."
    assert not config.include_tests
    assert config.exclude == ["gen/**"]
    assert config.glob_limit == 50


def test_empty_config_accepted(tmp_path: Path) -> None:
    _write_config(tmp_path, "")

    config = load_config(tmp_path)

    assert config.default_scope == "project"
    assert config.include_tests
    assert config.include == []
    assert config.exclude == []
    assert config.search_limit == 20
    assert config.suggestion_limit == 5


def test_missing_config_uses_defaults(tmp_path: Path) -> None:
    config = load_config(tmp_path)

    assert config.glob_limit == 0
    assert not config.nested_gitignore


def test_exclude_patterns_drop_files(tmp_path: Path) -> None:
    (tmp_path / "go.mod").write_text("module example.com/cfg\n", encoding="utf-8")
    for name in ("keep", "gen"):
        (tmp_path / name).mkdir()
        (tmp_path / name / f"{name}.go").write_text(
            f"package {name}\n\nfunc F() {{}}\n", encoding="utf-8"
        )
    _write_config(tmp_path, 'exclude = ["gen/*"]')

    program = load_program_from_config(tmp_path, load_config(tmp_path))

    assert program.package_paths() == ["example.com/cfg/keep"]
