from __future__ import annotations

from pathlib import Path

import pytest

from contract.errors import PackageNotFoundError
from program.loader import load_program
from scope.filter import is_scope_pattern, parse_scope

FIXTURE = Path(__file__).parent / "fixtures" / "gomod"

ROOT = "example.com/demo"
STORE = "example.com/demo/internal/store"
SERVER = "example.com/demo/server"


def _in_scope(expr: str | None, default_target: str | None = None) -> list[str]:
    program = load_program(FIXTURE)
    scope = parse_scope(expr, program, default_target)
    return [p.path for p in scope.packages(program)]


@pytest.mark.parametrize(
    ("expr", "expected"),
    [
        ("all", [ROOT, STORE, SERVER]),
        ("project", [ROOT, STORE, SERVER]),
        ("./...", [ROOT, STORE, SERVER]),
        ("server", [SERVER]),
        ("./server", [SERVER]),
        (SERVER, [SERVER]),
        ("internal/...", [STORE]),
        ("internal/*", [STORE]),
        ("**/store", [STORE]),
        ("example.com/demo/...", [ROOT, STORE, SERVER]),
        ("all,-server", [ROOT, STORE]),
        ("project,-internal/...", [ROOT, SERVER]),
        (" server , internal/store ", [STORE, SERVER]),
        ("", []),
        (None, []),
    ],
)
def test_scope_expressions(expr: str | None, expected: list[str]) -> None:
    assert _in_scope(expr) == expected


@pytest.mark.parametrize(
    "expr",
    [
        "internal/...,-internal/store/...",
        "-internal/store/...,internal/...",
        "server,-server",
        "-server,server",
    ],
)
def test_exclusion_always_wins(expr: str) -> None:
    assert _in_scope(expr) == []


def test_package_keyword_uses_default_target() -> None:
    assert _in_scope(None, default_target="server") == [SERVER]
    assert _in_scope("internal/...,package", default_target="server") == [SERVER]
    assert _in_scope("store", default_target="server") == [STORE, SERVER]


def test_package_keyword_falls_back_to_module_root() -> None:
    assert _in_scope("package") == [ROOT]
    assert _in_scope("server,package") == [ROOT]
    assert _in_scope("package,-.") == []


def test_unknown_literal_raises() -> None:
    with pytest.raises(PackageNotFoundError):
        _in_scope("nowhere")


def test_unmatched_pattern_is_empty() -> None:
    assert _in_scope("nowhere/...") == []


def test_scope_to_dict() -> None:
    program = load_program(FIXTURE)

    scope = parse_scope("project,-server", program)

    assert scope.to_dict() == {
        "all": False,
        "project": True,
        "include": [],
        "exclude": [SERVER],
        "include_patterns": ["project"],
        "exclude_patterns": ["server"],
    }
    assert not scope.in_scope(SERVER)
    assert scope.in_scope(STORE)
    assert not scope.in_scope("golang.org/x/tools")


def test_is_scope_pattern() -> None:
    assert is_scope_pattern("internal/...")
    assert is_scope_pattern("internal/*")
    assert not is_scope_pattern("internal/store")
