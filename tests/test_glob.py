from __future__ import annotations

import pytest

from contract.errors import InvalidPatternError
from spath.enumerate import SpathEntry
from spath.glob import compile_pattern, is_pattern, match

INVALID_ADDRESSES = [
    "",
    "Symbol",
    ".Symbol",
    "pkg.",
    "pkg..Symbol",
    "pkg.Symbol//body",
    "pkg.Symbol/fields[]",
]


def _entry(path: str) -> SpathEntry:
    return SpathEntry(
        path=path, kind="func", package="example.com/pkg", package_short="pkg"
    )


def test_is_pattern_only_for_stars() -> None:
    assert is_pattern("pkg.*")
    assert is_pattern("**/x")
    assert not is_pattern("pkg.Type/fields[Name]")


@pytest.mark.parametrize(
    ("pattern", "matches", "rejects"),
    [
        (
            "pkg.*",
            ["pkg.Symbol", "pkg.S"],
            ["pkg.Type.Method", "pkg.Symbol/fields[X]", "other.Symbol"],
        ),
        (
            "pkg.**",
            [
                "pkg.Type.Method",
                "pkg.Type/fields[Name]",
                "pkg.Type/fields[Name]/tag[json]",
            ],
            ["other.Type"],
        ),
        (
            "**/golang.Symbol",
            ["golang.Symbol", "a/b/golang.Symbol"],
            ["xgolang.Symbol", "golang.Symbol/body"],
        ),
        (
            "pkg.Symbol/**",
            ["pkg.Symbol", "pkg.Symbol/fields[Name]/tag[json]"],
            ["pkg.SymbolX", "pkg.Symbol.Method"],
        ),
        ("pkg.Symbol", ["pkg.Symbol"], ["pkg.symbol", "pkg.Symbol/body"]),
        (
            "encoding/*",
            ["encoding/json", "encoding/xml"],
            ["encoding", "encoding/json/v2"],
        ),
        (
            "internal/**",
            ["internal", "internal/golang", "internal/commands/spath"],
            ["myinternal", "pkg/internal"],
        ),
        ("pkg.Sym*", ["pkg.Sym", "pkg.Symbol"], ["pkg.Symbol.Method", "pkg.Other"]),
        ("pkg.*.*", ["pkg.Type.Method"], ["pkg.Type", "pkg.Type.Method/body"]),
        ("pkg.**.Method", ["pkg.Type.Method", "pkg.X.Method"], ["pkg.Method"]),
        (
            "pkg.Type/fields[*]",
            ["pkg.Type/fields[Name]", "pkg.Type/fields[0]"],
            ["pkg.Type/fields[]", "pkg.Type/fields[Name]/type"],
        ),
        (
            "internal/**/Type.*/params[*]",
            ["internal/a/Type.Get/params[ctx]", "internal/Type.Get/params[0]"],
            ["internal/a/Type.Get/returns[0]"],
        ),
        (
            "**.Options/fields[*]/tag[json]",
            [
                "server.Options/fields[Addr]/tag[json]",
                "a/b/server.Options/fields[0]/tag[json]",
            ],
            ["server.Options/fields[Addr]/tag"],
        ),
    ],
)
def test_pattern_semantics(
    pattern: str, matches: list[str], rejects: list[str]
) -> None:
    matcher = compile_pattern(pattern)
    for address in matches:
        assert matcher.matches(address), f"{pattern} should match {address}"
    for address in rejects:
        assert not matcher.matches(address), f"{pattern} should reject {address}"


@pytest.mark.parametrize("pattern", ["*.*", "pkg.*", "**.Symbol", "**/pkg.*"])
def test_invalid_addresses_never_match(pattern: str) -> None:
    matcher = compile_pattern(pattern)
    for address in INVALID_ADDRESSES:
        assert not matcher.matches(address), f"{pattern} matched {address!r}"


def test_literal_characters_are_escaped() -> None:
    matcher = compile_pattern("github.com/user/repo")

    assert matcher.matches("github.com/user/repo")
    assert not matcher.matches("githubXcom/user/repo")


@pytest.mark.parametrize("pattern", ["", "pkg.***", "a\x00b"])
def test_compile_rejects_invalid_patterns(pattern: str) -> None:
    with pytest.raises(InvalidPatternError):
        compile_pattern(pattern)


def test_match_reports_untruncated_total() -> None:
    universe = [_entry(f"pkg.F{i}") for i in range(5)]
    universe.append(_entry("pkg.F0/body"))

    result = match(compile_pattern("pkg.*"), universe, limit=2)

    assert result.total == 5
    assert len(result.matches) == 2
    assert result.truncated
    assert [e.path for e in result.matches] == ["pkg.F0", "pkg.F1"]


def test_match_without_limit_returns_everything_sorted() -> None:
    universe = [_entry("pkg.B"), _entry("pkg.A")]

    result = match(compile_pattern("pkg.*"), universe)

    assert [e.path for e in result.matches] == ["pkg.A", "pkg.B"]
    assert result.total == 2
    assert not result.truncated
    assert result.to_dict()["total"] == 2
