"""Wildcard matching over the enumerated address universe.

``*`` never crosses a structural delimiter (``.``, ``/``, ``[``, ``]``);
``**`` crosses all of them. Patterns compile to a single anchored regex.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from contract.errors import InvalidPatternError

if TYPE_CHECKING:
    from collections.abc import Iterable

    from program.models import Program
    from spath.enumerate import SpathEntry

_NAME = r"[^./\[\]]"

# Applied in order; each marker is a control character that cannot appear
# in an address, so escaping the literal text never touches it.
_SUBSTITUTIONS: tuple[tuple[str, str, str], ...] = (
    ("**/", "\x00", r"(?:.*/)?"),
    ("/**", "\x01", r"(?:/.*)?"),
    ("**.", "\x02", r"(?:.+[^.]|[^.])\."),
    ("**", "\x03", r".*"),
    ("*.*", "\x04", rf"{_NAME}+\.{_NAME}+"),
    ("[*]", "\x05", rf"\[{_NAME}+\]"),
)
_TRAILING_DOT_STAR = ("\x06", rf"\.{_NAME}+")
_TRAILING_SLASH_STAR = ("\x07", rf"/{_NAME}+")
_SINGLE_STAR = ("\x08", rf"{_NAME}*")

_EXPANSIONS = {
    **{marker: regex for _, marker, regex in _SUBSTITUTIONS},
    _TRAILING_DOT_STAR[0]: _TRAILING_DOT_STAR[1],
    _TRAILING_SLASH_STAR[0]: _TRAILING_SLASH_STAR[1],
    _SINGLE_STAR[0]: _SINGLE_STAR[1],
}
_MARKER_SPLIT = re.compile("([\x00-\x08])")


def is_pattern(text: str) -> bool:
    """Brackets alone are selector syntax; only ``*`` makes a pattern."""
    return "*" in text


def pattern_to_regex(pattern: str) -> str:
    if not pattern:
        raise InvalidPatternError(pattern, "empty pattern")
    if "***" in pattern:
        raise InvalidPatternError(pattern, "'***' is not a valid wildcard")
    if _MARKER_SPLIT.search(pattern):
        raise InvalidPatternError(pattern, "control characters are not allowed")

    marked = pattern
    for literal, marker, _ in _SUBSTITUTIONS:
        marked = marked.replace(literal, marker)
    if marked.endswith(".*"):
        marked = marked[:-2] + _TRAILING_DOT_STAR[0]
    if marked.endswith("/*"):
        marked = marked[:-2] + _TRAILING_SLASH_STAR[0]
    marked = marked.replace("*", _SINGLE_STAR[0])

    pieces = _MARKER_SPLIT.split(marked)
    return "".join(
        _EXPANSIONS[piece] if piece in _EXPANSIONS else re.escape(piece)
        for piece in pieces
    )


@dataclass(frozen=True)
class Matcher:
    pattern: str
    regex: re.Pattern[str]

    def matches(self, address: str) -> bool:
        return self.regex.fullmatch(address) is not None


@dataclass(frozen=True)
class GlobResult:
    pattern: str
    matches: list[SpathEntry] = field(default_factory=list)
    total: int = 0

    @property
    def truncated(self) -> bool:
        return self.total > len(self.matches)

    def to_dict(self) -> dict[str, object]:
        return {
            "pattern": self.pattern,
            "total": self.total,
            "truncated": self.truncated,
            "matches": [entry.model_dump() for entry in self.matches],
        }


def compile_pattern(pattern: str) -> Matcher:
    source = pattern_to_regex(pattern)
    try:
        regex = re.compile(source)
    except re.error as exc:
        raise InvalidPatternError(pattern, str(exc)) from exc
    return Matcher(pattern=pattern, regex=regex)


def match(
    matcher: Matcher, universe: Iterable[SpathEntry], limit: int = 0
) -> GlobResult:
    """Match ``universe`` and return at most ``limit`` entries (0 = no limit).

    ``total`` is always the untruncated count.
    """
    matched = sorted(
        (entry for entry in universe if matcher.matches(entry.path)),
        key=lambda entry: entry.path,
    )
    total = len(matched)
    if limit > 0:
        matched = matched[:limit]
    return GlobResult(pattern=matcher.pattern, matches=matched, total=total)


def expand_package_names(pattern: str, program: Program) -> str:
    """Rewrite a leading Go package name to its module-relative path.

    ``spath.*`` becomes ``internal/spath.*`` when exactly one package is
    named ``spath`` and no package lives at the short path ``spath``.
    """
    pattern = pattern.removeprefix("./")
    head, dot, rest = pattern.partition(".")
    if not dot or "/" in head or "*" in head or not head:
        return pattern

    if any(p.identifier.short_path == head for p in program.packages):
        return pattern

    owners = [p for p in program.packages if p.identifier.name == head]
    if len(owners) != 1:
        return pattern
    return f"{owners[0].identifier.short_path}.{rest}"


__all__ = [
    "GlobResult",
    "Matcher",
    "compile_pattern",
    "expand_package_names",
    "is_pattern",
    "match",
    "pattern_to_regex",
]
