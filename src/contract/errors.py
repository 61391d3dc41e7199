"""Error taxonomy for address parsing, resolution and pattern compilation."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from spath.path import Path


class SymaddrError(Exception):
    """Base class for every error raised by the query engine."""


class ParseError(SymaddrError):
    """Malformed address syntax. Always fatal to the request."""

    def __init__(self, input_text: str, reason: str, position: int | None = None):
        self.input = input_text
        self.reason = reason
        self.position = position
        if position is None:
            message = f"invalid address {input_text!r}: {reason}"
        else:
            message = f"invalid address {input_text!r} at offset {position}: {reason}"
        super().__init__(message)


class InvalidPatternError(SymaddrError):
    """A wildcard pattern that cannot be compiled into a matcher."""

    def __init__(self, pattern: str, reason: str):
        self.pattern = pattern
        self.reason = reason
        super().__init__(f"invalid pattern {pattern!r}: {reason}")


class ProgramLoadError(SymaddrError):
    """The target directory could not be loaded as a Go module."""


class PackageNotFoundError(SymaddrError):
    def __init__(self, query: str, suggestions: list[str] | None = None):
        self.query = query
        self.suggestions = list(suggestions or [])
        super().__init__(f"package not found: {query}")


class SymbolNotFoundError(SymaddrError):
    def __init__(
        self,
        query: str,
        package: str | None = None,
        suggestions: list[str] | None = None,
    ):
        self.query = query
        self.package = package
        self.suggestions = list(suggestions or [])
        where = f" in package {package}" if package else ""
        super().__init__(f"symbol not found: {query}{where}")


class AmbiguousMatchError(SymaddrError):
    """Several declarations answer to the same name.

    Commands downgrade this to a warning diagnostic so the caller can retry
    with one of the qualified ``candidates``.
    """

    def __init__(self, query: str, candidates: list[str]):
        self.query = query
        self.candidates = list(candidates)
        listed = ", ".join(self.candidates)
        super().__init__(f"ambiguous name {query!r} matches: {listed}")


class ResolutionError(SymaddrError):
    """A subpath segment that does not apply to the node reached so far.

    ``partial`` is the longest prefix of the address that did resolve.
    """

    def __init__(self, message: str, partial: Path):
        self.partial = partial
        super().__init__(message)


class UnanalyzableSymbolError(SymaddrError):
    def __init__(self, qualified_name: str, reason: str):
        self.qualified_name = qualified_name
        self.reason = reason
        super().__init__(f"cannot analyze {qualified_name}: {reason}")


__all__ = [
    "AmbiguousMatchError",
    "InvalidPatternError",
    "PackageNotFoundError",
    "ParseError",
    "ProgramLoadError",
    "ResolutionError",
    "SymaddrError",
    "SymbolNotFoundError",
    "UnanalyzableSymbolError",
]
