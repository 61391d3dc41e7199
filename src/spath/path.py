"""Semantic path model: ``pkg.Symbol[.Method][/category[selector]...]``."""

from __future__ import annotations

from dataclasses import dataclass, replace

CATEGORIES: tuple[str, ...] = (
    "fields",
    "methods",
    "embeds",
    "params",
    "returns",
    "receiver",
    "typeparams",
    "body",
    "doc",
    "tag",
    "type",
    "name",
    "constraint",
    "value",
)

VALID_CATEGORIES = frozenset(CATEGORIES)

# Categories that address one entry of a list and need a selector to do so.
SELECTOR_REQUIRED = frozenset(
    {"fields", "methods", "embeds", "params", "returns", "typeparams"}
)
SELECTOR_OPTIONAL = frozenset({"tag"})


def is_index_selector(selector: str) -> bool:
    """True for a zero-based position written in ASCII digits."""
    return selector.isascii() and selector.isdigit()


@dataclass(frozen=True)
class Segment:
    category: str
    selector: str | None = None

    @property
    def is_index(self) -> bool:
        return self.selector is not None and is_index_selector(self.selector)

    @property
    def index(self) -> int:
        if not self.is_index:
            msg = f"segment {self} has no positional selector"
            raise ValueError(msg)
        return int(self.selector or "0")

    def __str__(self) -> str:
        if self.selector is None:
            return self.category
        return f"{self.category}[{self.selector}]"


@dataclass(frozen=True)
class Path:
    package: str
    symbol: str | None = None
    method: str | None = None
    segments: tuple[Segment, ...] = ()

    def __post_init__(self) -> None:
        if not self.package:
            msg = "path requires a package"
            raise ValueError(msg)
        if self.symbol is None and (self.method is not None or self.segments):
            msg = "a method or subpath requires a symbol"
            raise ValueError(msg)

    @property
    def is_package_only(self) -> bool:
        return self.symbol is None

    @property
    def qualified_symbol(self) -> str | None:
        """``Symbol`` or ``Symbol.Method``."""
        if self.symbol is None:
            return None
        if self.method is None:
            return self.symbol
        return f"{self.symbol}.{self.method}"

    def with_segment(self, segment: Segment) -> Path:
        return replace(self, segments=(*self.segments, segment))

    def with_method(self, method: str) -> Path:
        return replace(self, method=method, segments=())

    def full(self, pkg_path: str) -> Path:
        """Same address with the package replaced by its full import path."""
        return replace(self, package=pkg_path)

    def parent(self) -> Path | None:
        """Drop the last element: segment, then method, then symbol."""
        if self.segments:
            return replace(self, segments=self.segments[:-1])
        if self.method is not None:
            return replace(self, method=None)
        if self.symbol is not None:
            return Path(package=self.package)
        return None

    def __str__(self) -> str:
        out = self.package
        if self.symbol is not None:
            out += f".{self.symbol}"
        if self.method is not None:
            out += f".{self.method}"
        for segment in self.segments:
            out += f"/{segment}"
        return out


__all__ = [
    "CATEGORIES",
    "SELECTOR_OPTIONAL",
    "SELECTOR_REQUIRED",
    "VALID_CATEGORIES",
    "Path",
    "Segment",
    "is_index_selector",
]
