"""Parser for semantic path strings.

The symbol boundary is the first ``.`` in the last package component, i.e.
the component that is followed only by subpath segments. Everything before
it is the package path; ``golang/spath.Path/fields[Package]`` splits into
package ``golang/spath``, symbol ``Path`` and one ``fields`` segment.
"""

from __future__ import annotations

import re

from contract.errors import ParseError
from spath.path import VALID_CATEGORIES, Path, Segment, is_index_selector

_SEGMENT_RE = re.compile(r"^(?P<category>[A-Za-z_]\w*)(?:\[(?P<selector>[^\[\]]*)\])?$")
_PACKAGE_COMPONENT_RE = re.compile(r"^[\w.~+-]+$")


def _looks_like_segment(component: str) -> bool:
    if "[" in component or "]" in component:
        return True
    return component in VALID_CATEGORIES


def _offsets(components: list[str]) -> list[int]:
    offsets: list[int] = []
    position = 0
    for component in components:
        offsets.append(position)
        position += len(component) + 1
    return offsets


def _parse_segment(text: str, component: str, offset: int) -> Segment:
    if component.startswith("["):
        raise ParseError(text, "selector without a category", offset)

    opening = component.find("[")
    if opening != -1 and not component.endswith("]"):
        raise ParseError(text, f"unclosed bracket in {component!r}", offset + opening)
    if component.count("[") > 1 or component.count("]") > 1:
        raise ParseError(text, f"nested brackets in {component!r}", offset)
    if opening == -1 and "]" in component:
        raise ParseError(text, f"unexpected ']' in {component!r}", offset)

    match = _SEGMENT_RE.match(component)
    if match is None:
        raise ParseError(text, f"malformed segment {component!r}", offset)

    category = match.group("category")
    if category not in VALID_CATEGORIES:
        valid = ", ".join(sorted(VALID_CATEGORIES))
        raise ParseError(
            text, f"unknown category {category!r} (valid: {valid})", offset
        )

    selector = match.group("selector")
    if selector is not None:
        if selector == "":
            raise ParseError(text, f"empty selector in {component!r}", offset)
        if not (is_index_selector(selector) or selector.isidentifier()):
            raise ParseError(
                text,
                f"selector {selector!r} must be an identifier or an index",
                offset + len(category) + 1,
            )

    return Segment(category=category, selector=selector)


def _check_package(text: str, components: list[str]) -> None:
    for component, offset in zip(components, _offsets(components), strict=True):
        if not _PACKAGE_COMPONENT_RE.match(component):
            raise ParseError(text, f"invalid package component {component!r}", offset)


def _symbol_boundary(components: list[str]) -> int | None:
    """Return the index of the component holding the symbol dot."""
    for k, component in enumerate(components):
        if "." not in component:
            continue
        if all(_looks_like_segment(c) for c in components[k + 1 :]):
            return k
    return None


def parse(text: str, *, allow_package_only: bool = False) -> Path:
    """Parse an address into a :class:`Path`.

    With ``allow_package_only`` a dotless address such as ``internal/spath``
    parses as a package-only path; otherwise it is rejected as a bare name.
    """
    if not text:
        raise ParseError(text, "empty address")
    if any(ch.isspace() for ch in text):
        raise ParseError(text, "whitespace is not allowed")
    for doubled in ("..", "//"):
        position = text.find(doubled)
        if position != -1:
            raise ParseError(text, f"doubled delimiter {doubled!r}", position)
    if text.startswith("/") or text.endswith("/"):
        raise ParseError(text, "empty path component")

    components = text.split("/")
    offsets = _offsets(components)
    boundary = _symbol_boundary(components)

    if boundary is None:
        if allow_package_only and not any(_looks_like_segment(c) for c in components):
            _check_package(text, components)
            return Path(package=text)

        dotted = [i for i, c in enumerate(components) if "." in c]
        if not dotted:
            if any(c.startswith("[") for c in components):
                raise ParseError(text, "selector without a category")
            raise ParseError(text, "missing package qualifier: expected package.Symbol")
        boundary = dotted[-1]

    head = components[boundary]
    parts = head.split(".")
    if parts[0] == "":
        raise ParseError(text, "missing package before '.'", offsets[boundary])
    if parts[-1] == "":
        position = offsets[boundary] + len(head)
        raise ParseError(text, "missing symbol after '.'", position)

    if len(parts) > 3:
        package_tail = ".".join(parts[:-2])
        names = parts[-2:]
    else:
        package_tail = parts[0]
        names = parts[1:]

    package_components = [*components[:boundary], package_tail]
    _check_package(text, package_components)

    for name in names:
        if not name.isidentifier():
            position = offsets[boundary] + head.find(name)
            raise ParseError(text, f"invalid symbol name {name!r}", position)

    segments = tuple(
        _parse_segment(text, component, offsets[boundary + 1 + i])
        for i, component in enumerate(components[boundary + 1 :])
    )

    return Path(
        package="/".join(package_components),
        symbol=names[0],
        method=names[1] if len(names) > 1 else None,
        segments=segments,
    )


def try_parse(text: str, *, allow_package_only: bool = False) -> Path | None:
    try:
        return parse(text, allow_package_only=allow_package_only)
    except ParseError:
        return None


__all__ = ["parse", "try_parse"]
