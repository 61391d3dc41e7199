"""Enumerator: every valid address in a loaded program."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from pydantic import BaseModel, Field

from parse.go_syntax import (
    doc_comments,
    interface_embeds,
    interface_methods,
    line_count,
    parameter_members,
    parse_struct_tag,
    receiver_member,
    result_members,
    selector_for,
    signature_text,
    struct_embeds,
    struct_members,
    text,
    typeparam_members,
    underlying_type,
    value_at,
)
from spath.path import Path, Segment

if TYPE_CHECKING:
    from collections.abc import Iterator

    from tree_sitter import Node

    from index.symbols import Symbol, SymbolIndex
    from parse.go_syntax import Member
    from program.models import Package, Program

logger = logging.getLogger(__name__)

_BRIEF_LIMIT = 80


class SpathEntry(BaseModel):
    """One member of the address universe."""

    path: str = Field(description="Canonical address")
    kind: str = Field(
        description="package, a symbol kind, a member kind or a leaf category"
    )
    type: str | None = Field(default=None, description="Type or size annotation")
    package: str = Field(description="Full import path of the owning package")
    package_short: str = Field(description="Module-relative path of the owning package")


# (path, kind, annotation) triples produced while walking one symbol.
_Item = tuple[Path, str, str | None]


def _brief(value: str) -> str:
    collapsed = " ".join(value.split())
    if len(collapsed) > _BRIEF_LIMIT:
        return collapsed[: _BRIEF_LIMIT - 3] + "..."
    return collapsed


def _lines(count: int) -> str:
    return "1 line" if count == 1 else f"{count} lines"


def _doc_item(path: Path, node: Node) -> Iterator[_Item]:
    comments = doc_comments(node)
    if comments:
        rows = comments[-1].end_point[0] - comments[0].start_point[0] + 1
        yield path.with_segment(Segment("doc")), "doc", _lines(rows)


def _member_items(path: Path, member: Member) -> Iterator[_Item]:
    annotation = _brief(text(member.type)) if member.type is not None else None
    yield path, member.kind, annotation

    if member.name is not None:
        yield path.with_segment(Segment("name")), "name", member.label

    if member.kind == "typeparam":
        if annotation is not None:
            yield path.with_segment(Segment("constraint")), "constraint", annotation
        return

    if annotation is not None:
        yield path.with_segment(Segment("type")), "type", annotation

    tag = member.tag
    if tag is not None:
        raw = text(tag)
        yield path.with_segment(Segment("tag")), "tag", raw
        for key, value in parse_struct_tag(raw):
            if key.isidentifier():
                yield path.with_segment(Segment("tag", key)), "tag", value

    yield from _doc_item(path, member.decl)


def _list_items(path: Path, category: str, members: list[Member]) -> Iterator[_Item]:
    for member in members:
        selector = selector_for(member, members)
        yield from _member_items(path.with_segment(Segment(category, selector)), member)


def _callable_items(path: Path, node: Node, *, kind: str) -> Iterator[_Item]:
    """Children shared by functions, methods and interface method elements."""
    if kind == "method":
        receiver = receiver_member(node)
        if receiver is not None:
            yield from _member_items(path.with_segment(Segment("receiver")), receiver)

    if kind == "func":
        yield from _list_items(path, "typeparams", typeparam_members(node))

    params = parameter_members(node.child_by_field_name("parameters"), "param")
    yield from _list_items(path, "params", params)
    yield from _list_items(path, "returns", result_members(node))

    body = node.child_by_field_name("body")
    if body is not None:
        yield path.with_segment(Segment("body")), "body", f"{line_count(body)} loc"

    yield from _doc_item(path, node)


def _type_annotation(spec: Node) -> str | None:
    underlying = underlying_type(spec)
    if underlying is None:
        return None
    if underlying.type == "struct_type":
        return "struct"
    if underlying.type == "interface_type":
        return "interface"
    if spec.type in ("type_alias", "alias_declaration"):
        return f"= {_brief(text(underlying))}"
    return _brief(text(underlying))


def _type_items(path: Path, symbol: Symbol) -> Iterator[_Item]:
    spec = symbol.node
    yield path, symbol.kind.value, _type_annotation(spec)
    yield from _list_items(path, "typeparams", typeparam_members(spec))
    yield from _doc_item(path, spec)

    underlying = underlying_type(spec)
    if underlying is not None and underlying.type == "struct_type":
        members = struct_members(underlying)
        for field in members:
            if field.kind != "field":
                continue
            field_path = path.with_segment(
                Segment("fields", selector_for(field, members))
            )
            yield from _member_items(field_path, field)
        yield from _list_items(path, "embeds", struct_embeds(underlying))
    elif underlying is not None and underlying.type == "interface_type":
        methods = interface_methods(underlying)
        for method in methods:
            method_path = path.with_segment(
                Segment("methods", selector_for(method, methods))
            )
            yield method_path, "method", _brief(text(method.decl))
            yield from _callable_items(
                method_path, method.decl, kind="interface_method"
            )
        yield from _list_items(path, "embeds", interface_embeds(underlying))

    for method in symbol.methods:
        method_path = path.with_method(method.name)
        yield method_path, "method", signature_text(method.node)
        yield from _callable_items(method_path, method.node, kind="method")


def _value_items(path: Path, symbol: Symbol) -> Iterator[_Item]:
    spec = symbol.node
    type_node = spec.child_by_field_name("type")
    annotation = _brief(text(type_node)) if type_node is not None else "untyped"
    yield path, symbol.kind.value, annotation

    if type_node is not None:
        yield path.with_segment(Segment("type")), "type", _brief(text(type_node))
    value = value_at(spec, symbol.name_node)
    if value is not None:
        yield path.with_segment(Segment("value")), "value", _brief(text(value))
    yield from _doc_item(path, spec)


def _symbol_items(path: Path, symbol: Symbol) -> Iterator[_Item]:
    kind = symbol.kind.value
    if symbol.kind.is_callable:
        yield path, kind, signature_text(symbol.node)
        yield from _callable_items(path, symbol.node, kind=kind)
    elif symbol.kind.is_type:
        yield from _type_items(path, symbol)
    elif symbol.kind.is_value:
        yield from _value_items(path, symbol)
    else:
        msg = f"unhandled symbol kind {symbol.kind!r}"
        raise AssertionError(msg)


def enumerate_symbol(symbol: Symbol) -> list[SpathEntry]:
    """Entries for one top-level symbol and everything below it."""
    identifier = symbol.package
    base = Path(package=identifier.short_path, symbol=symbol.name)
    return [
        SpathEntry(
            path=str(path),
            kind=kind,
            type=annotation,
            package=identifier.pkg_path,
            package_short=identifier.short_path,
        )
        for path, kind, annotation in _symbol_items(base, symbol)
    ]


def enumerate_package(package: Package, index: SymbolIndex) -> list[SpathEntry]:
    identifier = package.identifier
    entries: dict[str, SpathEntry] = {
        identifier.short_path: SpathEntry(
            path=identifier.short_path,
            kind="package",
            type=identifier.name,
            package=identifier.pkg_path,
            package_short=identifier.short_path,
        )
    }
    for symbol in index.symbols_in(package):
        for entry in enumerate_symbol(symbol):
            # Build-tagged duplicates produce the same address twice.
            entries.setdefault(entry.path, entry)
    return list(entries.values())


def enumerate_all(program: Program, index: SymbolIndex) -> list[SpathEntry]:
    """Return the whole address universe of ``program``."""
    universe: list[SpathEntry] = []
    for package in program.packages:
        universe.extend(enumerate_package(package, index))
    logger.debug("enumerated %d addresses", len(universe))
    return universe


__all__ = ["SpathEntry", "enumerate_all", "enumerate_package", "enumerate_symbol"]
