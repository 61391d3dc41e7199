"""``symaddr symbol``: one declaration and what relates to it.

Relationships come from the syntactic reference graph. Callers of a method
are found by selector name (``x.Name(...)``) since receivers are untyped;
interface satisfaction compares method names only.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from commands.package import brief_signature
from commands.report import Report
from commands.session import MISS_ERRORS
from graph.reachability import build_reference_graph
from index.symbols import SymbolKind
from parse.go_syntax import interface_methods, result_members, text, underlying_type
from spath.resolve import resolve_query
from utils import strip_dot_slash

if TYPE_CHECKING:
    from tree_sitter import Node

    from commands.session import Session
    from graph.reachability import ReferenceGraph
    from index.symbols import Symbol
    from scope.filter import ScopeFilter

logger = logging.getLogger(__name__)


def find_symbol(session: Session, target: str) -> Symbol:
    """Resolve ``target`` to the declaration that owns it.

    Subpaths are accepted and ignored; an interface method resolves to its
    interface.
    """
    resolution = resolve_query(
        target, session.program, session.index, session.diagnostics
    )
    return resolution.symbol


def _entry(symbol: Symbol) -> dict[str, object]:
    return {
        "address": symbol.address,
        "kind": symbol.kind.value,
        "location": symbol.location,
        "signature": brief_signature(symbol),
    }


def _calls(node: Node, name: str, *, selector_only: bool) -> bool:
    stack = [node]
    while stack:
        current = stack.pop()
        if current.type == "call_expression":
            function = current.child_by_field_name("function")
            if function is not None and function.type == "selector_expression":
                if text(function.child_by_field_name("field")) == name:
                    return True
            elif (
                not selector_only
                and function is not None
                and function.type == "identifier"
                and text(function) == name
            ):
                return True
        stack.extend(current.children)
    return False


def _is_structural(symbol: Symbol, other: Symbol) -> bool:
    """A type and its own methods refer to each other by construction."""
    if other.package.pkg_path != symbol.package.pkg_path:
        return False
    if symbol.kind.is_type:
        return other.receiver == symbol.name
    if symbol.receiver is not None:
        return other.kind.is_type and other.name == symbol.receiver
    return False


def find_references(
    graph: ReferenceGraph, symbol: Symbol, scope: ScopeFilter
) -> list[Symbol]:
    """In-scope declarations whose source refers to ``symbol``."""
    found = [
        s
        for s, targets in graph.edges.items()
        if symbol in targets
        and s != symbol
        and scope.in_scope(s.package.pkg_path)
        and not _is_structural(symbol, s)
    ]
    return sorted(found, key=lambda s: (s.address, s.location))


def find_callers(
    session: Session,
    symbol: Symbol,
    references: list[Symbol],
    scope: ScopeFilter,
) -> list[Symbol]:
    """In-scope functions and methods that call ``symbol``."""
    if not symbol.kind.is_callable:
        return []
    if symbol.receiver is None:
        candidates = references
    else:
        candidates = [
            s
            for s in session.index.symbols()
            if s != symbol and scope.in_scope(s.package.pkg_path)
        ]
    callers = [
        s
        for s in candidates
        if s.kind.is_callable
        and _calls(s.node, symbol.name, selector_only=symbol.receiver is not None)
    ]
    return sorted(callers, key=lambda s: (s.address, s.location))


def _interface_method_names(interface: Symbol) -> frozenset[str]:
    underlying = underlying_type(interface.node)
    if underlying is None:
        return frozenset()
    return frozenset(m.label for m in interface_methods(underlying) if m.label)


def _method_names(symbol: Symbol) -> frozenset[str]:
    return frozenset(m.name for m in symbol.methods)


def find_interface_matches(
    session: Session, symbol: Symbol, scope: ScopeFilter
) -> list[Symbol]:
    """Interfaces a type satisfies, or types that implement an interface.

    Interfaces without explicit methods match everything and are skipped;
    embedded interfaces are not expanded.
    """
    in_scope = [
        s
        for s in session.index.symbols()
        if s != symbol and scope.in_scope(s.package.pkg_path)
    ]
    if symbol.kind is SymbolKind.INTERFACE:
        wanted = _interface_method_names(symbol)
        if not wanted:
            return []
        return [
            s
            for s in in_scope
            if s.kind is SymbolKind.TYPE and wanted <= _method_names(s)
        ]
    if symbol.kind is SymbolKind.TYPE:
        have = _method_names(symbol)
        matches: list[Symbol] = []
        for candidate in in_scope:
            if candidate.kind is not SymbolKind.INTERFACE:
                continue
            wanted = _interface_method_names(candidate)
            if wanted and wanted <= have:
                matches.append(candidate)
        return matches
    return []


def find_constructors(session: Session, symbol: Symbol) -> list[Symbol]:
    """Package functions returning ``symbol`` (or a pointer to it)."""
    if not symbol.kind.is_type:
        return []
    return [
        s
        for s in session.index.symbols_in(symbol.package.pkg_path)
        if s.kind is SymbolKind.FUNC
        and any(m.type_label == symbol.name for m in result_members(s.node))
    ]


def _render(report: Report, data: dict[str, object], symbol: Symbol) -> None:
    report.add(f"{symbol.kind.value} {symbol.address}  {symbol.location}")
    report.add(f"  {brief_signature(symbol)}")
    report.add(f"  fan-in: {data['fan_in']}")
    for label in (
        "methods",
        "constructors",
        "callers",
        "references",
        "implementations",
        "satisfies",
    ):
        entries = data[label]
        assert isinstance(entries, list)
        if not entries:
            continue
        report.add(f"  {label} ({len(entries)}):")
        report.lines.extend(
            f"    {e['location']}: {e['kind']} {e['address']}" for e in entries
        )
    imported_by = data["imported_by"]
    assert isinstance(imported_by, list)
    if imported_by:
        report.add(f"  imported by ({len(imported_by)}):")
        report.lines.extend(f"    {p}" for p in imported_by)


def run_symbol(
    session: Session, target: str, *, scope_expr: str | None = None
) -> Report:
    """Profile one symbol.

    The scope defaults to the configured one; the ``package`` keyword means
    the package declaring the symbol, which is always in scope.
    """
    report = Report(command="symbol", diagnostics=session.diagnostics)
    report.attempted = 1
    target = strip_dot_slash(target)
    try:
        symbol = find_symbol(session, target)
    except MISS_ERRORS as exc:
        report.missed = 1
        report.data = {"target": target, "miss": session.record_miss(target, exc)}
        report.add(f"{target}: {exc}")
        return report

    pkg_path = symbol.package.pkg_path
    scope = session.scope(scope_expr, default_target=pkg_path)
    report.scope = scope

    graph = build_reference_graph(session.program, session.index)
    references = find_references(graph, symbol, scope)
    callers = find_callers(session, symbol, references, scope)
    matches = find_interface_matches(session, symbol, scope)
    logger.debug(
        "%s: %d references, %d callers", symbol.address, len(references), len(callers)
    )

    is_interface = symbol.kind is SymbolKind.INTERFACE
    data: dict[str, object] = {
        "target": target,
        "symbol": {**symbol.to_dict(), "signature": brief_signature(symbol)},
        "fan_in": graph.fan_in().get(symbol, 0),
        "methods": [_entry(m) for m in symbol.methods],
        "constructors": [_entry(s) for s in find_constructors(session, symbol)],
        "callers": [_entry(s) for s in callers],
        "references": [_entry(s) for s in references],
        "implementations": [_entry(s) for s in matches] if is_interface else [],
        "satisfies": [] if is_interface else [_entry(s) for s in matches],
        "imported_by": [
            p.identifier.short_path
            for p in scope.packages(session.program)
            if p.path != pkg_path and pkg_path in p.imports()
        ],
        "scope": scope.to_dict(),
    }
    _render(report, data, symbol)
    report.data = data
    return report


__all__ = [
    "find_callers",
    "find_constructors",
    "find_interface_matches",
    "find_references",
    "find_symbol",
    "run_symbol",
]
