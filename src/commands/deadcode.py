"""``symaddr deadcode`` and ``symaddr unused``."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from commands.report import Report
from contract.diagnostics import UNANALYZABLE_SYMBOL
from contract.errors import UnanalyzableSymbolError
from graph.reachability import (
    SyntacticReachability,
    build_reference_graph,
    is_entry_point,
)
from utils import plural

if TYPE_CHECKING:
    from commands.session import Session
    from graph.reachability import ReachabilityOracle
    from index.symbols import Symbol
    from scope.filter import ScopeFilter

logger = logging.getLogger(__name__)


def _in_scope_symbols(session: Session, scope: ScopeFilter) -> list[Symbol]:
    return [
        s for s in session.index.symbols() if scope.in_scope(s.package.pkg_path)
    ]


def _render(report: Report, symbols: list[Symbol], noun: str) -> None:
    for symbol in symbols:
        report.add(f"{symbol.location}: {symbol.kind.value} {symbol.display_name}")
    report.add(f"{plural(len(symbols), noun)}")


def find_dead_symbols(
    session: Session,
    oracle: ReachabilityOracle,
    scope: ScopeFilter,
    *,
    include_exported: bool = False,
    include_tests: bool = True,
) -> list[Symbol]:
    """Symbols in scope that no entry point reaches.

    Unanalyzable symbols are reported as diagnostics and left out.
    """
    dead: list[Symbol] = []
    for symbol in _in_scope_symbols(session, scope):
        if is_entry_point(symbol, include_tests=include_tests):
            continue
        if symbol.exported and not include_exported:
            continue
        try:
            reachable = oracle.is_reachable(symbol)
        except UnanalyzableSymbolError as exc:
            session.diagnostics.warning(
                UNANALYZABLE_SYMBOL, str(exc), package=symbol.package.pkg_path
            )
            continue
        if not reachable:
            dead.append(symbol)
    return dead


def run_deadcode(
    session: Session,
    *,
    scope: ScopeFilter,
    include_exported: bool = False,
) -> Report:
    include_tests = session.config.include_tests
    oracle = SyntacticReachability(
        session.program, session.index, include_tests=include_tests
    )
    dead = find_dead_symbols(
        session,
        oracle,
        scope,
        include_exported=include_exported,
        include_tests=include_tests,
    )
    logger.debug("%d unreachable symbols", len(dead))

    report = Report(command="deadcode", diagnostics=session.diagnostics)
    _render(report, dead, "unreachable symbol")
    report.data = {
        "include_exported": include_exported,
        "include_tests": include_tests,
        "roots": sorted(s.address for s in oracle.roots),
        "scope": scope.to_dict(),
        "symbols": [s.to_dict() for s in dead],
    }
    return report


def find_unused_symbols(session: Session, scope: ScopeFilter) -> list[Symbol]:
    """Unexported symbols nothing else refers to."""
    graph = build_reference_graph(session.program, session.index)
    fan_in = graph.fan_in()
    include_tests = session.config.include_tests

    unused: list[Symbol] = []
    for symbol in _in_scope_symbols(session, scope):
        if symbol.exported or is_entry_point(symbol, include_tests=include_tests):
            continue
        if symbol in graph.unanalyzable:
            session.diagnostics.warning(
                UNANALYZABLE_SYMBOL,
                f"cannot analyze {symbol.display_name}: "
                f"{symbol.file.relative_path} has syntax errors",
                package=symbol.package.pkg_path,
            )
            continue
        if fan_in.get(symbol, 0) == 0:
            unused.append(symbol)
    return unused


def run_unused(session: Session, *, scope: ScopeFilter) -> Report:
    unused = find_unused_symbols(session, scope)
    report = Report(command="unused", diagnostics=session.diagnostics)
    _render(report, unused, "unused symbol")
    report.data = {
        "scope": scope.to_dict(),
        "symbols": [s.to_dict() for s in unused],
    }
    return report


__all__ = [
    "find_dead_symbols",
    "find_unused_symbols",
    "run_deadcode",
    "run_unused",
]
