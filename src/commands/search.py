"""``symaddr search``: fuzzy symbol search."""

from __future__ import annotations

from typing import TYPE_CHECKING

from commands.report import Report

if TYPE_CHECKING:
    from commands.session import Session
    from index.symbols import SymbolKind
    from scope.filter import ScopeFilter


def run_search(
    session: Session,
    query: str,
    *,
    scope: ScopeFilter,
    kind: SymbolKind | None = None,
    limit: int | None = None,
) -> Report:
    report = Report(command="search", diagnostics=session.diagnostics, attempted=1)
    effective_limit = session.config.search_limit if limit is None else limit

    hits = [
        hit
        for hit in session.index.search(query, kind=kind, limit=0)
        if scope.in_scope(hit.symbol.package.pkg_path)
    ]
    total = len(hits)
    if effective_limit > 0:
        hits = hits[:effective_limit]
    if not hits:
        report.missed = 1
        report.add(f"no symbols match {query!r}")

    for hit in hits:
        symbol = hit.symbol
        report.add(f"{symbol.address}  {symbol.kind.value}  {symbol.location}")
    if len(hits) < total:
        report.add(f"({len(hits)} of {total} shown)")

    report.data = {
        "query": query,
        "kind": kind.value if kind is not None else None,
        "total": total,
        "hits": [hit.to_dict() for hit in hits],
    }
    return report


__all__ = ["run_search"]
