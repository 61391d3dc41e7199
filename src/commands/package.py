"""``symaddr package``: summarize packages."""

from __future__ import annotations

from typing import TYPE_CHECKING

from commands.report import Report
from commands.session import MISS_ERRORS
from index.symbols import SymbolKind
from parse.go_syntax import signature_text, text, underlying_type
from utils import plural, strip_dot_slash

if TYPE_CHECKING:
    from commands.session import Session
    from index.symbols import Symbol
    from program.models import Package
    from scope.filter import ScopeFilter

_GROUPS = (
    ("constants", (SymbolKind.CONST,)),
    ("variables", (SymbolKind.VAR,)),
    ("functions", (SymbolKind.FUNC,)),
    ("types", (SymbolKind.TYPE, SymbolKind.INTERFACE)),
)


def brief_signature(symbol: Symbol) -> str:
    if symbol.kind.is_callable:
        return signature_text(symbol.node)
    if symbol.kind.is_type:
        underlying = underlying_type(symbol.node)
        kind = underlying.type.removesuffix("_type") if underlying else "type"
        return f"type {symbol.name} {kind}"
    declared = symbol.node.child_by_field_name("type")
    return f"{symbol.kind.value} {symbol.name} {text(declared)}".rstrip()


def _symbol_dict(symbol: Symbol) -> dict[str, object]:
    data = {**symbol.to_dict(), "signature": brief_signature(symbol)}
    if symbol.kind.is_type:
        data["methods"] = [
            {**m.to_dict(), "signature": brief_signature(m)} for m in symbol.methods
        ]
    return data


def summarize_package(session: Session, package: Package) -> dict[str, object]:
    """Identifier, files, imports and symbols grouped by kind."""
    symbols = session.index.symbols_in(package)
    groups: dict[str, list[dict[str, object]]] = {}
    for label, kinds in _GROUPS:
        members = sorted(
            (s for s in symbols if s.kind in kinds), key=lambda s: s.name
        )
        groups[label] = [_symbol_dict(s) for s in members]

    return {
        **package.identifier.to_dict(),
        "files": [f.relative_path for f in package.files],
        "imports": package.imports(),
        "subpackages": [
            p.identifier.short_path for p in session.program.subpackages(package)
        ],
        "symbols": groups,
    }


def _render(report: Report, summary: dict[str, object]) -> None:
    report.add(f"package {summary['name']} ({summary['pkg_path']})")
    if summary["internal"]:
        report.add("  internal")
    for label in ("files", "imports", "subpackages"):
        values = summary[label]
        assert isinstance(values, list)
        if values:
            report.add(f"  {label}:")
            report.lines.extend(f"    {v}" for v in values)

    groups = summary["symbols"]
    assert isinstance(groups, dict)
    for label, members in groups.items():
        if not members:
            continue
        report.add(f"  {label} ({len(members)}):")
        for member in members:
            report.add(f"    {member['signature']}")
            for method in member.get("methods", ()):
                report.add(f"      {method['signature']}")
    report.add()


def run_package(
    session: Session,
    targets: list[str],
    *,
    scope: ScopeFilter,
) -> Report:
    """Summarize the named packages, or every in-scope package."""
    report = Report(command="package", diagnostics=session.diagnostics)
    summaries: list[dict[str, object]] = []
    misses: list[dict[str, object]] = []

    packages: list[Package] = []
    for raw in targets:
        target = strip_dot_slash(raw)
        report.attempted += 1
        try:
            packages.append(session.program.find_package(target))
        except MISS_ERRORS as exc:
            report.missed += 1
            misses.append(session.record_miss(target, exc))
            report.add(f"{target}: {exc}")
    if not targets:
        packages = scope.packages(session.program)

    for package in packages:
        summary = summarize_package(session, package)
        summaries.append(summary)
        _render(report, summary)

    if not targets:
        report.add(plural(len(packages), "package"))
    report.data = {"packages": summaries, "misses": misses}
    return report


__all__ = ["brief_signature", "run_package", "summarize_package"]
