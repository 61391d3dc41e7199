"""``symaddr ls``: list the addresses below a package or symbol."""

from __future__ import annotations

from typing import TYPE_CHECKING

from commands.read import find_package_target
from commands.report import Report
from commands.session import MISS_ERRORS
from spath.enumerate import enumerate_package
from spath.resolve import resolve_query
from utils import strip_dot_slash

if TYPE_CHECKING:
    from commands.session import Session
    from spath.enumerate import SpathEntry


def address_depth(base: str, address: str) -> int:
    """Levels between ``base`` and one of its descendants.

    ``pkg`` -> ``pkg.Type`` is one level, ``pkg.Type`` ->
    ``pkg.Type.Method/params[0]`` two.
    """
    rest = address[len(base) :]
    head, _, _ = rest.partition("/")
    return head.count(".") + rest.count("/")


def children(base: str, entries: list[SpathEntry], depth: int) -> list[SpathEntry]:
    """Entries strictly below ``base``; ``depth`` 0 means unlimited."""
    found: list[SpathEntry] = []
    for entry in entries:
        if entry.path == base or not entry.path.startswith(base):
            continue
        if entry.path[len(base)] not in "./":
            continue
        if depth > 0 and address_depth(base, entry.path) > depth:
            continue
        found.append(entry)
    return sorted(found, key=lambda e: e.path)


def _format_entry(entry: SpathEntry) -> str:
    if entry.type:
        return f"{entry.path}  {entry.kind}  {entry.type}"
    return f"{entry.path}  {entry.kind}"


def run_ls(session: Session, targets: list[str], *, depth: int = 1) -> Report:
    report = Report(command="ls", diagnostics=session.diagnostics)
    results: list[dict[str, object]] = []

    for raw in targets or ["."]:
        target = strip_dot_slash(raw)
        report.attempted += 1
        try:
            package = find_package_target(session, target)
            if package is not None:
                base = package.identifier.short_path
                entries = children(
                    base, enumerate_package(package, session.index), depth
                )
                subpackages = [
                    p.identifier.short_path
                    for p in session.program.subpackages(package)
                ]
            else:
                resolution = resolve_query(
                    target, session.program, session.index, session.diagnostics
                )
                identifier = resolution.package.identifier
                base = str(resolution.path.full(identifier.short_path))
                universe = [
                    e for e in session.universe if e.package == identifier.pkg_path
                ]
                entries = children(base, universe, depth)
                subpackages = []
        except MISS_ERRORS as exc:
            report.missed += 1
            results.append(session.record_miss(target, exc))
            report.add(f"{target}: {exc}")
            continue

        results.append(
            {
                "target": target,
                "path": base,
                "entries": [e.model_dump() for e in entries],
                "subpackages": subpackages,
            }
        )
        report.add(f"{base}:")
        report.lines.extend(f"  {_format_entry(e)}" for e in entries)
        if subpackages:
            report.add("  subpackages:")
            report.lines.extend(f"    {p}" for p in subpackages)
        if not entries and not subpackages:
            report.add("  (no children)")

    report.data = {"depth": depth, "results": results}
    return report


__all__ = ["address_depth", "children", "run_ls"]
