"""``symaddr read``: print the source behind addresses."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from commands.report import Report
from commands.session import MISS_ERRORS
from contract.errors import PackageNotFoundError
from spath.glob import compile_pattern, expand_package_names, is_pattern, match
from spath.parse import try_parse
from spath.resolve import resolve_query
from utils import strip_dot_slash

if TYPE_CHECKING:
    from commands.session import Session
    from program.models import Package
    from spath.resolve import Resolution

logger = logging.getLogger(__name__)


def find_package_target(session: Session, target: str) -> Package | None:
    """Return the package a target names, or None when it names a symbol.

    Raises:
        PackageNotFoundError: a slash-qualified target names no package
    """
    if target in (".", ""):
        return session.program.find_package(".")
    exact = session.program.package(target)
    if exact is not None:
        return exact
    last = target.rsplit("/", 1)[-1]
    if "." not in last and "[" not in last:
        # Package paths may end in a category word such as "doc".
        try:
            return session.program.find_package(target)
        except PackageNotFoundError:
            pass
    path = try_parse(target, allow_package_only=True)
    if path is None or not path.is_package_only:
        return None
    try:
        return session.program.find_package(target)
    except PackageNotFoundError:
        if target.isidentifier():
            # A bare symbol name; let the resolver look it up.
            return None
        raise


def _package_listing(package: Package) -> dict[str, object]:
    return {
        "kind": "package",
        "path": package.identifier.short_path,
        "full_path": package.path,
        "name": package.name,
        "files": [f.relative_path for f in package.files],
    }


def _render_resolution(report: Report, resolution: Resolution) -> None:
    header = f"{resolution.full_address()} ({resolution.kind}) {resolution.location}"
    report.add(f"// {header}")
    report.add(resolution.source())
    report.add()


def _expand(session: Session, pattern: str) -> list[str]:
    matcher = compile_pattern(expand_package_names(pattern, session.program))
    result = match(matcher, session.universe)
    return [entry.path for entry in result.matches]


def run_read(session: Session, targets: list[str]) -> Report:
    """Resolve every target and collect its source text.

    Wildcard targets expand through the address universe first. Parse and
    pattern errors propagate; resolution misses are recorded per target.
    """
    report = Report(command="read", diagnostics=session.diagnostics)
    results: list[dict[str, object]] = []

    expanded: list[str] = []
    for raw in targets:
        target = strip_dot_slash(raw)
        if not is_pattern(target):
            expanded.append(target)
            continue
        addresses = _expand(session, target)
        if not addresses:
            report.attempted += 1
            report.missed += 1
            results.append({"target": target, "error": "pattern matched nothing"})
            report.add(f"{target}: pattern matched nothing")
            continue
        logger.debug("%s expanded to %d addresses", target, len(addresses))
        expanded.extend(addresses)

    report.attempted += len(expanded)

    for target in expanded:
        try:
            package = find_package_target(session, target)
            if package is not None:
                results.append({"target": target, **_package_listing(package)})
                report.add(f"// package {package.name} ({package.path})")
                report.lines.extend(f.relative_path for f in package.files)
                report.add()
                continue
            resolution = resolve_query(
                target, session.program, session.index, session.diagnostics
            )
        except MISS_ERRORS as exc:
            report.missed += 1
            results.append(session.record_miss(target, exc))
            report.add(f"{target}: {exc}")
            continue
        results.append({"target": target, **resolution.to_dict()})
        _render_resolution(report, resolution)

    report.data = {"results": results}
    return report


__all__ = ["find_package_target", "run_read"]
