"""``symaddr channels``: channel operations grouped by package and channel."""

from __future__ import annotations

import logging
from collections import Counter
from typing import TYPE_CHECKING

from commands.report import Report
from commands.session import MISS_ERRORS
from parse.channels import OP_KINDS, channel_element_types, channel_operations
from utils import plural, strip_dot_slash

if TYPE_CHECKING:
    from commands.session import Session
    from parse.channels import ChannelOp
    from program.models import Package
    from scope.filter import ScopeFilter

logger = logging.getLogger(__name__)

# Ranging over a channel receives from it.
_GROUP_KEYS = {
    "make": "makes",
    "send": "sends",
    "receive": "receives",
    "range": "receives",
    "close": "closes",
    "select_send": "select_sends",
    "select_receive": "select_receives",
}
_GROUPS = tuple(dict.fromkeys(_GROUP_KEYS.values()))


def _op_dict(package: Package, op: ChannelOp) -> dict[str, object]:
    owner = op.owner
    return {
        "kind": op.kind,
        "operation": op.operation,
        "location": op.location,
        "symbol": f"{package.identifier.short_path}.{owner}" if owner else None,
    }


def package_channels(
    package: Package, *, include_tests: bool = True
) -> dict[str, object]:
    """Channel operations of one package, grouped by channel name.

    ``p.events`` and ``events`` share a group; each operation keeps the
    expression as written.
    """
    files = [f for f in package.files if include_tests or not f.is_test]
    element_types = channel_element_types(files)
    ops = channel_operations(files, element_types)

    groups: dict[str, dict[str, object]] = {}
    for op in ops:
        group = groups.get(op.base_name)
        if group is None:
            group = {
                "channel": op.base_name,
                "element_type": element_types.get(op.base_name),
            }
            group.update({key: [] for key in _GROUPS})
            groups[op.base_name] = group
        entries = group[_GROUP_KEYS[op.kind]]
        assert isinstance(entries, list)
        entries.append(_op_dict(package, op))

    by_kind = Counter(op.kind for op in ops)
    return {
        "package": package.path,
        "package_short": package.identifier.short_path,
        "channels": [groups[name] for name in sorted(groups)],
        "total": len(ops),
        "by_kind": {kind: by_kind.get(kind, 0) for kind in OP_KINDS},
    }


def _render(report: Report, summary: dict[str, object]) -> None:
    report.add(f"{summary['package_short']}:")
    channels = summary["channels"]
    assert isinstance(channels, list)
    if not channels:
        report.add("  (no channel operations)")
    for group in channels:
        element = group["element_type"]
        suffix = f" (chan {element})" if element else ""
        report.add(f"  {group['channel']}{suffix}")
        for key in _GROUPS:
            for op in group[key]:
                report.add(f"    {op['kind']}  {op['operation']}  // {op['location']}")
    report.add()


def run_channels(
    session: Session,
    targets: list[str],
    *,
    scope: ScopeFilter,
) -> Report:
    """Report channel operations in the named packages, or every in-scope one."""
    report = Report(command="channels", diagnostics=session.diagnostics)
    include_tests = session.config.include_tests
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

    summaries = [package_channels(p, include_tests=include_tests) for p in packages]
    for summary in summaries:
        _render(report, summary)

    totals: Counter[str] = Counter()
    channel_count = 0
    for summary in summaries:
        by_kind = summary["by_kind"]
        channels = summary["channels"]
        assert isinstance(by_kind, dict)
        assert isinstance(channels, list)
        totals.update(by_kind)
        channel_count += len(channels)
    total = sum(totals.values())
    logger.debug("%d channel operations in %d packages", total, len(summaries))

    report.add(plural(total, "channel operation"))
    report.data = {
        "include_tests": include_tests,
        "packages": summaries,
        "summary": {
            "total": total,
            "by_kind": {kind: totals.get(kind, 0) for kind in OP_KINDS},
            "packages": len(summaries),
            "channels": channel_count,
        },
        "misses": misses,
    }
    return report


__all__ = ["package_channels", "run_channels"]
