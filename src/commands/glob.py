"""``symaddr glob``: match patterns against the address universe."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from commands.report import Report
from spath.glob import compile_pattern, expand_package_names, match
from utils import plural, strip_dot_slash

if TYPE_CHECKING:
    from commands.session import Session
    from scope.filter import ScopeFilter

logger = logging.getLogger(__name__)


def run_glob(
    session: Session,
    patterns: list[str],
    *,
    scope: ScopeFilter,
    limit: int | None = None,
) -> Report:
    """Match each pattern; ``limit`` falls back to ``glob_limit`` from config.

    Raises:
        InvalidPatternError: a pattern does not compile
    """
    report = Report(command="glob", diagnostics=session.diagnostics)
    effective_limit = session.config.glob_limit if limit is None else limit
    universe = [e for e in session.universe if scope.in_scope(e.package)]
    logger.debug("globbing %d in-scope addresses", len(universe))

    results: list[dict[str, object]] = []
    for raw in patterns:
        pattern = expand_package_names(strip_dot_slash(raw), session.program)
        result = match(compile_pattern(pattern), universe, effective_limit)
        report.attempted += 1
        if result.total == 0:
            report.missed += 1

        results.append(result.to_dict())
        report.lines.extend(
            f"{e.path}  {e.kind}" + (f"  {e.type}" if e.type else "")
            for e in result.matches
        )
        summary = f"{pattern}: {plural(result.total, 'match', 'matches')}"
        if result.truncated:
            summary += f" (showing {len(result.matches)})"
        report.add(summary)

    report.data = {"limit": effective_limit, "results": results}
    return report


__all__ = ["run_glob"]
