"""Per-run state shared by every command."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from functools import cached_property
from typing import TYPE_CHECKING

from contract.diagnostics import AMBIGUOUS_MATCH, NOT_FOUND, Diagnostics
from contract.errors import (
    AmbiguousMatchError,
    PackageNotFoundError,
    ResolutionError,
    SymbolNotFoundError,
)
from index.symbols import SymbolIndex
from parse.gomod import find_go_mod
from program.loader import load_program_from_config
from rules.config import load_config
from scope.filter import parse_scope
from spath.enumerate import enumerate_all
from spath.resolve import report_ambiguity

if TYPE_CHECKING:
    from pathlib import Path

    from program.models import Program
    from rules.config import SymaddrConfig
    from scope.filter import ScopeFilter
    from spath.enumerate import SpathEntry

logger = logging.getLogger(__name__)

# Errors that fail one target of a request without aborting it.
MISS_ERRORS = (
    AmbiguousMatchError,
    PackageNotFoundError,
    ResolutionError,
    SymbolNotFoundError,
)


@dataclass
class Session:
    """A loaded program with its index and the diagnostics of this run."""

    root: Path
    config: SymaddrConfig
    program: Program
    index: SymbolIndex
    diagnostics: Diagnostics = field(default_factory=Diagnostics)

    @cached_property
    def universe(self) -> list[SpathEntry]:
        entries = enumerate_all(self.program, self.index)
        logger.debug("address universe holds %d entries", len(entries))
        return entries

    def scope(
        self, expr: str | None = None, default_target: str | None = None
    ) -> ScopeFilter:
        return parse_scope(
            expr if expr is not None else self.config.default_scope,
            self.program,
            default_target,
        )

    def record_miss(self, target: str, exc: Exception) -> dict[str, object]:
        """Turn a per-target failure into a diagnostic and a result entry."""
        suggestions: list[str] = []
        if isinstance(exc, (PackageNotFoundError, SymbolNotFoundError)):
            limit = self.config.suggestion_limit
            suggestions = exc.suggestions[:limit] if limit else []
            package = exc.package if isinstance(exc, SymbolNotFoundError) else None
            self.diagnostics.warning(
                NOT_FOUND, str(exc), package=package, candidates=suggestions
            )
        elif isinstance(exc, AmbiguousMatchError):
            suggestions = exc.candidates
            reported = self.diagnostics.by_code(AMBIGUOUS_MATCH)
            if not any(d.candidates == tuple(suggestions) for d in reported):
                report_ambiguity(exc.query, suggestions, self.diagnostics)
        entry: dict[str, object] = {"target": target, "error": str(exc)}
        if suggestions:
            entry["suggestions"] = suggestions
        if isinstance(exc, ResolutionError):
            entry["resolved_prefix"] = str(exc.partial)
        return entry


def open_session(root: Path, *, include_tests: bool | None = None) -> Session:
    """Load config, program and index for ``root``.

    Raises:
        ConfigError: ``symaddr.toml`` is malformed
        ProgramLoadError: ``root`` is not inside a Go module
    """
    go_mod = find_go_mod(root)
    config = load_config(go_mod.parent if go_mod is not None else root)
    if include_tests is not None:
        config = config.model_copy(update={"include_tests": include_tests})

    program = load_program_from_config(root, config)
    index = SymbolIndex.build(program)
    diagnostics = Diagnostics()
    diagnostics.extend(program.diagnostics)
    return Session(
        root=root,
        config=config,
        program=program,
        index=index,
        diagnostics=diagnostics,
    )


__all__ = ["MISS_ERRORS", "Session", "open_session"]
