"""Command results and their plain-text / JSON rendering."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from utils import dumps_json

if TYPE_CHECKING:
    from contract.diagnostics import Diagnostics
    from scope.filter import ScopeFilter


@dataclass
class Report:
    """What a command produced.

    ``attempted`` counts the targets the caller asked for and ``missed``
    those that failed to resolve; a request where every target missed
    exits with status 1. ``scope`` is set by commands that build their
    own package scope.
    """

    command: str
    diagnostics: Diagnostics
    data: dict[str, object] = field(default_factory=dict)
    lines: list[str] = field(default_factory=list)
    attempted: int = 0
    missed: int = 0
    scope: ScopeFilter | None = None

    @property
    def exit_code(self) -> int:
        if self.attempted and self.missed == self.attempted:
            return 1
        return 0

    def add(self, line: str = "") -> None:
        self.lines.append(line)

    def to_dict(self) -> dict[str, object]:
        return {
            "command": self.command,
            **self.data,
            "diagnostics": [d.to_dict() for d in self.diagnostics.sorted()],
        }

    def render_json(self) -> str:
        return dumps_json(self.to_dict())

    def render_text(self) -> str:
        out = list(self.lines)
        diagnostics = self.diagnostics.sorted()
        if diagnostics:
            if out:
                out.append("")
            for diagnostic in diagnostics:
                out.append(
                    f"{diagnostic.level}: {diagnostic.location()}: {diagnostic.message}"
                )
                out.extend(f"    {c}" for c in diagnostic.candidates)
        return "\n".join(out)


__all__ = ["Report"]
