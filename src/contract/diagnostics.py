"""Per-run diagnostics collected alongside command results."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

DiagnosticLevel = Literal["info", "warning", "error"]

AMBIGUOUS_MATCH = "AMBIGUOUS_MATCH"
UNANALYZABLE_SYMBOL = "UNANALYZABLE_SYMBOL"
SYNTAX_ERROR = "SYNTAX_ERROR"
PACKAGE_NAME_CONFLICT = "PACKAGE_NAME_CONFLICT"
UNREADABLE_FILE = "UNREADABLE_FILE"
NOT_FOUND = "NOT_FOUND"

_LEVEL_ORDER = {"error": 0, "warning": 1, "info": 2}


@dataclass(frozen=True)
class Diagnostic:
    level: DiagnosticLevel
    code: str
    message: str
    package: str | None = None
    candidates: tuple[str, ...] = ()

    def location(self) -> str:
        if self.package is None:
            return self.code
        return f"{self.package}: {self.code}"

    def to_dict(self) -> dict[str, object]:
        data: dict[str, object] = {
            "level": self.level,
            "code": self.code,
            "package": self.package,
            "message": self.message,
        }
        if self.candidates:
            data["candidates"] = list(self.candidates)
        return data


@dataclass
class Diagnostics:
    items: list[Diagnostic] = field(default_factory=list)

    def add(self, diagnostic: Diagnostic) -> None:
        if diagnostic not in self.items:
            self.items.append(diagnostic)

    def extend(self, diagnostics: list[Diagnostic] | tuple[Diagnostic, ...]) -> None:
        for diagnostic in diagnostics:
            self.add(diagnostic)

    def warning(
        self,
        code: str,
        message: str,
        *,
        package: str | None = None,
        candidates: list[str] | tuple[str, ...] = (),
    ) -> None:
        self.add(
            Diagnostic(
                level="warning",
                code=code,
                message=message,
                package=package,
                candidates=tuple(candidates),
            )
        )

    def sorted(self) -> list[Diagnostic]:
        return sorted(
            self.items,
            key=lambda d: (_LEVEL_ORDER[d.level], d.package or "", d.code, d.message),
        )

    def by_code(self, code: str) -> list[Diagnostic]:
        return [d for d in self.items if d.code == code]

    def __len__(self) -> int:
        return len(self.items)


__all__ = [
    "AMBIGUOUS_MATCH",
    "NOT_FOUND",
    "PACKAGE_NAME_CONFLICT",
    "SYNTAX_ERROR",
    "UNANALYZABLE_SYMBOL",
    "UNREADABLE_FILE",
    "Diagnostic",
    "DiagnosticLevel",
    "Diagnostics",
]
