"""Minimal ``go.mod`` reader: the module path and the go directive."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import TYPE_CHECKING

from contract.errors import ProgramLoadError

if TYPE_CHECKING:
    from pathlib import Path

GO_MOD = "go.mod"

_MODULE_RE = re.compile(r"^\s*module\s+(?P<path>\"[^\"]+\"|`[^`]+`|\S+)")
_GO_RE = re.compile(r"^\s*go\s+(?P<version>\S+)")


@dataclass(frozen=True)
class GoModule:
    path: str
    directory: Path
    go_version: str | None = None


def _strip_comment(line: str) -> str:
    return line.split("//", 1)[0]


def parse_go_mod(text: str, directory: Path) -> GoModule:
    module_path: str | None = None
    go_version: str | None = None

    for raw in text.splitlines():
        line = _strip_comment(raw)
        if module_path is None:
            match = _MODULE_RE.match(line)
            if match:
                module_path = match.group("path").strip("\"`")
                continue
        if go_version is None:
            match = _GO_RE.match(line)
            if match:
                go_version = match.group("version")

    if not module_path:
        msg = f"no module directive in {directory / GO_MOD}"
        raise ProgramLoadError(msg)

    return GoModule(path=module_path, directory=directory, go_version=go_version)


def find_go_mod(start: Path) -> Path | None:
    """Return the nearest ``go.mod`` at or above ``start``."""
    current = start.resolve()
    for candidate in (current, *current.parents):
        path = candidate / GO_MOD
        if path.is_file():
            return path
    return None


def read_go_module(start: Path) -> GoModule:
    go_mod = find_go_mod(start)
    if go_mod is None:
        msg = f"no {GO_MOD} found at or above {start}"
        raise ProgramLoadError(msg)

    try:
        text = go_mod.read_text(encoding="utf-8")
    except OSError as exc:
        msg = f"cannot read {go_mod}: {exc}"
        raise ProgramLoadError(msg) from exc

    return parse_go_mod(text, go_mod.parent)


__all__ = ["GO_MOD", "GoModule", "find_go_mod", "parse_go_mod", "read_go_module"]
