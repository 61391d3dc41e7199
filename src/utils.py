"""Shared output helpers."""

from __future__ import annotations

from typing import Any

import orjson

_JSON_OPTIONS = orjson.OPT_SORT_KEYS | orjson.OPT_INDENT_2


def dumps_json(payload: Any) -> str:
    """Serialize ``payload`` deterministically (sorted keys, two-space indent)."""
    return orjson.dumps(payload, option=_JSON_OPTIONS).decode("utf8")


def strip_dot_slash(text: str) -> str:
    """Drop the shell-style ``./`` prefix callers tend to type."""
    while text.startswith("./") and len(text) > 2:
        text = text[2:]
    return text


def plural(count: int, noun: str, many: str | None = None) -> str:
    if count == 1:
        return f"{count} {noun}"
    return f"{count} {many or noun + 's'}"


__all__ = ["dumps_json", "plural", "strip_dot_slash"]
