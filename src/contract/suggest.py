"""Fuzzy suggestions for resolution misses."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable


def levenshtein(a: str, b: str) -> int:
    """Return the edit distance between two strings."""
    if a == b:
        return 0
    if not a:
        return len(b)
    if not b:
        return len(a)

    previous = list(range(len(b) + 1))
    for i, ca in enumerate(a, start=1):
        current = [i]
        for j, cb in enumerate(b, start=1):
            cost = 0 if ca == cb else 1
            current.append(
                min(previous[j] + 1, current[j - 1] + 1, previous[j - 1] + cost)
            )
        previous = current
    return previous[-1]


def _rank(query: str, candidate: str) -> tuple[int, int] | None:
    lowered_query = query.lower()
    lowered = candidate.lower()
    if lowered == lowered_query:
        return (0, 0)
    if lowered.startswith(lowered_query):
        return (1, len(candidate) - len(query))
    if lowered_query in lowered:
        return (2, len(candidate) - len(query))

    distance = levenshtein(lowered_query, lowered)
    if distance <= len(query) // 2 + 2:
        return (3, distance)
    return None


def suggest_similar(query: str, candidates: Iterable[str], limit: int = 5) -> list[str]:
    """Return up to ``limit`` candidates that look like ``query``.

    Case-insensitive exact, prefix and substring hits rank ahead of
    edit-distance hits; ties break on the candidate text.
    """
    if not query or limit <= 0:
        return []

    scored: list[tuple[tuple[int, int], str]] = []
    for candidate in set(candidates):
        if candidate == query:
            continue
        rank = _rank(query, candidate)
        if rank is not None:
            scored.append((rank, candidate))

    scored.sort()
    return [candidate for _, candidate in scored[:limit]]


def drop_covered_methods(suggestions: list[str]) -> list[str]:
    """Drop ``Type.Method`` suggestions when ``Type`` is already suggested."""
    suggested = set(suggestions)
    kept: list[str] = []
    for suggestion in suggestions:
        owner, dot, _ = suggestion.rpartition(".")
        if dot and owner in suggested:
            continue
        kept.append(suggestion)
    return kept


__all__ = ["drop_covered_methods", "levenshtein", "suggest_similar"]
