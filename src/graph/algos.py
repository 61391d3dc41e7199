"""Graph algorithms over symbol reference graphs."""

from __future__ import annotations

from collections import deque
from typing import TYPE_CHECKING, TypeVar

if TYPE_CHECKING:
    from collections.abc import Collection, Iterable, Mapping

N = TypeVar("N")


def reachable_from(graph: Mapping[N, Collection[N]], roots: Iterable[N]) -> set[N]:
    """Return every node reachable from ``roots`` (roots included).

    Args:
        graph: Adjacency mapping; nodes missing from it have no edges
        roots: Starting nodes

    Returns:
        The set of visited nodes
    """
    seen: set[N] = set()
    queue: deque[N] = deque()
    for root in roots:
        if root not in seen:
            seen.add(root)
            queue.append(root)

    while queue:
        node = queue.popleft()
        for neighbor in graph.get(node, ()):
            if neighbor not in seen:
                seen.add(neighbor)
                queue.append(neighbor)

    return seen


def compute_fan_in(graph: Mapping[N, Collection[N]]) -> dict[N, int]:
    """Count inbound edges per node, ignoring self references."""
    fan_in: dict[N, int] = {node: 0 for node in graph}
    for source, targets in graph.items():
        for target in targets:
            if target == source:
                continue
            fan_in[target] = fan_in.get(target, 0) + 1
    return fan_in


__all__ = ["compute_fan_in", "reachable_from"]
