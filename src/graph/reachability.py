"""Syntactic reachability over a Go module.

The reference graph is built from identifier uses inside each declaration:
an unqualified name refers to the same-package declarations of that name,
``pkg.Name`` refers through the file's imports, and a type reaches its
methods whose names are used as selectors anywhere in the module (or that
satisfy a well-known standard library interface). Local shadowing is not
modelled, so the result over-approximates what is reachable.
"""

from __future__ import annotations

import logging
import re
from collections import defaultdict
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol

from contract.errors import UnanalyzableSymbolError
from graph.algos import compute_fan_in, reachable_from
from parse.go_syntax import METHOD_ELEMS, text

if TYPE_CHECKING:
    from tree_sitter import Node

    from index.symbols import Symbol, SymbolIndex
    from program.models import Package, Program, SourceFile

logger = logging.getLogger(__name__)

TEST_ROOT_RE = re.compile(r"^(Test|Benchmark|Example|Fuzz)([A-Z_0-9].*)?$")

# Methods the standard library calls through interfaces the module never names.
IMPLICIT_METHODS = frozenset(
    {
        "Error",
        "Format",
        "GoString",
        "MarshalJSON",
        "MarshalText",
        "ServeHTTP",
        "String",
        "UnmarshalJSON",
        "UnmarshalText",
        "Unwrap",
    }
)

_NAME_NODES = frozenset({"identifier", "type_identifier"})


class ReachabilityOracle(Protocol):
    def is_reachable(self, symbol: Symbol) -> bool:
        """Raise UnanalyzableSymbolError when the answer is unknown."""
        ...


@dataclass(frozen=True)
class ReferenceGraph:
    edges: dict[Symbol, frozenset[Symbol]]
    selector_names: frozenset[str]
    unanalyzable: frozenset[Symbol]

    def fan_in(self) -> dict[Symbol, int]:
        return compute_fan_in(self.edges)


def _import_aliases(
    source_file: SourceFile, packages_by_path: dict[str, Package]
) -> dict[str, str]:
    aliases: dict[str, str] = {}
    for declaration in source_file.root.children:
        if declaration.type != "import_declaration":
            continue
        for spec in _descendants(declaration, "import_spec"):
            path = text(spec.child_by_field_name("path")).strip('"`')
            loaded = packages_by_path.get(path)
            if loaded is None:
                continue
            alias_node = spec.child_by_field_name("name")
            alias = text(alias_node) if alias_node is not None else loaded.name
            if alias not in ("_", "."):
                aliases[alias] = path
    return aliases


def _descendants(node: Node, node_type: str) -> list[Node]:
    found: list[Node] = []
    stack = [node]
    while stack:
        current = stack.pop()
        if current.type == node_type:
            found.append(current)
        stack.extend(reversed(current.children))
    return found


def _walk_references(node: Node) -> tuple[set[str], set[tuple[str, str]], set[str]]:
    """Collect bare names, ``(alias, name)`` pairs and selector names."""
    names: set[str] = set()
    qualified: set[tuple[str, str]] = set()
    selectors: set[str] = set()

    stack = [node]
    while stack:
        current = stack.pop()
        if current.type == "selector_expression":
            operand = current.child_by_field_name("operand")
            field = current.child_by_field_name("field")
            if field is not None:
                selectors.add(text(field))
                if operand is not None and operand.type == "identifier":
                    qualified.add((text(operand), text(field)))
        elif current.type == "qualified_type":
            qualified.add(
                (
                    text(current.child_by_field_name("package")),
                    text(current.child_by_field_name("name")),
                )
            )
        elif current.type in _NAME_NODES:
            names.add(text(current))
        elif current.type in METHOD_ELEMS:
            name = current.child_by_field_name("name")
            if name is not None:
                selectors.add(text(name))

        stack.extend(current.children)

    return names, qualified, selectors


def build_reference_graph(program: Program, index: SymbolIndex) -> ReferenceGraph:
    packages_by_path = {p.path: p for p in program.packages}
    top_level: dict[tuple[str, str], list[Symbol]] = defaultdict(list)
    for symbol in index.symbols():
        if symbol.receiver is None:
            top_level[(symbol.package.pkg_path, symbol.name)].append(symbol)

    alias_cache: dict[str, dict[str, str]] = {}
    edges: dict[Symbol, set[Symbol]] = {}
    selector_names: set[str] = set()
    unanalyzable: set[Symbol] = set()

    for symbol in index.symbols():
        source_file = symbol.file
        if source_file.has_error:
            unanalyzable.add(symbol)
        aliases = alias_cache.get(source_file.relative_path)
        if aliases is None:
            aliases = _import_aliases(source_file, packages_by_path)
            alias_cache[source_file.relative_path] = aliases

        names, qualified, selectors = _walk_references(symbol.node)
        selector_names |= selectors

        targets: set[Symbol] = set()
        pkg_path = symbol.package.pkg_path
        for name in names:
            targets.update(top_level.get((pkg_path, name), ()))
        for alias, name in qualified:
            imported = aliases.get(alias)
            if imported is not None:
                targets.update(top_level.get((imported, name), ()))
        if symbol.receiver is not None:
            targets.update(top_level.get((pkg_path, symbol.receiver), ()))
        # Names declared by the same spec (``a, b = 1, 2``) are not uses.
        edges[symbol] = {
            t
            for t in targets
            if not (
                t.file is source_file and t.node.start_byte == symbol.node.start_byte
            )
        }

    used = selector_names | IMPLICIT_METHODS
    for symbol in index.symbols():
        if symbol.kind.is_type:
            edges[symbol].update(m for m in symbol.methods if m.name in used)

    logger.debug(
        "reference graph: %d symbols, %d edges",
        len(edges),
        sum(len(t) for t in edges.values()),
    )
    return ReferenceGraph(
        edges={s: frozenset(t) for s, t in edges.items()},
        selector_names=frozenset(selector_names),
        unanalyzable=frozenset(unanalyzable),
    )


def is_entry_point(symbol: Symbol, *, include_tests: bool) -> bool:
    if symbol.receiver is not None or not symbol.kind.is_callable:
        return False
    if symbol.name == "init":
        return include_tests or not symbol.file.is_test
    if symbol.name == "main" and symbol.package.name == "main":
        return not symbol.file.is_test
    return (
        include_tests
        and symbol.file.is_test
        and TEST_ROOT_RE.match(symbol.name) is not None
    )


class SyntacticReachability:
    """Reachability from ``main``, ``init`` and (optionally) test functions."""

    def __init__(
        self,
        program: Program,
        index: SymbolIndex,
        *,
        include_tests: bool = True,
        graph: ReferenceGraph | None = None,
    ) -> None:
        self.include_tests = include_tests
        self.graph = graph or build_reference_graph(program, index)
        self.roots = [
            s for s in index.symbols() if is_entry_point(s, include_tests=include_tests)
        ]
        self._reachable = reachable_from(self.graph.edges, self.roots)
        logger.debug(
            "%d roots reach %d of %d symbols",
            len(self.roots),
            len(self._reachable),
            len(self.graph.edges),
        )

    def is_reachable(self, symbol: Symbol) -> bool:
        if symbol in self.graph.unanalyzable:
            raise UnanalyzableSymbolError(
                symbol.display_name, f"{symbol.file.relative_path} has syntax errors"
            )
        return symbol in self._reachable


__all__ = [
    "IMPLICIT_METHODS",
    "ReachabilityOracle",
    "ReferenceGraph",
    "SyntacticReachability",
    "build_reference_graph",
    "is_entry_point",
]
