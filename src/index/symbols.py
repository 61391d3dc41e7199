"""Symbol Index: a flat catalog of every Go declaration in a Program."""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from contract.suggest import levenshtein
from parse.go_syntax import (
    is_exported,
    is_interface_spec,
    iter_type_specs,
    iter_value_specs,
    receiver_type_name,
    text,
    value_names,
)

if TYPE_CHECKING:
    from tree_sitter import Node

    from program.models import Package, PackageIdentifier, Program, SourceFile

logger = logging.getLogger(__name__)


class SymbolKind(str, Enum):
    """Declaration kinds."""

    FUNC = "func"
    METHOD = "method"
    TYPE = "type"
    INTERFACE = "interface"
    CONST = "const"
    VAR = "var"

    @property
    def is_type(self) -> bool:
        return self in (SymbolKind.TYPE, SymbolKind.INTERFACE)

    @property
    def is_value(self) -> bool:
        return self in (SymbolKind.CONST, SymbolKind.VAR)

    @property
    def is_callable(self) -> bool:
        return self in (SymbolKind.FUNC, SymbolKind.METHOD)


_KIND_ALIASES = {
    "function": SymbolKind.FUNC,
    "fn": SymbolKind.FUNC,
    "struct": SymbolKind.TYPE,
    "iface": SymbolKind.INTERFACE,
    "constant": SymbolKind.CONST,
    "variable": SymbolKind.VAR,
}


def parse_kind(value: str) -> SymbolKind:
    lowered = value.strip().lower()
    if lowered in _KIND_ALIASES:
        return _KIND_ALIASES[lowered]
    try:
        return SymbolKind(lowered)
    except ValueError:
        valid = ", ".join(k.value for k in SymbolKind)
        msg = f"unknown symbol kind {value!r} (valid: {valid})"
        raise ValueError(msg) from None


@dataclass(frozen=True, eq=False)
class Symbol:
    """One declaration.

    ``node`` is the declaration itself: a function or method declaration,
    a type spec, or the const/var spec that declares ``name_node``.
    """

    name: str
    kind: SymbolKind
    package: PackageIdentifier
    file: SourceFile
    node: Node
    name_node: Node
    receiver: str | None = None
    methods: tuple[Symbol, ...] = ()

    @property
    def qualified_name(self) -> str:
        if self.receiver is not None:
            return f"{self.receiver}.{self.name}"
        return self.name

    @property
    def key(self) -> tuple[str, str, str]:
        return (self.package.pkg_path, self.qualified_name, self.kind.value)

    @property
    def exported(self) -> bool:
        return is_exported(self.name)

    @property
    def line(self) -> int:
        return self.node.start_point[0] + 1

    @property
    def display_name(self) -> str:
        """``pkgname.Name``, the form used in ambiguity reports."""
        return f"{self.package.name}.{self.qualified_name}"

    @property
    def address(self) -> str:
        return f"{self.package.short_path}.{self.qualified_name}"

    @property
    def location(self) -> str:
        return f"{self.file.relative_path}:{self.line}"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Symbol):
            return NotImplemented
        return self.key == other.key and self.node.start_byte == other.node.start_byte

    def __hash__(self) -> int:
        return hash((self.key, self.file.relative_path, self.node.start_byte))

    def to_dict(self) -> dict[str, object]:
        return {
            "name": self.name,
            "kind": self.kind.value,
            "qualified_name": self.qualified_name,
            "package": self.package.pkg_path,
            "address": self.address,
            "location": self.location,
            "exported": self.exported,
        }


def _method_symbols(package: Package) -> dict[str, list[Symbol]]:
    by_receiver: dict[str, list[Symbol]] = defaultdict(list)
    for source_file in package.files:
        for node in source_file.root.named_children:
            if node.type != "method_declaration":
                continue
            name_node = node.child_by_field_name("name")
            receiver = receiver_type_name(node)
            if name_node is None or receiver is None:
                continue
            by_receiver[receiver].append(
                Symbol(
                    name=text(name_node),
                    kind=SymbolKind.METHOD,
                    package=package.identifier,
                    file=source_file,
                    node=node,
                    name_node=name_node,
                    receiver=receiver,
                )
            )
    return by_receiver


def _file_symbols(
    package: Package,
    source_file: SourceFile,
    methods: dict[str, list[Symbol]],
    method_nodes: dict[tuple[str, int], Symbol],
) -> list[Symbol]:
    symbols: list[Symbol] = []
    for node in source_file.root.named_children:
        if node.type == "function_declaration":
            name_node = node.child_by_field_name("name")
            if name_node is None:
                continue
            symbols.append(
                Symbol(
                    name=text(name_node),
                    kind=SymbolKind.FUNC,
                    package=package.identifier,
                    file=source_file,
                    node=node,
                    name_node=name_node,
                )
            )
        elif node.type == "method_declaration":
            method = method_nodes.get((source_file.relative_path, node.start_byte))
            if method is not None:
                symbols.append(method)
        elif node.type == "type_declaration":
            for spec in iter_type_specs(node):
                name_node = spec.child_by_field_name("name")
                if name_node is None:
                    continue
                name = text(name_node)
                symbols.append(
                    Symbol(
                        name=name,
                        kind=(
                            SymbolKind.INTERFACE
                            if is_interface_spec(spec)
                            else SymbolKind.TYPE
                        ),
                        package=package.identifier,
                        file=source_file,
                        node=spec,
                        name_node=name_node,
                        methods=tuple(methods.get(name, ())),
                    )
                )
        elif node.type in ("const_declaration", "var_declaration"):
            kind = (
                SymbolKind.CONST if node.type == "const_declaration" else SymbolKind.VAR
            )
            for spec in iter_value_specs(node):
                for name_node in value_names(spec):
                    name = text(name_node)
                    if name == "_":
                        continue
                    symbols.append(
                        Symbol(
                            name=name,
                            kind=kind,
                            package=package.identifier,
                            file=source_file,
                            node=spec,
                            name_node=name_node,
                        )
                    )
    return symbols


@dataclass(frozen=True)
class SearchHit:
    symbol: Symbol
    score: tuple[int, int]

    def to_dict(self) -> dict[str, object]:
        return {**self.symbol.to_dict(), "rank": self.score[0]}


class SymbolIndex:
    """Read-only index over every declaration of a Program.

    Names are not unique across packages (nor, with build tags, within
    one), so every lookup returns a list.
    """

    def __init__(self, program: Program, symbols: list[Symbol]) -> None:
        self._program = program
        self._symbols = tuple(symbols)
        by_name: dict[str, list[Symbol]] = defaultdict(list)
        by_package: dict[str, list[Symbol]] = defaultdict(list)
        for symbol in self._symbols:
            by_name[symbol.name].append(symbol)
            if symbol.receiver is None:
                by_package[symbol.package.pkg_path].append(symbol)
        self._by_name = dict(by_name)
        self._by_package = dict(by_package)

    @classmethod
    def build(cls, program: Program) -> SymbolIndex:
        symbols: list[Symbol] = []
        for package in program.packages:
            methods = _method_symbols(package)
            method_nodes = {
                (m.file.relative_path, m.node.start_byte): m
                for receiver_methods in methods.values()
                for m in receiver_methods
            }
            for source_file in package.files:
                symbols.extend(
                    _file_symbols(package, source_file, methods, method_nodes)
                )
        logger.debug(
            "indexed %d symbols across %d packages",
            len(symbols),
            len(program.packages),
        )
        return cls(program, symbols)

    @property
    def program(self) -> Program:
        return self._program

    def symbols(self) -> list[Symbol]:
        """Every symbol, methods included, in package/file/source order."""
        return list(self._symbols)

    def symbols_in(self, package: Package | str) -> list[Symbol]:
        """Top-level (non-method) symbols of one package."""
        pkg_path = package if isinstance(package, str) else package.path
        return list(self._by_package.get(pkg_path, ()))

    def find(self, package: Package | str, name: str) -> list[Symbol]:
        return [s for s in self.symbols_in(package) if s.name == name]

    def methods_of(self, package: Package | str, type_name: str) -> list[Symbol]:
        found: list[Symbol] = []
        for symbol in self.find(package, type_name):
            found.extend(symbol.methods)
        return found

    def lookup(self, query: str) -> list[Symbol]:
        """Return every symbol that answers to ``query``.

        Accepted forms: ``Name``, ``Type.Method``, ``pkg.Name``,
        ``pkg.Type.Method`` and ``path/to/pkg.Name`` (full or
        module-relative path).
        """
        query = query.removeprefix("./")
        if not query:
            return []

        prefix, slash, last = query.rpartition("/")
        parts = last.split(".")
        package_path = f"{prefix}{slash}{parts[0]}" if len(parts) > 1 else None

        if slash:
            if package_path is None:
                return []
            packages = self._packages_for(package_path)
            return self._lookup_in_packages(packages, parts[1:])

        if len(parts) == 1:
            return list(self._by_name.get(parts[0], ()))

        results: list[Symbol] = []
        # ``A.B`` is either Type.Method or pkg.Name; collect both readings.
        if len(parts) == 2:
            results.extend(
                s for s in self._by_name.get(parts[1], ()) if s.receiver == parts[0]
            )
        results.extend(
            self._lookup_in_packages(self._packages_for(parts[0]), parts[1:])
        )
        return _unique(results)

    def _packages_for(self, name: str) -> list[Package]:
        program = self._program
        matches = [
            p
            for p in program.packages
            if name in (p.path, p.identifier.short_path, p.name)
        ]
        if not matches:
            full = f"{program.module_path}/{name}"
            matches = [p for p in program.packages if p.path == full]
        return matches

    def _lookup_in_packages(
        self, packages: list[Package], names: list[str]
    ) -> list[Symbol]:
        results: list[Symbol] = []
        for package in packages:
            if len(names) == 1:
                results.extend(self.find(package, names[0]))
            elif len(names) == 2:
                results.extend(
                    m for m in self.methods_of(package, names[0]) if m.name == names[1]
                )
        return results

    def search(
        self,
        query: str,
        *,
        kind: SymbolKind | None = None,
        limit: int = 20,
    ) -> list[SearchHit]:
        """Rank symbols by how closely their name matches ``query``."""
        if not query:
            return []
        lowered = query.lower()
        threshold = len(query) // 2 + 2
        hits: list[SearchHit] = []
        for symbol in self._symbols:
            if kind is not None and symbol.kind is not kind:
                continue
            name = symbol.name
            candidate = symbol.qualified_name if "." in query else name
            low = candidate.lower()
            if candidate == query:
                score = (0, 0)
            elif low == lowered:
                score = (1, 0)
            elif low.startswith(lowered):
                score = (2, len(candidate) - len(query))
            elif lowered in low:
                score = (3, len(candidate) - len(query))
            else:
                distance = levenshtein(lowered, low)
                if distance > threshold:
                    continue
                score = (4, distance)
            hits.append(SearchHit(symbol=symbol, score=score))

        hits.sort(
            key=lambda h: (h.score, h.symbol.package.pkg_path, h.symbol.qualified_name)
        )
        if limit > 0:
            hits = hits[:limit]
        return hits


def _unique(symbols: list[Symbol]) -> list[Symbol]:
    seen: set[Symbol] = set()
    unique: list[Symbol] = []
    for symbol in symbols:
        if symbol not in seen:
            seen.add(symbol)
            unique.append(symbol)
    return unique


__all__ = ["SearchHit", "Symbol", "SymbolIndex", "SymbolKind", "parse_kind"]
