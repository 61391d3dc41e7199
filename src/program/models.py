"""Immutable snapshot of a loaded Go module."""

from __future__ import annotations

from dataclasses import dataclass
from functools import cached_property
from typing import TYPE_CHECKING

from contract.errors import AmbiguousMatchError, PackageNotFoundError
from contract.suggest import suggest_similar
from parse.treesitter_go import import_paths

if TYPE_CHECKING:
    from pathlib import Path

    from tree_sitter import Node, Tree

    from contract.diagnostics import Diagnostic


@dataclass(frozen=True)
class PackageIdentifier:
    name: str
    pkg_path: str
    short_path: str
    directory: Path
    module_path: str
    internal: bool = False

    @property
    def relative_path(self) -> str:
        """Module-relative directory, ``.`` for the module root."""
        if self.pkg_path == self.module_path:
            return "."
        return self.pkg_path.removeprefix(self.module_path + "/")

    def to_dict(self) -> dict[str, object]:
        return {
            "name": self.name,
            "pkg_path": self.pkg_path,
            "short_path": self.short_path,
            "directory": str(self.directory),
            "module_path": self.module_path,
            "internal": self.internal,
        }


@dataclass(frozen=True, eq=False)
class SourceFile:
    path: Path
    relative_path: str
    source: bytes
    tree: Tree
    package_name: str
    is_test: bool = False

    @property
    def root(self) -> Node:
        return self.tree.root_node

    @property
    def has_error(self) -> bool:
        return self.tree.root_node.has_error

    def slice(self, start_byte: int, end_byte: int) -> str:
        return self.source[start_byte:end_byte].decode("utf8", errors="replace")

    def imports(self) -> list[str]:
        return import_paths(self.root)


@dataclass(frozen=True, eq=False)
class Package:
    identifier: PackageIdentifier
    files: tuple[SourceFile, ...] = ()

    @property
    def path(self) -> str:
        return self.identifier.pkg_path

    @property
    def name(self) -> str:
        return self.identifier.name

    def imports(self) -> list[str]:
        return sorted({imp for f in self.files if not f.is_test for imp in f.imports()})


@dataclass(frozen=True, eq=False)
class Program:
    """Everything the query engine reads. Never mutated after loading."""

    module_path: str
    root: Path
    packages: tuple[Package, ...] = ()
    diagnostics: tuple[Diagnostic, ...] = ()
    go_version: str | None = None

    @cached_property
    def _by_path(self) -> dict[str, Package]:
        return {p.path: p for p in self.packages}

    def package(self, pkg_path: str) -> Package | None:
        return self._by_path.get(pkg_path)

    def package_paths(self) -> list[str]:
        return sorted(self._by_path)

    def subpackages(self, package: Package) -> list[Package]:
        prefix = package.path + "/"
        return [p for p in self.packages if p.path.startswith(prefix)]

    def find_package(self, query: str) -> Package:
        """Resolve a package by full path, short path, ``.`` or Go package name.

        Raises PackageNotFoundError with suggestions on a miss and
        AmbiguousMatchError when a Go package name is shared.
        """
        name = query.removeprefix("./").rstrip("/")
        if name in ("", "."):
            root_package = self.package(self.module_path)
            if root_package is not None:
                return root_package
            raise PackageNotFoundError(query)

        for candidate in (name, f"{self.module_path}/{name}"):
            found = self.package(candidate)
            if found is not None:
                return found

        # Go package name first, then the directory name (package main et al).
        for owners in (
            [p for p in self.packages if p.name == name],
            [p for p in self.packages if p.path.rsplit("/", 1)[-1] == name],
        ):
            if len(owners) == 1:
                return owners[0]
            if len(owners) > 1:
                raise AmbiguousMatchError(
                    name, sorted(p.identifier.short_path for p in owners)
                )

        known = [p.identifier.short_path for p in self.packages]
        known.extend(p.name for p in self.packages)
        raise PackageNotFoundError(query, suggest_similar(name, known))


__all__ = ["Package", "PackageIdentifier", "Program", "SourceFile"]
