"""Program Loader: parse a Go module into an immutable :class:`Program`."""

from __future__ import annotations

import logging
from collections import Counter, defaultdict
from typing import TYPE_CHECKING

from contract.diagnostics import (
    PACKAGE_NAME_CONFLICT,
    SYNTAX_ERROR,
    UNREADABLE_FILE,
    Diagnostics,
)
from contract.errors import ProgramLoadError
from parse.gomod import read_go_module
from parse.treesitter_go import package_name, parse_go_source
from program.models import Package, PackageIdentifier, Program, SourceFile
from scan.files import find_go_files

if TYPE_CHECKING:
    from pathlib import Path

    from parse.gomod import GoModule
    from rules.config import SymaddrConfig

logger = logging.getLogger(__name__)


def _is_internal(pkg_path: str) -> bool:
    return "internal" in pkg_path.split("/")


def _build_identifier(module: GoModule, rel_dir: str, name: str) -> PackageIdentifier:
    if rel_dir == ".":
        pkg_path = module.path
        short_path = module.path
    else:
        pkg_path = f"{module.path}/{rel_dir}"
        short_path = rel_dir
    return PackageIdentifier(
        name=name,
        pkg_path=pkg_path,
        short_path=short_path,
        directory=module.directory / rel_dir,
        module_path=module.path,
        internal=_is_internal(pkg_path),
    )


def _read_source_file(
    path: Path, module_dir: Path, diagnostics: Diagnostics
) -> SourceFile | None:
    rel_path = path.relative_to(module_dir).as_posix()
    try:
        source = path.read_bytes()
    except OSError as exc:
        logger.warning("cannot read %s: %s", rel_path, exc)
        diagnostics.warning(UNREADABLE_FILE, f"cannot read {rel_path}: {exc}")
        return None

    tree = parse_go_source(source)
    name = package_name(tree.root_node)
    if name is None:
        diagnostics.warning(SYNTAX_ERROR, f"{rel_path}: missing package clause")
        return None

    return SourceFile(
        path=path,
        relative_path=rel_path,
        source=source,
        tree=tree,
        package_name=name,
        is_test=path.name.endswith("_test.go"),
    )


def _choose_package_name(
    rel_dir: str, files: list[SourceFile], diagnostics: Diagnostics
) -> str:
    """Pick the directory's package name; external test packages never count."""
    counts = Counter(f.package_name for f in files if not f.is_test)
    if not counts:
        counts = Counter(f.package_name for f in files)
    ranked = sorted(counts.items(), key=lambda item: (-item[1], item[0]))
    chosen = ranked[0][0]
    if len(ranked) > 1:
        others = ", ".join(name for name, _ in ranked[1:])
        diagnostics.warning(
            PACKAGE_NAME_CONFLICT,
            f"directory {rel_dir} declares packages {chosen}, {others}; using {chosen}",
            package=rel_dir,
        )
    return chosen


def _build_package(
    module: GoModule,
    rel_dir: str,
    files: list[SourceFile],
    diagnostics: Diagnostics,
) -> Package:
    name = _choose_package_name(rel_dir, files, diagnostics)
    identifier = _build_identifier(module, rel_dir, name)

    kept: list[SourceFile] = []
    for source_file in files:
        if source_file.package_name != name:
            if source_file.package_name != f"{name}_test":
                logger.debug(
                    "skipping %s: package %s",
                    source_file.relative_path,
                    source_file.package_name,
                )
            continue
        if source_file.has_error:
            diagnostics.warning(
                SYNTAX_ERROR,
                f"{source_file.relative_path} has syntax errors",
                package=identifier.pkg_path,
            )
        kept.append(source_file)

    return Package(identifier=identifier, files=tuple(kept))


def load_program(
    root: Path,
    *,
    include_tests: bool = True,
    include_patterns: list[str] | None = None,
    exclude_patterns: list[str] | None = None,
    nested_gitignore: bool = False,
) -> Program:
    """Load the Go module that contains ``root``.

    Args:
        root: Module root or any directory inside the module
        include_tests: Parse ``_test.go`` files of each package
        include_patterns: Optional fnmatch patterns a file must match
        exclude_patterns: Optional fnmatch patterns that drop a file
        nested_gitignore: Compose every ``.gitignore`` below the module root

    Returns:
        A Program whose packages are sorted by import path.
    """
    if not root.is_dir():
        msg = f"not a directory: {root}"
        raise ProgramLoadError(msg)

    module = read_go_module(root)
    diagnostics = Diagnostics()

    by_dir: dict[str, list[SourceFile]] = defaultdict(list)
    for path in find_go_files(
        module.directory,
        include_patterns=include_patterns,
        exclude_patterns=exclude_patterns,
        nested_gitignore=nested_gitignore,
        include_tests=include_tests,
    ):
        source_file = _read_source_file(path, module.directory, diagnostics)
        if source_file is None:
            continue
        rel_dir = path.parent.relative_to(module.directory).as_posix()
        by_dir[rel_dir or "."].append(source_file)

    packages = [
        _build_package(module, rel_dir, files, diagnostics)
        for rel_dir, files in by_dir.items()
    ]
    packages = [p for p in packages if p.files]
    packages.sort(key=lambda p: p.path)

    logger.debug("loaded %d packages from module %s", len(packages), module.path)

    return Program(
        module_path=module.path,
        root=module.directory,
        packages=tuple(packages),
        diagnostics=tuple(diagnostics.sorted()),
        go_version=module.go_version,
    )


def load_program_from_config(root: Path, config: SymaddrConfig) -> Program:
    return load_program(
        root,
        include_tests=config.include_tests,
        include_patterns=config.include or None,
        exclude_patterns=config.exclude or None,
        nested_gitignore=config.nested_gitignore,
    )


__all__ = ["load_program", "load_program_from_config"]
