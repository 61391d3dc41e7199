"""Go source discovery for module loading."""

from __future__ import annotations

import logging
from fnmatch import fnmatch
from typing import TYPE_CHECKING, cast

from gitignore_parser import parse_gitignore  # type: ignore[import-untyped]

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator
    from pathlib import Path

logger = logging.getLogger(__name__)

# Directories the go tool never treats as part of a package tree.
SKIPPED_DIRS = frozenset({"vendor", "testdata"})


def _is_skipped_dir(name: str) -> bool:
    return name in SKIPPED_DIRS or name.startswith((".", "_"))


def _should_include_file(
    path: Path,
    directory: Path,
    nested_modules: set[Path],
    gitignore_matches: Callable[[str], bool] | None,
    include_patterns: list[str] | None,
    exclude_patterns: list[str] | None,
    *,
    include_tests: bool,
) -> bool:
    """Check if a file should be included based on all filtering rules."""
    if not path.is_file() or path.is_symlink():
        return False

    if not _is_within_root(path, directory):
        return False

    try:
        rel_path = path.relative_to(directory)
    except ValueError:
        return False

    rel_path_str = rel_path.as_posix()

    if any(_is_skipped_dir(part) for part in rel_path.parts[:-1]):
        return False

    if path.name.startswith((".", "_")):
        return False

    if not include_tests and path.name.endswith("_test.go"):
        return False

    if any(module in path.parents for module in nested_modules):
        return False

    if gitignore_matches is not None and gitignore_matches(str(path)):
        return False

    if include_patterns and not any(
        fnmatch(rel_path_str, pat) for pat in include_patterns
    ):
        return False

    has_excluded_match = exclude_patterns and any(
        fnmatch(rel_path_str, pat) for pat in exclude_patterns
    )
    return not has_excluded_match


def _is_within_root(path: Path, root: Path) -> bool:
    """Return True when the resolved path stays within the resolved root."""
    try:
        root_resolved = root.resolve()
        path_resolved = path.resolve()
    except OSError:
        return False

    try:
        path_resolved.relative_to(root_resolved)
    except ValueError:
        return False

    return True


def _find_nested_modules(root: Path) -> set[Path]:
    """Return directories below ``root`` that hold their own go.mod."""
    return {go_mod.parent for go_mod in root.rglob("go.mod") if go_mod.parent != root}


def _build_gitignore_matcher(
    root: Path,
    *,
    nested_gitignore: bool,
) -> Callable[[str], bool] | None:
    if not nested_gitignore:
        gitignore_path = root / ".gitignore"
        if gitignore_path.is_file():
            return cast("Callable[[str], bool]", parse_gitignore(gitignore_path))
        return None

    gitignore_paths = sorted(
        {path for path in root.rglob(".gitignore") if path.is_file()},
        key=lambda p: p.relative_to(root).as_posix(),
    )
    if not gitignore_paths:
        return None

    matchers = [parse_gitignore(path) for path in gitignore_paths]

    def matches(path_str: str) -> bool:
        for matcher in matchers:
            try:
                if matcher(path_str):
                    return True
            except ValueError:
                continue
        return False

    return matches


def find_go_files(
    directory: Path,
    *,
    include_patterns: list[str] | None = None,
    exclude_patterns: list[str] | None = None,
    nested_gitignore: bool = False,
    include_tests: bool = True,
) -> Iterator[Path]:
    """Find the Go files of the module rooted at ``directory``.

    Vendored code, ``testdata`` trees, hidden or underscore-prefixed
    directories and nested modules are skipped, as is anything ignored by
    ``.gitignore``. Files are yielded sorted by relative path.
    """
    gitignore_matches = _build_gitignore_matcher(
        directory,
        nested_gitignore=nested_gitignore,
    )
    nested_modules = _find_nested_modules(directory)

    matched_files = [
        path
        for path in directory.rglob("*.go")
        if _should_include_file(
            path,
            directory,
            nested_modules,
            gitignore_matches,
            include_patterns,
            exclude_patterns,
            include_tests=include_tests,
        )
    ]

    matched_files.sort(key=lambda p: p.relative_to(directory).as_posix())
    logger.debug("found %d Go files under %s", len(matched_files), directory)

    yield from matched_files


__all__ = ["SKIPPED_DIRS", "find_go_files"]
