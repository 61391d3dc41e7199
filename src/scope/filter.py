"""Scope Filter: package-selection expressions resolved to a set test."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from spath.glob import compile_pattern

if TYPE_CHECKING:
    from program.models import Package, Program

KEYWORD_ALL = "all"
KEYWORD_PROJECT = "project"
KEYWORD_PACKAGE = "package"
SUBTREE_SUFFIX = "/..."


@dataclass(frozen=True)
class ScopeFilter:
    """Resolved package scope.

    ``include`` and ``exclude`` hold full import paths resolved when the
    filter was built; an exclusion always wins over every inclusion rule.
    """

    module_path: str
    include: frozenset[str] = frozenset()
    exclude: frozenset[str] = frozenset()
    all: bool = False
    project: bool = False
    include_patterns: tuple[str, ...] = ()
    exclude_patterns: tuple[str, ...] = ()
    target: str | None = None

    def in_scope(self, pkg_path: str) -> bool:
        if pkg_path in self.exclude:
            return False
        if self.all:
            return True
        if self.project and (
            pkg_path == self.module_path or pkg_path.startswith(self.module_path + "/")
        ):
            return True
        return pkg_path in self.include

    def resolved_includes(self) -> list[str]:
        return sorted(self.include - self.exclude)

    def resolved_excludes(self) -> list[str]:
        return sorted(self.exclude)

    def packages(self, program: Program) -> list[Package]:
        return [p for p in program.packages if self.in_scope(p.path)]

    def to_dict(self) -> dict[str, object]:
        return {
            "all": self.all,
            "project": self.project,
            "include": self.resolved_includes(),
            "exclude": self.resolved_excludes(),
            "include_patterns": list(self.include_patterns),
            "exclude_patterns": list(self.exclude_patterns),
        }


def is_scope_pattern(token: str) -> bool:
    return token.endswith(SUBTREE_SUFFIX) or "*" in token


def _relative(package: Package) -> str:
    return package.identifier.relative_path


def _subtree_matches(base: str, candidate: str) -> bool:
    return candidate == base or candidate.startswith(base + "/")


def _resolve_pattern(token: str, program: Program) -> set[str]:
    """Match a subtree or glob token against every known package.

    Both the module-relative path (``.`` for the module root) and the full
    import path are tried.
    """
    matched: set[str] = set()
    if token.endswith(SUBTREE_SUFFIX):
        base = token[: -len(SUBTREE_SUFFIX)].removeprefix("./")
        if "*" in base:
            base_matcher = compile_pattern(base)
            tree_matcher = compile_pattern(f"{base}/**")
            for package in program.packages:
                for candidate in (_relative(package), package.path):
                    if base_matcher.matches(candidate) or tree_matcher.matches(
                        candidate
                    ):
                        matched.add(package.path)
            return matched

        for package in program.packages:
            relative = _relative(package)
            if base in ("", "."):
                matched.add(package.path)
            elif _subtree_matches(base, relative) or _subtree_matches(
                base, package.path
            ):
                matched.add(package.path)
        return matched

    matcher = compile_pattern(token.removeprefix("./"))
    for package in program.packages:
        if matcher.matches(_relative(package)) or matcher.matches(package.path):
            matched.add(package.path)
    return matched


def _resolve_token(token: str, program: Program) -> set[str]:
    if is_scope_pattern(token):
        return _resolve_pattern(token, program)
    return {program.find_package(token).path}


def parse_scope(
    expr: str | None,
    program: Program,
    default_target: str | None = None,
) -> ScopeFilter:
    """Build a ScopeFilter from a comma-separated scope expression.

    Keywords are ``all``, ``project`` and ``package`` (only the default
    target, or the module root package when there is none). ``-token``
    excludes, anything else includes. Each token is a package path, a
    ``path/...`` subtree or a ``*``/``**`` glob, resolved eagerly against
    ``program``. Exclusions are applied after all
    inclusions, so token order never revives an excluded package.

    Raises:
        PackageNotFoundError: a literal token names no loaded package
        InvalidPatternError: a glob token does not compile
    """
    target = program.find_package(default_target).path if default_target else None

    include: set[str] = set()
    exclude: set[str] = set()
    include_patterns: list[str] = []
    exclude_patterns: list[str] = []
    all_packages = False
    project = False

    if target is not None:
        include.add(target)

    for raw in (expr or "").split(","):
        token = raw.strip()
        if not token:
            continue

        if token.startswith("-"):
            pattern = token[1:].strip()
            if not pattern:
                continue
            exclude_patterns.append(pattern)
            exclude |= _resolve_token(pattern, program)
            continue

        include_patterns.append(token)
        if token == KEYWORD_ALL:
            all_packages = True
        elif token == KEYWORD_PROJECT:
            project = True
        elif token == KEYWORD_PACKAGE:
            if target is None:
                target = program.find_package(".").path
            include = {target}
        else:
            include |= _resolve_token(token, program)

    return ScopeFilter(
        module_path=program.module_path,
        include=frozenset(include),
        exclude=frozenset(exclude),
        all=all_packages,
        project=project,
        include_patterns=tuple(include_patterns),
        exclude_patterns=tuple(exclude_patterns),
        target=target,
    )


__all__ = [
    "KEYWORD_ALL",
    "KEYWORD_PACKAGE",
    "KEYWORD_PROJECT",
    "ScopeFilter",
    "is_scope_pattern",
    "parse_scope",
]
