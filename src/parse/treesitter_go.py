"""Tree-sitter parser for Go sources."""

from __future__ import annotations

from typing import TYPE_CHECKING

from tree_sitter import Language, Parser
from tree_sitter_go import language as get_go_language

if TYPE_CHECKING:
    from tree_sitter import Node, Tree

_PARSER: Parser | None = None


def _get_parser() -> Parser:
    """Initialize and return the Tree-sitter parser with Go language."""
    global _PARSER
    if _PARSER is None:
        lang = Language(get_go_language())
        _PARSER = Parser(lang)

    return _PARSER


def parse_go_source(source: bytes) -> Tree:
    return _get_parser().parse(source)


def package_name(root: Node) -> str | None:
    """Return the name declared by the file's ``package`` clause."""
    for child in root.children:
        if child.type != "package_clause":
            continue
        for part in child.named_children:
            if part.type in ("package_identifier", "identifier") and part.text:
                return part.text.decode("utf8")
    return None


def import_paths(root: Node) -> list[str]:
    """Return the import paths of a file in source order."""
    paths: list[str] = []
    for child in root.children:
        if child.type != "import_declaration":
            continue
        for spec in _iter_import_specs(child):
            path_node = spec.child_by_field_name("path")
            if path_node is not None and path_node.text:
                paths.append(path_node.text.decode("utf8").strip('"`'))
    return paths


def _iter_import_specs(node: Node) -> list[Node]:
    specs: list[Node] = []
    for child in node.named_children:
        if child.type == "import_spec":
            specs.append(child)
        elif child.type == "import_spec_list":
            specs.extend(c for c in child.named_children if c.type == "import_spec")
    return specs


__all__ = ["_get_parser", "import_paths", "package_name", "parse_go_source"]
