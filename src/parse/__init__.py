"""Tree-sitter Go parsing and ``go.mod`` reading."""

from parse.gomod import GoModule, find_go_mod, read_go_module
from parse.treesitter_go import import_paths, package_name, parse_go_source

__all__ = [
    "GoModule",
    "find_go_mod",
    "import_paths",
    "package_name",
    "parse_go_source",
    "read_go_module",
]
