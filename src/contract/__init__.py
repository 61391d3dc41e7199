"""Stable query surface for symaddr.

Commands and embedding tools should import the engine operations from here
rather than from the implementing modules.
"""

from contract.diagnostics import Diagnostic, Diagnostics
from contract.errors import (
    AmbiguousMatchError,
    InvalidPatternError,
    PackageNotFoundError,
    ParseError,
    ProgramLoadError,
    ResolutionError,
    SymaddrError,
    SymbolNotFoundError,
    UnanalyzableSymbolError,
)


def __getattr__(name: str) -> object:
    if name in {"parse", "resolve", "resolve_query"}:
        from spath.parse import parse
        from spath.resolve import resolve, resolve_query

        return {
            "parse": parse,
            "resolve": resolve,
            "resolve_query": resolve_query,
        }[name]

    if name in {"SpathEntry", "enumerate_all"}:
        from spath.enumerate import SpathEntry, enumerate_all

        return {"SpathEntry": SpathEntry, "enumerate_all": enumerate_all}[name]

    if name in {"compile_pattern", "is_pattern", "match"}:
        from spath.glob import compile_pattern, is_pattern, match

        return {
            "compile_pattern": compile_pattern,
            "is_pattern": is_pattern,
            "match": match,
        }[name]

    if name in {"ScopeFilter", "parse_scope"}:
        from scope.filter import ScopeFilter, parse_scope

        return {"ScopeFilter": ScopeFilter, "parse_scope": parse_scope}[name]

    if name in {"SymbolIndex", "load_program"}:
        from index.symbols import SymbolIndex
        from program.loader import load_program

        return {"SymbolIndex": SymbolIndex, "load_program": load_program}[name]

    msg = f"module 'contract' has no attribute {name!r}"
    raise AttributeError(msg)


__all__ = [
    "AmbiguousMatchError",
    "Diagnostic",
    "Diagnostics",
    "InvalidPatternError",
    "PackageNotFoundError",
    "ParseError",
    "ProgramLoadError",
    "ResolutionError",
    "ScopeFilter",
    "SpathEntry",
    "SymaddrError",
    "SymbolIndex",
    "SymbolNotFoundError",
    "UnanalyzableSymbolError",
    "compile_pattern",
    "enumerate_all",
    "is_pattern",
    "load_program",
    "match",
    "parse",
    "parse_scope",
    "resolve",
    "resolve_query",
]
