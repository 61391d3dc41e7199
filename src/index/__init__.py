"""Symbol Index over a loaded Go module."""

from index.symbols import SearchHit, Symbol, SymbolIndex, SymbolKind, parse_kind

__all__ = ["SearchHit", "Symbol", "SymbolIndex", "SymbolKind", "parse_kind"]
