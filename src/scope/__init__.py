"""Package scope expressions."""

from scope.filter import ScopeFilter, is_scope_pattern, parse_scope

__all__ = ["ScopeFilter", "is_scope_pattern", "parse_scope"]
