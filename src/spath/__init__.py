"""Semantic paths: grammar, resolution, enumeration and wildcard matching."""

from spath.path import CATEGORIES, VALID_CATEGORIES, Path, Segment

__all__ = ["CATEGORIES", "VALID_CATEGORIES", "Path", "Segment"]
