from __future__ import annotations

from typing import TYPE_CHECKING, Any

import tomllib
from pydantic import BaseModel, ConfigDict, Field, field_validator

if TYPE_CHECKING:
    from pathlib import Path

CONFIG_FILENAME = "symaddr.toml"

DEFAULT_SCOPE = "project"


class SymaddrConfig(BaseModel):
    """Configuration for loading and querying a Go module."""

    model_config = ConfigDict(extra="forbid")

    default_scope: str = Field(
        default=DEFAULT_SCOPE,
        description="Scope expression used when a command gets no --scope",
    )
    include_tests: bool = Field(
        default=True,
        description="Parse _test.go files and treat test functions as entry points",
    )
    include: list[str] = Field(
        default_factory=list,
        description="Glob patterns for files to include (empty = all Go files)",
    )
    exclude: list[str] = Field(
        default_factory=list,
        description="Glob patterns for files to exclude",
    )
    nested_gitignore: bool = Field(
        default=False,
        description=(
            "Enable nested .gitignore composition (default: false for root-only)"
        ),
    )
    glob_limit: int = Field(
        default=0,
        ge=0,
        description="Maximum glob matches returned (0 = unlimited)",
    )
    search_limit: int = Field(
        default=20,
        ge=0,
        description="Maximum search hits returned (0 = unlimited)",
    )
    suggestion_limit: int = Field(
        default=5,
        ge=0,
        description="Maximum fuzzy suggestions shown on a miss",
    )

    @field_validator("default_scope", mode="before")
    @classmethod
    def validate_default_scope(cls, v: Any) -> Any:
        """Reject blank scope expressions early.

        Note: this runs in `mode="before"` so we can report a clear error
        message using the raw TOML values.
        """
        if v is None:
            return DEFAULT_SCOPE
        if not isinstance(v, str):
            msg = "default_scope must be a string scope expression"
            raise TypeError(msg)
        if not v.strip():
            msg = "default_scope must not be empty"
            raise ValueError(msg)
        return v.strip()

    @field_validator("include", "exclude", mode="before")
    @classmethod
    def validate_patterns(cls, v: Any) -> Any:
        if v is None:
            return []
        if isinstance(v, str):
            return [v]
        return v


class ConfigError(Exception):
    """Raised when config file exists but cannot be parsed."""


def load_config(root: Path) -> SymaddrConfig:
    """Load configuration from symaddr.toml if it exists."""
    from pathlib import Path as PathCls

    config_path = PathCls(root) / CONFIG_FILENAME

    if not config_path.is_file():
        return SymaddrConfig()

    try:
        with config_path.open("rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        msg = f"Invalid TOML in {config_path}: {e}"
        raise ConfigError(msg) from e

    try:
        return SymaddrConfig.model_validate(data)
    except Exception as e:
        msg = f"Invalid config in {config_path}: {e}"
        raise ConfigError(msg) from e
