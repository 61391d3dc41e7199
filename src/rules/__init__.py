"""Configuration for symaddr."""

from rules.config import (
    CONFIG_FILENAME,
    ConfigError,
    SymaddrConfig,
    load_config,
)

__all__ = [
    "CONFIG_FILENAME",
    "ConfigError",
    "SymaddrConfig",
    "load_config",
]
