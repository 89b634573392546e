"""Configuration management."""

from .config import (
    Config,
    CostConfig,
    BatchConfig,
    LoggingConfig,
    config_from_dict,
    load_config,
)

__all__ = [
    "Config",
    "CostConfig",
    "BatchConfig",
    "LoggingConfig",
    "config_from_dict",
    "load_config",
]
