"""Configuration management for the index advisor."""

import math
from dataclasses import dataclass, field
from typing import Any, Dict, Optional
import yaml
from pathlib import Path


@dataclass
class CostConfig:
    """Configuration for the cost model.

    All units are synthetic and only meaningful relative to each other.
    """

    indexed_lookup_unit: float = 0.2  # Cost per indexed row touch
    scan_unit: float = 1.0  # Cost per unindexed row touch
    hash_build_unit: float = 1.5
    hash_probe_unit: float = 1.0
    spill_threshold_rows: float = 500_000
    spill_penalty_multiplier: float = 2.0
    default_open_range_fraction: float = 0.33
    filter_unit: float = 0.5  # Cost per row evaluated by a residual filter
    sort_unit: float = 1.0  # Multiplier on n * log2(n)

    def __post_init__(self):
        for name in (
            "indexed_lookup_unit",
            "scan_unit",
            "hash_build_unit",
            "hash_probe_unit",
            "spill_threshold_rows",
            "spill_penalty_multiplier",
            "filter_unit",
            "sort_unit",
        ):
            value = getattr(self, name)
            if not (math.isfinite(value) and value >= 0):
                raise ValueError(f"cost.{name} must be a finite non-negative number, got {value}")


@dataclass
class BatchConfig:
    """Configuration for batch advisory runs."""

    max_workers: int = 4
    timeout_seconds: Optional[float] = None  # None waits for every task


@dataclass
class LoggingConfig:
    """Configuration for log output."""

    level: str = "INFO"
    structured: bool = False
    log_file: Optional[str] = None


@dataclass
class Config:
    """Main configuration class."""

    cost: CostConfig = field(default_factory=CostConfig)
    batch: BatchConfig = field(default_factory=BatchConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def config_from_dict(data: Optional[Dict[str, Any]]) -> Config:
    """Build configuration from an already-parsed mapping.

    Missing sections fall back to defaults; unknown keys raise TypeError.
    """
    data = data or {}

    cost = CostConfig(**(data.get("cost") or {}))
    batch = BatchConfig(**(data.get("batch") or {}))
    logging_config = LoggingConfig(**(data.get("logging") or {}))

    return Config(cost=cost, batch=batch, logging=logging_config)


def load_config(config_path: str) -> Config:
    """Load configuration from YAML file.

    Args:
        config_path: Path to YAML configuration file

    Returns:
        Parsed configuration

    Example YAML format:
        cost:
          indexed_lookup_unit: 0.2
          scan_unit: 1.0
          spill_threshold_rows: 500000
          default_open_range_fraction: 0.33

        batch:
          max_workers: 8
          timeout_seconds: 5

        logging:
          level: DEBUG
          structured: true
    """
    path = Path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(path, "r") as f:
        data = yaml.safe_load(f)

    return config_from_dict(data)
