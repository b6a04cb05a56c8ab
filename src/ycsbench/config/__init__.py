"""Configuration models for benchmark runs."""

from .settings import (
    CONFIG_PATH_ENV,
    BenchmarkConfig,
    StabilityConfig,
    WarmupConfig,
    WorkloadConfig,
    config_from_mapping,
    load_config,
)

__all__ = [
    "BenchmarkConfig",
    "CONFIG_PATH_ENV",
    "StabilityConfig",
    "WarmupConfig",
    "WorkloadConfig",
    "config_from_mapping",
    "load_config",
]
