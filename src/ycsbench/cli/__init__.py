"""Command line interface for ycsbench."""

from typing import Any, Dict

from ycsbench.config.settings import BenchmarkConfig

# Shared between the root callback and sub-commands.
state: Dict[str, Any] = {"config": None}


def current_config() -> BenchmarkConfig:
    config = state.get("config")
    if config is None:
        config = BenchmarkConfig()
        state["config"] = config
    return config


__all__ = ["current_config", "state"]
