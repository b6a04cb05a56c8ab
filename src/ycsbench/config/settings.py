"""
Benchmark configuration models and loader.

Configuration is expressed as pydantic models so that invalid values are
rejected before a run starts. A complete :class:`BenchmarkConfig` can be
built from keyword arguments, from a mapping, or from a YAML/JSON file:

    config = load_config("bench.yaml")
    chooser = OperationChooser(config.workload.operation_mix())

Environment Variables:
    YCSBENCH_CONFIG_PATH: Default configuration file used by ``load_config``
        when no path is given.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Mapping, Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ycsbench.core.enums import DistributionType
from ycsbench.core.exceptions import ConfigurationError
from ycsbench.workload.distributions import DEFAULT_ZIPFIAN_CONSTANT
from ycsbench.workload.operation_chooser import OperationMix

logger = logging.getLogger(__name__)

CONFIG_PATH_ENV = "YCSBENCH_CONFIG_PATH"


class WarmupConfig(BaseModel):
    """Warmup cut-off and steady-state detection parameters."""

    model_config = ConfigDict(frozen=True)

    warmup_ops: int = Field(default=1000, ge=0)
    warmup_seconds: int = Field(default=10, ge=0)
    measurement_seconds: int = Field(default=60, ge=0)
    steady_state_window_count: int = Field(default=10, ge=1)
    steady_state_threshold: float = Field(default=0.05, gt=0.0)
    window_duration_ms: int = Field(default=1000, gt=0)


class StabilityConfig(BaseModel):
    """Endurance run length, sampling intervals and verdict thresholds.

    ``duration_seconds`` overrides ``duration_minutes`` when set, which keeps
    short smoke runs expressible without fractional minutes.
    """

    model_config = ConfigDict(frozen=True)

    duration_minutes: int = Field(default=60, ge=0)
    duration_seconds: Optional[float] = Field(default=None, ge=0.0)
    memory_check_interval_seconds: float = Field(default=60, gt=0)
    throughput_sample_interval_seconds: float = Field(default=10, gt=0)
    memory_leak_threshold_percent: float = Field(default=50.0, ge=0.0)
    performance_degradation_threshold: float = Field(default=20.0, ge=0.0)

    @property
    def duration_ms(self) -> float:
        if self.duration_seconds is not None:
            return self.duration_seconds * 1000.0
        return self.duration_minutes * 60 * 1000.0


class WorkloadConfig(BaseModel):
    """Shape of the generated traffic."""

    record_count: int = Field(default=1000, ge=1)
    operation_count: int = Field(default=1000, ge=0)
    document_size: int = Field(default=1024, ge=0)
    thread_count: int = Field(default=1, ge=1)
    scan_length: int = Field(default=10, ge=1)
    distribution: DistributionType = DistributionType.ZIPFIAN
    zipfian_constant: float = Field(default=DEFAULT_ZIPFIAN_CONSTANT, gt=0.0, lt=1.0)
    seed: Optional[int] = None

    read_proportion: float = Field(default=0.5, ge=0.0)
    insert_proportion: float = Field(default=0.0, ge=0.0)
    update_proportion: float = Field(default=0.5, ge=0.0)
    delete_proportion: float = Field(default=0.0, ge=0.0)
    scan_proportion: float = Field(default=0.0, ge=0.0)
    read_modify_write_proportion: float = Field(default=0.0, ge=0.0)

    @field_validator("distribution", mode="before")
    @classmethod
    def _lower_distribution(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().lower()
        return value

    def operation_mix(self) -> OperationMix:
        return OperationMix(
            read_proportion=self.read_proportion,
            insert_proportion=self.insert_proportion,
            update_proportion=self.update_proportion,
            delete_proportion=self.delete_proportion,
            scan_proportion=self.scan_proportion,
            read_modify_write_proportion=self.read_modify_write_proportion,
        )


class BenchmarkConfig(BaseModel):
    """Top-level configuration for one benchmark invocation."""

    name: str = "benchmark"
    workload_name: str = "custom"
    host: str = "127.0.0.1"
    port: int = Field(default=23469, ge=0, le=65535)
    workload: WorkloadConfig = Field(default_factory=WorkloadConfig)
    warmup: WarmupConfig = Field(default_factory=WarmupConfig)
    stability: StabilityConfig = Field(default_factory=StabilityConfig)
    progress_interval: int = Field(default=1000, ge=1)


def config_from_mapping(data: Mapping[str, Any]) -> BenchmarkConfig:
    """Validate a raw mapping into a :class:`BenchmarkConfig`.

    Raises:
        ConfigurationError: When any value fails validation.
    """
    try:
        return BenchmarkConfig.model_validate(dict(data))
    except ValidationError as exc:
        first = exc.errors()[0] if exc.errors() else {}
        key = ".".join(str(part) for part in first.get("loc", ())) or None
        raise ConfigurationError(f"Invalid benchmark configuration: {exc}", config_key=key) from exc


def load_config(path: Optional[Union[str, Path]] = None) -> BenchmarkConfig:
    """Load configuration from a YAML or JSON file.

    Args:
        path: File to read. Falls back to ``YCSBENCH_CONFIG_PATH``; when neither
            is set the defaults are returned.

    Raises:
        ConfigurationError: If the file is missing, unparsable or invalid.
    """
    path = path or os.environ.get(CONFIG_PATH_ENV)
    if not path:
        logger.debug("No configuration file specified, using defaults")
        return BenchmarkConfig()

    config_path = Path(path)
    if not config_path.exists():
        raise ConfigurationError(f"Configuration file not found: {config_path}")

    suffix = config_path.suffix.lower()
    try:
        with open(config_path, encoding="utf-8") as handle:
            if suffix in (".yaml", ".yml"):
                data = yaml.safe_load(handle)
            elif suffix == ".json":
                data = json.load(handle)
            else:
                raise ConfigurationError(f"Unsupported configuration format: {suffix}")
    except (yaml.YAMLError, json.JSONDecodeError) as exc:
        raise ConfigurationError(f"Failed to parse configuration file: {exc}") from exc

    if data is None:
        data = {}
    if not isinstance(data, Mapping):
        raise ConfigurationError(f"Invalid configuration format in {config_path}")

    logger.debug("Loaded configuration from %s", config_path)
    return config_from_mapping(data)


__all__ = [
    "BenchmarkConfig",
    "CONFIG_PATH_ENV",
    "StabilityConfig",
    "WarmupConfig",
    "WorkloadConfig",
    "config_from_mapping",
    "load_config",
]
