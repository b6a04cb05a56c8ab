"""Traffic shaping: key samplers, operation mixes and payloads."""

from .distributions import (
    DEFAULT_ZIPFIAN_CONSTANT,
    Distribution,
    LatestDistribution,
    UniformDistribution,
    ZipfianDistribution,
    create_distribution,
    zeta,
)
from .operation_chooser import OperationChooser, OperationMix, OperationStats
from .value_generator import ValueConfig, ValueGenerator

__all__ = [
    "DEFAULT_ZIPFIAN_CONSTANT",
    "Distribution",
    "LatestDistribution",
    "OperationChooser",
    "OperationMix",
    "OperationStats",
    "UniformDistribution",
    "ValueConfig",
    "ValueGenerator",
    "ZipfianDistribution",
    "create_distribution",
    "zeta",
]
