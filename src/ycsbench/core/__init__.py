"""Shared enums and exceptions."""

from .enums import DistributionType, OperationType, ValueType, Verdict, WarmupPhase
from .exceptions import (
    BenchmarkError,
    ConfigurationError,
    InvalidProportionsError,
    MemoryProbeError,
    MetricsCollectionError,
    ResultLoadError,
)

__all__ = [
    "BenchmarkError",
    "ConfigurationError",
    "DistributionType",
    "InvalidProportionsError",
    "MemoryProbeError",
    "MetricsCollectionError",
    "OperationType",
    "ResultLoadError",
    "ValueType",
    "Verdict",
    "WarmupPhase",
]
