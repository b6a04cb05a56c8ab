"""Measurement: metrics collection, warmup detection and stability analysis."""

from .metrics import Metrics, MetricsTracker, Timer
from .probes import MemoryProbe, MemoryReading, ProcessMemoryProbe
from .stability import MemorySnapshot, StabilityPresets, StabilityResult, StabilityTester, analyze
from .warmup import FilteredMetrics, WarmupManager, WarmupStats

__all__ = [
    "FilteredMetrics",
    "MemoryProbe",
    "MemoryReading",
    "MemorySnapshot",
    "Metrics",
    "MetricsTracker",
    "ProcessMemoryProbe",
    "StabilityPresets",
    "StabilityResult",
    "StabilityTester",
    "Timer",
    "WarmupManager",
    "WarmupStats",
    "analyze",
]
