"""Benchmark result models and JSON persistence."""

from .exporter import ResultExporter
from .models import (
    BenchmarkResult,
    HistogramBucket,
    LatencyHistogram,
    OperationStats,
    ResultConfig,
    ResultSummary,
)

__all__ = [
    "BenchmarkResult",
    "HistogramBucket",
    "LatencyHistogram",
    "OperationStats",
    "ResultConfig",
    "ResultExporter",
    "ResultSummary",
]
