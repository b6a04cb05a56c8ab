"""Pydantic models describing a completed benchmark run.

These are the shapes persisted to JSON and consumed by the comparison tool.
All models are frozen; build them through
:class:`~ycsbench.results.exporter.ResultExporter`.
"""

from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from ycsbench.core.enums import OperationType


class _FrozenModel(BaseModel):
    model_config = ConfigDict(frozen=True)


class ResultConfig(_FrozenModel):
    """Subset of the run configuration recorded alongside the numbers."""

    host: str = "127.0.0.1"
    port: int = 0
    record_count: int = 0
    operation_count: int = 0
    document_size: int = 0
    thread_count: int = 1
    warmup_ops: int = 0
    distribution: Optional[str] = None


class ResultSummary(_FrozenModel):
    total_ops: int = 0
    successful_ops: int = 0
    failed_ops: int = 0
    throughput_ops_sec: float = 0.0
    avg_latency_us: float = 0.0
    min_latency_us: int = 0
    max_latency_us: int = 0
    p50_latency_us: int = 0
    p95_latency_us: int = 0
    p99_latency_us: int = 0
    p999_latency_us: int = 0
    error_rate_percent: float = 0.0


class OperationStats(_FrozenModel):
    """Summary for one operation kind."""

    total_ops: int = 0
    successful_ops: int = 0
    failed_ops: int = 0
    avg_latency_us: float = 0.0
    min_latency_us: int = 0
    max_latency_us: int = 0
    p50_latency_us: int = 0
    p95_latency_us: int = 0
    p99_latency_us: int = 0


class HistogramBucket(_FrozenModel):
    lower_bound_us: int
    upper_bound_us: Optional[int] = None  # None marks the overflow bucket
    count: int = 0
    cumulative_percent: float = 0.0


class LatencyHistogram(_FrozenModel):
    buckets: List[HistogramBucket] = Field(default_factory=list)
    total_count: int = 0


class BenchmarkResult(_FrozenModel):
    """A complete, self-describing benchmark run."""

    name: str
    workload: str
    timestamp: int = Field(..., description="Milliseconds since the epoch")
    duration_ms: int = 0
    config: ResultConfig = Field(default_factory=ResultConfig)
    summary: ResultSummary = Field(default_factory=ResultSummary)
    per_operation: Optional[Dict[OperationType, OperationStats]] = None
    histogram: Optional[LatencyHistogram] = None


__all__ = [
    "BenchmarkResult",
    "HistogramBucket",
    "LatencyHistogram",
    "OperationStats",
    "ResultConfig",
    "ResultSummary",
]
