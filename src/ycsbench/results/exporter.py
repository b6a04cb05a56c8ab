"""Build :class:`BenchmarkResult` objects from collectors and persist them.

Percentiles sort the collectors' sample lists, so build results only after
every worker feeding the collectors has finished.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, Optional, Union

from pydantic import ValidationError

from ycsbench.config.settings import BenchmarkConfig
from ycsbench.core.enums import OperationType
from ycsbench.core.exceptions import ResultLoadError
from ycsbench.monitoring.metrics.collector import Metrics, MetricsTracker, milli_timestamp
from ycsbench.monitoring.metrics.histogram import LatencyHistogram as _RawHistogram

from .models import (
    BenchmarkResult,
    HistogramBucket,
    LatencyHistogram,
    OperationStats,
    ResultConfig,
    ResultSummary,
)

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def _result_config(config: Optional[BenchmarkConfig]) -> ResultConfig:
    if config is None:
        return ResultConfig()
    workload = config.workload
    return ResultConfig(
        host=config.host,
        port=config.port,
        record_count=workload.record_count,
        operation_count=workload.operation_count,
        document_size=workload.document_size,
        thread_count=workload.thread_count,
        warmup_ops=config.warmup.warmup_ops,
        distribution=workload.distribution.value,
    )


def _histogram_model(histogram: Optional[_RawHistogram]) -> Optional[LatencyHistogram]:
    if histogram is None:
        return None
    return LatencyHistogram(
        buckets=[
            HistogramBucket(
                lower_bound_us=bucket.lower_bound_us,
                upper_bound_us=bucket.upper_bound_us,
                count=bucket.count,
                cumulative_percent=bucket.cumulative_percent,
            )
            for bucket in histogram.buckets
        ],
        total_count=histogram.total_count,
    )


def summarize(metrics: Metrics) -> ResultSummary:
    return ResultSummary(
        total_ops=metrics.total_ops.load(),
        successful_ops=metrics.successful_ops.load(),
        failed_ops=metrics.failed_ops.load(),
        throughput_ops_sec=metrics.throughput(),
        avg_latency_us=metrics.avg_latency(),
        min_latency_us=metrics.min_latency,
        max_latency_us=metrics.max_latency,
        p50_latency_us=metrics.percentile(0.50),
        p95_latency_us=metrics.percentile(0.95),
        p99_latency_us=metrics.percentile(0.99),
        p999_latency_us=metrics.percentile(0.999),
        error_rate_percent=metrics.error_rate_percent(),
    )


def operation_stats(metrics: Metrics) -> OperationStats:
    return OperationStats(
        total_ops=metrics.total_ops.load(),
        successful_ops=metrics.successful_ops.load(),
        failed_ops=metrics.failed_ops.load(),
        avg_latency_us=metrics.avg_latency(),
        min_latency_us=metrics.min_latency,
        max_latency_us=metrics.max_latency,
        p50_latency_us=metrics.percentile(0.50),
        p95_latency_us=metrics.percentile(0.95),
        p99_latency_us=metrics.percentile(0.99),
    )


class ResultExporter:
    """Convert collectors into result models and read/write them as JSON."""

    def __init__(self, clock=None):
        self._clock = clock or milli_timestamp

    def from_metrics(
        self,
        metrics: Metrics,
        name: str,
        workload: str,
        config: Optional[BenchmarkConfig] = None,
    ) -> BenchmarkResult:
        return BenchmarkResult(
            name=name,
            workload=workload,
            timestamp=int(self._clock()),
            duration_ms=metrics.duration_ms(),
            config=_result_config(config),
            summary=summarize(metrics),
            histogram=_histogram_model(metrics.latency_histogram()),
        )

    def from_tracker(
        self,
        tracker: MetricsTracker,
        overall: Metrics,
        name: str,
        workload: str,
        config: Optional[BenchmarkConfig] = None,
    ) -> BenchmarkResult:
        """Like :meth:`from_metrics`, adding a per-operation breakdown."""
        result = self.from_metrics(overall, name, workload, config)
        per_operation: Dict[OperationType, OperationStats] = {
            operation: operation_stats(metrics) for operation, metrics in tracker.items()
        }
        return result.model_copy(update={"per_operation": per_operation or None})

    @staticmethod
    def save_json(result: BenchmarkResult, path: PathLike) -> Path:
        target = Path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(result.model_dump_json(indent=2), encoding="utf-8")
        logger.debug("Saved benchmark result '%s' to %s", result.name, target)
        return target

    @staticmethod
    def load_json(path: PathLike) -> BenchmarkResult:
        """Read a result written by :meth:`save_json`.

        Raises:
            ResultLoadError: If the file is missing or does not hold a valid result.
        """
        source = Path(path)
        try:
            raw = source.read_text(encoding="utf-8")
        except OSError as exc:
            raise ResultLoadError(str(source), cause=exc) from exc
        try:
            return BenchmarkResult.model_validate_json(raw)
        except ValidationError as exc:
            raise ResultLoadError(str(source), message=f"Invalid benchmark result in '{source}'", cause=exc) from exc


__all__ = ["ResultExporter", "operation_stats", "summarize"]
