"""Run-to-run comparison and regression detection."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Sequence, Union

from ycsbench.core.enums import Verdict
from ycsbench.results.exporter import ResultExporter
from ycsbench.results.models import BenchmarkResult

logger = logging.getLogger(__name__)

# Percent change that counts as meaningful for the improvement verdict.
SIGNIFICANT_CHANGE_PERCENT = 5.0
# Allowed error-rate increase, in percentage points, for an improvement.
ERROR_RATE_TOLERANCE = 0.1


def percent_change(baseline: float, candidate: float) -> float:
    """``(candidate - baseline) / baseline * 100``; 0 when the baseline is 0."""
    if baseline == 0:
        return 0.0
    return (candidate - baseline) / baseline * 100.0


@dataclass(frozen=True)
class ResultInfo:
    name: str
    workload: str
    timestamp: int

    @classmethod
    def of(cls, result: BenchmarkResult) -> "ResultInfo":
        return cls(name=result.name, workload=result.workload, timestamp=result.timestamp)


@dataclass(frozen=True)
class PerformanceChanges:
    throughput_change_percent: float
    avg_latency_change_percent: float
    p50_latency_change_percent: float
    p95_latency_change_percent: float
    p99_latency_change_percent: float
    error_rate_change: float
    is_improvement: bool


@dataclass(frozen=True)
class ComparisonResult:
    baseline: ResultInfo
    candidate: ResultInfo
    changes: PerformanceChanges

    @property
    def is_regression(self) -> bool:
        changes = self.changes
        return (
            changes.throughput_change_percent < -SIGNIFICANT_CHANGE_PERCENT
            or changes.avg_latency_change_percent > SIGNIFICANT_CHANGE_PERCENT
        )

    @property
    def verdict(self) -> Verdict:
        if self.changes.is_improvement:
            return Verdict.IMPROVEMENT
        if self.is_regression:
            return Verdict.REGRESSION
        return Verdict.NO_SIGNIFICANT_CHANGE


class ComparisonTool:
    """Compare benchmark results pairwise or in batches."""

    def compare(self, baseline: BenchmarkResult, candidate: BenchmarkResult) -> ComparisonResult:
        base, cand = baseline.summary, candidate.summary

        throughput_change = percent_change(base.throughput_ops_sec, cand.throughput_ops_sec)
        avg_latency_change = percent_change(base.avg_latency_us, cand.avg_latency_us)
        error_rate_change = cand.error_rate_percent - base.error_rate_percent

        is_improvement = (
            throughput_change > SIGNIFICANT_CHANGE_PERCENT
            or avg_latency_change < -SIGNIFICANT_CHANGE_PERCENT
        ) and error_rate_change <= ERROR_RATE_TOLERANCE

        changes = PerformanceChanges(
            throughput_change_percent=throughput_change,
            avg_latency_change_percent=avg_latency_change,
            p50_latency_change_percent=percent_change(base.p50_latency_us, cand.p50_latency_us),
            p95_latency_change_percent=percent_change(base.p95_latency_us, cand.p95_latency_us),
            p99_latency_change_percent=percent_change(base.p99_latency_us, cand.p99_latency_us),
            error_rate_change=error_rate_change,
            is_improvement=is_improvement,
        )
        return ComparisonResult(
            baseline=ResultInfo.of(baseline),
            candidate=ResultInfo.of(candidate),
            changes=changes,
        )

    def find_regressions(
        self,
        baselines: Sequence[BenchmarkResult],
        candidates: Sequence[BenchmarkResult],
        threshold_percent: float,
    ) -> List[ComparisonResult]:
        """Return comparisons whose candidate regressed beyond ``threshold_percent``.

        Candidates are matched to the first baseline with the same workload
        name; candidates without a baseline are skipped.
        """
        regressions: List[ComparisonResult] = []
        for candidate in candidates:
            baseline = next((b for b in baselines if b.workload == candidate.workload), None)
            if baseline is None:
                logger.debug("No baseline for workload '%s', skipping", candidate.workload)
                continue

            comparison = self.compare(baseline, candidate)
            changes = comparison.changes
            if (
                changes.throughput_change_percent < -threshold_percent
                or changes.avg_latency_change_percent > threshold_percent
                or changes.p99_latency_change_percent > threshold_percent
            ):
                logger.warning(
                    "Regression in workload '%s': throughput %+.1f%%, avg latency %+.1f%%, p99 %+.1f%%",
                    candidate.workload,
                    changes.throughput_change_percent,
                    changes.avg_latency_change_percent,
                    changes.p99_latency_change_percent,
                )
                regressions.append(comparison)
        return regressions

    def compare_files(self, baseline_path: Union[str, Path], candidate_path: Union[str, Path]) -> ComparisonResult:
        baseline = ResultExporter.load_json(baseline_path)
        candidate = ResultExporter.load_json(candidate_path)
        return self.compare(baseline, candidate)


def find_regressions(
    baselines: Sequence[BenchmarkResult],
    candidates: Sequence[BenchmarkResult],
    threshold_percent: float,
) -> List[ComparisonResult]:
    return ComparisonTool().find_regressions(baselines, candidates, threshold_percent)


__all__ = [
    "ComparisonResult",
    "ComparisonTool",
    "PerformanceChanges",
    "ResultInfo",
    "find_regressions",
    "percent_change",
]
