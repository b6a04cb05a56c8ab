"""Post-run analysis of benchmark results."""

from .compare import (
    ComparisonResult,
    ComparisonTool,
    PerformanceChanges,
    ResultInfo,
    find_regressions,
    percent_change,
)

__all__ = [
    "ComparisonResult",
    "ComparisonTool",
    "PerformanceChanges",
    "ResultInfo",
    "find_regressions",
    "percent_change",
]
