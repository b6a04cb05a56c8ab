"""
ycsbench: a YCSB-style benchmark driver.

Provides the key samplers and operation-mix chooser that shape generated
traffic, the concurrent metrics collector, warmup and steady-state detection,
long-run stability analysis and run-to-run comparison.
"""

__version__ = "0.1.0"

from ycsbench.analysis.compare import ComparisonTool, find_regressions
from ycsbench.config.settings import BenchmarkConfig, load_config
from ycsbench.core.enums import DistributionType, OperationType
from ycsbench.monitoring.metrics.collector import Metrics, MetricsTracker
from ycsbench.monitoring.stability import StabilityTester
from ycsbench.monitoring.warmup import FilteredMetrics, WarmupManager
from ycsbench.runner import WorkloadRunner, run_stability
from ycsbench.workload.distributions import create_distribution
from ycsbench.workload.operation_chooser import OperationChooser, OperationMix

__all__ = [
    "BenchmarkConfig",
    "ComparisonTool",
    "DistributionType",
    "FilteredMetrics",
    "Metrics",
    "MetricsTracker",
    "OperationChooser",
    "OperationMix",
    "OperationType",
    "StabilityTester",
    "WarmupManager",
    "WorkloadRunner",
    "__version__",
    "create_distribution",
    "find_regressions",
    "load_config",
    "run_stability",
]
