"""Latency and throughput collection primitives."""

from .collector import AtomicValue, Metrics, MetricsTracker, Timer, milli_timestamp
from .histogram import BUCKET_BOUNDS_US, HistogramBucket, LatencyHistogram, build_histogram

__all__ = [
    "AtomicValue",
    "BUCKET_BOUNDS_US",
    "HistogramBucket",
    "LatencyHistogram",
    "Metrics",
    "MetricsTracker",
    "Timer",
    "build_histogram",
    "milli_timestamp",
]
