"""Concurrent latency and throughput collector.

A :class:`Metrics` instance is created per run (or per operation kind) and
handed to every worker. Counters and latency extrema are updated without a
shared lock; latency samples are appended under one exclusive lock per
successful operation.

Percentiles sort the sample list in place. Read them only once all writers
have been joined, e.g. after the worker pool shuts down.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Dict, Iterator, List, Optional, Tuple

from ycsbench.core.enums import OperationType
from ycsbench.core.exceptions import MetricsCollectionError

from .histogram import LatencyHistogram, build_histogram

logger = logging.getLogger(__name__)

Clock = Callable[[], float]

_NO_MIN = 2 ** 64 - 1


def milli_timestamp() -> int:
    """Current wall-clock time in milliseconds since the epoch."""
    return time.time_ns() // 1_000_000


class AtomicValue:
    """Integer cell with atomic load, add and compare-exchange.

    CPython has no user-level atomics, so each cell guards itself with its
    own lock. Callers never hold that lock across other work.
    """

    __slots__ = ("_value", "_lock")

    def __init__(self, value: int = 0):
        self._value = value
        self._lock = threading.Lock()

    def load(self) -> int:
        return self._value

    def store(self, value: int) -> None:
        with self._lock:
            self._value = value

    def fetch_add(self, delta: int) -> int:
        with self._lock:
            previous = self._value
            self._value = previous + delta
            return previous

    def compare_exchange(self, expected: int, desired: int) -> bool:
        """Replace the value with ``desired`` only if it still equals ``expected``."""
        with self._lock:
            if self._value != expected:
                return False
            self._value = desired
            return True

    def __repr__(self) -> str:
        return f"AtomicValue({self._value})"


class Metrics:
    """Counters, latency extrema and raw latency samples for one run."""

    def __init__(self, clock: Optional[Clock] = None):
        """Initialize an empty collector.

        Args:
            clock: Millisecond wall clock used by :meth:`start` and :meth:`stop`.
        """
        self._clock = clock or milli_timestamp
        self.start_time = 0
        self.end_time = 0

        self.total_ops = AtomicValue()
        self.successful_ops = AtomicValue()
        self.failed_ops = AtomicValue()
        self.total_latency = AtomicValue()
        self._min_latency = AtomicValue(_NO_MIN)
        self._max_latency = AtomicValue(0)

        self._latencies: List[int] = []
        self._latencies_lock = threading.Lock()
        self._sorted = True

    # --- Lifecycle ---------------------------------------------------------

    def start(self) -> None:
        self.start_time = int(self._clock())

    def stop(self) -> None:
        self.end_time = int(self._clock())

    @property
    def started(self) -> bool:
        return self.start_time != 0

    # --- Recording ---------------------------------------------------------

    def record_success(self, latency_us: int) -> None:
        """Record a successful operation.

        Raises:
            MetricsCollectionError: When the sample cannot be stored.
        """
        latency = max(0, int(latency_us))

        try:
            with self._latencies_lock:
                self._latencies.append(latency)
                self._sorted = False
        except MemoryError as exc:
            raise MetricsCollectionError("Unable to store latency sample", cause=exc) from exc

        self.successful_ops.fetch_add(1)
        self.total_ops.fetch_add(1)
        self.total_latency.fetch_add(latency)

        current = self._min_latency.load()
        while latency < current:
            if self._min_latency.compare_exchange(current, latency):
                break
            current = self._min_latency.load()

        current = self._max_latency.load()
        while latency > current:
            if self._max_latency.compare_exchange(current, latency):
                break
            current = self._max_latency.load()

    def record_failure(self) -> None:
        self.failed_ops.fetch_add(1)
        self.total_ops.fetch_add(1)

    # --- Derived values ----------------------------------------------------

    def duration_ms(self) -> int:
        return self.end_time - self.start_time

    def throughput(self) -> float:
        """Successful operations per second over the start/stop window."""
        duration_s = self.duration_ms() / 1000.0
        if duration_s <= 0:
            return 0.0
        return self.successful_ops.load() / duration_s

    def avg_latency(self) -> float:
        successful = self.successful_ops.load()
        if successful == 0:
            return 0.0
        return self.total_latency.load() / successful

    @property
    def min_latency(self) -> int:
        value = self._min_latency.load()
        return 0 if value == _NO_MIN else value

    @property
    def max_latency(self) -> int:
        return self._max_latency.load()

    def error_rate_percent(self) -> float:
        total = self.total_ops.load()
        if total == 0:
            return 0.0
        return self.failed_ops.load() / total * 100.0

    @property
    def sample_count(self) -> int:
        return len(self._latencies)

    def _sort_samples(self) -> List[int]:
        # Caller holds _latencies_lock.
        if not self._sorted:
            self._latencies.sort()
            self._sorted = True
        return self._latencies

    def percentile(self, p: float) -> int:
        """Return the latency at index ``floor(len * p)``, clamped to the last sample.

        Args:
            p: Fraction in ``[0, 1]`` (``0.99`` for P99).
        """
        if not 0.0 <= p <= 1.0:
            raise ValueError(f"Percentile must be within [0, 1], received {p!r}")

        with self._latencies_lock:
            samples = self._sort_samples()
            if not samples:
                return 0
            index = min(int(len(samples) * p), len(samples) - 1)
            return samples[index]

    def latencies(self) -> List[int]:
        """Return a sorted copy of all recorded latency samples."""
        with self._latencies_lock:
            return list(self._sort_samples())

    def latency_histogram(self) -> Optional[LatencyHistogram]:
        return build_histogram(self.latencies())

    def snapshot(self) -> Dict[str, float]:
        """Return a flat summary suitable for logging or export."""
        return {
            "duration_ms": self.duration_ms(),
            "total_ops": self.total_ops.load(),
            "successful_ops": self.successful_ops.load(),
            "failed_ops": self.failed_ops.load(),
            "throughput_ops_sec": self.throughput(),
            "avg_latency_us": self.avg_latency(),
            "min_latency_us": self.min_latency,
            "max_latency_us": self.max_latency,
            "p50_latency_us": self.percentile(0.50),
            "p95_latency_us": self.percentile(0.95),
            "p99_latency_us": self.percentile(0.99),
            "error_rate_percent": self.error_rate_percent(),
        }


class Timer:
    """Measure elapsed wall time of one operation in microseconds."""

    __slots__ = ("_start_ns",)

    def __init__(self, start_ns: int):
        self._start_ns = start_ns

    @classmethod
    def start(cls) -> Timer:
        return cls(time.perf_counter_ns())

    def elapsed_us(self) -> int:
        return (time.perf_counter_ns() - self._start_ns) // 1000


class MetricsTracker:
    """Per-operation-kind :class:`Metrics`, created on first observation."""

    def __init__(self, clock: Optional[Clock] = None):
        self._clock = clock
        self._metrics: Dict[OperationType, Metrics] = {}
        self._lock = threading.Lock()
        self._total_operations = AtomicValue()

    def _metrics_for(self, operation: OperationType) -> Metrics:
        metrics = self._metrics.get(operation)
        if metrics is not None:
            return metrics
        with self._lock:
            metrics = self._metrics.get(operation)
            if metrics is None:
                metrics = Metrics(clock=self._clock)
                metrics.start()
                self._metrics[operation] = metrics
                logger.debug("Created metrics for %s operations", operation.label)
            return metrics

    def record(self, operation: OperationType, latency_us: int, success: bool) -> None:
        metrics = self._metrics_for(operation)
        if success:
            metrics.record_success(latency_us)
        else:
            metrics.record_failure()
        self._total_operations.fetch_add(1)

    def get(self, operation: OperationType) -> Optional[Metrics]:
        return self._metrics.get(operation)

    def items(self) -> Iterator[Tuple[OperationType, Metrics]]:
        """Yield ``(operation, metrics)`` pairs in operation declaration order."""
        for operation in OperationType:
            metrics = self._metrics.get(operation)
            if metrics is not None:
                yield operation, metrics

    def stop(self) -> None:
        for _, metrics in self.items():
            metrics.stop()

    @property
    def total_operations(self) -> int:
        return self._total_operations.load()

    def reset(self) -> None:
        with self._lock:
            self._metrics = {}
            self._total_operations = AtomicValue()


__all__ = [
    "AtomicValue",
    "Metrics",
    "MetricsTracker",
    "Timer",
    "milli_timestamp",
]
