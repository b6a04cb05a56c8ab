"""
Long-running stability analysis.

A :class:`StabilityTester` is driven by an external loop until
:meth:`StabilityTester.is_complete` returns ``True``. While running it samples
throughput at a fixed interval and captures process memory snapshots through a
:class:`~ycsbench.monitoring.probes.MemoryProbe`. :meth:`StabilityTester.stop`
returns a :class:`StabilityResult` that flags memory leaks (resident size
growth beyond a threshold) and performance degradation (late throughput
falling behind early throughput).

Example:
    tester = StabilityTester(StabilityPresets.quick_check())
    tester.start()
    while not tester.is_complete():
        ok, latency_us = run_one_operation()
        tester.record_operation(latency_us, ok)
    result = tester.stop()
"""

from __future__ import annotations

import logging
import threading
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional, Sequence

import numpy as np

from ycsbench.config.settings import StabilityConfig
from ycsbench.core.exceptions import MemoryProbeError
from ycsbench.monitoring.metrics.collector import Clock, Metrics, milli_timestamp
from ycsbench.monitoring.probes import MemoryProbe, ProcessMemoryProbe

logger = logging.getLogger(__name__)

DEGRADATION_MIN_SAMPLES = 10


@dataclass(frozen=True)
class MemorySnapshot:
    timestamp_ms: int
    resident_bytes: int
    peak_bytes: int
    allocations: int
    deallocations: int
    throughput_ops_sec: float


@dataclass(frozen=True)
class StabilityResult:
    """Immutable outcome of a stability run.

    ``allocation_counts_available`` is ``False`` when no snapshot carried
    allocation counters, which is the case for :class:`ProcessMemoryProbe`.
    The per-snapshot ``allocations`` and ``deallocations`` zeros are then
    placeholders, not measurements.
    """

    test_name: str
    duration_minutes: float
    total_ops: int
    successful_ops: int
    failed_ops: int
    avg_throughput_ops_sec: float
    min_throughput_ops_sec: float
    max_throughput_ops_sec: float
    throughput_variance: float
    memory_snapshots: List[MemorySnapshot] = field(default_factory=list)
    memory_leak_detected: bool = False
    memory_growth_percent: float = 0.0
    memory_growth_rate_bytes_per_sec: float = 0.0
    initial_memory_bytes: int = 0
    final_memory_bytes: int = 0
    performance_degradation_detected: bool = False
    degradation_percent: float = 0.0
    allocation_counts_available: bool = False

    @property
    def passed(self) -> bool:
        return not (self.memory_leak_detected or self.performance_degradation_detected)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["passed"] = self.passed
        return data


def analyze(
    throughput_samples: Sequence[float],
    snapshots: Sequence[MemorySnapshot],
    config: StabilityConfig,
    *,
    total_ops: int = 0,
    successful_ops: int = 0,
    failed_ops: int = 0,
    test_name: str = "stability_test",
) -> StabilityResult:
    """Compute throughput statistics and leak/degradation verdicts.

    Args:
        throughput_samples: Interval throughputs in ops/sec, in capture order.
        snapshots: Memory snapshots in capture order.
        config: Supplies the leak and degradation thresholds.

    Returns:
        The populated :class:`StabilityResult`. Every ratio with a zero
        denominator resolves to 0.
    """
    samples = np.asarray(throughput_samples, dtype=np.float64)
    if samples.size:
        avg_tp = float(samples.mean())
        min_tp = float(samples.min())
        max_tp = float(samples.max())
        variance = float(samples.var())
    else:
        avg_tp = min_tp = max_tp = variance = 0.0

    leak_detected = False
    growth_percent = 0.0
    growth_rate = 0.0
    initial_memory = 0
    final_memory = 0
    if len(snapshots) >= 2:
        first, last = snapshots[0], snapshots[-1]
        initial_memory = first.resident_bytes
        final_memory = last.resident_bytes
        if initial_memory > 0:
            growth_percent = final_memory / initial_memory * 100.0 - 100.0
            leak_detected = growth_percent > config.memory_leak_threshold_percent
        duration_s = (last.timestamp_ms - first.timestamp_ms) / 1000.0
        if duration_s > 0:
            growth_rate = (final_memory - initial_memory) / duration_s

    degradation_detected = False
    degradation_percent = 0.0
    if samples.size >= DEGRADATION_MIN_SAMPLES:
        window = max(1, samples.size // 10)
        early_avg = float(samples[:window].mean())
        late_avg = float(samples[-window:].mean())
        if early_avg > 0:
            degradation_percent = (early_avg - late_avg) / early_avg * 100.0
            degradation_detected = degradation_percent > config.performance_degradation_threshold

    if leak_detected:
        logger.warning(
            "Memory grew %.1f%% (%s -> %s bytes), above the %.1f%% threshold",
            growth_percent,
            initial_memory,
            final_memory,
            config.memory_leak_threshold_percent,
        )
    if degradation_detected:
        logger.warning(
            "Throughput degraded %.1f%% between early and late samples (threshold %.1f%%)",
            degradation_percent,
            config.performance_degradation_threshold,
        )

    return StabilityResult(
        test_name=test_name,
        duration_minutes=config.duration_ms / 60000.0,
        total_ops=total_ops,
        successful_ops=successful_ops,
        failed_ops=failed_ops,
        avg_throughput_ops_sec=avg_tp,
        min_throughput_ops_sec=min_tp,
        max_throughput_ops_sec=max_tp,
        throughput_variance=variance,
        memory_snapshots=list(snapshots),
        memory_leak_detected=leak_detected,
        memory_growth_percent=growth_percent,
        memory_growth_rate_bytes_per_sec=growth_rate,
        initial_memory_bytes=initial_memory,
        final_memory_bytes=final_memory,
        performance_degradation_detected=degradation_detected,
        degradation_percent=degradation_percent,
        allocation_counts_available=any(s.allocations or s.deallocations for s in snapshots),
    )


def _default_probe() -> Optional[MemoryProbe]:
    try:
        return ProcessMemoryProbe()
    except MemoryProbeError as exc:
        logger.warning("Memory probe unavailable, leak detection disabled: %s", exc)
        return None


class StabilityTester:
    """Drive an endurance run and collect throughput and memory samples."""

    def __init__(
        self,
        config: Optional[StabilityConfig] = None,
        probe: Optional[MemoryProbe] = None,
        clock: Optional[Clock] = None,
        test_name: str = "stability_test",
    ):
        self.config = config or StabilityConfig()
        self.probe = probe if probe is not None else _default_probe()
        self.test_name = test_name
        self._clock = clock or milli_timestamp
        self._lock = threading.Lock()

        self.metrics = Metrics(clock=self._clock)
        self.memory_snapshots: List[MemorySnapshot] = []
        self.throughput_samples: List[float] = []
        self.start_time = 0.0
        self.current_ops = 0
        self.last_sample_time = 0.0
        self.last_sample_ops = 0
        self._memory_checks = 0

    def start(self) -> None:
        self.metrics.start()
        now = self._clock()
        with self._lock:
            self.start_time = now
            self.last_sample_time = now
            self.last_sample_ops = 0
            self.current_ops = 0
            self._memory_checks = 1
            self._take_snapshot(now)
        logger.info(
            "Stability run started (duration %.1f min, memory every %ss, throughput every %ss)",
            self.config.duration_ms / 60000.0,
            self.config.memory_check_interval_seconds,
            self.config.throughput_sample_interval_seconds,
        )

    def record_operation(self, latency_us: int, success: bool) -> None:
        """Record one operation; failures are counted and never abort the run."""
        if success:
            self.metrics.record_success(latency_us)
        else:
            self.metrics.record_failure()

        now = self._clock()
        with self._lock:
            self.current_ops += 1

            sample_elapsed = now - self.last_sample_time
            if sample_elapsed >= self.config.throughput_sample_interval_seconds * 1000:
                ops_delta = self.current_ops - self.last_sample_ops
                self.throughput_samples.append(ops_delta / (sample_elapsed / 1000.0))
                self.last_sample_time = now
                self.last_sample_ops = self.current_ops

            interval_ms = self.config.memory_check_interval_seconds * 1000
            expected_checks = int((now - self.start_time) // interval_ms) + 1
            if self._memory_checks < expected_checks:
                self._memory_checks = expected_checks
                self._take_snapshot(now)

    def _take_snapshot(self, now: float) -> None:
        if self.probe is None:
            return
        reading = self.probe.read()
        if reading is None:
            logger.debug("Skipping memory snapshot at %s ms: probe returned nothing", now)
            return
        elapsed_s = max(1.0, now - self.start_time) / 1000.0
        snapshot = MemorySnapshot(
            timestamp_ms=int(now),
            resident_bytes=reading.resident_bytes,
            peak_bytes=reading.peak_bytes,
            allocations=reading.allocations,
            deallocations=reading.deallocations,
            throughput_ops_sec=self.current_ops / elapsed_s,
        )
        try:
            self.memory_snapshots.append(snapshot)
        except MemoryError:
            logger.warning("Dropping memory snapshot at %s ms: out of memory", now)

    def is_complete(self) -> bool:
        return self._clock() - self.start_time >= self.config.duration_ms

    def elapsed_minutes(self) -> float:
        return (self._clock() - self.start_time) / 60000.0

    def stop(self) -> StabilityResult:
        self.metrics.stop()
        with self._lock:
            self._take_snapshot(self._clock())
            samples = list(self.throughput_samples)
            snapshots = list(self.memory_snapshots)

        result = analyze(
            samples,
            snapshots,
            self.config,
            total_ops=self.metrics.total_ops.load(),
            successful_ops=self.metrics.successful_ops.load(),
            failed_ops=self.metrics.failed_ops.load(),
            test_name=self.test_name,
        )
        logger.info(
            "Stability run finished: %s ops, %s snapshots, %s throughput samples, passed=%s",
            result.total_ops,
            len(snapshots),
            len(samples),
            result.passed,
        )
        return result


class StabilityPresets:
    """Ready-made configurations for common endurance runs."""

    @staticmethod
    def quick_check() -> StabilityConfig:
        return StabilityConfig(
            duration_minutes=5,
            memory_check_interval_seconds=30,
            throughput_sample_interval_seconds=5,
        )

    @staticmethod
    def one_hour_endurance() -> StabilityConfig:
        return StabilityConfig(
            duration_minutes=60,
            memory_check_interval_seconds=60,
            throughput_sample_interval_seconds=10,
        )

    @staticmethod
    def twenty_four_hour() -> StabilityConfig:
        return StabilityConfig(
            duration_minutes=24 * 60,
            memory_check_interval_seconds=300,
            throughput_sample_interval_seconds=60,
        )

    @staticmethod
    def custom(duration_minutes: int) -> StabilityConfig:
        return StabilityConfig(
            duration_minutes=duration_minutes,
            memory_check_interval_seconds=max(30, duration_minutes),
            throughput_sample_interval_seconds=max(5, duration_minutes // 12),
        )

    @classmethod
    def by_name(cls, name: str) -> StabilityConfig:
        presets = {
            "quick": cls.quick_check,
            "1h": cls.one_hour_endurance,
            "24h": cls.twenty_four_hour,
        }
        try:
            return presets[name.lower()]()
        except KeyError as exc:
            raise ValueError(f"Unknown stability preset '{name}'. Valid presets: {sorted(presets)}") from exc


__all__ = [
    "MemorySnapshot",
    "StabilityPresets",
    "StabilityResult",
    "StabilityTester",
    "analyze",
]
