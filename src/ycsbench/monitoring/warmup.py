"""Warmup cut-off and steady-state detection.

:class:`WarmupManager` is a two-state machine. It starts in
``WARMING_UP`` and moves, once and for good, to ``MEASURING`` when either the
configured warmup operation count or warmup duration is reached. After the
transition operations are bucketed into fixed-length windows; the run is
declared steady when the coefficient of variation of the trailing windows
drops below the configured threshold. The steady flag is sticky.

:class:`FilteredMetrics` pairs the manager with two :class:`Metrics`
collectors so that warmup samples never reach the final report.
"""

from __future__ import annotations

import logging
import math
import threading
from dataclasses import dataclass
from typing import List, Optional, Sequence

from ycsbench.config.settings import WarmupConfig
from ycsbench.core.enums import WarmupPhase
from ycsbench.monitoring.metrics.collector import Clock, Metrics, milli_timestamp

logger = logging.getLogger(__name__)


def coefficient_of_variation(values: Sequence[float]) -> float:
    """Population standard deviation divided by the mean; 1.0 when the mean is not positive."""
    if not values:
        return 1.0
    mean = sum(values) / len(values)
    if mean <= 0:
        return 1.0
    variance = sum((value - mean) ** 2 for value in values) / len(values)
    return math.sqrt(variance) / mean


@dataclass(frozen=True)
class WarmupStats:
    warmup_ops: int
    warmup_duration_ms: int
    warmup_complete: bool
    steady_state_detected: bool
    measurement_windows: int
    steady_state_throughput: Optional[float]


class WarmupManager:
    """Track the warmup phase and windowed throughput of a run."""

    def __init__(self, config: Optional[WarmupConfig] = None, clock: Optional[Clock] = None):
        self.config = config or WarmupConfig()
        self._clock = clock or milli_timestamp
        self._lock = threading.Lock()

        self.phase = WarmupPhase.WARMING_UP
        self.warmup_start_time = 0.0
        self.warmup_end_time: Optional[float] = None
        self.warmup_ops_count = 0

        self.window_throughputs: List[float] = []
        self.current_window_start = 0.0
        self.current_window_ops = 0
        self.steady_state_detected = False

    def start_warmup(self) -> None:
        now = self._clock()
        with self._lock:
            self.phase = WarmupPhase.WARMING_UP
            self.warmup_start_time = now
            self.warmup_end_time = None
            self.warmup_ops_count = 0
            self.current_window_start = now
            self.current_window_ops = 0

    def record_operation(self) -> bool:
        """Account for one completed operation.

        Returns:
            ``True`` while the operation belongs to the warmup phase and must be
            discarded from the final report; ``False`` once measuring.
        """
        now = self._clock()
        with self._lock:
            if self.phase is WarmupPhase.WARMING_UP:
                self.warmup_ops_count += 1
                elapsed_s = int((now - self.warmup_start_time) // 1000)
                if (
                    self.warmup_ops_count >= self.config.warmup_ops
                    or elapsed_s >= self.config.warmup_seconds
                ):
                    self._begin_measurement(now)
                # The op that completes warmup still counts as warmup.
                return True

            self.current_window_ops += 1
            window_elapsed = now - self.current_window_start
            if window_elapsed >= self.config.window_duration_ms:
                throughput = self.current_window_ops / (window_elapsed / 1000.0)
                self._append_window(throughput)
                self.current_window_start = now
                self.current_window_ops = 0
            return False

    def _begin_measurement(self, now: float) -> None:
        self.phase = WarmupPhase.MEASURING
        self.warmup_end_time = now
        self.current_window_start = now
        self.current_window_ops = 0
        logger.debug(
            "Warmup complete after %s ops (%.0f ms)",
            self.warmup_ops_count,
            now - self.warmup_start_time,
        )

    def record_window(self, throughput: float) -> None:
        """Append an externally measured window throughput (ops/sec)."""
        with self._lock:
            self._append_window(throughput)

    def _append_window(self, throughput: float) -> None:
        self.window_throughputs.append(throughput)
        self._check_steady_state()

    def _recent_windows(self) -> Optional[List[float]]:
        count = self.config.steady_state_window_count
        if len(self.window_throughputs) < count:
            return None
        return self.window_throughputs[-count:]

    def _check_steady_state(self) -> None:
        if self.steady_state_detected:
            return
        recent = self._recent_windows()
        if recent is None:
            return
        if coefficient_of_variation(recent) < self.config.steady_state_threshold:
            self.steady_state_detected = True
            logger.info(
                "Steady state reached after %s windows (%.2f ops/sec)",
                len(self.window_throughputs),
                sum(recent) / len(recent),
            )

    def is_warmup_complete(self) -> bool:
        return self.phase is WarmupPhase.MEASURING

    def is_steady_state(self) -> bool:
        return self.steady_state_detected

    def get_steady_state_throughput(self) -> Optional[float]:
        """Mean throughput of the trailing windows, or ``None`` before steady state."""
        if not self.steady_state_detected:
            return None
        recent = self._recent_windows()
        if recent is None:
            return None
        return sum(recent) / len(recent)

    def get_warmup_stats(self) -> WarmupStats:
        end = self.warmup_end_time if self.warmup_end_time is not None else self._clock()
        return WarmupStats(
            warmup_ops=self.warmup_ops_count,
            warmup_duration_ms=int(max(0.0, end - self.warmup_start_time)),
            warmup_complete=self.is_warmup_complete(),
            steady_state_detected=self.steady_state_detected,
            measurement_windows=len(self.window_throughputs),
            steady_state_throughput=self.get_steady_state_throughput(),
        )


class FilteredMetrics:
    """Route samples to warmup or measurement collectors by phase."""

    def __init__(self, config: Optional[WarmupConfig] = None, clock: Optional[Clock] = None):
        self.warmup_metrics = Metrics(clock=clock)
        self.measurement_metrics = Metrics(clock=clock)
        self.warmup_manager = WarmupManager(config, clock=clock)
        self._measurement_lock = threading.Lock()

    def start(self) -> None:
        self.warmup_metrics.start()
        self.warmup_manager.start_warmup()

    def stop(self) -> None:
        if self.warmup_manager.is_warmup_complete():
            if not self.measurement_metrics.started:
                self.measurement_metrics.start()
            self.measurement_metrics.stop()
            if self.warmup_metrics.end_time == 0:
                self.warmup_metrics.stop()
        else:
            self.warmup_metrics.stop()

    def record_success(self, latency_us: int) -> bool:
        """Record a successful operation; returns ``True`` if it was a warmup op."""
        is_warmup = self.warmup_manager.record_operation()
        if is_warmup:
            self.warmup_metrics.record_success(latency_us)
            if self.warmup_manager.is_warmup_complete():
                self._begin_measurement()
            return True

        self._begin_measurement()
        self.measurement_metrics.record_success(latency_us)
        return False

    def record_failure(self) -> bool:
        """Record a failed operation against the current phase."""
        if self.warmup_manager.is_warmup_complete():
            self.measurement_metrics.record_failure()
            return False
        self.warmup_metrics.record_failure()
        return True

    def _begin_measurement(self) -> None:
        if self.measurement_metrics.started:
            return
        with self._measurement_lock:
            if not self.measurement_metrics.started:
                self.warmup_metrics.stop()
                self.measurement_metrics.start()

    def get_measurement_metrics(self) -> Metrics:
        return self.measurement_metrics

    def get_warmup_metrics(self) -> Metrics:
        return self.warmup_metrics


__all__ = [
    "FilteredMetrics",
    "WarmupManager",
    "WarmupStats",
    "coefficient_of_variation",
]
