"""
Workload orchestration.

The runner owns no database client. It drives an :data:`OperationExecutor`
callable that performs one operation against the system under test and
reports success. Every worker thread gets its own seeded random source,
operation chooser and key sampler; all workers share one
:class:`MetricsTracker` (per operation kind) and one :class:`FilteredMetrics`
(overall, with warmup excluded).

Example:
    def execute(operation, key):
        return client.run(operation.value, key)

    summary = WorkloadRunner(execute, config).run()
    print(summary.result.summary.p99_latency_us)
"""

from __future__ import annotations

import logging
import random
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Callable, List, Optional

from ycsbench.config.settings import BenchmarkConfig, WorkloadConfig
from ycsbench.core.enums import DistributionType, OperationType
from ycsbench.core.exceptions import MetricsCollectionError
from ycsbench.monitoring.metrics.collector import AtomicValue, Clock, MetricsTracker, Timer
from ycsbench.monitoring.probes import MemoryProbe
from ycsbench.monitoring.stability import StabilityResult, StabilityTester
from ycsbench.monitoring.warmup import FilteredMetrics, WarmupStats
from ycsbench.results.exporter import ResultExporter
from ycsbench.results.models import BenchmarkResult
from ycsbench.workload.distributions import Distribution, LatestDistribution, create_distribution
from ycsbench.workload.operation_chooser import OperationChooser, OperationMix

logger = logging.getLogger(__name__)

OperationExecutor = Callable[[OperationType, int], bool]


class InMemoryExecutor:
    """Dictionary-backed target for dry runs and tests.

    Reads, updates and deletes of absent keys fail, which gives a realistic
    non-zero error rate once deletes are in the mix.
    """

    def __init__(self, record_count: int = 0, value: bytes = b"x", scan_length: int = 10):
        self._store = {key: value for key in range(record_count)}
        self._value = value
        self._scan_length = scan_length
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._store)

    def __call__(self, operation: OperationType, key: int) -> bool:
        with self._lock:
            if operation is OperationType.INSERT:
                self._store[key] = self._value
                return True
            if operation is OperationType.DELETE:
                return self._store.pop(key, None) is not None
            if operation is OperationType.SCAN:
                return any(k in self._store for k in range(key, key + self._scan_length))
            if key not in self._store:
                return False
            if operation in (OperationType.UPDATE, OperationType.READ_MODIFY_WRITE):
                self._store[key] = self._value
            return True


@dataclass(frozen=True)
class WorkloadRunSummary:
    result: BenchmarkResult
    warmup: WarmupStats
    total_operations: int
    worker_count: int


def build_sampler(workload: WorkloadConfig, rng: random.Random) -> Distribution:
    """Key sampler over the loaded records ``[0, record_count)``."""
    last_key = workload.record_count - 1
    if workload.distribution is DistributionType.UNIFORM:
        return create_distribution(workload.distribution, 0, workload.record_count, rng=rng)
    return create_distribution(
        workload.distribution,
        0,
        last_key,
        rng=rng,
        theta=workload.zipfian_constant,
    )


class _KeySpace:
    """Hand out keys for inserts beyond the initially loaded records."""

    def __init__(self, record_count: int):
        self._next_key = AtomicValue(record_count)
        self._max_inserted = AtomicValue(record_count - 1)

    def next_insert_key(self) -> int:
        return self._next_key.fetch_add(1)

    def mark_inserted(self, key: int) -> None:
        current = self._max_inserted.load()
        while key > current:
            if self._max_inserted.compare_exchange(current, key):
                break
            current = self._max_inserted.load()

    @property
    def max_inserted(self) -> int:
        """Highest key whose insert succeeded; claimed but pending keys are excluded."""
        return self._max_inserted.load()


class WorkloadRunner:
    """Run ``operation_count`` operations across ``thread_count`` workers."""

    def __init__(
        self,
        executor: OperationExecutor,
        config: Optional[BenchmarkConfig] = None,
        mix: Optional[OperationMix] = None,
        clock: Optional[Clock] = None,
    ):
        self.executor = executor
        self.config = config or BenchmarkConfig()
        self.mix = mix or self.config.workload.operation_mix()
        self.mix.validate_proportions()
        self._clock = clock

        self.tracker = MetricsTracker(clock=clock)
        self.filtered = FilteredMetrics(self.config.warmup, clock=clock)
        self._issued = AtomicValue()
        self._keys = _KeySpace(self.config.workload.record_count)

    def _worker_rng(self, worker_id: int) -> random.Random:
        seed = self.config.workload.seed
        if seed is None:
            return random.Random()
        return random.Random(seed + worker_id)

    def _claim(self) -> bool:
        return self._issued.fetch_add(1) < self.config.workload.operation_count

    def _execute_one(self, chooser: OperationChooser, sampler: Distribution) -> None:
        operation = chooser.choose()
        if operation is OperationType.INSERT:
            key = self._keys.next_insert_key()
        else:
            key = sampler.next()

        timer = Timer.start()
        try:
            success = bool(self.executor(operation, key))
        except Exception as exc:  # noqa: BLE001 - executor failures count as failed operations
            logger.debug("%s on key %s raised %s", operation.label, key, exc)
            success = False
        latency_us = timer.elapsed_us()

        recorded = success
        try:
            if success:
                is_warmup = self.filtered.record_success(latency_us)
            else:
                is_warmup = self.filtered.record_failure()
        except MetricsCollectionError as exc:
            logger.error("Dropping sample for %s: %s", operation.label, exc)
            recorded = False
            is_warmup = self.filtered.record_failure()

        # Per-operation figures cover the measurement phase only.
        if not is_warmup:
            try:
                self.tracker.record(operation, latency_us, recorded)
            except MetricsCollectionError as exc:
                logger.error("Dropping %s sample: %s", operation.label, exc)
                self.tracker.record(operation, 0, False)

        if operation is OperationType.INSERT and success:
            self._keys.mark_inserted(key)
        if isinstance(sampler, LatestDistribution):
            sampler.update_max_key(self._keys.max_inserted)

    def _worker(self, worker_id: int) -> int:
        rng = self._worker_rng(worker_id)
        chooser = OperationChooser(self.mix, rng=rng)
        sampler = build_sampler(self.config.workload, rng)
        completed = 0
        progress_interval = self.config.progress_interval

        while self._claim():
            self._execute_one(chooser, sampler)
            completed += 1
            if completed % progress_interval == 0:
                logger.debug("Worker %s completed %s operations", worker_id, completed)
        return completed

    def run(self) -> WorkloadRunSummary:
        workload = self.config.workload
        logger.info(
            "Running '%s': %s operations on %s threads (%s distribution)",
            self.config.name,
            workload.operation_count,
            workload.thread_count,
            workload.distribution.value,
        )
        self.filtered.start()

        with ThreadPoolExecutor(max_workers=workload.thread_count) as pool:
            completed: List[int] = list(pool.map(self._worker, range(workload.thread_count)))

        # Every worker has returned; percentiles are safe from here on.
        self.filtered.stop()
        self.tracker.stop()

        exporter = ResultExporter(clock=self._clock)
        result = exporter.from_tracker(
            self.tracker,
            self.filtered.get_measurement_metrics(),
            self.config.name,
            self.config.workload_name,
            self.config,
        )
        warmup = self.filtered.warmup_manager.get_warmup_stats()
        logger.info(
            "Finished '%s': %.2f ops/sec, p99 %s us, %s warmup ops discarded",
            self.config.name,
            result.summary.throughput_ops_sec,
            result.summary.p99_latency_us,
            warmup.warmup_ops,
        )
        return WorkloadRunSummary(
            result=result,
            warmup=warmup,
            total_operations=sum(completed),
            worker_count=workload.thread_count,
        )


def run_stability(
    executor: OperationExecutor,
    config: Optional[BenchmarkConfig] = None,
    mix: Optional[OperationMix] = None,
    probe: Optional[MemoryProbe] = None,
    clock: Optional[Clock] = None,
) -> StabilityResult:
    """Drive a single-threaded endurance run until the configured duration elapses."""
    config = config or BenchmarkConfig()
    mix = mix or config.workload.operation_mix()
    rng = random.Random(config.workload.seed)
    chooser = OperationChooser(mix, rng=rng)
    sampler = build_sampler(config.workload, rng)
    keys = _KeySpace(config.workload.record_count)

    tester = StabilityTester(config.stability, probe=probe, clock=clock, test_name=config.name)
    tester.start()
    while not tester.is_complete():
        operation = chooser.choose()
        key = keys.next_insert_key() if operation is OperationType.INSERT else sampler.next()
        timer = Timer.start()
        try:
            success = bool(executor(operation, key))
        except Exception as exc:  # noqa: BLE001 - executor failures count as failed operations
            logger.debug("%s on key %s raised %s", operation.label, key, exc)
            success = False
        try:
            tester.record_operation(timer.elapsed_us(), success)
        except MetricsCollectionError as exc:
            logger.error("Dropping stability sample: %s", exc)
            tester.record_operation(0, False)

        if operation is OperationType.INSERT and success:
            keys.mark_inserted(key)
            if isinstance(sampler, LatestDistribution):
                sampler.update_max_key(keys.max_inserted)

    return tester.stop()


__all__ = [
    "InMemoryExecutor",
    "OperationExecutor",
    "WorkloadRunSummary",
    "WorkloadRunner",
    "build_sampler",
    "run_stability",
]
