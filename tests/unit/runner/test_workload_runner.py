"""Tests for workload orchestration against in-memory executors."""

import random
import threading

import pytest

from ycsbench.config.settings import BenchmarkConfig, StabilityConfig, WarmupConfig, WorkloadConfig
from ycsbench.core.enums import DistributionType, OperationType
from ycsbench.core.exceptions import InvalidProportionsError
from ycsbench.runner import InMemoryExecutor, WorkloadRunner, _KeySpace, build_sampler, run_stability
from ycsbench.workload.distributions import LatestDistribution, UniformDistribution, ZipfianDistribution
from ycsbench.workload.operation_chooser import OperationMix


def _config(**workload) -> BenchmarkConfig:
    values = {"record_count": 100, "operation_count": 2000, "thread_count": 4, "seed": 7}
    values.update(workload)
    return BenchmarkConfig(
        name="test-run",
        workload_name="workload_a",
        workload=WorkloadConfig(**values),
        warmup=WarmupConfig(warmup_ops=200, warmup_seconds=3600),
    )


class TestInMemoryExecutor:
    def test_operations(self) -> None:
        store = InMemoryExecutor(record_count=3)
        assert store(OperationType.READ, 1)
        assert not store(OperationType.READ, 10)
        assert store(OperationType.INSERT, 10)
        assert store(OperationType.READ, 10)
        assert store(OperationType.DELETE, 10)
        assert not store(OperationType.DELETE, 10)
        assert store(OperationType.SCAN, 0)
        assert store(OperationType.READ_MODIFY_WRITE, 2)
        assert len(store) == 3


@pytest.mark.parametrize(
    ("distribution", "expected"),
    [
        (DistributionType.UNIFORM, UniformDistribution),
        (DistributionType.ZIPFIAN, ZipfianDistribution),
        (DistributionType.LATEST, LatestDistribution),
    ],
)
def test_build_sampler_covers_loaded_keys(distribution, expected) -> None:
    sampler = build_sampler(WorkloadConfig(record_count=50, distribution=distribution), random.Random(1))
    assert isinstance(sampler, expected)
    assert all(0 <= sampler.next() < 50 for _ in range(500))


class TestWorkloadRunner:
    def test_runs_exact_operation_count(self) -> None:
        calls = []
        lock = threading.Lock()

        def executor(operation, key):
            with lock:
                calls.append((operation, key))
            return True

        summary = WorkloadRunner(executor, _config()).run()
        assert len(calls) == 2000
        assert summary.total_operations == 2000
        assert summary.worker_count == 4
        assert summary.warmup.warmup_ops == 200
        assert summary.warmup.warmup_complete

        result = summary.result
        assert result.name == "test-run"
        assert result.workload == "workload_a"
        assert result.summary.total_ops == 1800
        assert result.summary.error_rate_percent == 0.0
        assert set(result.per_operation) <= {OperationType.READ, OperationType.UPDATE}
        assert sum(stats.total_ops for stats in result.per_operation.values()) == 1800
        assert all(0 <= key < 100 for _, key in calls)

    def test_executor_exceptions_count_as_failures(self) -> None:
        def executor(operation, key):
            if operation is OperationType.UPDATE:
                raise RuntimeError("connection reset")
            return True

        summary = WorkloadRunner(executor, _config(thread_count=2)).run()
        updates = summary.result.per_operation[OperationType.UPDATE]
        assert updates.failed_ops == updates.total_ops > 0
        assert summary.result.summary.failed_ops > 0

    def test_inserts_use_fresh_keys(self) -> None:
        keys = []
        lock = threading.Lock()

        def executor(operation, key):
            if operation is OperationType.INSERT:
                with lock:
                    keys.append(key)
            return True

        config = _config(distribution=DistributionType.LATEST, operation_count=500)
        WorkloadRunner(executor, config, mix=OperationMix.workload_d()).run()
        assert keys
        assert len(set(keys)) == len(keys)
        assert min(keys) >= 100

    def test_in_memory_store_run(self) -> None:
        store = InMemoryExecutor(record_count=100)
        summary = WorkloadRunner(store, _config(thread_count=1), mix=OperationMix.workload_b()).run()
        assert summary.result.summary.error_rate_percent == 0.0
        assert summary.result.summary.p99_latency_us >= summary.result.summary.p50_latency_us

    def test_invalid_mix_rejected_up_front(self) -> None:
        with pytest.raises(InvalidProportionsError):
            WorkloadRunner(lambda op, key: True, mix=OperationMix(read_proportion=0.7, update_proportion=0.5))


def test_run_stability_until_duration(clock, scripted_probe) -> None:
    def executor(operation, key):
        clock.advance(10)
        return operation is not OperationType.UPDATE

    config = BenchmarkConfig(
        workload=WorkloadConfig(record_count=10, seed=3),
        stability=StabilityConfig(
            duration_seconds=2,
            memory_check_interval_seconds=1,
            throughput_sample_interval_seconds=0.5,
        ),
    )
    probe = scripted_probe([100, 100, 100, 100])
    result = run_stability(executor, config, probe=probe, clock=clock)

    assert result.total_ops == 200
    assert 0 < result.failed_ops < 200
    assert len(result.memory_snapshots) == 4
    assert not result.memory_leak_detected
    assert result.avg_throughput_ops_sec > 0


class TestWarmupExclusion:
    def test_per_operation_figures_skip_warmup(self) -> None:
        config = BenchmarkConfig(
            workload=WorkloadConfig(record_count=10, operation_count=1000, thread_count=1, seed=5),
            warmup=WarmupConfig(warmup_ops=500, warmup_seconds=3600),
        )
        mix = OperationMix(read_proportion=1.0, update_proportion=0.0)
        result = WorkloadRunner(lambda op, key: True, config, mix=mix).run().result

        assert result.summary.total_ops == 500
        assert result.per_operation[OperationType.READ].total_ops == 500

    def test_warmup_failures_skip_per_operation_figures(self) -> None:
        config = BenchmarkConfig(
            workload=WorkloadConfig(record_count=10, operation_count=400, thread_count=1, seed=5),
            warmup=WarmupConfig(warmup_ops=100, warmup_seconds=3600),
        )
        mix = OperationMix(read_proportion=0.5, update_proportion=0.5)
        result = WorkloadRunner(lambda op, key: op is OperationType.READ, config, mix=mix).run().result

        per_op_total = sum(stats.total_ops for stats in result.per_operation.values())
        per_op_failed = sum(stats.failed_ops for stats in result.per_operation.values())
        assert per_op_total == result.summary.total_ops
        assert per_op_failed == result.summary.failed_ops


class TestLatestKeyTracking:
    def test_key_space_tracks_successful_inserts_only(self) -> None:
        keys = _KeySpace(100)
        first = keys.next_insert_key()
        second = keys.next_insert_key()
        assert (first, second) == (100, 101)
        assert keys.max_inserted == 99

        keys.mark_inserted(first)
        assert keys.max_inserted == 100
        keys.mark_inserted(second)
        keys.mark_inserted(first)
        assert keys.max_inserted == 101

    def test_reads_never_pass_the_highest_successful_insert(self) -> None:
        lock = threading.Lock()
        highest = [99]
        too_high = []

        def executor(operation, key):
            with lock:
                if operation is OperationType.INSERT:
                    if key % 3 == 0:
                        return False
                    highest[0] = max(highest[0], key)
                    return True
                if key > highest[0]:
                    too_high.append(key)
                return True

        config = _config(distribution=DistributionType.LATEST, operation_count=3000)
        mix = OperationMix(read_proportion=0.5, update_proportion=0.0, insert_proportion=0.5)
        WorkloadRunner(executor, config, mix=mix).run()
        assert highest[0] > 99
        assert too_high == []
