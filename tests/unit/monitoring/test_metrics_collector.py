"""Tests for the concurrent metrics collector."""

import threading

import pytest

from ycsbench.core.enums import OperationType
from ycsbench.core.exceptions import MetricsCollectionError
from ycsbench.monitoring.metrics.collector import AtomicValue, Metrics, MetricsTracker, Timer


class TestAtomicValue:
    def test_fetch_add_returns_previous(self) -> None:
        value = AtomicValue(5)
        assert value.fetch_add(3) == 5
        assert value.load() == 8

    def test_compare_exchange(self) -> None:
        value = AtomicValue(1)
        assert value.compare_exchange(1, 2) is True
        assert value.compare_exchange(1, 3) is False
        assert value.load() == 2


class TestMetrics:
    def test_empty_collector_reports_zeros(self) -> None:
        metrics = Metrics()
        assert metrics.avg_latency() == 0.0
        assert metrics.throughput() == 0.0
        assert metrics.error_rate_percent() == 0.0
        assert metrics.percentile(0.99) == 0
        assert metrics.min_latency == 0
        assert metrics.max_latency == 0
        assert metrics.latency_histogram() is None

    def test_five_sample_scenario(self) -> None:
        """Samples 10..50 give avg 30, P50 30, P99 50."""
        metrics = Metrics()
        for latency in (50, 10, 40, 20, 30):
            metrics.record_success(latency)
        assert metrics.avg_latency() == pytest.approx(30.0)
        assert metrics.min_latency == 10
        assert metrics.max_latency == 50
        assert metrics.percentile(0.50) == 30
        assert metrics.percentile(0.99) == 50

    def test_percentile_extremes(self) -> None:
        metrics = Metrics()
        for latency in range(1, 101):
            metrics.record_success(latency)
        assert metrics.percentile(0.0) == 1
        assert metrics.percentile(1.0) == 100

    @pytest.mark.parametrize("p", [-0.01, 1.5])
    def test_percentile_rejects_out_of_range(self, p: float) -> None:
        with pytest.raises(ValueError):
            Metrics().percentile(p)

    def test_failures_count_without_samples(self) -> None:
        metrics = Metrics()
        metrics.record_success(100)
        metrics.record_failure()
        metrics.record_failure()
        metrics.record_failure()
        assert metrics.total_ops.load() == 4
        assert metrics.failed_ops.load() == 3
        assert metrics.sample_count == 1
        assert metrics.error_rate_percent() == pytest.approx(75.0)

    def test_negative_latency_clamped(self) -> None:
        metrics = Metrics()
        metrics.record_success(-5)
        assert metrics.min_latency == 0
        assert metrics.latencies() == [0]

    def test_throughput_uses_start_stop_window(self, clock) -> None:
        metrics = Metrics(clock=clock)
        metrics.start()
        for _ in range(500):
            metrics.record_success(10)
        clock.advance(2000)
        metrics.stop()
        assert metrics.duration_ms() == 2000
        assert metrics.throughput() == pytest.approx(250.0)

    def test_zero_duration_throughput_is_zero(self, clock) -> None:
        metrics = Metrics(clock=clock)
        metrics.start()
        metrics.record_success(10)
        metrics.stop()
        assert metrics.throughput() == 0.0

    def test_concurrent_writers_keep_counters_consistent(self) -> None:
        metrics = Metrics()
        threads = 8
        per_thread = 2000

        def worker(offset: int) -> None:
            for i in range(per_thread):
                if i % 10 == 0:
                    metrics.record_failure()
                else:
                    metrics.record_success(offset + i)

        pool = [threading.Thread(target=worker, args=(n * 10,)) for n in range(threads)]
        for thread in pool:
            thread.start()
        for thread in pool:
            thread.join()

        total = metrics.total_ops.load()
        assert total == threads * per_thread
        assert metrics.successful_ops.load() + metrics.failed_ops.load() == total
        assert metrics.sample_count == metrics.successful_ops.load()
        assert metrics.min_latency == 1
        assert metrics.max_latency == (threads - 1) * 10 + per_thread - 1

    def test_memory_error_on_append_is_wrapped(self, monkeypatch) -> None:
        metrics = Metrics()

        class _FullList(list):
            def append(self, item):
                raise MemoryError()

        monkeypatch.setattr(metrics, "_latencies", _FullList())
        with pytest.raises(MetricsCollectionError):
            metrics.record_success(10)
        assert metrics.total_ops.load() == 0

    def test_snapshot_keys(self) -> None:
        metrics = Metrics()
        metrics.record_success(10)
        snapshot = metrics.snapshot()
        assert snapshot["successful_ops"] == 1
        assert snapshot["p99_latency_us"] == 10


def test_timer_measures_non_negative_microseconds() -> None:
    timer = Timer.start()
    assert timer.elapsed_us() >= 0


class TestMetricsTracker:
    def test_creates_metrics_lazily(self, clock) -> None:
        tracker = MetricsTracker(clock=clock)
        assert tracker.get(OperationType.READ) is None
        tracker.record(OperationType.UPDATE, 20, True)
        tracker.record(OperationType.READ, 10, True)
        tracker.record(OperationType.READ, 0, False)

        read = tracker.get(OperationType.READ)
        assert read is not None and read.started
        assert read.total_ops.load() == 2
        assert [op for op, _ in tracker.items()] == [OperationType.READ, OperationType.UPDATE]
        assert tracker.total_operations == 3

    def test_concurrent_first_use_creates_one_collector(self) -> None:
        tracker = MetricsTracker()
        barrier = threading.Barrier(6)

        def worker() -> None:
            barrier.wait()
            for _ in range(100):
                tracker.record(OperationType.SCAN, 5, True)

        threads = [threading.Thread(target=worker) for _ in range(6)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert tracker.get(OperationType.SCAN).successful_ops.load() == 600

    def test_reset(self) -> None:
        tracker = MetricsTracker()
        tracker.record(OperationType.READ, 1, True)
        tracker.reset()
        assert list(tracker.items()) == []
        assert tracker.total_operations == 0
