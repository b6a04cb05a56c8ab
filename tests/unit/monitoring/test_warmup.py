"""Tests for warmup cut-off, windowed throughput and steady-state detection."""

import pytest

from ycsbench.config.settings import WarmupConfig
from ycsbench.core.enums import WarmupPhase
from ycsbench.monitoring.warmup import FilteredMetrics, WarmupManager, coefficient_of_variation


def _manager(clock, **overrides) -> WarmupManager:
    config = WarmupConfig(**{"warmup_ops": 100, "warmup_seconds": 3600, **overrides})
    manager = WarmupManager(config, clock=clock)
    manager.start_warmup()
    return manager


class TestCoefficientOfVariation:
    def test_constant_values(self) -> None:
        assert coefficient_of_variation([5.0, 5.0, 5.0]) == 0.0

    def test_population_stddev(self) -> None:
        # mean 2, population stddev 1
        assert coefficient_of_variation([1.0, 3.0]) == pytest.approx(0.5)

    def test_non_positive_mean(self) -> None:
        assert coefficient_of_variation([0.0, 0.0]) == 1.0
        assert coefficient_of_variation([]) == 1.0


class TestWarmupCutoff:
    def test_hundredth_op_is_warmup_and_next_is_measured(self, clock) -> None:
        manager = _manager(clock)
        results = [manager.record_operation() for _ in range(100)]
        assert all(results)
        assert manager.is_warmup_complete()
        assert manager.phase is WarmupPhase.MEASURING
        assert manager.record_operation() is False

    def test_warmup_ends_on_elapsed_seconds(self, clock) -> None:
        manager = _manager(clock, warmup_ops=1_000_000, warmup_seconds=2)
        assert manager.record_operation() is True
        assert not manager.is_warmup_complete()
        clock.advance(1999)
        assert manager.record_operation() is True
        assert not manager.is_warmup_complete()
        clock.advance(1)
        assert manager.record_operation() is True
        assert manager.is_warmup_complete()
        assert manager.record_operation() is False

    def test_phase_never_reverts(self, clock) -> None:
        manager = _manager(clock, warmup_ops=1)
        manager.record_operation()
        for _ in range(50):
            clock.advance(10)
            assert manager.record_operation() is False
        assert manager.phase is WarmupPhase.MEASURING

    def test_warmup_stats(self, clock) -> None:
        manager = _manager(clock, warmup_ops=10)
        for _ in range(9):
            clock.advance(5)
            manager.record_operation()
        clock.advance(5)
        manager.record_operation()
        stats = manager.get_warmup_stats()
        assert stats.warmup_ops == 10
        assert stats.warmup_duration_ms == 50
        assert stats.warmup_complete
        assert not stats.steady_state_detected
        assert stats.steady_state_throughput is None


class TestSteadyState:
    def test_stable_windows_reach_steady_state(self, clock) -> None:
        """Ten windows within +/-2% of 1000 ops/sec are steady."""
        manager = _manager(clock, steady_state_window_count=10)
        for throughput in (1000, 1020, 980, 1010, 990, 1000, 1015, 985, 1005, 995):
            assert not manager.is_steady_state()
            manager.record_window(throughput)
        assert manager.is_steady_state()
        assert manager.get_steady_state_throughput() == pytest.approx(1000.0)

    def test_noisy_windows_do_not(self, clock) -> None:
        """Windows swinging +/-50% never look steady."""
        manager = _manager(clock, steady_state_window_count=10)
        for index in range(20):
            manager.record_window(1500 if index % 2 else 500)
        assert not manager.is_steady_state()
        assert manager.get_steady_state_throughput() is None

    def test_needs_full_window_count(self, clock) -> None:
        manager = _manager(clock, steady_state_window_count=5)
        for _ in range(4):
            manager.record_window(1000)
        assert not manager.is_steady_state()
        manager.record_window(1000)
        assert manager.is_steady_state()

    def test_steady_state_is_sticky(self, clock) -> None:
        manager = _manager(clock, steady_state_window_count=3)
        for _ in range(3):
            manager.record_window(1000)
        manager.record_window(10)
        manager.record_window(5000)
        assert manager.is_steady_state()

    def test_windows_close_on_duration(self, clock) -> None:
        manager = _manager(clock, warmup_ops=1, window_duration_ms=1000, steady_state_window_count=3)
        manager.record_operation()
        for _ in range(3):
            for _ in range(99):
                clock.advance(10)
                manager.record_operation()
            clock.advance(10)
            manager.record_operation()
        assert manager.window_throughputs == pytest.approx([100.0, 100.0, 100.0])
        assert manager.is_steady_state()


class TestFilteredMetrics:
    def test_warmup_samples_excluded_from_measurement(self, clock) -> None:
        filtered = FilteredMetrics(WarmupConfig(warmup_ops=3, warmup_seconds=3600), clock=clock)
        filtered.start()
        assert filtered.record_success(1000) is True
        assert filtered.record_success(1000) is True
        assert filtered.record_success(1000) is True
        assert not filtered.get_measurement_metrics().sample_count

        clock.advance(100)
        assert filtered.record_success(10) is False
        assert filtered.record_failure() is False
        clock.advance(900)
        filtered.stop()

        measurement = filtered.get_measurement_metrics()
        assert measurement.successful_ops.load() == 1
        assert measurement.failed_ops.load() == 1
        assert measurement.percentile(1.0) == 10
        assert measurement.duration_ms() == 1000
        assert filtered.get_warmup_metrics().successful_ops.load() == 3

    def test_failures_during_warmup_go_to_warmup(self, clock) -> None:
        filtered = FilteredMetrics(WarmupConfig(warmup_ops=10), clock=clock)
        filtered.start()
        assert filtered.record_failure() is True
        filtered.stop()
        assert filtered.get_warmup_metrics().failed_ops.load() == 1
        assert filtered.get_measurement_metrics().total_ops.load() == 0
