"""Tests for building, saving and loading benchmark results."""

import json

import pytest

from ycsbench.config.settings import BenchmarkConfig
from ycsbench.core.enums import OperationType
from ycsbench.core.exceptions import ResultLoadError
from ycsbench.monitoring.metrics.collector import Metrics, MetricsTracker
from ycsbench.results.exporter import ResultExporter


@pytest.fixture
def finished_metrics(clock) -> Metrics:
    metrics = Metrics(clock=clock)
    metrics.start()
    for latency in (10, 20, 30, 40, 50):
        metrics.record_success(latency)
    metrics.record_failure()
    clock.advance(1000)
    metrics.stop()
    return metrics


def test_from_metrics_summary(clock, finished_metrics) -> None:
    config = BenchmarkConfig(name="smoke", host="db.local", port=1234)
    result = ResultExporter(clock=clock).from_metrics(finished_metrics, "smoke", "workload_a", config)

    assert result.timestamp == int(clock())
    assert result.duration_ms == 1000
    assert result.config.host == "db.local"
    assert result.config.distribution == "zipfian"

    summary = result.summary
    assert summary.total_ops == 6
    assert summary.failed_ops == 1
    assert summary.throughput_ops_sec == pytest.approx(5.0)
    assert summary.avg_latency_us == pytest.approx(30.0)
    assert summary.p50_latency_us == 30
    assert summary.p999_latency_us == 50
    assert summary.error_rate_percent == pytest.approx(100.0 / 6)
    assert result.histogram.total_count == 5
    assert result.per_operation is None


def test_from_tracker_adds_per_operation(clock, finished_metrics) -> None:
    tracker = MetricsTracker(clock=clock)
    tracker.record(OperationType.READ, 10, True)
    tracker.record(OperationType.UPDATE, 30, False)
    result = ResultExporter(clock=clock).from_tracker(tracker, finished_metrics, "smoke", "workload_a")

    assert set(result.per_operation) == {OperationType.READ, OperationType.UPDATE}
    assert result.per_operation[OperationType.READ].p99_latency_us == 10
    assert result.per_operation[OperationType.UPDATE].failed_ops == 1


def test_json_round_trip_preserves_result(tmp_path, clock, finished_metrics) -> None:
    tracker = MetricsTracker(clock=clock)
    tracker.record(OperationType.READ_MODIFY_WRITE, 15, True)
    result = ResultExporter(clock=clock).from_tracker(tracker, finished_metrics, "smoke", "workload_f")

    path = ResultExporter.save_json(result, tmp_path / "nested" / "run.json")
    raw = json.loads(path.read_text())
    assert "read_modify_write" in raw["per_operation"]
    assert raw["histogram"]["buckets"][-1]["upper_bound_us"] is None

    assert ResultExporter.load_json(path) == result


def test_load_missing_file(tmp_path) -> None:
    with pytest.raises(ResultLoadError) as excinfo:
        ResultExporter.load_json(tmp_path / "missing.json")
    assert excinfo.value.error_code == "RESULT_LOAD_ERROR"


def test_load_invalid_file(tmp_path) -> None:
    path = tmp_path / "bad.json"
    path.write_text('{"name": "x"}')
    with pytest.raises(ResultLoadError):
        ResultExporter.load_json(path)
