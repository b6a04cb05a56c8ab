"""Workload inspection and dry-run commands."""

import logging
import random
from collections import Counter
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.table import Table

from ycsbench.cli import current_config
from ycsbench.core.enums import DistributionType, OperationType, ValueType
from ycsbench.core.exceptions import BenchmarkError
from ycsbench.results.exporter import ResultExporter
from ycsbench.runner import InMemoryExecutor, WorkloadRunner
from ycsbench.workload.distributions import create_distribution
from ycsbench.workload.operation_chooser import OperationChooser, OperationMix
from ycsbench.workload.value_generator import ValueConfig, ValueGenerator

logger = logging.getLogger(__name__)
console = Console()

workload_app = typer.Typer(name="workload", help="Inspect generated traffic and run dry benchmarks.")


@workload_app.command("mix")
def mix_command(
    workload: Annotated[str, typer.Argument(help="Workload preset letter (a-f).")],
    operations: Annotated[int, typer.Option("--operations", "-n", min=1, help="Operations to draw.")] = 10000,
    seed: Annotated[Optional[int], typer.Option("--seed", help="Random seed.")] = None,
) -> None:
    """Draw operations from a preset mix and show the observed proportions."""
    try:
        mix = OperationMix.for_workload(workload)
    except ValueError as exc:
        console.print(f"[bold red]{exc}[/bold red]")
        raise typer.Exit(code=1) from exc

    chooser = OperationChooser(mix, rng=random.Random(seed))
    stats = chooser.get_statistics(operations)
    expected = mix.proportions()

    table = Table(show_header=True, header_style="bold cyan", title=f"Workload {workload.upper()}")
    table.add_column("Operation")
    table.add_column("Expected", justify="right")
    table.add_column("Observed", justify="right")
    table.add_column("Count", justify="right")
    for operation in OperationType:
        table.add_row(
            operation.label,
            f"{expected[operation] * 100:.1f}%",
            f"{stats.proportion(operation) * 100:.1f}%",
            str(stats.count(operation)),
        )
    console.print(table)


@workload_app.command("sample")
def sample_command(
    distribution: Annotated[DistributionType, typer.Argument(help="Key distribution.")] = DistributionType.ZIPFIAN,
    records: Annotated[int, typer.Option("--records", "-r", min=2, help="Key space size.")] = 1000,
    samples: Annotated[int, typer.Option("--samples", "-n", min=1, help="Keys to draw.")] = 100000,
    top: Annotated[int, typer.Option("--top", min=1, help="Hottest keys to list.")] = 10,
    theta: Annotated[float, typer.Option("--theta", help="Zipfian skew.")] = 0.99,
    seed: Annotated[Optional[int], typer.Option("--seed", help="Random seed.")] = None,
) -> None:
    """Draw keys from a sampler and list the hottest ones."""
    try:
        max_value = records if distribution is DistributionType.UNIFORM else records - 1
        sampler = create_distribution(distribution, 0, max_value, rng=random.Random(seed), theta=theta)
    except BenchmarkError as exc:
        console.print(f"[bold red]{exc.message}[/bold red]")
        raise typer.Exit(code=1) from exc

    counts = Counter(sampler.next() for _ in range(samples))

    table = Table(show_header=True, header_style="bold cyan", title=f"{distribution.value} over {records} keys")
    table.add_column("Key", justify="right")
    table.add_column("Hits", justify="right")
    table.add_column("Share", justify="right")
    for key, hits in counts.most_common(top):
        table.add_row(str(key), str(hits), f"{hits / samples * 100:.2f}%")
    console.print(table)
    console.print(f"Distinct keys drawn: {len(counts)}")


@workload_app.command("value")
def value_command(
    value_type: Annotated[ValueType, typer.Option("--type", "-t", help="Value shape.")] = ValueType.JSON,
    size: Annotated[int, typer.Option("--size", "-s", min=1, help="Fixed value size in bytes.")] = 100,
    fields: Annotated[int, typer.Option("--fields", min=1, help="Document field count.")] = 10,
    seed: Annotated[Optional[int], typer.Option("--seed", help="Random seed.")] = None,
) -> None:
    """Print one generated record value."""
    config = ValueConfig(value_type=value_type, size=size, field_count=fields)
    generator = ValueGenerator(config, rng=random.Random(seed))
    console.print(generator.generate().decode("utf-8"), soft_wrap=True)


@workload_app.command("simulate")
def simulate_command(
    workload: Annotated[Optional[str], typer.Option("--workload", "-w", help="Preset mix overriding the config.")] = None,
    output: Annotated[Optional[str], typer.Option("--output", "-o", help="Write the result as JSON.")] = None,
) -> None:
    """Run the configured workload against an in-memory store."""
    config = current_config()
    try:
        mix = OperationMix.for_workload(workload) if workload else config.workload.operation_mix()
        if workload:
            config = config.model_copy(update={"workload_name": f"workload_{workload.lower()}"})
        executor = InMemoryExecutor(config.workload.record_count, scan_length=config.workload.scan_length)
        summary = WorkloadRunner(executor, config, mix=mix).run()
    except (BenchmarkError, ValueError) as exc:
        logger.error("Simulation failed: %s", exc)
        raise typer.Exit(code=1) from exc

    result = summary.result
    table = Table(show_header=True, header_style="bold cyan", title=f"{result.name} ({result.workload})")
    table.add_column("Metric")
    table.add_column("Value", justify="right")
    table.add_row("Operations", str(summary.total_operations))
    table.add_row("Warmup ops discarded", str(summary.warmup.warmup_ops))
    table.add_row("Throughput (ops/sec)", f"{result.summary.throughput_ops_sec:.2f}")
    table.add_row("Avg latency (us)", f"{result.summary.avg_latency_us:.2f}")
    table.add_row("P50 / P95 / P99 (us)", f"{result.summary.p50_latency_us} / {result.summary.p95_latency_us} / {result.summary.p99_latency_us}")
    table.add_row("Error rate", f"{result.summary.error_rate_percent:.2f}%")
    console.print(table)

    if output:
        path = ResultExporter.save_json(result, output)
        console.print(f"Result written to [bold]{path}[/bold]")
