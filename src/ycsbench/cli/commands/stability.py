"""Endurance run commands."""

import json
import logging
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.table import Table

from ycsbench.cli import current_config
from ycsbench.config.settings import StabilityConfig
from ycsbench.core.exceptions import BenchmarkError
from ycsbench.monitoring.stability import StabilityPresets
from ycsbench.runner import InMemoryExecutor, run_stability

logger = logging.getLogger(__name__)
console = Console()

stability_app = typer.Typer(name="stability", help="Long-running leak and degradation checks.")


def _preset_row(table: Table, name: str, config: StabilityConfig) -> None:
    table.add_row(
        name,
        str(config.duration_minutes),
        f"{config.memory_check_interval_seconds:g}",
        f"{config.throughput_sample_interval_seconds:g}",
    )


@stability_app.command("presets")
def presets_command(
    custom_minutes: Annotated[Optional[int], typer.Option("--custom", help="Also show a custom preset of this length.")] = None,
) -> None:
    """List the built-in stability presets."""
    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Preset")
    table.add_column("Minutes", justify="right")
    table.add_column("Memory every (s)", justify="right")
    table.add_column("Throughput every (s)", justify="right")
    _preset_row(table, "quick", StabilityPresets.quick_check())
    _preset_row(table, "1h", StabilityPresets.one_hour_endurance())
    _preset_row(table, "24h", StabilityPresets.twenty_four_hour())
    if custom_minutes is not None:
        _preset_row(table, "custom", StabilityPresets.custom(custom_minutes))
    console.print(table)


@stability_app.command("simulate")
def simulate_command(
    preset: Annotated[Optional[str], typer.Option("--preset", "-p", help="quick, 1h or 24h.")] = None,
    seconds: Annotated[Optional[float], typer.Option("--seconds", help="Override the run length in seconds.")] = None,
) -> None:
    """Run an endurance check against an in-memory store."""
    config = current_config()
    try:
        stability = StabilityPresets.by_name(preset) if preset else config.stability
    except ValueError as exc:
        console.print(f"[bold red]{exc}[/bold red]")
        raise typer.Exit(code=1) from exc
    if seconds is not None:
        stability = stability.model_copy(update={"duration_seconds": seconds})
    config = config.model_copy(update={"stability": stability})

    try:
        executor = InMemoryExecutor(config.workload.record_count, scan_length=config.workload.scan_length)
        result = run_stability(executor, config)
    except BenchmarkError as exc:
        logger.error("Stability run failed: %s", exc)
        raise typer.Exit(code=1) from exc

    summary = result.to_dict()
    summary.pop("memory_snapshots")
    console.print_json(json.dumps(summary))
    if not result.passed:
        raise typer.Exit(code=2)
