"""Commands for comparing saved benchmark results."""

import json
import logging
from dataclasses import asdict
from typing import Annotated, Dict, List

import typer
from rich.console import Console
from rich.table import Table

from ycsbench.analysis.compare import ComparisonResult, ComparisonTool
from ycsbench.core.enums import Verdict
from ycsbench.core.exceptions import ResultLoadError
from ycsbench.results.exporter import ResultExporter

logger = logging.getLogger(__name__)
console = Console()

results_app = typer.Typer(name="results", help="Compare benchmark results and detect regressions.")

_VERDICT_STYLES: Dict[Verdict, str] = {
    Verdict.IMPROVEMENT: "green",
    Verdict.REGRESSION: "red",
    Verdict.NO_SIGNIFICANT_CHANGE: "yellow",
}


def _change_cell(value: float, higher_is_better: bool) -> str:
    good = value > 0 if higher_is_better else value < 0
    style = "green" if good else "red" if value != 0 else "white"
    return f"[{style}]{value:+.2f}%[/{style}]"


def _render_comparison(comparison: ComparisonResult) -> Table:
    changes = comparison.changes
    table = Table(
        show_header=True,
        header_style="bold cyan",
        title=f"{comparison.baseline.name} -> {comparison.candidate.name} ({comparison.candidate.workload})",
    )
    table.add_column("Metric")
    table.add_column("Change", justify="right")
    table.add_row("Throughput", _change_cell(changes.throughput_change_percent, higher_is_better=True))
    table.add_row("Avg latency", _change_cell(changes.avg_latency_change_percent, higher_is_better=False))
    table.add_row("P50 latency", _change_cell(changes.p50_latency_change_percent, higher_is_better=False))
    table.add_row("P95 latency", _change_cell(changes.p95_latency_change_percent, higher_is_better=False))
    table.add_row("P99 latency", _change_cell(changes.p99_latency_change_percent, higher_is_better=False))
    table.add_row("Error rate", f"{changes.error_rate_change:+.2f} pts")
    return table


@results_app.command("compare")
def compare_command(
    baseline: Annotated[str, typer.Argument(help="Baseline result JSON file.")],
    candidate: Annotated[str, typer.Argument(help="Candidate result JSON file.")],
    as_json: Annotated[bool, typer.Option("--json", help="Emit machine-readable JSON.")] = False,
) -> None:
    """Compare two saved results."""
    try:
        comparison = ComparisonTool().compare_files(baseline, candidate)
    except ResultLoadError as exc:
        console.print(f"[bold red]{exc.message}[/bold red]")
        raise typer.Exit(code=1) from exc

    if as_json:
        payload = asdict(comparison)
        payload["verdict"] = comparison.verdict.value
        console.print_json(json.dumps(payload))
        return

    console.print(_render_comparison(comparison))
    style = _VERDICT_STYLES[comparison.verdict]
    console.print(f"Verdict: [bold {style}]{comparison.verdict.value}[/bold {style}]")


@results_app.command("regressions")
def regressions_command(
    baseline: Annotated[List[str], typer.Option("--baseline", "-b", help="Baseline result file (repeatable).")],
    candidate: Annotated[List[str], typer.Option("--candidate", "-k", help="Candidate result file (repeatable).")],
    threshold: Annotated[float, typer.Option("--threshold", "-t", min=0.0, help="Regression threshold in percent.")] = 10.0,
) -> None:
    """Match results by workload name and list the regressed ones."""
    try:
        baselines = [ResultExporter.load_json(path) for path in baseline]
        candidates = [ResultExporter.load_json(path) for path in candidate]
    except ResultLoadError as exc:
        console.print(f"[bold red]{exc.message}[/bold red]")
        raise typer.Exit(code=1) from exc

    regressions = ComparisonTool().find_regressions(baselines, candidates, threshold)
    if not regressions:
        console.print(f"[green]No regressions above {threshold:.1f}%[/green]")
        return

    for comparison in regressions:
        console.print(_render_comparison(comparison))
    console.print(f"[bold red]{len(regressions)} regression(s) above {threshold:.1f}%[/bold red]")
    raise typer.Exit(code=2)
