"""
ycsbench command line interface.

Usage:
    ycsbench --help
    ycsbench [command] [options]

Examples:
    ycsbench workload mix a --operations 100000
    ycsbench workload simulate --config bench.yaml --output run.json
    ycsbench results compare baseline.json candidate.json
    ycsbench stability presets

Environment Variables:
    YCSBENCH_CONFIG_PATH: Path to configuration file
    YCSBENCH_LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
"""

import logging
import os
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler

from ycsbench import __version__
from ycsbench.cli import state
from ycsbench.cli.commands.results import results_app
from ycsbench.cli.commands.stability import stability_app
from ycsbench.cli.commands.workload import workload_app
from ycsbench.config.settings import load_config
from ycsbench.core.exceptions import ConfigurationError

console = Console()

logging.basicConfig(
    level=os.environ.get("YCSBENCH_LOG_LEVEL", "INFO").upper(),
    format="%(message)s",
    datefmt="[%X]",
    handlers=[RichHandler(rich_tracebacks=True)],
)
logger = logging.getLogger(__name__)

app = typer.Typer(
    name="ycsbench",
    help="YCSB-style workload generation, measurement and run comparison",
    add_completion=False,
    context_settings={"help_option_names": ["-h", "--help"]},
)


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"ycsbench {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable verbose output.")] = False,
    config_path: Annotated[Optional[str], typer.Option("--config", "-c", help="Path to configuration file.")] = None,
    version: Annotated[
        bool,
        typer.Option("--version", callback=_version_callback, is_eager=True, help="Show version and exit."),
    ] = False,
):
    """
    YCSB-style benchmark driver.
    """
    logging.getLogger("ycsbench").setLevel(logging.DEBUG if verbose else logging.INFO)
    if verbose:
        logger.debug("Verbose logging enabled")

    try:
        state["config"] = load_config(config_path)
    except ConfigurationError as exc:
        logger.error("Configuration error: %s", exc)
        raise typer.Exit(code=1) from exc


app.add_typer(workload_app)
app.add_typer(results_app)
app.add_typer(stability_app)


if __name__ == "__main__":
    app()
