"""Main Typer application: imports and registers all CLI commands.

Entry point: ``gateforge`` (configured via pyproject.toml console_scripts).
"""

from __future__ import annotations

import logging

import typer
from rich.console import Console
from rich.logging import RichHandler

from gateforge.cli.commands.build import build_cmd
from gateforge.cli.commands.validate import validate_cmd
from gateforge.config import GateforgeSettings
from gateforge.models.gates import DEFAULT_GATE_DEFINITIONS
from gateforge.monitor.renderer import ReportRenderer

app = typer.Typer(
    name="gateforge",
    help="Gateforge: phased, gate-validated skill builder.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)

# Register subcommands
app.command(name="build", help="Build a skill through the smoke, contract and integration gates.")(build_cmd)
app.command(name="validate", help="Check a skill directory against the template.")(validate_cmd)


@app.callback()
def main_callback(
    log_level: str = typer.Option(
        None,
        "--log-level",
        help="Logging level (default: GATEFORGE_LOG_LEVEL or INFO).",
    ),
) -> None:
    """Configure logging once for every subcommand."""
    level = (log_level or GateforgeSettings().log_level).upper()
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), rich_tracebacks=True)],
        force=True,
    )


@app.command(name="gates", help="List the gates and what each must cover.")
def gates_cmd() -> None:
    """Show the gate definitions in build order."""
    console = Console()
    console.print(ReportRenderer(console=console).gates_table(DEFAULT_GATE_DEFINITIONS))


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
