"""``gateforge build PROMPT``: build a skill through the three gates.

Uses the bundled template generator and keyword name deriver, so the
command runs without a text-generation backend. On failure nothing is
published and the gate history is printed.
"""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console

from gateforge.config import GateforgeSettings
from gateforge.core.controller import BuildFailedError, PipelineController
from gateforge.generation.template import KeywordNameDeriver, TemplateGenerator
from gateforge.models.config import BuildConfig
from gateforge.monitor.renderer import ReportRenderer

console = Console()


def build_cmd(
    prompt: str = typer.Argument(..., help="Free-text description of the skill."),
    output_dir: Path = typer.Option(
        None,
        "--output",
        "-o",
        help="Directory the skill is published into (default: GATEFORGE_OUTPUT_DIR).",
    ),
    retries: int = typer.Option(
        None,
        "--retries",
        "-r",
        min=1,
        help="Maximum attempts per gate before the build aborts.",
    ),
    contract_timeout: float = typer.Option(
        None,
        "--contract-timeout",
        min=0.1,
        help="Wall-clock bound in seconds for the contract gate.",
    ),
    integration_timeout: float = typer.Option(
        None,
        "--integration-timeout",
        min=0.1,
        help="Wall-clock bound in seconds for the integration gate.",
    ),
    force: bool = typer.Option(
        False,
        "--force",
        "-f",
        help="Replace an existing skill directory of the same name.",
    ),
    keep_workdir: bool = typer.Option(
        False,
        "--keep-workdir",
        help="Leave the private working directory in place for inspection.",
    ),
) -> None:
    """Build a skill: smoke, contract and integration gates, then publish."""
    config = BuildConfig.from_settings(
        GateforgeSettings(),
        output_dir=output_dir,
        retry_ceiling=retries,
        contract_timeout_seconds=contract_timeout,
        integration_timeout_seconds=integration_timeout,
        overwrite=force or None,
        keep_workdir=keep_workdir or None,
    )
    controller = PipelineController(
        TemplateGenerator(), KeywordNameDeriver(), config
    )
    renderer = ReportRenderer(console=console)

    try:
        report = controller.build(prompt)
    except BuildFailedError as exc:
        renderer.print_report(exc.report)
        raise typer.Exit(code=1)

    renderer.print_report(report)
    # Print the path plainly for scripting
    console.print(str(report.published_path), style="bold", markup=False, soft_wrap=True)
