"""``gateforge validate PATH``: check an existing skill directory.

Loads the directory into an ArtifactStore (rejecting entries outside the
template) and runs the structure checks used before publishing. With
``--run`` the harness is executed once and its result printed.
"""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape

from gateforge.config import GateforgeSettings
from gateforge.core import result_parser
from gateforge.core.artifact_store import ArtifactStore, ArtifactStoreError
from gateforge.core.script_runner import ScriptLaunchError, ScriptRunner
from gateforge.core.structure import check_structure
from gateforge.models.artifacts import TEST_SCRIPT
from gateforge.models.gates import Gate
from gateforge.monitor.renderer import ReportRenderer

console = Console()


def validate_cmd(
    skill_dir: Path = typer.Argument(..., help="Path to a skill directory."),
    run: bool = typer.Option(
        False,
        "--run",
        help="Also execute scripts/test.sh and report the assertion counts.",
    ),
    timeout: float = typer.Option(
        30.0,
        "--timeout",
        "-t",
        min=0.1,
        help="Wall-clock bound in seconds when --run is given.",
    ),
) -> None:
    """Validate a skill directory against the fixed template."""
    try:
        store = ArtifactStore.load(skill_dir)
    except ArtifactStoreError as exc:
        console.print(f"[bold red]Invalid skill:[/bold red] {escape(str(exc))}", soft_wrap=True)
        raise typer.Exit(code=1)

    violations = check_structure(store.snapshot())
    if violations:
        console.print(
            f"[bold red]{escape(str(skill_dir))}: {len(violations)} problem(s)[/bold red]",
            soft_wrap=True,
        )
        for violation in violations:
            console.print(f"  - {escape(violation)}", soft_wrap=True)
        raise typer.Exit(code=1)
    console.print(f"[green]{escape(str(skill_dir))}: structure OK[/green]", soft_wrap=True)

    if not run:
        return

    runner = ScriptRunner(GateforgeSettings().shell)
    try:
        outcome = runner.execute(skill_dir / TEST_SCRIPT, "", timeout, cwd=skill_dir)
    except ScriptLaunchError as exc:
        console.print(f"[bold red]Cannot run harness:[/bold red] {escape(str(exc))}", soft_wrap=True)
        raise typer.Exit(code=1)

    # The full harness covers all three gates once a skill is published.
    result = result_parser.parse_execution(outcome, gate=Gate.INTEGRATION)
    ReportRenderer(console=console).print_result(result)
    if not result.passed:
        raise typer.Exit(code=1)
