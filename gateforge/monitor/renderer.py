"""Rich terminal renderer for build reports and gate history.

Color scheme
------------
- green     : passed
- red       : failed (assertion, exit code)
- yellow    : timed out
- bold red  : vacuous (zero assertions) and aborted builds
"""

from __future__ import annotations

from rich.console import Console, Group
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from gateforge.core.result_parser import summarize
from gateforge.models.gates import GateDefinition
from gateforge.models.pipeline import BuildReport
from gateforge.models.results import GateResult

_OUTCOME_MARKUP: dict[str, str] = {
    "none": "[green]PASSED[/green]",
    "assertion": "[red]FAILED[/red]",
    "exit_code": "[red]EXIT[/red]",
    "timeout": "[yellow]TIMED OUT[/yellow]",
    "vacuous": "[bold red]NO TESTS[/bold red]",
}


class ReportRenderer:
    """Renders ``BuildReport`` and ``GateResult`` history as Rich output.

    Parameters
    ----------
    console:
        Rich Console instance.  A new one is created if not provided.
    """

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()

    # ------------------------------------------------------------------
    # Tables
    # ------------------------------------------------------------------

    def history_table(self, history: list[GateResult]) -> Table:
        table = Table(show_header=True, header_style="bold cyan", expand=True)
        table.add_column("#", style="dim", width=4, justify="right")
        table.add_column("Gate", min_width=12)
        table.add_column("Attempt", justify="right")
        table.add_column("Pass", justify="right")
        table.add_column("Fail", justify="right")
        table.add_column("Exit", justify="right")
        table.add_column("Outcome", justify="center")
        table.add_column("Time", justify="right")

        for i, result in enumerate(history, start=1):
            exit_display = "-" if result.exit_code is None else str(result.exit_code)
            table.add_row(
                str(i),
                result.gate.value,
                str(result.attempt),
                str(result.pass_count),
                str(result.fail_count),
                exit_display,
                _OUTCOME_MARKUP.get(result.failure_kind, result.failure_kind),
                f"{result.duration_ms:.0f}ms",
            )
        return table

    def gates_table(self, definitions: list[GateDefinition]) -> Table:
        table = Table(show_header=True, header_style="bold cyan", expand=True)
        table.add_column("#", style="dim", width=4, justify="right")
        table.add_column("Gate", min_width=12)
        table.add_column("Requires")
        table.add_column("Requirements")
        for definition in definitions:
            table.add_row(
                str(definition.gate.ordinal),
                definition.display_name,
                ", ".join(g.value for g in definition.prerequisites) or "-",
                definition.requirements,
            )
        return table

    # ------------------------------------------------------------------
    # Report panel
    # ------------------------------------------------------------------

    def render_report(self, report: BuildReport) -> Panel:
        parts: list[str] = [
            f"[bold]Build:[/bold] {report.build_id}",
            f"[bold]Skill:[/bold] {report.skill_name or '-'}",
            f"[bold]Steps:[/bold] {len(report.steps_completed)}/12",
        ]
        if report.succeeded:
            parts.append(f"[bold]Published:[/bold] {escape(str(report.published_path))}")
            if report.manifest is not None:
                parts.append(f"[bold]Manifest:[/bold] {report.manifest.manifest_hash[:16]}")
            border, title = "green", "[bold green]Build succeeded[/bold green]"
        else:
            if report.failed_gate is not None:
                parts.append(f"[bold]Aborted at:[/bold] {report.failed_gate.value}")
            parts.append(f"[bold]Error:[/bold] {report.error_kind}: {escape(report.error_message)}")
            border, title = "red", "[bold red]Build failed[/bold red]"

        body: list = [Text.from_markup("  |  ".join(parts[:3]))]
        body.extend(Text.from_markup(p) for p in parts[3:])
        if report.history:
            body += [Text(""), self.history_table(report.history)]
            last = report.history[-1]
            if not last.passed and last.failures:
                body.append(Text(""))
                body.extend(
                    Text(f"  FAIL: {f.description} -- {f.reason}", style="red")
                    for f in last.failures
                )
        return Panel(Group(*body), title=title, border_style=border, padding=(1, 2))

    def print_report(self, report: BuildReport) -> None:
        self.console.print(self.render_report(report))

    def print_result(self, result: GateResult) -> None:
        style = "green" if result.passed else "red"
        self.console.print(Text(summarize(result), style=style))
