"""Unit tests for the ReportRenderer: report panels and gate history tables."""

from __future__ import annotations

from pathlib import Path

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from gateforge.models.gates import DEFAULT_GATE_DEFINITIONS, Gate
from gateforge.models.pipeline import BuildReport, BuildStep, Phase
from gateforge.models.results import AssertionFailure, GateResult
from gateforge.monitor.renderer import ReportRenderer


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _render(renderable) -> str:
    console = Console(record=True, width=160, force_terminal=False)
    console.print(renderable)
    return console.export_text()


def _failed_contract(attempt: int) -> GateResult:
    return GateResult(
        gate=Gate.CONTRACT,
        pass_count=1,
        fail_count=1,
        total_count=2,
        exit_code=1,
        attempt=attempt,
        failures=[AssertionFailure(description="invalid input fails", reason="expected exit 1, got 0")],
    )


class TestHistoryTable:
    def test_one_row_per_result(self):
        history = [
            GateResult(gate=Gate.SMOKE, pass_count=1, total_count=1, exit_code=0),
            GateResult(gate=Gate.CONTRACT, total_count=0, exit_code=None, timed_out=True),
        ]
        table = ReportRenderer().history_table(history)
        assert isinstance(table, Table)
        assert table.row_count == 2
        text = _render(table)
        assert "PASSED" in text
        assert "TIMED OUT" in text

    def test_gates_table(self):
        text = _render(ReportRenderer().gates_table(DEFAULT_GATE_DEFINITIONS))
        assert "Smoke" in text
        assert "Integration" in text


class TestReportPanel:
    def test_success_panel(self):
        report = BuildReport(
            build_id="gf-test",
            skill_name="echo-skill",
            status=Phase.DONE,
            published_path=Path("skills/echo-skill"),
            steps_completed=list(BuildStep),
            history=[GateResult(gate=Gate.SMOKE, pass_count=1, total_count=1, exit_code=0)],
        )
        panel = ReportRenderer().render_report(report)
        assert isinstance(panel, Panel)
        text = _render(panel)
        assert "Build succeeded" in text
        assert "12/12" in text
        assert "skills/echo-skill" in text

    def test_failure_panel_lists_last_failures(self):
        report = BuildReport(
            build_id="gf-test",
            skill_name="echo-skill",
            status=Phase.ABORTED,
            history=[_failed_contract(1), _failed_contract(2), _failed_contract(3)],
            failed_gate=Gate.CONTRACT,
            error_kind="GateAbortedError",
            error_message="Gate contract aborted after 3 failed attempt(s) [ceiling]",
        )
        text = _render(ReportRenderer().render_report(report))
        assert "Build failed" in text
        assert "Aborted at: contract" in text
        assert "[ceiling]" in text
        assert "FAIL: invalid input fails -- expected exit 1, got 0" in text

    def test_print_result(self):
        console = Console(record=True, width=160)
        result = GateResult(gate=Gate.SMOKE, pass_count=1, total_count=1, exit_code=0)
        ReportRenderer(console=console).print_result(result)
        assert "smoke #1: 1/1 passed, exit 0, PASSED" in console.export_text()
