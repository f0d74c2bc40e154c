"""Tests for result_parser: counting PASS/FAIL lines into a GateResult."""

from __future__ import annotations

from gateforge.core import result_parser
from gateforge.models.gates import Gate
from gateforge.models.results import ExecutionResult, TimedOut


class TestParse:
    def test_all_pass(self):
        raw = "== Gate 1: smoke ==\n  PASS: basic\n\nResults: 1/1 passed\n"
        result = result_parser.parse(raw, gate=Gate.SMOKE, exit_code=0)
        assert (result.pass_count, result.fail_count, result.total_count) == (1, 0, 1)
        assert result.passed is True
        assert result.raw_output == raw

    def test_mixed_lines_with_reasons(self):
        raw = (
            "  PASS: no args fails\n"
            "  FAIL: invalid input fails -- expected exit 1, got 0\n"
        )
        result = result_parser.parse(raw, gate=Gate.CONTRACT, exit_code=1)
        assert result.pass_count == 1
        assert result.fail_count == 1
        assert result.total_count == 2
        assert result.passed is False
        assert result.failures[0].description == "invalid input fails"
        assert result.failures[0].reason == "expected exit 1, got 0"

    def test_fail_line_overrides_zero_exit(self):
        # A harness that forgets to exit non-zero still fails the gate.
        raw = "  PASS: a\n  FAIL: b -- wrong\n"
        result = result_parser.parse(raw, gate=Gate.CONTRACT, exit_code=0)
        assert result.passed is False
        assert result.failure_kind == "assertion"

    def test_no_assertions_is_vacuous(self):
        result = result_parser.parse("nothing to see\n", gate=Gate.SMOKE, exit_code=0)
        assert result.total_count == 0
        assert result.passed is False
        assert result.failure_kind == "vacuous"

    def test_prefix_must_be_exact(self):
        raw = (
            "PASS: no indent\n"
            "   PASS: three spaces\n"
            "  pass: lower case\n"
            "  PASS:missing space\n"
            "\tFAIL: tab\n"
            "  PASS: real one\n"
        )
        result = result_parser.parse(raw, gate=Gate.SMOKE, exit_code=0)
        assert result.total_count == 1

    def test_fail_without_reason(self):
        result = result_parser.parse("  FAIL: something\n", gate=Gate.SMOKE, exit_code=1)
        assert result.failures[0].description == "something"
        assert result.failures[0].reason == ""

    def test_nonzero_exit_with_only_passes(self):
        result = result_parser.parse("  PASS: a\n", gate=Gate.SMOKE, exit_code=3)
        assert result.passed is False
        assert result.failure_kind == "exit_code"

    def test_crlf_output(self):
        result = result_parser.parse("  PASS: a\r\n  PASS: b\r\n", gate=Gate.SMOKE, exit_code=0)
        assert result.pass_count == 2


class TestGateSections:
    def test_earlier_sections_do_not_count_for_later_gate(self):
        raw = "== Gate 1: smoke ==\n  PASS: smoke test\n== Gate 2: contract ==\n\nResults: 1 passed\n"
        result = result_parser.parse(raw, gate=Gate.CONTRACT, exit_code=0)
        assert result.total_count == 1
        assert result.section_count == 0
        assert result.passed is False
        assert result.failure_kind == "vacuous"

    def test_missing_own_banner_is_vacuous(self):
        raw = "== Gate 1: smoke ==\n  PASS: smoke test\n"
        result = result_parser.parse(raw, gate=Gate.CONTRACT, exit_code=0)
        assert result.section_count == 0
        assert result.passed is False

    def test_own_section_counted(self):
        raw = (
            "== Gate 1: smoke ==\n  PASS: smoke test\n"
            "== Gate 2: contract ==\n  PASS: a\n  PASS: b\n"
        )
        result = result_parser.parse(raw, gate=Gate.CONTRACT, exit_code=0)
        assert (result.total_count, result.section_count) == (3, 2)
        assert result.passed is True

    def test_earlier_section_failure_still_fails(self):
        raw = (
            "== Gate 1: smoke ==\n  FAIL: smoke test -- regressed\n"
            "== Gate 2: contract ==\n  PASS: a\n"
        )
        result = result_parser.parse(raw, gate=Gate.CONTRACT, exit_code=1)
        assert result.passed is False
        assert result.failure_kind == "assertion"

    def test_no_banners_counts_everything(self):
        result = result_parser.parse("  PASS: a\n", gate=Gate.INTEGRATION, exit_code=0)
        assert result.section_count is None
        assert result.passed is True


class TestParseExecution:
    def test_from_execution_result(self):
        outcome = ExecutionResult(exit_code=0, stdout="  PASS: x\n", stderr="warn", duration_ms=12.5)
        result = result_parser.parse_execution(outcome, gate=Gate.INTEGRATION, attempt=2)
        assert result.gate == Gate.INTEGRATION
        assert result.attempt == 2
        assert result.stderr == "warn"
        assert result.duration_ms == 12.5
        assert result.passed is True

    def test_timeout_never_passes(self):
        outcome = TimedOut(timeout_seconds=5.0, stdout="  PASS: x\n")
        result = result_parser.parse_execution(outcome, gate=Gate.SMOKE)
        assert result.timed_out is True
        assert result.exit_code is None
        assert result.pass_count == 1
        assert result.passed is False
        assert result.failure_kind == "timeout"


class TestSummarize:
    def test_passed(self):
        result = result_parser.parse("  PASS: a\n", gate=Gate.SMOKE, exit_code=0)
        assert result_parser.summarize(result) == "smoke #1: 1/1 passed, exit 0, PASSED"

    def test_failed(self):
        result = result_parser.parse(
            "  PASS: a\n  FAIL: b -- c\n", gate=Gate.CONTRACT, exit_code=0, attempt=2
        )
        assert result_parser.summarize(result) == (
            "contract #2: 1/2 passed, exit 0, FAILED (assertion)"
        )

    def test_timeout(self):
        result = result_parser.parse("", gate=Gate.SMOKE, exit_code=None, timed_out=True)
        assert "timeout" in result_parser.summarize(result)
