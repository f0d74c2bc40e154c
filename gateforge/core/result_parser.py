"""Parse test-harness output into a ``GateResult``.

The harness prints one line per assertion::

      PASS: <description>
      FAIL: <description> -- <reason>

Only lines starting with exactly those prefixes (two spaces, upper-case
keyword, colon, space) are counted. Everything else is ignored, and the
harness's own bookkeeping is trusted: no assertion is re-evaluated here.

``test.sh`` is cumulative, so a later gate's run repeats the earlier
sections. Each section opens with a ``== Gate N: name ==`` banner; when
banners are present, only the lines after the current gate's banner count
towards ``GateResult.section_count``.
"""

from __future__ import annotations

from gateforge.core.harness import banner
from gateforge.models.gates import Gate
from gateforge.models.results import (
    AssertionFailure,
    ExecutionResult,
    GateResult,
    TimedOut,
)

PASS_PREFIX = "  PASS: "
FAIL_PREFIX = "  FAIL: "
REASON_SEPARATOR = " -- "
BANNER_PREFIX = "== Gate "


def parse(
    raw_output: str,
    *,
    gate: Gate,
    exit_code: int | None,
    stderr: str = "",
    timed_out: bool = False,
    attempt: int = 1,
    duration_ms: float = 0.0,
) -> GateResult:
    """Count PASS/FAIL lines in *raw_output*.

    Zero matching lines gives ``total_count == 0``, which ``GateResult``
    never treats as passed. Neither does a run whose output shows gate
    banners but nothing under *gate*'s own banner.
    """
    pass_count = 0
    failures: list[AssertionFailure] = []
    own_banner = banner(gate)
    saw_banner = False
    in_section = False
    section_count = 0

    for line in raw_output.splitlines():
        if line.startswith(BANNER_PREFIX):
            saw_banner = True
            in_section = line.strip() == own_banner
            continue
        is_assertion = line.startswith((PASS_PREFIX, FAIL_PREFIX))
        if is_assertion and in_section:
            section_count += 1
        if line.startswith(PASS_PREFIX):
            pass_count += 1
        elif line.startswith(FAIL_PREFIX):
            body = line[len(FAIL_PREFIX):]
            description, _, reason = body.partition(REASON_SEPARATOR)
            failures.append(
                AssertionFailure(description=description.strip(), reason=reason.strip())
            )

    return GateResult(
        gate=gate,
        pass_count=pass_count,
        fail_count=len(failures),
        total_count=pass_count + len(failures),
        raw_output=raw_output,
        exit_code=exit_code,
        stderr=stderr,
        timed_out=timed_out,
        attempt=attempt,
        duration_ms=duration_ms,
        failures=failures,
        section_count=section_count if saw_banner else None,
    )


def parse_execution(
    outcome: ExecutionResult | TimedOut, *, gate: Gate, attempt: int = 1
) -> GateResult:
    """Build a ``GateResult`` from a ``ScriptRunner`` outcome."""
    if isinstance(outcome, TimedOut):
        return parse(
            outcome.stdout,
            gate=gate,
            exit_code=None,
            stderr=outcome.stderr,
            timed_out=True,
            attempt=attempt,
            duration_ms=outcome.duration_ms,
        )
    return parse(
        outcome.stdout,
        gate=gate,
        exit_code=outcome.exit_code,
        stderr=outcome.stderr,
        attempt=attempt,
        duration_ms=outcome.duration_ms,
    )


def summarize(result: GateResult) -> str:
    """One-line human summary, e.g. ``contract #2: 1/2 passed, exit 0, FAILED (assertion)``."""
    status = "PASSED" if result.passed else f"FAILED ({result.failure_kind})"
    exit_part = "timeout" if result.timed_out else f"exit {result.exit_code}"
    return (
        f"{result.gate.value} #{result.attempt}: "
        f"{result.pass_count}/{result.total_count} passed, {exit_part}, {status}"
    )
