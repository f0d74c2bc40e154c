"""The builder-owned preamble of ``scripts/test.sh``.

The preamble defines the shared assertion functions (``pass``, ``fail``,
``assert_eq``, ``assert_contains``, ``assert_exit_code``) and an EXIT trap
that prints a summary and sets the exit status. Gate sections produced by
the content generator are appended after it, in gate order.

A section that aborts the shell (a syntax error, an unbound variable)
leaves a non-zero status, which the trap reports as one more FAIL line.

Counters live inside the harness process, so every gate run starts from
zero; the Python side only ever sees the printed PASS/FAIL lines.
"""

from __future__ import annotations

from gateforge.models.artifacts import BASH_SHEBANG
from gateforge.models.gates import Gate

HARNESS_FUNCTIONS: tuple[str, ...] = (
    "pass",
    "fail",
    "assert_eq",
    "assert_contains",
    "assert_exit_code",
)

_PREAMBLE = r"""# Test harness for {name}.
# Gate sections are appended below in order: smoke, contract, integration.
set -u

SCRIPT_DIR="$(cd "$(dirname "${{BASH_SOURCE[0]}}")" && pwd)"
RUN="$SCRIPT_DIR/run.sh"

PASS=0
FAIL=0
TOTAL=0

pass() {{
  PASS=$((PASS + 1))
  TOTAL=$((TOTAL + 1))
  printf '  PASS: %s\n' "$1"
}}

fail() {{
  FAIL=$((FAIL + 1))
  TOTAL=$((TOTAL + 1))
  printf '  FAIL: %s -- %s\n' "$1" "$2"
}}

# assert_eq <description> <expected> <actual>
assert_eq() {{
  if [[ "$2" == "$3" ]]; then
    pass "$1"
  else
    fail "$1" "expected '$2', got '$3'"
  fi
}}

# assert_contains <description> <haystack> <needle>
assert_contains() {{
  if [[ "$2" == *"$3"* ]]; then
    pass "$1"
  else
    fail "$1" "output does not contain '$3'"
  fi
}}

# assert_exit_code <description> <expected> <actual>
assert_exit_code() {{
  if [[ "$2" -eq "$3" ]]; then
    pass "$1"
  else
    fail "$1" "expected exit $2, got $3"
  fi
}}

summary() {{
  local rc=$1
  if [[ $rc -ne 0 ]]; then
    fail "test.sh completed" "shell exited with status $rc"
  fi
  printf '\nResults: %d passed, %d failed, %d total\n' "$PASS" "$FAIL" "$TOTAL"
  if [[ $rc -ne 0 || $FAIL -gt 0 || $TOTAL -eq 0 ]]; then
    exit 1
  fi
  exit 0
}}
trap 'summary $?' EXIT
"""


def preamble(skill_name: str) -> str:
    """Shebang plus the shared harness functions for *skill_name*."""
    return f"{BASH_SHEBANG}\n{_PREAMBLE.format(name=skill_name)}"


def banner(gate: Gate) -> str:
    """The line a gate's section echoes before its first assertion."""
    return f"== Gate {gate.ordinal}: {gate.value} =="


def section_header(gate: Gate) -> str:
    """Comment and banner line that open a gate's section.

    The result parser uses the banner to attribute assertions to a gate.
    """
    return f"\n# --- Gate {gate.ordinal}: {gate.value} ---\necho '{banner(gate)}'\n"


def section(gate: Gate, body: str) -> str:
    return section_header(gate) + body.strip("\n") + "\n"


def missing_functions(script: str) -> list[str]:
    """Harness functions not defined in *script*."""
    return [name for name in HARNESS_FUNCTIONS if f"{name}() {{" not in script]
