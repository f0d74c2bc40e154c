"""Deterministic, offline generators.

``KeywordNameDeriver`` slugs a prompt into a skill name. ``TemplateGenerator``
always produces the same skill family (a line-oriented letter-case
transformer) whatever the prompt says; it exists so the pipeline can run
end-to-end without a text-generation backend, and as the reference for
what each generation target is expected to return.
"""

from __future__ import annotations

import logging
import re

from gateforge.generation.protocols import ContentTarget, GenerationRequest, SkillIdentity
from gateforge.models.artifacts import SKILL_NAME_MAX, SKILL_NAME_MIN
from gateforge.models.gates import Gate

logger = logging.getLogger(__name__)

_STOPWORDS = frozenset(
    "a an and the of for to that which with from into on in by it its is are be "
    "make create build write skill tool script please can you should".split()
)


class KeywordNameDeriver:
    """Kebab-case name from the first meaningful words of the prompt."""

    def __init__(self, max_words: int = 4) -> None:
        self.max_words = max_words

    def derive(self, prompt: str) -> SkillIdentity:
        words = re.findall(r"[a-z0-9]+", prompt.lower())
        keywords = [w for w in words if w not in _STOPWORDS] or words
        name = "-".join(keywords[: self.max_words])[:SKILL_NAME_MAX].strip("-")
        if len(name) < SKILL_NAME_MIN:
            name = f"{name}-skill".strip("-") if name else "new-skill"
        description = " ".join(prompt.split()) or name
        first_sentence = re.split(r"(?<=[.!?])\s", description, maxsplit=1)[0]
        return SkillIdentity(name=name, description=first_sentence)


_SMOKE_IMPLEMENTATION = """\
#!/usr/bin/env bash
# {name}: {description}
set -euo pipefail

tr '[:lower:]' '[:upper:]'
"""

_FULL_IMPLEMENTATION = """\
#!/usr/bin/env bash
# {name}: {description}
set -euo pipefail

usage() {{
  cat <<'USAGE'
Usage: run.sh [--mode upper|lower|title] < input
Transforms the letter case of every line read from stdin.
USAGE
}}

mode="upper"
while [[ $# -gt 0 ]]; do
  case "$1" in
    -h|--help)
      usage
      exit 0
      ;;
    -m|--mode)
      if [[ $# -lt 2 ]]; then
        echo "error: --mode needs a value" >&2
        usage >&2
        exit 2
      fi
      mode="$2"
      shift 2
      ;;
    *)
      echo "error: unknown argument: $1" >&2
      usage >&2
      exit 2
      ;;
  esac
done

case "$mode" in
  upper|lower|title) ;;
  *)
    echo "error: unknown mode: $mode" >&2
    exit 2
    ;;
esac

input="$(cat)"
if [[ -z "$input" ]]; then
  echo "error: no input on stdin" >&2
  exit 1
fi

case "$mode" in
  upper) printf '%s\\n' "$input" | tr '[:lower:]' '[:upper:]' ;;
  lower) printf '%s\\n' "$input" | tr '[:upper:]' '[:lower:]' ;;
  title)
    printf '%s\\n' "$input" | awk '{{
      for (i = 1; i <= NF; i++) $i = toupper(substr($i, 1, 1)) tolower(substr($i, 2))
      print
    }}'
    ;;
esac
"""

_TESTS: dict[Gate, str] = {
    Gate.SMOKE: """\
out="$(printf 'hello world\\n' | "$RUN")"
assert_eq "smoke test" "HELLO WORLD" "$out"
""",
    Gate.CONTRACT: """\
printf '' | "$RUN" >/dev/null 2>&1; code=$?
assert_exit_code "empty input fails" 1 "$code"

err="$(printf '' | "$RUN" 2>&1 >/dev/null)"
assert_contains "empty input explains itself on stderr" "$err" "error:"

"$RUN" --bogus </dev/null >/dev/null 2>&1; code=$?
assert_exit_code "unknown flag is a usage error" 2 "$code"

"$RUN" --mode sideways </dev/null >/dev/null 2>&1; code=$?
assert_exit_code "unknown mode is a usage error" 2 "$code"

"$RUN" --help </dev/null >/dev/null 2>&1; code=$?
assert_exit_code "help exits 0" 0 "$code"

out="$(printf 'Hello\\n' | "$RUN" --mode lower)"
assert_eq "lower mode" "hello" "$out"
""",
    Gate.INTEGRATION: """\
out="$(printf 'a\\nb\\nc\\n' | "$RUN")"
assert_eq "multi-line input keeps every line" "$(printf 'A\\nB\\nC')" "$out"

out="$(printf '  spaced  out  \\n' | "$RUN")"
assert_eq "inner and outer whitespace preserved" "  SPACED  OUT  " "$out"

out="$(printf 'mIxEd CaSe\\n' | "$RUN" --mode title)"
assert_eq "title mode" "Mixed Case" "$out"

out="$(printf 'no trailing newline' | "$RUN")"
assert_eq "input without trailing newline" "NO TRAILING NEWLINE" "$out"

count="$(seq 1 5000 | sed 's/^/line /' | "$RUN" | grep -c '^LINE ')"
assert_eq "large input survives" "5000" "$count"
""",
}

_EXAMPLES = """\
# Examples for {name}

## Upper-case (default)

```bash
$ printf 'hello world\\n' | scripts/run.sh
HELLO WORLD
```

## Lower-case and title-case

```bash
$ printf 'Hello\\n' | scripts/run.sh --mode lower
hello
$ printf 'mIxEd CaSe\\n' | scripts/run.sh --mode title
Mixed Case
```

## Errors

```bash
$ printf '' | scripts/run.sh
error: no input on stdin        # exit 1
$ scripts/run.sh --bogus
error: unknown argument: --bogus   # exit 2
```
"""

_DOCUMENTATION = """\
# {name}

{description}

## Usage

```bash
scripts/run.sh [--mode upper|lower|title] < input
```

Reads text on stdin and writes it back with every line's letter case
transformed. The default mode is `upper`.

## Exit codes

| Code | Meaning |
|------|---------|
| 0 | success |
| 1 | handled input error (for example, empty input) |
| 2 | usage error (unknown flag or mode) |

Error messages go to stderr.

## Testing

```bash
scripts/test.sh
```

The harness runs the smoke, contract and integration sections in order and
prints one `PASS:` or `FAIL:` line per assertion.

See `references/examples.md` for more examples.
"""


class TemplateGenerator:
    """Content generator backed by fixed templates.

    Smoke gets a minimal implementation; contract and integration get the
    hardened one, as do revisions.
    """

    def generate(self, request: GenerationRequest) -> str:
        fields = {"name": request.skill_name, "description": request.description}
        target = request.target

        if target == ContentTarget.IMPLEMENTATION:
            if request.gate == Gate.SMOKE and not request.is_revision:
                return _SMOKE_IMPLEMENTATION.format(**fields)
            if request.is_revision:
                logger.info("revising implementation of %s", request.skill_name)
            return _FULL_IMPLEMENTATION.format(**fields)
        if target == ContentTarget.TESTS:
            if request.gate is None:
                raise ValueError("a TESTS request must name its gate")
            return _TESTS[request.gate]
        if target == ContentTarget.EXAMPLES:
            return _EXAMPLES.format(**fields)
        if target == ContentTarget.DOCUMENTATION:
            return _DOCUMENTATION.format(**fields)
        raise ValueError(f"unsupported generation target: {target}")
