"""Run generated scripts as child processes with a hard wall-clock bound.

The child is started in its own session so that on timeout the whole
process group (the script plus anything it spawned) can be killed. A
timeout is reported as a ``TimedOut`` value, not an exception: a hang is a
gate failure the controller can revise, while a script that cannot even be
launched is a builder defect and raises ``ScriptLaunchError``.
"""

from __future__ import annotations

import logging
import os
import signal
import subprocess
import time
from collections.abc import Mapping, Sequence
from pathlib import Path

from gateforge.models.results import ExecutionResult, TimedOut

logger = logging.getLogger(__name__)

# Grace period for collecting output once the process group is dead.
_DRAIN_SECONDS = 1.0


class ScriptLaunchError(RuntimeError):
    """Raised when the script or its interpreter cannot be started."""


def _kill_group(proc: subprocess.Popen) -> None:
    if hasattr(os, "killpg"):
        try:
            os.killpg(proc.pid, signal.SIGKILL)
            return
        except ProcessLookupError:
            return
        except PermissionError:
            pass
    proc.kill()


def _drain(proc: subprocess.Popen) -> tuple[str, str]:
    """Collect what a killed process wrote, without waiting on stray holders.

    A descendant that escaped the group (``setsid``) can keep the pipes open
    after the group is gone. In that case the pipes are closed and the
    partial output is dropped.
    """
    try:
        return proc.communicate(timeout=_DRAIN_SECONDS)
    except subprocess.TimeoutExpired:
        for stream in (proc.stdin, proc.stdout, proc.stderr):
            if stream is not None:
                stream.close()
        proc.wait()
        return "", ""


class ScriptRunner:
    """Executes a script under an interpreter with piped stdin.

    Parameters
    ----------
    shell:
        Interpreter used to run scripts (``bash`` by default). ``None``
        executes the script directly, relying on its shebang and mode bits.
    """

    def __init__(self, shell: str | None = "bash") -> None:
        self.shell = shell

    def command_for(self, script_path: Path, args: Sequence[str] = ()) -> list[str]:
        cmd = [str(script_path), *args]
        return [self.shell, *cmd] if self.shell else cmd

    def execute(
        self,
        script_path: Path,
        stdin_content: str = "",
        timeout: float = 5.0,
        *,
        args: Sequence[str] = (),
        cwd: Path | None = None,
        env: Mapping[str, str] | None = None,
    ) -> ExecutionResult | TimedOut:
        """Run *script_path* and wait at most *timeout* seconds.

        Returns ``ExecutionResult`` for any exit code, or ``TimedOut`` after
        the process group has been killed.
        """
        if timeout <= 0:
            raise ValueError("timeout must be positive")
        # Resolved first: a relative path would otherwise be looked up from *cwd*.
        script_path = Path(script_path).resolve()
        if not script_path.is_file():
            raise ScriptLaunchError(f"Script not found: {script_path}")

        cmd = self.command_for(script_path, args)
        run_env = dict(os.environ)
        if env:
            run_env.update(env)

        started = time.perf_counter()
        try:
            proc = subprocess.Popen(
                cmd,
                cwd=str(cwd) if cwd else None,
                env=run_env,
                stdin=subprocess.PIPE,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                encoding="utf-8",
                errors="replace",
                start_new_session=True,
            )
        except OSError as exc:
            raise ScriptLaunchError(f"Cannot launch {' '.join(cmd)}: {exc}") from exc

        try:
            stdout, stderr = proc.communicate(input=stdin_content, timeout=timeout)
        except subprocess.TimeoutExpired:
            _kill_group(proc)
            stdout, stderr = _drain(proc)
            duration_ms = (time.perf_counter() - started) * 1000
            logger.warning(
                "%s timed out after %.1fs; process group killed", script_path.name, timeout
            )
            return TimedOut(
                timeout_seconds=timeout,
                stdout=stdout or "",
                stderr=stderr or "",
                duration_ms=duration_ms,
            )

        duration_ms = (time.perf_counter() - started) * 1000
        logger.debug(
            "%s exited %d in %.0fms", script_path.name, proc.returncode, duration_ms
        )
        return ExecutionResult(
            exit_code=proc.returncode,
            stdout=stdout or "",
            stderr=stderr or "",
            duration_ms=duration_ms,
        )
