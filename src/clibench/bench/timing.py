"""Timing capture for benchmarked commands.

Runs one command to completion with the caller's standard streams
inherited, so the tool's own output stays visible, and measures its
wall-clock duration with ``time.monotonic``.  Failures of the child,
including failure to start it at all, are reported in the returned
CommandResult rather than raised.
"""

from __future__ import annotations

import logging
import shlex
import subprocess
import sys
import time
from pathlib import Path

from clibench.bench.results import CommandResult
from clibench.formatting import format_ms, format_signal_name

log = logging.getLogger("clibench")


def _elapsed_ms(start: float) -> int:
    return max(round((time.monotonic() - start) * 1000), 0)


def _shell_command(executable: str | Path, args: list[str]) -> str:
    """Join the invocation into one shell command line."""
    argv = [str(executable), *args]
    if sys.platform == "win32":
        return subprocess.list2cmdline(argv)
    return shlex.join(argv)


def run_command(
    executable: str | Path,
    args: list[str] | tuple[str, ...],
    *,
    identity: str | None = None,
    cwd: str | Path | None = None,
    use_shell: bool = False,
) -> CommandResult:
    """Execute a command and measure how long it takes.

    Args:
        executable: Path of the program to run.
        args: Arguments passed to it, in order.
        identity: Report key for the result (defaults to the joined args).
        cwd: Working directory for the child; the caller's own working
            directory is left alone.
        use_shell: Run the command line through the shell, which some
            platforms need to resolve launcher scripts.

    Returns:
        CommandResult with the duration and how the process ended.
    """
    args = list(args)
    if identity is None:
        identity = shlex.join(args)
    argv_text = shlex.join([str(executable), *args])
    log.info(">>> %s - %s", identity, argv_text)

    command: str | list[str]
    if use_shell:
        command = _shell_command(executable, args)
    else:
        command = [str(executable), *args]

    start = time.monotonic()
    try:
        proc = subprocess.Popen(
            command,
            shell=use_shell,
            cwd=str(cwd) if cwd is not None else None,
        )
    except OSError as exc:
        duration_ms = _elapsed_ms(start)
        log.error(">>> %s could not be started: %s", identity, exc)
        return CommandResult(
            identity=identity,
            args=args,
            duration_ms=duration_ms,
            spawn_error=f"{type(exc).__name__}: {exc}",
        )

    returncode = proc.wait()
    duration_ms = _elapsed_ms(start)

    if returncode < 0:
        sig_name = format_signal_name(-returncode)
        log.info(
            ">>> %s was terminated with signal %s in %s",
            identity,
            sig_name,
            format_ms(duration_ms),
        )
        return CommandResult(
            identity=identity,
            args=args,
            duration_ms=duration_ms,
            signal=sig_name,
        )

    log.info(">>> %s exited with code %d in %s", identity, returncode, format_ms(duration_ms))
    return CommandResult(
        identity=identity,
        args=args,
        duration_ms=duration_ms,
        code=returncode,
    )
