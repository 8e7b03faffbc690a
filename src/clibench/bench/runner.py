"""Benchmark execution engine.

Orchestrates:
1. Configuration validation
2. Cache clearing before commands that need a cold cache
3. Strictly sequential execution of the command list with timing
4. Aggregation of results into a RunReport
5. Progress reporting

Commands never overlap: each one finishes, and its result is recorded,
before the next starts, so the timings do not disturb each other.
"""

from __future__ import annotations

import logging
import shutil
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from clibench.bench.commands import BenchConfig, CommandSpec, validate_config
from clibench.bench.results import CommandResult, RunReport, now_ms
from clibench.bench.timing import run_command
from clibench.formatting import format_ms

log = logging.getLogger("clibench")


# ---------------------------------------------------------------------------
# Progress callback
# ---------------------------------------------------------------------------


@dataclass
class BenchProgress:
    """Progress info passed to the callback after each command."""

    index: int  # 1-based
    total: int
    identity: str
    result: CommandResult
    recorded: bool  # False for commands omitted from the report


ProgressCallback = Callable[[BenchProgress], None]


# ---------------------------------------------------------------------------
# Cache handling
# ---------------------------------------------------------------------------


def clear_cache(cache_dir: Path) -> None:
    """Remove *cache_dir* and everything in it.

    A missing directory is not an error.  Any other failure propagates:
    benchmarking against a stale cache would make the timings meaningless.
    """
    if not cache_dir.exists():
        log.debug("Cache %s already absent", cache_dir)
        return
    log.debug("Removing cache %s", cache_dir)
    shutil.rmtree(cache_dir)


# ---------------------------------------------------------------------------
# BenchRunner
# ---------------------------------------------------------------------------


class BenchRunner:
    """Executes a command sequence according to a BenchConfig.

    Usage::

        runner = BenchRunner(config, commands)
        report = runner.run()
    """

    def __init__(
        self,
        config: BenchConfig,
        commands: list[CommandSpec],
        progress_callback: ProgressCallback | None = None,
    ) -> None:
        self.config = config
        self.commands = list(commands)
        self.progress: ProgressCallback = progress_callback or self._default_progress

    def run(self) -> RunReport:
        """Execute every command in order.

        Returns:
            The finished RunReport.

        Raises:
            ValueError: If the configuration is invalid.
            OSError: If clearing the cache fails; the run is aborted.
        """
        errors = validate_config(self.config, self.commands)
        fatal = [e for e in errors if e.severity == "error"]
        for w in (e for e in errors if e.severity == "warning"):
            log.warning("Config warning: %s: %s", w.field, w.message)
        if fatal:
            messages = [f"  {e.field}: {e.message}" for e in fatal]
            raise ValueError("Invalid benchmark configuration:\n" + "\n".join(messages))

        report = RunReport(version=self.config.version, start_ts=now_ms())
        total = len(self.commands)
        for index, spec in enumerate(self.commands, 1):
            result = self._run_one(spec)
            recorded = not spec.omit_from_report
            if recorded:
                report.record(result)
            self.progress(
                BenchProgress(
                    index=index,
                    total=total,
                    identity=spec.identity,
                    result=result,
                    recorded=recorded,
                )
            )
        report.end_ts = now_ms()
        return report

    def _run_one(self, spec: CommandSpec) -> CommandResult:
        """Prepare for and execute a single command."""
        if spec.clean_cache and self.config.cache_dir is not None:
            clear_cache(self.config.cache_dir)

        cwd = self.config.target_dir if spec.run_in_target_directory else None
        return run_command(
            self.config.executable,
            list(spec.args),
            identity=spec.identity,
            cwd=cwd,
            use_shell=self.config.use_shell,
        )

    @staticmethod
    def _default_progress(progress: BenchProgress) -> None:
        """Default progress callback: log one line per command."""
        marker = "" if progress.recorded else " (not reported)"
        log.info(
            "  [%d/%d] %s: %s %s%s",
            progress.index,
            progress.total,
            progress.identity,
            progress.result.status,
            format_ms(progress.result.duration_ms),
            marker,
        )


def execute_sequence(config: BenchConfig, commands: list[CommandSpec]) -> RunReport:
    """Run *commands* one after another and return the collected report."""
    return BenchRunner(config, commands).run()
