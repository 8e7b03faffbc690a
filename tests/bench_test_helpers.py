"""Shared test fixtures for benchmark tests."""

from __future__ import annotations

from clibench.bench.results import CommandResult, RunReport


def make_result(
    identity: str,
    duration_ms: int = 100,
    *,
    code: int | None = 0,
    signal: str | None = None,
    args: list[str] | None = None,
) -> CommandResult:
    """Create a CommandResult with sensible defaults."""
    return CommandResult(
        identity=identity,
        args=args if args is not None else identity.split(),
        duration_ms=duration_ms,
        code=code,
        signal=signal,
    )


def make_run(
    version: str | None,
    durations: dict[str, int],
    *,
    start_ts: int = 1_000,
    end_ts: int = 2_000,
) -> RunReport:
    """Create a RunReport from identity -> duration, all successful."""
    run = RunReport(version=version, start_ts=start_ts, end_ts=end_ts)
    for identity, duration in durations.items():
        run.record(make_result(identity, duration))
    return run
