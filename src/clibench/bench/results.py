"""Benchmark result data structures and the persisted report store.

Hierarchy::

    RunReport (one orchestration run, in memory)
      → commands: list[CommandResult]

    Persisted report (one JSON file, accumulated across runs)
      → {command identity: {version label: duration in ms}}

The persisted report is read, merged and rewritten on every labeled
run.  Merging only touches the (identity, version) cells of the new
run; every other cell, including keys this tool never wrote, survives.
"""

from __future__ import annotations

import json
import logging
import math
import os
import stat
import tempfile
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

log = logging.getLogger("clibench")


# identity -> version label -> duration in milliseconds
PersistedReport = dict[str, dict[str, float]]


class ReportError(ValueError):
    """The persisted report exists but cannot be read as a report."""


# ---------------------------------------------------------------------------
# Command-level result
# ---------------------------------------------------------------------------


@dataclass
class CommandResult:
    """Outcome of one executed command."""

    identity: str
    args: list[str]
    duration_ms: int
    code: int | None = None  # None when killed by a signal or never started
    signal: str | None = None  # e.g. "SIGKILL"
    spawn_error: str | None = None  # set when the process could not start

    @property
    def succeeded(self) -> bool:
        """True for a normal exit with status 0."""
        return self.code == 0 and self.signal is None

    @property
    def status(self) -> str:
        """Short status label: ``ok``, ``fail``, ``signal`` or ``spawn_error``."""
        if self.spawn_error is not None:
            return "spawn_error"
        if self.signal is not None:
            return "signal"
        return "ok" if self.code == 0 else "fail"

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-compatible dict."""
        d: dict[str, Any] = {
            "identity": self.identity,
            "args": list(self.args),
            "duration_ms": self.duration_ms,
            "code": self.code,
            "signal": self.signal,
        }
        if self.spawn_error is not None:
            d["spawn_error"] = self.spawn_error
        return d


# ---------------------------------------------------------------------------
# Run-level result
# ---------------------------------------------------------------------------


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


@dataclass
class RunReport:
    """Results collected by one orchestration run.

    ``version`` is the label the durations are recorded under; a run
    without one is never persisted.
    """

    version: str | None = None
    start_ts: int = 0
    end_ts: int = 0
    successes: int = 0
    failures: int = 0
    commands: list[CommandResult] = field(default_factory=list)

    def record(self, result: CommandResult) -> None:
        """Append *result* and update the success/failure counters."""
        self.commands.append(result)
        if result.succeeded:
            self.successes += 1
        else:
            self.failures += 1

    @property
    def total_duration_ms(self) -> int:
        """Wall-clock duration of the whole run."""
        return max(self.end_ts - self.start_ts, 0)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-compatible dict."""
        return {
            "version": self.version,
            "start_ts": self.start_ts,
            "end_ts": self.end_ts,
            "successes": self.successes,
            "failures": self.failures,
            "commands": [c.to_dict() for c in self.commands],
        }


# ---------------------------------------------------------------------------
# Persisted report I/O
# ---------------------------------------------------------------------------


def default_report_path() -> Path:
    """Location of the report file: ``$CLIBENCH_REPORT`` or ``~/clibench-report.json``."""
    override = os.environ.get("CLIBENCH_REPORT")
    if override:
        return Path(override).expanduser()
    return Path.home() / "clibench-report.json"


def _validate_report(data: Any, path: Path) -> PersistedReport:
    """Check that *data* has the ``{identity: {version: number}}`` shape."""
    if not isinstance(data, dict):
        raise ReportError(f"{path}: expected a JSON object, got {type(data).__name__}")
    for identity, by_version in data.items():
        if not isinstance(by_version, dict):
            raise ReportError(
                f"{path}: entry {identity!r} must be an object of version -> duration"
            )
        for version, duration in by_version.items():
            if isinstance(duration, bool) or not isinstance(duration, (int, float)):
                raise ReportError(
                    f"{path}: duration for {identity!r} at {version!r} is not a number"
                )
            if not math.isfinite(duration):
                raise ReportError(
                    f"{path}: duration for {identity!r} at {version!r} is not finite"
                )
    return data


def load_report(path: Path) -> PersistedReport:
    """Load a persisted report.

    Returns an empty report if *path* does not exist.

    Raises:
        ReportError: If the file exists but is not a valid report.
        OSError: If the file exists but cannot be read.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        log.debug("No report at %s, starting fresh", path)
        return {}
    except UnicodeDecodeError as exc:
        raise ReportError(f"{path}: not valid UTF-8: {exc}") from exc

    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ReportError(f"{path}: malformed JSON: {exc}") from exc
    return _validate_report(data, path)


def _atomic_write(path: Path, content: str) -> None:
    """Replace the report file in one step.

    The new contents go to a temporary file next to *path*, which then
    takes its place with ``os.replace``, so a reader never sees a
    half-written report.  An existing report keeps its permission bits;
    ``mkstemp`` would otherwise leave it readable by the owner only.
    """
    fd, tmp_path = tempfile.mkstemp(dir=path.parent, suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
        try:
            os.chmod(tmp_path, stat.S_IMODE(path.stat().st_mode))
        except FileNotFoundError:
            pass
        os.replace(tmp_path, path)
    except BaseException:
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        raise


def save_report(path: Path, data: PersistedReport) -> None:
    """Write *data* to *path*, replacing the previous contents atomically."""
    path.parent.mkdir(parents=True, exist_ok=True)
    _atomic_write(path, json.dumps(data, indent=2) + "\n")


def merge_report(persisted: PersistedReport, run: RunReport) -> PersistedReport:
    """Merge the durations of *run* into a copy of *persisted*.

    Each result sets the cell at (identity, ``run.version``), overwriting
    a prior value at that exact cell.  All other cells are carried over.
    An unlabeled run returns an unchanged copy.
    """
    merged: PersistedReport = {identity: dict(cells) for identity, cells in persisted.items()}
    if run.version is None:
        return merged
    for result in run.commands:
        merged.setdefault(result.identity, {})[run.version] = result.duration_ms
    return merged


def merge_and_persist(run: RunReport, path: Path | None = None) -> PersistedReport | None:
    """Merge *run* into the report file at *path* and write it back.

    Returns the merged report, or None when *run* is unlabeled and
    nothing was read or written.  A labeled run without results leaves
    the file untouched.

    Raises:
        ReportError: If the existing file is malformed.  It is not
            overwritten.
        OSError: If the report cannot be read or written.  The merged
            data is logged first so it can be recovered by hand.
    """
    if run.version is None:
        log.info("Run has no version label; report not saved")
        return None

    report_path = path or default_report_path()
    existing = load_report(report_path)
    if not run.commands:
        log.info("No results to record for %s", run.version)
        return existing

    merged = merge_report(existing, run)
    try:
        save_report(report_path, merged)
    except OSError:
        log.error(
            "Failed to write report to %s; merged data follows:\n%s",
            report_path,
            json.dumps(merged, indent=2),
        )
        raise
    log.info("Report written to %s", report_path)
    return merged
