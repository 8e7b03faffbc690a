"""Terminal display formatting for benchmark results.

Renders the persisted report as a Markdown comparison table, one column
per version label, and formats the end-of-run summary.
No external dependencies.
"""

from __future__ import annotations

from clibench.bench.results import PersistedReport, RunReport
from clibench.formatting import (
    escape_markdown_cell,
    format_delta_ms,
    format_ms,
    format_section_header,
)


def report_columns(report: PersistedReport) -> list[str]:
    """Version labels of *report* in first-seen order.

    Commands are scanned in stored order and the labels of each command
    in their stored order.
    """
    columns: list[str] = []
    seen: set[str] = set()
    for by_version in report.values():
        for version in by_version:
            if version not in seen:
                seen.add(version)
                columns.append(version)
    return columns


def _format_cell(value: float | None, baseline: float | None, is_baseline: bool) -> str:
    if value is None:
        return "-"
    text = format_ms(value)
    if is_baseline or baseline is None:
        return text
    return f"{text} ({format_delta_ms(value - baseline)})"


def render_table(report: PersistedReport) -> str:
    """Render *report* as a Markdown table.

    The first column is the baseline: every other cell shows its
    duration followed by the difference from the baseline of its row.
    Rows without a baseline value show plain durations; missing cells
    show ``-``.

    Returns:
        The table, header and divider rows included, without a
        trailing newline.
    """
    columns = report_columns(report)

    lines: list[str] = []
    lines.append(
        "| **Command** "
        + "".join(f"| {escape_markdown_cell(c)} " for c in columns)
        + "|"
    )
    lines.append("| -- " + "| -- " * len(columns) + "|")

    for identity, by_version in report.items():
        baseline = by_version.get(columns[0]) if columns else None
        cells = [
            _format_cell(by_version.get(version), baseline, i == 0)
            for i, version in enumerate(columns)
        ]
        lines.append(
            f"| {escape_markdown_cell(identity)} "
            + "".join(f"| {cell} " for cell in cells)
            + "|"
        )

    return "\n".join(lines)


def format_run_summary(run: RunReport) -> str:
    """Format the end-of-run summary printed before the report is saved."""
    title = f"Report for {run.version}" if run.version else "Report"
    lines = [
        format_section_header(title),
        f" * {run.successes} commands successful",
        f" * {run.failures} commands failed",
        f" * total duration: {format_ms(run.total_duration_ms)}",
    ]
    return "\n".join(lines)
