"""Shared text formatting helpers for clibench.

Provides functions for formatting millisecond durations, signed deltas,
signal names and Markdown table cells used by the runner, the summary
and the report table.
"""

from __future__ import annotations

import signal as signal_module


def format_ms(value: float) -> str:
    """Format a duration in milliseconds: ``'120ms'``, ``'12.5ms'``.

    Integral values (including integral floats read back from JSON)
    print without a fractional part.
    """
    if isinstance(value, float) and not value.is_integer():
        return f"{round(value, 3)}ms"
    return f"{int(value)}ms"


def format_delta_ms(delta: float) -> str:
    """Format a delta in milliseconds: ``'+20ms'``, ``'-20ms'``, ``'0ms'``.

    Only slower (positive) deltas carry an explicit sign; negative
    values already print with a minus.
    """
    text = format_ms(delta)
    if delta > 0:
        return "+" + text
    return text


def format_signal_name(sig: int) -> str:
    """Name of the signal that killed a command, e.g. 9 → ``'SIGKILL'``.

    This is the text stored in ``CommandResult.signal`` and shown in the
    ``>>>`` exit line.  Numbers the platform has no name for come back
    as ``'SIG<n>'``.
    """
    try:
        return signal_module.Signals(sig).name
    except ValueError:
        return f"SIG{sig}"


def escape_markdown_cell(text: str) -> str:
    """Make *text* safe inside a Markdown table cell.

    Newlines are dropped and pipe characters escaped.
    """
    return text.replace("\r", "").replace("\n", "").replace("|", "\\|")


def format_section_header(title: str) -> str:
    """Heading of the run summary: *title* underlined with ``=``."""
    return f"{title}\n{'=' * len(title)}"
