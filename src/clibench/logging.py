"""Logging setup for clibench.

Everything a benchmark run reports while it works goes through the
``clibench`` logger: the ``>>>`` start and exit lines of each command,
the ``[i/N]`` progress lines, validation warnings, and the JSON dump of
results that could not be saved.  The console shows these at INFO;
``clibench run --log-file`` keeps a timestamped DEBUG copy as well.
"""

from __future__ import annotations

import logging
from pathlib import Path

_LOGGER_NAME = "clibench"
_FILE_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"
_CONSOLE_FORMAT = "%(levelname)-8s %(message)s"


def setup_logging(
    *,
    verbose: bool = False,
    quiet: bool = False,
    log_file: Path | None = None,
) -> logging.Logger:
    """Configure the ``clibench`` logger for one CLI invocation.

    Args:
        verbose: Show DEBUG lines on the console (profile loading,
            directory discovery, report paths).
        quiet: Show only warnings and errors, hiding per-command
            progress. Ignored if *verbose* is True.
        log_file: Also write every record, at DEBUG, to this file.

    Returns:
        The ``clibench`` logger.
    """
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(logging.DEBUG)

    # Reconfiguring replaces handlers from an earlier call.
    logger.handlers.clear()

    if verbose:
        console_level = logging.DEBUG
    elif quiet:
        console_level = logging.WARNING
    else:
        console_level = logging.INFO
    console = logging.StreamHandler()
    console.setLevel(console_level)
    console.setFormatter(logging.Formatter(_CONSOLE_FORMAT))
    logger.addHandler(console)

    if log_file is not None:
        fh = logging.FileHandler(log_file, encoding="utf-8")
        fh.setLevel(logging.DEBUG)
        fh.setFormatter(logging.Formatter(_FILE_FORMAT))
        logger.addHandler(fh)

    return logger


def get_logger(name: str) -> logging.Logger:
    """Logger for one clibench module, e.g. ``clibench.commands``."""
    return logging.getLogger(f"{_LOGGER_NAME}.{name}")
