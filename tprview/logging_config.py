"""Logging configuration helpers."""

from __future__ import annotations

import logging
import sys
from typing import Optional


def configure_logging(log_file: Optional[str], verbose: bool = False) -> None:
    """Configure command line logging.

    Parameters
    ----------
    log_file
        Optional path to a log file. When given, debug logs go to the file.
        Otherwise warnings and above go to stderr, or debug logs when
        ``verbose`` is set.
    verbose
        Emit debug logs on stderr when no log file is given.

    Returns
    -------
    None
        This function does not return a value.
    """

    handler_error = None
    handlers = []
    level = logging.DEBUG if verbose else logging.WARNING
    if log_file:
        try:
            handlers.append(logging.FileHandler(log_file, encoding="utf-8"))
            level = logging.DEBUG
        except OSError as exc:
            handler_error = exc
    if not handlers:
        # stdout carries the command output.
        handlers.append(logging.StreamHandler(sys.stderr))
    logging.basicConfig(
        level=level,
        handlers=handlers,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        force=True,
    )
    logging.getLogger("MDAnalysis").setLevel(logging.ERROR)
    if handler_error is not None:
        logging.getLogger(__name__).warning(
            "Failed to open log file '%s': %s", log_file, handler_error
        )
