"""
Logging configuration — one call from the CLI entrypoint.

Every module logs through ``logging.getLogger(__name__)``; this module
only decides handlers, formats and levels for the ``aiops`` process.

Console level precedence:
    CLI flag  >  AIOPS_LOG_LEVEL  >  WARNING

A log file can be added with AIOPS_LOG_FILE (and its own threshold with
AIOPS_LOG_FILE_LEVEL).  Console output goes to stderr so ``--json``
output on stdout stays parseable.
"""

from __future__ import annotations

import logging
import os
import sys

ENV_LEVEL = "AIOPS_LOG_LEVEL"
ENV_FILE = "AIOPS_LOG_FILE"
ENV_FILE_LEVEL = "AIOPS_LOG_FILE_LEVEL"

DEFAULT_LEVEL = "WARNING"

# ── Formats ─────────────────────────────────────────────────────

_FORMATS = {
    # (format, datefmt) keyed by the most verbose level they serve
    logging.DEBUG: ("%(asctime)s %(levelname)-5s %(name)s:%(lineno)d %(message)s", "%H:%M:%S"),
    logging.INFO: ("%(asctime)s [%(name)s] %(message)s", "%H:%M:%S"),
    logging.WARNING: ("%(message)s", None),
}

_FILE_FORMAT = "%(asctime)s %(levelname)-5s %(name)s:%(lineno)d %(message)s"
_FILE_DATEFMT = "%Y-%m-%d %H:%M:%S"

# Library loggers kept at WARNING unless we are debugging
_NOISY_LOGGERS = ("jinja2",)


def resolve_level(
    *,
    verbose: bool = False,
    quiet: bool = False,
    debug: bool = False,
) -> str:
    """Pick the console level from CLI flags, falling back to the environment."""
    if debug:
        return "DEBUG"
    if verbose:
        return "INFO"
    if quiet:
        return "ERROR"
    return os.environ.get(ENV_LEVEL, DEFAULT_LEVEL)


def setup_logging(
    level: str = DEFAULT_LEVEL,
    log_file: str | None = None,
    log_file_level: str | None = None,
    quiet_third_party: bool = True,
) -> None:
    """Configure the root logger.

    Args:
        level: Console level name.
        log_file: Optional path of a log file.
        log_file_level: Level for the file (defaults to ``level``).
        quiet_third_party: Hold library loggers at WARNING unless at DEBUG.
    """
    console_level = _parse_level(level)

    root = logging.getLogger()
    root.handlers.clear()

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level)
    console.setFormatter(_console_formatter(console_level))
    root.addHandler(console)

    root_level = console_level
    if log_file:
        file_level = _parse_level(log_file_level) if log_file_level else console_level
        root_level = min(root_level, file_level)

        handler = logging.FileHandler(log_file, encoding="utf-8")
        handler.setLevel(file_level)
        handler.setFormatter(logging.Formatter(_FILE_FORMAT, datefmt=_FILE_DATEFMT))
        root.addHandler(handler)

    root.setLevel(root_level)

    if quiet_third_party and console_level > logging.DEBUG:
        for name in _NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)

    logging.raiseExceptions = False


def setup_from_env(level: str) -> None:
    """``setup_logging`` with the file settings taken from the environment."""
    setup_logging(
        level=level,
        log_file=os.environ.get(ENV_FILE),
        log_file_level=os.environ.get(ENV_FILE_LEVEL),
        quiet_third_party=_parse_level(level) > logging.DEBUG,
    )


def _console_formatter(numeric_level: int) -> logging.Formatter:
    for threshold in (logging.DEBUG, logging.INFO):
        if numeric_level <= threshold:
            fmt, datefmt = _FORMATS[threshold]
            return logging.Formatter(fmt, datefmt=datefmt)
    fmt, datefmt = _FORMATS[logging.WARNING]
    return logging.Formatter(fmt, datefmt=datefmt)


def _parse_level(level: str | None) -> int:
    """Level name to its numeric value; unknown names mean WARNING."""
    if not level:
        return logging.WARNING
    numeric = getattr(logging, level.upper(), None)
    if not isinstance(numeric, int):
        return logging.WARNING
    return numeric
