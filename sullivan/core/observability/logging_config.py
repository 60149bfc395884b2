"""
Logging configuration — one setup call for the whole process.

The CLI root in main.py calls ``setup_logging`` once; every module
logs through ``logging.getLogger(__name__)`` and picks it up.

Console level, highest precedence first:
    --debug  >  --verbose  >  --quiet  >  SULLIVAN_LOG_LEVEL  >  WARNING

A second, file-backed handler is added when SULLIVAN_LOG_FILE (or the
``log_file`` argument) names a path.
"""

from __future__ import annotations

import logging
import os
import sys

# Console formats by verbosity: (max level, format, datefmt).
# WARNING and up prints bare messages, like the old shell tool's colored lines.
_CONSOLE_FORMATS: tuple[tuple[int, str, str | None], ...] = (
    (logging.DEBUG, "%(asctime)s %(levelname)-5s %(name)s:%(lineno)d: %(message)s", "%H:%M:%S"),
    (logging.INFO, "%(asctime)s [%(name)s] %(message)s", "%H:%M:%S"),
)
_CONSOLE_DEFAULT_FORMAT = "%(message)s"

_FILE_FORMAT = "%(asctime)s %(levelname)-5s %(name)s:%(lineno)d: %(message)s"
_FILE_DATEFMT = "%Y-%m-%d %H:%M:%S"

# Library loggers held at WARNING unless we are debugging.
_NOISY_LOGGERS = ("asyncio", "urllib3")


def resolve_level(
    *,
    debug: bool = False,
    verbose: bool = False,
    quiet: bool = False,
) -> str:
    """Pick the console level from CLI flags, then the environment."""
    if debug:
        return "DEBUG"
    if verbose:
        return "INFO"
    if quiet:
        return "ERROR"
    return os.environ.get("SULLIVAN_LOG_LEVEL", "WARNING")


def setup_logging(
    level: str = "WARNING",
    log_file: str | None = None,
    log_file_level: str | None = None,
    quiet_third_party: bool = True,
) -> None:
    """Install the console handler (and optionally a file handler) on the root logger.

    Args:
        level: Console level name. Unknown names mean WARNING.
        log_file: Log file path; falls back to SULLIVAN_LOG_FILE.
        log_file_level: File level; falls back to SULLIVAN_LOG_FILE_LEVEL,
            then to ``level``.
        quiet_third_party: Hold library loggers at WARNING below DEBUG.
    """
    console_level = _parse_level(level)
    log_file = log_file or os.environ.get("SULLIVAN_LOG_FILE") or None
    log_file_level = log_file_level or os.environ.get("SULLIVAN_LOG_FILE_LEVEL") or None

    handlers: list[logging.Handler] = [_console_handler(console_level)]
    if log_file:
        file_level = _parse_level(log_file_level) if log_file_level else console_level
        handlers.append(_file_handler(log_file, file_level))

    root = logging.getLogger()
    root.handlers.clear()
    for handler in handlers:
        root.addHandler(handler)
    # The root must let through whatever the most verbose handler wants.
    root.setLevel(min(h.level for h in handlers))

    if quiet_third_party and console_level > logging.DEBUG:
        for noisy in _NOISY_LOGGERS:
            logging.getLogger(noisy).setLevel(logging.WARNING)

    # A closed stderr (piped into `head`) must not print tracebacks.
    logging.raiseExceptions = False


def _console_handler(level: int) -> logging.Handler:
    fmt, datefmt = _CONSOLE_DEFAULT_FORMAT, None
    for ceiling, tier_fmt, tier_datefmt in _CONSOLE_FORMATS:
        if level <= ceiling:
            fmt, datefmt = tier_fmt, tier_datefmt
            break
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt, datefmt=datefmt))
    return handler


def _file_handler(path: str, level: int) -> logging.Handler:
    handler = logging.FileHandler(path, encoding="utf-8")
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(_FILE_FORMAT, datefmt=_FILE_DATEFMT))
    return handler


def _parse_level(name: str | None) -> int:
    """Level name to its numeric value; anything unrecognised is WARNING."""
    value = getattr(logging, name.upper(), None) if name else None
    return value if isinstance(value, int) else logging.WARNING
