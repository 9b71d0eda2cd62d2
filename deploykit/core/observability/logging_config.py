"""
Logging configuration — one setup call per process.

The CLI (``deploykit.main``) and the web runner call ``setup_logging``
once; every module logs through ``logging.getLogger(__name__)``.

Level precedence:
    --debug / --verbose / --quiet  >  DEPLOYKIT_LOG_LEVEL  >  WARNING

File output is opt-in through DEPLOYKIT_LOG_FILE, with its own level in
DEPLOYKIT_LOG_FILE_LEVEL. Engine tier decisions are logged at DEBUG, so
``--debug`` shows why each app got the rule it got.
"""

from __future__ import annotations

import logging
import os
import sys

ENV_LEVEL = "DEPLOYKIT_LOG_LEVEL"
ENV_FILE = "DEPLOYKIT_LOG_FILE"
ENV_FILE_LEVEL = "DEPLOYKIT_LOG_FILE_LEVEL"

# ── Format strings ──────────────────────────────────────────────

_FMT_BY_LEVEL: dict[int, tuple[str, str | None]] = {
    logging.DEBUG: ("%(asctime)s %(levelname)-5s %(name)s:%(lineno)d — %(message)s", "%H:%M:%S"),
    logging.INFO: ("%(asctime)s [%(name)s] %(message)s", "%H:%M:%S"),
}
_FMT_QUIET = ("%(message)s", None)

_FMT_FILE = "%(asctime)s %(levelname)-5s %(name)s:%(lineno)d — %(message)s"
_DATEFMT_FILE = "%Y-%m-%d %H:%M:%S"

# Werkzeug logs every request at INFO
_NOISY_LOGGERS = ("werkzeug",)


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
    return os.environ.get(ENV_LEVEL, "WARNING")


def setup_logging(
    level: str = "WARNING",
    log_file: str | None = None,
    log_file_level: str | None = None,
    quiet_third_party: bool = True,
) -> None:
    """Configure the root logger for the whole process.

    Args:
        level: Console level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_file: Optional log file path; defaults to DEPLOYKIT_LOG_FILE.
        log_file_level: File level; defaults to DEPLOYKIT_LOG_FILE_LEVEL,
            then to ``level``.
        quiet_third_party: Hold noisy library loggers at WARNING unless
            the console is at DEBUG.
    """
    console_level = _parse_level(level)
    if console_level <= logging.DEBUG:
        fmt, datefmt = _FMT_BY_LEVEL[logging.DEBUG]
    elif console_level <= logging.INFO:
        fmt, datefmt = _FMT_BY_LEVEL[logging.INFO]
    else:
        fmt, datefmt = _FMT_QUIET

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level)
    console.setFormatter(logging.Formatter(fmt, datefmt=datefmt))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(console)
    root_level = console_level

    log_file = log_file or os.environ.get(ENV_FILE)
    if log_file:
        file_level = _parse_level(log_file_level or os.environ.get(ENV_FILE_LEVEL) or level)
        root_level = min(root_level, file_level)

        fh = logging.FileHandler(log_file, encoding="utf-8")
        fh.setLevel(file_level)
        fh.setFormatter(logging.Formatter(_FMT_FILE, datefmt=_DATEFMT_FILE))
        root.addHandler(fh)

    root.setLevel(root_level)

    if quiet_third_party and console_level > logging.DEBUG:
        for name in _NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)

    logging.raiseExceptions = False


def _parse_level(level: str | None) -> int:
    """Level name → numeric constant; anything unrecognised means WARNING."""
    if not level:
        return logging.WARNING
    numeric = getattr(logging, level.upper(), None)
    return numeric if isinstance(numeric, int) else logging.WARNING
