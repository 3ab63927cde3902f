"""
Logging configuration — set up once by the CLI entry point.

Every module does ``logger = logging.getLogger(__name__)`` and inherits
this config. Records go to stderr so they never mix with the dry-run
text on stdout.

Level precedence:
    --debug / --verbose / --quiet  >  GOBUILDER_LOG_LEVEL  >  WARNING

GOBUILDER_LOG_FILE adds a file handler (level GOBUILDER_LOG_FILE_LEVEL,
default: same as the console).
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Mapping

ENV_LEVEL = "GOBUILDER_LOG_LEVEL"
ENV_FILE = "GOBUILDER_LOG_FILE"
ENV_FILE_LEVEL = "GOBUILDER_LOG_FILE_LEVEL"

# (format, datefmt) by the most verbose level they apply to
_CONSOLE_FORMATS: tuple[tuple[int, str, str | None], ...] = (
    (logging.DEBUG, "%(asctime)s %(levelname)-5s %(name)s:%(lineno)d — %(message)s", "%H:%M:%S"),
    (logging.INFO, "%(asctime)s [%(name)s] %(message)s", "%H:%M:%S"),
    (logging.CRITICAL, "go-builder: %(message)s", None),
)
_FILE_FORMAT = ("%(asctime)s %(levelname)-5s %(name)s:%(lineno)d — %(message)s", "%Y-%m-%d %H:%M:%S")


def resolve_level(
    verbose: bool = False,
    quiet: bool = False,
    debug: bool = False,
    env: Mapping[str, str] | None = None,
) -> str:
    """Pick the console level from CLI flags, then the environment."""
    if debug:
        return "DEBUG"
    if verbose:
        return "INFO"
    if quiet:
        return "ERROR"
    return (env or {}).get(ENV_LEVEL, "WARNING")


def setup_logging(
    level: str = "WARNING",
    log_file: str | None = None,
    log_file_level: str | None = None,
) -> None:
    """Configure the root logger for the whole process."""
    console_level = _parse_level(level)
    fmt, datefmt = next(
        (f, d) for limit, f, d in _CONSOLE_FORMATS if console_level <= limit
    )

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level)
    console.setFormatter(logging.Formatter(fmt, datefmt=datefmt))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(console)
    root_level = console_level

    if log_file:
        file_level = _parse_level(log_file_level) if log_file_level else console_level
        handler = logging.FileHandler(log_file, encoding="utf-8")
        handler.setLevel(file_level)
        handler.setFormatter(logging.Formatter(*_FILE_FORMAT))
        root.addHandler(handler)
        root_level = min(root_level, file_level)

    root.setLevel(root_level)
    logging.raiseExceptions = False


def _parse_level(level: str | None) -> int:
    """Level name to its numeric constant; unknown names mean WARNING."""
    numeric = getattr(logging, (level or "").upper(), None)
    return numeric if isinstance(numeric, int) else logging.WARNING
