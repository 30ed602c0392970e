"""
Logging configuration — one setup call per CLI process.

Modules log through ``logging.getLogger(__name__)``; nothing below
``trustpin`` installs handlers of its own.

Level precedence (see ``resolve_level``):
    --debug  >  --verbose  >  --quiet  >  TRUSTPIN_LOG_LEVEL  >  WARNING

TRUSTPIN_LOG_FILE / TRUSTPIN_LOG_FILE_LEVEL add a full-detail file log.

Trust downgrades (tier 4, trust on first use) are logged on
``trustpin.security``. That logger gets its own WARNING handler when
the console is quieter than WARNING, so ``--quiet`` never hides them.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Mapping

SECURITY_LOGGER = "trustpin.security"

LEVEL_ENV = "TRUSTPIN_LOG_LEVEL"
FILE_ENV = "TRUSTPIN_LOG_FILE"
FILE_LEVEL_ENV = "TRUSTPIN_LOG_FILE_LEVEL"

# ── Formats ─────────────────────────────────────────────────────

_DETAILED = "%(asctime)s %(levelname)-5s %(name)s:%(lineno)d  %(message)s"

# Most verbose first; the first threshold >= the level wins
_CONSOLE_FORMATS: tuple[tuple[int, str, str | None], ...] = (
    (logging.DEBUG, _DETAILED, "%H:%M:%S"),
    (logging.INFO, "%(asctime)s [%(name)s] %(message)s", "%H:%M:%S"),
    (logging.CRITICAL, "%(message)s", None),
)

_FILE_FORMAT = (_DETAILED, "%Y-%m-%d %H:%M:%S")

# urllib's dependencies, should one ever get pulled in by a plugin
_NOISY_LOGGERS = ("urllib3", "http.client", "charset_normalizer")


def resolve_level(
    *,
    debug: bool = False,
    verbose: bool = False,
    quiet: bool = False,
    env: Mapping[str, str] | None = None,
) -> str:
    """Pick the console level name from CLI flags and the environment."""
    if debug:
        return "DEBUG"
    if verbose:
        return "INFO"
    if quiet:
        return "ERROR"
    return (env or {}).get(LEVEL_ENV, "WARNING")


def _console_formatter(level: int) -> logging.Formatter:
    for threshold, fmt, datefmt in _CONSOLE_FORMATS:
        if level <= threshold:
            return logging.Formatter(fmt, datefmt=datefmt)
    return logging.Formatter("%(message)s")


def _route_security_warnings(console_level: int, file_logging: bool) -> None:
    security = logging.getLogger(SECURITY_LOGGER)
    security.handlers.clear()
    security.setLevel(logging.NOTSET)
    security.propagate = True
    if console_level <= logging.WARNING:
        return

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(logging.WARNING)
    handler.setFormatter(logging.Formatter("%(message)s"))
    security.addHandler(handler)
    security.setLevel(logging.WARNING)
    # Propagating only matters when a file handler would record it
    security.propagate = file_logging


def setup_logging(
    level: str = "WARNING",
    log_file: str | None = None,
    log_file_level: str | None = None,
    quiet_third_party: bool = True,
) -> None:
    """Install the console (and optional file) handlers on the root logger.

    Safe to call repeatedly: existing root handlers are replaced.

    Args:
        level: Console level name.
        log_file: Optional path for a detailed log file.
        log_file_level: File level name; defaults to ``level``.
        quiet_third_party: Hold HTTP library loggers at WARNING unless
            the console is at DEBUG.
    """
    console_level = _parse_level(level)

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level)
    console.setFormatter(_console_formatter(console_level))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(console)
    root_level = console_level

    if log_file:
        file_level = _parse_level(log_file_level) if log_file_level else console_level
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(file_level)
        file_handler.setFormatter(logging.Formatter(*_FILE_FORMAT))
        root.addHandler(file_handler)
        root_level = min(root_level, file_level)

    root.setLevel(root_level)
    _route_security_warnings(console_level, file_logging=bool(log_file))

    if quiet_third_party and console_level > logging.DEBUG:
        for name in _NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)

    logging.raiseExceptions = False


def _parse_level(level: str | None) -> int:
    """Level name to number; unknown or missing names mean WARNING."""
    numeric = logging.getLevelName(level.upper()) if level else None
    return numeric if isinstance(numeric, int) else logging.WARNING
