"""Logging setup for the ``ws`` command.

Verbosity: 0 = warnings, 1 = info, 2+ = debug.
Logs go to ``--log-file`` or ``$WSNAV_LOG`` when set, stderr otherwise.
"""

from __future__ import annotations

import logging
import os
import sys

LOG_ENV_VAR = "WSNAV_LOG"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

logger = logging.getLogger("wsnav")

_VERBOSITY_MAP = {
    0: logging.WARNING,
    1: logging.INFO,
    2: logging.DEBUG,
}

_initialized = False


def level_for_verbosity(verbosity: int) -> int:
    return _VERBOSITY_MAP.get(max(0, min(verbosity, 2)), logging.WARNING)


def setup_logging(verbosity: int = 0, log_file: str | None = None) -> None:
    """Attach one handler to the ``wsnav`` logger. Later calls are no-ops."""
    global _initialized
    if _initialized:
        return

    log_file = log_file or os.environ.get(LOG_ENV_VAR) or None
    handler: logging.Handler
    if log_file:
        try:
            handler = logging.FileHandler(os.path.expanduser(log_file), encoding="utf-8")
        except OSError as exc:
            print(f"wsnav: cannot open log file {log_file}: {exc}", file=sys.stderr)
            handler = logging.StreamHandler(sys.stderr)
    else:
        handler = logging.StreamHandler(sys.stderr)

    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)
    logger.setLevel(level_for_verbosity(verbosity))
    logger.propagate = False
    _initialized = True


def reset_logging() -> None:
    """Detach handlers so tests can call ``setup_logging`` again."""
    global _initialized
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True
    _initialized = False
