"""
utils.py

Logging helpers shared by the ocean model and its writers.

- `configure_logging(level)` : attach one console handler to the package logger
- `safe_log_exception(msg, exc, **ctx)` : logs exceptions robustly
"""

from typing import Any
import sys
import logging

logger = logging.getLogger(__name__)

PACKAGE_LOGGER = 'climatesim'
LOG_FORMAT = '[%(levelname)s] %(message)s'


def configure_logging(level=logging.INFO):
    """Install a StreamHandler on the package logger unless one is attached.

    Returns the package logger so scripts can adjust it further.
    """
    pkg = logging.getLogger(PACKAGE_LOGGER)
    if not pkg.handlers:
        h = logging.StreamHandler()
        h.setFormatter(logging.Formatter(LOG_FORMAT))
        pkg.addHandler(h)
    pkg.setLevel(level)
    return pkg


def safe_log_exception(msg: str, exc: Exception, **ctx: Any) -> None:
    """Log an exception robustly.

    Attempts to call `logger.exception`. If logging fails for any reason,
    falls back to writing a compact message to `sys.stderr`.
    """
    try:
        if ctx:
            ctx_s = ' | '.join(f"{k}={v!r}" for k, v in ctx.items())
            logger.exception('%s | %s | %s', msg, exc, ctx_s)
        else:
            logger.exception('%s | %s', msg, exc)
    except Exception:
        try:
            sys.stderr.write(f'LOGGING FAILURE: {msg} {exc}\n')
        except OSError:
            pass
