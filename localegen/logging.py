"""Logger hierarchy shared by the localegen pipeline."""

from __future__ import annotations

import logging
import sys
from typing import TextIO

_ROOT = "localegen"

_FORMAT = "[localegen] %(levelname)s %(message)s"
# Verbose output names the emitting stage, e.g. `localegen.rewriter`.
_VERBOSE_FORMAT = "[localegen] %(levelname)s %(name)s: %(message)s"


def get_logger(component: str | None = None) -> logging.Logger:
    """Return the logger for one pipeline stage (``scanner``, ``catalog``...)."""
    if not component:
        return logging.getLogger(_ROOT)
    return logging.getLogger(f"{_ROOT}.{component}")


def configure_logging(*, verbose: bool = False, stream: TextIO | None = None) -> logging.Logger:
    """Send localegen records to ``stream`` (stderr by default).

    Standard output stays reserved for command results, so diagnostics never
    mix with the catalog summary printed by ``generate`` or ``locales``.
    Calling this again replaces the previous handler.
    """
    level = logging.DEBUG if verbose else logging.INFO
    logger = logging.getLogger(_ROOT)
    logger.setLevel(level)
    logger.propagate = False

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(_VERBOSE_FORMAT if verbose else _FORMAT))
    logger.addHandler(handler)
    return logger


__all__ = ["configure_logging", "get_logger"]
