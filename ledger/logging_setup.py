"""Logging configuration for the ``ledger`` package.

Library modules only call ``get_logger``; the CLI calls ``configure_logging``
once at startup to send the package logs to stderr.
"""

from __future__ import annotations

import logging
import os
import sys

_PKG_LOGGER_NAME = "ledger"
_CONFIGURED = False


def _level_from(value: str | None) -> int | None:
    if not value:
        return None
    value = value.strip().upper()
    if value.isdigit():
        return int(value)
    numeric = getattr(logging, value, None)
    return numeric if isinstance(numeric, int) else None


def resolve_level(level: str | None = None) -> int:
    """Level from the argument, then ``LEDGER_LOG_LEVEL``, then INFO."""
    for candidate in (level, os.getenv("LEDGER_LOG_LEVEL")):
        resolved = _level_from(candidate)
        if resolved is not None:
            return resolved
    return logging.INFO


def configure_logging(level: str | None = None) -> None:
    global _CONFIGURED
    if _CONFIGURED:
        return

    logger = logging.getLogger(_PKG_LOGGER_NAME)
    for handler in list(logger.handlers):
        if isinstance(handler, logging.NullHandler):
            logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("%(asctime)s %(name)s %(levelname)s %(message)s"))
    logger.setLevel(resolve_level(level))
    logger.addHandler(handler)
    logger.propagate = False

    _CONFIGURED = True


def get_logger(name: str) -> logging.Logger:
    pkg_logger = logging.getLogger(_PKG_LOGGER_NAME)
    if not _CONFIGURED and not pkg_logger.handlers:
        pkg_logger.addHandler(logging.NullHandler())
    return logging.getLogger(name)
