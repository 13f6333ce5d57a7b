"""Logging for ``spending_insights``.

Library modules log through ``get_logger("spending_insights.<module>")`` and
stay silent until a host opts in. The CLI opts in at startup with
:func:`configure_logging`, which installs one stderr handler on the
``spending_insights`` logger. Per-record enrichment and recurring decisions
are logged at DEBUG, one line per report at INFO, so
``SPENDING_INSIGHTS_LOG_LEVEL=DEBUG`` is the switch for tracing why a
transaction landed in a category.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import IO

PACKAGE_LOGGER = "spending_insights"
LEVEL_ENV_VAR = "SPENDING_INSIGHTS_LOG_LEVEL"
DEFAULT_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"

_CONFIGURED = False


def _parse_level(level: int | str | None) -> int:
    """Resolve ``level`` (int, numeric string or name) to a logging level.

    ``None`` defers to :data:`LEVEL_ENV_VAR`. Unknown names resolve to INFO.
    """

    if level is None:
        level = os.getenv(LEVEL_ENV_VAR) or logging.INFO
    if isinstance(level, int):
        return level
    name = level.strip().upper()
    if name.isdigit():
        return int(name)
    return logging.getLevelNamesMapping().get(name, logging.INFO)


def _package_logger() -> logging.Logger:
    return logging.getLogger(PACKAGE_LOGGER)


def configure_logging(
    level: int | str | None = None,
    *,
    fmt: str | None = None,
    stream: IO[str] | None = None,
) -> None:
    """Send package log records to ``stream`` (stderr by default).

    Only the first call in a process has an effect. Records stop propagating
    to the root logger so a host that also configures root logging does not
    print them twice.
    """

    global _CONFIGURED
    if _CONFIGURED:
        return

    resolved = _parse_level(level)
    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.setFormatter(logging.Formatter(fmt or DEFAULT_FORMAT))
    handler.setLevel(resolved)

    logger = _package_logger()
    for silent in [h for h in logger.handlers if isinstance(h, logging.NullHandler)]:
        logger.removeHandler(silent)
    logger.addHandler(handler)
    logger.setLevel(resolved)
    logger.propagate = False
    _CONFIGURED = True


def get_logger(name: str) -> logging.Logger:
    """Return ``logging.getLogger(name)``; the package logger gets a
    ``NullHandler`` while no host configuration is in place."""

    pkg = _package_logger()
    if not _CONFIGURED and not pkg.handlers:
        pkg.addHandler(logging.NullHandler())
    return logging.getLogger(name)


__all__ = ["DEFAULT_FORMAT", "LEVEL_ENV_VAR", "PACKAGE_LOGGER", "configure_logging", "get_logger"]
