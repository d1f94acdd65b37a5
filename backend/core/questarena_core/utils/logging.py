"""Shared logging helpers for the quest engine.

Every module calls ``get_logger(__name__)`` and receives a logger with the
project defaults. Beyond the usual level methods the logger exposes
:meth:`EngineLogger.structured`, used for state transitions so that quest
lifecycle entries share one greppable ``event=<name> {fields}`` shape.
"""

from __future__ import annotations

import logging
from typing import Any, cast

DEFAULT_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"
"""Default format applied to engine loggers."""

DEFAULT_LEVEL = logging.INFO
"""Default logging level for engine loggers."""

_LOGGER_CLASS_CONFIGURED = False
_LOGGING_CONFIGURED = False


def _ensure_logging_configured() -> None:
    """Apply project defaults the first time logging is requested."""

    global _LOGGING_CONFIGURED
    if _LOGGING_CONFIGURED:
        return
    logging.basicConfig(level=DEFAULT_LEVEL, format=DEFAULT_FORMAT)
    _LOGGING_CONFIGURED = True


class EngineLogger(logging.Logger):
    """Logger with a helper for structured state-transition entries."""

    def structured(self, event: str, **fields: Any) -> None:
        """Emit a structured log entry.

        Parameters
        ----------
        event:
            Identifier for the transition being logged (``quest_created``).
        **fields:
            Additional context to attach to the entry.
        """

        if fields:
            self.info("event=%s %s", event, fields)
        else:
            self.info("event=%s", event)


def _ensure_logger_class() -> None:
    global _LOGGER_CLASS_CONFIGURED
    if _LOGGER_CLASS_CONFIGURED:
        return
    logging.setLoggerClass(EngineLogger)
    _LOGGER_CLASS_CONFIGURED = True


def get_logger(name: str) -> EngineLogger:
    """Return a module-scoped :class:`EngineLogger` with default configuration."""

    _ensure_logger_class()
    _ensure_logging_configured()
    logger = logging.getLogger(name)
    if not isinstance(logger, EngineLogger):
        # Upgrade previously-created standard loggers in-place.
        logger.__class__ = EngineLogger
    return cast(EngineLogger, logger)


__all__ = ["DEFAULT_FORMAT", "EngineLogger", "get_logger"]
