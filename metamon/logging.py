"""Logging helpers for metamon commands and the runtime."""

from __future__ import annotations

import logging

_LOGGER_NAME = "metamon"
_HANDLER_FLAG = "_metamon_handler"


def configure_logging(level: str | int = "INFO") -> logging.Logger:
    """Attach a single console handler to the ``metamon`` logger hierarchy.

    Calling this repeatedly replaces the previously installed handler so CLI
    invocations in the same process do not duplicate output.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(level)

    for handler in list(logger.handlers):
        if getattr(handler, _HANDLER_FLAG, False):
            logger.removeHandler(handler)

    handler = logging.StreamHandler()
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter("[metamon] %(levelname)s %(message)s"))
    setattr(handler, _HANDLER_FLAG, True)
    logger.addHandler(handler)
    return logger


__all__ = ["configure_logging"]
