"""Logging configuration for otel-cicd."""

from __future__ import annotations
import logging
import os
from rich.console import Console
from rich.logging import RichHandler


_ROOT_LOGGER = "otel_cicd"
_DEFAULT_LEVEL = "INFO"


def _resolve_level(level: str | None) -> int:
    candidate = (level or os.environ.get("LOG_LEVEL") or _DEFAULT_LEVEL).upper()
    resolved = logging.getLevelName(candidate)
    if isinstance(resolved, int):
        return resolved
    return logging.INFO


def configure_logging(
    level: str | None = None, *, console: Console | None = None
) -> None:
    """Attach a rich handler to the package logger at the requested level."""
    logger = logging.getLogger(_ROOT_LOGGER)
    logger.setLevel(_resolve_level(level))
    for handler in list(logger.handlers):
        if isinstance(handler, RichHandler):
            logger.removeHandler(handler)
    logger.addHandler(
        RichHandler(
            console=console or Console(stderr=True),
            show_path=False,
            rich_tracebacks=False,
        )
    )


__all__ = ["configure_logging"]
