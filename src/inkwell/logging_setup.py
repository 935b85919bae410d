"""Logging for Inkwell: one Rich handler on the root logger, installed once."""

import logging
import os

from rich.console import Console
from rich.logging import RichHandler

__all__ = ["console", "configure_logging"]

LOG_LEVEL_ENV = "INKWELL_LOG_LEVEL"

console = Console(stderr=True)


def _resolve_level(level_name: str | None) -> int:
    name = (level_name or os.getenv(LOG_LEVEL_ENV) or "INFO").upper()
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else logging.INFO


def _managed_handler(root: logging.Logger) -> RichHandler | None:
    for handler in root.handlers:
        if isinstance(handler, RichHandler) and getattr(handler, "_inkwell_managed", False):
            return handler
    return None


def configure_logging(level_name: str | None = None) -> None:
    """Route all records through a Rich handler on stderr.

    The level comes from ``level_name``, then ``INKWELL_LOG_LEVEL``, then INFO.
    Calling it again only changes the level.
    """
    root = logging.getLogger()
    if _managed_handler(root) is None:
        handler = RichHandler(console=console, rich_tracebacks=True, show_path=False, markup=False)
        handler.setFormatter(logging.Formatter("%(message)s"))
        handler._inkwell_managed = True
        root.handlers.clear()
        root.addHandler(handler)

    root.setLevel(_resolve_level(level_name))

    # httpx logs every request at INFO.
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.captureWarnings(True)
