"""Logging setup shared by all tools."""

import logging
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

_configured = False


def setup_logger(name: Optional[str] = None, level: str = "INFO") -> logging.Logger:
    """
    Configure root logging with a rich handler.

    Args:
        name: Logger name to return
        level: Log level name (DEBUG, INFO, ...)

    Returns:
        Configured logger
    """
    global _configured

    root = logging.getLogger()
    root.setLevel(level.upper())

    if not _configured:
        handler = RichHandler(console=Console(stderr=True), rich_tracebacks=True, show_path=False)
        handler.setFormatter(logging.Formatter("%(message)s", datefmt="[%X]"))
        root.addHandler(handler)
        _configured = True

    return logging.getLogger(name)


def get_logger(name: str) -> logging.Logger:
    """Get a module logger."""
    return logging.getLogger(name)
