"""Optional console logging for hosts embedding the chart model."""
from __future__ import annotations

import logging

from rich.logging import RichHandler

_ROOT_LOGGER = "sochart"


def configure_logging(level: int = logging.INFO) -> logging.Logger:
    """Attach a rich console handler to the package logger (once)."""
    logger = logging.getLogger(_ROOT_LOGGER)
    logger.setLevel(level)
    if not any(isinstance(handler, RichHandler) for handler in logger.handlers):
        handler = RichHandler(rich_tracebacks=True, show_path=False)
        handler.setFormatter(logging.Formatter("%(message)s"))
        logger.addHandler(handler)
    return logger
