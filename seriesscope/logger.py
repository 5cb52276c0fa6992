"""
Centralized logging for SeriesScope.

Usage:
    from seriesscope.logger import get_logger

    logger = get_logger(__name__)
    logger.info("Loaded %d rows", rows)
"""

import logging
import sys

_configured = False


def setup_logging(level: str = "INFO") -> None:
    """Configure root logging once (called from main.py).

    Subsequent calls are no-ops.
    """
    global _configured
    if _configured:
        return

    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
        stream=sys.stdout,
        force=True,
    )
    _configured = True


def get_logger(name: str) -> logging.Logger:
    """Return a logger for a module (typically ``__name__``)."""
    return logging.getLogger(name)
