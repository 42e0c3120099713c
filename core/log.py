"""Logging setup for huestatus (loguru)."""

import sys
from pathlib import Path

from loguru import logger


def setup_logging(verbose: bool = False, log_file: Path | None = None):
    """Configure loguru sinks.

    Args:
        verbose: Show debug output (requests, retries, poll ticks) on stderr
        log_file: Optional file receiving everything at DEBUG level
    """
    # Remove default handler
    logger.remove()

    logger.add(
        sys.stderr,
        level="DEBUG" if verbose else "WARNING",
        format="<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | {message}",
    )

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        logger.add(str(log_file), level="DEBUG", rotation="5 MB", retention=3)
