"""
Common utilities for the flake detector.

This module provides logging setup using loguru.
"""

import sys

from loguru import logger
from rich.console import Console
from rich.logging import RichHandler


def setup_logging(
    level: str = "INFO",
    format_string: str | None = None,
    use_rich: bool = False,
) -> None:
    """
    Configure logging using loguru.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format_string: Custom format string (default: loguru's default with timestamp)
        use_rich: Whether to route records through rich's handler for terminal output
    """
    # Remove default logger
    logger.remove()

    if format_string is None:
        format_string = (
            "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
            "<level>{level: <8}</level> | "
            "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
            "<level>{message}</level>"
        )

    if use_rich:
        # Log to stderr so rendered tables on stdout stay clean
        console = Console(stderr=True, force_terminal=True, width=120)
        logger.add(
            RichHandler(
                console=console,
                rich_tracebacks=True,
                markup=False,  # URLs and query strings may contain brackets
                show_time=False,
                show_path=False,
            ),
            format="{message}",
            level=level.upper(),
        )
    else:
        logger.add(
            sys.stdout,
            format=format_string,
            level=level.upper(),
            colorize=True,
        )
