"""Loguru configuration for the CLI."""

import sys

from loguru import logger


def configure_logging(verbose: bool = False) -> None:
    """Send diagnostic logs to stderr: DEBUG when verbose, WARNING otherwise."""
    logger.remove()
    logger.add(
        sys.stderr,
        level="DEBUG" if verbose else "WARNING",
        format="<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | {message}",
    )
