"""
clipsmith.logging - Centralized logging configuration.

Provides a simple logging setup with verbose and quiet modes.
"""

from __future__ import annotations

import logging

logger = logging.getLogger("clipsmith")


def configure_logging(verbose: bool = False, quiet: bool = False) -> None:
    """Configure logging for the clipsmith package.

    Args:
        verbose: If True, enable DEBUG level logging
        quiet: If True, only log errors (ignored when verbose is set)
    """
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.ERROR
    else:
        level = logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s",
    )
    logger.setLevel(level)
