"""Universal debug/logging utility for vidshelf.

Provides debug(), info() and warn() functions for consistent logging.
Debug output is controlled by the VIDSHELF_DEBUG environment variable.
Logs to console; module loggers under ``vidshelf.*`` share this handler.
"""

import logging
import os
from typing import Optional

DEBUG_ON = os.getenv("VIDSHELF_DEBUG", "0") == "1"

_logger: Optional[logging.Logger] = None


def setup_logger(verbose: bool = False) -> logging.Logger:
    """Attach a console handler to the ``vidshelf`` logger (once).

    Args:
        verbose: Force DEBUG level even when VIDSHELF_DEBUG is unset.
    """
    global _logger
    if _logger is not None:
        if verbose:
            _logger.setLevel(logging.DEBUG)
        return _logger
    logger = logging.getLogger("vidshelf")
    if not logger.handlers:
        handler = logging.StreamHandler()
        formatter = logging.Formatter("[%(levelname)s] %(asctime)s %(name)s: %(message)s")
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if DEBUG_ON or verbose else logging.WARNING)
    _logger = logger
    return logger


def debug(msg: str) -> None:
    """Log a debug message if debugging is enabled."""
    if DEBUG_ON:
        setup_logger().debug(msg)


def info(msg: str) -> None:
    """Log an info message."""
    setup_logger().info(msg)


def warn(msg: str) -> None:
    """Log a warning message."""
    setup_logger().warning(msg)
