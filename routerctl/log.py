"""Logging configuration for the routerctl package."""
import logging
import sys
from typing import Optional

from .config import Config

NOISY_LOGGERS = ("urllib3", "kubernetes")


def setup_logging(debug_mode: bool = False, level: Optional[str] = None) -> logging.Logger:
    """Configure root logging for a CLI run.

    Log lines go to stderr so that stdout only carries the operator summary
    (or the dry-run manifest stream).

    Args:
        debug_mode: Force DEBUG level and keep third-party loggers verbose
        level: Explicit level name, defaults to ``Config.LOG_LEVEL``

    Returns:
        The ``routerctl`` package logger
    """
    log_level = logging.DEBUG if debug_mode else getattr(
        logging, (level or Config.LOG_LEVEL).upper(), logging.INFO
    )

    root = logging.getLogger()
    root.setLevel(log_level)

    # Replace our handler so it always writes to the current stderr
    for existing in [h for h in root.handlers if getattr(h, "_routerctl", False)]:
        root.removeHandler(existing)
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(Config.LOG_FORMAT, datefmt='%Y-%m-%d %H:%M:%S'))
    handler._routerctl = True
    root.addHandler(handler)

    # Disable debug logging for noisy libraries
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.DEBUG if debug_mode else logging.WARNING)

    return logging.getLogger("routerctl")
