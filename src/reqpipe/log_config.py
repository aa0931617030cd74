# reqpipe/log_config.py
"""Logging configuration for reqpipe using Loguru.

The pipeline, the credential adapter and the alert notifier all log through the
same Loguru ``logger``; this module gives applications one call to route that
output to a sink with a consistent format and level.
"""

import sys

from loguru import logger

LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)


def configure_logging(level: str = "INFO", sink=sys.stderr) -> int:
    """
    Configures the Loguru logger for reqpipe.

    Removes existing handlers and adds a single one with the given level and sink.

    Args:
        level: The minimum logging level (e.g., "DEBUG", "TRACE", "WARNING").
        sink: The output sink (e.g., sys.stderr, "reqpipe.log").

    Returns:
        The id of the handler that was added.
    """
    logger.remove()
    handler_id = logger.add(
        sink,
        level=level.upper(),
        format=LOG_FORMAT,
        colorize=sink is sys.stderr,
        backtrace=True,
        diagnose=False,
    )
    logger.debug(f"reqpipe logging configured with level={level.upper()}")
    return handler_id


def disable_logging() -> None:
    """Silences all reqpipe log output (Loguru's library-author convention)."""
    logger.disable("reqpipe")


def enable_logging() -> None:
    """Re-enables reqpipe log output after :func:`disable_logging`."""
    logger.enable("reqpipe")
