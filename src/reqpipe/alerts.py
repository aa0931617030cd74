from collections.abc import Callable
from typing import Protocol, runtime_checkable

from .log_config import logger


@runtime_checkable
class AlertPresenter(Protocol):
    """Protocol for the primitive that shows a one-shot message to the user.

    Implementations must be synchronous; the notifier calls ``alert`` at most
    once per error category per suppression window.
    """

    def alert(self, title: str, message: str) -> None:
        """Shows ``message`` under ``title`` to the user."""
        ...


class LoggingAlertPresenter:
    """Implements AlertPresenter by writing the alert to the log.

    Used when no user interface is attached, e.g. in scripts and services.
    """

    def __init__(self, level: str = "WARNING"):
        self._level = level.upper()

    def alert(self, title: str, message: str) -> None:
        logger.log(self._level, f"[{title}] {message}")


class CallbackAlertPresenter:
    """Implements AlertPresenter by forwarding to a plain ``(title, message)`` callable."""

    def __init__(self, callback: Callable[[str, str], None]):
        self._callback = callback

    def alert(self, title: str, message: str) -> None:
        self._callback(title, message)
