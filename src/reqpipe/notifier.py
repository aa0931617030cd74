"""Error classification and deduplicated user alerts.

Many requests can fail for the same reason at once (the network drops, a
session expires). ``ErrorAlertNotifier`` makes sure the user sees one alert per
error category within a short suppression window while every failed call still
raises to its own caller.
"""

import asyncio
import builtins
import time
from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum

from .alerts import AlertPresenter, LoggingAlertPresenter
from .config import DEFAULT_ERROR_SUPPRESSION_SECONDS
from .exceptions import ConfigurationError, TimeoutError, status_of
from .log_config import logger

TIMEOUT_MESSAGE = "Request timeout"
ALERT_TITLE = "Alert"


class ErrorKey(StrEnum):
    """The fixed set of categories user-facing alerts are grouped by."""

    TIMEOUT = "timeout"
    UNAUTHORIZED = "unauthorized"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"
    SERVER_ERROR = "server_error"
    NETWORK_ERROR = "network_error"


@dataclass(frozen=True)
class ErrorCategory:
    """Result of classifying an error: dedup key plus what to show the user."""

    key: ErrorKey
    title: str
    message: str


@dataclass(frozen=True)
class ErrorRecord:
    """Marks ``key`` as alerted; repeats are dropped until ``suppressed_until``."""

    key: str
    suppressed_until: float


def classify_error(error: BaseException) -> ErrorCategory:
    """Maps a raw error to its alert category.

    Precedence: timeout first, then the exact statuses 401, 403, 404 and 500,
    then any other status >= 500, then the network fallback which also covers
    undecodable bodies and anything unrecognised.

    Args:
        error: The exception raised by the pipeline or an interceptor.

    Returns:
        ErrorCategory: The key, title and message for the alert.
    """
    message = getattr(error, "message", None) or str(error)
    if isinstance(error, TimeoutError | builtins.TimeoutError) or message == TIMEOUT_MESSAGE:
        return ErrorCategory(
            ErrorKey.TIMEOUT,
            ALERT_TITLE,
            "Network request timeout, please check your network connection",
        )

    status = status_of(error)
    if status == 401:
        return ErrorCategory(
            ErrorKey.UNAUTHORIZED, ALERT_TITLE, "Login has expired, please log in again"
        )
    if status == 403:
        return ErrorCategory(
            ErrorKey.FORBIDDEN, ALERT_TITLE, "No permission to access this resource"
        )
    if status == 404:
        return ErrorCategory(
            ErrorKey.NOT_FOUND, ALERT_TITLE, "The requested resource does not exist"
        )
    if status == 500:
        return ErrorCategory(ErrorKey.SERVER_ERROR, ALERT_TITLE, "Internal server error")
    if status is not None and status >= 500:
        return ErrorCategory(
            ErrorKey.SERVER_ERROR, ALERT_TITLE, "Server exception, please try again later"
        )
    return ErrorCategory(
        ErrorKey.NETWORK_ERROR, ALERT_TITLE, "Network request failed, please try again later"
    )


class ErrorAlertNotifier:
    """Shows at most one alert per error category within a suppression window.

    One instance is meant to be shared by every client in a process; build it
    once and pass it to each ``HttpClient``. ``notify`` is synchronous, so two
    requests failing concurrently on the same event loop can never both pass the
    suppression check.

    Expiry is tracked twice: as a deadline on the ``ErrorRecord`` (checked on
    every lookup, so it works with an injected clock and outside an event loop)
    and as a ``loop.call_later`` timer that drops the record when a loop is
    running.

    Attributes:
        _presenter: The collaborator that actually shows the alert.
        _window: Suppression window in seconds.
        _clock: Monotonic time source.
        _records: Active suppression records by key.
        _timers: Pending expiry timers by key.
    """

    def __init__(
        self,
        presenter: AlertPresenter | None = None,
        *,
        window_seconds: float = DEFAULT_ERROR_SUPPRESSION_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        if window_seconds <= 0:
            raise ConfigurationError("ErrorAlertNotifier requires a positive 'window_seconds'.")
        self._presenter: AlertPresenter = presenter or LoggingAlertPresenter()
        self._window = window_seconds
        self._clock = clock
        self._records: dict[str, ErrorRecord] = {}
        self._timers: dict[str, asyncio.TimerHandle] = {}
        logger.debug(
            f"ErrorAlertNotifier initialized with a {window_seconds}s window, "
            f"presenter {type(self._presenter).__name__}."
        )

    @property
    def window_seconds(self) -> float:
        return self._window

    def active_keys(self) -> list[str]:
        """Returns the keys currently suppressed."""
        return [key for key in list(self._records) if self.is_suppressed(key)]

    def is_suppressed(self, key: str) -> bool:
        record = self._records.get(key)
        if record is None:
            return False
        if record.suppressed_until <= self._clock():
            self._expire(key)
            return False
        return True

    def notify(self, key: str, title: str, message: str) -> bool:
        """Shows the alert unless ``key`` was already alerted within the window.

        Args:
            key: The error category.
            title: Alert title.
            message: Alert body.

        Returns:
            bool: True if the alert was shown, False if it was suppressed.
        """
        if self.is_suppressed(key):
            logger.debug(f"Alert for '{key}' suppressed; already shown in this window.")
            return False

        self._records[key] = ErrorRecord(key, self._clock() + self._window)
        self._schedule_expiry(key)

        try:
            self._presenter.alert(title, message)
        except Exception as e:
            logger.error(f"Alert presenter failed for '{key}': {e}")
        return True

    def notify_error(self, error: BaseException) -> ErrorCategory:
        """Classifies ``error`` and notifies for its category."""
        category = classify_error(error)
        self.notify(category.key, category.title, category.message)
        return category

    def clear(self, key: str) -> None:
        """Drops the suppression for ``key`` immediately."""
        self._records.pop(key, None)
        timer = self._timers.pop(key, None)
        if timer is not None:
            timer.cancel()

    def clear_all(self) -> None:
        """Drops every suppression and cancels all pending expiry timers."""
        self._records.clear()
        for timer in self._timers.values():
            timer.cancel()
        self._timers.clear()

    def _schedule_expiry(self, key: str) -> None:
        existing = self._timers.pop(key, None)
        if existing is not None:
            existing.cancel()
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return
        self._timers[key] = loop.call_later(self._window, self._expire, key)

    def _expire(self, key: str) -> None:
        self.clear(key)
        logger.trace(f"Alert suppression for '{key}' expired.")
