"""Custom exception classes for the reqpipe library."""

from typing import TYPE_CHECKING

import httpx

if TYPE_CHECKING:
    from .types import RequestConfig


class ReqpipeError(Exception):
    """Base exception class for all reqpipe errors."""

    def __init__(
        self,
        message: str,
        *,
        response: httpx.Response | None = None,
        request: httpx.Request | None = None,
        config: "RequestConfig | None" = None,
    ):
        """Initializes the base exception.

        Args:
            message: The error message.
            response: Optional httpx.Response object associated with the error.
            request: Optional httpx.Request object associated with the error.
            config: Optional RequestConfig of the call that failed.
        """
        super().__init__(message)
        self.message = message
        self.response = response
        self.request = request
        self.config = config

    def __str__(self) -> str:
        if self.response is not None:
            url_info = self.config.url if self.config is not None else "N/A"
            if isinstance(self.request, httpx.Request):
                url_info = str(self.request.url)
            return (
                f"{self.message} (Status: {self.response.status_code}, URL: {url_info})"
            )
        if isinstance(self.request, httpx.Request):
            return f"{self.message} (URL: {self.request.url})"
        if self.config is not None:
            return f"{self.message} (URL: {self.config.url})"
        return self.message


class TimeoutError(ReqpipeError):
    """Raised when a request does not settle within its ``timeout_ms``."""

    def __init__(
        self,
        message: str = "Request timeout",
        *,
        request: httpx.Request | None = None,
        config: "RequestConfig | None" = None,
    ):
        super().__init__(message, request=request, response=None, config=config)


class HttpStatusError(ReqpipeError):
    """Represents a completed response whose status is outside the 2xx range.

    The body is left unread; the raw response is available as ``response``.
    """

    def __init__(
        self,
        status: int,
        message: str | None = None,
        *,
        response: httpx.Response | None = None,
        request: httpx.Request | None = None,
        config: "RequestConfig | None" = None,
    ):
        """Initializes the HttpStatusError.

        Args:
            status: The numeric HTTP status code.
            message: Optional error message, defaults to ``HTTP <status>: <reason>``.
            response: The httpx.Response that carried the status.
            request: The httpx.Request that was sent.
            config: The RequestConfig that produced the response.
        """
        if message is None:
            reason = response.reason_phrase if response is not None else ""
            message = f"HTTP {status}: {reason}".rstrip()
        super().__init__(message, response=response, request=request, config=config)
        self.status = status


class NetworkError(ReqpipeError):
    """Represents a transport-level failure with no HTTP status.

    Covers DNS resolution failures, refused connections and any other error
    raised before a response was received.
    """

    def __init__(
        self,
        message: str,
        *,
        request: httpx.Request | None = None,
        response: httpx.Response | None = None,
        config: "RequestConfig | None" = None,
    ):
        super().__init__(message, request=request, response=response, config=config)


class ParseError(NetworkError):
    """Raised when a response body cannot be decoded as its declared content type.

    Treated like any other network failure by alert classification.
    """


class ConfigurationError(ReqpipeError):
    """Represents an error in the library's configuration."""

    def __init__(self, message: str):
        super().__init__(message, response=None)


class StorageError(ReqpipeError):
    """Raised by a key/value store when it cannot read or write its backing data."""

    def __init__(self, message: str, *, key: str | None = None):
        super().__init__(message)
        self.key = key


def status_of(error: BaseException) -> int | None:
    """Returns the HTTP status carried by ``error``, if any."""
    status = getattr(error, "status", None)
    if status is None:
        response = getattr(error, "response", None)
        status = getattr(response, "status_code", None)
    return status if isinstance(status, int) else None
