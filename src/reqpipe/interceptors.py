"""Interceptor chains and the interceptors every client installs by default.

A chain is an ordered list of plain callables (request side) or
``ResponseInterceptor`` pairs (response side). Entries run in registration
order; ``use`` returns a handle that ``eject`` accepts, and ejecting keeps the
order of the remaining entries intact.
"""

import inspect
from collections.abc import Callable, Iterator
from typing import Any, Generic, TypeVar

from .credentials import CredentialStore
from .exceptions import ConfigurationError
from .log_config import logger
from .notifier import ErrorAlertNotifier, ErrorKey, classify_error
from .types import (
    HttpResponse,
    RequestConfig,
    RequestInterceptor,
    ResponseInterceptor,
    merge_headers,
)

E = TypeVar("E")


async def _resolve(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


def _interceptor_name(interceptor: Any) -> str:
    return getattr(interceptor, "__name__", type(interceptor).__name__)


class InterceptorChain(Generic[E]):
    """Ordered, append-only list of interceptors with handle-based removal."""

    def __init__(self) -> None:
        self._entries: dict[int, E] = {}
        self._next_handle = 0

    def use(self, interceptor: E) -> int:
        """Appends ``interceptor`` and returns a handle for :meth:`eject`."""
        handle = self._next_handle
        self._next_handle += 1
        self._entries[handle] = interceptor
        return handle

    def eject(self, handle: int) -> bool:
        """Removes the interceptor registered under ``handle``.

        Returns:
            bool: True if an entry was removed.
        """
        return self._entries.pop(handle, None) is not None

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[E]:
        return iter(list(self._entries.values()))


class RequestInterceptorChain(InterceptorChain[RequestInterceptor]):
    """Request-side chain: each stage's config feeds the next."""

    async def run(self, config: RequestConfig) -> RequestConfig:
        """Runs every stage over ``config`` sequentially, awaiting async stages.

        A stage returning None is taken to have mutated ``config`` in place.

        Raises:
            ConfigurationError: If a stage returns something other than a
                RequestConfig or None.
        """
        current = config
        for interceptor in self:
            result = await _resolve(interceptor(current))
            if result is None:
                continue
            if not isinstance(result, RequestConfig):
                raise ConfigurationError(
                    f"Request interceptor {_interceptor_name(interceptor)} returned "
                    f"{type(result).__name__}, expected RequestConfig."
                )
            current = result
        return current


class ResponseInterceptorChain(InterceptorChain[ResponseInterceptor]):
    """Response-side chain carrying either a success value or an error."""

    async def run(
        self,
        response: HttpResponse[Any] | None = None,
        error: Exception | None = None,
    ) -> Any:
        """Runs the chain over a response or an error.

        While the outcome is a success, ``on_success`` stages transform it; while
        it is an error, ``on_error`` stages see it. A stage that raises turns the
        outcome into that error; an ``on_error`` stage that returns turns it
        back into a success carrying the returned value.

        Args:
            response: The response of a successful call.
            error: The exception of a failed call. Takes precedence if both given.

        Returns:
            The final success value.

        Raises:
            Exception: The final error, if the chain ends in failure.
        """
        value: Any = response
        current_error = error
        for interceptor in self:
            try:
                if current_error is not None:
                    if interceptor.on_error is not None:
                        value = await _resolve(interceptor.on_error(current_error))
                        current_error = None
                elif interceptor.on_success is not None:
                    value = await _resolve(interceptor.on_success(value))
            except Exception as e:
                current_error = e
        if current_error is not None:
            raise current_error
        return value


class BearerTokenInterceptor:
    """Request interceptor attaching ``Authorization: Bearer <token>``.

    The token is read from the credential store on every call and the header is
    left untouched when no token is stored.
    """

    def __init__(self, credentials: CredentialStore):
        self._credentials = credentials

    async def __call__(self, config: RequestConfig) -> RequestConfig:
        token = await self._credentials.get()
        if token:
            logger.trace("Attaching bearer token to request.")
            config.headers = merge_headers(
                config.headers, {"Authorization": f"Bearer {token}"}
            )
        return config


class ErrorAlertHandler:
    """``on_error`` handler that alerts the user, then re-raises.

    The error is classified; an ``unauthorized`` error also clears the stored
    token. The alert goes through the shared notifier unless alerts are off for
    the client (``is_enabled``) or for the failing request. The error itself is
    always raised again so the caller sees it.
    """

    def __init__(
        self,
        notifier: ErrorAlertNotifier,
        credentials: CredentialStore,
        is_enabled: Callable[[], bool] = lambda: True,
    ):
        self._notifier = notifier
        self._credentials = credentials
        self._is_enabled = is_enabled

    def _should_alert(self, error: Exception) -> bool:
        if not self._is_enabled():
            return False
        config = getattr(error, "config", None)
        return not (isinstance(config, RequestConfig) and config.suppress_error_alert)

    async def __call__(self, error: Exception) -> Any:
        logger.error(f"Request error: {error}")
        category = classify_error(error)
        if self._should_alert(error):
            self._notifier.notify(category.key, category.title, category.message)
        if category.key is ErrorKey.UNAUTHORIZED:
            await self._credentials.remove()
        raise error


def default_response_interceptor(
    notifier: ErrorAlertNotifier,
    credentials: CredentialStore,
    is_enabled: Callable[[], bool] = lambda: True,
) -> ResponseInterceptor:
    """Builds the response interceptor every client installs at construction."""
    return ResponseInterceptor(
        on_success=None,
        on_error=ErrorAlertHandler(notifier, credentials, is_enabled),
    )
