"""Module-level shortcuts bound to one process-wide default client.

Applications that need a single client can call ``reqpipe.api.get(...)`` and
friends directly. The client is built lazily from the environment settings the
first time it is needed; ``reset_default_client`` drops it (tests use this).
"""

from functools import lru_cache
from typing import Any

from .client import HttpClient
from .config import get_settings
from .notifier import ErrorAlertNotifier
from .types import FileContent, HttpResponse


@lru_cache
def get_default_notifier() -> ErrorAlertNotifier:
    """Returns the notifier shared by the default client."""
    return ErrorAlertNotifier(window_seconds=get_settings().error_suppression_seconds)


@lru_cache
def get_default_client() -> HttpClient:
    """
    Provides the process-wide default HttpClient.

    The instance is created on first use from ``get_settings()`` and cached.

    Returns:
        HttpClient: The default client.
    """
    return HttpClient(get_settings(), notifier=get_default_notifier())


def reset_default_client() -> None:
    """Forgets the cached default client and notifier.

    The old client is not closed; await its ``aclose()`` first if it was used.
    """
    get_default_client.cache_clear()
    get_default_notifier.cache_clear()


async def request(url: str, **options: Any) -> HttpResponse[Any] | Any:
    return await get_default_client().request(url, **options)


async def get(url: str, **options: Any) -> HttpResponse[Any] | Any:
    return await get_default_client().get(url, **options)


async def post(url: str, data: Any = None, **options: Any) -> HttpResponse[Any] | Any:
    return await get_default_client().post(url, data, **options)


async def put(url: str, data: Any = None, **options: Any) -> HttpResponse[Any] | Any:
    return await get_default_client().put(url, data, **options)


async def delete(url: str, **options: Any) -> HttpResponse[Any] | Any:
    return await get_default_client().delete(url, **options)


async def patch(url: str, data: Any = None, **options: Any) -> HttpResponse[Any] | Any:
    return await get_default_client().patch(url, data, **options)


async def upload(url: str, file: FileContent, **options: Any) -> HttpResponse[Any] | Any:
    return await get_default_client().upload(url, file, **options)


async def set_token(token: str) -> None:
    await get_default_client().set_token(token)


async def get_token() -> str | None:
    return await get_default_client().get_token()


async def clear_token() -> None:
    await get_default_client().clear_token()


def clear_error_alerts() -> None:
    get_default_client().clear_error_alerts()


def set_show_error_alert(show: bool) -> None:
    get_default_client().set_show_error_alert(show)
