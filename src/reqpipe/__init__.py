"""reqpipe: an asynchronous HTTP client built around interceptor chains.

Every request passes through the same pipeline: request interceptors (bearer
token injection by default), a transport call raced against a timeout, response
normalisation into ``HttpResponse`` or a typed exception, and response/error
interceptors (deduplicated user alerts by default). Errors always reach the
caller; nothing is retried.
"""

__version__ = "0.1.0"

from . import (
    alerts,
    api,
    client,
    config,
    credentials,
    exceptions,
    interceptors,
    log_config,
    notifier,
    storage,
    types,
)
from .client import HttpClient
from .config import ClientSettings, get_settings
from .exceptions import (
    ConfigurationError,
    HttpStatusError,
    NetworkError,
    ParseError,
    ReqpipeError,
    StorageError,
    TimeoutError,
)
from .notifier import ErrorAlertNotifier, ErrorKey, classify_error
from .types import FormData, HttpResponse, RequestConfig, ResponseInterceptor

__all__ = [
    "__version__",
    "alerts",
    "api",
    "client",
    "config",
    "credentials",
    "exceptions",
    "interceptors",
    "log_config",
    "notifier",
    "storage",
    "types",
    "ClientSettings",
    "ConfigurationError",
    "ErrorAlertNotifier",
    "ErrorKey",
    "FormData",
    "HttpClient",
    "HttpResponse",
    "HttpStatusError",
    "NetworkError",
    "ParseError",
    "RequestConfig",
    "ReqpipeError",
    "ResponseInterceptor",
    "StorageError",
    "TimeoutError",
    "classify_error",
    "get_settings",
]
