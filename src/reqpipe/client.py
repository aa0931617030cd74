"""Asynchronous HTTP client with interceptor chains for reqpipe.

This module provides the HttpClient class. Every call goes through the same
pipeline: build a RequestConfig, run the request interceptors, race the
transport call against the request timeout, normalise the outcome into an
HttpResponse or an exception, and run the response interceptors over it.
"""

import asyncio
import json
import re
import ssl
from collections.abc import Mapping
from typing import Any, Self

import certifi
import httpx
from pydantic import BaseModel

from .config import ClientSettings, get_settings
from .credentials import CredentialStore
from .exceptions import (
    HttpStatusError,
    NetworkError,
    ParseError,
    ReqpipeError,
    TimeoutError,
)
from .interceptors import (
    BearerTokenInterceptor,
    RequestInterceptorChain,
    ResponseInterceptorChain,
    default_response_interceptor,
)
from .log_config import logger
from .notifier import TIMEOUT_MESSAGE, ErrorAlertNotifier
from .storage import InMemoryKeyValueStore, KeyValueStore
from .types import (
    FileContent,
    FormData,
    HttpMethod,
    HttpResponse,
    RequestConfig,
    RequestInterceptor,
    ResponseInterceptor,
    find_header,
    merge_headers,
    strip_header,
)

_SCHEME_RE = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.-]*://")


def is_json_content_type(content_type: str | None) -> bool:
    """True for ``application/json`` and ``+json`` structured-syntax media types."""
    if not content_type:
        return False
    media_type = content_type.split(";", 1)[0].strip().lower()
    return media_type == "application/json" or media_type.endswith("+json")


def _discard_outcome(task: "asyncio.Task[Any]") -> None:
    # Marks a late send result as retrieved so asyncio does not log it.
    if not task.cancelled():
        task.exception()


class HttpClient:
    """Asynchronous HTTP client running every call through interceptor chains.

    The client installs two interceptors at construction: one attaching the
    stored bearer token to each request, and one alerting the user (through the
    shared ErrorAlertNotifier) when a call fails. Interceptors added later run
    after these, in registration order.

    Key features:
    - Base URL resolution and default header merging
    - JSON body serialization and multipart uploads
    - Timeout enforced by racing the transport call against a timer
    - JSON or text response decoding based on the content type
    - Error taxonomy (timeout, HTTP status, network) with deduplicated alerts
    - Read-through bearer token from a pluggable key/value store

    Attributes:
        _settings: This client's own copy of the settings.
        _credentials: Adapter over the store holding the bearer token.
        _notifier: Shared error alert notifier.
        _request_interceptors: Chain run over each RequestConfig.
        _response_interceptors: Chain run over each response or error.
        _http_client: The underlying httpx.AsyncClient used as transport.
        _should_close_client: Flag indicating if this instance owns the _http_client.
    """

    def __init__(
        self,
        settings: ClientSettings | None = None,
        *,
        base_url: str | None = None,
        timeout_ms: int | None = None,
        headers: Mapping[str, str] | None = None,
        show_error_alert: bool | None = None,
        storage: KeyValueStore | None = None,
        notifier: ErrorAlertNotifier | None = None,
        http_client: httpx.AsyncClient | None = None,
    ):
        """Initialize the HttpClient.

        Args:
            settings: Base settings; defaults to the cached environment settings.
                The client always works on its own copy.
            base_url: Overrides ``settings.base_url``.
            timeout_ms: Overrides ``settings.timeout_ms``.
            headers: Merged over ``settings.default_headers``.
            show_error_alert: Overrides ``settings.show_error_alert``.
            storage: Key/value store holding the bearer token. Defaults to an
                in-memory store.
            notifier: Error alert notifier, normally one instance shared by the
                whole application. Defaults to a new instance.
            http_client: Optional pre-configured httpx.AsyncClient instance.
        """
        base_settings = settings or get_settings()
        overrides: dict[str, Any] = {}
        if base_url is not None:
            overrides["base_url"] = base_url
        if timeout_ms:
            overrides["timeout_ms"] = timeout_ms
        if headers:
            overrides["default_headers"] = merge_headers(
                base_settings.default_headers, headers
            )
        if show_error_alert is not None:
            overrides["show_error_alert"] = show_error_alert
        self._settings: ClientSettings = base_settings.model_copy(
            update=overrides, deep=True
        )

        self._credentials = CredentialStore(
            storage or InMemoryKeyValueStore(), key=self._settings.token_key
        )
        self._notifier = notifier or ErrorAlertNotifier(
            window_seconds=self._settings.error_suppression_seconds
        )

        self._request_interceptors = RequestInterceptorChain()
        self._response_interceptors = ResponseInterceptorChain()
        self._setup_default_interceptors()

        self._should_close_client = http_client is None
        self._http_client = http_client or self._create_default_http_client()

        logger.debug(
            f"HttpClient initialized. Base URL: '{self._settings.base_url}', "
            f"timeout: {self._settings.timeout_ms}ms."
        )

    def _setup_default_interceptors(self) -> None:
        self.add_request_interceptor(BearerTokenInterceptor(self._credentials))
        self.add_response_interceptor(
            default_response_interceptor(
                self._notifier,
                self._credentials,
                is_enabled=lambda: self._settings.show_error_alert,
            )
        )

    def _create_default_http_client(self) -> httpx.AsyncClient:
        """Create a default httpx.AsyncClient.

        Timeouts are enforced by the pipeline itself, so the transport gets none.

        Returns:
            httpx.AsyncClient: HTTP client with certifi SSL verification that
                follows redirects.
        """
        try:
            ssl_context = ssl.create_default_context(cafile=certifi.where())
            verify_ssl: ssl.SSLContext | bool = ssl_context
            logger.debug("Using certifi SSL context.")
        except Exception:
            verify_ssl = True
            logger.warning(
                "certifi not found or failed to load. Using default SSL verification."
            )

        return httpx.AsyncClient(verify=verify_ssl, timeout=None, follow_redirects=True)

    # --- Accessors ---

    @property
    def settings(self) -> ClientSettings:
        return self._settings

    @property
    def notifier(self) -> ErrorAlertNotifier:
        return self._notifier

    @property
    def credentials(self) -> CredentialStore:
        return self._credentials

    @property
    def request_interceptors(self) -> RequestInterceptorChain:
        return self._request_interceptors

    @property
    def response_interceptors(self) -> ResponseInterceptorChain:
        return self._response_interceptors

    def add_request_interceptor(self, interceptor: RequestInterceptor) -> int:
        """Appends a request interceptor; returns its handle in the chain."""
        return self._request_interceptors.use(interceptor)

    def add_response_interceptor(self, interceptor: ResponseInterceptor) -> int:
        """Appends a response interceptor; returns its handle in the chain."""
        return self._response_interceptors.use(interceptor)

    # --- Request building ---

    def _create_url(self, url: str) -> str:
        if _SCHEME_RE.match(url) or not self._settings.base_url:
            return url
        return f"{self._settings.base_url.rstrip('/')}/{url.lstrip('/')}"

    def _create_request_config(
        self,
        url: str,
        *,
        method: str,
        headers: Mapping[str, str] | None,
        data: Any,
        timeout_ms: int | None,
        suppress_error_alert: bool,
    ) -> RequestConfig:
        """Resolve URL, headers and body for one call.

        Raises:
            ReqpipeError: If a structured ``data`` value cannot be JSON-encoded.
        """
        merged_headers = merge_headers(
            {"User-Agent": self._settings.user_agent}, self._settings.default_headers
        )
        merged_headers = merge_headers(merged_headers, headers)

        body: str | bytes | FormData | None = None
        if data is not None:
            if isinstance(data, FormData):
                body = data
                # httpx sets the multipart boundary itself
                merged_headers = strip_header(merged_headers, "Content-Type")
            elif isinstance(data, str | bytes):
                body = data
            else:
                try:
                    if isinstance(data, BaseModel):
                        body = data.model_dump_json()
                    else:
                        body = json.dumps(data)
                except (TypeError, ValueError) as e:
                    raise ReqpipeError(f"Request data is not JSON serializable: {e}") from e
                if find_header(merged_headers, "Content-Type") is None:
                    merged_headers["Content-Type"] = "application/json"

        return RequestConfig(
            url=self._create_url(url),
            method=method.upper(),
            headers=merged_headers,
            data=data,
            body=body,
            timeout_ms=self._settings.timeout_ms if timeout_ms is None else timeout_ms,
            suppress_error_alert=suppress_error_alert,
        )

    # --- Transport ---

    async def _send(self, config: RequestConfig) -> HttpResponse[Any]:
        """Send one request, racing it against ``config.timeout_ms``.

        Args:
            config: The fully intercepted request configuration.

        Returns:
            HttpResponse: The decoded 2xx response.

        Raises:
            TimeoutError: If the timer wins the race or the transport times out.
            HttpStatusError: For any status outside 2xx.
            ParseError: If a JSON body cannot be decoded.
            NetworkError: For transport failures.
        """
        try:
            request = config.build_request()
        except (httpx.InvalidURL, TypeError, ValueError) as e:
            raise NetworkError(f"Invalid request for {config.url}: {e}", config=config) from e

        if config.timeout_ms <= 0:
            logger.error(f"Request timed out before sending (timeout_ms={config.timeout_ms}): {request.url}")
            raise TimeoutError(TIMEOUT_MESSAGE, request=request, config=config)

        logger.debug(f"Sending request: {request.method} {request.url}")
        logger.trace(f"Request Headers: {config.headers}")

        send_task = asyncio.create_task(self._http_client.send(request))
        try:
            done, _ = await asyncio.wait({send_task}, timeout=config.timeout_ms / 1000)
        except BaseException:
            send_task.cancel()
            send_task.add_done_callback(_discard_outcome)
            raise

        if send_task not in done:
            send_task.cancel()
            send_task.add_done_callback(_discard_outcome)
            logger.error(f"Request timed out after {config.timeout_ms}ms: {request.url}")
            raise TimeoutError(TIMEOUT_MESSAGE, request=request, config=config)

        try:
            response = send_task.result()
        except httpx.TimeoutException as e:
            logger.error(f"Transport timed out: {request.url}")
            raise TimeoutError(TIMEOUT_MESSAGE, request=request, config=config) from e
        except httpx.RequestError as e:
            logger.error(f"Network error occurred for {request.url}: {e}")
            raise NetworkError(
                f"Network error for {request.url}: {e}", request=request, config=config
            ) from e

        logger.debug(f"Received response: {response.status_code} for {request.url}")
        logger.trace(f"Response Headers: {response.headers}")

        if not response.is_success:
            raise HttpStatusError(
                response.status_code, response=response, request=request, config=config
            )

        content_type = response.headers.get("content-type")
        if is_json_content_type(content_type):
            try:
                data: Any = response.json()
            except ValueError as e:
                raise ParseError(
                    f"Response declared {content_type} but body is not valid JSON: {e}",
                    request=request,
                    response=response,
                    config=config,
                ) from e
        else:
            data = response.text

        return HttpResponse[Any](
            data=data,
            status=response.status_code,
            status_text=response.reason_phrase,
            headers=response.headers,
            config=config,
        )

    # --- Public request surface ---

    async def request(
        self,
        url: str,
        *,
        method: HttpMethod | str = "GET",
        headers: Mapping[str, str] | None = None,
        data: Any = None,
        timeout_ms: int | None = None,
        suppress_error_alert: bool = False,
    ) -> HttpResponse[Any] | Any:
        """Perform an HTTP request through the interceptor pipeline.

        Args:
            url: Absolute URL, or a path resolved against the base URL.
            method: HTTP method (GET, POST, PUT, DELETE, PATCH).
            headers: Per-call headers, overriding the client defaults.
            data: Payload. FormData is sent as multipart, str/bytes as-is,
                anything else as JSON.
            timeout_ms: Per-call timeout; zero or negative times out immediately.
            suppress_error_alert: Skip the user-facing alert if this call fails.

        Returns:
            HttpResponse: The response after the response interceptors ran, or
                whatever value an ``on_error`` interceptor recovered with.

        Raises:
            ReqpipeError: Or any other exception left by the response
                interceptors when the call fails.
        """
        config: RequestConfig | None = None
        try:
            config = self._create_request_config(
                url,
                method=method,
                headers=headers,
                data=data,
                timeout_ms=timeout_ms,
                suppress_error_alert=suppress_error_alert,
            )
            config = await self._request_interceptors.run(config)
            response = await self._send(config)
        except Exception as e:
            if isinstance(e, ReqpipeError) and e.config is None:
                e.config = config
            return await self._response_interceptors.run(error=e)

        return await self._response_interceptors.run(response=response)

    async def get(self, url: str, **options: Any) -> HttpResponse[Any] | Any:
        """GET request."""
        return await self.request(url, **{**options, "method": "GET"})

    async def post(self, url: str, data: Any = None, **options: Any) -> HttpResponse[Any] | Any:
        """POST request with ``data`` as payload."""
        return await self.request(url, **{**options, "method": "POST", "data": data})

    async def put(self, url: str, data: Any = None, **options: Any) -> HttpResponse[Any] | Any:
        """PUT request with ``data`` as payload."""
        return await self.request(url, **{**options, "method": "PUT", "data": data})

    async def delete(self, url: str, **options: Any) -> HttpResponse[Any] | Any:
        """DELETE request."""
        return await self.request(url, **{**options, "method": "DELETE"})

    async def patch(self, url: str, data: Any = None, **options: Any) -> HttpResponse[Any] | Any:
        """PATCH request with ``data`` as payload."""
        return await self.request(url, **{**options, "method": "PATCH", "data": data})

    async def upload(
        self,
        url: str,
        file: FileContent,
        *,
        data: Mapping[str, Any] | None = None,
        filename: str | None = None,
        **options: Any,
    ) -> HttpResponse[Any] | Any:
        """Upload a file as multipart form data with a POST request.

        Args:
            url: Target URL or path.
            file: File content (bytes, str, binary stream) or an httpx-style
                ``(filename, content[, content_type])`` tuple, sent as ``file``.
            data: Extra form fields appended after the file.
            filename: Filename for the file part when ``file`` is not a tuple.
            **options: Other request options (headers, timeout_ms, ...).
        """
        if isinstance(file, str):
            file = file.encode()
        if isinstance(file, bytes) or (filename is not None and not isinstance(file, tuple)):
            file = (filename or "upload", file)

        form = FormData()
        form.append("file", file)
        for key, value in (data or {}).items():
            form.append(key, value)

        return await self.request(url, **{**options, "method": "POST", "data": form})

    # --- Token and alert management ---

    async def set_token(self, token: str) -> None:
        await self._credentials.set(token)

    async def get_token(self) -> str | None:
        return await self._credentials.get()

    async def clear_token(self) -> None:
        await self._credentials.remove()

    def clear_error_alerts(self) -> None:
        """Lets every error category alert again immediately."""
        self._notifier.clear_all()

    def set_show_error_alert(self, show: bool) -> None:
        """Turns user-facing alerts for failed calls on or off for this client."""
        self._settings.show_error_alert = show

    # --- Lifecycle ---

    async def aclose(self) -> None:
        """Close the underlying HTTP client if this instance created it."""
        if self._should_close_client and not self._http_client.is_closed:
            await self._http_client.aclose()
            logger.debug(f"HttpClient internal HTTP client closed. Client ID: {id(self)}.")

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object | None,
    ) -> None:
        await self.aclose()
