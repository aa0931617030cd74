# reqpipe/types.py
"""Core type definitions and data structures for reqpipe.

This module defines the per-call request description (``RequestConfig``), the
normalized result (``HttpResponse``), the multipart payload container
(``FormData``) and the type aliases used by the interceptor chains.
"""

from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass
from typing import IO, Any, Generic, Literal, TypeVar

import httpx
from pydantic import BaseModel, ConfigDict, Field

HttpMethod = Literal["GET", "POST", "PUT", "DELETE", "PATCH"]

T = TypeVar("T")

FileContent = bytes | str | IO[bytes] | tuple[Any, ...]


class FormData:
    """Ordered multipart form payload.

    Values that look like files (binary streams or ``(filename, content[,
    content_type])`` tuples) are sent as file parts; everything else, bytes
    included, becomes a plain form field. Parts go on the wire in append order.
    """

    def __init__(self) -> None:
        self._entries: list[tuple[str, Any, bool]] = []

    def append(self, name: str, value: Any) -> None:
        """Appends ``value`` under ``name``; repeated names are allowed."""
        is_file = isinstance(value, tuple) or hasattr(value, "read")
        if not is_file and not isinstance(value, str | bytes):
            value = str(value)
        self._entries.append((name, value, is_file))

    @property
    def fields(self) -> list[tuple[str, str | bytes]]:
        return [(name, value) for name, value, is_file in self._entries if not is_file]

    @property
    def files(self) -> list[tuple[str, Any]]:
        return [(name, value) for name, value, is_file in self._entries if is_file]

    def parts(self) -> list[tuple[str, Any]]:
        """Every entry in append order, shaped for httpx's ``files=`` argument.

        Plain fields are given as ``(None, value)`` so httpx renders them
        without a filename or content type.
        """
        return [
            (name, value if is_file else (None, value))
            for name, value, is_file in self._entries
        ]

    def keys(self) -> list[str]:
        return [name for name, _, _ in self._entries]

    def __contains__(self, name: object) -> bool:
        return name in self.keys()

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"FormData(keys={self.keys()})"


def find_header(headers: Mapping[str, str], name: str) -> str | None:
    """Returns the key in ``headers`` matching ``name`` case-insensitively."""
    lowered = name.lower()
    for key in headers:
        if key.lower() == lowered:
            return key
    return None


def merge_headers(
    base: Mapping[str, str], override: Mapping[str, str] | None
) -> dict[str, str]:
    """Merges two header mappings; ``override`` wins, names compared case-insensitively."""
    merged = dict(base)
    for name, value in (override or {}).items():
        existing = find_header(merged, name)
        if existing is not None:
            del merged[existing]
        merged[name] = value
    return merged


def strip_header(headers: Mapping[str, str], name: str) -> dict[str, str]:
    """Returns a copy of ``headers`` without ``name`` (case-insensitive)."""
    lowered = name.lower()
    return {k: v for k, v in headers.items() if k.lower() != lowered}


class RequestConfig(BaseModel):
    """Describes one request as it flows through the pipeline.

    Built fresh for every call. Request interceptors may mutate it (or return a
    new one); once the transport call is issued it is no longer touched.
    """

    url: str
    method: HttpMethod = "GET"
    headers: dict[str, str] = Field(default_factory=dict)
    data: Any | None = None
    body: str | bytes | FormData | None = None
    timeout_ms: int = 10000
    suppress_error_alert: bool = False

    model_config = ConfigDict(arbitrary_types_allowed=True, validate_assignment=True)

    def build_request(self) -> httpx.Request:
        """Builds an httpx.Request object from the stored data."""
        if isinstance(self.body, FormData):
            return httpx.Request(
                method=self.method,
                url=self.url,
                headers=self.headers,
                files=self.body.parts() or None,
            )
        return httpx.Request(
            method=self.method,
            url=self.url,
            headers=self.headers,
            content=self.body,
        )


class HttpResponse(BaseModel, Generic[T]):
    """Normalized result of a successful request.

    ``data`` is the decoded JSON body when the response declared a JSON content
    type and the raw text body otherwise.
    """

    data: T
    status: int
    status_text: str
    headers: httpx.Headers
    config: RequestConfig

    model_config = ConfigDict(arbitrary_types_allowed=True)

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300


RequestInterceptor = Callable[[RequestConfig], RequestConfig | Awaitable[RequestConfig]]
"""Type alias for a request interceptor.

Request interceptors receive the resolved ``RequestConfig`` and return the
config the next stage (and finally the transport) should see. They may be
plain functions or coroutines.
"""

SuccessHandler = Callable[[HttpResponse[Any]], HttpResponse[Any] | Awaitable[HttpResponse[Any]]]
ErrorHandler = Callable[[Exception], Any | Awaitable[Any]]


@dataclass(frozen=True)
class ResponseInterceptor:
    """A pair of optional handlers run after the transport call settles.

    Attributes:
        on_success: Receives the current ``HttpResponse`` and returns the one
            later stages should see.
        on_error: Receives the current exception. Raising replaces the error;
            returning a value recovers and turns the call into a success.
    """

    on_success: SuccessHandler | None = None
    on_error: ErrorHandler | None = None
