"""Type definitions for simpli-http.

This module defines the value types, protocols and configuration classes
shared by the request builder, the fetch pipeline and the adapters it
drives. It is the contract between the core and its two external
collaborators: the transport that performs the network call and the
materializer that converts plain data to and from target shapes.

The module uses Pydantic for option validation and Python protocols for
defining interfaces, ensuring type safety and runtime validation.

Classes:
    HttpMethod: The HTTP methods a request can be built for
    TransportResponse: Envelope returned by a transport
    ShapeOptions: Options forwarded to the materializer
    RequestConfig: Settings for the default httpx transport
    Transport: Protocol for transport adapters
    Materializer: Protocol for shape materialization adapters

Type Aliases:
    ListenerCallback: Type for request listener callbacks

Example:
    Configuring the default transport::

        from simpli_http import RequestConfig, configure

        configure(
            RequestConfig(
                base_url="https://api.example.com",
                headers={"Authorization": "Bearer token"},
                timeout=10.0,
            )
        )
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Protocol, runtime_checkable

import httpx
from pydantic import BaseModel


class HttpMethod(str, Enum):
    """HTTP methods supported by the request factories."""

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"
    HEAD = "HEAD"


class _Missing:
    """Marker for a body the transport did not decode."""

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING: Any = _Missing()
"""Sentinel for an absent structured body (distinct from a JSON ``null``)."""


@dataclass
class TransportResponse:
    """Response envelope produced by a transport adapter.

    The fetch pipeline normalizes ``data`` and then replaces it with the
    materialized value, so after ``fetch_response()`` returns, ``data``
    holds the shaped body. Every invocation gets its own envelope.

    Attributes:
        status_code: HTTP status code
        headers: Response headers
        text: Raw textual body ("" when empty)
        data: Structured body, or MISSING when the transport did not decode one
        method: HTTP method of the originating request
        url: Final URL of the originating request
    """

    status_code: int
    headers: dict[str, str] = field(default_factory=dict)
    text: str = ""
    data: Any = MISSING
    method: str = ""
    url: str = ""

    @property
    def has_data(self) -> bool:
        """Whether the transport produced a structured body."""
        return self.data is not MISSING

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


class ShapeOptions(BaseModel):
    """Options controlling shape materialization.

    Attributes:
        strict: Use pydantic strict validation (default: False)
        exclude_none: Drop None values when converting to plain data (default: False)
        exclude_extraneous: When populating plain classes, skip keys the
            target does not already define (default: False)

    Example:
        Only keep the attributes a plain class declares::

            post = await (
                Request.get("/posts/1")
                .as_(BlogPost)
                .fetch_data(ShapeOptions(exclude_extraneous=True))
            )
    """

    strict: bool = False
    exclude_none: bool = False
    exclude_extraneous: bool = False


@dataclass
class RequestConfig:
    """Configuration for the default httpx transport.

    Attributes:
        base_url: Base URL prepended to relative request URLs
        headers: Default headers to include in all requests
        timeout: Request timeout in seconds (default: 30.0)
        verify_ssl: Whether to verify SSL certificates (default: True)
        follow_redirects: Whether to follow redirects (default: True)
        auth: Authentication handler (httpx.Auth or callable)
        cookies: Default cookies to include
        params: Default query parameters

    Example:
        Minimal configuration::

            config = RequestConfig(base_url="https://jsonplaceholder.typicode.com")
    """

    base_url: str | None = None
    headers: dict[str, str] | None = None
    timeout: float = 30.0
    verify_ssl: bool = True
    follow_redirects: bool = True
    auth: httpx.Auth | Callable | None = None
    cookies: dict[str, str] | None = None
    params: dict[str, Any] | None = None


ListenerCallback = Callable[[str], Any]
"""Type for listener callbacks; receives the request's logical identity."""


@runtime_checkable
class Transport(Protocol):
    """Protocol for transport adapters.

    A transport sends one described request and returns a
    ``TransportResponse``, or raises when the call fails. The exception it
    raises reaches the caller of ``fetch_response()`` unchanged.

    Example:
        A transport that never touches the network::

            class CannedTransport:
                async def send(self, method, url, options):
                    return TransportResponse(200, text='{"a": 1}', data={"a": 1})
    """

    async def send(self, method: str, url: str, options: dict[str, Any]) -> TransportResponse:
        """Send a request."""
        ...


@runtime_checkable
class Materializer(Protocol):
    """Protocol for shape materialization adapters."""

    def to_plain(self, value: Any, options: ShapeOptions | None = None) -> Any:
        """Convert an instance into plain data for a request body."""
        ...

    def to_shape(self, target: Any, plain: Any, options: ShapeOptions | None = None) -> Any:
        """Convert plain response data into ``target`` (a class or an instance)."""
        ...
