"""Fluent request builder.

Example:
    Fetch a typed object::

        from simpli_http import Request

        post = await Request.get("https://jsonplaceholder.typicode.com/posts/1").as_(BlogPost).fetch_data()

    Name a request for listeners, delay it and fetch a list::

        posts = await (
            Request.get("/posts", params={"userId": 1})
            .name("posts")
            .delay(250)
            .as_array_of(BlogPost)
            .fetch_data()
        )
"""

from __future__ import annotations

from typing import Any, TypeVar

import httpx
from loguru import logger

from .context import RequestContext, get_context
from .response import Response
from .types import HttpMethod, ShapeOptions

T = TypeVar("T")


class Request:
    """Description of one HTTP call: method, URL, transport options, name and delay.

    Method, URL and options are fixed at construction; only the logical
    name and the delay can be changed afterwards. A request is turned into
    an executable ``Response`` by one of the ``as_*`` methods.
    """

    def __init__(
        self,
        method: HttpMethod | str,
        url: str,
        options: dict[str, Any] | None = None,
        *,
        context: RequestContext | None = None,
    ):
        self._method = HttpMethod(method.upper() if isinstance(method, str) else method)
        self._url = url
        self._options = dict(options or {})
        self.context = context or get_context()
        self.request_name: str | None = None
        self.request_delay: float | None = None

    def __repr__(self) -> str:
        return f"Request({self._method.value} {self._url!r}, name={self.request_name!r})"

    @property
    def method(self) -> HttpMethod:
        return self._method

    @property
    def url(self) -> str:
        return self._url

    @property
    def options(self) -> dict[str, Any]:
        """Transport options (a copy; the request's own options cannot be changed)."""
        return dict(self._options)

    @property
    def endpoint(self) -> str:
        """URL path without scheme, host and query string."""
        return httpx.URL(self._url).path

    @property
    def identity(self) -> str:
        """Name reported to listeners: the explicit name, else the endpoint."""
        return self.request_name or self.endpoint

    # Factories

    @classmethod
    def get(cls, url: str, *, context: RequestContext | None = None, **options: Any) -> Request:
        return cls._build(HttpMethod.GET, url, options, context)

    @classmethod
    def delete(cls, url: str, *, context: RequestContext | None = None, **options: Any) -> Request:
        return cls._build(HttpMethod.DELETE, url, options, context)

    @classmethod
    def head(cls, url: str, *, context: RequestContext | None = None, **options: Any) -> Request:
        return cls._build(HttpMethod.HEAD, url, options, context)

    @classmethod
    def post(
        cls,
        url: str,
        body: Any = None,
        *,
        shape_options: ShapeOptions | None = None,
        context: RequestContext | None = None,
        **options: Any,
    ) -> Request:
        """Build a POST request; ``body`` is converted to plain data first."""
        return cls._build(HttpMethod.POST, url, options, context, body, shape_options)

    @classmethod
    def put(
        cls,
        url: str,
        body: Any = None,
        *,
        shape_options: ShapeOptions | None = None,
        context: RequestContext | None = None,
        **options: Any,
    ) -> Request:
        """Build a PUT request; ``body`` is converted to plain data first."""
        return cls._build(HttpMethod.PUT, url, options, context, body, shape_options)

    @classmethod
    def patch(
        cls,
        url: str,
        body: Any = None,
        *,
        shape_options: ShapeOptions | None = None,
        context: RequestContext | None = None,
        **options: Any,
    ) -> Request:
        """Build a PATCH request; ``body`` is converted to plain data first."""
        return cls._build(HttpMethod.PATCH, url, options, context, body, shape_options)

    @classmethod
    def _build(
        cls,
        method: HttpMethod,
        url: str,
        options: dict[str, Any],
        context: RequestContext | None,
        body: Any = None,
        shape_options: ShapeOptions | None = None,
    ) -> Request:
        context = context or get_context()

        if "method" in options:
            logger.warning(
                f"Ignoring method={options['method']!r} for {method.value} {url}; "
                f"use the matching Request factory instead"
            )
            options = {k: v for k, v in options.items() if k != "method"}

        merged: dict[str, Any] = {}
        if body is not None:
            plain = context.materializer.to_plain(body, shape_options)
            merged["content" if isinstance(plain, (str, bytes)) else "json"] = plain
        merged.update(options)

        return cls(method, url, merged, context=context)

    # Fluent setters

    def name(self, request_name: str) -> Request:
        """Set the name reported to listeners instead of the endpoint."""
        self.request_name = request_name
        return self

    def delay(self, request_delay: float) -> Request:
        """Wait ``request_delay`` milliseconds before dispatching; negatives mean 0."""
        self.request_delay = max(request_delay, 0)
        return self

    # Terminal methods

    def as_(self, shape: type[T] | T | None = None) -> Response[T]:
        """Materialize the body into ``shape``: a class to build, or an instance to populate."""
        return Response(self, shape)

    def as_array_of(self, shape: type[T] | None = None) -> Response[list[T]]:
        """Materialize a JSON array body into a list of ``shape``."""
        return Response(self, shape)

    def as_any(self) -> Response[Any]:
        return Response(self)

    def as_void(self) -> Response[None]:
        return Response(self)

    def as_string(self) -> Response[str]:
        return Response(self)

    def as_number(self) -> Response[float]:
        return Response(self)

    def as_boolean(self) -> Response[bool]:
        return Response(self)
