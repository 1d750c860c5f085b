"""Executable response descriptor and the fetch pipeline.

A ``Response`` pairs a ``Request`` with a shape. Each ``fetch_response()``
call runs the same fixed sequence, independently of any other call:

1. ``on_before_dispatch(response)`` hook
2. ``start`` listeners
3. optional delay
4. transport call; if the delay or the call fails or is cancelled, ``error``
   listeners run and the exception is re-raised
5. ``end`` listeners
6. ``on_before_materialization(raw, response)`` hook
7. body normalization (absent body -> JSON of the raw text, or ``{}``)
8. materialization into the shape
9. ``on_after_materialization(shaped, response)`` hook

Hooks are optional methods of the shape (instance methods on an instance,
classmethods or staticmethods on a class). Nothing raised by a hook, a
listener, the transport or the materializer is caught.
"""

from __future__ import annotations

import asyncio
import json
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from loguru import logger

from .errors import MalformedBodyError, ShapeError
from .shape import Constructor, ExistingInstance, InvalidShape, NoShape, Shape, resolve_shape
from .types import HttpMethod, ShapeOptions, TransportResponse

if TYPE_CHECKING:
    from .context import RequestContext
    from .request import Request

T = TypeVar("T")


def normalize_body(text: str | None) -> Any:
    """Parse a raw body as JSON; an empty body is ``{}``.

    Raises:
        MalformedBodyError: If the text is present but not JSON
    """
    if not text or not text.strip():
        return {}
    try:
        return json.loads(text)
    except ValueError as e:
        raise MalformedBodyError(f"Response body is not valid JSON: {e}", text) from e


class Response(Generic[T]):
    """A request bound to a target shape, ready to be fetched any number of times."""

    def __init__(self, request: Request, shape: Any = None):
        self.request = request
        self.shape: Shape = resolve_shape(shape)

    def __repr__(self) -> str:
        return f"Response({self.request!r}, shape={self.shape!r})"

    # Read-through to the request

    @property
    def context(self) -> RequestContext:
        return self.request.context

    @property
    def method(self) -> HttpMethod:
        return self.request.method

    @property
    def url(self) -> str:
        return self.request.url

    @property
    def request_name(self) -> str | None:
        return self.request.request_name

    @property
    def request_delay(self) -> float | None:
        return self.request.request_delay

    @property
    def endpoint(self) -> str:
        return self.request.endpoint

    @property
    def identity(self) -> str:
        return self.request.identity

    def name(self, request_name: str) -> Response[T]:
        """Same as ``Request.name()``."""
        self.request.name(request_name)
        return self

    def delay(self, request_delay: float) -> Response[T]:
        """Same as ``Request.delay()``."""
        self.request.delay(request_delay)
        return self

    # Fetching

    async def fetch_data(self, shape_options: ShapeOptions | None = None) -> T:
        """Fetch and return only the materialized body."""
        return (await self.fetch_response(shape_options)).data

    async def fetch_response(self, shape_options: ShapeOptions | None = None) -> TransportResponse:
        """Fetch and return the response envelope with its body materialized.

        Raises:
            ShapeError: If the shape is neither an instance nor a constructor
            MalformedBodyError: If the body is absent and the raw text is not JSON
        """
        context = self.context
        identity = self.identity

        hook = self.shape.hook("on_before_dispatch")
        if hook is not None:
            hook(self)

        context.listener.emit_start(identity)

        try:
            if self.request_delay:
                logger.debug(f"Delaying '{identity}' by {self.request_delay}ms")
                await asyncio.sleep(self.request_delay / 1000)
            response = await context.transport.send(
                self.method.value, self.url, self.request.options
            )
        except BaseException:
            context.listener.emit_error(identity)
            raise

        context.listener.emit_end(identity)

        hook = self.shape.hook("on_before_materialization")
        if hook is not None:
            hook(response, self)

        if not response.has_data:
            response.data = normalize_body(response.text)

        response.data = self._materialize(response.data, shape_options)

        hook = self.shape.hook("on_after_materialization")
        if hook is not None:
            hook(response, self)

        return response

    def _materialize(self, data: Any, shape_options: ShapeOptions | None) -> Any:
        shape = self.shape
        materializer = self.context.materializer

        if isinstance(shape, NoShape):
            return data
        if isinstance(shape, ExistingInstance):
            logger.debug(f"Populating {type(shape.value).__name__} for '{self.identity}'")
            return materializer.to_shape(shape.value, data, shape_options)
        if isinstance(shape, Constructor):
            logger.debug(f"Materializing {shape.factory!r} for '{self.identity}'")
            return materializer.to_shape(shape.factory, data, shape_options)
        if isinstance(shape, InvalidShape):
            raise ShapeError(shape.value)
        raise ShapeError(shape)
