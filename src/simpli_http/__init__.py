"""Fluent HTTP requests with typed results.

simpli-http builds an HTTP call declaratively, binds it to a target shape
and returns the materialized result after a fixed fetch pipeline: optional
delay, start/end/error notifications, body normalization, materialization
and lifecycle hooks.

Key Features:
    - Chainable request builder: Request.get(url).name("user").as_(User)
    - Results as pydantic models, dataclasses, plain classes or builtins
    - Populate an existing instance in place
    - Process-wide start/end/error listeners for loading indicators
    - Per-type field rules for request and response bodies
    - httpx transport, replaceable by any object with ``send()``

Quick Start:
    Basic usage example::

        from simpli_http import Request

        class BlogPost:
            def __init__(self):
                self.id = None
                self.title = None

        post = await Request.get("https://jsonplaceholder.typicode.com/posts/1").as_(BlogPost).fetch_data()

Listeners:
    Track in-flight requests::

        from simpli_http import request_listener

        request_listener.on_start(lambda name: print("loading", name))
        request_listener.on_end(lambda name: print("done", name))

Lifecycle hooks:
    A shape may define any of these methods::

        class Profile:
            def on_before_dispatch(self, response): ...
            def on_before_materialization(self, raw, response): ...
            def on_after_materialization(self, shaped, response): ...

See Also:
    - RequestConfig: Settings of the default httpx transport
    - RequestListener: Start/end/error listener registry
    - FieldRule: Field visibility rules
    - SocketConnection: WebSocket variant with materialized messages
"""

from .context import RequestContext, aclose, config_from_env, configure, get_context
from .errors import (
    ConfigurationError,
    MalformedBodyError,
    MaterializationError,
    ShapeError,
    SimpliHTTPError,
    TransportError,
)
from .fields import (
    FieldRule,
    FieldVisibility,
    field_visibility,
    http_exclude,
    http_expose,
    http_fields,
    request_exclude,
    request_expose,
    response_exclude,
    response_expose,
    response_serialize,
)
from .listener import RequestListener, request_listener
from .materializer import PydanticMaterializer
from .request import Request
from .response import Response
from .shape import Constructor, ExistingInstance, InvalidShape, NoShape, resolve_shape
from .socket_connection import SocketConnection
from .transport import HttpxTransport
from .types import (
    MISSING,
    HttpMethod,
    Materializer,
    RequestConfig,
    ShapeOptions,
    Transport,
    TransportResponse,
)

__all__ = [
    "MISSING",
    "ConfigurationError",
    "Constructor",
    "ExistingInstance",
    "FieldRule",
    "FieldVisibility",
    "HttpMethod",
    "HttpxTransport",
    "InvalidShape",
    "MalformedBodyError",
    "MaterializationError",
    "Materializer",
    "NoShape",
    "PydanticMaterializer",
    "Request",
    "RequestConfig",
    "RequestContext",
    "RequestListener",
    "Response",
    "ShapeError",
    "ShapeOptions",
    "SimpliHTTPError",
    "SocketConnection",
    "Transport",
    "TransportError",
    "TransportResponse",
    "aclose",
    "config_from_env",
    "configure",
    "field_visibility",
    "get_context",
    "http_exclude",
    "http_expose",
    "http_fields",
    "request_exclude",
    "request_expose",
    "request_listener",
    "resolve_shape",
    "response_exclude",
    "response_expose",
    "response_serialize",
]

__version__ = "0.1.0"
