"""Request context: the collaborators a request is executed with.

A ``Request`` captures a ``RequestContext`` when it is built: the
transport that performs the call, the materializer that shapes bodies and
the listener registry notified of every fetch. Unless a context is passed
explicitly, the process default context is used; ``configure()`` replaces
it.

Example:
    Point every request at one API::

        from simpli_http import config_from_env, configure

        configure(config_from_env())   # SIMPLI_HTTP_BASE_URL=https://api.example.com
"""

from __future__ import annotations

import asyncio
import os
from dataclasses import dataclass, field
from typing import Any

from loguru import logger

from .errors import ConfigurationError
from .listener import RequestListener, request_listener
from .materializer import PydanticMaterializer
from .transport import HttpxTransport
from .types import Materializer, RequestConfig, Transport


@dataclass
class RequestContext:
    """Transport, materializer and listener registry used by requests.

    ``owns_transport`` marks a transport created by ``get_context()`` or
    ``configure()`` itself; only such a transport is closed when the
    default context is replaced.
    """

    transport: Transport
    materializer: Materializer = field(default_factory=PydanticMaterializer)
    listener: RequestListener = field(default_factory=lambda: request_listener)
    owns_transport: bool = False


_default_context: RequestContext | None = None
_closing: set[asyncio.Task] = set()


def get_context() -> RequestContext:
    """Return the process default context, creating it on first use."""
    global _default_context
    if _default_context is None:
        _default_context = RequestContext(
            transport=HttpxTransport(RequestConfig()), owns_transport=True
        )
        logger.debug("Created default request context")
    return _default_context


def configure(
    config: RequestConfig | None = None,
    *,
    transport: Transport | None = None,
    materializer: Materializer | None = None,
    listener: RequestListener | None = None,
) -> RequestContext:
    """Replace the process default context.

    If the replaced context created its own httpx transport, that
    transport is closed: immediately when no event loop is running,
    otherwise in a task that ``aclose()`` waits for. Requests built
    against the replaced context can no longer be fetched in that case.
    A transport passed in by the caller is never closed here.

    Args:
        config: Settings for a new httpx transport (ignored when ``transport`` is given)
        transport: Transport adapter to use
        materializer: Materializer to use (default: PydanticMaterializer)
        listener: Listener registry to notify (default: the process-wide registry)

    Returns:
        The new default context. Requests built earlier keep the context
        they captured.
    """
    global _default_context

    owns_transport = transport is None
    if transport is None:
        transport = HttpxTransport(config or RequestConfig())
    elif config is not None:
        logger.warning("configure() got both a config and a transport; the config is ignored")

    previous = _default_context
    _default_context = RequestContext(
        transport=transport,
        materializer=materializer or PydanticMaterializer(),
        listener=listener or request_listener,
        owns_transport=owns_transport,
    )
    if previous is not None and previous.owns_transport and previous.transport is not transport:
        _release(previous.transport)
    logger.debug(f"Configured default request context with {type(transport).__name__}")
    return _default_context


def _release(transport: Transport) -> None:
    """Close a replaced transport from sync code."""
    close = getattr(transport, "aclose", None)
    if close is None:
        return
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        asyncio.run(close())
    else:
        task = loop.create_task(close())
        _closing.add(task)
        task.add_done_callback(_closing.discard)
    logger.debug(f"Closing replaced {type(transport).__name__}")


async def aclose() -> None:
    """Close the default context's transport and wait for replaced ones to close."""
    global _default_context
    if _closing:
        await asyncio.gather(*_closing)
    if _default_context is None:
        return
    close = getattr(_default_context.transport, "aclose", None)
    if close is not None:
        await close()
    _default_context = None


def config_from_env(prefix: str = "SIMPLI_HTTP_") -> RequestConfig:
    """Build a ``RequestConfig`` from environment variables.

    Recognized variables (after ``prefix``): ``BASE_URL``, ``TIMEOUT``,
    ``VERIFY_SSL``, ``FOLLOW_REDIRECTS``, ``HEADERS`` (comma-separated
    ``Name:Value`` pairs) and ``PARAMS`` (comma-separated ``key=value``
    pairs). Unset variables keep their defaults.

    Raises:
        ConfigurationError: If a value cannot be converted
    """
    prefix = prefix.upper()
    env = {key[len(prefix):]: value for key, value in os.environ.items() if key.startswith(prefix)}
    config = RequestConfig()

    if env.get("BASE_URL"):
        config.base_url = env["BASE_URL"]

    if env.get("TIMEOUT"):
        try:
            config.timeout = float(env["TIMEOUT"])
        except ValueError as e:
            raise ConfigurationError(f"Invalid {prefix}TIMEOUT: {env['TIMEOUT']!r}") from e

    if env.get("VERIFY_SSL"):
        config.verify_ssl = _convert_bool(prefix + "VERIFY_SSL", env["VERIFY_SSL"])

    if env.get("FOLLOW_REDIRECTS"):
        config.follow_redirects = _convert_bool(prefix + "FOLLOW_REDIRECTS", env["FOLLOW_REDIRECTS"])

    if env.get("HEADERS"):
        config.headers = _convert_pairs(prefix + "HEADERS", env["HEADERS"], ":")

    if env.get("PARAMS"):
        config.params = _convert_pairs(prefix + "PARAMS", env["PARAMS"], "=")

    return config


def _convert_bool(name: str, value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in ("true", "yes", "1", "on"):
        return True
    if lowered in ("false", "no", "0", "off"):
        return False
    raise ConfigurationError(f"Invalid {name}: {value!r} is not a boolean")


def _convert_pairs(name: str, value: str, separator: str) -> dict[str, Any]:
    pairs = {}
    for item in value.split(","):
        if not item.strip():
            continue
        key, sep, item_value = item.partition(separator)
        if not sep or not key.strip():
            raise ConfigurationError(f"Invalid {name} entry {item!r}: expected key{separator}value")
        pairs[key.strip()] = item_value.strip()
    return pairs
