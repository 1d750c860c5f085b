"""Default transport adapter using httpx."""

from __future__ import annotations

import json
from typing import Any

import httpx
from loguru import logger

from .errors import TransportError
from .types import MISSING, RequestConfig, TransportResponse

# Keywords that go to AsyncClient.send() rather than build_request().
_SEND_OPTIONS = ("auth", "follow_redirects")


def to_transport_response(response: httpx.Response, method: str = "", url: str = "") -> TransportResponse:
    """Convert an httpx response into a ``TransportResponse``.

    Decoding follows the usual browser-client convention: an empty body
    leaves ``data`` unset, a JSON body is parsed, anything else is kept
    as text.
    """
    text = response.text
    if not response.content:
        data = MISSING
    else:
        try:
            data = json.loads(text)
        except ValueError:
            data = text

    return TransportResponse(
        status_code=response.status_code,
        headers=dict(response.headers),
        text=text,
        data=data,
        method=method,
        url=url,
    )


class HttpxTransport:
    """Transport adapter backed by ``httpx.AsyncClient``.

    Non-2xx responses and network failures are raised as
    ``TransportError``, chained to the httpx exception.
    """

    def __init__(self, config: RequestConfig | None = None, *, client: httpx.AsyncClient | None = None):
        self.config = config or RequestConfig()

        if client is None:
            client = httpx.AsyncClient(
                base_url=self.config.base_url or "",
                headers=self.config.headers,
                timeout=self.config.timeout,
                verify=self.config.verify_ssl,
                follow_redirects=self.config.follow_redirects,
                auth=self.config.auth,
                cookies=self.config.cookies,
                params=self.config.params,
            )
        self._client = client

    async def __aenter__(self):
        """Enter async context."""
        await self._client.__aenter__()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Exit async context."""
        await self._client.__aexit__(exc_type, exc_val, exc_tb)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def send(self, method: str, url: str, options: dict[str, Any]) -> TransportResponse:
        """Send one request and return its converted response."""
        build_options = {k: v for k, v in options.items() if k not in _SEND_OPTIONS}
        send_options = {k: options[k] for k in _SEND_OPTIONS if k in options}

        request = self._client.build_request(method, url, **build_options)

        try:
            response = await self._client.send(request, **send_options)
        except httpx.HTTPError as e:
            logger.debug(f"{method} {url} failed: {e!r}")
            raise TransportError(
                f"{method} {url} failed: {e}", method=method, url=str(request.url)
            ) from e

        converted = to_transport_response(response, method, str(request.url))
        logger.debug(f"{method} {request.url} -> {response.status_code}")

        try:
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise TransportError(
                f"HTTP {response.status_code} for {method} {request.url}",
                status_code=response.status_code,
                method=method,
                url=str(request.url),
                response=converted,
            ) from e

        return converted
