"""Tests for the httpx transport adapter."""

import json

import httpx
import pytest

from simpli_http import (
    MISSING,
    HttpxTransport,
    Request,
    RequestConfig,
    RequestContext,
    TransportError,
)


def make_transport(handler, **config):
    """HttpxTransport whose client answers through ``handler``."""
    config = RequestConfig(**config)
    client = httpx.AsyncClient(
        base_url=config.base_url or "",
        headers=config.headers,
        transport=httpx.MockTransport(handler),
    )
    return HttpxTransport(config, client=client)


class TestSend:
    """Test sending requests."""

    @pytest.mark.asyncio
    async def test_json_response(self):
        seen = {}

        def handler(request):
            seen["method"] = request.method
            seen["url"] = str(request.url)
            seen["header"] = request.headers.get("X-Token")
            return httpx.Response(200, json={"id": 1})

        transport = make_transport(handler, base_url="https://api.example.com", headers={"X-Token": "t"})

        response = await transport.send("GET", "/posts/1", {"params": {"full": "1"}})

        assert seen == {
            "method": "GET",
            "url": "https://api.example.com/posts/1?full=1",
            "header": "t",
        }
        assert response.status_code == 200
        assert response.data == {"id": 1}
        assert json.loads(response.text) == {"id": 1}
        assert response.method == "GET"
        assert response.url == "https://api.example.com/posts/1?full=1"

    @pytest.mark.asyncio
    async def test_json_body_is_sent(self):
        def handler(request):
            return httpx.Response(201, json=json.loads(request.content))

        transport = make_transport(handler)

        response = await transport.send("POST", "https://api.example.com/posts", {"json": {"a": 1}})

        assert response.status_code == 201
        assert response.data == {"a": 1}

    @pytest.mark.asyncio
    async def test_empty_body_leaves_data_unset(self):
        transport = make_transport(lambda request: httpx.Response(200))

        response = await transport.send("HEAD", "https://api.example.com/posts/1", {})

        assert response.data is MISSING
        assert not response.has_data
        assert response.text == ""

    @pytest.mark.asyncio
    async def test_text_body_is_kept_as_text(self):
        transport = make_transport(lambda request: httpx.Response(200, text="hello"))

        response = await transport.send("GET", "https://api.example.com/hello", {})

        assert response.data == "hello"

    @pytest.mark.asyncio
    async def test_error_status_raises_transport_error(self):
        transport = make_transport(lambda request: httpx.Response(404, json={"detail": "missing"}))

        with pytest.raises(TransportError) as exc_info:
            await transport.send("GET", "https://api.example.com/posts/9", {})

        error = exc_info.value
        assert error.status_code == 404
        assert error.response.data == {"detail": "missing"}
        assert error.url == "https://api.example.com/posts/9"
        assert isinstance(error.__cause__, httpx.HTTPStatusError)

    @pytest.mark.asyncio
    async def test_network_error_raises_transport_error(self):
        def handler(request):
            raise httpx.ConnectError("Connection refused", request=request)

        transport = make_transport(handler)

        with pytest.raises(TransportError) as exc_info:
            await transport.send("GET", "https://api.example.com/posts", {})

        assert exc_info.value.status_code is None
        assert exc_info.value.response is None
        assert isinstance(exc_info.value.__cause__, httpx.ConnectError)

    @pytest.mark.asyncio
    async def test_context_manager_closes_client(self):
        transport = make_transport(lambda request: httpx.Response(200))

        async with transport:
            pass

        assert transport._client.is_closed


class TestConfig:
    """Test building the client from configuration."""

    def test_client_uses_config(self):
        transport = HttpxTransport(
            RequestConfig(
                base_url="https://api.example.com",
                headers={"X-API-Version": "v1"},
                timeout=5.0,
                params={"lang": "en"},
            )
        )

        client = transport._client
        assert client.base_url.host == "api.example.com"
        assert client.headers["X-API-Version"] == "v1"
        assert client.timeout.read == 5.0
        assert client.params["lang"] == "en"


@pytest.mark.asyncio
async def test_request_pipeline_over_httpx(listener):
    """A full fetch through the httpx adapter."""

    class Post:
        def __init__(self):
            self.id = None
            self.title = None

    def handler(request):
        assert request.method == "PUT"
        assert json.loads(request.content) == {"id": 1, "title": "new"}
        return httpx.Response(200, json={"id": 1, "title": "new"})

    context = RequestContext(
        transport=make_transport(handler, base_url="https://jsonplaceholder.typicode.com"),
        listener=listener,
    )
    events = []
    listener.on_end(events.append)

    post = Post()
    post.id, post.title = 1, "new"
    result = await Request.put("/posts/1", post, context=context).as_(Post).fetch_data()

    assert (result.id, result.title) == (1, "new")
    assert result is not post
    assert events == ["/posts/1"]
