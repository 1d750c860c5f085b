"""Shared test fixtures and utilities."""

import json

import pytest

from simpli_http import context as context_module
from simpli_http.context import RequestContext
from simpli_http.fields import FieldVisibility
from simpli_http.listener import RequestListener
from simpli_http.materializer import PydanticMaterializer
from simpli_http.types import MISSING, TransportResponse


class StubTransport:
    """In-memory transport returning queued responses and recording every call."""

    def __init__(self):
        self.calls = []
        self.responses = []
        self.default = TransportResponse(200, text="{}", data={})

    def reply(self, data=MISSING, *, status_code=200, text=None, headers=None):
        """Queue a response; ``text`` defaults to the JSON of ``data``."""
        if text is None:
            text = "" if data is MISSING else json.dumps(data)
        self.responses.append(
            TransportResponse(status_code, headers=headers or {}, text=text, data=data)
        )
        return self

    def fail(self, error):
        """Queue an exception to raise."""
        self.responses.append(error)
        return self

    async def send(self, method, url, options):
        self.calls.append((method, url, options))
        item = self.responses.pop(0) if self.responses else self.default
        if isinstance(item, BaseException):
            raise item
        return TransportResponse(
            item.status_code,
            headers=dict(item.headers),
            text=item.text,
            data=item.data,
            method=method,
            url=url,
        )


@pytest.fixture(autouse=True)
def reset_default_context(monkeypatch):
    """Start every test without a default context."""
    monkeypatch.setattr(context_module, "_default_context", None)


@pytest.fixture
def listener():
    """Create a fresh listener registry."""
    return RequestListener()


@pytest.fixture
def visibility():
    """Create an empty field visibility table."""
    return FieldVisibility()


@pytest.fixture
def materializer(visibility):
    return PydanticMaterializer(visibility)


@pytest.fixture
def transport():
    return StubTransport()


@pytest.fixture
def context(transport, materializer, listener):
    """Request context wired to the stub transport."""
    return RequestContext(transport=transport, materializer=materializer, listener=listener)


# Shapes used across tests


class BlogPost:
    """Plain class populated attribute by attribute."""

    def __init__(self):
        self.id = None
        self.title = None
        self.body = None
        self.user_id = None


class BlogPostWithHooks(BlogPost):
    """Counts lifecycle hook invocations."""

    def __init__(self):
        super().__init__()
        self.calls = []

    def on_before_dispatch(self, response):
        self.calls.append("before_dispatch")

    def on_before_materialization(self, raw, response):
        self.calls.append("before_materialization")

    def on_after_materialization(self, shaped, response):
        self.calls.append("after_materialization")
