"""WebSocket push channel with shape materialization of inbound messages.

Example:
    Receive typed notifications::

        async with SocketConnection("wss://example.com/feed").as_(Notification) as conn:
            conn.on_data(lambda note: print(note.title))
            await conn.listen()
"""

from __future__ import annotations

import json
from typing import Any, Callable, Generic, TypeVar

import websockets
from loguru import logger
from websockets.exceptions import ConnectionClosed, ConnectionClosedOK

from .materializer import PydanticMaterializer
from .types import Materializer

T = TypeVar("T")


class SocketConnection(Generic[T]):
    """WebSocket client whose inbound messages are materialized into a shape.

    Messages are passed through as received until ``as_()`` binds a shape;
    after that each message is decoded as JSON and materialized.
    """

    def __init__(self, url: str, *, materializer: Materializer | None = None):
        self.url = url
        self.materializer = materializer or PydanticMaterializer()
        self.shape: Any = None
        self._connection = None
        self._on_open: Callable[[], Any] | None = None
        self._on_close: Callable[[], Any] | None = None
        self._on_error: Callable[[Exception], Any] | None = None
        self._on_data: Callable[[T], Any] | None = None

    def as_(self, shape: type[T]) -> SocketConnection[T]:
        self.shape = shape
        return self

    # Callbacks; each setter replaces the previous callback.

    def on_open(self, callback: Callable[[], Any]) -> None:
        self._on_open = callback

    def on_close(self, callback: Callable[[], Any]) -> None:
        self._on_close = callback

    def on_error(self, callback: Callable[[Exception], Any]) -> None:
        self._on_error = callback

    def on_data(self, callback: Callable[[T], Any]) -> None:
        self._on_data = callback

    # Connection lifecycle

    @property
    def connected(self) -> bool:
        return self._connection is not None

    async def connect(self) -> SocketConnection[T]:
        try:
            self._connection = await websockets.connect(self.url)
        except Exception as e:
            logger.debug(f"WebSocket connection to {self.url} failed: {e!r}")
            if self._on_error is not None:
                self._on_error(e)
            raise
        logger.debug(f"WebSocket connected to {self.url}")
        if self._on_open is not None:
            self._on_open()
        return self

    async def disconnect(self) -> None:
        if self._connection is None:
            return
        connection, self._connection = self._connection, None
        await connection.close()
        logger.debug(f"WebSocket disconnected from {self.url}")
        if self._on_close is not None:
            self._on_close()

    async def __aenter__(self):
        """Enter async context."""
        return await self.connect()

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Exit async context."""
        await self.disconnect()

    # Messaging

    async def send_text(self, text: str) -> None:
        await self._require_connection().send(text)

    async def send_object(self, obj: Any) -> None:
        """Send ``obj`` as JSON of its plain form."""
        await self.send_text(json.dumps(self.materializer.to_plain(obj)))

    async def receive(self) -> T:
        """Wait for one message and return it materialized."""
        message = await self._require_connection().recv()
        return self._materialize(message)

    async def listen(self) -> None:
        """Deliver messages to ``on_data`` until the connection closes.

        A normal close fires ``on_close``; any other failure fires
        ``on_error`` and is re-raised.
        """
        connection = self._require_connection()
        try:
            while True:
                message = await connection.recv()
                value = self._materialize(message)
                if self._on_data is not None:
                    self._on_data(value)
        except ConnectionClosedOK:
            logger.debug(f"WebSocket {self.url} closed by peer")
        except ConnectionClosed as e:
            self._connection = None
            if self._on_error is not None:
                self._on_error(e)
            raise

        self._connection = None
        if self._on_close is not None:
            self._on_close()

    def _materialize(self, message: str | bytes) -> Any:
        if self.shape is None:
            return message
        return self.materializer.to_shape(self.shape, json.loads(message))

    def _require_connection(self):
        if self._connection is None:
            raise RuntimeError(f"WebSocket {self.url} is not connected")
        return self._connection
