"""Process-wide registry of request start/end/error listeners.

Every fetch emits ``start`` before dispatch and then exactly one of ``end``
(the transport returned) or ``error`` (the transport raised). Callbacks
receive the request's logical identity: its explicit name, or its endpoint
when it has none.

Example:
    Show a spinner while any request is in flight::

        from simpli_http import request_listener

        pending = set()
        request_listener.on_start(pending.add)
        request_listener.on_end(pending.discard)
        request_listener.on_error(pending.discard)
"""

from __future__ import annotations

import inspect
import threading

from loguru import logger

from .types import ListenerCallback


class RequestListener:
    """Registry of start, end and error callbacks.

    The three sequences are independent and keep insertion order. A
    callback registered twice is invoked twice per emission; removal drops
    only the first matching registration. Exceptions raised by a callback
    are not caught: they propagate out of the ``emit_*`` call.

    The sequences are guarded by a lock so registration from worker
    threads is safe; emission iterates over a snapshot, so callbacks may
    register or remove listeners while being notified.
    """

    def __init__(self):
        self._start: list[ListenerCallback] = []
        self._end: list[ListenerCallback] = []
        self._error: list[ListenerCallback] = []
        self._lock = threading.RLock()

    # Registration

    def on_start(self, callback: ListenerCallback) -> ListenerCallback:
        """Register a callback invoked before a request is dispatched."""
        return self._add(self._start, "start", callback)

    def on_end(self, callback: ListenerCallback) -> ListenerCallback:
        """Register a callback invoked after a request returned."""
        return self._add(self._end, "end", callback)

    def on_error(self, callback: ListenerCallback) -> ListenerCallback:
        """Register a callback invoked after a request failed in transport."""
        return self._add(self._error, "error", callback)

    def _add(self, callbacks: list, kind: str, callback: ListenerCallback) -> ListenerCallback:
        if not callable(callback):
            raise TypeError(f"{kind} listener must be callable, got {type(callback).__name__}")
        with self._lock:
            callbacks.append(callback)
        logger.debug(f"Registered {kind} listener {callback!r}")
        return callback

    # Removal

    def remove_start_listener(self, callback: ListenerCallback) -> None:
        self._remove(self._start, callback)

    def remove_end_listener(self, callback: ListenerCallback) -> None:
        self._remove(self._end, callback)

    def remove_error_listener(self, callback: ListenerCallback) -> None:
        self._remove(self._error, callback)

    def remove_listener(self, callback: ListenerCallback) -> None:
        """Remove the first registration of ``callback`` from every sequence."""
        with self._lock:
            self.remove_start_listener(callback)
            self.remove_end_listener(callback)
            self.remove_error_listener(callback)

    def _remove(self, callbacks: list, callback: ListenerCallback) -> None:
        with self._lock:
            for index, registered in enumerate(callbacks):
                if _same_callback(registered, callback):
                    del callbacks[index]
                    logger.debug(f"Removed listener {callback!r}")
                    return

    def clear_start_listeners(self) -> None:
        with self._lock:
            self._start.clear()

    def clear_end_listeners(self) -> None:
        with self._lock:
            self._end.clear()

    def clear_error_listeners(self) -> None:
        with self._lock:
            self._error.clear()

    def clear_listeners(self) -> None:
        """Remove every registered callback."""
        with self._lock:
            self._start.clear()
            self._end.clear()
            self._error.clear()

    # Counting

    def start_listener_count(self, callback: ListenerCallback | None = None) -> int:
        """Number of start registrations, or 1/0 for presence of ``callback``."""
        return self._count(self._start, callback)

    def end_listener_count(self, callback: ListenerCallback | None = None) -> int:
        """Number of end registrations, or 1/0 for presence of ``callback``."""
        return self._count(self._end, callback)

    def error_listener_count(self, callback: ListenerCallback | None = None) -> int:
        """Number of error registrations, or 1/0 for presence of ``callback``."""
        return self._count(self._error, callback)

    def _count(self, callbacks: list, callback: ListenerCallback | None) -> int:
        with self._lock:
            if callback is None:
                return len(callbacks)
            return 1 if any(_same_callback(registered, callback) for registered in callbacks) else 0

    # Emission

    def emit_start(self, identity: str) -> None:
        self._emit(self._start, "start", identity)

    def emit_end(self, identity: str) -> None:
        self._emit(self._end, "end", identity)

    def emit_error(self, identity: str) -> None:
        self._emit(self._error, "error", identity)

    def _emit(self, callbacks: list, kind: str, identity: str) -> None:
        with self._lock:
            snapshot = list(callbacks)
        logger.debug(f"Emitting {kind} for '{identity}' to {len(snapshot)} listener(s)")
        for callback in snapshot:
            callback(identity)


def _same_callback(registered: ListenerCallback, callback: ListenerCallback) -> bool:
    """Identity match; a bound method matches another binding of the same function to the same object."""
    if registered is callback:
        return True
    if inspect.ismethod(registered) and inspect.ismethod(callback):
        return registered.__self__ is callback.__self__ and registered.__func__ is callback.__func__
    return False


request_listener = RequestListener()
"""Default process-wide registry used by the default request context."""
