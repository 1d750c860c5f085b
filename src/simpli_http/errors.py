"""Exception hierarchy for simpli-http.

Every error raised by the library itself derives from ``SimpliHTTPError``.
Errors raised by caller code (hooks, listener callbacks, a custom
transport) and pydantic validation errors are never wrapped; they reach
the caller of the fetch operation as they were raised.

Exception Hierarchy:
    SimpliHTTPError: Base exception for all simpli-http errors
    ├── TransportError: The bundled httpx transport failed
    ├── ShapeError: Shape descriptor is neither an instance nor a constructor
    ├── MalformedBodyError: Raw body text is not JSON
    ├── MaterializationError: Plain data cannot be converted to the target
    └── ConfigurationError: Invalid configuration values

Example:
    >>> try:
    ...     user = await Request.get("/users/1").as_(User).fetch_data()
    ... except TransportError as e:
    ...     if e.status_code == 404:
    ...         user = None
    ...     else:
    ...         raise
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .types import TransportResponse


class SimpliHTTPError(Exception):
    """Base exception for all simpli-http errors."""

    pass


class TransportError(SimpliHTTPError):
    """Raised by the httpx transport when a request fails.

    ``status_code`` is None when no response was received (connection
    errors, timeouts). The originating httpx exception is chained as
    ``__cause__``.
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        method: str | None = None,
        url: str | None = None,
        response: TransportResponse | None = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.method = method
        self.url = url
        self.response = response


class ShapeError(SimpliHTTPError, TypeError):
    """Raised when a shape descriptor is neither an instance nor a constructor.

    This is a usage error: passing a primitive literal such as ``3`` or
    ``"user"`` to ``as_()``.
    """

    def __init__(self, descriptor: Any):
        self.descriptor = descriptor
        super().__init__(
            f"target shape must be an instance or a constructor, got {type(descriptor).__name__}"
        )


class MalformedBodyError(SimpliHTTPError, ValueError):
    """Raised when a raw response body is present but is not valid JSON."""

    def __init__(self, message: str, text: str):
        super().__init__(message)
        self.text = text


class MaterializationError(SimpliHTTPError):
    """Raised when plain data cannot be converted into the requested target."""

    def __init__(self, message: str, target: Any = None, value: Any = None):
        super().__init__(message)
        self.target = target
        self.value = value


class ConfigurationError(SimpliHTTPError):
    """Raised when configuration is invalid."""

    pass
