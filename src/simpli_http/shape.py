"""Shape descriptors: what a response body should be turned into.

``resolve_shape()`` classifies the value given to ``Request.as_()`` once,
when the ``Response`` is built:

- ``None`` -> ``NoShape``: the normalized body is returned unchanged.
- a class, a typing construct such as ``list[int]``, or a function ->
  ``Constructor``: a fresh value is built on every fetch.
- a str, bytes or number literal -> ``InvalidShape``: fetching fails with
  ``ShapeError``.
- any other object -> ``ExistingInstance``: it is populated in place.
"""

from __future__ import annotations

import functools
import inspect
from dataclasses import dataclass
from typing import Any, Callable, get_origin

_LITERAL_TYPES = (str, bytes, bytearray, int, float, complex, bool)


def is_class(value: Any) -> bool:
    """Whether ``value`` is a real class; ``list[int]`` and friends are not."""
    return isinstance(value, type) and get_origin(value) is None


def is_constructor(value: Any) -> bool:
    """Whether ``value`` builds new values rather than being one."""
    return (
        isinstance(value, type)
        or get_origin(value) is not None
        or inspect.isroutine(value)
        or isinstance(value, functools.partial)
    )


class Shape:
    """Base class of the shape variants."""

    def hook(self, name: str) -> Callable | None:
        """Return the lifecycle hook ``name`` if this shape provides one."""
        return None


@dataclass(frozen=True)
class NoShape(Shape):
    """Return the body as the transport produced it."""


@dataclass(frozen=True)
class ExistingInstance(Shape):
    """Populate ``value`` in place and return it."""

    value: Any

    def hook(self, name: str) -> Callable | None:
        hook = getattr(self.value, name, None)
        return hook if callable(hook) else None


@dataclass(frozen=True)
class Constructor(Shape):
    """Build a new value from ``factory`` on every fetch."""

    factory: Any

    def hook(self, name: str) -> Callable | None:
        # Instance methods on a class would be called unbound; only class-level hooks apply.
        if not is_class(self.factory):
            return None
        try:
            raw = inspect.getattr_static(self.factory, name)
        except AttributeError:
            return None
        if isinstance(raw, (classmethod, staticmethod)):
            return getattr(self.factory, name)
        return None


@dataclass(frozen=True)
class InvalidShape(Shape):
    """A descriptor that is neither an instance nor a constructor."""

    value: Any


def resolve_shape(descriptor: Any) -> Shape:
    """Classify a shape descriptor."""
    if descriptor is None:
        return NoShape()
    if isinstance(descriptor, Shape):
        return descriptor
    if is_constructor(descriptor):
        return Constructor(descriptor)
    if isinstance(descriptor, _LITERAL_TYPES):
        return InvalidShape(descriptor)
    return ExistingInstance(descriptor)
