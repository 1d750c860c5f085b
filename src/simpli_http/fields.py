"""Per-type field visibility rules for plain-data conversion.

A ``FieldRule`` says whether a field takes part in request bodies
(instance -> plain) and in response materialization (plain -> instance),
under which key, and which shape nested response data should take. Rules
live in a ``FieldVisibility`` table keyed by class; the materializer
consults it, so shape classes need no base class or metaclass.

Example:
    Hide a field from responses and rename another one::

        @http_fields(
            password=response_exclude(),
            created_at=response_expose("createdAt") | response_serialize(datetime),
        )
        class User:
            def __init__(self):
                self.id = None
                self.password = None
                self.created_at = None
"""

from __future__ import annotations

from dataclasses import dataclass, fields, replace
from typing import Any, Callable, Iterable, TypeVar

from loguru import logger

T = TypeVar("T")


@dataclass(frozen=True)
class FieldRule:
    """Visibility rule for one field.

    Attributes:
        request: Include the field in request bodies (default: True)
        response: Populate the field from responses (default: True)
        request_alias: Key to write in request bodies instead of the field name
        response_alias: Key to read from responses instead of the field name
        shape: Shape to materialize the field's response value into
    """

    request: bool = True
    response: bool = True
    request_alias: str | None = None
    response_alias: str | None = None
    shape: Any = None

    def __or__(self, other: FieldRule) -> FieldRule:
        """Combine two rules; non-default values of ``other`` win."""
        if not isinstance(other, FieldRule):
            return NotImplemented
        default = FieldRule()
        changes = {
            f.name: getattr(other, f.name)
            for f in fields(other)
            if getattr(other, f.name) != getattr(default, f.name)
        }
        return replace(self, **changes)


def request_expose(name: str | None = None) -> FieldRule:
    """Write the field under ``name`` in request bodies."""
    return FieldRule(request_alias=name)


def response_expose(name: str | None = None) -> FieldRule:
    """Read the field from ``name`` in responses."""
    return FieldRule(response_alias=name)


def http_expose(name: str | None = None) -> FieldRule:
    """Use ``name`` as the field's key in both directions."""
    return FieldRule(request_alias=name, response_alias=name)


def request_exclude() -> FieldRule:
    """Never send the field in request bodies."""
    return FieldRule(request=False)


def response_exclude() -> FieldRule:
    """Never populate the field from responses."""
    return FieldRule(response=False)


def http_exclude() -> FieldRule:
    """Exclude the field in both directions."""
    return FieldRule(request=False, response=False)


def response_serialize(shape: Any) -> FieldRule:
    """Materialize the field's response value into ``shape``."""
    return FieldRule(shape=shape)


class FieldVisibility:
    """Table of field rules keyed by class."""

    def __init__(self):
        self._rules: dict[type, dict[str, FieldRule]] = {}

    def register(self, cls: type, rules: dict[str, FieldRule | Iterable[FieldRule]]) -> None:
        """Register rules for ``cls``, merging with rules already registered for it."""
        if not isinstance(cls, type):
            raise TypeError(f"Field rules can only be registered for classes, got {cls!r}")

        current = self._rules.setdefault(cls, {})
        for name, rule in rules.items():
            combined = _combine(rule)
            current[name] = current[name] | combined if name in current else combined
        logger.debug(f"Registered field rules for {cls.__name__}: {sorted(rules)}")

    def rules_for(self, cls: type) -> dict[str, FieldRule]:
        """Return the effective rules for ``cls``; subclass rules override base rules."""
        merged: dict[str, FieldRule] = {}
        for klass in reversed(getattr(cls, "__mro__", ())):
            merged.update(self._rules.get(klass, {}))
        return merged

    def clear(self) -> None:
        self._rules.clear()

    def __contains__(self, cls: type) -> bool:
        return cls in self._rules


def _combine(rule: FieldRule | Iterable[FieldRule]) -> FieldRule:
    if isinstance(rule, FieldRule):
        return rule
    combined = FieldRule()
    for part in rule:
        combined = combined | part
    return combined


field_visibility = FieldVisibility()
"""Default table consulted by the default materializer."""


def http_fields(
    table: FieldVisibility | None = None, **rules: FieldRule | Iterable[FieldRule]
) -> Callable[[type[T]], type[T]]:
    """Class decorator registering field rules for the decorated class.

    Args:
        table: Table to register into (default: the module-level table)
        **rules: Field name to rule, or to a sequence of rules to combine

    Example:
        @http_fields(secret=request_exclude())
        class Account:
            ...
    """

    def decorator(cls: type[T]) -> type[T]:
        (table if table is not None else field_visibility).register(cls, rules)
        return cls

    return decorator
