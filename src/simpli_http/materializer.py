"""Default shape materialization adapter built on pydantic."""

from __future__ import annotations

import dataclasses
import functools
from collections.abc import Mapping, MutableMapping
from enum import Enum
from typing import Any, get_origin

from loguru import logger
from pydantic import AliasChoices, BaseModel, RootModel, TypeAdapter
from pydantic.errors import PydanticSchemaGenerationError
from pydantic.fields import FieldInfo
from pydantic_core import to_jsonable_python

from .errors import MaterializationError
from .fields import FieldVisibility, field_visibility
from .shape import is_class, is_constructor
from .types import ShapeOptions

_SCALARS = (str, bytes, int, float, bool)
_COLLECTION_TYPES = (list, tuple, set, frozenset, dict)


@functools.lru_cache(maxsize=256)
def _adapter_for(target: Any) -> TypeAdapter | None:
    """TypeAdapter for ``target``, or None when pydantic cannot describe it."""
    try:
        return TypeAdapter(target)
    except PydanticSchemaGenerationError:
        return None


class PydanticMaterializer:
    """Converts between plain data and shapes.

    Pydantic models, dataclasses, TypedDicts, builtins and typing
    constructs are validated with pydantic. Any other class is treated the
    way class-based mappers treat it: instantiated without arguments and
    populated attribute by attribute. Field rules from the visibility
    table are applied in both directions.
    """

    def __init__(self, visibility: FieldVisibility | None = None):
        self.visibility = visibility if visibility is not None else field_visibility

    # Instance -> plain

    def to_plain(self, value: Any, options: ShapeOptions | None = None) -> Any:
        return self._to_plain(value, options or ShapeOptions())

    def _to_plain(self, value: Any, options: ShapeOptions) -> Any:
        if value is None or isinstance(value, _SCALARS):
            return value

        if isinstance(value, BaseModel):
            model = type(value)
            data = value.model_dump(mode="json", by_alias=True, exclude_none=options.exclude_none)
            keys = {
                name: info.serialization_alias or info.alias or name
                for name, info in model.model_fields.items()
            }
            return self._request_view(model, data, options, keys)

        if dataclasses.is_dataclass(value) and not isinstance(value, type):
            data = {f.name: getattr(value, f.name) for f in dataclasses.fields(value)}
            return self._request_view(type(value), self._plain_items(data, options), options)

        if isinstance(value, Mapping):
            return self._plain_items(value, options)

        if isinstance(value, (list, tuple, set, frozenset)):
            return [self._to_plain(item, options) for item in value]

        if isinstance(value, Enum):
            return self._to_plain(value.value, options)

        if hasattr(value, "__dict__") and not isinstance(value, type):
            data = {k: v for k, v in vars(value).items() if not k.startswith("_")}
            return self._request_view(type(value), self._plain_items(data, options), options)

        return to_jsonable_python(value)

    def _plain_items(self, data: Mapping, options: ShapeOptions) -> dict:
        return {key: self._to_plain(item, options) for key, item in data.items()}

    def _request_view(
        self,
        cls: type,
        data: dict,
        options: ShapeOptions,
        keys: dict[str, str] | None = None,
    ) -> dict:
        rules = self.visibility.rules_for(cls)
        if keys:
            rules = {keys.get(name, name): rule for name, rule in rules.items()}

        result = {}
        for key, item in data.items():
            rule = rules.get(key)
            if rule is not None and not rule.request:
                continue
            if options.exclude_none and item is None:
                continue
            result[rule.request_alias or key if rule is not None else key] = item
        return result

    # Plain -> shape

    def to_shape(self, target: Any, plain: Any, options: ShapeOptions | None = None) -> Any:
        options = options or ShapeOptions()
        if is_constructor(target):
            return self._construct(target, plain, options)
        return self._populate(target, plain, options)

    def _construct(self, target: Any, plain: Any, options: ShapeOptions) -> Any:
        if _is_factory(target):
            logger.debug(f"Materializing with factory {target!r}")
            return target(plain)

        if (
            isinstance(plain, list)
            and is_class(target)
            and not issubclass(target, _COLLECTION_TYPES)
            and not _is_root_model(target)
        ):
            return [self._construct(target, item, options) for item in plain]

        data = plain
        if is_class(target) and isinstance(plain, Mapping):
            data = self._response_view(target, plain, options)

        if is_class(target) and issubclass(target, BaseModel):
            return target.model_validate(data, strict=options.strict)

        adapter = _adapter_for(target)
        if adapter is not None:
            return adapter.validate_python(data, strict=options.strict)

        if not isinstance(data, Mapping):
            raise MaterializationError(
                f"Cannot materialize {type(plain).__name__} into {target.__name__}",
                target=target,
                value=plain,
            )

        try:
            instance = target()
        except TypeError as e:
            raise MaterializationError(
                f"Cannot instantiate {target.__name__} without arguments: {e}",
                target=target,
                value=plain,
            ) from e
        self._assign(instance, data, options)
        return instance

    def _populate(self, target: Any, plain: Any, options: ShapeOptions) -> Any:
        if isinstance(target, MutableMapping):
            if not isinstance(plain, Mapping):
                raise MaterializationError(
                    f"Cannot populate a mapping from {type(plain).__name__}",
                    target=target,
                    value=plain,
                )
            target.update(plain)
            return target

        if isinstance(target, list):
            if not isinstance(plain, list):
                raise MaterializationError(
                    f"Cannot populate a list from {type(plain).__name__}",
                    target=target,
                    value=plain,
                )
            target[:] = plain
            return target

        if not isinstance(plain, Mapping):
            raise MaterializationError(
                f"Cannot populate {type(target).__name__} from {type(plain).__name__}",
                target=target,
                value=plain,
            )

        cls = type(target)
        data = self._response_view(cls, plain, options)

        if isinstance(target, BaseModel):
            current = {
                _validation_key(name, info): getattr(target, name)
                for name, info in cls.model_fields.items()
            }
            merged = cls.model_validate({**current, **data}, strict=options.strict)
            for name in cls.model_fields:
                setattr(target, name, getattr(merged, name))
            return target

        if dataclasses.is_dataclass(target):
            adapter = _adapter_for(cls)
            if adapter is not None:
                current = {f.name: getattr(target, f.name) for f in dataclasses.fields(target) if f.init}
                merged = adapter.validate_python({**current, **data}, strict=options.strict)
                for f in dataclasses.fields(target):
                    setattr(target, f.name, getattr(merged, f.name))
                return target

        self._assign(target, data, options)
        return target

    def _response_view(self, cls: type, data: Mapping, options: ShapeOptions) -> dict:
        rules = self.visibility.rules_for(cls)
        if not rules:
            return dict(data)

        source_keys = {rule.response_alias: name for name, rule in rules.items() if rule.response_alias}
        result = {}
        for key, value in data.items():
            name = source_keys.get(key, key)
            rule = rules.get(name)
            if rule is not None:
                if not rule.response:
                    continue
                # An aliased field is only read from its alias.
                if rule.response_alias and key != rule.response_alias:
                    continue
                if rule.shape is not None and value is not None:
                    value = self.to_shape(rule.shape, value, options)
            result[name] = value
        return result

    def _assign(self, instance: Any, data: Mapping, options: ShapeOptions) -> None:
        for key, value in data.items():
            if options.exclude_extraneous and not hasattr(instance, key):
                continue
            setattr(instance, key, value)


def _is_factory(target: Any) -> bool:
    """Whether ``target`` is a plain callable rather than a class or typing construct."""
    return not isinstance(target, type) and get_origin(target) is None


def _is_root_model(target: type) -> bool:
    return issubclass(target, RootModel)


def _validation_key(name: str, info: FieldInfo) -> str:
    """Input key pydantic reads field ``name`` from."""
    alias = info.validation_alias
    if isinstance(alias, str):
        return alias
    if isinstance(alias, AliasChoices) and isinstance(alias.choices[0], str):
        return alias.choices[0]
    return info.alias or name
