"""Validation adapter backed by pydantic."""

from __future__ import annotations

import functools
from typing import Any

from pydantic import TypeAdapter, ValidationError

from safe_route.core.types import (
    ValidationFailure,
    ValidationIssue,
    ValidationResult,
    ValidationSuccess,
)

TYPE_ADAPTER_CACHE_SIZE = 512


@functools.lru_cache(maxsize=TYPE_ADAPTER_CACHE_SIZE)
def _cached_type_adapter(schema: Any) -> TypeAdapter[Any]:
    return TypeAdapter(schema)


def type_adapter_for(schema: Any) -> TypeAdapter[Any]:
    """Return a ``TypeAdapter`` for ``schema``.

    Adapters for hashable schemas are memoized process-wide in a bounded,
    thread-safe LRU cache. Unhashable annotations get a fresh adapter.
    """
    try:
        return _cached_type_adapter(schema)
    except TypeError:
        return TypeAdapter(schema)


class PydanticAdapter:
    """Validate values against pydantic models or any ``TypeAdapter`` type.

    A model class validates into a model instance; other annotations (e.g.
    ``dict[str, int]`` or ``Annotated`` types) validate into their Python value.
    The adapter itself holds no state.
    """

    __slots__ = ()

    async def validate(self, schema: Any, value: Any) -> ValidationResult[Any]:
        try:
            data = type_adapter_for(schema).validate_python(value)
        except ValidationError as e:
            return ValidationFailure(
                tuple(
                    ValidationIssue(path=tuple(err["loc"]), message=err["msg"])
                    for err in e.errors()
                )
            )
        return ValidationSuccess(data)


def pydantic_adapter() -> PydanticAdapter:
    return PydanticAdapter()
