"""Validation adapters.

An adapter is any object with an async ``validate(schema, value)`` method
returning ``ValidationSuccess`` or ``ValidationFailure``. Ordinary validation
failures are returned, never raised.
"""

from .base import ValidationAdapter
from .jsonschema_adapter import JsonSchemaAdapter, jsonschema_adapter
from .pydantic_adapter import PydanticAdapter, pydantic_adapter

__all__ = [
    "JsonSchemaAdapter",
    "PydanticAdapter",
    "ValidationAdapter",
    "jsonschema_adapter",
    "pydantic_adapter",
]
