"""Validation adapter backed by jsonschema."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import jsonschema
from jsonschema.exceptions import SchemaError
from jsonschema.validators import validator_for

from safe_route.core.types import (
    ValidationFailure,
    ValidationIssue,
    ValidationResult,
    ValidationSuccess,
)
from safe_route.exceptions import AdapterError


class JsonSchemaAdapter:
    """Validate plain values against JSON Schema documents.

    JSON Schema does not transform values, so a successful validation returns
    the input unchanged. Issues are ordered by path for stable output.
    """

    __slots__ = ("_default_validator",)

    def __init__(
        self, default_validator: type[Any] = jsonschema.Draft202012Validator
    ) -> None:
        self._default_validator = default_validator

    async def validate(self, schema: Any, value: Any) -> ValidationResult[Any]:
        if not isinstance(schema, Mapping | bool):
            raise AdapterError(
                f"JSON Schema must be a mapping or bool, got {type(schema).__name__}"
            )
        cls = validator_for(schema, default=self._default_validator)
        try:
            cls.check_schema(schema)
        except SchemaError as e:
            raise AdapterError(f"Invalid JSON Schema: {e.message}") from e

        errors = sorted(
            cls(schema).iter_errors(value), key=lambda err: [str(p) for p in err.absolute_path]
        )
        if not errors:
            return ValidationSuccess(value)
        return ValidationFailure(
            tuple(
                ValidationIssue(path=tuple(err.absolute_path), message=err.message)
                for err in errors
            )
        )


def jsonschema_adapter(
    default_validator: type[Any] = jsonschema.Draft202012Validator,
) -> JsonSchemaAdapter:
    return JsonSchemaAdapter(default_validator)
