"""Core data types that flow through the pipelines.

This module defines the immutable values produced while a request or an
action invocation moves through its stages: validation results, normalized
validation errors, and the three-way action result. All values are created
fresh per invocation and never shared across invocations.
"""

from __future__ import annotations

import dataclasses
from types import MappingProxyType
import typing

T = typing.TypeVar("T")

# --- Minimal guard helpers ---


def _freeze_mapping(
    m: dict[str, T] | typing.Mapping[str, T] | None,
) -> typing.Mapping[str, T]:
    """Return an immutable mapping view (empty when ``m`` is None)."""
    if isinstance(m, MappingProxyType):
        return m
    return MappingProxyType(dict(m or {}))


def _require(
    *,
    condition: bool,
    message: str,
    exc: type[Exception] = ValueError,
    field_name: str | None = None,
) -> None:
    """Centralized validation with optional field context for clearer errors."""
    if not condition:
        if field_name:
            raise exc(f"{field_name}: {message}")
        raise exc(message)


type PathSegment = str | int


# --- Validation results ---


@dataclasses.dataclass(frozen=True, slots=True)
class ValidationIssue:
    """A single validation complaint.

    An empty ``path`` means the issue applies to the whole value rather than
    to a field.
    """

    path: tuple[PathSegment, ...]
    message: str

    def __post_init__(self) -> None:
        """Normalize the path to a tuple and validate the message."""
        if not isinstance(self.path, tuple):
            object.__setattr__(self, "path", tuple(self.path or ()))
        _require(
            condition=isinstance(self.message, str),
            message="must be str",
            field_name="message",
            exc=TypeError,
        )

    @property
    def dot_path(self) -> str | None:
        """Return the path joined with ``.``, or None for an empty path."""
        if not self.path:
            return None
        return ".".join(
            part if isinstance(part, str) else str(part) for part in self.path
        )

    def to_dict(self) -> dict[str, typing.Any]:
        """Return the JSON form used in error response bodies."""
        return {"path": list(self.path), "message": self.message}


@dataclasses.dataclass(frozen=True, slots=True)
class ValidationSuccess[T]:
    """Validated (and possibly transformed) output of a schema."""

    data: T


@dataclasses.dataclass(frozen=True, slots=True)
class ValidationFailure:
    """Ordered issues reported by a schema."""

    issues: tuple[ValidationIssue, ...]

    def __post_init__(self) -> None:
        """Normalize issues to a tuple."""
        if not isinstance(self.issues, tuple):
            object.__setattr__(self, "issues", tuple(self.issues))


type ValidationResult[T] = ValidationSuccess[T] | ValidationFailure


@dataclasses.dataclass(frozen=True, slots=True)
class ValidationErrors:
    """Issues bucketed by field path.

    ``field_errors`` preserves first-seen order of paths; ``form_errors``
    holds messages for issues without a path.
    """

    field_errors: dict[str, list[str]]
    form_errors: list[str]

    def to_dict(self) -> dict[str, typing.Any]:
        return {
            "fieldErrors": {k: list(v) for k, v in self.field_errors.items()},
            "formErrors": list(self.form_errors),
        }


def normalize_validation_issues(
    issues: typing.Iterable[ValidationIssue],
) -> ValidationErrors:
    """Bucket issues into field errors (by dot path) and form errors."""
    field_errors: dict[str, list[str]] = {}
    form_errors: list[str] = []

    for issue in issues:
        path = issue.dot_path
        if path is None:
            form_errors.append(issue.message)
            continue
        field_errors.setdefault(path, []).append(issue.message)

    return ValidationErrors(field_errors=field_errors, form_errors=form_errors)


# --- Action results ---
# Exactly one payload per variant; the union is the only return channel of an
# action invocation.


@dataclasses.dataclass(frozen=True, slots=True)
class SuccessResult[T]:
    """The action completed and produced ``data``."""

    data: T

    def to_dict(self) -> dict[str, typing.Any]:
        return {"data": self.data}


@dataclasses.dataclass(frozen=True, slots=True)
class ValidationErrorResult:
    """The action input failed its schema."""

    validation_errors: ValidationErrors

    def to_dict(self) -> dict[str, typing.Any]:
        return {"validationErrors": self.validation_errors.to_dict()}


@dataclasses.dataclass(frozen=True, slots=True)
class ServerErrorResult:
    """The action raised, or misused the pipeline; ``server_error`` is safe to show."""

    server_error: str

    def __post_init__(self) -> None:
        """Validate the server error message."""
        _require(
            condition=isinstance(self.server_error, str),
            message="must be str",
            field_name="server_error",
            exc=TypeError,
        )

    def to_dict(self) -> dict[str, typing.Any]:
        return {"serverError": self.server_error}


type ActionResult[T] = SuccessResult[T] | ValidationErrorResult | ServerErrorResult


def is_action_result(value: object) -> bool:
    """Return True when ``value`` is one of the action result variants."""
    return isinstance(value, SuccessResult | ValidationErrorResult | ServerErrorResult)


def is_validation_failure(result: object) -> bool:
    return isinstance(result, ValidationErrorResult)


def create_validation_error_result(
    issues: typing.Iterable[ValidationIssue],
) -> ValidationErrorResult:
    return ValidationErrorResult(normalize_validation_issues(issues))


def create_server_error_result(server_error: str) -> ServerErrorResult:
    return ServerErrorResult(server_error)


def merge_contexts(
    base: typing.Mapping[str, typing.Any],
    patch: typing.Mapping[str, typing.Any] | None = None,
) -> dict[str, typing.Any]:
    """Shallow-merge ``patch`` over ``base`` into a new dict (patch keys win)."""
    return {**base, **(patch or {})}


# --- Route context ---


@dataclasses.dataclass(frozen=True, slots=True)
class RouteContext:
    """Context handed to a route handler by the host framework.

    ``params`` may be a mapping, an awaitable resolving to one, or None.
    """

    params: typing.Any = None
