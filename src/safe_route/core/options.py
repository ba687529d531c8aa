"""Parser options for query strings and request bodies.

Every field is independently defaulted, so callers only spell out what they
change. ``BodyParserOptions.empty_value`` distinguishes "unset" from ``None``
with the ``UNSET`` sentinel rather than by nullness.
"""

from __future__ import annotations

from collections.abc import Callable
import dataclasses
import enum
from typing import Any, Final, Literal

from .types import _require

type ArrayStrategy = Literal["auto", "always", "never"]
type SingleValueStrategy = Literal["first", "last"]
type CoercionMode = Literal["none", "primitive"]
type CoercionFn = Callable[[str, str], Any]
type ValueCoercion = CoercionMode | CoercionFn
type BodyFallbackStrategy = Literal["json-first", "text"]

ARRAY_STRATEGIES: Final = ("auto", "always", "never")
SINGLE_VALUE_STRATEGIES: Final = ("first", "last")
COERCION_MODES: Final = ("none", "primitive")
FALLBACK_STRATEGIES: Final = ("json-first", "text")


class _Unset(enum.Enum):
    UNSET = "UNSET"

    def __repr__(self) -> str:
        return "UNSET"


UNSET: Final = _Unset.UNSET


def _check_coercion(value: object, field_name: str) -> None:
    if callable(value):
        return
    _require(
        condition=value in COERCION_MODES,
        message=f"must be one of {list(COERCION_MODES)} or a callable, got {value!r}",
        field_name=field_name,
        exc=TypeError,
    )


def _check_strategies(array_strategy: str, single_value_strategy: str, prefix: str) -> None:
    _require(
        condition=array_strategy in ARRAY_STRATEGIES,
        message=f"must be one of {list(ARRAY_STRATEGIES)}, got {array_strategy!r}",
        field_name=f"{prefix}.array_strategy",
    )
    _require(
        condition=single_value_strategy in SINGLE_VALUE_STRATEGIES,
        message=(
            f"must be one of {list(SINGLE_VALUE_STRATEGIES)}, "
            f"got {single_value_strategy!r}"
        ),
        field_name=f"{prefix}.single_value_strategy",
    )


@dataclasses.dataclass(frozen=True, slots=True)
class QueryParserOptions:
    """How repeated query keys and raw string values are decoded.

    Attributes:
        array_strategy: ``auto`` collapses a lone value to a scalar, ``always``
            keeps lists, ``never`` picks one value.
        single_value_strategy: Which value ``never`` keeps.
        coerce: ``none``, ``primitive`` or a ``(value, key)`` callable.
    """

    array_strategy: ArrayStrategy = "auto"
    single_value_strategy: SingleValueStrategy = "last"
    coerce: ValueCoercion = "none"

    def __post_init__(self) -> None:
        """Validate strategy names and coercion."""
        _check_strategies(self.array_strategy, self.single_value_strategy, "query")
        _check_coercion(self.coerce, "query.coerce")


@dataclasses.dataclass(frozen=True, slots=True)
class BodyParserOptions:
    """How request bodies are decoded.

    Attributes:
        strict_content_type: Reject content types other than JSON and forms.
        allow_empty_body: When False an empty body is a 400.
        empty_value: Value returned for an empty body; ``UNSET`` means ``{}``.
        coerce: Coercion for form values and fallback text bodies.
        fallback_strategy: Non-strict decoding of unknown content types.
        array_strategy: As for query options, applied to form fields.
        single_value_strategy: As for query options, applied to form fields.
    """

    strict_content_type: bool = True
    allow_empty_body: bool = True
    empty_value: Any = UNSET
    coerce: ValueCoercion = "none"
    fallback_strategy: BodyFallbackStrategy = "json-first"
    array_strategy: ArrayStrategy = "auto"
    single_value_strategy: SingleValueStrategy = "last"

    def __post_init__(self) -> None:
        """Validate strategy names and coercion."""
        _check_strategies(self.array_strategy, self.single_value_strategy, "body")
        _check_coercion(self.coerce, "body.coerce")
        _require(
            condition=self.fallback_strategy in FALLBACK_STRATEGIES,
            message=(
                f"must be one of {list(FALLBACK_STRATEGIES)}, "
                f"got {self.fallback_strategy!r}"
            ),
            field_name="body.fallback_strategy",
        )

    @property
    def has_empty_value(self) -> bool:
        return self.empty_value is not UNSET


@dataclasses.dataclass(frozen=True, slots=True)
class ParserOptions:
    """Query and body parser options for a route."""

    query: QueryParserOptions = dataclasses.field(default_factory=QueryParserOptions)
    body: BodyParserOptions = dataclasses.field(default_factory=BodyParserOptions)

    def __post_init__(self) -> None:
        """Validate nested option types."""
        _require(
            condition=isinstance(self.query, QueryParserOptions),
            message="must be QueryParserOptions",
            field_name="query",
            exc=TypeError,
        )
        _require(
            condition=isinstance(self.body, BodyParserOptions),
            message="must be BodyParserOptions",
            field_name="body",
            exc=TypeError,
        )
