"""Value coercion and scalar/array selection.

Pure functions shared by the query and body decoders.

Under the ``auto`` array strategy a repeatable key that happens to carry a
single value is indistinguishable from a scalar key: both collapse to the lone
value. Schemas that expect a list should accept a scalar too, or the route
should use ``always``.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Sequence

    from safe_route.core.options import (
        ArrayStrategy,
        SingleValueStrategy,
        ValueCoercion,
    )

_NUMBER_RE = re.compile(r"^-?(?:\d+|\d*\.\d+)$", re.ASCII)


def coerce_primitive(value: str) -> Any:
    """Parse booleans, ``null`` and plain decimal numbers; otherwise return ``value``."""
    trimmed = value.strip()
    if trimmed == "true":
        return True
    if trimmed == "false":
        return False
    if trimmed == "null":
        return None
    if _NUMBER_RE.match(trimmed):
        # Integers stay ints; anything with a decimal point becomes a float.
        return float(trimmed) if "." in trimmed else int(trimmed)
    return value


def coerce_value(value: str, key: str, coercion: ValueCoercion) -> Any:
    """Coerce a raw string according to ``coercion``.

    A callable receives ``(value, key)`` and fully replaces the built-in rules.
    """
    if callable(coercion):
        return coercion(value, key)
    if coercion == "primitive":
        return coerce_primitive(value)
    return value


def pick_single_value(values: Sequence[Any], strategy: SingleValueStrategy) -> Any:
    if not values:
        return None
    return values[0] if strategy == "first" else values[-1]


def select_values(
    values: Sequence[Any],
    array_strategy: ArrayStrategy,
    single_value_strategy: SingleValueStrategy,
) -> Any:
    """Return a list or a scalar from the decoded values of one key."""
    if array_strategy == "always":
        return list(values)
    if array_strategy == "never":
        return pick_single_value(values, single_value_strategy)
    return values[0] if len(values) == 1 else list(values)
