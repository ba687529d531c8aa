"""Query string decoding."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from .coercion import coerce_value, select_values

if TYPE_CHECKING:
    from starlette.datastructures import ImmutableMultiDict
    from starlette.requests import Request

    from safe_route.core.options import QueryParserOptions


def group_multi_items(items: ImmutableMultiDict[str, Any]) -> dict[str, list[Any]]:
    """Group repeated keys into lists, keeping first-seen key order."""
    grouped: dict[str, list[Any]] = {}
    for key, value in items.multi_items():
        grouped.setdefault(key, []).append(value)
    return grouped


def parse_query(request: Request, options: QueryParserOptions) -> dict[str, Any]:
    """Decode ``request.query_params`` into a mapping of key to value or list."""
    params: dict[str, Any] = {}
    for key, values in group_multi_items(request.query_params).items():
        coerced = [coerce_value(value, key, options.coerce) for value in values]
        params[key] = select_values(
            coerced, options.array_strategy, options.single_value_strategy
        )
    return params
