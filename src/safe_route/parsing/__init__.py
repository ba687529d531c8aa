"""Decoders that turn raw request parts into plain Python values."""

from .body import decode_body, resolve_empty_body
from .coercion import coerce_value, select_values
from .query import parse_query

__all__ = [
    "coerce_value",
    "decode_body",
    "parse_query",
    "resolve_empty_body",
    "select_values",
]
