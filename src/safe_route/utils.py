"""Small helpers shared by the pipelines."""

from collections.abc import Awaitable
import inspect
from typing import Any

from .core.types import _require


async def maybe_await[T](value: T | Awaitable[T]) -> T:
    """Await ``value`` if it is awaitable, otherwise return it unchanged."""
    if inspect.isawaitable(value):
        return await value
    return value


def require_callable(func: Any, field_name: str) -> None:
    _require(
        condition=callable(func),
        message="must be callable",
        field_name=field_name,
        exc=TypeError,
    )
