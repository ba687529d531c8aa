"""Protocols and argument types for middleware and handlers."""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping
import dataclasses
from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from starlette.requests import Request
    from starlette.responses import Response

    from safe_route.core.types import ActionResult, ValidationIssue


class RouteMiddleware(Protocol):
    """Protocol for route middleware.

    Each middleware receives the request and the context accumulated so far
    and returns either a patch to merge into the context or a response that
    ends the request early. It may be a plain or an async function.
    """

    def __call__(
        self, request: Request, data: dict[str, Any]
    ) -> Mapping[str, Any] | Response | None | Awaitable[Mapping[str, Any] | Response | None]:
        ...


@dataclasses.dataclass(frozen=True, slots=True)
class RouteInputs:
    """Validated inputs and middleware context handed to a route handler."""

    params: Any
    query: Any
    body: Any
    data: dict[str, Any]


type RouteHandlerFn = Callable[[Request, RouteInputs], Response | Awaitable[Response]]
type ServerErrorHandler = Callable[[Exception], Response | Awaitable[Response]]
type ValidationErrorHandler = Callable[
    [tuple[ValidationIssue, ...]], Response | Awaitable[Response]
]


@dataclasses.dataclass(frozen=True, slots=True)
class ActionArgs:
    """Arguments handed to an action handler."""

    parsed_input: Any
    ctx: dict[str, Any]
    metadata: Mapping[str, Any]


type NextFn = Callable[..., Awaitable[ActionResult[Any]]]


@dataclasses.dataclass(frozen=True, slots=True)
class MiddlewareArgs:
    """Arguments handed to an action middleware.

    ``next(ctx=None)`` runs the rest of the chain with ``ctx`` merged into the
    current context and returns the downstream result. It may be called at
    most once.
    """

    parsed_input: Any
    ctx: dict[str, Any]
    metadata: Mapping[str, Any]
    next: NextFn


class ActionMiddleware(Protocol):
    """Protocol for action middleware.

    A middleware must return an action result: usually the one returned by
    ``args.next()``, or its own result to short-circuit the chain.
    """

    def __call__(
        self, args: MiddlewareArgs
    ) -> ActionResult[Any] | Awaitable[ActionResult[Any]]:
        ...


type ActionHandlerFn = Callable[[ActionArgs], Any]
type ServerErrorMapper = Callable[[Exception], str]
