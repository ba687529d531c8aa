"""Middleware chain runners.

Route middleware returns context patches and may end the request with a
response. Action middleware drives the rest of the chain explicitly through a
one-shot ``next`` continuation.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping, Sequence
import logging
from typing import TYPE_CHECKING, Any, Final

from safe_route.core.types import is_action_result, merge_contexts
from safe_route.exceptions import MiddlewareContractError
from safe_route.responses import is_response
from safe_route.utils import maybe_await

from .base import MiddlewareArgs

if TYPE_CHECKING:
    from starlette.requests import Request
    from starlette.responses import Response

    from safe_route.core.types import ActionResult

    from .base import ActionMiddleware, RouteMiddleware

log = logging.getLogger(__name__)

NEXT_CALLED_TWICE_MESSAGE: Final = "next() called more than once in the same middleware."
INVALID_MIDDLEWARE_RESULT_MESSAGE: Final = "Middleware must return an action result."


async def run_route_middlewares(
    request: Request,
    middlewares: Sequence[RouteMiddleware],
    base_context: Mapping[str, Any],
) -> dict[str, Any] | Response:
    """Run route middleware in order.

    Returns:
        The merged context, or the first response returned by a middleware.

    Raises:
        MiddlewareContractError: If a middleware returns something that is
            neither a mapping, a response, nor None.
    """
    context = dict(base_context)
    for index, middleware in enumerate(middlewares):
        result = await maybe_await(middleware(request, context))
        if is_response(result):
            log.debug(
                "Middleware #%d (%s) returned a response; skipping the rest",
                index,
                getattr(middleware, "__name__", type(middleware).__name__),
            )
            return result
        if result is not None and not isinstance(result, Mapping):
            raise MiddlewareContractError(
                f"Route middleware must return a mapping or a response, "
                f"got {type(result).__name__}"
            )
        context = merge_contexts(context, result)
    return context


class ActionChain:
    """One invocation of an action middleware chain.

    Created fresh per invocation so continuation guards never leak between
    calls.
    """

    __slots__ = ("_middlewares", "_metadata", "_parsed_input", "_terminal")

    def __init__(
        self,
        middlewares: Sequence[ActionMiddleware],
        *,
        parsed_input: Any,
        metadata: Mapping[str, Any],
        terminal: Callable[[dict[str, Any]], Awaitable[ActionResult[Any]]],
    ) -> None:
        self._middlewares = middlewares
        self._parsed_input = parsed_input
        self._metadata = metadata
        self._terminal = terminal

    async def run(self, ctx: dict[str, Any]) -> ActionResult[Any]:
        return await self._run_from(0, ctx)

    async def _run_from(self, index: int, ctx: dict[str, Any]) -> ActionResult[Any]:
        if index >= len(self._middlewares):
            return await self._terminal(ctx)

        middleware = self._middlewares[index]
        current_ctx = ctx
        next_called = False

        async def next_(
            ctx: Mapping[str, Any] | None = None,
        ) -> ActionResult[Any]:
            nonlocal next_called
            if next_called:
                raise MiddlewareContractError(NEXT_CALLED_TWICE_MESSAGE)
            next_called = True
            return await self._run_from(index + 1, merge_contexts(current_ctx, ctx))

        result = await maybe_await(
            middleware(
                MiddlewareArgs(
                    parsed_input=self._parsed_input,
                    ctx=ctx,
                    metadata=self._metadata,
                    next=next_,
                )
            )
        )
        if not is_action_result(result):
            raise MiddlewareContractError(INVALID_MIDDLEWARE_RESULT_MESSAGE)
        if not next_called:
            log.debug("Action middleware #%d short-circuited the chain", index)
        return result
