"""Route handler builder and the request pipeline.

A builder collects schemas, middleware and error policies, and ``handler()``
turns a business function into a Starlette-compatible endpoint:

    GET = (
        create_safe_route()
        .params(ItemParams)
        .query(Search)
        .use(require_user)
        .handler(get_item)
    )

Each invocation runs, in order: resolve params, decode query, decode body,
validate params, query and body, run middleware, call the handler. Validation
order is fixed so callers see the first failing category. Nothing raised along
the way escapes the endpoint: body decoding errors become 400 responses and
every other fault goes through the server error policy.
"""

from __future__ import annotations

from collections.abc import Mapping
import dataclasses
import logging
from typing import TYPE_CHECKING, Any

from safe_route.adapters.pydantic_adapter import pydantic_adapter
from safe_route.config import default_parser_options, resolve_settings
from safe_route.core.options import ParserOptions
from safe_route.core.types import RouteContext, _freeze_mapping, _require
from safe_route.exceptions import BodyParsingError
from safe_route.parsing.body import decode_body
from safe_route.parsing.query import parse_query
from safe_route.pipeline.base import RouteInputs
from safe_route.pipeline.middleware import run_route_middlewares
from safe_route.pipeline.validation import InputRejected, validate_input
from safe_route.responses import (
    INVALID_BODY_MESSAGE,
    INVALID_PARAMS_MESSAGE,
    INVALID_QUERY_MESSAGE,
    build_error_response,
    internal_server_error,
    is_response,
)
from safe_route.telemetry import TelemetryContext
from safe_route.utils import maybe_await, require_callable

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from starlette.requests import Request
    from starlette.responses import Response

    from safe_route.adapters.base import ValidationAdapter
    from safe_route.pipeline.base import (
        RouteHandlerFn,
        RouteMiddleware,
        ServerErrorHandler,
        ValidationErrorHandler,
    )
    from safe_route.telemetry import TelemetryReporter

log = logging.getLogger(__name__)


async def resolve_params(context: Any) -> dict[str, Any]:
    """Return the plain params mapping from a route context.

    Accepts a ``RouteContext``, a mapping with a ``params`` key, or None. The
    params value itself may be a mapping, an awaitable, or None.
    """
    if context is None:
        return {}
    params = context.get("params") if isinstance(context, Mapping) else context.params
    resolved = await maybe_await(params)
    return dict(resolved or {})


@dataclasses.dataclass(frozen=True, slots=True)
class RouteHandlerBuilder:
    """Immutable route configuration.

    Every configuration method returns a new builder, so a base builder can be
    shared and branched freely.
    """

    validation_adapter: ValidationAdapter = dataclasses.field(default_factory=pydantic_adapter)
    params_schema: Any = None
    query_schema: Any = None
    body_schema: Any = None
    middlewares: tuple[RouteMiddleware, ...] = ()
    base_context: Mapping[str, Any] = dataclasses.field(default_factory=dict)
    handle_server_error: ServerErrorHandler | None = None
    validation_error_handler: ValidationErrorHandler | None = None
    options: ParserOptions = dataclasses.field(default_factory=ParserOptions)
    reporters: tuple[TelemetryReporter, ...] = ()
    telemetry_enabled: bool = False

    def __post_init__(self) -> None:
        """Freeze the base context and validate callables."""
        object.__setattr__(self, "base_context", _freeze_mapping(self.base_context))
        _require(
            condition=isinstance(self.options, ParserOptions),
            message="must be ParserOptions",
            field_name="options",
            exc=TypeError,
        )
        for name in ("handle_server_error", "validation_error_handler"):
            value = getattr(self, name)
            if value is not None:
                require_callable(value, name)

    # --- Configuration (each returns a new builder) ---

    def params(self, schema: Any) -> RouteHandlerBuilder:
        return dataclasses.replace(self, params_schema=schema)

    def query(self, schema: Any) -> RouteHandlerBuilder:
        return dataclasses.replace(self, query_schema=schema)

    def body(self, schema: Any) -> RouteHandlerBuilder:
        return dataclasses.replace(self, body_schema=schema)

    def use(self, middleware: RouteMiddleware) -> RouteHandlerBuilder:
        """Append a middleware; middleware runs in the order it was added."""
        require_callable(middleware, "middleware")
        return dataclasses.replace(self, middlewares=(*self.middlewares, middleware))

    def parser_options(self, options: ParserOptions) -> RouteHandlerBuilder:
        return dataclasses.replace(self, options=options)

    def on_validation_error(self, handler: ValidationErrorHandler) -> RouteHandlerBuilder:
        """Replace the default 400 response for validation failures."""
        return dataclasses.replace(self, validation_error_handler=handler)

    def on_server_error(self, handler: ServerErrorHandler) -> RouteHandlerBuilder:
        """Replace the default 500 response for unexpected faults."""
        return dataclasses.replace(self, handle_server_error=handler)

    # --- Terminal ---

    def handler(
        self, fn: RouteHandlerFn
    ) -> Callable[..., Awaitable[Response]]:
        """Wrap ``fn`` in the request pipeline.

        Returns:
            An async ``endpoint(request, context=None)``. Without ``context``
            the params come from ``request.path_params``.
        """
        require_callable(fn, "handler")
        builder = self

        async def endpoint(request: Request, context: Any = None) -> Response:
            if context is None:
                context = RouteContext(params=request.path_params)
            return await builder._execute(request, context, fn)

        endpoint.__name__ = getattr(fn, "__name__", "endpoint")
        endpoint.__doc__ = getattr(fn, "__doc__", None)
        return endpoint

    async def _execute(
        self, request: Request, context: Any, fn: RouteHandlerFn
    ) -> Response:
        tele = TelemetryContext(*self.reporters, enabled=self.telemetry_enabled)
        try:
            with tele("route.params"):
                params_input = await resolve_params(context)
            with tele("route.query"):
                query_input = parse_query(request, self.options.query)
            with tele("route.body"):
                body_input = await decode_body(
                    request,
                    has_schema=self.body_schema is not None,
                    options=self.options.body,
                )

            validated: list[Any] = []
            with tele("route.validate"):
                for schema, value, message in (
                    (self.params_schema, params_input, INVALID_PARAMS_MESSAGE),
                    (self.query_schema, query_input, INVALID_QUERY_MESSAGE),
                    (self.body_schema, body_input, INVALID_BODY_MESSAGE),
                ):
                    outcome = await validate_input(
                        schema,
                        value,
                        adapter=self.validation_adapter,
                        error_message=message,
                        validation_error_handler=self.validation_error_handler,
                    )
                    if isinstance(outcome, InputRejected):
                        tele.count("route.short_circuit", reason="validation")
                        return outcome.response
                    validated.append(outcome.data)
            params, query, body = validated

            with tele("route.middleware"):
                data = await run_route_middlewares(
                    request, self.middlewares, self.base_context
                )
            if is_response(data):
                tele.count("route.short_circuit", reason="middleware")
                return data

            with tele("route.handler"):
                return await maybe_await(
                    fn(request, RouteInputs(params=params, query=query, body=body, data=data))
                )
        except BodyParsingError as e:
            log.debug("Rejected request body: %s", e)
            return build_error_response(str(e))
        except Exception as e:
            tele.count("route.error", error_type=type(e).__name__)
            log.error("Unhandled error in route handler: %s", e, exc_info=True)
            return await self._server_error_response(e)

    async def _server_error_response(self, error: Exception) -> Response:
        if self.handle_server_error is None:
            return internal_server_error()
        try:
            return await maybe_await(self.handle_server_error(error))
        except Exception as e:
            log.warning("Server error handler failed: %s", e, exc_info=True)
            return internal_server_error()


def create_safe_route(
    *,
    validation_adapter: ValidationAdapter | None = None,
    base_context: Mapping[str, Any] | None = None,
    handle_server_error: ServerErrorHandler | None = None,
    validation_error_handler: ValidationErrorHandler | None = None,
    parser_options: ParserOptions | None = None,
    reporters: tuple[TelemetryReporter, ...] = (),
) -> RouteHandlerBuilder:
    """Create a route builder.

    Args:
        validation_adapter: Adapter for all schemas (defaults to pydantic).
        base_context: Initial middleware context for every request.
        handle_server_error: Maps unexpected faults to a response.
        validation_error_handler: Maps validation issues to a response.
        parser_options: Query and body parser options. Defaults come from
            ``SAFE_ROUTE_*`` settings.
        reporters: Telemetry reporters, used when telemetry is enabled.

    Returns:
        A new ``RouteHandlerBuilder``.
    """
    settings = resolve_settings()
    return RouteHandlerBuilder(
        validation_adapter=validation_adapter or pydantic_adapter(),
        base_context=base_context or {},
        handle_server_error=handle_server_error,
        validation_error_handler=validation_error_handler,
        options=parser_options or default_parser_options(settings),
        reporters=tuple(reporters),
        telemetry_enabled=settings.telemetry_enabled,
    )
