"""Safe action builder and the action pipeline.

An action is an async callable taking a single input value and always
returning an ``ActionResult``: ``SuccessResult``, ``ValidationErrorResult`` or
``ServerErrorResult``. It never raises.

    client = create_safe_action_client(handle_server_error=str)

    create_user = (
        client.input_schema(NewUser)
        .use(require_admin)
        .action(insert_user)
    )

    result = await create_user({"name": "ada"})
"""

from __future__ import annotations

from collections.abc import Mapping
import dataclasses
import logging
from typing import TYPE_CHECKING, Any, Final

from safe_route.adapters.pydantic_adapter import pydantic_adapter
from safe_route.config import resolve_settings
from safe_route.config.schema import DEFAULT_SERVER_ERROR
from safe_route.core.types import (
    SuccessResult,
    ValidationFailure,
    _freeze_mapping,
    _require,
    create_server_error_result,
    create_validation_error_result,
)
from safe_route.exceptions import InvalidActionOutputError
from safe_route.pipeline.base import ActionArgs
from safe_route.pipeline.middleware import ActionChain
from safe_route.telemetry import TelemetryContext
from safe_route.utils import maybe_await, require_callable

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from safe_route.adapters.base import ValidationAdapter
    from safe_route.core.types import ActionResult
    from safe_route.pipeline.base import (
        ActionHandlerFn,
        ActionMiddleware,
        ServerErrorMapper,
    )
    from safe_route.telemetry import TelemetryReporter

log = logging.getLogger(__name__)

_NO_INPUT: Final = object()


def to_safe_server_error(
    error: Exception,
    default_server_error: str,
    mapper: ServerErrorMapper | None = None,
) -> str:
    """Map ``error`` to a client-safe string.

    The mapper's result is used only when it is a non-empty string. A mapper
    that raises is ignored and the default is returned.
    """
    if mapper is None:
        return default_server_error
    try:
        mapped = mapper(error)
    except Exception as e:
        log.warning("Server error mapper failed: %s", e, exc_info=True)
        return default_server_error
    if isinstance(mapped, str) and mapped:
        return mapped
    return default_server_error


@dataclasses.dataclass(frozen=True, slots=True)
class SafeActionBuilder:
    """Immutable action configuration.

    Every configuration method returns a new builder.
    """

    validation_adapter: ValidationAdapter = dataclasses.field(default_factory=pydantic_adapter)
    input_schema_: Any = None
    output_schema_: Any = None
    metadata_: Mapping[str, Any] = dataclasses.field(default_factory=dict)
    middlewares: tuple[ActionMiddleware, ...] = ()
    base_context: Mapping[str, Any] = dataclasses.field(default_factory=dict)
    default_server_error: str = DEFAULT_SERVER_ERROR
    handle_server_error: ServerErrorMapper | None = None
    reporters: tuple[TelemetryReporter, ...] = ()
    telemetry_enabled: bool = False

    def __post_init__(self) -> None:
        """Freeze mappings and validate the error policy."""
        object.__setattr__(self, "base_context", _freeze_mapping(self.base_context))
        object.__setattr__(self, "metadata_", _freeze_mapping(self.metadata_))
        _require(
            condition=isinstance(self.default_server_error, str)
            and bool(self.default_server_error),
            message="must be a non-empty str",
            field_name="default_server_error",
            exc=TypeError,
        )
        if self.handle_server_error is not None:
            require_callable(self.handle_server_error, "handle_server_error")

    # --- Configuration (each returns a new builder) ---

    def input_schema(self, schema: Any) -> SafeActionBuilder:
        return dataclasses.replace(self, input_schema_=schema)

    def output_schema(self, schema: Any) -> SafeActionBuilder:
        return dataclasses.replace(self, output_schema_=schema)

    def metadata(self, metadata: Mapping[str, Any]) -> SafeActionBuilder:
        """Replace the metadata passed to middleware and the handler."""
        return dataclasses.replace(self, metadata_=metadata)

    def use(self, middleware: ActionMiddleware) -> SafeActionBuilder:
        require_callable(middleware, "middleware")
        return dataclasses.replace(self, middlewares=(*self.middlewares, middleware))

    # --- Terminal ---

    def action(
        self, handler: ActionHandlerFn
    ) -> Callable[..., Awaitable[ActionResult[Any]]]:
        """Wrap ``handler`` in the action pipeline.

        Returns:
            An async ``action(input=None)`` that always returns an action result.
        """
        require_callable(handler, "handler")
        builder = self

        async def safe_action(raw_input: Any = _NO_INPUT) -> ActionResult[Any]:
            return await builder._execute(
                None if raw_input is _NO_INPUT else raw_input, handler
            )

        safe_action.__name__ = getattr(handler, "__name__", "safe_action")
        safe_action.__doc__ = getattr(handler, "__doc__", None)
        return safe_action

    async def _execute(self, raw_input: Any, handler: ActionHandlerFn) -> ActionResult[Any]:
        tele = TelemetryContext(*self.reporters, enabled=self.telemetry_enabled)
        try:
            parsed_input = None
            if self.input_schema_ is not None:
                with tele("action.input"):
                    input_result = await self.validation_adapter.validate(
                        self.input_schema_, raw_input
                    )
                if isinstance(input_result, ValidationFailure):
                    log.debug("Action input rejected: %d issue(s)", len(input_result.issues))
                    return create_validation_error_result(input_result.issues)
                parsed_input = input_result.data

            async def run_handler(chain_ctx: dict[str, Any]) -> ActionResult[Any]:
                output = await maybe_await(
                    handler(
                        ActionArgs(
                            parsed_input=parsed_input,
                            ctx=chain_ctx,
                            metadata=self.metadata_,
                        )
                    )
                )
                if self.output_schema_ is None:
                    return SuccessResult(output)
                with tele("action.output"):
                    output_result = await self.validation_adapter.validate(
                        self.output_schema_, output
                    )
                if isinstance(output_result, ValidationFailure):
                    log.error(
                        "Action output failed its schema: %d issue(s)",
                        len(output_result.issues),
                    )
                    return self._server_error(InvalidActionOutputError(), tele)
                return SuccessResult(output_result.data)

            chain = ActionChain(
                self.middlewares,
                parsed_input=parsed_input,
                metadata=self.metadata_,
                terminal=run_handler,
            )
            with tele("action.chain"):
                return await chain.run(dict(self.base_context))
        except Exception as e:
            log.error("Unhandled error in action: %s", e, exc_info=True)
            return self._server_error(e, tele)

    def _server_error(self, error: Exception, tele: Any) -> ActionResult[Any]:
        tele.count("action.server_error", error_type=type(error).__name__)
        return create_server_error_result(
            to_safe_server_error(error, self.default_server_error, self.handle_server_error)
        )


def create_safe_action_client(
    *,
    validation_adapter: ValidationAdapter | None = None,
    base_context: Mapping[str, Any] | None = None,
    default_server_error: str | None = None,
    handle_server_error: ServerErrorMapper | None = None,
    reporters: tuple[TelemetryReporter, ...] = (),
) -> SafeActionBuilder:
    """Create an action builder.

    Args:
        validation_adapter: Adapter for input and output schemas (defaults to pydantic).
        base_context: Initial middleware context for every invocation.
        default_server_error: Server error string when no mapper applies.
            Defaults to the ``SAFE_ROUTE_DEFAULT_SERVER_ERROR`` setting.
        handle_server_error: Maps faults to client-safe strings.
        reporters: Telemetry reporters, used when telemetry is enabled.

    Returns:
        A new ``SafeActionBuilder``.
    """
    settings = resolve_settings()
    return SafeActionBuilder(
        validation_adapter=validation_adapter or pydantic_adapter(),
        base_context=base_context or {},
        default_server_error=default_server_error or settings.default_server_error,
        handle_server_error=handle_server_error,
        reporters=tuple(reporters),
        telemetry_enabled=settings.telemetry_enabled,
    )
