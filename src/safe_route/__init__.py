"""Declarative validation, parsing and middleware for request handlers."""

import importlib.metadata
import logging

from safe_route.action import (
    SafeActionBuilder,
    create_safe_action_client,
    to_safe_server_error,
)
from safe_route.adapters import (
    JsonSchemaAdapter,
    PydanticAdapter,
    ValidationAdapter,
    jsonschema_adapter,
    pydantic_adapter,
)
from safe_route.config import (
    SafeRouteSettings,
    default_parser_options,
    resolve_settings,
    settings_scope,
)
from safe_route.core.options import (
    UNSET,
    BodyParserOptions,
    ParserOptions,
    QueryParserOptions,
)
from safe_route.core.types import (
    ActionResult,
    RouteContext,
    ServerErrorResult,
    SuccessResult,
    ValidationErrorResult,
    ValidationErrors,
    ValidationFailure,
    ValidationIssue,
    ValidationResult,
    ValidationSuccess,
    create_server_error_result,
    create_validation_error_result,
    is_action_result,
    is_validation_failure,
    merge_contexts,
    normalize_validation_issues,
)
from safe_route.exceptions import (
    AdapterError,
    BodyParsingError,
    InvalidActionOutputError,
    MiddlewareContractError,
    SafeRouteError,
)
from safe_route.pipeline.base import ActionArgs, MiddlewareArgs, RouteInputs
from safe_route.route import RouteHandlerBuilder, create_safe_route
from safe_route.telemetry import InMemoryReporter, TelemetryContext, TelemetryReporter

try:
    __version__ = importlib.metadata.version("safe-route")
except importlib.metadata.PackageNotFoundError:
    __version__ = "development"

# Null handler so applications without logging configured see no warnings.
logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [  # noqa: RUF022
    # Builders
    "create_safe_route",
    "RouteHandlerBuilder",
    "create_safe_action_client",
    "SafeActionBuilder",
    "to_safe_server_error",
    # Handler arguments
    "RouteContext",
    "RouteInputs",
    "ActionArgs",
    "MiddlewareArgs",
    # Parser options
    "ParserOptions",
    "QueryParserOptions",
    "BodyParserOptions",
    "UNSET",
    # Validation
    "ValidationAdapter",
    "PydanticAdapter",
    "pydantic_adapter",
    "JsonSchemaAdapter",
    "jsonschema_adapter",
    "ValidationIssue",
    "ValidationResult",
    "ValidationSuccess",
    "ValidationFailure",
    "ValidationErrors",
    "normalize_validation_issues",
    # Action results
    "ActionResult",
    "SuccessResult",
    "ValidationErrorResult",
    "ServerErrorResult",
    "create_server_error_result",
    "create_validation_error_result",
    "is_action_result",
    "is_validation_failure",
    "merge_contexts",
    # Configuration
    "SafeRouteSettings",
    "default_parser_options",
    "resolve_settings",
    "settings_scope",
    # Telemetry
    "TelemetryContext",
    "TelemetryReporter",
    "InMemoryReporter",
    # Exceptions
    "SafeRouteError",
    "BodyParsingError",
    "MiddlewareContractError",
    "InvalidActionOutputError",
    "AdapterError",
]
