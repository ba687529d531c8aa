"""Input validation stage.

Runs a declared schema over one input category (params, query or body) and
maps a failure to a single response. Categories without a schema pass through
unvalidated.
"""

from __future__ import annotations

import dataclasses
import logging
from typing import TYPE_CHECKING, Any

from safe_route.core.types import ValidationFailure
from safe_route.responses import build_error_response
from safe_route.utils import maybe_await

if TYPE_CHECKING:
    from starlette.responses import Response

    from safe_route.adapters.base import ValidationAdapter

    from .base import ValidationErrorHandler

log = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True, slots=True)
class InputAccepted:
    """The (possibly schema-transformed) input."""

    data: Any


@dataclasses.dataclass(frozen=True, slots=True)
class InputRejected:
    """The response to return instead of running the rest of the pipeline."""

    response: Response


type InputOutcome = InputAccepted | InputRejected


async def validate_input(
    schema: Any,
    value: Any,
    *,
    adapter: ValidationAdapter,
    error_message: str,
    validation_error_handler: ValidationErrorHandler | None = None,
) -> InputOutcome:
    """Validate one input category.

    Args:
        schema: The declared schema, or None when the category is not validated.
        value: The decoded input.
        adapter: Validation adapter used for the schema.
        error_message: Message of the default 400 response.
        validation_error_handler: Optional mapper from issues to a response.

    Returns:
        ``InputAccepted`` with the validated data, or ``InputRejected`` with
        the response to send.
    """
    if schema is None:
        return InputAccepted({} if value is None else value)

    result = await adapter.validate(schema, value)
    if not isinstance(result, ValidationFailure):
        return InputAccepted(result.data)

    log.debug("%s: %d issue(s)", error_message, len(result.issues))
    if validation_error_handler is not None:
        return InputRejected(await maybe_await(validation_error_handler(result.issues)))
    return InputRejected(build_error_response(error_message, result.issues))
