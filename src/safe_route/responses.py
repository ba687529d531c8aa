"""Error responses produced by the route pipeline.

All error bodies are JSON with a ``message`` key; validation failures add the
reported ``issues``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Final

from starlette.responses import JSONResponse, Response

if TYPE_CHECKING:
    from collections.abc import Iterable

    from safe_route.core.types import ValidationIssue

INTERNAL_SERVER_ERROR_MESSAGE: Final = "Internal server error"
INVALID_PARAMS_MESSAGE: Final = "Invalid params"
INVALID_QUERY_MESSAGE: Final = "Invalid query"
INVALID_BODY_MESSAGE: Final = "Invalid body"


def build_error_response(
    message: str,
    issues: Iterable[ValidationIssue] | None = None,
    status_code: int = 400,
) -> JSONResponse:
    """Return a JSON error response; ``issues`` is omitted when None."""
    content: dict[str, object] = {"message": message}
    if issues is not None:
        content["issues"] = [issue.to_dict() for issue in issues]
    return JSONResponse(content, status_code=status_code)


def internal_server_error() -> JSONResponse:
    return build_error_response(INTERNAL_SERVER_ERROR_MESSAGE, status_code=500)


def is_response(value: object) -> bool:
    """Return True for response-shaped values that end a pipeline early."""
    return isinstance(value, Response)
