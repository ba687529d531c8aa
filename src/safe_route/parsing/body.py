"""Request body decoding by content type.

The transport body is a single-read resource: it is only touched when the
route declared a body schema, and it is read at most once per invocation.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any, Final

from safe_route.exceptions import BodyParsingError

from .coercion import coerce_value, select_values
from .query import group_multi_items

if TYPE_CHECKING:
    from starlette.requests import Request

    from safe_route.core.options import BodyParserOptions

log = logging.getLogger(__name__)

JSON_CONTENT_TYPE: Final = "application/json"
FORM_CONTENT_TYPES: Final = ("multipart/form-data", "application/x-www-form-urlencoded")

INVALID_JSON_MESSAGE: Final = "Invalid JSON body."
INVALID_FORM_MESSAGE: Final = "Invalid Form Data."
BODY_REQUIRED_MESSAGE: Final = "Request body is required."
UNSUPPORTED_CONTENT_TYPE_MESSAGE: Final = (
    "Unsupported content type. Expected application/json, "
    "multipart/form-data, or application/x-www-form-urlencoded."
)


def _reject_constant(name: str) -> Any:
    # NaN and Infinity are accepted by the json module but are not JSON.
    raise ValueError(f"Invalid JSON constant {name!r}")


def resolve_empty_body(options: BodyParserOptions) -> Any:
    """Apply the empty-body policy.

    Raises:
        BodyParsingError: When empty bodies are not allowed.
    """
    if not options.allow_empty_body:
        raise BodyParsingError(BODY_REQUIRED_MESSAGE)
    return options.empty_value if options.has_empty_value else {}


async def _decode_form(request: Request, options: BodyParserOptions) -> dict[str, Any]:
    try:
        form = await request.form()
    except Exception as e:
        raise BodyParsingError(INVALID_FORM_MESSAGE) from e

    data: dict[str, Any] = {}
    for key, values in group_multi_items(form).items():
        # Uploaded files are passed through; only string fields are coerced.
        coerced = [
            coerce_value(v, key, options.coerce) if isinstance(v, str) else v
            for v in values
        ]
        data[key] = select_values(
            coerced, options.array_strategy, options.single_value_strategy
        )
    return data


async def decode_body(
    request: Request,
    *,
    has_schema: bool,
    options: BodyParserOptions,
) -> Any:
    """Decode the request body into a plain value.

    Args:
        request: The incoming request.
        has_schema: Whether the route declared a body schema. When False the
            body is not read and ``{}`` is returned.
        options: Body parser options.

    Returns:
        The decoded JSON value, form mapping, text, or the empty-body value.

    Raises:
        BodyParsingError: If the body is malformed, unsupported, or required
            but empty.
    """
    if not has_schema:
        return {}

    content_type = request.headers.get("content-type", "").lower()

    if JSON_CONTENT_TYPE in content_type:
        raw = await request.body()
        if not raw:
            return resolve_empty_body(options)
        try:
            return json.loads(raw, parse_constant=_reject_constant)
        except ValueError as e:
            raise BodyParsingError(INVALID_JSON_MESSAGE) from e

    if any(form_type in content_type for form_type in FORM_CONTENT_TYPES):
        data = await _decode_form(request, options)
        if not data:
            return resolve_empty_body(options)
        return data

    if options.strict_content_type:
        raise BodyParsingError(UNSUPPORTED_CONTENT_TYPE_MESSAGE)

    raw = await request.body()
    if not raw:
        return resolve_empty_body(options)

    text = raw.decode("utf-8", errors="replace")
    if options.fallback_strategy == "json-first":
        try:
            return json.loads(text, parse_constant=_reject_constant)
        except ValueError:
            log.debug("Body of type %r is not JSON; using text", content_type)
    return coerce_value(text, "body", options.coerce)
