"""Configuration for safe_route.

Settings are resolved from the environment on demand. A ``settings_scope``
temporarily overrides them for the current context, which is async-safe and
convenient in tests:

    with settings_scope(SafeRouteSettings(query_coerce="primitive")):
        GET = create_safe_route().query(Search).handler(search)
"""

from collections.abc import Generator
from contextlib import contextmanager
import contextvars

from safe_route.core.options import BodyParserOptions, ParserOptions, QueryParserOptions

from .schema import DEFAULT_SERVER_ERROR, SafeRouteSettings

_settings_var: contextvars.ContextVar[SafeRouteSettings] = contextvars.ContextVar(
    "safe_route_settings"
)


def resolve_settings() -> SafeRouteSettings:
    """Return scoped settings if set, else settings read from the environment."""
    try:
        return _settings_var.get()
    except LookupError:
        return SafeRouteSettings()


@contextmanager
def settings_scope(settings: SafeRouteSettings) -> Generator[None]:
    """Temporarily use ``settings`` for builders created in this context."""
    token = _settings_var.set(settings)
    try:
        yield
    finally:
        _settings_var.reset(token)


def default_parser_options(settings: SafeRouteSettings | None = None) -> ParserOptions:
    """Build parser options from settings."""
    s = settings or resolve_settings()
    return ParserOptions(
        query=QueryParserOptions(
            array_strategy=s.query_array_strategy,
            single_value_strategy=s.query_single_value_strategy,
            coerce=s.query_coerce,
        ),
        body=BodyParserOptions(
            strict_content_type=s.body_strict_content_type,
            allow_empty_body=s.body_allow_empty_body,
            coerce=s.body_coerce,
            fallback_strategy=s.body_fallback_strategy,
            array_strategy=s.body_array_strategy,
            single_value_strategy=s.body_single_value_strategy,
        ),
    )


__all__ = [
    "DEFAULT_SERVER_ERROR",
    "SafeRouteSettings",
    "default_parser_options",
    "resolve_settings",
    "settings_scope",
]
