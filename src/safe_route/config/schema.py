"""Settings schema and validation using pydantic-settings.

Process-level defaults for builders created by the factories. Values come
from ``SAFE_ROUTE_*`` environment variables; explicit factory arguments always
take precedence.
"""

from typing import Any, Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_SERVER_ERROR = "Something went wrong while executing the action."


class SafeRouteSettings(BaseSettings):
    """Pydantic settings schema for safe_route defaults."""

    model_config = SettingsConfigDict(
        env_prefix="SAFE_ROUTE_",
        env_file=None,
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    default_server_error: str = Field(
        default=DEFAULT_SERVER_ERROR,
        description="Server error string returned by actions when no mapper applies",
        min_length=1,
    )

    query_array_strategy: Literal["auto", "always", "never"] = "auto"
    query_single_value_strategy: Literal["first", "last"] = "last"
    query_coerce: Literal["none", "primitive"] = "none"

    body_strict_content_type: bool = True
    body_allow_empty_body: bool = True
    body_fallback_strategy: Literal["json-first", "text"] = "json-first"
    body_array_strategy: Literal["auto", "always", "never"] = "auto"
    body_single_value_strategy: Literal["first", "last"] = "last"
    body_coerce: Literal["none", "primitive"] = "none"

    telemetry_enabled: bool = Field(
        default=False,
        description="Forward stage timings to configured telemetry reporters",
    )

    @field_validator(
        "query_array_strategy",
        "query_single_value_strategy",
        "query_coerce",
        "body_fallback_strategy",
        "body_array_strategy",
        "body_single_value_strategy",
        "body_coerce",
        mode="before",
    )
    @classmethod
    def normalize_choice(cls, v: Any) -> Any:
        """Accept choices case-insensitively and with surrounding whitespace."""
        if isinstance(v, str):
            return v.strip().lower()
        return v
