from pydantic import ValidationError
import pytest

from safe_route import (
    create_safe_action_client,
    create_safe_route,
    default_parser_options,
    resolve_settings,
    settings_scope,
)
from safe_route.config import SafeRouteSettings
from safe_route.config.schema import DEFAULT_SERVER_ERROR

pytestmark = pytest.mark.unit


def test_defaults_match_parser_option_defaults():
    settings = resolve_settings()
    assert settings.default_server_error == DEFAULT_SERVER_ERROR
    assert settings.telemetry_enabled is False

    options = default_parser_options(settings)
    assert options.query.array_strategy == "auto"
    assert options.query.single_value_strategy == "last"
    assert options.body.strict_content_type is True
    assert options.body.has_empty_value is False


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("SAFE_ROUTE_QUERY_COERCE", "Primitive")
    monkeypatch.setenv("SAFE_ROUTE_BODY_STRICT_CONTENT_TYPE", "false")
    monkeypatch.setenv("SAFE_ROUTE_DEFAULT_SERVER_ERROR", "Oops.")

    options = default_parser_options()
    assert options.query.coerce == "primitive"
    assert options.body.strict_content_type is False
    assert create_safe_action_client().default_server_error == "Oops."


def test_invalid_environment_values_are_rejected(monkeypatch):
    monkeypatch.setenv("SAFE_ROUTE_QUERY_ARRAY_STRATEGY", "sometimes")
    with pytest.raises(ValidationError):
        resolve_settings()


def test_settings_scope_overrides_and_restores():
    scoped = SafeRouteSettings(query_array_strategy="always")
    with settings_scope(scoped):
        assert resolve_settings() is scoped
        assert create_safe_route().options.query.array_strategy == "always"
    assert resolve_settings().query_array_strategy == "auto"


def test_explicit_arguments_win_over_settings():
    with settings_scope(SafeRouteSettings(default_server_error="From settings.")):
        client = create_safe_action_client(default_server_error="Explicit.")
    assert client.default_server_error == "Explicit."
