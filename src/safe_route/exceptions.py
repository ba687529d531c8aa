"""Exceptions raised inside the request and action pipelines.

None of these escape a handler produced by a builder: the route pipeline maps
them to responses and the action pipeline maps them to result values.
"""


class SafeRouteError(Exception):
    """Base exception for safe_route errors"""  # noqa: D415


class BodyParsingError(SafeRouteError):
    """Raised when a request body cannot be decoded.

    The message is client-facing and becomes the body of a 400 response.
    """


class MiddlewareContractError(SafeRouteError):
    """Raised when an action middleware misuses its continuation or result"""  # noqa: D415


class InvalidActionOutputError(SafeRouteError):
    """Raised when an action handler's output fails its output schema"""  # noqa: D415

    def __init__(self, message: str = "Invalid action output.") -> None:
        super().__init__(message)


class AdapterError(SafeRouteError):
    """Raised when a validation adapter is misused (e.g. a malformed schema)"""  # noqa: D415
