"""Request and response helpers for driving handlers without a server."""

from collections.abc import Iterable, Mapping
import json
from typing import Any
from urllib.parse import urlencode

from starlette.requests import Request
from starlette.responses import Response

BOUNDARY = "safe-route-test-boundary"


def make_request(
    method: str = "GET",
    path: str = "/",
    *,
    query: str | Iterable[tuple[str, str]] = "",
    headers: Mapping[str, str] | None = None,
    body: bytes = b"",
    path_params: Mapping[str, Any] | None = None,
) -> Request:
    """Build a Starlette request from a raw ASGI scope."""
    query_string = query if isinstance(query, str) else urlencode(list(query))
    raw_headers = [
        (k.lower().encode("latin-1"), v.encode("latin-1"))
        for k, v in (headers or {}).items()
    ]
    scope = {
        "type": "http",
        "http_version": "1.1",
        "method": method,
        "scheme": "http",
        "path": path,
        "raw_path": path.encode(),
        "root_path": "",
        "query_string": query_string.encode(),
        "headers": raw_headers,
        "server": ("testserver", 80),
        "client": ("testclient", 50000),
        "path_params": dict(path_params or {}),
    }
    sent = False

    async def receive() -> dict[str, Any]:
        nonlocal sent
        if sent:
            return {"type": "http.disconnect"}
        sent = True
        return {"type": "http.request", "body": body, "more_body": False}

    return Request(scope, receive)


def json_request(
    payload: Any = None, *, raw: bytes | None = None, **kwargs: Any
) -> Request:
    body = raw if raw is not None else json.dumps(payload).encode()
    return make_request(
        "POST", headers={"content-type": "application/json"}, body=body, **kwargs
    )


def encode_multipart(fields: Iterable[tuple[str, str]]) -> tuple[bytes, str]:
    """Encode string fields as multipart/form-data."""
    lines: list[str] = []
    for name, value in fields:
        lines += [
            f"--{BOUNDARY}",
            f'Content-Disposition: form-data; name="{name}"',
            "",
            value,
        ]
    lines += [f"--{BOUNDARY}--", ""]
    return "\r\n".join(lines).encode(), f"multipart/form-data; boundary={BOUNDARY}"


def multipart_request(fields: Iterable[tuple[str, str]], **kwargs: Any) -> Request:
    body, content_type = encode_multipart(fields)
    return make_request(
        "POST", headers={"content-type": content_type}, body=body, **kwargs
    )


def form_request(fields: Iterable[tuple[str, str]], **kwargs: Any) -> Request:
    return make_request(
        "POST",
        headers={"content-type": "application/x-www-form-urlencoded"},
        body=urlencode(list(fields)).encode(),
        **kwargs,
    )


def response_json(response: Response) -> Any:
    return json.loads(response.body)
