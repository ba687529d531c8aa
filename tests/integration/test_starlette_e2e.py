"""Handlers mounted in a Starlette application, driven over ASGI with httpx."""

from typing import Any

import httpx
from pydantic import BaseModel
import pytest
import pytest_asyncio
from starlette.applications import Starlette
from starlette.responses import JSONResponse
from starlette.routing import Route

from safe_route import (
    ParserOptions,
    QueryParserOptions,
    create_safe_route,
    jsonschema_adapter,
)

pytestmark = [pytest.mark.integration, pytest.mark.asyncio]


class ItemParams(BaseModel):
    id: int


class Search(BaseModel):
    page: int = 1
    tag: list[str] = []


class Payload(BaseModel):
    field: str


def require_token(request, context):
    if request.headers.get("authorization") != "Bearer secret":
        return JSONResponse({"message": "Unauthorized"}, status_code=401)
    return {"user": "ada"}


async def update_item(request, context):
    return JSONResponse(
        {
            "id": context.params.id,
            "field": context.body.field,
            "page": context.query.page,
            "tags": context.query.tag,
            "user": context.data["user"],
        }
    )


def search_items(request, context):
    return JSONResponse(context.query)


update = (
    create_safe_route()
    .params(ItemParams)
    .query(Search)
    .body(Payload)
    .use(require_token)
    .handler(update_item)
)

search = (
    create_safe_route(
        validation_adapter=jsonschema_adapter(),
        parser_options=ParserOptions(query=QueryParserOptions(coerce="primitive")),
    )
    .query(
        {
            "type": "object",
            "properties": {"limit": {"type": "integer", "maximum": 50}},
        }
    )
    .handler(search_items)
)

app = Starlette(
    routes=[
        Route("/items/{id}", update, methods=["POST"]),
        Route("/items", search, methods=["GET"]),
    ]
)

AUTH = {"authorization": "Bearer secret"}


@pytest_asyncio.fixture
async def client():
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


async def test_json_body_with_wrong_type_is_rejected(client):
    response = await client.post("/items/7", json={"field": 123}, headers=AUTH)
    assert response.status_code == 400
    body: dict[str, Any] = response.json()
    assert body["message"] == "Invalid body"
    assert body["issues"][0]["path"] == ["field"]


async def test_multipart_body_is_accepted(client):
    response = await client.post(
        "/items/7?tag=a&tag=b&page=2",
        files={"field": (None, "form-field-value")},
        headers=AUTH,
    )
    assert response.status_code == 200
    assert response.json() == {
        "id": 7,
        "field": "form-field-value",
        "page": 2,
        "tags": ["a", "b"],
        "user": "ada",
    }


async def test_urlencoded_body_is_accepted(client):
    response = await client.post(
        "/items/7", data={"field": "x"}, headers=AUTH
    )
    assert response.status_code == 200
    assert response.json()["field"] == "x"


async def test_invalid_path_param_is_rejected_before_body(client):
    response = await client.post("/items/abc", json={"field": 123}, headers=AUTH)
    assert response.status_code == 400
    assert response.json()["message"] == "Invalid params"


async def test_malformed_json_is_a_bad_request(client):
    response = await client.post(
        "/items/7",
        content=b"{oops",
        headers={**AUTH, "content-type": "application/json"},
    )
    assert response.status_code == 400
    assert response.json() == {"message": "Invalid JSON body."}


async def test_unsupported_content_type_is_a_bad_request(client):
    response = await client.post(
        "/items/7",
        content=b"field=x",
        headers={**AUTH, "content-type": "text/plain"},
    )
    assert response.status_code == 400
    assert response.json()["message"].startswith("Unsupported content type.")


async def test_middleware_response_short_circuits(client):
    response = await client.post("/items/7", json={"field": "x"})
    assert response.status_code == 401
    assert response.json() == {"message": "Unauthorized"}


async def test_json_schema_adapter_with_coerced_query(client):
    response = await client.get("/items?limit=10")
    assert response.status_code == 200
    assert response.json() == {"limit": 10}

    response = await client.get("/items?limit=500")
    assert response.status_code == 400
    assert response.json()["message"] == "Invalid query"
    assert response.json()["issues"][0]["path"] == ["limit"]


async def test_non_standard_json_constants_are_a_bad_request(client):
    response = await client.post(
        "/items/7",
        content=b'{"field": NaN}',
        headers={**AUTH, "content-type": "application/json"},
    )
    assert response.status_code == 400
    assert response.json() == {"message": "Invalid JSON body."}
