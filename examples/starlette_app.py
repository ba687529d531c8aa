#!/usr/bin/env python3
"""Starlette app with validated routes and a safe action.

Run with ``python examples/starlette_app.py`` (needs httpx, from the ``test``
extra). The app can also be served by any ASGI server.
"""

import asyncio

import httpx
from pydantic import BaseModel, Field
from starlette.applications import Starlette
from starlette.responses import JSONResponse
from starlette.routing import Route

from safe_route import (
    ServerErrorResult,
    create_safe_action_client,
    create_safe_route,
)


class ItemParams(BaseModel):
    id: int


class Search(BaseModel):
    page: int = 1
    tag: list[str] = []


class NewComment(BaseModel):
    author: str = Field(min_length=3)
    text: str


def require_user(request, context):
    user = request.headers.get("x-user")
    if not user:
        return JSONResponse({"message": "Unauthorized"}, status_code=401)
    return {"user": user}


async def add_comment(request, context):
    return JSONResponse(
        {
            "item": context.params.id,
            "by": context.data["user"],
            "comment": context.body.model_dump(),
        },
        status_code=201,
    )


async def list_comments(request, context):
    return JSONResponse({"page": context.query.page, "tags": context.query.tag})


route = create_safe_route().params(ItemParams)

app = Starlette(
    routes=[
        Route(
            "/items/{id}/comments",
            route.body(NewComment).use(require_user).handler(add_comment),
            methods=["POST"],
        ),
        Route(
            "/items/{id}/comments",
            route.query(Search).handler(list_comments),
            methods=["GET"],
        ),
    ]
)


# Actions are plain async callables returning result objects.
async def audit(args):
    print(f"  audit: {args.metadata['name']} input={args.parsed_input}")
    return await args.next(ctx={"audited": True})


delete_comment = (
    create_safe_action_client(handle_server_error=lambda e: f"Could not delete: {e}")
    .input_schema(ItemParams)
    .metadata({"name": "delete-comment"})
    .use(audit)
    .action(lambda args: {"deleted": args.parsed_input.id, **args.ctx})
)


async def main():
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://demo") as client:
        for method, url, kwargs in [
            ("POST", "/items/1/comments", {"json": {"author": "ada", "text": "hi"}, "headers": {"x-user": "ada"}}),
            ("POST", "/items/1/comments", {"json": {"author": "a", "text": "hi"}, "headers": {"x-user": "ada"}}),
            ("POST", "/items/1/comments", {"json": {"author": "ada", "text": "hi"}}),
            ("GET", "/items/1/comments?page=2&tag=a&tag=b", {}),
            ("GET", "/items/x/comments", {}),
        ]:
            response = await client.request(method, url, **kwargs)
            print(f"{method} {url} -> {response.status_code} {response.json()}")

    print("Actions:")
    for raw in ({"id": 7}, {"id": "seven"}):
        result = await delete_comment(raw)
        if isinstance(result, ServerErrorResult):
            print("  server error:", result.server_error)
        else:
            print(" ", result.to_dict())


if __name__ == "__main__":
    asyncio.run(main())
