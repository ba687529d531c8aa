#!/usr/bin/env python3
"""Minimal custom telemetry reporter example for safe-route.
Shows how to print stage timings and counters as requests flow through.
"""

import asyncio
from typing import Any

import httpx
from pydantic import BaseModel
from starlette.applications import Starlette
from starlette.responses import PlainTextResponse
from starlette.routing import Route

from safe_route import SafeRouteSettings, TelemetryReporter, create_safe_route, settings_scope


class PrintReporter(TelemetryReporter):
    """A minimal telemetry reporter that prints events to the console."""

    def record_timing(self, scope: str, duration: float, **metadata: Any) -> None:
        """Prints timing events indented by scope depth."""
        indent = "  " * metadata.get("depth", 0)
        print(f"[TIMING] {indent}{scope}: duration={duration:.6f}s")

    def record_metric(self, scope: str, value: Any, **metadata: Any) -> None:
        print(f"[METRIC] {scope}: {value} (metadata: {metadata})")


class Search(BaseModel):
    q: str


async def main():
    with settings_scope(SafeRouteSettings(telemetry_enabled=True)):
        search = (
            create_safe_route(reporters=(PrintReporter(),))
            .query(Search)
            .handler(lambda request, context: PlainTextResponse(context.query.q))
        )

    app = Starlette(routes=[Route("/search", search)])
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://demo") as client:
        print("Valid request:")
        await client.get("/search?q=python")
        print("\nInvalid request:")
        await client.get("/search")


if __name__ == "__main__":
    asyncio.run(main())
