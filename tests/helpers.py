"""Shared helpers for the unit tests.

Copyright (c) 2025 ClinicAccess. All rights reserved.
"""

from __future__ import annotations

import asyncio
import json
from typing import Any

import httpx
import respx


def request_json(route: respx.Route) -> Any:
    """Return the JSON body of the last request a route received."""
    return json.loads(route.calls.last.request.content)


def json_response(status_code: int, body: Any) -> httpx.Response:
    return httpx.Response(status_code, json=body)


class GatedCall:
    """Awaitable stand-in for a service call that completes on demand."""

    def __init__(self, result: Any = None, error: Exception | None = None) -> None:
        self.gate = asyncio.Event()
        self.result = result
        self.error = error
        self.calls: list[tuple[Any, ...]] = []

    async def __call__(self, *args: Any) -> Any:
        self.calls.append(args)
        await self.gate.wait()
        if self.error is not None:
            raise self.error
        return self.result
