"""Fake servers and output parsing shared by refwire tests."""

from __future__ import annotations

import io
import json
import zipfile
from collections.abc import Callable
from typing import Any

import httpx

SERVER_URL = "https://refwire.test"
STORE_URL = "https://store.test"


class FakeServer:
    """Routes requests by (method, path) and records everything it receives."""

    def __init__(self) -> None:
        self.routes: dict[tuple[str, str], httpx.Response | Callable[[httpx.Request], httpx.Response]] = {}
        self.requests: list[httpx.Request] = []

    def add(
        self,
        method: str,
        path: str,
        *,
        status: int = 200,
        json: Any = None,
        content: bytes | None = None,
        headers: dict[str, str] | None = None,
    ) -> None:
        if content is not None:
            response = httpx.Response(status, content=content, headers=headers)
        elif json is not None:
            response = httpx.Response(status, json=json, headers=headers)
        else:
            response = httpx.Response(status, headers=headers)
        self.routes[(method, path)] = response

    def add_handler(self, method: str, path: str, handler: Callable[[httpx.Request], httpx.Response]) -> None:
        self.routes[(method, path)] = handler

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get((request.method, request.url.path))
        if route is None:
            return httpx.Response(404, json={"error": f"no route for {request.method} {request.url.path}"})
        if callable(route):
            return route(request)
        return route

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    def sent(self, method: str, path: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.method == method and r.url.path == path]

    def sent_json(self, method: str, path: str) -> Any:
        matches = self.sent(method, path)
        assert matches, f"no {method} {path} request; got {[(r.method, r.url.path) for r in self.requests]}"
        return json.loads(matches[-1].content)


def make_package(records: list[dict[str, Any]], meta: dict[str, Any]) -> bytes:
    """Build a ListStor package zip in memory."""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as archive:
        archive.writestr("data.json", json.dumps(records))
        archive.writestr("data.meta.json", json.dumps(meta))
    return buffer.getvalue()


def parse_envelope(output: str) -> dict[str, Any]:
    """Return the JSON envelope line from command output."""
    for line in output.splitlines():
        # an unanswered prompt leaves its trailing space on the same line
        line = line.lstrip()
        if not line.startswith("{"):
            continue
        try:
            data = json.loads(line)
        except ValueError:
            continue
        if isinstance(data, dict) and "ok" in data:
            return data
    raise AssertionError(f"no JSON envelope in output: {output!r}")
