"""Root pytest fixtures for hookfetch tests."""

from __future__ import annotations

import json
from collections.abc import Callable
from typing import Any

import httpx
import pytest

from hookfetch import FetchClient
from hookfetch.transport import HttpxTransport

BASE_URL = "https://api.example.com"


def echo_handler(request: httpx.Request) -> httpx.Response:
    """Answer with a JSON description of the received request."""
    return httpx.Response(
        200,
        json={
            "method": request.method,
            "url": str(request.url),
            "path": request.url.path,
            "query": [list(pair) for pair in request.url.params.multi_items()],
            "headers": dict(request.headers),
            "body": request.content.decode("utf-8", errors="replace"),
        },
    )


class MockServer:
    """In-memory server behind ``httpx.MockTransport`` that records requests."""

    def __init__(self, handler: Callable[[httpx.Request], httpx.Response] = echo_handler) -> None:
        self.handler = handler
        self.requests: list[httpx.Request] = []

    def _handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.handler(request)

    def transport(self) -> HttpxTransport:
        return HttpxTransport(
            client=httpx.AsyncClient(transport=httpx.MockTransport(self._handle))
        )

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]

    def last_json(self) -> Any:
        return json.loads(self.last.content)


@pytest.fixture
def server() -> MockServer:
    """Echo server recording every request."""
    return MockServer()


@pytest.fixture
def client(server: MockServer) -> FetchClient:
    """Client pointed at the echo server."""
    return FetchClient(base_url=BASE_URL, transport=server.transport())


@pytest.fixture
def make_server() -> Callable[..., MockServer]:
    """Factory for servers with a custom handler."""
    return MockServer
