"""Tests for the httpx-backed transport primitive."""

from __future__ import annotations

import httpx
import pytest

from hookfetch import FetchClient
from hookfetch.transport import HttpxTransport


class TestHttpxTransport:
    """Tests for HttpxTransport."""

    @pytest.mark.asyncio
    async def test_sends_with_default_user_agent(self, httpx_mock) -> None:
        """Test a User-Agent is filled in when missing."""
        httpx_mock.add_response(url="https://api.example.com/ping", text="pong")

        async with HttpxTransport() as transport:
            response = await transport(httpx.Request("GET", "https://api.example.com/ping"))
            body = await response.aread()

        assert body == b"pong"
        sent = httpx_mock.get_requests()[0]
        assert sent.headers["user-agent"].startswith("hookfetch-python/")

    @pytest.mark.asyncio
    async def test_keeps_caller_user_agent(self, httpx_mock) -> None:
        """Test an explicit User-Agent is left alone."""
        httpx_mock.add_response(url="https://api.example.com/ping")

        async with HttpxTransport() as transport:
            response = await transport(
                httpx.Request("GET", "https://api.example.com/ping", headers={"User-Agent": "me"})
            )
            await response.aclose()

        assert httpx_mock.get_requests()[0].headers["user-agent"] == "me"

    @pytest.mark.asyncio
    async def test_external_client_not_closed(self) -> None:
        """Test a caller-provided client survives close()."""
        client = httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(204)))
        transport = HttpxTransport(client=client)

        response = await transport(httpx.Request("GET", "https://api.example.com/"))
        await response.aclose()
        await transport.close()

        assert response.status_code == 204
        assert not client.is_closed
        await client.aclose()


class TestDefaultTransport:
    """Tests for the client's lazily created transport."""

    @pytest.mark.asyncio
    async def test_client_uses_httpx_by_default(self, httpx_mock) -> None:
        """Test requests go through httpx when no transport is configured."""
        httpx_mock.add_response(
            url="https://api.example.com/users?page=2",
            json={"users": ["ada"]},
        )

        async with FetchClient(base_url="https://api.example.com") as client:
            ctx = await client.get("/users", query={"page": 2})

        assert ctx.status == 200
        assert ctx.data == {"users": ["ada"]}
        assert httpx_mock.get_requests()[0].method == "GET"
