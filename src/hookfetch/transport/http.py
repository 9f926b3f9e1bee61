"""HTTP 传输层：基于 httpx 的默认异步传输原语。

Default transport primitive backed by ``httpx.AsyncClient``.

A transport primitive is any async callable taking an ``httpx.Request`` and
returning an ``httpx.Response``. This one:
- sends requests in streaming mode so bodies can be read incrementally
- fills in a User-Agent when none was given
- honours proxy environment variables only when explicitly enabled
"""

from __future__ import annotations

import importlib.util
import os
from typing import TYPE_CHECKING, Any

import httpx

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    Transport = Callable[[httpx.Request], Awaitable[httpx.Response]]


_DEFAULT_CONNECT_TIMEOUT = 10.0

_UA_VERSION: str | None = None


def _http2_enabled() -> bool:
    """Enable HTTP/2 only when optional dependency is present."""
    return importlib.util.find_spec("h2") is not None


def _trust_env_enabled() -> bool:
    """Use env proxy settings only when explicitly enabled."""
    return os.getenv("HOOKFETCH_TRUST_ENV", "0") == "1"


def _get_ua_version() -> str:
    """Get package version for User-Agent (cached)."""
    global _UA_VERSION
    if _UA_VERSION is None:
        try:
            from importlib.metadata import version

            _UA_VERSION = version("hookfetch-python")
        except Exception:
            _UA_VERSION = "0.1.0"
    return _UA_VERSION


class HttpxTransport:
    """Transport primitive sending requests through ``httpx.AsyncClient``.

    Request timeouts are enforced by the client's cancel token, so the
    underlying httpx client only bounds connection setup. An
    ``httpx.ConnectTimeout`` from that bound is a transport failure and
    surfaces as ``NetworkError``, not ``RequestTimeoutError``.

    Example:
        >>> transport = HttpxTransport()
        >>> response = await transport(httpx.Request("GET", "https://example.com"))
        >>> await response.aread()
        >>> await transport.close()
    """

    def __init__(
        self,
        *,
        proxy: str | None = None,
        follow_redirects: bool = True,
        connect_timeout: float = _DEFAULT_CONNECT_TIMEOUT,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize HTTP transport.

        Args:
            proxy: Proxy URL (defaults to HOOKFETCH_PROXY_URL when trust_env is on)
            follow_redirects: Whether redirects are followed
            connect_timeout: Connection setup timeout in seconds
            client: Pre-built client to send through (not closed by ``close``)
        """
        if proxy is None and _trust_env_enabled():
            proxy = os.getenv("HOOKFETCH_PROXY_URL")
        self._proxy = proxy
        self._follow_redirects = follow_redirects
        self._connect_timeout = connect_timeout
        self._client = client
        self._owns_client = client is None

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(None, connect=self._connect_timeout),
                proxy=self._proxy,
                http2=_http2_enabled(),
                trust_env=_trust_env_enabled(),
                follow_redirects=self._follow_redirects,
            )
        return self._client

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        """Send a request; the response body is left unread."""
        if "user-agent" not in request.headers:
            request.headers["User-Agent"] = f"hookfetch-python/{_get_ua_version()}"
        return await self._get_client().send(request, stream=True)

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> HttpxTransport:
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Async context manager exit."""
        await self.close()
