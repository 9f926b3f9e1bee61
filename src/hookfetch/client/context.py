"""
Per-request context.

A ``RequestContext`` is created when a request starts, handed to every hook
in turn, and returned to the caller once the response has been resolved.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import httpx

from hookfetch.client.cancel import CancelToken

if TYPE_CHECKING:
    from hookfetch.client.response import ProgressCallback, ResolvedResponse, ResponseType


def _new_request_id() -> str:
    return uuid.uuid4().hex[:12]


@dataclass(eq=False)
class RequestContext:
    """Mutable state of one in-flight request.

    Hooks read and rewrite these fields. ``query`` is a nested record and
    ``url`` carries no query string once normalized; the outgoing URL is
    rebuilt from both right before the transport call.

    Attributes:
        url: Target address, absolute or relative to ``base_url``
        method: Upper-case HTTP method
        base_url: Base address relative targets resolve against
        query: Query parameters (nested record)
        headers: Request headers
        body: Caller body, then a ``RequestBody`` variant once transformed
        timeout: Timeout in milliseconds; 0 or None disables it
        response_type: Expected response body type; None detects it
        credentials: Credentials policy, passed to the transport
        cache: Cache policy, passed to the transport
        mode: Request mode, passed to the transport
        on_progress: Download progress callback
        custom_env: Free-form value for hooks and plugins
        should_throw: Failure predicate for the resolved response
        transport: Transport primitive used for this request
        cancel: Cancel handle of this request
        request_id: Client-generated id, used in logs
        raw_request: Outgoing request, built before ``before_actual_fetch``
        raw_response: Transport response, replaced by a readable copy once resolved
        response: Resolved response
    """

    url: str = ""
    method: str = "GET"
    base_url: str = ""
    query: Any = field(default_factory=dict)
    headers: Any = field(default_factory=httpx.Headers)
    body: Any = None
    timeout: float | None = None
    response_type: ResponseType | None = None
    credentials: str | None = None
    cache: str | None = None
    mode: str | None = None
    on_progress: ProgressCallback | None = None
    custom_env: Any = None
    should_throw: Any = None
    transport: Any = None
    cancel: CancelToken = field(default_factory=CancelToken)
    request_id: str = field(default_factory=_new_request_id)
    raw_request: httpx.Request | None = None
    raw_response: httpx.Response | None = None
    response: ResolvedResponse | None = None

    @property
    def data(self) -> Any:
        """Decoded response payload, None before resolution."""
        return self.response.data if self.response is not None else None

    @property
    def status(self) -> int | None:
        """Response status code, None before resolution."""
        return self.response.status if self.response is not None else None

    @property
    def response_headers(self) -> httpx.Headers | None:
        """Response headers, None before resolution."""
        return self.response.headers if self.response is not None else None

    @property
    def resolved(self) -> bool:
        """Whether a response has been resolved for this request."""
        return self.response is not None

    @property
    def timeout_seconds(self) -> float | None:
        """Timeout in seconds, or None when disabled."""
        if not self.timeout:
            return None
        return self.timeout / 1000.0

    def transport_extensions(self) -> dict[str, Any]:
        """Request policies forwarded to the transport as an httpx extension."""
        policies = {
            name: value
            for name, value in (
                ("credentials", self.credentials),
                ("cache", self.cache),
                ("mode", self.mode),
            )
            if value is not None
        }
        return {"hookfetch": policies} if policies else {}
