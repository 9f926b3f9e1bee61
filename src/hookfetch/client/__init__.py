"""
Client layer - User-facing API.

This module provides:
- FetchClient: Main entry point, driving requests through the hook lifecycle
- ClientConfig: Immutable instance defaults
- RequestContext: Per-request state seen by hooks
- Response resolution and request body variants
- Cancellation: Per-request cancel token
"""

from hookfetch.client.body import (
    BytesBody,
    FormBody,
    JsonBody,
    MultipartBody,
    RequestBody,
    TextBody,
    to_request_body,
)
from hookfetch.client.cancel import CancelReason, CancelState, CancelToken
from hookfetch.client.config import ClientConfig
from hookfetch.client.context import RequestContext
from hookfetch.client.core import FetchClient, create_client
from hookfetch.client.response import (
    Blob,
    ResolvedResponse,
    ResponseType,
    resolve_response,
)

__all__ = [
    "Blob",
    "BytesBody",
    "CancelReason",
    "CancelState",
    "CancelToken",
    "ClientConfig",
    "FetchClient",
    "FormBody",
    "JsonBody",
    "MultipartBody",
    "RequestBody",
    "RequestContext",
    "ResolvedResponse",
    "ResponseType",
    "TextBody",
    "create_client",
    "resolve_response",
    "to_request_body",
]
