"""可配置默认值、生命周期钩子与参数自动合并的异步 HTTP 客户端层。

hookfetch: an async HTTP client layer with instance defaults, lifecycle hooks
and automatic query/header merging, built on httpx.
"""

from __future__ import annotations

from hookfetch.client import (
    Blob,
    CancelToken,
    ClientConfig,
    FetchClient,
    RequestContext,
    ResolvedResponse,
    ResponseType,
    create_client,
)
from hookfetch.errors import (
    AbortedByHookError,
    BodyNotAllowedError,
    HookFetchError,
    NetworkError,
    RequestCancelledError,
    RequestTimeoutError,
    ResponseError,
)
from hookfetch.merge import UNSET, merge_headers, merge_queries, merge_values
from hookfetch.plugins import Abort, Checkpoint, Continue, Plugin, ShortCircuit

__version__ = "0.1.0"

__all__ = [
    "UNSET",
    "Abort",
    "AbortedByHookError",
    "Blob",
    "BodyNotAllowedError",
    "CancelToken",
    "Checkpoint",
    "ClientConfig",
    "Continue",
    "FetchClient",
    "HookFetchError",
    "NetworkError",
    "Plugin",
    "RequestCancelledError",
    "RequestContext",
    "RequestTimeoutError",
    "ResolvedResponse",
    "ResponseError",
    "ResponseType",
    "ShortCircuit",
    "__version__",
    "create_client",
    "merge_headers",
    "merge_queries",
    "merge_values",
]
