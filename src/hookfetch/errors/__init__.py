"""错误体系：提供请求生命周期中各阶段的结构化错误类型。

Error hierarchy for hookfetch.
"""

from hookfetch.errors.base import (
    AbortedByHookError,
    BodyNotAllowedError,
    BodyTransformError,
    ErrorCode,
    ErrorContext,
    HookFetchError,
    InvalidHookError,
    NetworkError,
    RequestCancelledError,
    RequestTimeoutError,
    ResponseError,
    UnexpectedHookReturnError,
    UnsupportedResponseError,
)

__all__ = [
    "AbortedByHookError",
    "BodyNotAllowedError",
    "BodyTransformError",
    "ErrorCode",
    "ErrorContext",
    "HookFetchError",
    "InvalidHookError",
    "NetworkError",
    "RequestCancelledError",
    "RequestTimeoutError",
    "ResponseError",
    "UnexpectedHookReturnError",
    "UnsupportedResponseError",
]
