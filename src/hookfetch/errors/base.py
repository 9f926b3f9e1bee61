"""错误基类：提供请求生命周期的分层错误体系和结构化错误上下文。

Base error classes for hookfetch.

Provides a layered error hierarchy:
- HookFetchError: Base class for all library errors
- BodyNotAllowedError: Body supplied for a method that forbids one
- RequestTimeoutError / RequestCancelledError / NetworkError: Transport failures
- AbortedByHookError / InvalidHookError / UnexpectedHookReturnError: Hook failures
- BodyTransformError / UnsupportedResponseError: Response decoding failures
- ResponseError: Failure predicate rejected a resolved response
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from hookfetch.client.context import RequestContext
    from hookfetch.client.response import ResolvedResponse


class ErrorCode(str, Enum):
    """Stable error codes carried by every hookfetch error."""

    TIMEOUT = "TIMEOUT"
    CANCELLED = "CANCELLED"
    NETWORK_ERROR = "NETWORK_ERROR"
    BODY_NOT_ALLOWED = "BODY_NOT_ALLOWED"
    ABORTED_BY_HOOK = "ABORTED_BY_HOOK"
    INVALID_HOOK_CALLBACK = "INVALID_HOOK_CALLBACK"
    UNEXPECTED_HOOK_RETURN = "UNEXPECTED_HOOK_RETURN"
    UNSUPPORTED_RESPONSE_TYPE = "UNSUPPORTED_RESPONSE_TYPE"
    BODY_TRANSFORM_ERROR = "BODY_TRANSFORM_ERROR"
    RESPONSE_ERROR = "RESPONSE_ERROR"


@dataclass
class ErrorContext:
    """Structured error context for diagnostics.

    Provides actionable information for debugging and error handling.
    """

    checkpoint: str | None = None
    """Lifecycle checkpoint the error surfaced at (e.g., 'before_request')"""

    details: dict[str, Any] = field(default_factory=dict)
    """Additional details about the error"""

    source: str | None = None
    """Error source (e.g., 'hook', 'transport', 'response')"""

    hint: str | None = None
    """Actionable hint for resolving the error"""

    def __str__(self) -> str:
        parts = []
        if self.source:
            parts.append(f"[{self.source}]")
        if self.checkpoint:
            parts.append(f"at '{self.checkpoint}'")
        if self.hint:
            parts.append(f"(hint: {self.hint})")
        return " ".join(parts)


class HookFetchError(Exception):
    """Base class for all hookfetch errors.

    All errors from this library inherit from this class, making it easy
    to catch all library errors with a single except clause.

    Attributes:
        message: Human-readable error message
        code: Stable error code
        context: Structured error context
        request_context: The in-flight request context, when known
    """

    code: ErrorCode = ErrorCode.NETWORK_ERROR

    def __init__(
        self,
        message: str,
        context: ErrorContext | None = None,
        *,
        request_context: RequestContext | None = None,
        cause: BaseException | None = None,
    ) -> None:
        self.message = message
        self.context = context or ErrorContext()
        self.request_context = request_context
        super().__init__(self._format_message())
        if cause is not None:
            self.__cause__ = cause

    def _format_message(self) -> str:
        """Format the full error message."""
        ctx_str = str(self.context)
        if ctx_str:
            return f"{self.message} {ctx_str}"
        return self.message

    def with_hint(self, hint: str) -> HookFetchError:
        """Add a hint to this error."""
        self.context.hint = hint
        return self

    @staticmethod
    def is_(error: BaseException, code: ErrorCode | None = None) -> bool:
        """Check whether ``error`` is a library error not caused by a response.

        Args:
            error: Exception to inspect
            code: Optional code the error must carry

        Returns:
            True for matching non-response hookfetch errors
        """
        if not isinstance(error, HookFetchError) or isinstance(error, ResponseError):
            return False
        return code is None or error.code == code


class BodyNotAllowedError(HookFetchError):
    """A request body was supplied for GET, HEAD, OPTIONS or TRACE."""

    code = ErrorCode.BODY_NOT_ALLOWED

    def __init__(
        self,
        method: str,
        *,
        request_context: RequestContext | None = None,
    ) -> None:
        ctx = ErrorContext(source="request", details={"method": method})
        super().__init__(
            f'Request method "{method}" does not allow body',
            ctx,
            request_context=request_context,
        )
        self.method = method


class RequestTimeoutError(HookFetchError):
    """The transport call was cancelled by the request timeout."""

    code = ErrorCode.TIMEOUT

    def __init__(
        self,
        timeout_ms: float,
        *,
        url: str | None = None,
        request_context: RequestContext | None = None,
        cause: BaseException | None = None,
    ) -> None:
        ctx = ErrorContext(source="transport", details={"timeout_ms": timeout_ms})
        if url:
            ctx.details["url"] = url
        super().__init__(
            f"Request timed out after {timeout_ms:g}ms",
            ctx,
            request_context=request_context,
            cause=cause,
        )
        self.timeout_ms = timeout_ms
        self.url = url


class RequestCancelledError(HookFetchError):
    """The caller cancelled the request through its cancel token."""

    code = ErrorCode.CANCELLED

    def __init__(
        self,
        message: str = "Request was cancelled",
        *,
        url: str | None = None,
        request_context: RequestContext | None = None,
    ) -> None:
        ctx = ErrorContext(source="transport")
        if url:
            ctx.details["url"] = url
        super().__init__(message, ctx, request_context=request_context)
        self.url = url


class NetworkError(HookFetchError):
    """The transport primitive failed for a reason other than a timeout.

    Raised when:
    - Network connection failure
    - SSL/TLS errors
    - Proxy errors
    - Any exception raised by a custom transport
    """

    code = ErrorCode.NETWORK_ERROR

    def __init__(
        self,
        message: str,
        *,
        url: str | None = None,
        request_context: RequestContext | None = None,
        cause: BaseException | None = None,
    ) -> None:
        ctx = ErrorContext(source="transport")
        if url:
            ctx.details["url"] = url
        super().__init__(message, ctx, request_context=request_context, cause=cause)
        self.url = url


class AbortedByHookError(HookFetchError):
    """A hook returned ``False`` or ``Abort`` and stopped the request."""

    code = ErrorCode.ABORTED_BY_HOOK

    def __init__(
        self,
        hook_name: str,
        checkpoint: str,
        reason: str | None = None,
        *,
        request_context: RequestContext | None = None,
    ) -> None:
        ctx = ErrorContext(source="hook", checkpoint=checkpoint)
        if reason:
            ctx.details["reason"] = reason
        super().__init__(
            f'Request aborted by hook "{hook_name}"',
            ctx,
            request_context=request_context,
        )
        self.hook_name = hook_name
        self.checkpoint = checkpoint
        self.reason = reason


class InvalidHookError(HookFetchError):
    """A non-callable object was registered as a hook."""

    code = ErrorCode.INVALID_HOOK_CALLBACK

    def __init__(self, callback: Any) -> None:
        super().__init__(
            f'Hook should be a function, but got "{type(callback).__name__}"',
            ErrorContext(source="hook"),
        )


class UnexpectedHookReturnError(HookFetchError):
    """A hook returned something the pipeline does not understand."""

    code = ErrorCode.UNEXPECTED_HOOK_RETURN

    def __init__(
        self,
        hook_name: str,
        checkpoint: str,
        value: Any,
        *,
        request_context: RequestContext | None = None,
    ) -> None:
        ctx = ErrorContext(
            source="hook",
            checkpoint=checkpoint,
            hint="return the context, None, False, Abort(...) or a response",
        )
        super().__init__(
            f'Hook "{hook_name}" returned an unexpected value: {value!r}',
            ctx,
            request_context=request_context,
        )
        self.hook_name = hook_name
        self.value = value


class UnsupportedResponseError(HookFetchError):
    """The response uses a streaming protocol the core does not decode."""

    code = ErrorCode.UNSUPPORTED_RESPONSE_TYPE

    def __init__(self, message: str, *, content_type: str | None = None) -> None:
        ctx = ErrorContext(source="response")
        if content_type:
            ctx.details["content_type"] = content_type
        super().__init__(message, ctx)
        self.content_type = content_type


class BodyTransformError(HookFetchError):
    """Every decode strategy, including the text fallback, failed."""

    code = ErrorCode.BODY_TRANSFORM_ERROR

    def __init__(
        self,
        response_type: str,
        *,
        cause: BaseException | None = None,
    ) -> None:
        ctx = ErrorContext(source="response", details={"response_type": response_type})
        super().__init__(
            f"Failed to transform response body to {response_type}",
            ctx,
            cause=cause,
        )
        self.response_type = response_type


class ResponseError(HookFetchError):
    """The failure predicate rejected a resolved response.

    Attributes:
        response: The resolved response, body already decoded
    """

    code = ErrorCode.RESPONSE_ERROR

    def __init__(
        self,
        response: ResolvedResponse,
        message: str | None = None,
    ) -> None:
        ctx = ErrorContext(
            source="response",
            details={"status": response.status, "url": response.url},
        )
        super().__init__(
            message or f"Request failed with status code {response.status}",
            ctx,
        )
        self.response = response

    @property
    def status(self) -> int:
        """HTTP status of the rejected response."""
        return self.response.status
