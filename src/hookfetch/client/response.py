"""响应解析：嗅探内容类型、流式读取响应体并报告下载进度。

Response resolution for hookfetch.

Turns a raw ``httpx.Response`` into a ``ResolvedResponse``:
- sniff the declared content type (or honour an explicit expected type)
- stream text/JSON bodies while reporting download progress
- upgrade JSON-looking text to structured data
- fall back to plain text when decoding fails
- apply the failure predicate
"""

from __future__ import annotations

import inspect
import json
from dataclasses import dataclass
from email.parser import BytesParser
from email.policy import HTTP
from enum import Enum
from typing import TYPE_CHECKING, Any

import httpx

from hookfetch.errors import BodyTransformError, ResponseError, UnsupportedResponseError
from hookfetch.merge.query import from_multimap
from hookfetch.telemetry import get_logger
from hookfetch.utils.text import decode_text_smart, is_probably_text

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    ProgressCallback = Callable[[float, bytes], Awaitable[None] | None]
    ShouldThrow = Callable[["ResolvedResponse"], bool | None]

logger = get_logger("hookfetch.response")


class ResponseType(str, Enum):
    """Body-type tag of a resolved response."""

    JSON = "json"
    TEXT = "text"
    FORM = "form"
    BLOB = "blob"
    BYTES = "bytes"


@dataclass(frozen=True)
class Blob:
    """Binary payload that keeps its media type.

    Attributes:
        content: Raw bytes
        content_type: Declared media type
        filename: File name, for multipart file fields
    """

    content: bytes
    content_type: str = "application/octet-stream"
    filename: str | None = None

    @property
    def size(self) -> int:
        """Payload size in bytes."""
        return len(self.content)


@dataclass(frozen=True)
class ResolvedResponse:
    """Decoded, typed result of a raw transport response.

    Attributes:
        raw_response: Fully read copy of the transport response; its body can be read again
        data: Decoded payload
        response_type: Detected body type
    """

    raw_response: httpx.Response
    data: Any
    response_type: ResponseType

    @property
    def ok(self) -> bool:
        """True for 2xx statuses."""
        return self.raw_response.is_success

    @property
    def status(self) -> int:
        """HTTP status code."""
        return self.raw_response.status_code

    @property
    def status_text(self) -> str:
        """HTTP reason phrase."""
        return self.raw_response.reason_phrase

    @property
    def headers(self) -> httpx.Headers:
        """Response headers."""
        return self.raw_response.headers

    @property
    def url(self) -> str:
        """Final URL, empty for responses built without a request."""
        try:
            return str(self.raw_response.url)
        except RuntimeError:
            return ""

    @property
    def redirected(self) -> bool:
        """Whether redirects were followed to obtain this response."""
        return bool(self.raw_response.history)


_BLOB_PREFIXES = ("image/", "video/", "audio/")
_BINARY_TYPES = (
    "application/octet-stream",
    "application/zip",
    "application/x-tar",
    "application/x-7z-compressed",
    "application/x-gzip",
    "application/gzip",
)


def guess_response_type(content_type: str) -> ResponseType | None:
    """Guess the body type from a content-type header.

    Precedence: JSON, text, form, known binary (blob), octet-stream
    family (bytes). Returns None when undetermined.
    """
    content_type = content_type.lower()
    media_type = content_type.split(";", 1)[0].strip()
    if not media_type:
        return None
    if "application/json" in content_type or media_type.endswith("+json"):
        return ResponseType.JSON
    if media_type.startswith("text/"):
        return ResponseType.TEXT
    if (
        "multipart/form-data" in content_type
        or "application/x-www-form-urlencoded" in content_type
    ):
        return ResponseType.FORM
    if media_type.startswith(_BLOB_PREFIXES) or "application/pdf" in content_type:
        return ResponseType.BLOB
    if any(binary in content_type for binary in _BINARY_TYPES):
        return ResponseType.BYTES
    return None


def _looks_like_json(text: str) -> bool:
    trimmed = text.strip()
    return (trimmed.startswith("{") and trimmed.endswith("}")) or (
        trimmed.startswith("[") and trimmed.endswith("]")
    )


def _check_unsupported(raw: httpx.Response, content_type: str) -> None:
    upgrade = raw.headers.get("upgrade", "").lower()
    connection = raw.headers.get("connection", "").lower()
    if upgrade == "websocket" and "upgrade" in connection:
        raise UnsupportedResponseError(
            "WebSocket upgrade response detected; use a websocket plugin instead",
            content_type=content_type,
        )
    if "text/event-stream" in content_type:
        raise UnsupportedResponseError(
            "Server-sent events response detected; use an SSE plugin instead",
            content_type=content_type,
        )


async def _read_streaming(
    raw: httpx.Response,
    on_progress: ProgressCallback | None,
) -> bytes:
    declared = raw.headers.get("content-length")
    try:
        total = int(declared) if declared else 0
    except ValueError:
        total = 0

    buffer = bytearray()
    async for chunk in raw.aiter_bytes():
        if not chunk:
            continue
        buffer.extend(chunk)
        if on_progress is not None and total > 0:
            progress = min(len(buffer) / total, 1.0)
            logger.debug("Download progress", progress=round(progress, 4))
            result = on_progress(progress, bytes(buffer))
            if inspect.isawaitable(result):
                await result
    return bytes(buffer)


def _decode_text(raw: httpx.Response, body: bytes) -> str:
    if raw.charset_encoding is None:
        text = decode_text_smart(body)
        if text is not None:
            return text
    return body.decode(raw.encoding or "utf-8", errors="replace")


def _decode_form(body: bytes, content_type: str) -> dict[str, Any]:
    if "application/x-www-form-urlencoded" in content_type.lower():
        return from_multimap(body.decode("utf-8"))

    # Parse multipart by prefixing the content-type header onto the body
    message = BytesParser(policy=HTTP).parsebytes(
        b"Content-Type: " + content_type.encode("latin-1") + b"\r\n\r\n" + body
    )
    if not message.is_multipart():
        raise ValueError("multipart body without parts")

    fields: dict[str, Any] = {}
    for part in message.iter_parts():
        name = part.get_param("name", header="content-disposition")
        if not name:
            continue
        payload = part.get_payload(decode=True) or b""
        filename = part.get_filename()
        value: Any
        if filename:
            value = Blob(payload, part.get_content_type(), filename)
        else:
            value = payload.decode(part.get_content_charset() or "utf-8")
        if name in fields:
            existing = fields[name]
            fields[name] = [*existing, value] if isinstance(existing, list) else [existing, value]
        else:
            fields[name] = value
    return fields


def _readable_copy(raw: httpx.Response, body: bytes) -> httpx.Response:
    """Detached copy of ``raw`` whose already-decoded body can be read again."""
    try:
        request = raw.request
    except RuntimeError:
        request = None
    # The body is decoded already; building without content-encoding skips a second decode
    copy = httpx.Response(
        raw.status_code,
        headers=[(k, v) for k, v in raw.headers.multi_items() if k != "content-encoding"],
        content=body,
        request=request,
        extensions=raw.extensions,
        history=raw.history,
        default_encoding=raw.default_encoding,
    )
    copy.headers = httpx.Headers(raw.headers)
    return copy


async def resolve_response(
    raw: httpx.Response,
    expected_type: ResponseType | str | None = None,
    on_progress: ProgressCallback | None = None,
    should_throw: ShouldThrow | None = None,
) -> ResolvedResponse:
    """Resolve a raw response into a ``ResolvedResponse``.

    Args:
        raw: Raw transport response (read or still streaming)
        expected_type: Explicit body type; None means detect from headers
        on_progress: Called with (fraction, bytes so far) per streamed chunk
            when the content length is known
        should_throw: Failure predicate; None or a None return means "not 2xx"

    Returns:
        The resolved response

    Raises:
        UnsupportedResponseError: For websocket upgrades and event streams
        BodyTransformError: When decoding and the text fallback both fail
        ResponseError: When the failure predicate rejects the response
    """
    header_content_type = raw.headers.get("content-type", "")
    content_type = header_content_type.lower()
    _check_unsupported(raw, content_type)

    expected = ResponseType(expected_type) if expected_type is not None else None
    resolved = expected or guess_response_type(content_type)
    body: bytes | None = None
    data: Any

    try:
        if resolved is ResponseType.FORM:
            body = await raw.aread()
            data = _decode_form(body, header_content_type)
        elif resolved is ResponseType.BYTES:
            body = await raw.aread()
            data = body
        elif resolved is ResponseType.BLOB:
            body = await raw.aread()
            data = Blob(body, content_type or "application/octet-stream")
        else:
            body = await _read_streaming(raw, on_progress)
            if resolved is None:
                resolved = ResponseType.TEXT if is_probably_text(body) else ResponseType.BYTES

            if resolved is ResponseType.BYTES:
                data = body
            elif resolved is ResponseType.JSON:
                text = _decode_text(raw, body)
                data = json.loads(text) if text.strip() else None
            else:
                data = _decode_text(raw, body)
                if expected is None and _looks_like_json(data):
                    try:
                        data = json.loads(data)
                        resolved = ResponseType.JSON
                    except ValueError:
                        pass
    except Exception as e:
        logger.debug(
            "Response decode failed, falling back to text",
            response_type=resolved.value if resolved else None,
            error=str(e),
        )
        try:
            if body is None:
                body = await raw.aread()
            data = body.decode(raw.encoding or "utf-8")
            resolved = ResponseType.TEXT
        except Exception:
            raise BodyTransformError(
                (resolved or ResponseType.BYTES).value, cause=e
            ) from e

    response = ResolvedResponse(
        raw_response=_readable_copy(raw, body), data=data, response_type=resolved
    )

    decision = should_throw(response) if should_throw is not None else None
    if decision if isinstance(decision, bool) else not response.ok:
        raise ResponseError(response)

    return response
