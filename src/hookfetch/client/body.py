"""
Request body variants.

A request body is resolved once, at the API boundary, into one of the
variants below; the rest of the pipeline only ever sees a variant.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, ClassVar, Union

import httpx
from pydantic import BaseModel

from hookfetch.client.response import Blob
from hookfetch.merge.values import UNSET, stringify_leaf


@dataclass(frozen=True)
class JsonBody:
    """Structured data serialized as JSON."""

    value: Any
    content_type: ClassVar[str | None] = "application/json"

    def request_kwargs(self) -> dict[str, Any]:
        return {"content": json.dumps(self.value, ensure_ascii=False).encode("utf-8")}


@dataclass(frozen=True)
class TextBody:
    """Plain text."""

    text: str
    content_type: ClassVar[str | None] = "text/plain;charset=UTF-8"

    def request_kwargs(self) -> dict[str, Any]:
        return {"content": self.text.encode("utf-8")}


@dataclass(frozen=True)
class FormBody:
    """URL-encoded form fields."""

    params: httpx.QueryParams
    content_type: ClassVar[str | None] = "application/x-www-form-urlencoded"

    def request_kwargs(self) -> dict[str, Any]:
        return {"content": str(self.params).encode("ascii")}


@dataclass(frozen=True)
class MultipartBody:
    """Multipart form data; httpx generates the boundary header.

    Attributes:
        data: Plain form fields
        files: File fields, in any shape ``httpx`` accepts for ``files=``
    """

    data: dict[str, Any] = field(default_factory=dict)
    files: Any = None
    content_type: ClassVar[str | None] = None

    def request_kwargs(self) -> dict[str, Any]:
        kwargs: dict[str, Any] = {"data": self.data}
        if self.files:
            kwargs["files"] = self.files
        return kwargs


@dataclass(frozen=True)
class BytesBody:
    """Raw binary payload."""

    content: bytes
    media_type: str | None = None
    content_type: ClassVar[str | None] = "application/octet-stream"

    def request_kwargs(self) -> dict[str, Any]:
        return {"content": self.content}

    @property
    def effective_content_type(self) -> str:
        return self.media_type or self.content_type or "application/octet-stream"


RequestBody = Union[JsonBody, TextBody, FormBody, MultipartBody, BytesBody]

_BODY_VARIANTS = (JsonBody, TextBody, FormBody, MultipartBody, BytesBody)


def is_request_body(value: Any) -> bool:
    """Check if a value is already a body variant."""
    return isinstance(value, _BODY_VARIANTS)


def has_body(value: Any) -> bool:
    """Check whether a caller-supplied body carries any content."""
    if value is None or value is UNSET:
        return False
    if isinstance(value, (str, bytes, bytearray)):
        return len(value) > 0
    return True


def to_request_body(value: Any) -> RequestBody | None:
    """Resolve a caller-supplied body into a variant.

    - records, lists and pydantic models serialize as JSON
    - ``str`` is sent as text
    - ``bytes`` and ``Blob`` are sent as binary
    - ``httpx.QueryParams`` is sent URL-encoded
    - other scalars are sent as text

    Raises:
        TypeError: For bodies that cannot be serialized
    """
    if value is None or value is UNSET:
        return None
    if is_request_body(value):
        return value
    if isinstance(value, BaseModel):
        return JsonBody(value.model_dump(mode="json"))
    if isinstance(value, (dict, list, tuple)):
        return JsonBody(value)
    if isinstance(value, str):
        return TextBody(value)
    if isinstance(value, (bytes, bytearray, memoryview)):
        return BytesBody(bytes(value))
    if isinstance(value, Blob):
        return BytesBody(value.content, value.content_type)
    if isinstance(value, httpx.QueryParams):
        return FormBody(value)
    if isinstance(value, (int, float)):
        return TextBody(stringify_leaf(value))
    raise TypeError(f"unsupported request body type: {type(value).__name__}")


def body_content_type(body: RequestBody | None) -> str | None:
    """Content type to infer for a body when the caller set none."""
    if body is None:
        return None
    if isinstance(body, BytesBody):
        return body.effective_content_type
    return body.content_type
