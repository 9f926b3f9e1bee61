"""
Client configuration.

``ClientConfig`` is immutable; derived configurations are produced with a
deep merge (``merged``) following the UNSET/None contract.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator

from hookfetch.client.response import ResponseType
from hookfetch.merge.headers import merge_headers
from hookfetch.merge.query import merge_queries
from hookfetch.merge.values import UNSET, merge_values

DEFAULT_TIMEOUT_MS = 60_000


class ClientConfig(BaseModel):
    """Instance-wide defaults shared by every request of a client."""

    model_config = ConfigDict(
        frozen=True,
        arbitrary_types_allowed=True,
        extra="forbid",
    )

    base_url: str = Field(default="", description="Base URL relative targets resolve against")
    timeout: float | None = Field(
        default=DEFAULT_TIMEOUT_MS,
        description="Request timeout in milliseconds; 0 or None disables it",
    )
    query: Any = Field(default_factory=dict, description="Default query parameters")
    headers: Any = Field(default_factory=dict, description="Default request headers")
    credentials: str | None = Field(default=None, description="Credentials policy")
    cache: str | None = Field(default=None, description="Cache policy")
    mode: str | None = Field(default=None, description="Request mode policy")
    response_type: ResponseType | None = Field(
        default=None, description="Expected body type; None detects from headers"
    )
    should_throw: Any = Field(
        default=None,
        description="Failure predicate; None means reject non-2xx responses",
    )
    transport: Any = Field(
        default=None,
        description="Async transport primitive; None uses the httpx-backed default",
    )
    custom_env: Any = Field(
        default=None, description="Free-form value handed to every request context"
    )
    strict_hooks: bool = Field(
        default=False,
        description="Raise instead of warn when a hook returns an unexpected value",
    )

    @field_validator("base_url", mode="before")
    @classmethod
    def _coerce_base_url(cls, value: Any) -> str:
        return "" if value is None else str(value)

    @field_validator("should_throw", "transport")
    @classmethod
    def _require_callable(cls, value: Any) -> Any:
        if value is not None and not callable(value):
            raise ValueError("must be callable")
        return value

    @property
    def timeout_seconds(self) -> float | None:
        """Timeout in seconds, or None when disabled."""
        if not self.timeout:
            return None
        return self.timeout / 1000.0

    def to_record(self) -> dict[str, Any]:
        """Shallow field record, values kept as they are."""
        return {name: getattr(self, name) for name in type(self).model_fields}

    def merged(self, overrides: dict[str, Any] | None = None, **kwargs: Any) -> ClientConfig:
        """Derive a new configuration by deep-merging overrides.

        ``UNSET`` leaves a field alone; ``None`` resets it to its default.

        Example:
            >>> child = ClientConfig(base_url="https://api.example.com").merged(
            ...     headers={"x-team": "core"}, timeout=5000
            ... )
        """
        incoming = {**(overrides or {}), **kwargs}
        unknown = set(incoming) - set(type(self).model_fields)
        if unknown:
            raise ValueError(f"unknown configuration fields: {sorted(unknown)}")
        record = self.to_record()
        for name, value in incoming.items():
            if value is UNSET:
                continue
            if value is None:
                record.pop(name, None)
            elif name == "query":
                record[name] = merge_queries(self.query, value)
            elif name == "headers":
                record[name] = merge_headers(self.headers, value)
            elif isinstance(value, dict) and isinstance(record.get(name), dict):
                record[name] = merge_values(record[name], value)
            else:
                record[name] = value
        return type(self)(**record)

    @classmethod
    def from_file(cls, path: str | Path, **overrides: Any) -> ClientConfig:
        """Load configuration from a YAML or JSON file.

        Args:
            path: File path (``.json`` is parsed as JSON, anything else as YAML)
            **overrides: Fields that take precedence over the file
        """
        path = Path(path)
        content = path.read_text(encoding="utf-8")
        if path.suffix == ".json":
            data = json.loads(content)
        else:
            data = yaml.safe_load(content)
        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ValueError(f"configuration file must contain a mapping: {path}")
        return cls(**merge_values(data, overrides))

    @classmethod
    def from_env(cls, **overrides: Any) -> ClientConfig:
        """Load configuration from ``HOOKFETCH_*`` environment variables.

        Reads ``HOOKFETCH_BASE_URL`` and ``HOOKFETCH_TIMEOUT_MS``.
        """
        data: dict[str, Any] = {}
        base_url = os.getenv("HOOKFETCH_BASE_URL")
        if base_url:
            data["base_url"] = base_url
        timeout = os.getenv("HOOKFETCH_TIMEOUT_MS")
        if timeout:
            data["timeout"] = float(timeout)
        return cls(**merge_values(data, overrides))


def strip_unset(options: dict[str, Any]) -> dict[str, Any]:
    """Drop top-level ``UNSET`` values from an options mapping."""
    return {k: v for k, v in options.items() if v is not UNSET}
