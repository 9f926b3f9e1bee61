"""
Header building and merging.

The canonical multi-map is ``httpx.Headers``. Names are matched
case-insensitively; the casing a name was first set with is kept.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import httpx

from hookfetch.merge.values import UNSET, stringify_leaf

HeadersInput = Any
"""Anything accepted as headers: record, ``httpx.Headers`` or a list of pairs."""


class _HeaderList:
    """Ordered (name, value) pairs with case-insensitive name operations."""

    def __init__(self) -> None:
        self._pairs: list[tuple[str, str]] = []

    def _existing_name(self, name: str) -> str:
        lowered = name.lower()
        for key, _ in self._pairs:
            if key.lower() == lowered:
                return key
        return name

    def delete(self, name: str) -> None:
        lowered = name.lower()
        self._pairs = [(k, v) for k, v in self._pairs if k.lower() != lowered]

    def set(self, name: str, value: str) -> None:
        lowered = name.lower()
        kept: list[tuple[str, str]] = []
        replaced = False
        for key, current in self._pairs:
            if key.lower() != lowered:
                kept.append((key, current))
            elif not replaced:
                kept.append((key, value))
                replaced = True
        if not replaced:
            kept.append((name, value))
        self._pairs = kept

    def reset(self, name: str, values: list[str]) -> None:
        """Remove ``name`` then append each value (arrays replace, never extend)."""
        casing = self._existing_name(name)
        self.delete(name)
        self._pairs.extend((casing, value) for value in values)

    def to_headers(self) -> httpx.Headers:
        return httpx.Headers(self._pairs)


def _raw_groups(headers: httpx.Headers) -> dict[str, tuple[str, list[str]]]:
    groups: dict[str, tuple[str, list[str]]] = {}
    for raw_key, raw_value in headers.raw:
        name = raw_key.decode(headers.encoding)
        value = raw_value.decode(headers.encoding)
        lowered = name.lower()
        if lowered not in groups:
            groups[lowered] = (name, [])
        groups[lowered][1].append(value)
    return groups


def _pair_groups(pairs: list[tuple[Any, Any]] | tuple[tuple[Any, Any], ...]) -> dict[str, tuple[str, list[str]]]:
    groups: dict[str, tuple[str, list[str]]] = {}
    for name, value in pairs:
        if value is None or value is UNSET:
            continue
        name = str(name)
        values = value if isinstance(value, (list, tuple)) else [value]
        lowered = name.lower()
        if lowered not in groups:
            groups[lowered] = (name, [])
        groups[lowered][1].extend(
            stringify_leaf(v) for v in values if v is not None and v is not UNSET
        )
    return groups


def make_headers(source: HeadersInput = None) -> httpx.Headers:
    """Build ``httpx.Headers`` from a record, pairs or existing headers.

    Only top-level keys are considered. List values append each element and
    ``None``/``UNSET`` values are ignored.

    Raises:
        TypeError: For unsupported input types
    """
    if source is None or source is UNSET:
        return httpx.Headers()
    if isinstance(source, httpx.Headers):
        return httpx.Headers(source)
    if isinstance(source, Mapping):
        groups = _pair_groups(list(source.items()))
    elif isinstance(source, (list, tuple)):
        groups = _pair_groups(source)
    else:
        raise TypeError(
            f"unsupported headers input, got: {type(source).__name__}"
        )
    return httpx.Headers(
        [(name, value) for name, values in groups.values() for value in values]
    )


def to_header_record(source: HeadersInput) -> dict[str, list[str]]:
    """Convert headers into a record of lowercased name -> list of values."""
    headers = make_headers(source)
    record: dict[str, list[str]] = {}
    for name, value in headers.multi_items():
        record.setdefault(name, []).append(value)
    return record


def merge_headers(*incomes: HeadersInput) -> httpx.Headers:
    """Merge header representations into a fresh ``httpx.Headers``.

    Semantics per key, processed left to right:
    - ``UNSET``: no change
    - ``None``: remove the header
    - list: remove the header, then append each element
    - other value: set/overwrite as a single value

    ``httpx.Headers`` and pair-list incomes replace each header they carry.
    No input is mutated.

    Example:
        >>> merged = merge_headers({"X-A": "1", "x-b": "2"}, {"x-a": "3", "X-B": None})
        >>> merged.raw
        [(b'X-A', b'3')]
    """
    output = _HeaderList()

    for income in incomes:
        if income is None or income is UNSET:
            continue

        if isinstance(income, httpx.Headers):
            for name, values in _raw_groups(income).values():
                output.reset(name, values)
            continue

        if isinstance(income, Mapping):
            for name, value in income.items():
                name = str(name)
                if value is UNSET:
                    continue
                if value is None:
                    output.delete(name)
                elif isinstance(value, (list, tuple)):
                    output.reset(
                        name,
                        [stringify_leaf(v) for v in value if v is not None and v is not UNSET],
                    )
                else:
                    output.set(name, stringify_leaf(value))
            continue

        if isinstance(income, (list, tuple)):
            for name, values in _pair_groups(income).values():
                output.reset(name, values)
            continue

        raise TypeError(
            f"unsupported headers input, got: {type(income).__name__}"
        )

    return output.to_headers()
