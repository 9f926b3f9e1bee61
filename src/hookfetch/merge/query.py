"""
Query parameter building and merging.

The canonical multi-map is ``httpx.QueryParams``. Nested records flatten to
bracket notation and back:

    {"foo": "bar", "baz": ["qux", "quux"]}  ->  foo=bar&baz=qux&baz=quux
    {"deep": {"a": {"b": 3}}}               ->  deep[a][b]=3
    {"tags[]": ["a"]}                       ->  tags[]=a
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any

import httpx

from hookfetch.merge.values import UNSET, clone, merge_into, stringify_leaf

QueryInput = Any
"""Anything accepted as a query: record, string, URL, QueryParams or pairs."""

_BRACKET_SEGMENT = re.compile(r"\[([^\]]*)\]")


def from_string(text: str) -> httpx.QueryParams:
    """Parse the query part of ``?a=1``, ``a=1`` or a full URL.

    Example:
        >>> from_string("https://x.com/path?a=1#hash")
        QueryParams('a=1')
    """
    stripped = text.strip()
    if not stripped:
        return httpx.QueryParams()
    if stripped.startswith("?"):
        return httpx.QueryParams(stripped[1:])
    q_index = stripped.find("?")
    if q_index >= 0:
        hash_index = stripped.find("#", q_index + 1)
        end = hash_index if hash_index >= 0 else len(stripped)
        return httpx.QueryParams(stripped[q_index + 1 : end])
    return httpx.QueryParams(stripped)


def to_multimap(source: QueryInput) -> httpx.QueryParams:
    """Normalize any query input into ``httpx.QueryParams``.

    Rules for records:
    - lists append one entry per element
    - nested records flatten into ``parent[child]`` keys
    - a nested key ending in ``[]`` keeps the suffix: ``obj[tags][]``
    - ``None`` and ``UNSET`` leaves are skipped
    - booleans render as ``true``/``false``

    Raises:
        TypeError: For unsupported input types
    """
    if source is None or source is UNSET:
        return httpx.QueryParams()
    if isinstance(source, httpx.QueryParams):
        return source
    if isinstance(source, str):
        return from_string(source)
    if isinstance(source, httpx.URL):
        return source.params
    if isinstance(source, dict):
        return httpx.QueryParams(_flatten_record(source))
    if isinstance(source, Mapping):
        return httpx.QueryParams(_flatten_record(dict(source)))
    if isinstance(source, (list, tuple)):
        return httpx.QueryParams(
            [(str(k), stringify_leaf(v)) for k, v in source if v is not None]
        )
    raise TypeError(
        f"unsupported query input, got: {type(source).__name__}"
    )


def _flatten_record(record: dict[str, Any]) -> list[tuple[str, str]]:
    entries: dict[str, list[str]] = {}

    def set_value(key: str, value: Any) -> None:
        if value is None or value is UNSET:
            return
        entries[key] = [stringify_leaf(value)]

    def append_value(key: str, value: Any) -> None:
        if value is None or value is UNSET:
            return
        entries.setdefault(key, []).append(stringify_leaf(value))

    def walk(prefix: str, value: Any) -> None:
        if value is None or value is UNSET:
            return
        if isinstance(value, (list, tuple)):
            for item in value:
                append_value(prefix, item)
            return
        if isinstance(value, dict):
            for key, child in value.items():
                key = str(key)
                if child is None or child is UNSET:
                    continue
                if key.endswith("[]"):
                    # obj: {"tags[]": [...]} -> obj[tags][]=...
                    array_key = f"{prefix}[{key[:-2]}][]"
                    if isinstance(child, (list, tuple)):
                        for item in child:
                            append_value(array_key, item)
                    elif isinstance(child, dict):
                        walk(array_key, child)
                    else:
                        append_value(array_key, child)
                    continue
                next_prefix = f"{prefix}[{key}]"
                if isinstance(child, (list, tuple)):
                    for item in child:
                        append_value(next_prefix, item)
                elif isinstance(child, dict):
                    walk(next_prefix, child)
                else:
                    set_value(next_prefix, child)
            return
        set_value(prefix, value)

    for key, value in record.items():
        walk(str(key), value)

    return [(key, value) for key, values in entries.items() for value in values]


def _parse_key(key: str) -> tuple[list[str], bool]:
    if "[" not in key:
        return [key], False
    parts = [key[: key.index("[")]]
    force_list = False
    last_was_empty = False
    for match in _BRACKET_SEGMENT.finditer(key):
        segment = match.group(1)
        if segment == "":
            force_list = True
            last_was_empty = True
        else:
            parts.append(segment)
            last_was_empty = False
    if force_list and last_was_empty:
        parts[-1] = parts[-1] + "[]"
    return parts, force_list


def _set_deep(target: dict[str, Any], path: list[str], value: str, force_list: bool) -> None:
    current = target
    for key in path[:-1]:
        child = current.get(key)
        if not isinstance(child, dict):
            child = {}
            current[key] = child
        current = child

    leaf = path[-1]
    existing = current.get(leaf)
    if existing is None:
        current[leaf] = [value] if force_list else value
    elif isinstance(existing, list):
        existing.append(value)
    else:
        current[leaf] = [existing, value]


def from_multimap(params: QueryInput) -> dict[str, Any]:
    """Rebuild a nested record from a multi-map.

    All leaves come back as strings. Repeated keys become lists, and a key
    literally ending in ``[]`` always yields a list, even for one value.

    Example:
        >>> from_multimap("obj[foo]=bar&arr[]=only")
        {'obj': {'foo': 'bar'}, 'arr[]': ['only']}
    """
    out: dict[str, Any] = {}
    for raw_key, value in to_multimap(params).multi_items():
        path, force_list = _parse_key(str(raw_key))
        _set_deep(out, path, value, force_list)
    return out


def to_query_record(source: QueryInput) -> dict[str, Any]:
    """Normalize a query input into a record whose leaves are strings.

    Records keep their ``None``/``UNSET`` markers so they can still drive a
    merge; every other input goes through the multi-map round trip.
    """
    if source is None or source is UNSET:
        return {}
    if isinstance(source, dict):
        return _stringify_record(source)
    return from_multimap(source)


def _stringify_record(record: dict[str, Any]) -> dict[str, Any]:
    out: dict[str, Any] = {}
    for key, value in record.items():
        if value is None or value is UNSET:
            out[key] = value
        elif isinstance(value, dict):
            out[key] = _stringify_record(value)
        elif isinstance(value, (list, tuple)):
            out[key] = [
                stringify_leaf(item) for item in value if item is not None and item is not UNSET
            ]
        else:
            out[key] = stringify_leaf(value)
    return out


def make_query_string(query: QueryInput) -> str:
    """Render any query input as an encoded query string."""
    return str(to_multimap(query))


def make_url(
    url: str | httpx.URL,
    params: QueryInput = None,
    fragment: str | None = None,
    base: str | httpx.URL | None = None,
) -> httpx.URL:
    """Build a URL with ``params`` spliced into its existing query.

    Keys present in ``params`` replace the same keys already in the URL.

    Example:
        >>> str(make_url("https://example.com/p?existing=1", {"foo": "bar"}, "baz"))
        'https://example.com/p?existing=1&foo=bar#baz'
    """
    target = httpx.URL(base).join(url) if base else httpx.URL(url)
    incoming = to_multimap(params)
    incoming_keys = set(incoming.keys())
    pairs = [
        (key, value)
        for key, value in target.params.multi_items()
        if key not in incoming_keys
    ]
    pairs.extend(incoming.multi_items())
    return target.copy_with(params=httpx.QueryParams(pairs), fragment=fragment or None)


def merge_queries(original: QueryInput, *incomes: QueryInput) -> dict[str, Any]:
    """Merge query representations into a single record of strings.

    Incomes apply left to right: ``UNSET`` keeps a key, ``None`` deletes it,
    records recurse, anything else overwrites.

    Example:
        >>> merge_queries({"a": "1", "b": "2"}, {"b": None}, "c=3")
        {'a': '1', 'c': '3'}
    """
    result = merge_into({}, clone(to_query_record(original)))
    for income in incomes:
        if income is None or income is UNSET:
            continue
        merge_into(result, to_query_record(income))
    return result
