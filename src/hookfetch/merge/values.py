"""
Generic deep merge with tri-state values.

Every merge in hookfetch follows the same contract for a key in an income:

- absent key: unspecified, the existing value stays
- ``UNSET``: explicitly no change
- ``None``: delete the key
- anything else: overwrite (recursing when both sides are records)
"""

from __future__ import annotations

from typing import Any, Final


class _UnsetType:
    """Sentinel meaning "leave this key as it is"."""

    _instance: _UnsetType | None = None

    def __new__(cls) -> _UnsetType:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False

    def __copy__(self) -> _UnsetType:
        return self

    def __deepcopy__(self, memo: dict[int, Any]) -> _UnsetType:
        return self

    def __reduce__(self) -> str:
        return "UNSET"


UNSET: Final = _UnsetType()


def is_unset(value: Any) -> bool:
    """Check if a value is the ``UNSET`` sentinel."""
    return value is UNSET


def is_plain_record(value: Any) -> bool:
    """Check if a value is a nested record (a plain ``dict``)."""
    return isinstance(value, dict)


def clone(value: Any) -> Any:
    """Deep-clone records and lists, returning every other value as is."""
    if is_plain_record(value):
        return {k: clone(v) for k, v in value.items()}
    if isinstance(value, list):
        return [clone(v) for v in value]
    return value


def stringify_leaf(value: Any) -> str:
    """Render a scalar the way it appears on the wire."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return str(value)


def merge_into(target: dict[str, Any], patch: dict[str, Any]) -> dict[str, Any]:
    """Apply one income onto ``target`` in place.

    ``target`` must already be a private clone; ``patch`` is never mutated.
    """
    for key, value in patch.items():
        if value is UNSET:
            continue
        if value is None:
            target.pop(key, None)
            continue
        if is_plain_record(value):
            current = target.get(key)
            if not is_plain_record(current):
                current = {}
                target[key] = current
            merge_into(current, value)
        else:
            target[key] = clone(value)
    return target


def merge_values(original: Any, *incomes: Any) -> dict[str, Any]:
    """Deep-merge records left to right without mutating any input.

    Records recurse, lists and scalars replace wholesale. Query strings,
    ``httpx.QueryParams`` and lists of pairs are normalized into nested
    records first.

    Args:
        original: Starting record (``None`` means empty)
        *incomes: Records applied in order; ``None``/``UNSET`` incomes are skipped

    Returns:
        A new merged record

    Example:
        >>> merge_values({"a": 1, "b": {"c": 2}}, {"b": {"d": 3}}, {"a": None})
        {'b': {'c': 2, 'd': 3}}
    """
    result = merge_into({}, _as_record(original))
    for income in incomes:
        if income is None or income is UNSET:
            continue
        merge_into(result, _as_record(income))
    return result


def _as_record(value: Any) -> dict[str, Any]:
    if value is None or value is UNSET:
        return {}
    if is_plain_record(value):
        return value
    # Lazy import: the query layer depends on this module
    from hookfetch.merge.query import to_query_record

    return to_query_record(value)
