"""
Hook results.

Every hook outcome is one of ``Continue``, ``Abort`` or ``ShortCircuit``.
Hooks may return these directly or use the plain shorthands accepted by
``normalize_hook_result``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Union

import httpx

from hookfetch.client.context import RequestContext
from hookfetch.client.response import ResolvedResponse


@dataclass(frozen=True)
class Continue:
    """Proceed with the next hook, optionally with a replacement context."""

    context: RequestContext | None = None


@dataclass(frozen=True)
class Abort:
    """Stop the request with an ``AbortedByHookError``."""

    reason: str | None = None


@dataclass(frozen=True)
class ShortCircuit:
    """Finish the request with this response instead of calling the transport."""

    response: httpx.Response | ResolvedResponse


HookResult = Union[Continue, Abort, ShortCircuit]


def normalize_hook_result(value: Any, ctx: RequestContext) -> HookResult | None:
    """Map a hook's return value onto a ``HookResult``.

    - ``None`` or the context itself: continue
    - ``False``: abort
    - ``httpx.Response`` or ``ResolvedResponse``: short-circuit
    - another, already resolved context: short-circuit with its response
    - another, unresolved context: continue with it

    Returns:
        The normalized result, or None when the value is not understood
    """
    if isinstance(value, (Continue, Abort, ShortCircuit)):
        return value
    if value is None or value is ctx:
        return Continue(ctx)
    if value is False:
        return Abort()
    if isinstance(value, (httpx.Response, ResolvedResponse)):
        return ShortCircuit(value)
    if isinstance(value, RequestContext):
        if value.response is not None:
            return ShortCircuit(value.response)
        return Continue(value)
    return None
