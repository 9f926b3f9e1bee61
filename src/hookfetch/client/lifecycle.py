"""生命周期管线：按检查点顺序执行钩子，处理中止与短路。

Lifecycle pipeline for hookfetch.

Runs the hooks of one checkpoint strictly in order, normalizes what they
return, and reconciles the query and headers they may have rewritten.
A short-circuit resolves the hook's response and jumps to ``after_response``.
"""

from __future__ import annotations

import dataclasses
import inspect
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import httpx

from hookfetch.client.response import ResolvedResponse, resolve_response
from hookfetch.errors import AbortedByHookError, ResponseError, UnexpectedHookReturnError
from hookfetch.merge.headers import merge_headers
from hookfetch.merge.query import merge_queries
from hookfetch.merge.values import clone
from hookfetch.plugins.hooks import Checkpoint
from hookfetch.plugins.results import Abort, Continue, ShortCircuit, normalize_hook_result
from hookfetch.telemetry import get_log_context, get_logger, set_log_context

if TYPE_CHECKING:
    from hookfetch.client.context import RequestContext
    from hookfetch.plugins.hooks import Hook, HookManager

logger = get_logger("hookfetch.lifecycle")


@dataclass
class DispatchOutcome:
    """Result of running one checkpoint.

    Attributes:
        context: Context after the hooks ran
        finished: True when a hook short-circuited the request
    """

    context: RequestContext
    finished: bool = False


def strip_query(url: str | httpx.URL) -> str:
    """Drop the query string from a URL, keeping any fragment."""
    return str(httpx.URL(url).copy_with(params=None))


def normalize_initial(ctx: RequestContext, default_query: Any = None) -> None:
    """First reconciliation of the query sources.

    Priority, highest first: ``ctx.query``, the query embedded in ``ctx.url``,
    ``default_query``, the query embedded in ``ctx.base_url``. ``None`` in
    ``ctx.query`` deletes a key from every lower source.
    """
    url = httpx.URL(ctx.url)
    base_query = httpx.URL(ctx.base_url).params if ctx.base_url else None
    ctx.query = merge_queries(base_query, default_query, url.params, ctx.query)
    ctx.url = strip_query(url)
    ctx.headers = merge_headers(ctx.headers)


def normalize_after_hook(ctx: RequestContext, previous_query: Any = None) -> None:
    """Fold a query a hook wrote into ``ctx.url`` back into ``ctx.query``.

    Priority, highest first: ``ctx.query``, the query embedded in ``ctx.url``,
    ``previous_query`` (the query in effect before the hook ran). ``UNSET``
    in ``ctx.query`` keeps the earlier value and ``None`` deletes it.
    """
    url = httpx.URL(ctx.url)
    ctx.query = merge_queries(previous_query, url.params, ctx.query)
    ctx.url = strip_query(url)
    ctx.headers = merge_headers(ctx.headers)


async def resolve_into(ctx: RequestContext, raw: httpx.Response | ResolvedResponse) -> None:
    """Resolve a raw response onto the context, closing the raw stream.

    ``ctx.raw_response`` ends up as a fully read copy whose body can still be
    accessed, even when the resolver rejects the response.
    """
    if isinstance(raw, ResolvedResponse):
        ctx.response = raw
        ctx.raw_response = raw.raw_response
        return

    ctx.raw_response = raw
    try:
        ctx.response = await resolve_response(
            raw,
            ctx.response_type,
            on_progress=ctx.on_progress,
            should_throw=ctx.should_throw,
        )
        ctx.raw_response = ctx.response.raw_response
    except ResponseError as e:
        ctx.raw_response = e.response.raw_response
        raise
    finally:
        await raw.aclose()


class LifecyclePipeline:
    """Dispatches checkpoints over a ``HookManager``.

    Example:
        >>> pipeline = LifecyclePipeline(manager)
        >>> outcome = await pipeline.dispatch(Checkpoint.BEFORE_REQUEST, ctx)
        >>> if outcome.finished:
        ...     return outcome.context
    """

    def __init__(self, hooks: HookManager, *, strict: bool = False) -> None:
        """Initialize pipeline.

        Args:
            hooks: Hook registry to read from at every dispatch
            strict: Raise on unexpected hook returns instead of warning
        """
        self._hooks = hooks
        self._strict = strict

    async def dispatch(
        self, checkpoint: Checkpoint, ctx: RequestContext
    ) -> DispatchOutcome:
        """Run every hook registered for ``checkpoint``.

        Raises:
            AbortedByHookError: When a hook aborts
            UnexpectedHookReturnError: For unknown returns in strict mode
        """
        hooks = self._hooks.get_hooks(checkpoint)
        set_log_context(dataclasses.replace(get_log_context(), checkpoint=checkpoint.value))
        logger.debug("Dispatching checkpoint", hooks=len(hooks))

        for hook in hooks:
            previous_query = clone(ctx.query) if checkpoint.adjusts_request else None
            result = await self._call(hook, ctx)
            normalized = normalize_hook_result(result, ctx)

            if normalized is None:
                error = UnexpectedHookReturnError(
                    hook.name, checkpoint.value, result, request_context=ctx
                )
                if self._strict:
                    raise error
                logger.warning(str(error), hook=hook.name)

            elif isinstance(normalized, Abort):
                logger.info("Request aborted by hook", hook=hook.name, reason=normalized.reason)
                raise AbortedByHookError(
                    hook.name, checkpoint.value, normalized.reason, request_context=ctx
                )

            elif isinstance(normalized, ShortCircuit):
                logger.info("Request short-circuited by hook", hook=hook.name)
                await resolve_into(ctx, normalized.response)
                if checkpoint is Checkpoint.AFTER_RESPONSE:
                    return DispatchOutcome(ctx, finished=True)
                outcome = await self.dispatch(Checkpoint.AFTER_RESPONSE, ctx)
                return DispatchOutcome(outcome.context, finished=True)

            elif isinstance(normalized, Continue) and normalized.context is not None:
                if normalized.context is not ctx:
                    previous_query = None
                ctx = normalized.context

            if checkpoint.adjusts_request:
                normalize_after_hook(ctx, previous_query)

        return DispatchOutcome(ctx)

    @staticmethod
    async def _call(hook: Hook, ctx: RequestContext) -> Any:
        result = hook.callback(ctx)
        if inspect.isawaitable(result):
            result = await result
        return result
