"""Tests for the hook registry and hook results."""

from __future__ import annotations

import httpx
import pytest

from hookfetch.client.context import RequestContext
from hookfetch.client.lifecycle import LifecyclePipeline, normalize_after_hook, strip_query
from hookfetch.client.response import ResolvedResponse, ResponseType
from hookfetch.errors import InvalidHookError
from hookfetch.plugins import (
    Abort,
    Checkpoint,
    Continue,
    HookManager,
    ShortCircuit,
    normalize_hook_result,
)


def _noop(ctx):
    return None


class TestCheckpoint:
    """Tests for checkpoint parsing."""

    @pytest.mark.parametrize(
        "value",
        [Checkpoint.BEFORE_REQUEST, "before_request", "beforeRequest"],
    )
    def test_parse(self, value) -> None:
        """Test members, snake_case and camelCase names."""
        assert Checkpoint.parse(value) is Checkpoint.BEFORE_REQUEST

    def test_parse_unknown(self) -> None:
        """Test unknown names raise ValueError."""
        with pytest.raises(ValueError):
            Checkpoint.parse("beforeLunch")

    def test_adjusting_checkpoints(self) -> None:
        """Test which checkpoints re-normalize request parameters."""
        adjusting = [c for c in Checkpoint if c.adjusts_request]

        assert adjusting == [Checkpoint.BEFORE_REQUEST, Checkpoint.AFTER_BODY_TRANSFORMED]


class TestHookManager:
    """Tests for HookManager."""

    def test_register_order_and_prepend(self) -> None:
        """Test hooks keep registration order; prepend goes first."""
        manager = HookManager()

        def a(ctx):
            return None

        def b(ctx):
            return None

        manager.register("before_request", a)
        manager.register("before_request", b, prepend=True)
        manager.register("after_response", a)

        names = [h.name for h in manager.get_hooks(Checkpoint.BEFORE_REQUEST)]
        assert names == ["b", "a"]
        assert manager.hook_counts["after_response"] == 1
        assert len(manager) == 3

    def test_register_rejects_non_callable(self) -> None:
        """Test non-callables raise InvalidHookError."""
        with pytest.raises(InvalidHookError):
            HookManager().register("before_request", 42)

    def test_unregister(self) -> None:
        """Test removal from one checkpoint and from all."""
        manager = HookManager()
        manager.register("before_request", _noop)
        manager.register("after_response", _noop)

        assert manager.unregister("before_request", _noop) == 1
        assert not manager.has_hooks("before_request")
        assert manager.unregister("*", _noop) == 1
        assert len(manager) == 0

    def test_decorator(self) -> None:
        """Test the decorator registers and returns the function."""
        manager = HookManager()

        @manager.hook("before_init", name="custom")
        def init(ctx):
            return None

        hooks = manager.get_hooks("before_init")
        assert hooks[0].callback is init
        assert hooks[0].name == "custom"

    def test_clear_and_copy(self) -> None:
        """Test copies are independent and clear is per checkpoint."""
        manager = HookManager()
        manager.register("before_request", _noop)
        manager.register("after_response", _noop)

        copied = manager.copy()
        manager.clear("before_request")

        assert not manager.has_hooks("before_request")
        assert copied.has_hooks("before_request")

        manager.clear()
        assert len(manager) == 0
        assert len(copied) == 2


class TestNormalizeHookResult:
    """Tests for mapping hook returns onto results."""

    def test_shorthands(self) -> None:
        """Test None, ctx, False and responses."""
        ctx = RequestContext(url="/x")
        response = httpx.Response(200)

        assert normalize_hook_result(None, ctx) == Continue(ctx)
        assert normalize_hook_result(ctx, ctx) == Continue(ctx)
        assert normalize_hook_result(False, ctx) == Abort()
        assert normalize_hook_result(response, ctx) == ShortCircuit(response)

    def test_explicit_results_pass_through(self) -> None:
        """Test explicit results are returned unchanged."""
        ctx = RequestContext()
        result = Abort("stop")

        assert normalize_hook_result(result, ctx) is result

    def test_other_contexts(self) -> None:
        """Test another context short-circuits only when resolved."""
        ctx = RequestContext()
        other = RequestContext()

        assert normalize_hook_result(other, ctx) == Continue(other)

        resolved = ResolvedResponse(httpx.Response(200), "ok", ResponseType.TEXT)
        other.response = resolved
        assert normalize_hook_result(other, ctx) == ShortCircuit(resolved)

    @pytest.mark.parametrize("value", [True, 0, "text", [], object()])
    def test_unknown(self, value) -> None:
        """Test anything else is not understood."""
        assert normalize_hook_result(value, RequestContext()) is None


class TestLifecycleHelpers:
    """Tests for pipeline helpers."""

    def test_strip_query(self) -> None:
        """Test the query is removed and the fragment kept."""
        assert strip_query("/a?x=1#top") == "/a#top"
        assert strip_query("https://e.com/p?x=1") == "https://e.com/p"

    def test_normalize_after_hook(self) -> None:
        """Test url-embedded queries fold into ctx.query, the field winning."""
        ctx = RequestContext(url="/p?a=url&b=url", query={"a": "field"}, headers={"X-A": None})

        normalize_after_hook(ctx)

        assert ctx.url == "/p"
        assert ctx.query == {"a": "field", "b": "url"}
        assert isinstance(ctx.headers, httpx.Headers)
        assert "x-a" not in ctx.headers

    @pytest.mark.asyncio
    async def test_continue_with_replacement_context(self) -> None:
        """Test Continue(other) swaps the context for later hooks."""
        manager = HookManager()
        replacement = RequestContext(url="/replaced")
        seen = []

        manager.register("before_init", lambda ctx: Continue(replacement))
        manager.register("before_init", lambda ctx: seen.append(ctx.url))

        outcome = await LifecyclePipeline(manager).dispatch(
            Checkpoint.BEFORE_INIT, RequestContext(url="/original")
        )

        assert outcome.context is replacement
        assert not outcome.finished
        assert seen == ["/replaced"]
