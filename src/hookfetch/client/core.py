"""核心客户端实现：合并配置、驱动钩子生命周期并调用传输原语。

Core FetchClient implementation.
"""

from __future__ import annotations

import dataclasses
import inspect
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

import httpx

from hookfetch.client.body import body_content_type, has_body, to_request_body
from hookfetch.client.cancel import CancelReason, OperationCancelled
from hookfetch.client.config import ClientConfig, strip_unset
from hookfetch.client.context import RequestContext
from hookfetch.client.lifecycle import (
    LifecyclePipeline,
    normalize_initial,
    resolve_into,
    strip_query,
)
from hookfetch.client.response import ResponseType
from hookfetch.errors import (
    BodyNotAllowedError,
    HookFetchError,
    NetworkError,
    RequestCancelledError,
    RequestTimeoutError,
)
from hookfetch.merge.headers import merge_headers
from hookfetch.merge.query import make_url, merge_queries, to_query_record
from hookfetch.merge.values import clone
from hookfetch.plugins.base import plugin_name
from hookfetch.plugins.hooks import Checkpoint, HookManager
from hookfetch.plugins.interceptors import Interceptors
from hookfetch.telemetry import get_log_context, get_logger, set_log_context
from hookfetch.transport import HttpxTransport

if TYPE_CHECKING:
    from collections.abc import Callable

    from hookfetch.plugins.hooks import HookCallback

logger = get_logger("hookfetch.client")

_NO_BODY_METHODS = frozenset({"GET", "HEAD", "OPTIONS", "TRACE"})

# Relative targets without a base URL resolve against this origin
_FALLBACK_BASE_URL = "http://localhost"

_REQUEST_OPTIONS = frozenset(
    {
        "url",
        "method",
        "base_url",
        "query",
        "headers",
        "body",
        "timeout",
        "response_type",
        "credentials",
        "cache",
        "mode",
        "on_progress",
        "custom_env",
        "should_throw",
        "transport",
        "cancel",
    }
)


class FetchClient:
    """HTTP client with instance defaults, lifecycle hooks and plugins.

    Every request walks five checkpoints in order: ``before_init``,
    ``before_request``, ``after_body_transformed``, ``before_actual_fetch``
    and ``after_response``. Hooks registered with ``on`` can rewrite the
    context, abort the request, or answer it with their own response.

    Example:
        >>> client = FetchClient(base_url="https://api.example.com", timeout=5000)
        >>>
        >>> @client.hook("before_request")
        ... def add_token(ctx):
        ...     ctx.headers["authorization"] = "Bearer abc"
        >>>
        >>> ctx = await client.get("/users", query={"page": 2})
        >>> print(ctx.status, ctx.data)

        >>> # Derived client sharing hooks and defaults
        >>> admin = client.extends(headers={"x-role": "admin"})
    """

    merge_queries = staticmethod(merge_queries)
    merge_headers = staticmethod(merge_headers)

    def __init__(self, config: ClientConfig | None = None, **options: Any) -> None:
        """Initialize the client.

        Args:
            config: Base configuration
            **options: ``ClientConfig`` fields merged over ``config``
        """
        if config is None:
            config = ClientConfig(**strip_unset(options))
        elif options:
            config = config.merged(options)
        self._config = config
        self._hooks = HookManager()
        self._plugins: dict[str, Any] = {}
        self._default_transport: HttpxTransport | None = None
        self.interceptors = Interceptors(self)

    @classmethod
    def create(cls, config: ClientConfig | None = None, **options: Any) -> FetchClient:
        """Create a new client.

        Args:
            config: Base configuration
            **options: ``ClientConfig`` fields merged over ``config``

        Returns:
            A fresh FetchClient
        """
        return cls(config, **options)

    @property
    def config(self) -> ClientConfig:
        """Instance configuration."""
        return self._config

    @property
    def hooks(self) -> HookManager:
        """Hook registry of this client."""
        return self._hooks

    @property
    def plugins(self) -> dict[str, Any]:
        """Installed plugins by name."""
        return dict(self._plugins)

    # Hook registration

    def on(
        self,
        checkpoint: Checkpoint | str,
        hook: HookCallback,
        prepend: bool = False,
    ) -> FetchClient:
        """Register a hook.

        Args:
            checkpoint: Checkpoint to run at
            hook: Sync or async callable receiving the request context
            prepend: Run before the hooks already registered

        Returns:
            This client, for chaining

        Raises:
            InvalidHookError: If ``hook`` is not callable
        """
        self._hooks.register(checkpoint, hook, prepend=prepend)
        return self

    def off(self, checkpoint: Checkpoint | str | None, hook: HookCallback) -> FetchClient:
        """Remove a hook from one checkpoint, or from all with ``"*"``/None."""
        self._hooks.unregister(checkpoint, hook)
        return self

    def hook(
        self,
        checkpoint: Checkpoint | str,
        prepend: bool = False,
    ) -> Callable[[HookCallback], HookCallback]:
        """Decorator form of ``on``."""
        return self._hooks.hook(checkpoint, prepend=prepend)

    # Derivation and plugins

    def extends(self, **overrides: Any) -> FetchClient:
        """Derive a client with deep-merged configuration.

        The child starts with a copy of this client's hooks and plugins;
        later registrations on either side do not affect the other.
        """
        child = type(self)(self._config.merged(overrides))
        child._hooks = self._hooks.copy()
        child._plugins = dict(self._plugins)
        return child

    async def plugin(self, plugin: Any) -> FetchClient:
        """Install a plugin once per name.

        ``install`` may be sync or async; if it returns a client, that
        client is returned instead of this one.

        Raises:
            TypeError: If the plugin has no name or no ``install``
        """
        name = plugin_name(plugin)
        if name in self._plugins:
            logger.debug("Plugin already installed", plugin=name)
            return self

        result = plugin.install(self)
        if inspect.isawaitable(result):
            result = await result
        self._plugins[name] = plugin
        logger.debug("Plugin installed", plugin=name)
        return result if isinstance(result, FetchClient) else self

    async def unplug(self, plugin: Any) -> bool:
        """Uninstall a plugin by object or name.

        Returns:
            True if the plugin was installed
        """
        name = plugin if isinstance(plugin, str) else plugin_name(plugin)
        installed = self._plugins.pop(name, None)
        if installed is None:
            return False
        uninstall = getattr(installed, "uninstall", None)
        if callable(uninstall):
            result = uninstall(self)
            if inspect.isawaitable(result):
                await result
        return True

    # Requests

    async def request(
        self, target: str | httpx.URL | Mapping[str, Any] | None = None, /, **options: Any
    ) -> RequestContext:
        """Send a request through the hook lifecycle.

        Args:
            target: Address, or a mapping of options embedding ``url``
            **options: Request options (``method``, ``query``, ``headers``,
                ``body``, ``timeout``, ``response_type``, ``on_progress``,
                ``cancel``, ...)

        Returns:
            The final request context; ``ctx.data`` holds the decoded payload

        Raises:
            BodyNotAllowedError: Body given for GET, HEAD, OPTIONS or TRACE
            AbortedByHookError: A hook aborted the request
            RequestTimeoutError: The timeout elapsed before the transport answered
            RequestCancelledError: The cancel token was cancelled
            NetworkError: The transport raised
            ResponseError: The failure predicate rejected the response
        """
        ctx = self._create_context(target, options)
        outer_log_context = get_log_context()
        set_log_context(
            dataclasses.replace(
                outer_log_context, request_id=ctx.request_id, method=ctx.method, url=ctx.url
            )
        )
        pipeline = LifecyclePipeline(self._hooks, strict=self._config.strict_hooks)
        logger.debug("Request started")

        try:
            ctx = await self._run(pipeline, ctx)
            logger.debug("Request completed", status=ctx.status)
            return ctx
        except HookFetchError as e:
            if e.request_context is None:
                e.request_context = ctx
            raise
        finally:
            ctx.cancel.clear_timeout()
            set_log_context(outer_log_context)

    async def _run(self, pipeline: LifecyclePipeline, ctx: RequestContext) -> RequestContext:
        outcome = await pipeline.dispatch(Checkpoint.BEFORE_INIT, ctx)
        if outcome.finished:
            return outcome.context
        ctx = outcome.context

        ctx.method = str(ctx.method).upper()
        if ctx.method in _NO_BODY_METHODS and has_body(ctx.body):
            raise BodyNotAllowedError(ctx.method, request_context=ctx)

        normalize_initial(ctx, self._config.query)
        outcome = await pipeline.dispatch(Checkpoint.BEFORE_REQUEST, ctx)
        if outcome.finished:
            return outcome.context
        ctx = outcome.context

        ctx.body = to_request_body(ctx.body)
        inferred = body_content_type(ctx.body)
        if inferred and "content-type" not in ctx.headers:
            ctx.headers["content-type"] = inferred

        outcome = await pipeline.dispatch(Checkpoint.AFTER_BODY_TRANSFORMED, ctx)
        if outcome.finished:
            return outcome.context
        ctx = outcome.context

        ctx.raw_request = self._build_request(ctx)
        outcome = await pipeline.dispatch(Checkpoint.BEFORE_ACTUAL_FETCH, ctx)
        if outcome.finished:
            return outcome.context
        ctx = outcome.context

        raw = await self._send(ctx)
        await resolve_into(ctx, raw)

        outcome = await pipeline.dispatch(Checkpoint.AFTER_RESPONSE, ctx)
        return outcome.context

    def _create_context(
        self, target: str | httpx.URL | Mapping[str, Any] | None, options: dict[str, Any]
    ) -> RequestContext:
        if isinstance(target, Mapping):
            options = {**target, **options}
            target = None
        options = strip_unset(options)
        unknown = set(options) - _REQUEST_OPTIONS
        if unknown:
            raise TypeError(f"unexpected request options: {sorted(unknown)}")

        config = self._config
        url = options.get("url") if target is None else target
        response_type = options.get("response_type", config.response_type)

        fields: dict[str, Any] = {
            "url": "" if url is None else str(url),
            "method": str(options.get("method") or "GET").upper(),
            "base_url": str(options.get("base_url") or config.base_url or ""),
            "query": to_query_record(options.get("query")),
            "headers": merge_headers(config.headers, options.get("headers")),
            "body": options.get("body"),
            "timeout": options.get("timeout", config.timeout),
            "response_type": ResponseType(response_type) if response_type else None,
            "credentials": options.get("credentials", config.credentials),
            "cache": options.get("cache", config.cache),
            "mode": options.get("mode", config.mode),
            "on_progress": options.get("on_progress"),
            "custom_env": options.get("custom_env", clone(config.custom_env)),
            "should_throw": options.get("should_throw", config.should_throw),
            "transport": options.get("transport") or config.transport,
        }
        if options.get("cancel") is not None:
            fields["cancel"] = options["cancel"]
        return RequestContext(**fields)

    def _build_request(self, ctx: RequestContext) -> httpx.Request:
        base = strip_query(ctx.base_url) if ctx.base_url else _FALLBACK_BASE_URL
        target = httpx.URL(ctx.url)
        url = make_url(target, ctx.query, target.fragment, base=base)

        body = to_request_body(ctx.body)
        ctx.body = body
        return httpx.Request(
            ctx.method,
            url,
            headers=merge_headers(ctx.headers),
            extensions=ctx.transport_extensions(),
            **(body.request_kwargs() if body is not None else {}),
        )

    async def _send(self, ctx: RequestContext) -> httpx.Response:
        transport = ctx.transport or self._get_default_transport()
        request = ctx.raw_request
        if request is None:
            request = ctx.raw_request = self._build_request(ctx)
        token = ctx.cancel
        timeout_seconds = ctx.timeout_seconds
        if timeout_seconds:
            token.start_timeout(timeout_seconds)

        try:
            result = transport(request)
            if inspect.isawaitable(result):
                result = await token.run(result)
            return result
        except OperationCancelled as e:
            if e.reason is CancelReason.TIMEOUT:
                logger.warning("Request timed out", timeout_ms=ctx.timeout)
                raise RequestTimeoutError(
                    ctx.timeout or 0, url=str(request.url), request_context=ctx, cause=e
                ) from e
            logger.info("Request cancelled")
            raise RequestCancelledError(url=str(request.url), request_context=ctx) from e
        except HookFetchError:
            raise
        except Exception as e:
            logger.warning("Transport failed", error=str(e), error_type=type(e).__name__)
            raise NetworkError(
                str(e) or type(e).__name__,
                url=str(request.url),
                request_context=ctx,
                cause=e,
            ) from e
        finally:
            token.clear_timeout()

    def _get_default_transport(self) -> HttpxTransport:
        if self._default_transport is None:
            self._default_transport = HttpxTransport()
        return self._default_transport

    # Verb shortcuts

    async def _without_body(
        self, method: str, url: Any, options: Mapping[str, Any] | None, kwargs: dict[str, Any]
    ) -> RequestContext:
        return await self.request(url, **{**(options or {}), **kwargs, "method": method})

    async def _with_body(
        self,
        method: str,
        url: Any,
        body: Any,
        options: Mapping[str, Any] | None,
        kwargs: dict[str, Any],
    ) -> RequestContext:
        merged = {**(options or {}), **kwargs, "method": method}
        if body is not None:
            merged["body"] = body
        return await self.request(url, **merged)

    async def get(
        self, url: Any, options: Mapping[str, Any] | None = None, **kwargs: Any
    ) -> RequestContext:
        """Send a GET request."""
        return await self._without_body("GET", url, options, kwargs)

    async def head(
        self, url: Any, options: Mapping[str, Any] | None = None, **kwargs: Any
    ) -> RequestContext:
        """Send a HEAD request."""
        return await self._without_body("HEAD", url, options, kwargs)

    async def options(
        self, url: Any, options: Mapping[str, Any] | None = None, **kwargs: Any
    ) -> RequestContext:
        """Send an OPTIONS request."""
        return await self._without_body("OPTIONS", url, options, kwargs)

    async def trace(
        self, url: Any, options: Mapping[str, Any] | None = None, **kwargs: Any
    ) -> RequestContext:
        """Send a TRACE request."""
        return await self._without_body("TRACE", url, options, kwargs)

    async def delete(
        self, url: Any, body: Any = None, options: Mapping[str, Any] | None = None, **kwargs: Any
    ) -> RequestContext:
        """Send a DELETE request."""
        return await self._with_body("DELETE", url, body, options, kwargs)

    async def post(
        self, url: Any, body: Any = None, options: Mapping[str, Any] | None = None, **kwargs: Any
    ) -> RequestContext:
        """Send a POST request."""
        return await self._with_body("POST", url, body, options, kwargs)

    async def put(
        self, url: Any, body: Any = None, options: Mapping[str, Any] | None = None, **kwargs: Any
    ) -> RequestContext:
        """Send a PUT request."""
        return await self._with_body("PUT", url, body, options, kwargs)

    async def patch(
        self, url: Any, body: Any = None, options: Mapping[str, Any] | None = None, **kwargs: Any
    ) -> RequestContext:
        """Send a PATCH request."""
        return await self._with_body("PATCH", url, body, options, kwargs)

    # Lifecycle

    async def close(self) -> None:
        """Close the default transport, if one was created."""
        if self._default_transport is not None:
            await self._default_transport.close()
            self._default_transport = None

    async def __aenter__(self) -> FetchClient:
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Async context manager exit."""
        await self.close()


def create_client(config: ClientConfig | None = None, **options: Any) -> FetchClient:
    """Create a new, independent FetchClient.

    Example:
        >>> client = create_client(base_url="https://api.example.com")
    """
    return FetchClient.create(config, **options)
