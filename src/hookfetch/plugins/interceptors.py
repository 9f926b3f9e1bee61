"""
Interceptors: request/response sugar over hook registration.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from hookfetch.plugins.hooks import Checkpoint

if TYPE_CHECKING:
    from hookfetch.client.core import FetchClient
    from hookfetch.plugins.hooks import HookCallback, HookManager


class Interceptor:
    """Hooks of one checkpoint, seen through a narrow interface."""

    def __init__(self, client: FetchClient, checkpoint: Checkpoint) -> None:
        self._client = client
        self.checkpoint = checkpoint

    @property
    def _hooks(self) -> HookManager:
        return self._client.hooks

    def use(self, hook: HookCallback, prepend: bool = False) -> FetchClient:
        """Register a hook; returns the client for chaining."""
        return self._client.on(self.checkpoint, hook, prepend=prepend)

    def clear(self) -> None:
        """Remove every hook of this checkpoint."""
        self._hooks.clear(self.checkpoint)

    @property
    def handlers(self) -> list[HookCallback]:
        """Registered callbacks, in run order."""
        return [hook.callback for hook in self._hooks.get_hooks(self.checkpoint)]


class Interceptors:
    """``request`` runs at ``before_request``, ``response`` at ``after_response``."""

    def __init__(self, client: FetchClient) -> None:
        self.request = Interceptor(client, Checkpoint.BEFORE_REQUEST)
        self.response = Interceptor(client, Checkpoint.AFTER_RESPONSE)
