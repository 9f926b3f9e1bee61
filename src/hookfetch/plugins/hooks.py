"""
Hook registry for the request lifecycle.

Hooks are plain or async callables receiving the ``RequestContext``. They are
kept in one ordered list and dispatched per checkpoint by the lifecycle
pipeline.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any

from hookfetch.errors import InvalidHookError

if TYPE_CHECKING:
    from collections.abc import Callable

    HookCallback = Callable[..., Any]


class Checkpoint(str, Enum):
    """Lifecycle checkpoints, in dispatch order."""

    BEFORE_INIT = "before_init"
    BEFORE_REQUEST = "before_request"
    AFTER_BODY_TRANSFORMED = "after_body_transformed"
    BEFORE_ACTUAL_FETCH = "before_actual_fetch"
    AFTER_RESPONSE = "after_response"

    @classmethod
    def parse(cls, value: Checkpoint | str) -> Checkpoint:
        """Accept a member, its value, or the camelCase name.

        Example:
            >>> Checkpoint.parse("beforeRequest")
            <Checkpoint.BEFORE_REQUEST: 'before_request'>
        """
        if isinstance(value, cls):
            return value
        text = str(value)
        snake = "".join(f"_{c.lower()}" if c.isupper() else c for c in text)
        try:
            return cls(snake)
        except ValueError:
            raise ValueError(f"unknown checkpoint: {value!r}") from None

    @property
    def adjusts_request(self) -> bool:
        """Whether hooks here may still change the query and headers."""
        return self in (Checkpoint.BEFORE_REQUEST, Checkpoint.AFTER_BODY_TRANSFORMED)


@dataclass
class Hook:
    """A registered hook.

    Attributes:
        checkpoint: Checkpoint the hook runs at
        callback: Callable receiving the request context
        name: Hook name used in logs and errors
    """

    checkpoint: Checkpoint
    callback: HookCallback
    name: str = ""


def _callback_name(callback: Any) -> str:
    return getattr(callback, "__name__", None) or type(callback).__name__


class HookManager:
    """Ordered hook registry.

    Example:
        >>> manager = HookManager()
        >>>
        >>> @manager.hook(Checkpoint.BEFORE_REQUEST)
        ... def add_token(ctx):
        ...     ctx.headers["authorization"] = "Bearer abc"
        >>>
        >>> [h.name for h in manager.get_hooks(Checkpoint.BEFORE_REQUEST)]
        ['add_token']
    """

    def __init__(self) -> None:
        """Initialize hook manager."""
        self._hooks: list[Hook] = []

    def register(
        self,
        checkpoint: Checkpoint | str,
        callback: HookCallback,
        prepend: bool = False,
        name: str = "",
    ) -> Hook:
        """Register a hook callback.

        Args:
            checkpoint: Checkpoint to run at
            callback: Sync or async callable
            prepend: Run before hooks already registered
            name: Optional name for the hook

        Returns:
            The registered Hook

        Raises:
            InvalidHookError: If the callback is not callable
        """
        if not callable(callback):
            raise InvalidHookError(callback)

        hook = Hook(
            checkpoint=Checkpoint.parse(checkpoint),
            callback=callback,
            name=name or _callback_name(callback),
        )
        if prepend:
            self._hooks.insert(0, hook)
        else:
            self._hooks.append(hook)
        return hook

    def unregister(
        self,
        checkpoint: Checkpoint | str | None,
        callback: HookCallback,
    ) -> int:
        """Remove every registration of ``callback``.

        Args:
            checkpoint: Checkpoint to remove from; ``"*"`` or None means all
            callback: The registered callable

        Returns:
            Number of hooks removed
        """
        target = None if checkpoint in (None, "*") else Checkpoint.parse(checkpoint)
        before = len(self._hooks)
        self._hooks = [
            hook
            for hook in self._hooks
            if not (
                hook.callback == callback
                and (target is None or hook.checkpoint is target)
            )
        ]
        return before - len(self._hooks)

    def hook(
        self,
        checkpoint: Checkpoint | str,
        prepend: bool = False,
        name: str = "",
    ) -> Callable[[HookCallback], HookCallback]:
        """Decorator for registering hooks.

        Args:
            checkpoint: Checkpoint to run at
            prepend: Run before hooks already registered
            name: Optional hook name

        Returns:
            Decorator function
        """

        def decorator(func: HookCallback) -> HookCallback:
            self.register(checkpoint, func, prepend, name)
            return func

        return decorator

    def get_hooks(self, checkpoint: Checkpoint | str) -> list[Hook]:
        """Snapshot of the hooks registered for a checkpoint, in run order."""
        target = Checkpoint.parse(checkpoint)
        return [hook for hook in self._hooks if hook.checkpoint is target]

    def has_hooks(self, checkpoint: Checkpoint | str) -> bool:
        """Check whether a checkpoint has hooks."""
        return bool(self.get_hooks(checkpoint))

    def clear(self, checkpoint: Checkpoint | str | None = None) -> None:
        """Clear hooks.

        Args:
            checkpoint: Checkpoint to clear (None for all)
        """
        if checkpoint is None:
            self._hooks = []
        else:
            target = Checkpoint.parse(checkpoint)
            self._hooks = [hook for hook in self._hooks if hook.checkpoint is not target]

    def copy(self) -> HookManager:
        """Independent registry holding the same hooks in the same order."""
        manager = HookManager()
        manager._hooks = [
            Hook(checkpoint=h.checkpoint, callback=h.callback, name=h.name)
            for h in self._hooks
        ]
        return manager

    def __len__(self) -> int:
        return len(self._hooks)

    @property
    def hook_counts(self) -> dict[str, int]:
        """Number of hooks per checkpoint."""
        counts = {checkpoint.value: 0 for checkpoint in Checkpoint}
        for hook in self._hooks:
            counts[hook.checkpoint.value] += 1
        return counts
