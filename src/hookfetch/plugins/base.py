"""
Base plugin classes and interfaces.

A plugin bundles hooks (and anything else it needs) behind a name. The client
installs each name once; derived clients carry over the installed plugins.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from hookfetch.client.core import FetchClient


class Plugin(ABC):
    """Base class for plugins.

    ``install`` and ``uninstall`` may be sync or async.

    Example:
        >>> class AuthPlugin(Plugin):
        ...     name = "auth"
        ...
        ...     def __init__(self, token):
        ...         self.token = token
        ...
        ...     def install(self, client):
        ...         client.on("before_request", self.add_header)
        ...
        ...     def add_header(self, ctx):
        ...         ctx.headers["authorization"] = f"Bearer {self.token}"
    """

    name: str = ""

    @abstractmethod
    def install(self, client: FetchClient) -> Any:
        """Attach the plugin to a client.

        Args:
            client: Client being extended
        """
        raise NotImplementedError

    def uninstall(self, client: FetchClient) -> Any:
        """Detach the plugin from a client.

        Args:
            client: Client the plugin was installed on
        """
        return None


def plugin_name(plugin: Any) -> str:
    """Name a plugin is registered under.

    Raises:
        TypeError: If the object has no name or no ``install`` method
    """
    name = getattr(plugin, "name", None)
    if not name or not isinstance(name, str):
        raise TypeError("plugin must define a non-empty string name")
    if not callable(getattr(plugin, "install", None)):
        raise TypeError(f'plugin "{name}" must define install(client)')
    return name
