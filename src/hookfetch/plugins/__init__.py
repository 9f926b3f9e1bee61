"""
Hook and plugin system for hookfetch.
"""

from hookfetch.plugins.base import Plugin
from hookfetch.plugins.hooks import Checkpoint, Hook, HookManager
from hookfetch.plugins.interceptors import Interceptor, Interceptors
from hookfetch.plugins.results import (
    Abort,
    Continue,
    HookResult,
    ShortCircuit,
    normalize_hook_result,
)

__all__ = [
    "Abort",
    "Checkpoint",
    "Continue",
    "Hook",
    "HookManager",
    "HookResult",
    "Interceptor",
    "Interceptors",
    "Plugin",
    "ShortCircuit",
    "normalize_hook_result",
]
