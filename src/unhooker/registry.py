"""Host registry interface and in-memory reference host.

The queue engine never owns the registry it modifies. It talks to it
through the HostRegistry protocol:

    hook_exists(name)                         -> bool
    callbacks_at(name, priority)              -> list[RegisteredCallback]
    remove_callback(name, callback, priority) -> bool
    register_callback(name, callback, priority)

CallbackRegistry implements the protocol in memory and also provides the
host side (do_action / apply_filters), which is what fires deferred queues.
"""

from __future__ import annotations

import inspect
import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

logger = logging.getLogger(__name__)

DEFAULT_PRIORITY = 10

Callback = Callable[..., Any]


@dataclass(frozen=True)
class RegisteredCallback:
    """A callback as currently stored by the host.

    Attributes:
        callback: The registered callable
        priority: Slot the callback is registered at
    """

    callback: Callback
    priority: int = DEFAULT_PRIORITY

    @property
    def owner(self) -> Any | None:
        """Receiver of a bound method (instance or class), None for plain functions."""
        if inspect.ismethod(self.callback):
            return self.callback.__self__
        return None

    @property
    def method_name(self) -> str:
        """Name of the function or method."""
        return getattr(self.callback, "__name__", repr(self.callback))

    @property
    def is_method(self) -> bool:
        return self.owner is not None


@runtime_checkable
class HostRegistry(Protocol):
    """What the queue engine needs from a host's callback registry."""

    def hook_exists(self, name: str) -> bool: ...

    def callbacks_at(self, name: str, priority: int) -> list[RegisteredCallback]: ...

    def remove_callback(self, name: str, callback: Callback, priority: int = DEFAULT_PRIORITY) -> bool: ...

    def register_callback(self, name: str, callback: Callback, priority: int = DEFAULT_PRIORITY) -> None: ...


class CallbackRegistry:
    """In-memory registry of callbacks per hook name and priority.

    Callbacks at the same priority keep insertion order. Equality for
    removal is Python ``==``: identity for plain functions, and same
    function plus same receiver for bound methods.
    """

    def __init__(self) -> None:
        self._hooks: dict[str, dict[int, list[Callback]]] = {}

    def hook_exists(self, name: str) -> bool:
        return name in self._hooks

    def hook_names(self) -> list[str]:
        """Get all hook names that have ever had a callback registered."""
        return list(self._hooks)

    def callbacks_at(self, name: str, priority: int) -> list[RegisteredCallback]:
        """Get the callbacks registered at a hook and priority.

        Args:
            name: Hook name
            priority: Priority slot

        Returns:
            Snapshot list, safe to iterate while removing
        """
        slots = self._hooks.get(name, {})
        return [RegisteredCallback(callback=cb, priority=priority) for cb in slots.get(priority, [])]

    def has_callback(self, name: str, callback: Callback, priority: int | None = None) -> bool:
        """Check whether a callback is registered at a hook.

        Args:
            name: Hook name
            callback: Callback to look for
            priority: Restrict the search to one priority (any if None)

        Returns:
            True if found
        """
        slots = self._hooks.get(name, {})
        if priority is not None:
            return callback in slots.get(priority, [])
        return any(callback in callbacks for callbacks in slots.values())

    def register_callback(self, name: str, callback: Callback, priority: int = DEFAULT_PRIORITY) -> None:
        """Register a callback on a hook."""
        self._hooks.setdefault(name, {}).setdefault(priority, []).append(callback)
        logger.debug("Registered %s on '%s' at priority %d", _describe(callback), name, priority)

    def remove_callback(self, name: str, callback: Callback, priority: int = DEFAULT_PRIORITY) -> bool:
        """Remove the first matching callback at a hook and priority.

        Returns:
            True if a callback was removed, False if nothing matched
        """
        callbacks = self._hooks.get(name, {}).get(priority)
        if not callbacks:
            return False

        for index, registered in enumerate(callbacks):
            if registered == callback:
                del callbacks[index]
                if not callbacks:
                    del self._hooks[name][priority]
                logger.debug("Removed %s from '%s' at priority %d", _describe(callback), name, priority)
                return True

        return False

    def do_action(self, name: str, *args: Any) -> None:
        """Invoke every callback on a hook in priority order.

        Callbacks removed by an earlier callback during the same dispatch
        are skipped.
        """
        for registered in self._dispatch_order(name):
            if self.has_callback(name, registered.callback, registered.priority):
                registered.callback(*args)

    def apply_filters(self, name: str, value: Any, *args: Any) -> Any:
        """Pass a value through every callback on a hook in priority order.

        Returns:
            The value returned by the last callback (input value if none)
        """
        for registered in self._dispatch_order(name):
            if self.has_callback(name, registered.callback, registered.priority):
                value = registered.callback(value, *args)
        return value

    def clear(self) -> None:
        """Remove every hook and callback."""
        self._hooks.clear()

    def _dispatch_order(self, name: str) -> list[RegisteredCallback]:
        slots = self._hooks.get(name, {})
        return [
            RegisteredCallback(callback=cb, priority=priority)
            for priority in sorted(slots)
            for cb in list(slots[priority])
        ]


def _describe(callback: Callback) -> str:
    qualname = getattr(callback, "__qualname__", None)
    return qualname or repr(callback)


# Global registry
_registry: CallbackRegistry | None = None
_registry_lock = threading.Lock()


def get_registry() -> CallbackRegistry:
    """Get the process-wide default registry."""
    global _registry

    if _registry is None:
        with _registry_lock:
            if _registry is None:
                _registry = CallbackRegistry()

    return _registry


def clear_registry() -> None:
    """Drop the process-wide default registry (for testing)."""
    global _registry
    _registry = None
