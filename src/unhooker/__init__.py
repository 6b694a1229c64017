"""Conditional removal and override queues for host callback registries.

Queue removals of registered callbacks, forced boolean overrides, or
removals of class-bound methods against named hooks, gate them with
conditions, and apply them now or when the host dispatches another hook.
"""

from unhooker.builders import parse_entries, remove_actions, remove_methods, set_filters
from unhooker.exceptions import ConfigError, InvalidEntryError, QueueStateError, UnhookerError
from unhooker.queue import (
    CallbackRemover,
    CallbackTarget,
    ClassIdentityMatcher,
    ClassMethodRemover,
    ClassMethodTarget,
    CommitState,
    ConstantValue,
    ConstantValueInjector,
    DeferredBinding,
    HookQueue,
    MatchMode,
    QueueEntry,
    QueueResult,
    matches,
    method_queue,
    removal_queue,
    value_queue,
)
from unhooker.registry import CallbackRegistry, HostRegistry, RegisteredCallback, get_registry

__all__ = [
    "HookQueue",
    "QueueEntry",
    "QueueResult",
    "CommitState",
    "DeferredBinding",
    "CallbackTarget",
    "ConstantValue",
    "ClassMethodTarget",
    "CallbackRemover",
    "ConstantValueInjector",
    "ClassMethodRemover",
    "ClassIdentityMatcher",
    "MatchMode",
    "matches",
    "removal_queue",
    "value_queue",
    "method_queue",
    "remove_actions",
    "set_filters",
    "remove_methods",
    "parse_entries",
    "CallbackRegistry",
    "HostRegistry",
    "RegisteredCallback",
    "get_registry",
    "UnhookerError",
    "InvalidEntryError",
    "QueueStateError",
    "ConfigError",
]
