"""Operation strategies applied to queued entries.

Each strategy handles one payload variant and reports success as a
boolean. None of them raise for ordinary no-match outcomes.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from unhooker.queue.entry import CallbackTarget, ClassMethodTarget, ConstantValue, Payload
from unhooker.queue.matching import ClassIdentityMatcher
from unhooker.registry import DEFAULT_PRIORITY

if TYPE_CHECKING:
    from unhooker.queue.entry import QueueEntry
    from unhooker.registry import HostRegistry

logger = logging.getLogger(__name__)


def return_true(*args: Any, **kwargs: Any) -> bool:
    """Callback that always returns True."""
    return True


def return_false(*args: Any, **kwargs: Any) -> bool:
    """Callback that always returns False."""
    return False


def constant_callback(value: bool) -> Any:
    """Get the shared constant-returning callback for a value.

    The same function object is returned every time, so an injected value
    can later be removed by callback identity.
    """
    return return_true if value else return_false


@runtime_checkable
class OperationStrategy(Protocol):
    """Per-entry effect applied by a HookQueue."""

    name: str
    payload_type: type[Payload]

    def apply(self, entry: QueueEntry, registry: HostRegistry) -> bool: ...


class CallbackRemover:
    """Removes one callback by identity.

    Success is exactly the registry's own removal result.
    """

    name = "remove_callbacks"
    payload_type = CallbackTarget

    def apply(self, entry: QueueEntry, registry: HostRegistry) -> bool:
        payload = entry.payload
        if not isinstance(payload, CallbackTarget):
            return False
        priority = DEFAULT_PRIORITY if entry.priority is None else entry.priority
        return registry.remove_callback(entry.hook_name, payload.callback, priority)


class ConstantValueInjector:
    """Registers a constant-returning callback. Additive only."""

    name = "set_values"
    payload_type = ConstantValue

    def apply(self, entry: QueueEntry, registry: HostRegistry) -> bool:
        payload = entry.payload
        if not isinstance(payload, ConstantValue):
            return False
        priority = DEFAULT_PRIORITY if entry.priority is None else entry.priority
        registry.register_callback(entry.hook_name, constant_callback(payload.value), priority)
        return True


class ClassMethodRemover:
    """Removes every method callback whose owner class and method name match.

    Owner class names are compared with a ClassIdentityMatcher; method
    names must be equal.
    """

    name = "remove_methods"
    payload_type = ClassMethodTarget

    def __init__(self, strict_matching: bool = False, case_sensitive: bool = False) -> None:
        self.matcher = ClassIdentityMatcher(strict=strict_matching, case_sensitive=case_sensitive)

    def set_strict_matching(self, strict_matching: bool) -> None:
        self.matcher = ClassIdentityMatcher(strict=strict_matching, case_sensitive=self.matcher.case_sensitive)

    def set_case_sensitive(self, case_sensitive: bool) -> None:
        self.matcher = ClassIdentityMatcher(strict=self.matcher.strict, case_sensitive=case_sensitive)

    def apply(self, entry: QueueEntry, registry: HostRegistry) -> bool:
        """Remove all matching method callbacks at the entry's hook and priority.

        Args:
            entry: Entry with a ClassMethodTarget payload
            registry: Host registry to modify

        Returns:
            True if at least one callback was removed
        """
        payload = entry.payload
        if not isinstance(payload, ClassMethodTarget):
            return False
        priority = DEFAULT_PRIORITY if entry.priority is None else entry.priority

        if not registry.hook_exists(entry.hook_name):
            logger.debug("Hook '%s' does not exist", entry.hook_name)
            return False

        candidates = registry.callbacks_at(entry.hook_name, priority)
        if not candidates:
            logger.debug("No callbacks on '%s' at priority %d", entry.hook_name, priority)
            return False

        removed = False
        for candidate in candidates:
            if candidate.owner is None:
                continue
            if candidate.method_name != payload.method_name:
                continue
            if not self.matcher.matches_owner(candidate.owner, payload.class_name):
                continue
            if registry.remove_callback(entry.hook_name, candidate.callback, priority):
                removed = True

        return removed
