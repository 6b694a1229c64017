"""Queue entry model.

An entry names a hook, a priority slot, an optional condition, and exactly
one payload describing the modification to make.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Any, Union

if TYPE_CHECKING:
    from unhooker.queue.conditions import Condition
    from unhooker.registry import Callback


@dataclass(frozen=True)
class CallbackTarget:
    """Remove one specific registered callback."""

    callback: Callback

    def describe(self) -> str:
        return getattr(self.callback, "__qualname__", None) or repr(self.callback)


@dataclass(frozen=True)
class ConstantValue:
    """Force a hook to return a constant boolean."""

    value: bool

    def describe(self) -> str:
        return "true" if self.value else "false"


@dataclass(frozen=True)
class ClassMethodTarget:
    """Remove every callback bound as ``class_name.method_name``."""

    class_name: str
    method_name: str

    def describe(self) -> str:
        return f"{self.class_name}.{self.method_name}"


Payload = Union[CallbackTarget, ConstantValue, ClassMethodTarget]


@dataclass(frozen=True)
class QueueEntry:
    """One queued modification.

    Attributes:
        hook_name: Host hook identifier
        payload: What to do at the hook
        priority: Slot in the host registry (None = queue default)
        condition: Predicate checked at commit time (None = always)
    """

    hook_name: str
    payload: Payload
    priority: int | None = None
    condition: Condition | None = None

    def with_priority(self, priority: int) -> QueueEntry:
        """Return a copy with the priority filled in."""
        return replace(self, priority=priority)

    def describe(self) -> str:
        priority = "default" if self.priority is None else str(self.priority)
        return f"{self.hook_name}@{priority}: {self.payload.describe()}"

    def to_dict(self) -> dict[str, Any]:
        """Plain-dict view for logging and display."""
        return {
            "hook": self.hook_name,
            "priority": self.priority,
            "operation": type(self.payload).__name__,
            "target": self.payload.describe(),
            "conditional": self.condition is not None,
        }
