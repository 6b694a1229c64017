"""Hook queue with immediate or deferred commit.

A HookQueue collects entries, then applies them all against a host
registry through one OperationStrategy. The batch runs either right away
or later, when the host dispatches the queue's deferred binding hook.

State machine:
    PENDING --commit()--> COMMITTED             (no deferred binding)
    PENDING --commit()--> DEFERRED --dispatch--> EXECUTED
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from types import TracebackType
from typing import TYPE_CHECKING, Any

from unhooker.exceptions import InvalidEntryError, QueueStateError
from unhooker.queue.conditions import is_condition_met
from unhooker.queue.entry import CallbackTarget, ClassMethodTarget, ConstantValue, QueueEntry
from unhooker.queue.results import QueueResult, ResultsTracker
from unhooker.queue.strategies import (
    CallbackRemover,
    ClassMethodRemover,
    ConstantValueInjector,
    OperationStrategy,
)
from unhooker.registry import DEFAULT_PRIORITY, get_registry

if TYPE_CHECKING:
    from unhooker.queue.conditions import Condition
    from unhooker.registry import HostRegistry

logger = logging.getLogger(__name__)


class CommitState(Enum):
    """Lifecycle state of a queue."""

    PENDING = "pending"  # Accepting entries
    COMMITTED = "committed"  # Applied synchronously
    DEFERRED = "deferred"  # Registered on the host, not yet run
    EXECUTED = "executed"  # Deferred run has happened


@dataclass(frozen=True)
class DeferredBinding:
    """Hook and priority at which a deferred queue runs."""

    hook_name: str
    priority: int = DEFAULT_PRIORITY


class HookQueue:
    """Queue of hook modifications applied through one strategy.

    Attributes:
        strategy: Operation applied to each entry
        registry: Host registry the operations act on
        default_priority: Priority given to entries added without one
        global_condition: Predicate gating the whole batch
        deferred_binding: Where to run the batch later (None = run on commit)

    Example:
        queue = HookQueue(CallbackRemover(), registry)
        queue.add_callback("init", plugin.setup, priority=5)
        queue.set_deferred_binding("plugins_loaded")
        queue.commit()
    """

    def __init__(
        self,
        strategy: OperationStrategy,
        registry: HostRegistry | None = None,
        *,
        default_priority: int = DEFAULT_PRIORITY,
        global_condition: Condition | None = None,
        deferred_binding: DeferredBinding | None = None,
    ) -> None:
        self.strategy = strategy
        self.registry = registry if registry is not None else get_registry()
        self.default_priority = default_priority
        self.global_condition = global_condition
        self.deferred_binding = deferred_binding
        self._entries: list[QueueEntry] = []
        self._tracker = ResultsTracker()
        self._state = CommitState.PENDING

    @property
    def state(self) -> CommitState:
        return self._state

    @property
    def is_committed(self) -> bool:
        return self._state is not CommitState.PENDING

    @property
    def entries(self) -> list[QueueEntry]:
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return (
            f"HookQueue(strategy={self.strategy.name!r}, entries={len(self._entries)}, "
            f"state={self._state.value!r})"
        )

    # Configuration

    def set_global_condition(self, condition: Condition | None) -> None:
        self._require_pending("set the global condition")
        self.global_condition = condition

    def set_default_priority(self, priority: int) -> None:
        """Set the priority used for entries added without one.

        Entries already queued keep the priority they were given.
        """
        self._require_pending("set the default priority")
        self.default_priority = priority

    def set_deferred_binding(self, hook_name: str, priority: int | None = None) -> None:
        """Defer the batch until the host dispatches a hook.

        Args:
            hook_name: Hook on which the batch registers itself
            priority: Slot on that hook (keeps the current one, or the default)
        """
        self._require_pending("set the deferred binding")
        if priority is None:
            priority = self.deferred_binding.priority if self.deferred_binding else DEFAULT_PRIORITY
        self.deferred_binding = DeferredBinding(hook_name=hook_name, priority=priority)

    # Entries

    def add(self, entry: QueueEntry) -> QueueEntry:
        """Append an entry.

        Args:
            entry: Entry whose payload matches this queue's strategy

        Returns:
            The stored entry, with its priority resolved

        Raises:
            InvalidEntryError: If the payload is not the strategy's variant
            QueueStateError: If the queue has been committed
        """
        self._require_pending("add entries")
        if not isinstance(entry.payload, self.strategy.payload_type):
            raise InvalidEntryError(
                f"{self.strategy.name} queue cannot take a {type(entry.payload).__name__} entry",
                raw=entry,
            )
        if entry.priority is None:
            entry = entry.with_priority(self.default_priority)
        self._entries.append(entry)
        return entry

    def add_callback(
        self,
        hook_name: str,
        callback: Callable[..., Any],
        priority: int | None = None,
        condition: Condition | None = None,
    ) -> QueueEntry:
        """Queue removal of a specific callback."""
        return self.add(QueueEntry(hook_name, CallbackTarget(callback), priority, condition))

    def add_value(
        self,
        hook_name: str,
        value: bool,
        condition: Condition | None = None,
        priority: int | None = None,
    ) -> QueueEntry:
        """Queue a forced boolean value for a hook."""
        return self.add(QueueEntry(hook_name, ConstantValue(value), priority, condition))

    def add_method(
        self,
        hook_name: str,
        class_name: str,
        method_name: str,
        priority: int | None = None,
        condition: Condition | None = None,
    ) -> QueueEntry:
        """Queue removal of every ``class_name.method_name`` callback."""
        return self.add(QueueEntry(hook_name, ClassMethodTarget(class_name, method_name), priority, condition))

    # Commit

    def commit(self) -> list[QueueResult]:
        """Apply the batch now, or register it for later.

        A second call is a no-op that returns the current results.

        Returns:
            Results of an immediate run; empty for a deferred commit
        """
        if self.is_committed:
            logger.debug("Queue already %s, commit ignored", self._state.value)
            return self.get_results()

        if self.deferred_binding is not None:
            binding = self.deferred_binding
            self.registry.register_callback(binding.hook_name, self.perform_operations, binding.priority)
            self._state = CommitState.DEFERRED
            logger.info(
                "Deferred %d %s entries to '%s' at priority %d",
                len(self._entries),
                self.strategy.name,
                binding.hook_name,
                binding.priority,
            )
            return []

        self._state = CommitState.COMMITTED
        return self.perform_operations()

    def perform_operations(self, *args: Any) -> list[QueueResult]:
        """Run every entry against the registry.

        Positional arguments passed by the host dispatcher are ignored.
        Results are reset at the start of each run. Running a pending
        queue directly counts as its commit.

        Returns:
            Results of this run
        """
        self._tracker.clear()
        if self._state is CommitState.PENDING:
            self._state = CommitState.COMMITTED
        elif self._state is CommitState.DEFERRED:
            self._state = CommitState.EXECUTED
            self._unbind()

        try:
            if not is_condition_met(self.global_condition):
                logger.debug("Global condition not met, skipping %d entries", len(self._entries))
                return []
        except Exception as e:
            logger.error("Global condition failed: %s: %s", type(e).__name__, str(e))
            return []

        for entry in self._entries:
            self._perform_entry(entry)

        logger.info(
            "Applied %d of %d %s entries",
            len(self._tracker),
            len(self._entries),
            self.strategy.name,
        )
        return self.get_results()

    def _perform_entry(self, entry: QueueEntry) -> None:
        """Apply a single entry with error isolation."""
        try:
            if not is_condition_met(entry.condition):
                logger.debug("Entry %s skipped (condition)", entry.describe())
                return

            if self.strategy.apply(entry, self.registry):
                self._tracker.record(entry)
                logger.debug("Entry %s applied", entry.describe())
            else:
                logger.debug("Entry %s had no effect", entry.describe())

        except Exception as e:
            # Error isolation: log and continue
            logger.error(
                "Entry %s failed: %s: %s",
                entry.describe(),
                type(e).__name__,
                str(e),
            )

    # Results

    def get_results(self) -> list[QueueResult]:
        return self._tracker.results

    def verify_results(self) -> bool:
        """Check that every queued entry was applied.

        Entries skipped by a condition count as not applied.
        """
        return self._tracker.is_complete(len(self._entries))

    def get_summary(self) -> dict[str, Any]:
        summary = self._tracker.get_summary(len(self._entries))
        summary["operation"] = self.strategy.name
        summary["state"] = self._state.value
        return summary

    # Scoped acquisition

    def close(self) -> None:
        """Commit the queue if it is still pending."""
        if not self.is_committed:
            self.commit()

    def __enter__(self) -> HookQueue:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()

    def _unbind(self) -> None:
        """Remove the deferred callback from the host so it runs only once."""
        binding = self.deferred_binding
        if binding is not None:
            self.registry.remove_callback(binding.hook_name, self.perform_operations, binding.priority)

    def _require_pending(self, operation: str) -> None:
        if self.is_committed:
            raise QueueStateError(operation, self._state.value)


def removal_queue(registry: HostRegistry | None = None, **kwargs: Any) -> HookQueue:
    """Create a queue that removes callbacks by identity."""
    return HookQueue(CallbackRemover(), registry, **kwargs)


def value_queue(registry: HostRegistry | None = None, **kwargs: Any) -> HookQueue:
    """Create a queue that forces hooks to return constant booleans."""
    return HookQueue(ConstantValueInjector(), registry, **kwargs)


def method_queue(
    registry: HostRegistry | None = None,
    *,
    strict_matching: bool = False,
    case_sensitive: bool = False,
    **kwargs: Any,
) -> HookQueue:
    """Create a queue that removes methods by class and method name."""
    strategy = ClassMethodRemover(strict_matching=strict_matching, case_sensitive=case_sensitive)
    return HookQueue(strategy, registry, **kwargs)
