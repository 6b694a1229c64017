"""Condition evaluation for queued entries.

A condition is a zero-argument predicate. A missing condition means the
entry (or batch) always applies.
"""

from __future__ import annotations

from collections.abc import Callable

# Type aliases
Condition = Callable[[], bool]


def is_condition_met(condition: Condition | None) -> bool:
    """Evaluate an optional condition.

    Args:
        condition: Predicate to evaluate, or None

    Returns:
        True if condition is None or returns a truthy value
    """
    if condition is None:
        return True
    return bool(condition())


def all_of(*conditions: Condition | None) -> Condition:
    """Combine conditions so that all of them must hold.

    None entries are treated as always true.
    """

    def combined() -> bool:
        return all(is_condition_met(c) for c in conditions)

    return combined
