"""Unhooker exception hierarchy.

All unhooker-specific exceptions inherit from UnhookerError. Ordinary
no-match and no-op outcomes are never raised; they are reported through
the queue's results instead.
"""

from __future__ import annotations

from typing import Any


class UnhookerError(Exception):
    """Base exception for all unhooker errors."""


class InvalidEntryError(UnhookerError, ValueError):
    """Raised or reported when a queue entry is malformed.

    The builders pass instances of this error to the caller's error
    callback instead of raising, so a batch keeps going past bad input.
    """

    def __init__(self, message: str, raw: Any = None) -> None:
        self.raw = raw
        super().__init__(message)


class QueueStateError(UnhookerError, RuntimeError):
    """Raised when a committed queue is mutated."""

    def __init__(self, operation: str, state: str) -> None:
        self.operation = operation
        self.state = state
        super().__init__(f"Cannot {operation} on a queue in state '{state}'")


class ConfigError(UnhookerError):
    """Raised when the unhooker configuration cannot be loaded."""
