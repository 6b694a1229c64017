"""Outcome tracking for committed queues."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from unhooker.queue.entry import QueueEntry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class QueueResult:
    """Outcome of one processed entry.

    Attributes:
        entry: The entry that was applied
        succeeded: Whether the operation reported success
    """

    entry: QueueEntry
    succeeded: bool = True


class ResultsTracker:
    """Accumulates outcomes of processed entries.

    Only successful operations are recorded, so the number of results is
    the number of entries that both passed their condition and succeeded.
    """

    def __init__(self) -> None:
        self._results: list[QueueResult] = []

    def record(self, entry: QueueEntry) -> QueueResult:
        """Record a successful operation.

        Args:
            entry: Entry whose operation succeeded

        Returns:
            The appended result
        """
        result = QueueResult(entry=entry, succeeded=True)
        self._results.append(result)
        return result

    @property
    def results(self) -> list[QueueResult]:
        return list(self._results)

    def __len__(self) -> int:
        return len(self._results)

    def is_complete(self, expected: int) -> bool:
        """Check that every queued entry produced a result.

        Args:
            expected: Number of queued entries

        Returns:
            True if the result count equals the entry count
        """
        return len(self._results) == expected

    def clear(self) -> None:
        """Clear all recorded results."""
        self._results.clear()

    def get_summary(self, expected: int) -> dict[str, Any]:
        """Get summary of recorded outcomes.

        Returns:
            Dict with applied/expected counts and the applied entries
        """
        return {
            "applied": len(self._results),
            "expected": expected,
            "complete": self.is_complete(expected),
            "entries": [r.entry.describe() for r in self._results],
        }
