"""Bounded, most-recent-first stack of clipboard snapshots."""

import logging
import threading
from typing import List

from pastestack.config import DEFAULT_CAPACITY
from pastestack.errors import IndexOutOfRange
from pastestack.models.snapshot import ClipboardSnapshot

logger = logging.getLogger(__name__)


class HistoryStore:
    """Ordered clipboard history. Index 0 is the most recent snapshot.

    The store also owns the suppression flag the observer uses to skip the
    change caused by its own restore-write. ``clear()`` never touches it.
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY) -> None:
        if capacity <= 0:
            raise ValueError("capacity must be > 0")
        self._capacity = capacity
        self._stack: List[ClipboardSnapshot] = []
        self._suppress_next_capture = False
        self._lock = threading.RLock()

    @property
    def capacity(self) -> int:
        return self._capacity

    def push(self, snapshot: ClipboardSnapshot) -> bool:
        """Insert ``snapshot`` at index 0.

        Returns ``False`` without changing the stack when the newest entry
        holds the same non-empty plain text. Non-text entries are always
        pushed. The oldest entries are evicted past capacity.
        """
        with self._lock:
            if self._stack:
                newest = self._stack[0].plain_text
                if newest and newest == snapshot.plain_text:
                    logger.debug("Skipping duplicate text snapshot %s", snapshot.snapshot_id)
                    return False

            self._stack.insert(0, snapshot)
            while len(self._stack) > self._capacity:
                evicted = self._stack.pop()
                logger.debug("Evicted snapshot %s", evicted.snapshot_id)
            return True

    def item_at(self, index: int) -> ClipboardSnapshot:
        with self._lock:
            if index < 0 or index >= len(self._stack):
                raise IndexOutOfRange(index, len(self._stack))
            return self._stack[index]

    def clear(self) -> None:
        with self._lock:
            self._stack.clear()
        logger.info("Clipboard history cleared")

    def items(self) -> List[ClipboardSnapshot]:
        """Copy of the stack as it is now; later pushes do not affect it."""
        with self._lock:
            return list(self._stack)

    def labels(self) -> List[str]:
        return [snapshot.label() for snapshot in self.items()]

    def __len__(self) -> int:
        with self._lock:
            return len(self._stack)

    # ------------------------------------------------------------------
    # Self-change suppression
    # ------------------------------------------------------------------
    @property
    def suppress_next_capture(self) -> bool:
        with self._lock:
            return self._suppress_next_capture

    def arm_suppression(self) -> None:
        with self._lock:
            self._suppress_next_capture = True

    def disarm_suppression(self) -> None:
        with self._lock:
            self._suppress_next_capture = False

    def consume_suppression(self) -> bool:
        """Clear the flag and return whether it was set."""
        with self._lock:
            was_set = self._suppress_next_capture
            self._suppress_next_capture = False
            return was_set
