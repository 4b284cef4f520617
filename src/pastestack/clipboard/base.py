from abc import ABC, abstractmethod
from typing import List, Optional, Sequence, Tuple

ClipboardPairs = List[Tuple[str, Optional[bytes]]]


class ClipboardBackend(ABC):
    """Access to one system clipboard.

    Implementations expose a change counter that grows on every write, the
    current content as ``(type, payload)`` pairs, and an atomic
    clear-and-write of a multi-type item.
    """

    name = "abstract"

    @abstractmethod
    def change_count(self) -> int:
        pass

    @abstractmethod
    def read(self) -> ClipboardPairs:
        """Return the current content in the order the source reports it.

        A payload of ``None`` means the type is advertised but unreadable.
        An empty list means the clipboard is empty.
        """

    @abstractmethod
    def write(self, pairs: Sequence[Tuple[str, bytes]]) -> None:
        """Replace the clipboard content. Raises ``ClipboardWriteError``."""

    def __repr__(self) -> str:
        return f"<{type(self).__name__} change_count={self.change_count()}>"
