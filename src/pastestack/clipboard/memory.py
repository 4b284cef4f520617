import threading
from typing import Sequence, Tuple

from pastestack.clipboard.base import ClipboardBackend, ClipboardPairs
from pastestack.errors import ClipboardWriteError


class InMemoryClipboard(ClipboardBackend):
    """Process-local clipboard with a real change counter."""

    name = "memory"

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._pairs: ClipboardPairs = []
        self._change_count = 0

    def change_count(self) -> int:
        with self._lock:
            return self._change_count

    def read(self) -> ClipboardPairs:
        with self._lock:
            return list(self._pairs)

    def write(self, pairs: Sequence[Tuple[str, bytes]]) -> None:
        items = list(pairs)
        for type_id, payload in items:
            if not isinstance(payload, (bytes, bytearray)):
                raise ClipboardWriteError(
                    f"Payload for {type_id!r} must be bytes, got {type(payload).__name__}")

        with self._lock:
            # clear and write each advance the counter, as on macOS
            self._pairs = []
            self._change_count += 1
            self._pairs = [(type_id, bytes(payload)) for type_id, payload in items]
            if self._pairs:
                self._change_count += 1

    def copy_text(self, text: str) -> None:
        self.write([("public.utf8-plain-text", text.encode("utf-8"))])

    def clear(self) -> None:
        self.write([])
