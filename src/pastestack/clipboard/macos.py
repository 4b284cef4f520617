import logging
from typing import Sequence, Tuple

try:
    from AppKit import NSPasteboard, NSPasteboardItem
    from Foundation import NSData
    HAS_APPKIT = True
except ImportError:
    HAS_APPKIT = False

from pastestack.clipboard.base import ClipboardBackend, ClipboardPairs
from pastestack.errors import ClipboardReadError, ClipboardWriteError

logger = logging.getLogger(__name__)


class MacOSClipboard(ClipboardBackend):
    """General pasteboard through pyobjc. ``changeCount`` is native."""

    name = "macos"

    def __init__(self, pasteboard=None) -> None:
        if pasteboard is None:
            if not HAS_APPKIT:
                raise ClipboardReadError(
                    "pyobjc (AppKit) is required for the macOS clipboard")
            pasteboard = NSPasteboard.generalPasteboard()
        self._pasteboard = pasteboard

    def change_count(self) -> int:
        return int(self._pasteboard.changeCount())

    def read(self) -> ClipboardPairs:
        items = self._pasteboard.pasteboardItems()
        if not items:
            return []

        # Only the first item is kept, multi-item copies collapse to it.
        first = items[0]
        pairs: ClipboardPairs = []
        for pb_type in first.types() or []:
            try:
                data = first.dataForType_(pb_type)
            except Exception as e:
                logger.debug("Could not read pasteboard type %s: %s", pb_type, e)
                data = None
            pairs.append((str(pb_type), bytes(data) if data is not None else None))
        return pairs

    def write(self, pairs: Sequence[Tuple[str, bytes]]) -> None:
        try:
            self._pasteboard.clearContents()
            item = NSPasteboardItem.alloc().init()
            for pb_type, payload in pairs:
                ns_data = NSData.dataWithBytes_length_(payload, len(payload))
                item.setData_forType_(ns_data, pb_type)
            if pairs and not self._pasteboard.writeObjects_([item]):
                raise ClipboardWriteError("NSPasteboard rejected the item")
        except ClipboardWriteError:
            raise
        except Exception as e:
            raise ClipboardWriteError("Failed to write to NSPasteboard", e) from e
