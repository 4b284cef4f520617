"""
Cross-platform clipboard access.

Every backend exposes a change counter, a typed read and an atomic
multi-type write through the ``ClipboardBackend`` interface.
"""

from pastestack.clipboard.base import ClipboardBackend
from pastestack.clipboard.factory import get_clipboard_backend, get_clipboard_class
from pastestack.clipboard.memory import InMemoryClipboard

__all__ = [
    'ClipboardBackend',
    'InMemoryClipboard',
    'get_clipboard_backend',
    'get_clipboard_class',
]
