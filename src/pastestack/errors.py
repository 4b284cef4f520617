"""Exceptions raised by PasteStack."""

import time
from typing import Optional


class PasteStackError(Exception):
    """Base exception class for PasteStack."""

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        super().__init__(message)
        self.original_error = original_error
        self.timestamp = time.time()

    def __str__(self):
        base_msg = super().__str__()
        if self.original_error:
            return f"{base_msg} (Caused by: {type(self.original_error).__name__}: {self.original_error})"
        return base_msg


class EmptyOrUnreadableClipboard(PasteStackError):
    """The clipboard is empty or exposes no readable representation."""
    pass


class IndexOutOfRange(PasteStackError, IndexError):
    """A history index no longer refers to a stored snapshot."""

    def __init__(self, index: int, size: int):
        super().__init__(f"History index {index} out of range (size={size})")
        self.index = index
        self.size = size


class ClipboardReadError(PasteStackError):
    """Reading from the system clipboard failed."""
    pass


class ClipboardWriteError(PasteStackError):
    """Writing to the system clipboard failed."""
    pass


class SystemWritePermissionDenied(PasteStackError):
    """The process may not synthesize keyboard input."""
    pass


class ConfigurationError(PasteStackError):
    """Error in application configuration."""
    pass
