"""
Platform-specific clipboard factory.

This module picks the clipboard backend for the current platform.
"""

import platform
from typing import Optional, Type

from pastestack.clipboard.base import ClipboardBackend


def get_clipboard_class(name: Optional[str] = None) -> Type[ClipboardBackend]:
    """
    Get the ClipboardBackend implementation for ``name`` or the current platform.

    Args:
        name: ``"memory"``, ``"macos"``, ``"windows"``, ``"linux"``, or
            ``None``/``"auto"`` to detect from ``platform.system()``.

    Raises:
        NotImplementedError: If the platform or name is not supported
    """
    if name in (None, "auto"):
        system = platform.system()
        name = {"Windows": "windows", "Linux": "linux", "Darwin": "macos"}.get(system)
        if name is None:
            raise NotImplementedError(f"Platform '{system}' is not supported")

    if name == "memory":
        from pastestack.clipboard.memory import InMemoryClipboard
        return InMemoryClipboard
    elif name == "windows":
        from pastestack.clipboard.windows import WindowsClipboard
        return WindowsClipboard
    elif name == "linux":
        from pastestack.clipboard.linux import LinuxClipboard
        return LinuxClipboard
    elif name == "macos":
        from pastestack.clipboard.macos import MacOSClipboard
        return MacOSClipboard
    else:
        raise NotImplementedError(f"Clipboard backend '{name}' is not supported")


def get_clipboard_backend(name: Optional[str] = None) -> ClipboardBackend:
    """Create the clipboard backend for ``name`` or the current platform."""
    clipboard_class = get_clipboard_class(name)
    return clipboard_class()
