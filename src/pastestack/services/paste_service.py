"""Synthetic paste keystroke for the frontmost application."""

import logging
import platform
from typing import Any, Optional, Protocol

try:
    from ApplicationServices import AXIsProcessTrusted
    HAS_APPLICATION_SERVICES = True
except ImportError:
    HAS_APPLICATION_SERVICES = False

from pastestack.errors import SystemWritePermissionDenied

logger = logging.getLogger(__name__)


class SupportsPaste(Protocol):
    """Anything that can post the paste keystroke."""

    def paste(self) -> None:
        ...


class PasteSimulator:
    """Posts Cmd+V on macOS and Ctrl+V elsewhere through pynput.

    pynput is imported on first use because it needs a display server at
    import time on Linux.
    """

    def __init__(
        self,
        controller: Optional[Any] = None,
        modifier: Optional[Any] = None,
        system: Optional[str] = None,
    ) -> None:
        self._controller = controller
        self._modifier_key = modifier
        self._system = system or platform.system()

    def _get_controller(self):
        if self._controller is None:
            from pynput import keyboard
            self._controller = keyboard.Controller()
        return self._controller

    def _modifier(self):
        if self._modifier_key is None:
            from pynput.keyboard import Key
            self._modifier_key = Key.cmd if self._system == "Darwin" else Key.ctrl
        return self._modifier_key

    def check_permission(self) -> None:
        if self._system != "Darwin" or not HAS_APPLICATION_SERVICES:
            return
        if not AXIsProcessTrusted():
            raise SystemWritePermissionDenied(
                "Accessibility permission is required to simulate paste. "
                "Grant it in System Settings > Privacy & Security > Accessibility.")

    def paste(self) -> None:
        self.check_permission()
        controller = self._get_controller()
        with controller.pressed(self._modifier()):
            controller.press("v")
            controller.release("v")
        logger.debug("Simulated paste keystroke")
