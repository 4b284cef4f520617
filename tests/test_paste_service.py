from contextlib import contextmanager

import pytest

from pastestack.errors import SystemWritePermissionDenied
from pastestack.services import paste_service
from pastestack.services.paste_service import PasteSimulator


class FakeController:
    def __init__(self):
        self.events = []

    @contextmanager
    def pressed(self, key):
        self.events.append(("down", key))
        yield
        self.events.append(("up", key))

    def press(self, key):
        self.events.append(("press", key))

    def release(self, key):
        self.events.append(("release", key))


def test_paste_sends_modifier_v():
    controller = FakeController()
    simulator = PasteSimulator(controller=controller, modifier="ctrl", system="Linux")

    simulator.paste()

    assert controller.events == [
        ("down", "ctrl"), ("press", "v"), ("release", "v"), ("up", "ctrl"),
    ]


def test_untrusted_process_raises_before_typing(monkeypatch):
    monkeypatch.setattr(paste_service, "HAS_APPLICATION_SERVICES", True)
    monkeypatch.setattr(paste_service, "AXIsProcessTrusted", lambda: False, raising=False)
    controller = FakeController()
    simulator = PasteSimulator(controller=controller, modifier="cmd", system="Darwin")

    with pytest.raises(SystemWritePermissionDenied):
        simulator.paste()
    assert controller.events == []
