from typing import Optional

from pastestack.models.snapshot import ClipboardSnapshot


def text_snapshot(text: str) -> ClipboardSnapshot:
    return ClipboardSnapshot.from_contents(
        [("public.utf8-plain-text", text.encode("utf-8"))])


def image_snapshot(payload: bytes = b"\x89PNG\r\n\x1a\nfake") -> ClipboardSnapshot:
    return ClipboardSnapshot.from_contents([("public.png", payload)])


class FakePasteSimulator:
    def __init__(self, error: Optional[Exception] = None):
        self.error = error
        self.calls = 0

    def paste(self) -> None:
        self.calls += 1
        if self.error is not None:
            raise self.error
