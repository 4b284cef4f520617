import threading

import pytest

from helpers import FakePasteSimulator, image_snapshot
from pastestack.clipboard.memory import InMemoryClipboard
from pastestack.errors import ClipboardReadError, ClipboardWriteError, IndexOutOfRange, SystemWritePermissionDenied
from pastestack.services.change_observer import CaptureResult, ChangeObserver


@pytest.fixture
def paste():
    return FakePasteSimulator()


@pytest.fixture
def observer(clipboard, store, paste):
    obs = ChangeObserver(clipboard, store, paste_simulator=paste, paste_delay=0)
    assert obs.poll_once() is CaptureResult.BASELINE
    yield obs
    obs.stop()


def _restore_and_wait(observer, index):
    done = threading.Event()
    outcome = {}

    def on_complete(pasted):
        outcome["pasted"] = pasted
        done.set()

    snapshot = observer.restore(index, on_complete=on_complete)
    assert done.wait(timeout=2.0)
    return snapshot, outcome["pasted"]


def test_content_present_at_start_is_not_captured(clipboard, store):
    clipboard.copy_text("before start")
    observer = ChangeObserver(clipboard, store)

    assert observer.poll_once() is CaptureResult.BASELINE
    assert observer.poll_once() is CaptureResult.UNCHANGED
    assert len(store) == 0


def test_external_change_is_captured(observer, clipboard, store):
    clipboard.copy_text("hello")

    assert observer.poll_once() is CaptureResult.CAPTURED
    assert store.item_at(0).plain_text == "hello"
    assert observer.poll_once() is CaptureResult.UNCHANGED


def test_repeated_text_is_reported_as_duplicate(observer, clipboard, store):
    clipboard.copy_text("same")
    observer.poll_once()
    clipboard.copy_text("same")

    assert observer.poll_once() is CaptureResult.DUPLICATE
    assert len(store) == 1


def test_cleared_clipboard_is_skipped(observer, clipboard, store):
    clipboard.clear()

    assert observer.poll_once() is CaptureResult.EMPTY
    assert len(store) == 0


def test_on_capture_callback(clipboard, store):
    captured = []
    observer = ChangeObserver(clipboard, store, on_capture=captured.append)
    observer.poll_once()
    clipboard.copy_text("hi")
    observer.poll_once()

    assert [s.plain_text for s in captured] == ["hi"]


def test_restore_round_trip_suppresses_one_change(observer, clipboard, store, paste):
    clipboard.copy_text("first")
    observer.poll_once()
    clipboard.copy_text("second")
    observer.poll_once()

    snapshot, pasted = _restore_and_wait(observer, 1)

    assert snapshot.plain_text == "first"
    assert pasted is True
    assert paste.calls == 1
    assert clipboard.read() == [("public.utf8-plain-text", b"first")]
    assert store.suppress_next_capture is True

    assert observer.poll_once() is CaptureResult.SUPPRESSED
    assert store.suppress_next_capture is False
    assert [s.plain_text for s in store.items()] == ["second", "first"]

    clipboard.copy_text("third")
    assert observer.poll_once() is CaptureResult.CAPTURED
    assert store.item_at(0).plain_text == "third"


def test_restore_bad_index_has_no_side_effects(observer, clipboard, store, paste):
    clipboard.copy_text("only")
    observer.poll_once()
    before = clipboard.change_count()

    for index in (-1, 1, 99):
        with pytest.raises(IndexOutOfRange):
            observer.restore(index)

    assert store.suppress_next_capture is False
    assert clipboard.change_count() == before
    assert paste.calls == 0


def test_restore_on_empty_store(observer):
    with pytest.raises(IndexOutOfRange):
        observer.restore(0)


def test_permission_denied_keeps_restored_content(clipboard, store):
    paste = FakePasteSimulator(error=SystemWritePermissionDenied("no accessibility"))
    observer = ChangeObserver(clipboard, store, paste_simulator=paste, paste_delay=0)
    store.push(image_snapshot(b"img"))

    _, pasted = _restore_and_wait(observer, 0)

    assert pasted is False
    assert clipboard.read() == [("public.png", b"img")]


def test_restore_without_paste_simulator(clipboard, store):
    observer = ChangeObserver(clipboard, store)
    store.push(image_snapshot(b"img"))
    results = []

    observer.restore(0, on_complete=results.append)

    assert results == [False]
    assert clipboard.read() == [("public.png", b"img")]


class _BrokenWriteClipboard(InMemoryClipboard):
    def write(self, pairs):
        raise ClipboardWriteError("clipboard locked")


def test_failed_write_disarms_suppression(store):
    clipboard = _BrokenWriteClipboard()
    observer = ChangeObserver(clipboard, store)
    store.push(image_snapshot())

    with pytest.raises(ClipboardWriteError):
        observer.restore(0)
    assert store.suppress_next_capture is False


def test_external_write_in_same_window_as_restore_is_swallowed(observer, clipboard, store):
    clipboard.copy_text("kept")
    observer.poll_once()

    _restore_and_wait(observer, 0)
    clipboard.copy_text("external")

    assert observer.poll_once() is CaptureResult.SUPPRESSED
    assert [s.plain_text for s in store.items()] == ["kept"]


class _FailingReadClipboard(InMemoryClipboard):
    def read(self):
        raise ClipboardReadError("xclip vanished")


def test_read_errors_are_swallowed(store):
    clipboard = _FailingReadClipboard()
    observer = ChangeObserver(clipboard, store)
    observer.poll_once()
    clipboard.copy_text("x")

    assert observer.poll_once() is CaptureResult.ERROR
    assert len(store) == 0


def test_background_polling_captures_changes(clipboard, store):
    captured = threading.Event()
    observer = ChangeObserver(clipboard, store, poll_interval=0.01,
                              on_capture=lambda snapshot: captured.set())

    with observer:
        assert observer.is_running
        clipboard.copy_text("from another app")
        assert captured.wait(timeout=2.0)

    assert not observer.is_running
    assert store.item_at(0).plain_text == "from another app"


def test_copies_made_while_stopped_become_the_new_baseline(clipboard, store):
    observer = ChangeObserver(clipboard, store, poll_interval=0.01)
    observer.start()
    observer.stop()

    clipboard.copy_text("while stopped")
    observer.start()
    try:
        assert observer.poll_once() is CaptureResult.UNCHANGED
        assert len(store) == 0
    finally:
        observer.stop()
