"""Clipboard change observer for PasteStack.

Polls the backend's change counter, feeds new snapshots into a
``HistoryStore`` and runs the restore sequence that writes a historical
snapshot back and asks the paste simulator to fire.

Known limitation: suppression is a single flag consumed by the *next*
observed change. An external write landing in the same poll window as a
restore is taken for the self-caused change and never captured.
"""

import enum
import logging
import threading
from typing import Callable, List, Optional

from pastestack.clipboard.base import ClipboardBackend
from pastestack.config import DEFAULT_PASTE_DELAY, DEFAULT_POLL_INTERVAL
from pastestack.errors import ClipboardWriteError
from pastestack.models.snapshot import ClipboardSnapshot
from pastestack.services.history_store import HistoryStore
from pastestack.services.paste_service import SupportsPaste

logger = logging.getLogger(__name__)

CompletionHook = Callable[[bool], None]


class CaptureResult(enum.Enum):
    BASELINE = "baseline"
    UNCHANGED = "unchanged"
    SUPPRESSED = "suppressed"
    EMPTY = "empty"
    DUPLICATE = "duplicate"
    CAPTURED = "captured"
    ERROR = "error"


class ChangeObserver:
    """Bridges a clipboard backend to a ``HistoryStore``."""

    def __init__(
        self,
        clipboard: ClipboardBackend,
        store: HistoryStore,
        paste_simulator: Optional[SupportsPaste] = None,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        paste_delay: float = DEFAULT_PASTE_DELAY,
        on_capture: Optional[Callable[[ClipboardSnapshot], None]] = None,
    ) -> None:
        """Initialise the observer.

        Args:
            clipboard: Backend to poll and restore into.
            store: History that receives captured snapshots.
            paste_simulator: Object with a ``paste()`` method, or ``None`` to
                only restore the clipboard.
            poll_interval: Seconds between change-counter polls.
            paste_delay: Seconds between the restore-write and the keystroke.
            on_capture: Optional callback for every snapshot pushed.
        """
        self.clipboard = clipboard
        self.store = store
        self.paste_simulator = paste_simulator
        self.poll_interval = poll_interval
        self.paste_delay = paste_delay
        self._on_capture = on_capture

        self._cycle_lock = threading.RLock()
        self._lock = threading.RLock()
        self._stop_event = threading.Event()
        self._poll_thread: Optional[threading.Thread] = None
        self._pending_pastes: List[threading.Timer] = []
        self._is_running = False
        self._last_change_count: Optional[int] = None

    @property
    def is_running(self) -> bool:
        return self._is_running

    # ---------------------------------------------------------------------
    # Lifecycle management
    # ---------------------------------------------------------------------
    def start(self) -> None:
        with self._lock:
            if self._is_running:
                logger.debug("ChangeObserver already running")
                return

            logger.info("Starting clipboard polling (interval=%ss, backend=%s)",
                        self.poll_interval, self.clipboard.name)
            # Content already on the clipboard at start is not history.
            self.poll_once()
            self._stop_event.clear()
            self._is_running = True
            self._poll_thread = threading.Thread(
                target=self._poll_loop, name="pastestack-poll", daemon=True)
            self._poll_thread.start()

    def stop(self) -> None:
        with self._lock:
            if not self._is_running:
                return

            logger.info("Stopping clipboard polling")
            self._is_running = False
            self._stop_event.set()
            pending, self._pending_pastes = self._pending_pastes, []

        # Copies made while stopped belong to the next baseline, not history.
        with self._cycle_lock:
            self._last_change_count = None

        for timer in pending:
            timer.cancel()

        # join outside the lock
        if self._poll_thread is not None:
            self._poll_thread.join(timeout=max(1.0, self.poll_interval * 2))
            self._poll_thread = None

    def run_forever(self) -> None:
        """Poll in the background and block until ``stop()`` or Ctrl+C."""
        try:
            if not self._is_running:
                self.start()
            while not self._stop_event.wait(timeout=self.poll_interval):
                continue
        except KeyboardInterrupt:
            logger.info("ChangeObserver interrupted by user")
        finally:
            self.stop()

    def _poll_loop(self) -> None:
        while not self._stop_event.wait(self.poll_interval):
            self.poll_once()

    # ---------------------------------------------------------------------
    # Detection
    # ---------------------------------------------------------------------
    def poll_once(self) -> CaptureResult:
        """Run one observation cycle. Never raises on backend failures."""
        with self._cycle_lock:
            try:
                current = self.clipboard.change_count()
            except Exception:
                logger.exception("Could not read clipboard change count")
                return CaptureResult.ERROR

            if self._last_change_count is None:
                self._last_change_count = current
                return CaptureResult.BASELINE

            if current == self._last_change_count:
                return CaptureResult.UNCHANGED
            self._last_change_count = current

            if self.store.consume_suppression():
                logger.debug("Ignoring self-caused clipboard change (count=%s)", current)
                return CaptureResult.SUPPRESSED

            return self._capture()

    def _capture(self) -> CaptureResult:
        try:
            contents = self.clipboard.read()
        except Exception as e:
            logger.warning("Failed to read clipboard: %s", e)
            return CaptureResult.ERROR

        snapshot = ClipboardSnapshot.from_contents(contents)
        if snapshot is None:
            logger.debug("Clipboard empty or unreadable, nothing captured")
            return CaptureResult.EMPTY

        if not self.store.push(snapshot):
            return CaptureResult.DUPLICATE

        logger.info("Clipboard captured: %s (%d types)",
                    snapshot.label(), len(snapshot.type_order))
        if self._on_capture is not None:
            try:
                self._on_capture(snapshot)
            except Exception:
                logger.exception("Error while calling on_capture")
        return CaptureResult.CAPTURED

    # ---------------------------------------------------------------------
    # Restore
    # ---------------------------------------------------------------------
    def restore(self, index: int, on_complete: Optional[CompletionHook] = None) -> ClipboardSnapshot:
        """Put history entry ``index`` back on the clipboard and schedule a paste.

        Raises ``IndexOutOfRange`` before touching the clipboard or the
        suppression flag. A failed write disarms the flag and raises
        ``ClipboardWriteError``. Keystroke failures are only logged, the
        restored content stays on the clipboard either way.
        """
        with self._cycle_lock:
            snapshot = self.store.item_at(index)

            self.store.arm_suppression()
            try:
                snapshot.write_back(self.clipboard)
            except ClipboardWriteError:
                self.store.disarm_suppression()
                raise
            except Exception as e:
                self.store.disarm_suppression()
                raise ClipboardWriteError("Failed to restore clipboard entry", e) from e

            logger.info("Restored history entry %d: %s", index, snapshot.label())

        self._schedule_paste(on_complete)
        return snapshot

    def _schedule_paste(self, on_complete: Optional[CompletionHook]) -> None:
        if self.paste_simulator is None:
            if on_complete is not None:
                on_complete(False)
            return

        timer = threading.Timer(self.paste_delay, self._run_paste, args=(on_complete,))
        timer.daemon = True
        with self._lock:
            self._pending_pastes = [t for t in self._pending_pastes if t.is_alive()]
            self._pending_pastes.append(timer)
        timer.start()

    def _run_paste(self, on_complete: Optional[CompletionHook]) -> None:
        pasted = False
        try:
            self.paste_simulator.paste()
            pasted = True
        except Exception as e:
            logger.warning("Paste keystroke not sent, paste manually: %s", e)

        if on_complete is not None:
            try:
                on_complete(pasted)
            except Exception:
                logger.exception("Error while calling restore completion hook")

    # ---------------------------------------------------------------------
    # Context manager helpers
    # ---------------------------------------------------------------------
    def __enter__(self) -> "ChangeObserver":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()
