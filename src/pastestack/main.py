#!/usr/bin/env python3

import argparse
import logging
import signal
import sys
import time
from typing import List, Optional

from pastestack.clipboard import ClipboardBackend, get_clipboard_backend
from pastestack.config import Settings
from pastestack.errors import PasteStackError
from pastestack.models.snapshot import ClipboardSnapshot
from pastestack.services.change_observer import ChangeObserver, CompletionHook
from pastestack.services.history_store import HistoryStore
from pastestack.services.paste_service import PasteSimulator

logger = logging.getLogger(__name__)


class PasteStackApp:
    """Owns the store, observer and paste simulator for one process."""

    def __init__(self, settings: Settings, clipboard: Optional[ClipboardBackend] = None):
        self.settings = settings
        self.clipboard = clipboard or get_clipboard_backend(settings.backend)
        self.store = HistoryStore(capacity=settings.capacity)
        self.observer = ChangeObserver(
            clipboard=self.clipboard,
            store=self.store,
            paste_simulator=PasteSimulator() if settings.simulate_paste else None,
            poll_interval=settings.poll_interval,
            paste_delay=settings.paste_delay,
        )
        self.running = False

    def history(self) -> List[ClipboardSnapshot]:
        return self.store.items()

    def paste(self, index: int, on_complete: Optional[CompletionHook] = None) -> ClipboardSnapshot:
        return self.observer.restore(index, on_complete=on_complete)

    def clear_history(self) -> None:
        self.store.clear()

    def start(self) -> None:
        if self.running:
            return
        self.running = True
        self.observer.start()
        logger.info("PasteStack running (backend=%s). Press Ctrl+C to stop", self.clipboard.name)

    def stop(self) -> None:
        if not self.running:
            return
        self.running = False
        self.observer.stop()
        logger.info("PasteStack stopped")

    def run_forever(self) -> None:
        self.start()
        try:
            while self.running:
                time.sleep(1.0)
        except KeyboardInterrupt:
            logger.info("Stopping...")
        finally:
            self.stop()


def parse_args(argv: Optional[List[str]] = None):
    parser = argparse.ArgumentParser(
        description="PasteStack - clipboard history with paste-back"
    )

    parser.add_argument(
        "-i", "--poll-interval",
        type=float,
        default=None,
        help="Clipboard polling interval in seconds (default: 0.5)"
    )

    parser.add_argument(
        "--paste-delay",
        type=float,
        default=None,
        help="Delay before the simulated paste keystroke in seconds (default: 0.05)"
    )

    parser.add_argument(
        "-b", "--backend",
        choices=["auto", "memory", "macos", "windows", "linux"],
        default=None,
        help="Clipboard backend (default: detect from platform)"
    )

    parser.add_argument(
        "--no-paste",
        action="store_true",
        help="Only restore the clipboard, never simulate a paste keystroke"
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose debug logging"
    )

    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)

    try:
        settings = Settings.from_env(
            poll_interval=args.poll_interval,
            paste_delay=args.paste_delay,
            backend=args.backend,
            simulate_paste=False if args.no_paste else None,
            log_level="DEBUG" if args.verbose else None,
        )
    except PasteStackError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2

    logging.basicConfig(level=settings.log_level, format="%(levelname)s: %(message)s")

    try:
        app = PasteStackApp(settings)
    except (PasteStackError, NotImplementedError, ImportError) as e:
        logger.error("Could not open the clipboard: %s", e)
        return 1

    def signal_handler(signum, frame):
        app.stop()

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    app.run_forever()
    return 0


if __name__ == "__main__":
    sys.exit(main())
