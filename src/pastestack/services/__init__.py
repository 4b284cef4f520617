"""Service layer for PasteStack."""

from .change_observer import CaptureResult, ChangeObserver
from .history_store import HistoryStore
from .paste_service import PasteSimulator

__all__ = ["CaptureResult", "ChangeObserver", "HistoryStore", "PasteSimulator"]
