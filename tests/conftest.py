import sys
from pathlib import Path

import pytest

# Make src importable without an install
REPO_ROOT = Path(__file__).resolve().parent.parent
SRC = REPO_ROOT / "src"
sys.path.insert(0, str(SRC))

from pastestack.clipboard.memory import InMemoryClipboard  # noqa: E402
from pastestack.services.history_store import HistoryStore  # noqa: E402


@pytest.fixture
def clipboard() -> InMemoryClipboard:
    return InMemoryClipboard()


@pytest.fixture
def store() -> HistoryStore:
    return HistoryStore()
