import hashlib
import logging
import os
import shutil
import subprocess
import threading
from typing import List, Optional, Sequence, Tuple

from pastestack.clipboard.base import ClipboardBackend, ClipboardPairs
from pastestack.errors import ClipboardReadError, ClipboardWriteError
from pastestack.models.snapshot import preferred_type

logger = logging.getLogger(__name__)

# X selection bookkeeping targets, never real content.
_META_TARGETS = {"TARGETS", "TIMESTAMP", "MULTIPLE", "SAVE_TARGETS", "DELETE", "INCR"}
_SAMPLE_BYTES = 4096


class LinuxClipboard(ClipboardBackend):
    """Wayland or X11 clipboard through ``wl-clipboard`` / ``xclip``.

    Neither tool exposes a change counter, so one is synthesized: every
    ``change_count()`` call hashes the advertised types plus a sample of the
    preferred payload and bumps the counter when the digest moves.

    Writes only carry the preferred representation, since both tools set a
    single target per invocation. Every write bumps the counter itself.
    """

    name = "linux"

    def __init__(self, tool: Optional[str] = None) -> None:
        self.tool = tool or self._detect_tool()
        self._lock = threading.Lock()
        self._last_digest: Optional[str] = None
        self._change_count = 0

    @staticmethod
    def _detect_tool() -> str:
        if os.environ.get("WAYLAND_DISPLAY") and shutil.which("wl-paste"):
            return "wayland"
        if shutil.which("xclip"):
            return "xclip"
        raise ClipboardReadError(
            "Neither wl-clipboard nor xclip is available on PATH")

    def change_count(self) -> int:
        digest = self._digest()
        with self._lock:
            if self._last_digest is not None and digest != self._last_digest:
                self._change_count += 1
            self._last_digest = digest
            return self._change_count

    def _digest(self) -> str:
        types = self._list_types()
        hasher = hashlib.md5("\n".join(types).encode("utf-8"))
        target = preferred_type(types)
        if target is not None:
            hasher.update((self._read_type(target) or b"")[:_SAMPLE_BYTES])
        return hasher.hexdigest()

    def read(self) -> ClipboardPairs:
        types = self._list_types()
        if not types:
            text = self._read_default()
            return [("text/plain", text)] if text else []
        return [(target, self._read_type(target)) for target in types]

    def _list_types(self) -> List[str]:
        if self.tool == "wayland":
            command = ["wl-paste", "--list-types"]
        else:
            command = ["xclip", "-selection", "clipboard", "-t", "TARGETS", "-o"]
        data = self._run_command(command, timeout=1.5)
        if not data:
            return []
        text = data.decode("utf-8", errors="ignore")
        return [line.strip() for line in text.splitlines()
                if line.strip() and line.strip() not in _META_TARGETS]

    def _read_type(self, target: str) -> Optional[bytes]:
        if self.tool == "wayland":
            command = ["wl-paste", "--type", target]
            if target.lower().startswith("text/"):
                command.append("--no-newline")
        else:
            command = ["xclip", "-selection", "clipboard", "-t", target, "-o"]
        return self._run_command(command, timeout=1.5)

    def _read_default(self) -> Optional[bytes]:
        if self.tool == "wayland":
            command = ["wl-paste", "--no-newline"]
        else:
            command = ["xclip", "-selection", "clipboard", "-o"]
        return self._run_command(command, timeout=1.5)

    def _run_command(self, command: List[str], timeout: float) -> Optional[bytes]:
        try:
            result = subprocess.run(
                command,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                check=True,
                timeout=timeout,
            )
            return result.stdout
        except (subprocess.CalledProcessError, subprocess.TimeoutExpired, FileNotFoundError):
            return None

    def write(self, pairs: Sequence[Tuple[str, bytes]]) -> None:
        """Replace the selection and advance the counter by exactly one.

        The counter moves even when the new content hashes like the old,
        and the digest is re-seeded so the next poll does not count the
        write a second time.
        """
        payloads = dict(pairs)
        if not payloads:
            if self.tool == "wayland":
                self._write(["wl-copy", "--clear"], None)
            else:
                # xclip cannot clear, an empty text selection is the closest
                self._write(["xclip", "-selection", "clipboard"], b"")
        else:
            target = preferred_type(list(payloads))
            if self.tool == "wayland":
                command = ["wl-copy", "--type", target]
            else:
                command = ["xclip", "-selection", "clipboard", "-t", target]
            dropped = [t for t in payloads if t != target]
            if dropped:
                logger.debug("Writing %s only, dropping %s", target, dropped)
            self._write(command, payloads[target])

        digest = self._digest()
        with self._lock:
            self._change_count += 1
            self._last_digest = digest

    def _write(self, command: List[str], payload: Optional[bytes]) -> None:
        try:
            subprocess.run(
                command,
                input=payload,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                check=True,
                timeout=2.0,
            )
        except (subprocess.CalledProcessError, subprocess.TimeoutExpired, FileNotFoundError) as e:
            raise ClipboardWriteError(f"{command[0]} failed", e) from e
