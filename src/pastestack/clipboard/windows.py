import io
import logging
import time
from pathlib import Path
from typing import Optional, Sequence, Tuple
from urllib.parse import unquote, urlparse

import win32clipboard as wc
import win32con
from PIL import Image, ImageGrab

from pastestack.clipboard.base import ClipboardBackend, ClipboardPairs
from pastestack.errors import ClipboardReadError, ClipboardWriteError

logger = logging.getLogger(__name__)

TEXT_TYPE = "text/plain;charset=utf-8"
URI_LIST_TYPE = "text/uri-list"
PNG_TYPE = "image/png"

# Registered format names that map onto portable type identifiers.
_REGISTERED_TO_TYPE = {
    "HTML Format": "text/html",
    "Rich Text Format": "text/rtf",
    "PNG": PNG_TYPE,
}
_TYPE_TO_REGISTERED = {v: k for k, v in _REGISTERED_TO_TYPE.items()}

# Formats Windows synthesizes from others; reading them would duplicate data.
_SYNTHESIZED = {
    win32con.CF_TEXT,
    win32con.CF_OEMTEXT,
    win32con.CF_LOCALE,
    win32con.CF_BITMAP,
    win32con.CF_DIBV5,
}
_IMAGE_FORMATS = {win32con.CF_DIB}


class WindowsClipboard(ClipboardBackend):
    """Win32 clipboard through pywin32.

    ``GetClipboardSequenceNumber`` is the native change counter. Bitmaps are
    normalized to PNG with Pillow on read and converted back to a DIB on write.
    """

    name = "windows"
    open_attempts = 3

    def change_count(self) -> int:
        return int(wc.GetClipboardSequenceNumber())

    def _open(self) -> bool:
        for _ in range(self.open_attempts):
            try:
                wc.OpenClipboard()
                return True
            except Exception:
                time.sleep(0.05)
        return False

    def read(self) -> ClipboardPairs:
        if not self._open():
            raise ClipboardReadError("Clipboard is locked by another process")

        pairs: ClipboardPairs = []
        has_image = False
        try:
            fmt = wc.EnumClipboardFormats(0)
            while fmt:
                if fmt == win32con.CF_UNICODETEXT:
                    pairs.append((TEXT_TYPE, self._read_text()))
                elif fmt == win32con.CF_HDROP:
                    pairs.append((URI_LIST_TYPE, self._read_files()))
                elif fmt in _IMAGE_FORMATS:
                    has_image = True
                elif fmt not in _SYNTHESIZED:
                    type_id = self._type_for_format(fmt)
                    if type_id:
                        pairs.append((type_id, self._read_raw(fmt)))
                fmt = wc.EnumClipboardFormats(fmt)
        finally:
            try:
                wc.CloseClipboard()
            except Exception:
                pass

        if has_image and not any(t == PNG_TYPE for t, _ in pairs):
            pairs.append((PNG_TYPE, self._read_image()))
        return pairs

    def _type_for_format(self, fmt: int) -> Optional[str]:
        try:
            name = wc.GetClipboardFormatName(fmt)
        except Exception:
            return None
        return _REGISTERED_TO_TYPE.get(name, name)

    def _read_text(self) -> Optional[bytes]:
        try:
            text = wc.GetClipboardData(win32con.CF_UNICODETEXT)
        except Exception:
            return None
        return text.encode("utf-8") if text is not None else None

    def _read_files(self) -> Optional[bytes]:
        try:
            files = wc.GetClipboardData(win32con.CF_HDROP)
        except Exception:
            return None
        if isinstance(files, str):
            files = [files]
        uris = [Path(path).as_uri() for path in files or []]
        return "\r\n".join(uris).encode("utf-8") if uris else None

    def _read_raw(self, fmt: int) -> Optional[bytes]:
        try:
            data = wc.GetClipboardData(fmt)
        except Exception:
            return None
        if isinstance(data, str):
            return data.encode("utf-8")
        return bytes(data) if data is not None else None

    def _read_image(self) -> Optional[bytes]:
        # ImageGrab opens the clipboard itself, so this runs after CloseClipboard.
        try:
            image = ImageGrab.grabclipboard()
        except Exception:
            return None
        if image is None or not hasattr(image, "save"):
            return None
        output = io.BytesIO()
        image.save(output, format="PNG")
        return output.getvalue()

    def write(self, pairs: Sequence[Tuple[str, bytes]]) -> None:
        if not self._open():
            raise ClipboardWriteError("Clipboard is locked by another process")

        try:
            wc.EmptyClipboard()
            for type_id, payload in pairs:
                self._write_one(type_id, payload)
        except ClipboardWriteError:
            raise
        except Exception as e:
            raise ClipboardWriteError("Failed to write to the Windows clipboard", e) from e
        finally:
            try:
                wc.CloseClipboard()
            except Exception:
                pass

    def _write_one(self, type_id: str, payload: bytes) -> None:
        lowered = type_id.lower()
        if lowered.startswith("text/plain"):
            wc.SetClipboardData(win32con.CF_UNICODETEXT,
                                payload.decode("utf-8", errors="ignore"))
        elif lowered == URI_LIST_TYPE:
            paths = []
            for line in payload.decode("utf-8", errors="ignore").splitlines():
                parsed = urlparse(line.strip())
                if parsed.scheme == "file":
                    paths.append(unquote(parsed.path).lstrip("/"))
            if paths:
                wc.SetClipboardData(win32con.CF_HDROP, paths)
        else:
            if lowered == PNG_TYPE:
                wc.SetClipboardData(win32con.CF_DIB, self._png_to_dib(payload))
            registered = _TYPE_TO_REGISTERED.get(lowered, type_id)
            fmt = wc.RegisterClipboardFormat(registered)
            wc.SetClipboardData(fmt, payload)

    @staticmethod
    def _png_to_dib(payload: bytes) -> bytes:
        image = Image.open(io.BytesIO(payload))
        if image.mode == "RGBA":
            background = Image.new("RGB", image.size, (255, 255, 255))
            background.paste(image, mask=image.split()[3])
            image = background
        elif image.mode != "RGB":
            image = image.convert("RGB")

        output = io.BytesIO()
        image.save(output, "BMP")
        # strip the 14-byte BITMAPFILEHEADER
        return output.getvalue()[14:]
