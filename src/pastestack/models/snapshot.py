from __future__ import annotations

import datetime
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Dict, Iterable, Mapping, Optional, Sequence, Tuple
from urllib.parse import unquote, urlparse

import ulid

from pastestack.errors import EmptyOrUnreadableClipboard

if TYPE_CHECKING:  # pragma: no cover - typing helper
    from pastestack.clipboard.base import ClipboardBackend

LABEL_MAX_CHARS = 20
FILE_NAME_MAX_CHARS = 20
FILE_NAME_PREFIX_CHARS = 17

TEXT_TYPES = (
    "public.utf8-plain-text",
    "NSStringPboardType",
    "text/plain;charset=utf-8",
    "text/plain;charset=utf8",
    "text/plain",
    "UTF8_STRING",
    "STRING",
)
IMAGE_TYPES = {"public.png", "public.tiff", "public.jpeg", "NSTIFFPboardType"}
FILE_URL_TYPES = {
    "public.file-url",
    "NSFilenamesPboardType",
    "text/uri-list",
    "x-special/gnome-copied-files",
}
PDF_TYPES = {"com.adobe.pdf", "application/pdf"}
RTF_TYPES = {"public.rtf", "text/rtf", "application/rtf", "NSRTFPboardType"}
HTML_TYPES = {"public.html", "text/html"}

ClipboardContents = Iterable[Tuple[str, Optional[bytes]]]


def _is_image(type_id: str) -> bool:
    return type_id in IMAGE_TYPES or "image" in type_id.lower()


def preferred_type(type_ids: Sequence[str]) -> Optional[str]:
    """Plain text if present, else the first image type, else the first type."""
    lowered = {t.lower(): t for t in type_ids}
    for candidate in TEXT_TYPES:
        if candidate.lower() in lowered:
            return lowered[candidate.lower()]
    for type_id in type_ids:
        if _is_image(type_id):
            return type_id
    return type_ids[0] if type_ids else None


def _first_file_name(data: bytes) -> Optional[str]:
    try:
        text = data.decode("utf-8")
    except UnicodeDecodeError:
        return None

    lines = [line.strip() for line in text.replace("\r", "\n").split("\n")
             if line.strip() and not line.startswith("#")]
    # gnome-copied-files starts with the operation name
    if lines and lines[0].lower() in {"copy", "cut"}:
        lines = lines[1:]
    if not lines:
        return None

    parsed = urlparse(lines[0])
    path = unquote(parsed.path if parsed.scheme else lines[0])
    name = path.rstrip("/").rsplit("/", 1)[-1]
    return name or None


@dataclass(frozen=True, eq=False)
class ClipboardSnapshot:
    """Immutable capture of everything the clipboard offered at one moment."""

    representations: Mapping[str, bytes]
    type_order: Tuple[str, ...]
    plain_text: Optional[str] = None
    captured_at: datetime.datetime = field(default_factory=datetime.datetime.now)
    snapshot_id: str = field(default_factory=lambda: str(ulid.new()))

    def __post_init__(self) -> None:
        if not self.representations:
            raise EmptyOrUnreadableClipboard(
                "A snapshot needs at least one representation")
        # Freeze the caller's mapping so the snapshot cannot change underneath us.
        object.__setattr__(self, "representations",
                           MappingProxyType(dict(self.representations)))
        object.__setattr__(self, "type_order", tuple(self.type_order))

    @classmethod
    def from_contents(cls, contents: ClipboardContents) -> Optional["ClipboardSnapshot"]:
        """Build a snapshot from ``(type, payload)`` pairs in reported order.

        A payload of ``None`` marks a type the source advertised but could not
        deliver. Returns ``None`` when nothing readable is present.
        """
        type_order = []
        data: Dict[str, bytes] = {}
        for type_id, payload in contents:
            if type_id in type_order:
                continue
            type_order.append(type_id)
            if payload is not None:
                data[type_id] = bytes(payload)

        if not data:
            return None

        return cls(
            representations=data,
            type_order=tuple(type_order),
            plain_text=cls._decode_plain_text(data),
        )

    @staticmethod
    def _decode_plain_text(data: Mapping[str, bytes]) -> Optional[str]:
        lowered = {key.lower(): key for key in data}
        for candidate in TEXT_TYPES:
            key = lowered.get(candidate.lower())
            if key is None:
                continue
            try:
                return data[key].decode("utf-8")
            except UnicodeDecodeError:
                continue
        return None

    def write_back(self, clipboard: "ClipboardBackend") -> None:
        pairs = [(type_id, self.representations[type_id])
                 for type_id in self.type_order if type_id in self.representations]
        clipboard.write(pairs)

    def preferred_type(self) -> str:
        readable = [t for t in self.type_order if t in self.representations]
        return preferred_type(readable)

    def label(self) -> str:
        if self.plain_text is not None:
            trimmed = self.plain_text.strip()
            if not trimmed:
                return "[Empty text]"
            if len(trimmed) <= LABEL_MAX_CHARS:
                return trimmed
            return trimmed[:LABEL_MAX_CHARS] + "..."

        types = self.type_order
        if any(_is_image(t) for t in types):
            return "[Image]"

        file_types = [t for t in types if t in FILE_URL_TYPES]
        if file_types:
            for type_id in file_types:
                payload = self.representations.get(type_id)
                name = _first_file_name(payload) if payload else None
                if name is None:
                    continue
                if len(name) <= FILE_NAME_MAX_CHARS:
                    return f"[File: {name}]"
                return f"[File: {name[:FILE_NAME_PREFIX_CHARS]}...]"
            return "[File]"

        if any(t in PDF_TYPES for t in types):
            return "[PDF]"
        if any(t in RTF_TYPES for t in types):
            return "[Rich Text]"
        if any(t in HTML_TYPES for t in types):
            return "[HTML]"
        return "[Clipboard Data]"

    @property
    def total_size(self) -> int:
        return sum(len(payload) for payload in self.representations.values())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "snapshot_id": self.snapshot_id,
            "label": self.label(),
            "types": list(self.type_order),
            "sizes": {t: len(p) for t, p in self.representations.items()},
            "has_text": self.plain_text is not None,
            "captured_at": self.captured_at.isoformat(),
        }
