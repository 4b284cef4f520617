from pastestack.models.snapshot import ClipboardSnapshot

__all__ = ["ClipboardSnapshot"]
