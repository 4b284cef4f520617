"""PasteStack: a bounded clipboard history with paste-back."""

__version__ = "0.1.0"
