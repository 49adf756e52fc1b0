"""Clipboard output."""

from __future__ import annotations

import pyperclip


class ClipboardError(RuntimeError):
    """Raised when the system clipboard cannot be written."""


def copy_to_clipboard(text: str) -> None:
    try:
        pyperclip.copy(text)
    except pyperclip.PyperclipException as exc:
        raise ClipboardError(f"Could not copy to clipboard: {exc}") from exc
