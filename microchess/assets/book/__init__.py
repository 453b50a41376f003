from __future__ import annotations

from typing import Optional

from .scripted import DEFAULT_LINE, BookEntry, ScriptedBook


def open_book(path: Optional[str]) -> ScriptedBook:
    """Load a scripted book from ``path``, or the built-in line when unset."""
    if not path:
        return ScriptedBook(DEFAULT_LINE)
    return ScriptedBook.from_json(path)


__all__ = ["BookEntry", "DEFAULT_LINE", "ScriptedBook", "open_book"]
