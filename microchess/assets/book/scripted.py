from __future__ import annotations

import json
import os
from dataclasses import dataclass
from typing import Any, Iterator, List, Optional, Sequence

from ...engine.move import OFF_BOARD, SIDE_SLOTS, check_square


@dataclass(frozen=True)
class BookEntry:
    """One scripted reply.

    Attributes:
        expect (int): Destination of the opponent's last move that must be
            seen before this reply is played (``OFF_BOARD`` for "no move yet").
        piece (int): Slot to move (0..15).
        square (int): Destination square.
    """

    expect: int
    piece: int
    square: int


DEFAULT_LINE = (
    BookEntry(OFF_BOARD, 0x0F, 0x33),
    BookEntry(0x43, 0x06, 0x22),
    BookEntry(0x55, 0x04, 0x35),
    BookEntry(0x45, 0x0D, 0x25),
    BookEntry(0x52, 0x0E, 0x34),
    BookEntry(0x34, 0x0D, 0x34),
    BookEntry(0x36, 0x07, 0x25),
    BookEntry(0x33, 0x00, 0x01),
)


def _as_byte(value: Any) -> int:
    if isinstance(value, str):
        return int(value, 0)
    return int(value)


class ScriptedBook:
    """Fixed opening line keyed by the opponent's previous destination.

    Format of the JSON file:
    - ``{"line": [{"expect": "0xCC", "piece": 15, "square": "0x33"}, ...]}``
    - or a bare list of ``[expect, piece, square]`` triples.

    Numbers may be given as ints or as strings in any base ``int(s, 0)`` reads.
    """

    def __init__(self, entries: Sequence[BookEntry] = DEFAULT_LINE) -> None:
        for e in entries:
            if e.piece < 0 or e.piece >= SIDE_SLOTS:
                raise ValueError(f"book piece must be 0..15: {e.piece}")
            check_square(e.square)
        self._entries: List[BookEntry] = list(entries)

    @classmethod
    def from_json(cls, path: str) -> "ScriptedBook":
        if not os.path.exists(path):
            raise FileNotFoundError(path)
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        if isinstance(data, dict):
            data = data.get("line")
        if not isinstance(data, list):
            raise ValueError("invalid book format")
        entries: List[BookEntry] = []
        for ent in data:
            if isinstance(ent, dict):
                raw = (ent.get("expect", OFF_BOARD), ent.get("piece"), ent.get("square"))
            elif isinstance(ent, list) and len(ent) == 3:
                raw = tuple(ent)
            else:
                raise ValueError(f"invalid book entry: {ent!r}")
            try:
                expect, piece, square = (_as_byte(v) for v in raw)
            except (TypeError, ValueError):
                raise ValueError(f"invalid book entry: {ent!r}") from None
            entries.append(BookEntry(expect, piece, square))
        return cls(entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[BookEntry]:
        return iter(self._entries)

    def probe(self, index: int, last_destination: int) -> Optional[BookEntry]:
        """Return the entry at ``index`` if it expects ``last_destination``."""
        if index < 0 or index >= len(self._entries):
            return None
        entry = self._entries[index]
        if entry.expect != last_destination:
            return None
        return entry
