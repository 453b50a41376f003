from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Sequence

from .move import (
    NUM_SLOTS,
    OFF_BOARD,
    SIDE_SLOTS,
    START_SQUARES,
    MoveRecord,
    check_slot,
    check_square,
    mirror,
)


class UndoStackError(RuntimeError):
    """Raised when make/unmake pairing is violated."""


@dataclass
class Board:
    """Piece-location table for 32 fixed slots on a 0x88 board.

    Notes:
    - ``slots[i]`` is the square of slot ``i``; captured pieces hold ``OFF_BOARD``.
    - Slots 0..15 belong to the side to move, 16..31 to the opponent.
    - ``reverse()`` swaps the two halves and rotates the board so the same
      generator can serve either side.
    """

    slots: List[int]
    # True while the board is viewed from the opponent's side
    flipped: bool = False
    # search undo stack, strictly LIFO
    _history: List[MoveRecord] = field(default_factory=list, repr=False)

    @classmethod
    def startpos(cls) -> "Board":
        """Create a board holding the fixed starting layout.

        Returns:
            Board: Board with every slot on its home square.
        """
        return cls(slots=list(START_SQUARES))

    @classmethod
    def from_squares(cls, squares: Sequence[int]) -> "Board":
        """Create a board from a 32-entry slot-to-square sequence.

        Args:
            squares (Sequence[int]): Square per slot, ``OFF_BOARD`` for absent
                pieces.

        Returns:
            Board: Board initialized with ``squares``.

        Raises:
            ValueError: If the sequence has the wrong length, holds an invalid
                square, or places two pieces on the same square.
        """
        if len(squares) != NUM_SLOTS:
            raise ValueError(f"board must have {NUM_SLOTS} slots")
        seen = set()
        for sq in squares:
            if sq == OFF_BOARD:
                continue
            check_square(sq)
            if sq in seen:
                raise ValueError(f"square {sq:#04x} is occupied twice")
            seen.add(sq)
        return cls(slots=list(squares))

    def squares(self) -> List[int]:
        return list(self.slots)

    @property
    def ply(self) -> int:
        """Depth of the search undo stack."""
        return len(self._history)

    def occupant(self, square: int) -> Optional[int]:
        """Return the slot standing on ``square``.

        When several slots share the square the highest index wins.
        Off-board squares have no occupant.
        """
        if square & 0x88:
            return None
        slots = self.slots
        if square not in slots:
            return None
        return NUM_SLOTS - 1 - slots[::-1].index(square)

    def place(self, slot: int, square: int) -> None:
        """Write ``square`` into ``slot`` without any legality check."""
        check_slot(slot)
        if square != OFF_BOARD:
            check_square(square)
        self.slots[slot] = square

    # --- make / unmake ---
    def make_move(self, slot: int, to_sq: int, vector: int = 0) -> MoveRecord:
        """Apply a move and push its undo record.

        Args:
            slot (int): Moving slot.
            to_sq (int): Destination square.
            vector (int): Move-table index that produced the move.

        Returns:
            MoveRecord: The pushed record.
        """
        record = self._apply(slot, to_sq, vector)
        self._history.append(record)
        return record

    def unmake_move(self) -> MoveRecord:
        """Pop the most recent record and restore the position before it.

        Raises:
            UndoStackError: If the undo stack is empty.
        """
        if not self._history:
            raise UndoStackError("undo stack underflow")
        record = self._history.pop()
        self._revert(record)
        return record

    def play(self, slot: int, to_sq: int) -> MoveRecord:
        """Commit a game move; the record is returned, not stacked."""
        return self._apply(slot, to_sq, 0)

    def take_back(self, record: MoveRecord) -> None:
        if self.slots[record.piece] != record.to_sq:
            raise ValueError("record does not match the board")
        self._revert(record)

    def _apply(self, slot: int, to_sq: int, vector: int) -> MoveRecord:
        captured = self.occupant(to_sq)
        if captured == slot:
            captured = None
        record = MoveRecord(
            piece=slot,
            from_sq=self.slots[slot],
            to_sq=to_sq,
            captured=captured,
            vector=vector,
        )
        if captured is not None:
            self.slots[captured] = OFF_BOARD
        self.slots[slot] = to_sq
        return record

    def _revert(self, record: MoveRecord) -> None:
        self.slots[record.piece] = record.from_sq
        if record.captured is not None:
            self.slots[record.captured] = record.to_sq

    # --- reversal ---
    def reverse(self) -> None:
        """Exchange the two sides and rotate the board by 180 degrees.

        Applying it twice restores the previous slots.
        """
        s = self.slots
        for i in range(SIDE_SLOTS):
            mine, theirs = s[i], s[i + SIDE_SLOTS]
            s[i] = mirror(theirs)
            s[i + SIDE_SLOTS] = mirror(mine)
        self.flipped = not self.flipped

    # --- scoped helpers ---
    @contextmanager
    def moved(self, slot: int, to_sq: int, vector: int = 0) -> Iterator[MoveRecord]:
        """Make a move for the duration of the ``with`` block."""
        record = self.make_move(slot, to_sq, vector)
        try:
            yield record
        finally:
            undone = self.unmake_move()
            if undone is not record:
                raise UndoStackError("unbalanced make/unmake")

    @contextmanager
    def reversed_sides(self) -> Iterator["Board"]:
        """Reverse the board for the duration of the ``with`` block."""
        self.reverse()
        try:
            yield self
        finally:
            self.reverse()

    def copy(self) -> "Board":
        return Board(slots=list(self.slots), flipped=self.flipped)
