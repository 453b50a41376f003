from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, List

from .board import Board
from .move import (
    MOVE_VECTORS,
    PAWN,
    PAWN_ADVANCE_VECTOR,
    PAWN_CAPTURE_VECTORS,
    PAWN_DOUBLE_RANK,
    SIDE_SLOTS,
    SLIDERS,
    VECTOR_RANGES,
    Move,
    check_slot,
    mirror,
    role,
)


Visit = Callable[[Move], None]


class Status(str, Enum):
    LEGAL = "legal"
    OFF_BOARD = "off-board"
    SELF_OCCUPIED = "self-occupied"
    EXPOSES_KING = "exposes-king"
    # only reported by validate(): the piece cannot reach the square at all
    UNREACHABLE = "unreachable"


@dataclass(frozen=True)
class Verdict:
    status: Status
    capture: bool = False

    @property
    def legal(self) -> bool:
        return self.status is Status.LEGAL


_OFF_BOARD = Verdict(Status.OFF_BOARD)
_SELF_OCCUPIED = Verdict(Status.SELF_OCCUPIED)
_UNREACHABLE = Verdict(Status.UNREACHABLE)


class _KingCaptured(Exception):
    pass


class MoveGenerator:
    """Enumerate moves for slots 0..15 of a board.

    Each legal destination is handed to a ``visit`` callback while the board is
    still in the pre-move state; the callback may make moves and reverse the
    board as long as it restores both before returning.
    """

    def __init__(self, board: Board) -> None:
        self.board = board

    def generate(self, visit: Visit, check: bool = False) -> None:
        """Generate moves for every piece of the side to move.

        Args:
            visit (Visit): Called once per legal move.
            check (bool): When True moves that leave the king capturable are
                dropped.
        """
        slots = self.board.slots
        for slot in range(SIDE_SLOTS - 1, -1, -1):
            if slots[slot] & 0x88:
                continue
            self.piece_moves(slot, visit, check)

    def piece_moves(self, slot: int, visit: Visit, check: bool = False) -> None:
        kind = role(slot)
        if kind == PAWN:
            self._pawn(slot, visit, check)
        elif kind in SLIDERS:
            self._slide(slot, kind, visit, check)
        else:
            self._step(slot, kind, visit, check)

    def _step(self, slot: int, kind: int, visit: Visit, check: bool) -> None:
        first, last = VECTOR_RANGES[kind]
        for idx in range(first, last - 1, -1):
            from_sq = self.board.slots[slot]
            to_sq = from_sq + MOVE_VECTORS[idx]
            verdict = self.test(slot, to_sq, check)
            if verdict.status is Status.LEGAL:
                visit(Move(slot, from_sq, to_sq, idx, verdict.capture))

    def _slide(self, slot: int, kind: int, visit: Visit, check: bool) -> None:
        first, last = VECTOR_RANGES[kind]
        for idx in range(first, last - 1, -1):
            from_sq = self.board.slots[slot]
            delta = MOVE_VECTORS[idx]
            to_sq = from_sq
            while True:
                to_sq += delta
                verdict = self.test(slot, to_sq, check)
                if verdict.status is Status.EXPOSES_KING:
                    # a blocked capture ends the ray, an empty square does not
                    if verdict.capture:
                        break
                    continue
                if verdict.status is not Status.LEGAL:
                    break
                visit(Move(slot, from_sq, to_sq, idx, verdict.capture))
                if verdict.capture:
                    break

    def _pawn(self, slot: int, visit: Visit, check: bool) -> None:
        from_sq = self.board.slots[slot]
        for idx in PAWN_CAPTURE_VECTORS:
            to_sq = from_sq + MOVE_VECTORS[idx]
            verdict = self.test(slot, to_sq)
            if not (verdict.status is Status.LEGAL and verdict.capture):
                continue
            if check and self.exposes_king(slot, to_sq):
                continue
            visit(Move(slot, from_sq, to_sq, idx, True))

        delta = MOVE_VECTORS[PAWN_ADVANCE_VECTOR]
        to_sq = from_sq
        while True:
            to_sq += delta
            verdict = self.test(slot, to_sq, check)
            if verdict.status is not Status.LEGAL or verdict.capture:
                return
            visit(Move(slot, from_sq, to_sq, PAWN_ADVANCE_VECTOR, False))
            if to_sq & 0xF0 != PAWN_DOUBLE_RANK:
                return

    def test(self, slot: int, to_sq: int, check: bool = False) -> Verdict:
        """Classify a destination for ``slot``.

        Args:
            slot (int): Moving slot (0..15).
            to_sq (int): Candidate destination, possibly off the board.
            check (bool): Also reject moves that expose the mover's king.

        Returns:
            Verdict: Status plus capture flag.
        """
        if to_sq & 0x88:
            return _OFF_BOARD
        capture = False
        occupant = self.board.occupant(to_sq)
        if occupant is not None:
            if occupant < SIDE_SLOTS:
                return _SELF_OCCUPIED
            capture = True
        if check and self.exposes_king(slot, to_sq):
            return Verdict(Status.EXPOSES_KING, capture)
        return Verdict(Status.LEGAL, capture)

    def exposes_king(self, slot: int, to_sq: int) -> bool:
        """Return True if moving ``slot`` to ``to_sq`` lets the opponent take the king."""
        board = self.board
        with board.moved(slot, to_sq):
            with board.reversed_sides():
                return self._king_capturable()

    def in_check(self) -> bool:
        """Return True if the opponent could capture the side to move's king now."""
        with self.board.reversed_sides():
            return self._king_capturable()

    def _king_capturable(self) -> bool:
        # called on the reversed board: the threatened king is slot 16
        king_sq = self.board.slots[SIDE_SLOTS]

        def detect(move: Move) -> None:
            if move.to_sq == king_sq:
                raise _KingCaptured()

        try:
            self.generate(detect, check=False)
        except _KingCaptured:
            return True
        return False

    def destinations(self, slot: int, check: bool = True) -> List[Move]:
        """List the moves available to a single slot (0..15)."""
        moves: List[Move] = []
        if self.board.slots[slot] & 0x88:
            return moves
        self.piece_moves(slot, moves.append, check)
        return moves

    def legal_moves(self, check: bool = True) -> List[Move]:
        moves: List[Move] = []
        self.generate(moves.append, check)
        return moves

    def validate(self, slot: int, to_sq: int) -> Verdict:
        """Validate an externally requested move for any slot.

        Opponent slots (16..31) are checked on the reversed board. The check
        test always runs.

        Raises:
            ValueError: If ``slot`` is not 0..31 or ``to_sq`` is not a byte.
        """
        check_slot(slot)
        if to_sq < 0 or to_sq > 0xFF:
            raise ValueError(f"invalid square: {to_sq}")
        if to_sq & 0x88:
            return _OFF_BOARD
        if slot >= SIDE_SLOTS:
            with self.board.reversed_sides():
                return self._validate_own(slot - SIDE_SLOTS, mirror(to_sq))
        return self._validate_own(slot, to_sq)

    def _validate_own(self, slot: int, to_sq: int) -> Verdict:
        if self.board.slots[slot] & 0x88:
            return _UNREACHABLE
        verdict = self.test(slot, to_sq, check=False)
        if verdict.status is not Status.LEGAL:
            return verdict
        if all(m.to_sq != to_sq for m in self.destinations(slot, check=False)):
            return _UNREACHABLE
        if self.exposes_king(slot, to_sq):
            return Verdict(Status.EXPOSES_KING, verdict.capture)
        return verdict
