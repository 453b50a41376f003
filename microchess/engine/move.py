from __future__ import annotations

from dataclasses import dataclass, field
from typing import Final, Optional, Tuple


# Sentinel square stored in the slot of a captured or removed piece.
OFF_BOARD: Final = 0xCC

NUM_SLOTS: Final = 32
SIDE_SLOTS: Final = 16

KING, QUEEN, ROOK, BISHOP, KNIGHT, PAWN = range(6)
ROLE_NAMES = ["king", "queen", "rook", "bishop", "knight", "pawn"]

# Direction deltas on the 0x88 board, addressed by vector index.
MOVE_VECTORS: Final[Tuple[int, ...]] = (
    0,
    -16, -1, 1, 16,
    17, 15, -17, -15,
    -33, -31, -18, -14, 18, 14, 31, 33,
)

# Piece values indexed by slot & 15.
POINTS: Final[Tuple[int, ...]] = (11, 10, 6, 6, 4, 4, 4, 4, 2, 2, 2, 2, 2, 2, 2, 2)
KING_VALUE: Final = POINTS[0]

# (first, last) vector indices per role, walked from first down to last.
VECTOR_RANGES = {
    KING: (8, 1),
    QUEEN: (8, 1),
    ROOK: (4, 1),
    BISHOP: (8, 5),
    KNIGHT: (16, 9),
}
SLIDERS = frozenset({QUEEN, ROOK, BISHOP})

PAWN_CAPTURE_VECTORS: Final = (6, 5)
PAWN_ADVANCE_VECTOR: Final = 4
# A pawn that lands on this rank by a single advance may advance again.
PAWN_DOUBLE_RANK: Final = 0x20

# Destinations that earn the small positional bonus.
CENTER_SQUARES = frozenset({0x33, 0x34, 0x22, 0x25})

START_SQUARES: Final[Tuple[int, ...]] = (
    0x03, 0x04, 0x00, 0x07, 0x02, 0x05, 0x01, 0x06,
    0x10, 0x17, 0x11, 0x16, 0x12, 0x15, 0x14, 0x13,
    0x73, 0x74, 0x70, 0x77, 0x72, 0x75, 0x71, 0x76,
    0x60, 0x67, 0x61, 0x66, 0x62, 0x65, 0x64, 0x63,
)


def role(slot: int) -> int:
    """Return the piece role (KING..PAWN) of ``slot``."""
    idx = slot & 15
    if idx == 0:
        return KING
    if idx == 1:
        return QUEEN
    if idx <= 3:
        return ROOK
    if idx <= 5:
        return BISHOP
    if idx <= 7:
        return KNIGHT
    return PAWN


def is_on_board(square: int) -> bool:
    return square & 0x88 == 0


def mirror(square: int) -> int:
    """Rotate a square by 180 degrees; off-board values map to themselves."""
    if square & 0x88:
        return square
    return 0x77 - square


def check_slot(slot: int) -> None:
    """Validate a slot index.

    Raises:
        ValueError: If ``slot`` is outside 0..31.
    """
    if slot < 0 or slot >= NUM_SLOTS:
        raise ValueError(f"invalid slot: {slot}")


def check_square(square: int) -> None:
    """Validate an on-board square byte.

    Raises:
        ValueError: If ``square`` is not a valid 0x88 board square.
    """
    if square < 0 or square > 0x77 or not is_on_board(square):
        raise ValueError(f"invalid square: {square:#04x}")


@dataclass(frozen=True)
class Move:
    """Candidate move produced by the generator.

    Attributes:
        piece (int): Slot of the moving piece (0..15 for the side to move).
        from_sq (int): Origin square.
        to_sq (int): Destination square.
        vector (int): Index into ``MOVE_VECTORS`` that produced the move.
        capture (bool): True when the destination holds an opponent piece.
    """

    piece: int
    from_sq: int
    to_sq: int
    vector: int = field(default=0, compare=False)
    capture: bool = field(default=False, compare=False)

    def as_dict(self) -> dict:
        return {"piece": self.piece, "from": self.from_sq, "to": self.to_sq, "capture": self.capture}


@dataclass(frozen=True)
class MoveRecord:
    """Undo entry pushed by make and consumed by unmake.

    ``captured`` is the slot that was taken, if any; its square equals
    ``to_sq`` before the move.
    """

    piece: int
    from_sq: int
    to_sq: int
    captured: Optional[int] = None
    vector: int = 0


def describe(slot: int) -> str:
    side = "mover" if slot < SIDE_SLOTS else "opponent"
    return f"{side} {ROLE_NAMES[role(slot)]} #{slot}"
