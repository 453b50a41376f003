from __future__ import annotations

from typing import Dict

from .board import Board
from .movegen import MoveGenerator


def perft(board: Board, depth: int) -> int:
    """Count leaf nodes of the legal move tree of ``board`` to ``depth`` plies.

    Definition:
    - depth == 0 returns 1 (the current node).
    - depth > 0 returns the sum over all legal child positions' perft(depth-1),
      where each child is viewed from the other side via reversal.

    Moves are legal in this engine's sense: no castling, en passant or
    promotion, and the king-exposure test always runs.
    """
    if depth < 0:
        raise ValueError("depth must be >= 0")
    if depth == 0:
        return 1
    gen = MoveGenerator(board)
    nodes = 0
    for m in gen.legal_moves(check=True):
        if depth == 1:
            nodes += 1
            continue
        with board.moved(m.piece, m.to_sq, m.vector):
            with board.reversed_sides():
                nodes += perft(board, depth - 1)
    return nodes


def divide(board: Board, depth: int) -> Dict[str, int]:
    """Per-move perft counts keyed ``"<slot>:<from>-<to>"`` in hex."""
    if depth < 1:
        raise ValueError("depth must be >= 1")
    out: Dict[str, int] = {}
    for m in MoveGenerator(board).legal_moves(check=True):
        with board.moved(m.piece, m.to_sq, m.vector):
            with board.reversed_sides():
                out[f"{m.piece}:{m.from_sq:02x}-{m.to_sq:02x}"] = perft(board, depth - 1)
    return out
