from __future__ import annotations

from typing import Dict, Tuple

import pytest

from microchess.config import Strength
from microchess.engine.board import Board
from microchess.engine.move import OFF_BOARD
from microchess.search.context import LineStats
from microchess.search.service import SearchService


def _board(placement: Dict[int, int]) -> Board:
    squares = [OFF_BOARD] * 32
    for slot, sq in placement.items():
        squares[slot] = sq
    return Board.from_squares(squares)


def _lines(board: Board, strength: Strength) -> Dict[Tuple[int, int], LineStats]:
    seen: Dict[Tuple[int, int], LineStats] = {}
    SearchService().search(board, strength, on_line=lambda m, s, line: seen.setdefault((m.piece, m.to_sq), line))
    return seen


def _rook_takes_knight() -> Board:
    # mover: king 0x00, queen 0x13 behind rook 0x23; opponent: rook 0x73 guards the knight on 0x43
    return _board({0: 0x00, 1: 0x13, 2: 0x23, 16: 0x77, 18: 0x73, 22: 0x43, 24: 0x66})


@pytest.mark.parametrize(
    "depth,expected",
    [
        (0, [6, 0, 0, 0, 0]),
        (1, [6, 6, 0, 0, 0]),
        (4, [6, 6, 0, 0, 0]),
    ],
)
def test_exchange_depth_limits_recaptures(depth: int, expected: list) -> None:
    lines = _lines(_rook_takes_knight(), Strength(exchange_depth=depth, check_threshold=2))
    line = lines[(2, 0x43)]
    assert line.root_capture == 4
    assert line.exchange == expected


def test_best_reply_victim_is_left_out_of_follow_ups() -> None:
    lines = _lines(_rook_takes_knight(), Strength())
    rook_line = lines[(2, 0x43)]
    king_line = lines[(0, 0x01)]
    assert rook_line.reply.max_capture == 6
    assert rook_line.reply.max_capture_piece == 2
    assert rook_line.continuation.mobility == 41
    assert king_line.continuation.mobility == 48


def test_pawn_capture_does_not_open_an_exchange() -> None:
    board = _board({0: 0x00, 15: 0x33, 16: 0x77, 18: 0x73})
    line = _lines(board, Strength())[(0, 0x01)]
    assert line.reply.max_capture == 2
    assert line.reply.max_capture_piece == 15
    assert line.exchange == [0, 0, 0, 0, 0]


def test_king_capture_does_not_open_an_exchange() -> None:
    # unchecked root: the king may step onto the rook's file
    board = _board({0: 0x00, 16: 0x77, 19: 0x71})
    seen: Dict[Tuple[int, int], Tuple[int, LineStats]] = {}
    SearchService().search(
        board,
        Strength(exchange_depth=4, check_threshold=0),
        on_line=lambda m, s, line: seen.setdefault((m.piece, m.to_sq), (s, line)),
    )
    score, line = seen[(0, 0x01)]
    assert line.reply.max_capture == 11
    assert line.exchange == [0, 0, 0, 0, 0]
    assert score == 0
