from __future__ import annotations

from typing import Dict

import pytest

from microchess.config import LEVELS
from microchess.engine.board import Board
from microchess.engine.move import OFF_BOARD
from microchess.eval import MATE_SCORE, RESIGN_THRESHOLD
from microchess.search.service import SearchService


def _board(placement: Dict[int, int]) -> Board:
    squares = [OFF_BOARD] * 32
    for slot, sq in placement.items():
        squares[slot] = sq
    return Board.from_squares(squares)


@pytest.mark.parametrize("name", sorted(LEVELS))
def test_cornered_king_resigns(name: str) -> None:
    # every king move walks into a rook
    board = _board({0: 0x00, 16: 0x77, 18: 0x07, 19: 0x17})
    before = board.squares()
    res = SearchService().search(board, LEVELS[name])
    assert res.best_move is None
    assert res.resigned is True
    assert res.aborted is False
    assert res.score is not None and res.score < RESIGN_THRESHOLD
    assert board.squares() == before


def test_mate_in_one_is_found() -> None:
    board = _board({0: 0x55, 1: 0x60, 16: 0x77})
    res = SearchService().search(board, LEVELS["normal"])
    assert res.best_move is not None
    assert res.best_move.piece == 1
    assert res.best_move.to_sq == 0x66
    assert res.score == MATE_SCORE
    assert res.mate is True


def test_unprotected_queen_next_to_king_scores_below_quiet_move() -> None:
    # on 0x66 the queen is taken by the king
    board = _board({0: 0x00, 1: 0x60, 16: 0x77})
    seen = {}
    SearchService().search(board, on_line=lambda m, s, line: seen.setdefault(m.to_sq, (m.piece, s)))
    piece, score = seen[0x66]
    assert piece == 1
    assert score < seen[0x40][1]
