from __future__ import annotations

import pytest

from microchess.config import LEVELS
from microchess.engine.board import Board
from microchess.engine.movegen import MoveGenerator
from microchess.search.service import SearchService


@pytest.mark.parametrize("name", sorted(LEVELS))
def test_search_returns_legal_move_startpos(name: str) -> None:
    board = Board.startpos()
    before = board.squares()
    res = SearchService().search(board, LEVELS[name])
    assert res.best_move is not None
    assert res.best_move in MoveGenerator(board).legal_moves()
    assert res.score is not None and res.score >= 0x0F
    assert res.mate is False
    assert res.lines == 20
    assert res.nodes > res.lines
    # search never changes the position it was handed
    assert board.squares() == before
    assert board.ply == 0
    assert board.flipped is False


def test_baseline_counts_mover_moves() -> None:
    res = SearchService().search(Board.startpos())
    assert res.baseline.mobility == 20
    assert res.baseline.max_capture == 0


def test_hanging_queen_is_taken() -> None:
    board = Board.startpos()
    board.place(17, 0x24)
    res = SearchService().search(board)
    assert res.best_move is not None
    assert res.best_move.to_sq == 0x24
    assert res.best_move.capture is True
    assert res.best_line is not None
    assert res.best_line.root_capture == 10


def test_on_line_sees_every_root_move() -> None:
    seen = []
    res = SearchService().search(Board.startpos(), on_line=lambda m, s, line: seen.append((m, s)))
    assert len(seen) == res.lines == 20
    assert max(s for _, s in seen) == res.score
    # ties keep the first line scored
    first_best = next(m for m, s in seen if s == res.score)
    assert res.best_move == first_best


def test_result_as_dict() -> None:
    res = SearchService().search(Board.startpos())
    out = res.as_dict()
    assert out["best_move"]["piece"] == res.best_move.piece
    assert out["resigned"] is False
    assert out["from_book"] is False
    assert set(out) >= {"score", "mate", "nodes", "time_ms", "aborted"}
