from __future__ import annotations

from microchess.engine.board import Board
from microchess.engine.game import Game
from microchess.engine.move import START_SQUARES
from microchess.search.service import SearchService


def test_node_budget_aborts_and_restores_board() -> None:
    board = Board.startpos()
    res = SearchService().search(board, max_nodes=1)
    assert res.aborted is True
    assert res.best_move is None
    assert res.resigned is False
    assert res.nodes == 2
    assert board.squares() == list(START_SQUARES)
    assert board.ply == 0
    assert board.flipped is False


def test_abort_mid_root_keeps_board_intact() -> None:
    board = Board.startpos()
    board.place(17, 0x24)
    before = board.squares()
    # past the baseline pass, inside the first root lines
    res = SearchService().search(board, max_nodes=60)
    assert res.aborted is True
    assert board.squares() == before
    assert board.ply == 0
    assert board.flipped is False


def test_generous_budgets_do_not_abort() -> None:
    res = SearchService().search(Board.startpos(), max_nodes=10_000_000, movetime_ms=60_000)
    assert res.aborted is False
    assert res.best_move is not None


def test_aborted_reply_is_not_committed() -> None:
    game = Game.new(use_book=False)
    res = game.compute_best_reply(max_nodes=1)
    assert res.aborted is True
    assert game.get_board() == list(START_SQUARES)
    assert game.move_stack == []
