from __future__ import annotations

import json

import pytest

from microchess.assets.book import DEFAULT_LINE, BookEntry, ScriptedBook, open_book
from microchess.engine.game import Game
from microchess.engine.move import OFF_BOARD


def test_default_line() -> None:
    book = open_book(None)
    assert len(book) == len(DEFAULT_LINE) == 8
    first = next(iter(book))
    assert first == BookEntry(OFF_BOARD, 15, 0x33)


def test_book_answers_while_the_opponent_follows_the_line() -> None:
    game = Game.new()
    res = game.compute_best_reply()
    assert res.from_book is True
    assert res.score is None
    assert res.nodes == 0
    assert (res.best_move.piece, res.best_move.to_sq) == (15, 0x33)
    assert game.board.slots[15] == 0x33
    assert game.last_destination == 0x33

    game.apply_move(31, 0x43)
    res = game.compute_best_reply()
    assert res.from_book is True
    assert (res.best_move.piece, res.best_move.to_sq) == (6, 0x22)
    assert game.book_active is True


def test_deviation_disables_the_book_for_good() -> None:
    game = Game.new()
    game.compute_best_reply()
    game.apply_move(30, 0x44)
    res = game.compute_best_reply()
    assert res.from_book is False
    assert res.best_move is not None
    assert game.book_active is False
    # returning to the line later does not revive it
    game.undo_move()
    game.undo_move()
    game.apply_move(31, 0x43)
    assert game.compute_best_reply().from_book is False


def test_exhausted_book_falls_back_to_search() -> None:
    game = Game.new()
    game.book = ScriptedBook([BookEntry(OFF_BOARD, 15, 0x33)])
    assert game.compute_best_reply().from_book is True
    game.apply_move(31, 0x43)
    assert game.compute_best_reply().from_book is False
    assert game.book_active is False


def test_illegal_book_move_is_rejected() -> None:
    game = Game.new()
    game.book = ScriptedBook([BookEntry(OFF_BOARD, 2, 0x20)])
    res = game.compute_best_reply()
    assert res.from_book is False
    assert game.book_active is False
    assert game.board.slots[2] == 0x00


def test_book_from_json_dict_and_triples(tmp_path) -> None:
    p = tmp_path / "line.json"
    p.write_text(json.dumps({"line": [{"expect": "0xCC", "piece": 15, "square": "0x33"}, {"expect": 67, "piece": 6, "square": 34}]}))
    book = ScriptedBook.from_json(str(p))
    assert list(book) == [BookEntry(OFF_BOARD, 15, 0x33), BookEntry(0x43, 6, 0x22)]

    p.write_text(json.dumps([["0xCC", "0x0F", "0x33"]]))
    assert list(open_book(str(p))) == [BookEntry(OFF_BOARD, 15, 0x33)]


@pytest.mark.parametrize(
    "payload",
    [
        {"moves": []},
        [["0xCC", 15]],
        [{"expect": "0xCC", "piece": "queen", "square": "0x33"}],
        [["0xCC", 16, "0x33"]],
        [["0xCC", 15, "0x38"]],
    ],
)
def test_book_from_json_rejects_bad_input(tmp_path, payload) -> None:
    p = tmp_path / "bad.json"
    p.write_text(json.dumps(payload))
    with pytest.raises(ValueError):
        ScriptedBook.from_json(str(p))


def test_book_missing_file(tmp_path) -> None:
    with pytest.raises(FileNotFoundError):
        open_book(str(tmp_path / "nope.json"))
