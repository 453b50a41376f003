from __future__ import annotations

import pytest

from microchess.engine.board import Board, UndoStackError
from microchess.engine.move import OFF_BOARD
from microchess.engine.movegen import MoveGenerator


def test_make_unmake_restores_position_for_every_start_move() -> None:
    b = Board.startpos()
    before = b.squares()
    for m in MoveGenerator(b).legal_moves():
        rec = b.make_move(m.piece, m.to_sq, m.vector)
        assert b.ply == 1
        assert b.slots[m.piece] == m.to_sq
        assert rec.from_sq == m.from_sq
        assert rec.vector == m.vector
        assert b.unmake_move() is rec
        assert b.squares() == before
        assert b.ply == 0


def test_capture_marks_victim_off_board_and_unmake_restores_it() -> None:
    b = Board.startpos()
    # opponent queen wanders in front of the mover's pawns
    b.place(17, 0x24)
    rec = b.make_move(15, 0x24, 5)
    assert rec.captured == 17
    assert b.slots[17] == OFF_BOARD
    assert b.occupant(0x24) == 15
    b.unmake_move()
    assert b.slots[17] == 0x24
    assert b.slots[15] == 0x13


def test_nested_make_unmake_is_lifo() -> None:
    b = Board.startpos()
    before = b.squares()
    b.make_move(15, 0x33)
    b.reverse()
    b.make_move(15, 0x33)
    assert b.ply == 2
    second = b.unmake_move()
    assert second.piece == 15 and second.to_sq == 0x33
    b.reverse()
    b.unmake_move()
    assert b.squares() == before


def test_unmake_on_empty_stack_raises() -> None:
    b = Board.startpos()
    with pytest.raises(UndoStackError):
        b.unmake_move()


def test_scoped_helpers_restore_on_exception() -> None:
    b = Board.startpos()
    before = b.squares()
    with pytest.raises(KeyError):
        with b.moved(15, 0x33):
            with b.reversed_sides():
                raise KeyError("boom")
    assert b.squares() == before
    assert b.ply == 0
    assert b.flipped is False


def test_committed_moves_stay_off_the_undo_stack() -> None:
    b = Board.startpos()
    b.place(17, 0x24)
    rec = b.play(15, 0x24)
    assert b.ply == 0
    assert rec.captured == 17
    b.take_back(rec)
    assert b.slots[15] == 0x13
    assert b.slots[17] == 0x24


def test_captured_slot_is_never_reused() -> None:
    b = Board.startpos()
    b.place(17, 0x24)
    b.play(15, 0x24)
    # another piece later lands on the same square
    b.play(15, 0x34)
    b.play(6, 0x22)
    assert b.slots[17] == OFF_BOARD
    assert b.occupant(0x24) is None
