from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from microchess.assets.book import ScriptedBook, open_book
from microchess.config import LEVELS, DEFAULT_LEVEL, Strength, level
from microchess.search.service import SearchResult, SearchService

from .board import Board
from .move import OFF_BOARD, SIDE_SLOTS, Move, MoveRecord, check_slot, check_square, mirror
from .movegen import MoveGenerator, Status


logger = logging.getLogger(__name__)


class IllegalMoveError(ValueError):
    """Requested move is not legal; ``reason`` tells why."""

    def __init__(self, reason: Status) -> None:
        super().__init__(f"illegal move: {reason.value}")
        self.reason = reason


@dataclass
class Game:
    """Game wrapper around a board with the engine's external operations.

    Responsibility: validate and apply moves, find and commit the engine's
    reply (book first, then search), expose and edit the board.
    """

    board: Board
    strength: Strength = field(default_factory=lambda: LEVELS[DEFAULT_LEVEL])
    book: Optional[ScriptedBook] = None
    move_stack: List[MoveRecord] = field(default_factory=list)
    last_destination: int = OFF_BOARD
    _book_index: int = 0
    _book_active: bool = True

    @classmethod
    def new(
        cls,
        *,
        level_name: str = DEFAULT_LEVEL,
        use_book: bool = True,
        book_path: Optional[str] = None,
    ) -> "Game":
        book = open_book(book_path) if use_book else None
        return cls(board=Board.startpos(), strength=level(level_name), book=book)

    @classmethod
    def from_squares(cls, squares: List[int], **kwargs) -> "Game":
        """Create a game from a 32-entry board; the opening book is off."""
        kwargs.setdefault("book", None)
        return cls(board=Board.from_squares(squares), **kwargs)

    @property
    def book_active(self) -> bool:
        return self.book is not None and self._book_active

    def get_board(self) -> List[int]:
        return self.board.squares()

    def legal_moves(self, opponent: bool = False) -> List[Move]:
        """List legal moves for the side to move, or for the opponent.

        Opponent moves are reported in board coordinates with slots 16..31.
        """
        gen = MoveGenerator(self.board)
        if not opponent:
            return gen.legal_moves()
        with self.board.reversed_sides():
            moves = gen.legal_moves()
        return [
            Move(m.piece + SIDE_SLOTS, mirror(m.from_sq), mirror(m.to_sq), m.vector, m.capture)
            for m in moves
        ]

    def in_check(self) -> bool:
        return MoveGenerator(self.board).in_check()

    def apply_move(self, piece: int, square: int) -> MoveRecord:
        """Validate and play a move for any slot.

        Args:
            piece (int): Slot 0..31; 16..31 move the opponent's pieces.
            square (int): Destination square byte.

        Returns:
            MoveRecord: Record of the committed move.

        Raises:
            IllegalMoveError: If the move is off-board, lands on a friendly
                piece, is not a move the piece can make, or exposes the king.
            ValueError: If ``piece`` or ``square`` is out of range.
        """
        verdict = MoveGenerator(self.board).validate(piece, square)
        if not verdict.legal:
            raise IllegalMoveError(verdict.status)
        return self._commit(piece, square)

    def compute_best_reply(
        self,
        *,
        movetime_ms: Optional[int] = None,
        max_nodes: Optional[int] = None,
    ) -> SearchResult:
        """Pick and play the engine's move for slots 0..15.

        The opening book answers while it still matches the game; otherwise
        the search runs. ``best_move is None`` on the result means resign or
        stalemate (or an aborted search that found nothing), and the board is
        left untouched.
        """
        book_move = self._book_reply()
        if book_move is not None:
            self._commit(book_move.piece, book_move.to_sq)
            return SearchResult(
                best_move=book_move,
                score=None,
                mate=False,
                nodes=0,
                lines=0,
                time_ms=0,
                from_book=True,
            )
        result = SearchService().search(
            self.board,
            self.strength,
            max_nodes=max_nodes,
            movetime_ms=movetime_ms,
        )
        if result.best_move is not None:
            self._commit(result.best_move.piece, result.best_move.to_sq)
        return result

    def edit_board(self, piece: int, square: Optional[int]) -> None:
        """Place ``piece`` on ``square`` (or remove it with None) without legality checks.

        A piece already standing on ``square`` is taken off the board. Takeback
        history is cleared.
        """
        check_slot(piece)
        if square is None or square == OFF_BOARD:
            self.board.place(piece, OFF_BOARD)
        else:
            check_square(square)
            occupant = self.board.occupant(square)
            if occupant is not None and occupant != piece:
                self.board.place(occupant, OFF_BOARD)
            self.board.place(piece, square)
        self.move_stack.clear()

    def set_strength(self, exchange_depth: int, check_threshold: int) -> None:
        self.strength = Strength(exchange_depth=exchange_depth, check_threshold=check_threshold)

    def set_level(self, name: str) -> None:
        self.strength = level(name)

    def exchange_sides(self) -> None:
        """Swap sides so the engine plays the pieces the opponent had."""
        self.board.reverse()
        self.move_stack.clear()
        self.last_destination = mirror(self.last_destination)

    def reset(self) -> None:
        self.board = Board.startpos()
        self.move_stack.clear()
        self.last_destination = OFF_BOARD
        self._book_index = 0
        self._book_active = True

    def undo_move(self) -> None:
        """Take back the most recent committed move.

        The opening book does not rewind.

        Raises:
            ValueError: If there is no move to take back.
        """
        if not self.move_stack:
            raise ValueError("no moves to undo")
        record = self.move_stack.pop()
        self.board.take_back(record)
        self.last_destination = self.move_stack[-1].to_sq if self.move_stack else OFF_BOARD

    def _commit(self, piece: int, square: int) -> MoveRecord:
        record = self.board.play(piece, square)
        self.move_stack.append(record)
        self.last_destination = square
        return record

    def _book_reply(self) -> Optional[Move]:
        book = self.book
        if book is None or not self._book_active:
            return None
        entry = book.probe(self._book_index, self.last_destination)
        if entry is None:
            self._book_active = False
            logger.info("opening book left at entry %d", self._book_index)
            return None
        verdict = MoveGenerator(self.board).validate(entry.piece, entry.square)
        if not verdict.legal:
            self._book_active = False
            logger.info("book move %d->%#04x rejected: %s", entry.piece, entry.square, verdict.status.value)
            return None
        self._book_index += 1
        return Move(entry.piece, self.board.slots[entry.piece], entry.square, capture=verdict.capture)
