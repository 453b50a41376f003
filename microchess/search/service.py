from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, Optional

from microchess.config import Strength
from microchess.engine.board import Board, UndoStackError
from microchess.engine.move import POINTS, SIDE_SLOTS, Move, describe
from microchess.engine.movegen import MoveGenerator
from microchess.eval import (
    INITIAL_BEST,
    MATE_SCORE,
    RESIGN_THRESHOLD,
    breakdown,
    evaluate,
    mate_verdict,
    weighted_sum,
)
from microchess.search.context import (
    COUNTING_PHASES,
    LineStats,
    Phase,
    PhaseCounters,
    SearchContext,
)


logger = logging.getLogger(__name__)


class SearchAborted(Exception):
    """Raised inside the move callback when the node or time budget runs out."""


@dataclass
class SearchResult:
    best_move: Optional[Move]
    score: Optional[int]
    mate: bool
    nodes: int
    lines: int
    time_ms: int
    aborted: bool = False
    from_book: bool = False
    baseline: PhaseCounters = field(default_factory=PhaseCounters)
    best_line: Optional[LineStats] = None

    @property
    def resigned(self) -> bool:
        return self.best_move is None and not self.aborted

    def as_dict(self) -> Dict[str, object]:
        return {
            "best_move": self.best_move.as_dict() if self.best_move else None,
            "score": self.score,
            "mate": self.mate,
            "resigned": self.resigned,
            "nodes": self.nodes,
            "lines": self.lines,
            "time_ms": self.time_ms,
            "aborted": self.aborted,
            "from_book": self.from_book,
        }


class SearchService:
    """One-ply mobility search with a capture-only exchange extension.

    Every move of the side to move is scored by making it, counting the
    opponent's replies (chasing captures through alternating recaptures up to
    ``exchange_depth`` levels), counting the mover's follow-ups, and feeding
    the counters to the evaluator. The board is restored before returning,
    including on abort.
    """

    def search(
        self,
        board: Board,
        strength: Strength = Strength(),
        *,
        max_nodes: Optional[int] = None,
        movetime_ms: Optional[int] = None,
        on_line: Optional[Callable[[Move, int, LineStats], None]] = None,
    ) -> SearchResult:
        start = time.perf_counter()
        deadline = start + movetime_ms / 1000.0 if movetime_ms else None
        gen = MoveGenerator(board)
        entry_ply = board.ply

        nodes = 0
        lines = 0
        best_score = INITIAL_BEST
        best_move: Optional[Move] = None
        best_line: Optional[LineStats] = None
        baseline = PhaseCounters()

        def tick() -> None:
            nonlocal nodes
            nodes += 1
            if max_nodes is not None and nodes > max_nodes:
                raise SearchAborted()
            if deadline is not None and (nodes & 0x3F) == 0 and time.perf_counter() >= deadline:
                raise SearchAborted()

        def expand(ctx: SearchContext) -> None:
            gen.generate(lambda move: visit(move, ctx), ctx.checks)

        def victim_of(move: Move) -> Optional[int]:
            if not move.capture:
                return None
            occupant = board.occupant(move.to_sq)
            if occupant is None or occupant < SIDE_SLOTS:
                return None
            return occupant - SIDE_SLOTS

        def visit(move: Move, ctx: SearchContext) -> None:
            tick()
            phase = ctx.phase
            victim = victim_of(move)
            if phase in COUNTING_PHASES:
                if (
                    phase is Phase.CONTINUATION
                    and move.piece != 0
                    and ctx.line is not None
                    and move.piece == ctx.line.reply.max_capture_piece
                ):
                    # the piece the opponent's best reply takes does not count
                    return
                counters = ctx.counters
                if counters is None:
                    raise RuntimeError(f"{phase.value} pass has no counters")
                counters.count(move.piece, victim)
                if phase is Phase.ROOT:
                    score_line(move, victim, ctx)
                elif phase is Phase.REPLY:
                    exchange(move, victim, ctx)
            elif phase is Phase.EXCHANGE:
                exchange(move, victim, ctx)

        def exchange(move: Move, victim: Optional[int], ctx: SearchContext) -> None:
            # pawn and king captures do not extend the exchange
            if victim is None or not 1 <= victim <= 7:
                return
            if ctx.line is None:
                raise RuntimeError("exchange step outside a scored line")
            ctx.line.record_exchange(ctx.level, POINTS[victim])
            if ctx.remaining <= 0:
                return
            with board.moved(move.piece, move.to_sq, move.vector):
                with board.reversed_sides():
                    expand(
                        ctx.child(
                            Phase.EXCHANGE,
                            counters=None,
                            level=ctx.level + 1,
                            remaining=ctx.remaining - 1,
                        )
                    )

        def score_line(move: Move, victim: Optional[int], ctx: SearchContext) -> None:
            nonlocal lines, best_score, best_move, best_line
            line = LineStats(root_capture=POINTS[victim] if victim is not None else 0)
            with board.moved(move.piece, move.to_sq, move.vector):
                with board.reversed_sides():
                    expand(
                        ctx.child(
                            Phase.REPLY,
                            counters=line.reply,
                            line=line,
                            level=0,
                            remaining=strength.exchange_depth,
                        )
                    )
                expand(ctx.child(Phase.CONTINUATION, counters=line.continuation, line=line))
            score = evaluate(line, baseline, move.piece, move.from_sq, move.to_sq)
            lines += 1
            if logger.isEnabledFor(logging.DEBUG):
                logger.debug(
                    "line %s %#04x->%#04x score=%d weighted=%.2f %s",
                    describe(move.piece),
                    move.from_sq,
                    move.to_sq,
                    score,
                    weighted_sum(line, baseline),
                    breakdown(line, baseline),
                )
            if on_line is not None:
                on_line(move, score, line)
            if score > best_score:
                best_score = score
                best_move = move
                best_line = line

        aborted = False
        root = SearchContext(Phase.BASELINE, counters=baseline, check_threshold=strength.check_threshold)
        try:
            expand(root)
            expand(root.child(Phase.ROOT, counters=PhaseCounters()))
        except SearchAborted:
            aborted = True
            logger.info("search aborted after %d nodes", nodes)
        if board.ply != entry_ply:
            raise UndoStackError("search left moves on the undo stack")

        time_ms = int((time.perf_counter() - start) * 1000)
        if best_score < RESIGN_THRESHOLD:
            best_move = None
            best_line = None
        if best_move is None:
            if not aborted:
                logger.info("no playable move (best=%d): resign", best_score)
            return SearchResult(
                best_move=None,
                score=best_score,
                mate=False,
                nodes=nodes,
                lines=lines,
                time_ms=time_ms,
                aborted=aborted,
                baseline=baseline,
            )
        logger.info(
            "best %s %#04x->%#04x score=%d nodes=%d time_ms=%d",
            describe(best_move.piece),
            best_move.from_sq,
            best_move.to_sq,
            best_score,
            nodes,
            time_ms,
        )
        return SearchResult(
            best_move=best_move,
            score=best_score,
            mate=mate_verdict(best_line) == MATE_SCORE,
            nodes=nodes,
            lines=lines,
            time_ms=time_ms,
            aborted=aborted,
            baseline=baseline,
            best_line=best_line,
        )
