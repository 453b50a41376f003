"""Line scoring.

Pure, deterministic, and side-effect free. Scores are unsigned bytes: 0 marks
a line that hands the king to the opponent, 255 a mate.
"""

from __future__ import annotations

from typing import Dict, Final, Optional

from microchess.engine.move import CENTER_SQUARES, KING_VALUE
from microchess.search.context import LineStats, PhaseCounters


MIN_SCORE: Final = 0
MAX_SCORE: Final = 0xFF
MATE_SCORE: Final = MAX_SCORE
# incumbent value before any line is scored
INITIAL_BEST: Final = 0x0C
# a best score below this means resign or stalemate
RESIGN_THRESHOLD: Final = 0x0F

TIER1_BIAS: Final = 0x80
TIER2_BIAS: Final = 0x40
TIER3_BIAS: Final = 0x90
POSITION_BONUS: Final = 2
BACK_RANK_LIMIT: Final = 0x10


def _clamp(value: int) -> int:
    if value < MIN_SCORE:
        return MIN_SCORE
    if value > MAX_SCORE:
        return MAX_SCORE
    return value


def mate_verdict(line: LineStats) -> Optional[int]:
    """Return 0 or 255 when the line is decided by a king capture, else None."""
    if line.reply.max_capture == KING_VALUE:
        return MIN_SCORE
    if line.reply.mobility == 0 and line.continuation.max_capture == KING_VALUE:
        return MATE_SCORE
    return None


def evaluate(
    line: LineStats,
    baseline: PhaseCounters,
    piece: int,
    from_sq: int,
    to_sq: int,
) -> int:
    """Score one candidate move from the counters gathered for it.

    Args:
        line (LineStats): Reply, continuation and exchange counters.
        baseline (PhaseCounters): Mover's counters before the move.
        piece (int): Moving slot.
        from_sq (int): Origin square.
        to_sq (int): Destination square.

    Returns:
        int: Score in 0..255.
    """
    decided = mate_verdict(line)
    if decided is not None:
        return decided

    w = line.continuation
    b = line.reply
    bcap0, wcap1, bcap1, wcap2, bcap2 = line.exchange

    # quarter weights
    tier = TIER1_BIAS + w.mobility + w.max_capture + w.capture_sum + wcap1 + wcap2
    tier -= baseline.max_capture + baseline.capture_sum + bcap0 + bcap1 + bcap2
    tier -= baseline.mobility + b.mobility
    tier = _clamp(tier) >> 1

    # half weights
    tier = _clamp(tier + TIER2_BIAS + w.max_capture + w.capture_sum - b.max_capture) >> 1

    # full weights
    tier += TIER3_BIAS + 4 * line.root_capture + wcap1
    tier -= 2 * b.max_capture + 2 * b.capture_sum + bcap1
    score = _clamp(tier)

    if to_sq in CENTER_SQUARES or (piece != 0 and from_sq < BACK_RANK_LIMIT):
        score = _clamp(score + POSITION_BONUS)
    return score


def weighted_sum(line: LineStats, baseline: PhaseCounters) -> float:
    """Unsaturated weighted sum the integer tiers approximate."""
    w = line.continuation
    b = line.reply
    bcap0, wcap1, bcap1, wcap2, bcap2 = line.exchange
    return (
        4.00 * line.root_capture
        + 1.25 * wcap1
        + 0.75 * (w.max_capture + w.capture_sum)
        + 0.25 * (w.mobility + wcap2)
        - 2.50 * b.max_capture
        - 2.00 * b.capture_sum
        - 1.25 * bcap1
        - 0.25 * (baseline.max_capture + baseline.capture_sum + baseline.mobility + bcap0 + bcap2 + b.mobility)
    )


def breakdown(line: LineStats, baseline: PhaseCounters) -> Dict[str, int]:
    """Flatten the counters of a line under their conventional short names."""
    bcap0, wcap1, bcap1, wcap2, bcap2 = line.exchange
    return {
        "wcap0": line.root_capture,
        "wcap1": wcap1,
        "wcap2": wcap2,
        "wmob": line.continuation.mobility,
        "wmaxc": line.continuation.max_capture,
        "wcc": line.continuation.capture_sum,
        "bmob": line.reply.mobility,
        "bmaxc": line.reply.max_capture,
        "bcc": line.reply.capture_sum,
        "bcap0": bcap0,
        "bcap1": bcap1,
        "bcap2": bcap2,
        "pmob": baseline.mobility,
        "pmaxc": baseline.max_capture,
        "pcc": baseline.capture_sum,
    }
