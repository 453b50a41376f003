from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import List, Optional

from microchess.engine.move import POINTS


class Phase(str, Enum):
    """Role of a generation pass."""

    REPLY = "reply"
    ROOT = "root"
    CONTINUATION = "continuation"
    BASELINE = "baseline"
    EXCHANGE = "exchange"


# Phases missing here never run the king-exposure test.
CHECK_RANK = {
    Phase.REPLY: 0,
    Phase.ROOT: 1,
    Phase.CONTINUATION: 2,
    Phase.BASELINE: 3,
}

COUNTING_PHASES = frozenset(CHECK_RANK)

# BCAP0, WCAP1, BCAP1, WCAP2, BCAP2
EXCHANGE_LEVELS = 5


@dataclass
class PhaseCounters:
    """Mobility and capture tallies for one pass."""

    mobility: int = 0
    max_capture: int = 0
    # victim slot (0..15 from the victim's side) of the best capture
    max_capture_piece: Optional[int] = None
    capture_sum: int = 0

    def count(self, piece: int, victim: Optional[int]) -> None:
        self.mobility += 2 if piece == 1 else 1
        if victim is None:
            return
        value = POINTS[victim]
        if value >= self.max_capture:
            self.max_capture = value
            self.max_capture_piece = victim
        self.capture_sum += value


@dataclass
class LineStats:
    """Counters gathered while scoring one candidate move.

    ``reply`` holds the opponent's immediate replies, ``continuation`` the
    mover's follow-up moves, ``exchange`` the best capture at each level of the
    exchange search (even levels are the opponent's).
    """

    root_capture: int = 0
    reply: PhaseCounters = field(default_factory=PhaseCounters)
    continuation: PhaseCounters = field(default_factory=PhaseCounters)
    exchange: List[int] = field(default_factory=lambda: [0] * EXCHANGE_LEVELS)

    def record_exchange(self, level: int, value: int) -> None:
        idx = exchange_bucket(level)
        if value >= self.exchange[idx]:
            self.exchange[idx] = value


def exchange_bucket(level: int) -> int:
    """Map an exchange level to its counter; deep levels fold by side."""
    if level < EXCHANGE_LEVELS:
        return level
    return EXCHANGE_LEVELS - 2 if level % 2 else EXCHANGE_LEVELS - 1


@dataclass(frozen=True)
class SearchContext:
    """State of one generation pass.

    A deeper pass gets its own context from ``child``; nothing is shared
    between levels except the counters objects handed down explicitly.
    """

    phase: Phase
    counters: Optional[PhaseCounters] = None
    line: Optional[LineStats] = None
    level: int = 0
    remaining: int = 0
    check_threshold: int = 0

    @property
    def checks(self) -> bool:
        rank = CHECK_RANK.get(self.phase)
        return rank is not None and rank < self.check_threshold

    def child(self, phase: Phase, **changes) -> "SearchContext":
        return replace(self, phase=phase, **changes)
