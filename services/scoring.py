# services/scoring.py
from dataclasses import dataclass
from typing import Iterable, List
import math

from app.state import LeaderboardRecord

ERROR_DECAY = 0.05
LOW_ACCURACY = 50
MAX_ERRORS = 20
GAMING_FACTOR = 0.1


def score(wpm: float, accuracy: float, error_count: int) -> float:
    """
    Ranking scalar for a finished race.

    WPM scaled by accuracy, then by a 5%-per-error decay; runs under 50%
    accuracy or above 20 errors keep only a tenth of what is left.
    Rounded half-up to one decimal.
    """
    base = wpm * (accuracy / 100.0)
    base *= max(0.0, 1.0 - error_count * ERROR_DECAY)
    if accuracy < LOW_ACCURACY or error_count > MAX_ERRORS:
        base *= GAMING_FACTOR
    return math.floor(base * 10 + 0.5) / 10


@dataclass(frozen=True)
class RankedRecord:
    rank: int
    score: float
    record: LeaderboardRecord


def rank_records(records: Iterable[LeaderboardRecord]) -> List[RankedRecord]:
    """Score descending; equal scores keep the older record first."""
    scored = [(score(r.wpm, r.accuracy, r.error_count), r) for r in records]
    scored.sort(key=lambda x: (-x[0], x[1].updated_at))
    return [RankedRecord(i + 1, s, r) for i, (s, r) in enumerate(scored)]
