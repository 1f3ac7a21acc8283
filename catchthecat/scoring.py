"""Move scores, time penalties, and per-user aggregation."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Sequence

from .board import Turn
from .reports import MatchReport, UserScore

DEFAULT_TIME_PENALTY = "sqrt"


@dataclass(frozen=True)
class TimePenalty:
    """Root-law latency penalty: ``(time * unit) ** exponent / divisor``.

    Any exponent in (0, 1) keeps the penalty increasing and concave, so an
    agent twice as slow pays well under twice the penalty.
    """

    name: str
    exponent: float
    divisor: float
    unit_per_ms: float = 1.0

    def __post_init__(self) -> None:
        if not 0.0 < self.exponent < 1.0:
            raise ValueError(f"exponent must be in (0, 1); received {self.exponent}.")
        if self.divisor <= 0:
            raise ValueError("divisor must be positive.")

    def __call__(self, time_ms: float) -> float:
        return (max(0.0, time_ms) * self.unit_per_ms) ** self.exponent / self.divisor


TIME_PENALTIES: dict[str, TimePenalty] = {
    # sqrt(1000 ms) / 1000 ~= 0.0316
    "sqrt": TimePenalty(name="sqrt", exponent=0.5, divisor=1000.0),
    # cbrt over microseconds: cbrt(1e6 us) / 1000 = 0.1
    "cbrt": TimePenalty(name="cbrt", exponent=1.0 / 3.0, divisor=1000.0, unit_per_ms=1000.0),
}


def get_time_penalty(name: str | TimePenalty) -> TimePenalty:
    """Resolve a penalty law by name."""
    if isinstance(name, TimePenalty):
        return name
    key = name.strip().lower()
    if key not in TIME_PENALTIES:
        raise ValueError(f"Unknown time penalty {name!r}. Available: {sorted(TIME_PENALTIES)}")
    return TIME_PENALTIES[key]


def split_move_scores(area: int, move_count: int, winner: Turn) -> tuple[int, int]:
    """Return (cat, catcher) move scores: winner gets area - moves, loser gets moves."""
    winner_share = area - move_count
    if winner is Turn.CAT:
        return winner_share, move_count
    return move_count, winner_share


def compute_user_scores(matches: Iterable[MatchReport], usernames: Sequence[str] = ()) -> list[UserScore]:
    """Fold match reports into ranked per-user scores.

    Move scores are normalized by board area so boards of different sizes
    weigh the same; time penalties are summed as recorded.
    """
    scores: dict[str, UserScore] = {username: UserScore(username) for username in usernames}

    for match in matches:
        cat = scores.setdefault(match.cat, UserScore(match.cat))
        catcher = scores.setdefault(match.catcher, UserScore(match.catcher))
        area = match.area or 1

        cat.cat_move_score += match.cat_move_score / area
        cat.cat_time_score += match.cat_time_score
        catcher.catcher_move_score += match.catcher_move_score / area
        catcher.catcher_time_score += match.catcher_time_score

        if match.cat_move_score > match.catcher_move_score:
            cat.cat_wins += 1
        elif match.catcher_move_score > match.cat_move_score:
            catcher.catcher_wins += 1

    for score in scores.values():
        score.finalize()
    return rank_user_scores(scores.values())


def rank_user_scores(scores: Iterable[UserScore]) -> list[UserScore]:
    """Sort by total score, best first; ties keep their input order."""
    return sorted(scores, key=lambda score: score.total_score, reverse=True)
