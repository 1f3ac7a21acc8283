"""Match and competition report models."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from .board import Position, Turn
from .moves import MoveFailure, MoveResult, MoveSuccess


@dataclass(frozen=True)
class InitialState:
    """Everything needed to rebuild the board a match started from."""

    board: str
    cat_position: Position = Position(0, 0)
    turn: Turn = Turn.CAT

    @property
    def area(self) -> int:
        """Cell count; layout whitespace is not a cell."""
        return len("".join(self.board.split()))

    def to_dict(self) -> dict[str, Any]:
        return {"board": self.board, "cat_position": self.cat_position.to_dict(), "turn": self.turn.value}


@dataclass(frozen=True)
class MoveReport:
    """One move request: who acted, how long it took, and what came of it."""

    username: str
    turn: Turn
    time: float
    result: MoveResult

    @property
    def move(self) -> Position | None:
        return self.result.position

    @property
    def error(self) -> str | None:
        return self.result.reason if isinstance(self.result, MoveFailure) else None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"username": self.username, "turn": self.turn.value, "time": self.time}
        payload.update(self.result.to_dict())
        return payload


@dataclass
class MatchReport:
    """Move log and running scores for one match."""

    cat: str
    catcher: str
    initial_state: InitialState
    moves: list[MoveReport] = field(default_factory=list)
    cat_move_score: int = 0
    catcher_move_score: int = 0
    cat_time_score: float = 0.0
    catcher_time_score: float = 0.0

    @property
    def area(self) -> int:
        return self.initial_state.area

    @property
    def move_count(self) -> int:
        return sum(1 for move in self.moves if isinstance(move.result, MoveSuccess))

    @property
    def failure(self) -> MoveReport | None:
        """The move report that ended the match early, if any."""
        if self.moves and isinstance(self.moves[-1].result, MoveFailure):
            return self.moves[-1]
        return None

    def involves(self, username: str) -> bool:
        return username in (self.cat, self.catcher)

    def to_dict(self) -> dict[str, Any]:
        return {
            "cat": self.cat,
            "catcher": self.catcher,
            "initial_state": self.initial_state.to_dict(),
            "moves": [move.to_dict() for move in self.moves],
            "cat_move_score": self.cat_move_score,
            "catcher_move_score": self.catcher_move_score,
            "cat_time_score": self.cat_time_score,
            "catcher_time_score": self.catcher_time_score,
        }


@dataclass
class UserScore:
    """Per-user totals across every match, split by role."""

    username: str
    cat_move_score: float = 0.0
    catcher_move_score: float = 0.0
    cat_time_score: float = 0.0
    catcher_time_score: float = 0.0
    cat_score: float = 0.0
    catcher_score: float = 0.0
    total_score: float = 0.0
    cat_wins: int = 0
    catcher_wins: int = 0

    def finalize(self) -> None:
        """Recompute the derived scores from the role totals."""
        self.cat_score = self.cat_move_score - self.cat_time_score
        self.catcher_score = self.catcher_move_score - self.catcher_time_score
        self.total_score = self.cat_score + self.catcher_score

    def to_dict(self) -> dict[str, Any]:
        return {
            "username": self.username,
            "cat_move_score": self.cat_move_score,
            "catcher_move_score": self.catcher_move_score,
            "cat_time_score": self.cat_time_score,
            "catcher_time_score": self.catcher_time_score,
            "cat_score": self.cat_score,
            "catcher_score": self.catcher_score,
            "total_score": self.total_score,
            "cat_wins": self.cat_wins,
            "catcher_wins": self.catcher_wins,
        }


@dataclass
class CompetitionReport:
    """All matches plus the per-user score table."""

    matches: list[MatchReport] = field(default_factory=list)
    high_scores: list[UserScore] = field(default_factory=list)

    def ranked(self) -> list[UserScore]:
        """High scores sorted by total score, best first."""
        return sorted(self.high_scores, key=lambda score: score.total_score, reverse=True)

    def to_dict(self) -> dict[str, Any]:
        return {
            "matches": [match.to_dict() for match in self.matches],
            "high_scores": [score.to_dict() for score in self.high_scores],
        }
