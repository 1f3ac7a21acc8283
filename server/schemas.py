"""Pydantic response schemas for the report API."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

TurnName = Literal["cat", "catcher"]


class HighScore(BaseModel):
    """One row of the ranking."""

    rank: int
    username: str
    cat_move_score: float
    catcher_move_score: float
    cat_time_score: float
    catcher_time_score: float
    cat_score: float
    catcher_score: float
    total_score: float
    cat_wins: int = 0
    catcher_wins: int = 0


class MatchSummary(BaseModel):
    """Headline numbers for one match."""

    index: int
    cat: str
    catcher: str
    moves: int
    cat_move_score: int
    catcher_move_score: int
    cat_time_score: float
    catcher_time_score: float
    error: str | None = None


class MatchPage(BaseModel):
    """A page of match summaries."""

    total: int
    page: int
    per_page: int
    matches: list[MatchSummary] = Field(default_factory=list)


class ReplayFrameModel(BaseModel):
    """Board state after `move_index` applied moves."""

    move_index: int
    board: str
    cat_position: dict[str, int]
    turn: TurnName
    is_over: bool
    winner: TurnName | None = None
    reason: str | None = None
    move: dict | None = None


class ReplayResponse(BaseModel):
    """Replay of one match."""

    index: int
    cat: str
    catcher: str
    side: int
    frames: list[ReplayFrameModel]
