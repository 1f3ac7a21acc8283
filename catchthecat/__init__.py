"""Catch-the-Cat game rules and the agent competition built on them."""

from .board import Board, Direction, GameResult, Position, Turn, generate_random_layout
from .codec import compact_report, compress_board, decompress_board, expand_report
from .moves import AgentMove, FailureKind, MoveFailure, MoveSuccess
from .observation import BoardObservation
from .replay import ReplayFrame, replay_match
from .reports import CompetitionReport, InitialState, MatchReport, MoveReport, UserScore
from .scoring import TIME_PENALTIES, TimePenalty, compute_user_scores, get_time_penalty
from .simulator import MatchRun, MatchSimulator, MatchStatus, SimulatorConfig, request_move

__all__ = [
    "AgentMove",
    "Board",
    "BoardObservation",
    "CompetitionReport",
    "Direction",
    "FailureKind",
    "GameResult",
    "InitialState",
    "MatchReport",
    "MatchRun",
    "MatchSimulator",
    "MatchStatus",
    "MoveFailure",
    "MoveReport",
    "MoveSuccess",
    "Position",
    "ReplayFrame",
    "SimulatorConfig",
    "TIME_PENALTIES",
    "TimePenalty",
    "Turn",
    "UserScore",
    "compact_report",
    "compress_board",
    "compute_user_scores",
    "decompress_board",
    "expand_report",
    "generate_random_layout",
    "get_time_penalty",
    "replay_match",
    "request_move",
]
