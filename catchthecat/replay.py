"""Rebuild every board state of a recorded match."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from arena.errors import IllegalMoveError

from .board import Board, GameResult, Position, Turn
from .moves import MoveFailure
from .reports import MatchReport, MoveReport


@dataclass(frozen=True)
class ReplayFrame:
    """Board state after `move_index` applied moves."""

    move_index: int
    board: str
    cat_position: Position
    turn: Turn
    result: GameResult
    move: MoveReport | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "move_index": self.move_index,
            "board": self.board,
            "cat_position": self.cat_position.to_dict(),
            "turn": self.turn.value,
            "is_over": self.result.is_over,
            "winner": self.result.winner.value if self.result.winner is not None else None,
            "reason": self.result.reason,
            "move": self.move.to_dict() if self.move is not None else None,
        }


def _frame(board: Board, move_index: int, move: MoveReport | None) -> ReplayFrame:
    return ReplayFrame(
        move_index=move_index,
        board=board.board_string(),
        cat_position=board.cat_position,
        turn=board.turn,
        result=board.game_result(),
        move=move,
    )


def replay_match(report: MatchReport) -> list[ReplayFrame]:
    """Return the initial frame plus one frame per recorded move.

    A recorded failure is attached to a frame whose board is unchanged.
    Raises `IllegalMoveError` if a recorded successful move does not replay,
    which means the report does not match its initial state.
    """
    state = report.initial_state
    board = Board(state.board, state.cat_position, report.cat, report.catcher, state.turn)
    frames = [_frame(board, 0, None)]
    applied = 0
    for move in report.moves:
        if isinstance(move.result, MoveFailure):
            frames.append(_frame(board, applied, move))
            break
        if move.turn is not board.turn:
            raise IllegalMoveError(move.username, move.move, f"recorded {move.turn.value} move on {board.turn.value}'s turn")
        board.move(move.result.position)
        applied += 1
        frames.append(_frame(board, applied, move))
    return frames

