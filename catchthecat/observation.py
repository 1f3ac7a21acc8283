"""Observation handed to agents on their turn."""

from __future__ import annotations

from dataclasses import dataclass

from arena.observation import Observation

from .board import Board, Position, Turn


@dataclass(frozen=True)
class BoardObservation(Observation):
    """Full board view; the game has no hidden information."""

    board: str
    turn: Turn
    side: int
    cat_position: Position
    move_index: int

    @classmethod
    def from_board(cls, board: Board, move_index: int = 0) -> "BoardObservation":
        return cls(
            board=board.board_string(),
            turn=board.turn,
            side=board.side,
            cat_position=board.cat_position,
            move_index=move_index,
        )

    def to_board(self) -> Board:
        """Rebuild a scratch board, e.g. for in-process agents to search on."""
        return Board(self.board, self.cat_position, turn=self.turn)
