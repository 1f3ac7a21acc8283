"""Structured exceptions shared by the board, the simulator and the agents."""

from __future__ import annotations

from typing import Any


class ArenaError(Exception):
    """Base class for competition-level exceptions."""

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-serializable error payload."""
        return {"type": self.__class__.__name__, "message": str(self)}


class MatchConfigurationError(ArenaError):
    """Raised when a match cannot be set up."""


class BoardConstructionError(MatchConfigurationError):
    """Raised when a layout is not a square grid with side 4k+1."""


class ReportFormatError(ArenaError):
    """Raised when a persisted report document cannot be decoded."""


class IllegalMoveError(ArenaError):
    """Raised when a well-formed move fails board validation."""

    def __init__(self, player: str, move: Any, reason: str | None = None):
        self.player = player
        self.move = move
        self.reason = reason
        message = f"Invalid move by {player}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        payload = super().to_dict()
        payload.update({"player": self.player, "move": getattr(self.move, "to_dict", lambda: self.move)()})
        if self.reason is not None:
            payload["reason"] = self.reason
        return payload


class AgentExecutionError(ArenaError):
    """Raised when an agent fails to produce a move."""

    def __init__(self, agent_id: str, message: str):
        self.agent_id = agent_id
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        payload = super().to_dict()
        payload["agent_id"] = self.agent_id
        return payload


class AgentTimeoutError(AgentExecutionError):
    """Raised by an agent that enforces its own deadline; billed like a simulator timeout."""


class AgentProcessError(AgentExecutionError):
    """Raised when an agent process cannot start or exits abnormally."""

    def __init__(self, agent_id: str, message: str, returncode: int | None = None):
        self.returncode = returncode
        super().__init__(agent_id, message)

    def to_dict(self) -> dict[str, Any]:
        payload = super().to_dict()
        payload["returncode"] = self.returncode
        return payload


class MoveParseError(AgentExecutionError):
    """Raised when agent output lacks a parsable time and move line."""
