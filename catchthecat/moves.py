"""Move results and the agent stdout protocol."""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any

from arena.errors import MoveParseError

from .board import Position

_MOVE_LINE = re.compile(r"^(-?\d+),(-?\d+)$")

# Multipliers converting agent-reported processing time to milliseconds.
TIME_UNITS: dict[str, float] = {"ms": 1.0, "us": 0.001, "s": 1000.0}


class FailureKind(str, Enum):
    """Ways a move request can end a match."""

    INVALID_MOVE = "invalid_move"
    PROCESS_ERROR = "process_error"
    TIMEOUT = "timeout"


@dataclass(frozen=True)
class AgentMove:
    """What an agent hands back: a target and the time it spent, in ms."""

    position: Position
    time_ms: float


@dataclass(frozen=True)
class MoveSuccess:
    """A move that passed validation and was applied."""

    position: Position

    @property
    def ok(self) -> bool:
        return True

    def to_dict(self) -> dict[str, Any]:
        return {"move": self.position.to_dict()}


@dataclass(frozen=True)
class MoveFailure:
    """A move request that ended the match.

    `position` holds the attempted target when the agent produced one.
    """

    kind: FailureKind
    reason: str
    position: Position | None = None

    @property
    def ok(self) -> bool:
        return False

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"kind": self.kind.value, "error": self.reason}
        if self.position is not None:
            payload["move"] = self.position.to_dict()
        return payload


MoveResult = MoveSuccess | MoveFailure


def parse_agent_output(output: str, agent_id: str = "agent", time_unit: str = "ms") -> AgentMove:
    """Parse agent stdout: last non-blank line `x,y`, the one before it the time.

    Earlier lines (typically a printed board) are ignored.
    """
    if time_unit not in TIME_UNITS:
        raise ValueError(f"Unknown time unit {time_unit!r}; expected one of {sorted(TIME_UNITS)}.")

    lines = [line.strip() for line in output.splitlines() if line.strip()]
    if len(lines) < 2:
        raise MoveParseError(agent_id, "Parse error: expected at least 2 lines in output (time and move).")

    match = _MOVE_LINE.match(lines[-1])
    if match is None:
        raise MoveParseError(agent_id, f"Parse error: could not parse move coordinates from {lines[-1]!r}.")

    try:
        reported = float(lines[-2])
    except ValueError as exc:
        raise MoveParseError(agent_id, f"Parse error: could not parse processing time from {lines[-2]!r}.") from exc
    if not math.isfinite(reported) or reported < 0:
        raise MoveParseError(agent_id, f"Parse error: processing time {lines[-2]!r} is not a finite non-negative number.")

    return AgentMove(
        position=Position(int(match.group(1)), int(match.group(2))),
        time_ms=reported * TIME_UNITS[time_unit],
    )
