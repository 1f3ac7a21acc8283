"""Match event records and their JSONL log."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from time import time
from typing import Any, Iterator, Mapping

from .serialize import json_dumps, to_serializable


class EventType(str, Enum):
    """Event types emitted by the match simulator."""

    MATCH_START = "match_start"
    TURN = "turn"
    ILLEGAL_MOVE = "illegal_move"
    AGENT_ERROR = "agent_error"
    TERMINAL = "terminal"


def _now_ms() -> int:
    return int(time() * 1000)


@dataclass(frozen=True)
class MatchEvent:
    """One line of a match log; `move_index` counts moves applied so far."""

    event_type: EventType
    match_id: str
    move_index: int
    payload: dict[str, Any] = field(default_factory=dict)
    timestamp_ms: int = field(default_factory=_now_ms)

    def to_dict(self) -> dict[str, Any]:
        return {
            "event_type": self.event_type.value,
            "match_id": self.match_id,
            "move_index": self.move_index,
            "timestamp_ms": self.timestamp_ms,
            "payload": to_serializable(self.payload),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "MatchEvent":
        return cls(
            event_type=EventType(data["event_type"]),
            match_id=str(data["match_id"]),
            move_index=int(data["move_index"]),
            payload=dict(data.get("payload") or {}),
            timestamp_ms=int(data.get("timestamp_ms", 0)),
        )


class MatchEventLog:
    """Ordered events of one match."""

    def __init__(self, match_id: str):
        self.match_id = match_id
        self.events: list[MatchEvent] = []

    def emit(self, event_type: EventType, move_index: int, **payload: Any) -> MatchEvent:
        event = MatchEvent(event_type=event_type, match_id=self.match_id, move_index=move_index, payload=payload)
        self.events.append(event)
        return event

    def __iter__(self) -> Iterator[MatchEvent]:
        return iter(self.events)

    def __len__(self) -> int:
        return len(self.events)

    def write(self, path: str | Path) -> Path:
        """Write one JSON object per line, replacing any previous log at `path`."""
        output_path = Path(path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        lines = [json_dumps(event.to_dict()) + "\n" for event in self.events]
        output_path.write_text("".join(lines), encoding="utf-8")
        return output_path


def read_event_log(path: str | Path) -> list[MatchEvent]:
    """Load events written by `MatchEventLog.write`; blank lines are skipped."""
    lines = Path(path).read_text(encoding="utf-8").splitlines()
    return [MatchEvent.from_dict(json.loads(line)) for line in lines if line.strip()]
