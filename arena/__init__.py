"""Game-agnostic plumbing: errors, serialization, events, and the agent base class."""

from .errors import (
    AgentExecutionError,
    AgentProcessError,
    AgentTimeoutError,
    ArenaError,
    BoardConstructionError,
    IllegalMoveError,
    MatchConfigurationError,
    MoveParseError,
    ReportFormatError,
)
from .events import EventType, MatchEvent, MatchEventLog, read_event_log
from .observation import Observation
from .player import Agent

__all__ = [
    "Agent",
    "AgentExecutionError",
    "AgentProcessError",
    "AgentTimeoutError",
    "ArenaError",
    "BoardConstructionError",
    "EventType",
    "IllegalMoveError",
    "MatchConfigurationError",
    "MatchEvent",
    "MatchEventLog",
    "MoveParseError",
    "Observation",
    "ReportFormatError",
    "read_event_log",
]
