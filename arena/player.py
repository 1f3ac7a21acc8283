"""Agent interface used by the match simulator."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Mapping


class Agent(ABC):
    """Base interface for external-process, scripted, or baseline players."""

    def __init__(self, agent_id: str):
        self.agent_id = agent_id

    def reset(self, match_id: str, role: str, config: Mapping[str, Any] | None = None) -> None:
        """Reset internal state before a new match."""

    @abstractmethod
    async def act(self, observation: Any) -> Any:
        """Return the next move for `observation`.

        Failures are raised as `AgentExecutionError` subclasses. The caller owns
        the timeout and may cancel the coroutine at any await point.
        """

    def on_match_end(self, report: Any) -> None:
        """Optional callback invoked when the match ends."""

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.agent_id!r})"
