"""In-process agent driven by a policy callable."""

from __future__ import annotations

import inspect
from time import perf_counter
from typing import Any, Awaitable, Callable

from arena.player import Agent

from ..board import Position
from ..moves import AgentMove
from ..observation import BoardObservation

Policy = Callable[[BoardObservation], Position | Awaitable[Position]]


class ScriptedAgent(Agent):
    """Runs a user-provided policy; its wall time is reported as the move time."""

    def __init__(self, agent_id: str, policy: Policy | None = None):
        super().__init__(agent_id=agent_id)
        self.policy = policy

    async def act(self, observation: BoardObservation) -> AgentMove:
        if self.policy is None:
            raise NotImplementedError("ScriptedAgent requires a policy(observation) callable.")
        start = perf_counter()
        position: Any = self.policy(observation)
        if inspect.isawaitable(position):
            position = await position
        return AgentMove(position=position, time_ms=(perf_counter() - start) * 1000.0)
