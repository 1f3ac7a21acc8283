"""Random baseline agent."""

from __future__ import annotations

import hashlib
import random
from time import perf_counter
from typing import Any, Mapping

from arena.errors import AgentExecutionError
from arena.player import Agent

from ..moves import AgentMove
from ..observation import BoardObservation


class RandomAgent(Agent):
    """Chooses uniformly among legal moves."""

    def __init__(self, agent_id: str, seed: int | None = None):
        super().__init__(agent_id=agent_id)
        self.seed = seed
        self._rng = random.Random(seed)

    def reset(self, match_id: str, role: str, config: Mapping[str, Any] | None = None) -> None:
        """Derive a per-match, per-role RNG stream when seeded."""
        if self.seed is None:
            return
        material = f"{self.seed}:{match_id}:{self.agent_id}:{role}".encode("utf-8")
        self._rng.seed(int.from_bytes(hashlib.sha256(material).digest()[:8], byteorder="big", signed=False))

    async def act(self, observation: BoardObservation) -> AgentMove:
        start = perf_counter()
        options = observation.to_board().valid_moves()
        if not options:
            raise AgentExecutionError(self.agent_id, "No legal moves available.")
        position = self._rng.choice(options)
        return AgentMove(position=position, time_ms=(perf_counter() - start) * 1000.0)
