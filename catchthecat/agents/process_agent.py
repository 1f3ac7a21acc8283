"""Agent backed by an external executable, one process per move."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Sequence

from arena.errors import AgentProcessError
from arena.player import Agent

from ..moves import TIME_UNITS, AgentMove, parse_agent_output
from ..observation import BoardObservation

logger = logging.getLogger(__name__)


class ProcessAgent(Agent):
    """Runs ``<command> --headless --turn T --size N --board B`` and parses stdout.

    The coroutine has a single resolution point. If it is cancelled (the
    simulator's move timer fired) the child is killed with SIGKILL and reaped
    before the cancellation propagates, so no process outlives its move.
    """

    def __init__(self, agent_id: str, command: str | Path | Sequence[str], reported_time_unit: str = "ms"):
        super().__init__(agent_id=agent_id)
        if isinstance(command, (str, Path)):
            self.command = [str(command)]
        else:
            self.command = [str(part) for part in command]
        if not self.command:
            raise ValueError("ProcessAgent requires a non-empty command.")
        if reported_time_unit not in TIME_UNITS:
            raise ValueError(f"Unknown time unit {reported_time_unit!r}; expected one of {sorted(TIME_UNITS)}.")
        self.reported_time_unit = reported_time_unit

    def build_args(self, observation: BoardObservation) -> list[str]:
        return [
            *self.command,
            "--headless",
            "--turn",
            observation.turn.value,
            "--size",
            str(observation.side),
            "--board",
            observation.board,
        ]

    async def act(self, observation: BoardObservation) -> AgentMove:
        args = self.build_args(observation)
        try:
            process = await asyncio.create_subprocess_exec(
                *args,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as exc:
            raise AgentProcessError(self.agent_id, f"Could not start {args[0]}: {exc}") from exc

        try:
            stdout, stderr = await process.communicate()
        finally:
            if process.returncode is None:
                process.kill()
                await process.wait()
                logger.debug("Killed %s (pid %s) before it finished", self.agent_id, process.pid)

        if process.returncode != 0:
            detail = stderr.decode("utf-8", errors="replace").strip()
            message = f"Process exited with code {process.returncode}"
            if detail:
                message = f"{message}: {detail[-500:]}"
            raise AgentProcessError(self.agent_id, message, returncode=process.returncode)

        return parse_agent_output(
            stdout.decode("utf-8", errors="replace"),
            agent_id=self.agent_id,
            time_unit=self.reported_time_unit,
        )
