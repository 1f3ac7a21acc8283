"""Turn loop for one Catch-the-Cat match."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from pathlib import Path
from time import perf_counter
from typing import Any
from uuid import uuid4

from arena.errors import AgentExecutionError, AgentTimeoutError
from arena.events import EventType, MatchEvent, MatchEventLog
from arena.player import Agent
from arena.serialize import digest

from .board import Board, Position, Turn
from .moves import AgentMove, FailureKind, MoveFailure, MoveSuccess
from .observation import BoardObservation
from .reports import InitialState, MatchReport, MoveReport
from .scoring import DEFAULT_TIME_PENALTY, TimePenalty, get_time_penalty, split_move_scores

logger = logging.getLogger(__name__)

DEFAULT_MOVE_TIMEOUT_SEC = 2.0


class MatchStatus(str, Enum):
    """Match state machine; everything except PLAYING is terminal."""

    PLAYING = "playing"
    CAT_WON = "cat_won"
    CATCHER_WON = "catcher_won"
    CAT_FAILED = "cat_failed"
    CATCHER_FAILED = "catcher_failed"
    MOVE_LIMIT = "move_limit"


@dataclass(frozen=True)
class SimulatorConfig:
    """Runtime configuration for match execution."""

    move_timeout_sec: float = DEFAULT_MOVE_TIMEOUT_SEC
    max_moves: int | None = None
    time_penalty: str | TimePenalty = DEFAULT_TIME_PENALTY
    event_log_dir: str | Path | None = None

    def __post_init__(self) -> None:
        if self.move_timeout_sec <= 0:
            raise ValueError("move_timeout_sec must be positive.")
        if self.max_moves is not None and self.max_moves < 0:
            raise ValueError("max_moves must be >= 0.")


@dataclass(frozen=True)
class MatchRun:
    """Complete execution artifact for one match."""

    match_id: str
    report: MatchReport
    status: MatchStatus
    events: list[MatchEvent] = field(default_factory=list)
    log_path: str | None = None


async def request_move(agent: Agent, observation: BoardObservation, timeout_sec: float) -> tuple[AgentMove | MoveFailure, float]:
    """Ask `agent` for a move under a wall-clock limit.

    Returns the agent's move or a failure, plus the time to bill in ms.
    `asyncio.wait_for` is the only timer: on expiry it cancels `act`, whose
    own cleanup kills any child process before this returns.
    """
    limit_ms = timeout_sec * 1000.0
    start = perf_counter()
    try:
        move = await asyncio.wait_for(agent.act(observation), timeout=timeout_sec)
    except (asyncio.TimeoutError, AgentTimeoutError):
        return MoveFailure(FailureKind.TIMEOUT, "Timeout exceeded"), limit_ms
    except AgentExecutionError as exc:
        return MoveFailure(FailureKind.PROCESS_ERROR, str(exc)), _elapsed_ms(start)
    except Exception as exc:
        logger.warning("Agent %s raised while choosing a move", agent.agent_id, exc_info=True)
        return MoveFailure(FailureKind.PROCESS_ERROR, f"Agent act() failed: {exc}"), _elapsed_ms(start)

    elapsed_ms = _elapsed_ms(start)
    # The process may exit in time and still overrun once output is collected.
    if elapsed_ms >= limit_ms:
        return MoveFailure(FailureKind.TIMEOUT, "Timeout exceeded"), elapsed_ms
    if not isinstance(move, AgentMove):
        return MoveFailure(FailureKind.PROCESS_ERROR, f"Agent returned {type(move).__name__}, expected AgentMove"), elapsed_ms
    if not isinstance(move.position, Position):
        kind = type(move.position).__name__
        return MoveFailure(FailureKind.PROCESS_ERROR, f"Agent returned a {kind} move, expected Position"), elapsed_ms
    return move, elapsed_ms


def _elapsed_ms(start: float) -> float:
    return (perf_counter() - start) * 1000.0


class MatchSimulator:
    """Plays matches to completion, scoring every move."""

    def __init__(self, config: SimulatorConfig | None = None):
        self.config = config or SimulatorConfig()
        self.time_penalty = get_time_penalty(self.config.time_penalty)

    async def run_match(
        self,
        cat: Agent,
        catcher: Agent,
        initial_state: InitialState,
        *,
        match_id: str | None = None,
        log_path: str | Path | None = None,
    ) -> MatchRun:
        """Play one match; raises `BoardConstructionError` before any move on a bad layout."""
        board = Board(initial_state.board, initial_state.cat_position, cat.agent_id, catcher.agent_id, initial_state.turn)
        initial_state = replace(initial_state, board=board.layout())
        log = MatchEventLog(match_id or f"{cat.agent_id}-vs-{catcher.agent_id}-{uuid4().hex[:8]}")
        agents = {Turn.CAT: cat, Turn.CATCHER: catcher}
        report = MatchReport(cat=cat.agent_id, catcher=catcher.agent_id, initial_state=initial_state)
        max_moves = board.area if self.config.max_moves is None else self.config.max_moves

        log.emit(
            EventType.MATCH_START,
            0,
            cat=cat.agent_id,
            catcher=catcher.agent_id,
            initial_state=initial_state,
            initial_board_digest=digest(board.board_string()),
        )
        for turn, agent in agents.items():
            agent.reset(log.match_id, turn.value, {"side": board.side, "move_timeout_sec": self.config.move_timeout_sec})

        logger.info("Running match %s: %s (cat) vs %s (catcher)", log.match_id, cat.agent_id, catcher.agent_id)
        status = MatchStatus.PLAYING
        move_count = 0

        while move_count < max_moves and not board.game_result().is_over:
            turn = board.turn
            agent = agents[turn]
            observation = BoardObservation.from_board(board, move_index=move_count)
            outcome, time_ms = await request_move(agent, observation, self.config.move_timeout_sec)

            if isinstance(outcome, AgentMove) and not board.validate_move(outcome.position):
                outcome = MoveFailure(
                    FailureKind.INVALID_MOVE,
                    f"Invalid move: ({outcome.position.x}, {outcome.position.y})",
                    position=outcome.position,
                )

            if isinstance(outcome, MoveFailure):
                report.moves.append(MoveReport(username=agent.agent_id, turn=turn, time=time_ms, result=outcome))
                event_type = EventType.ILLEGAL_MOVE if outcome.kind is FailureKind.INVALID_MOVE else EventType.AGENT_ERROR
                log.emit(event_type, move_count, player=agent.agent_id, turn=turn, failure=outcome)
                logger.warning("%s (%s) failed: %s", agent.agent_id, turn.value, outcome.reason)
                report.cat_move_score, report.catcher_move_score = split_move_scores(board.area, move_count, turn.opponent)
                status = MatchStatus.CAT_FAILED if turn is Turn.CAT else MatchStatus.CATCHER_FAILED
                break

            # Bill the mover before the turn flips.
            penalty = self.time_penalty(outcome.time_ms)
            if turn is Turn.CAT:
                report.cat_time_score += penalty
            else:
                report.catcher_time_score += penalty

            board.move(outcome.position)
            move_count += 1
            report.moves.append(
                MoveReport(username=agent.agent_id, turn=turn, time=outcome.time_ms, result=MoveSuccess(outcome.position))
            )
            log.emit(
                EventType.TURN,
                move_count,
                player=agent.agent_id,
                turn=turn,
                move=outcome.position,
                time_ms=outcome.time_ms,
                wall_ms=time_ms,
                observation_digest=observation.observation_digest(),
                board_digest=digest(board.board_string()),
            )
            logger.debug("%s (%s) moved to (%s) in %.3fms", agent.agent_id, turn.value, outcome.position, outcome.time_ms)

        if status is MatchStatus.PLAYING:
            result = board.game_result()
            if result.winner is not None:
                report.cat_move_score, report.catcher_move_score = split_move_scores(board.area, move_count, result.winner)
                status = MatchStatus.CAT_WON if result.winner is Turn.CAT else MatchStatus.CATCHER_WON
                logger.info("Game over: %s wins - %s", result.winner.value, result.reason)
            else:
                status = MatchStatus.MOVE_LIMIT
                logger.warning("Match %s hit the %d-move limit without a result", log.match_id, max_moves)

        log.emit(
            EventType.TERMINAL,
            move_count,
            status=status,
            cat_move_score=report.cat_move_score,
            catcher_move_score=report.catcher_move_score,
            cat_time_score=report.cat_time_score,
            catcher_time_score=report.catcher_time_score,
            final_board_digest=digest(board.board_string()),
        )
        logger.info("Match completed: cat score %d, catcher score %d", report.cat_move_score, report.catcher_move_score)
        return self._finish(agents, log, report, status, log_path)

    def _finish(
        self,
        agents: dict[Turn, Agent],
        log: MatchEventLog,
        report: MatchReport,
        status: MatchStatus,
        log_path: str | Path | None,
    ) -> MatchRun:
        if log_path is None and self.config.event_log_dir is not None:
            log_path = Path(self.config.event_log_dir) / f"{log.match_id}.jsonl"
        written = log.write(log_path) if log_path is not None else None

        for agent in agents.values():
            try:
                agent.on_match_end(report)
            except Exception:
                logger.warning("on_match_end hook failed for %s", agent.agent_id, exc_info=True)
        return MatchRun(
            match_id=log.match_id,
            report=report,
            status=status,
            events=list(log),
            log_path=str(written) if written is not None else None,
        )


def run_match_sync(simulator: MatchSimulator, cat: Agent, catcher: Agent, initial_state: InitialState, **kwargs: Any) -> MatchRun:
    """Blocking convenience wrapper around `MatchSimulator.run_match`."""
    return asyncio.run(simulator.run_match(cat, catcher, initial_state, **kwargs))
