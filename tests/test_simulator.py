"""Match loop tests: scoring, failures, timeouts and event logs."""

from __future__ import annotations

import asyncio
import random
import time
from typing import Any, Callable

import pytest

from arena.errors import AgentExecutionError, AgentTimeoutError, BoardConstructionError
from arena.events import EventType, read_event_log
from arena.player import Agent
from catchthecat.agents import RandomAgent, ScriptedAgent
from catchthecat.board import Direction, Position, Turn, generate_random_layout, neighbor
from catchthecat.moves import AgentMove, FailureKind, MoveFailure, MoveSuccess
from catchthecat.observation import BoardObservation
from catchthecat.reports import InitialState
from catchthecat.scoring import compute_user_scores
from catchthecat.simulator import MatchSimulator, MatchStatus, SimulatorConfig, request_move, run_match_sync


def _east(observation: BoardObservation) -> Position:
    return Position(observation.cat_position.x + 1, observation.cat_position.y)


def _first_free(observation: BoardObservation) -> Position:
    return observation.to_board().valid_moves()[0]


class _FixedTimeAgent(Agent):
    """Reports a fixed processing time and records lifecycle hooks."""

    def __init__(self, agent_id: str, policy: Callable[[BoardObservation], Any], time_ms: float):
        super().__init__(agent_id=agent_id)
        self.policy = policy
        self.time_ms = time_ms
        self.roles: list[str] = []
        self.finished: list[Any] = []
        self.calls = 0

    def reset(self, match_id: str, role: str, config: Any = None) -> None:
        self.roles.append(role)

    async def act(self, observation: BoardObservation) -> Any:
        self.calls += 1
        return AgentMove(self.policy(observation), self.time_ms)

    def on_match_end(self, report: Any) -> None:
        self.finished.append(report)


def _run(simulator: MatchSimulator, cat: Agent, catcher: Agent, state: InitialState, **kwargs: Any):
    return run_match_sync(simulator, cat, catcher, state, **kwargs)


def test_cat_reaching_edge_scores_area_minus_moves() -> None:
    run = _run(MatchSimulator(), ScriptedAgent("runner", _east), ScriptedAgent("blocker", _first_free), InitialState("." * 25))

    assert run.status is MatchStatus.CAT_WON
    assert [move.turn for move in run.report.moves] == [Turn.CAT, Turn.CATCHER, Turn.CAT]
    assert run.report.moves[-1].result == MoveSuccess(Position(2, 0))
    assert run.report.moves[1].move == Position(-2, -2)
    assert run.report.cat_move_score == 22
    assert run.report.catcher_move_score == 3


def test_multiline_layout_is_stored_and_scored_as_its_cells() -> None:
    layout = "\n".join(["....."] * 5)

    run = _run(MatchSimulator(), ScriptedAgent("runner", _east), ScriptedAgent("blocker", _first_free), InitialState(layout))

    assert run.status is MatchStatus.CAT_WON
    assert run.report.initial_state.board == "." * 25
    assert run.report.area == 25
    scores = {score.username: score for score in compute_user_scores([run.report])}
    assert scores["runner"].cat_move_score == pytest.approx(22 / 25)
    assert scores["blocker"].catcher_move_score == pytest.approx(3 / 25)


def test_trapping_the_cat_gives_catcher_the_larger_share() -> None:
    open_side = neighbor(Position(0, 0), Direction.EAST)
    cells = ["."] * 25
    for direction in Direction:
        target = neighbor(Position(0, 0), direction)
        if target != open_side:
            cells[(target.y + 2) * 5 + target.x + 2] = "#"
    state = InitialState("".join(cells), turn=Turn.CATCHER)
    catcher = ScriptedAgent("blocker", lambda _: open_side)

    run = _run(MatchSimulator(), ScriptedAgent("cat", _east), catcher, state)

    assert run.status is MatchStatus.CATCHER_WON
    assert run.report.cat_move_score == 1
    assert run.report.catcher_move_score == 24


def test_game_already_over_requests_no_moves() -> None:
    cat = _FixedTimeAgent("cat", _east, 1.0)
    catcher = _FixedTimeAgent("catcher", _first_free, 1.0)

    run = _run(MatchSimulator(), cat, catcher, InitialState("." * 25, cat_position=Position(2, 0)))

    assert cat.calls == 0
    assert catcher.calls == 0
    assert run.report.moves == []
    assert run.status is MatchStatus.CAT_WON
    assert (run.report.cat_move_score, run.report.catcher_move_score) == (25, 0)


def test_time_penalty_is_billed_to_the_mover() -> None:
    cat = _FixedTimeAgent("cat", _east, 100.0)
    catcher = _FixedTimeAgent("catcher", _first_free, 900.0)

    run = _run(MatchSimulator(SimulatorConfig(time_penalty="sqrt")), cat, catcher, InitialState("." * 25))

    assert [move.time for move in run.report.moves] == [100.0, 900.0, 100.0]
    assert run.report.cat_time_score == pytest.approx(0.02)
    assert run.report.catcher_time_score == pytest.approx(0.03)


def test_cat_invalid_move_ends_match_with_zero_cat_score() -> None:
    cat = ScriptedAgent("cat", lambda _: Position(2, 2))

    run = _run(MatchSimulator(), cat, ScriptedAgent("catcher", _first_free), InitialState("." * 25))

    assert run.status is MatchStatus.CAT_FAILED
    assert len(run.report.moves) == 1
    failure = run.report.moves[0].result
    assert isinstance(failure, MoveFailure)
    assert failure.kind is FailureKind.INVALID_MOVE
    assert failure.position == Position(2, 2)
    assert run.report.moves[0].error == "Invalid move: (2, 2)"
    assert (run.report.cat_move_score, run.report.catcher_move_score) == (0, 25)
    event_types = [event.event_type for event in run.events]
    assert EventType.ILLEGAL_MOVE in event_types
    assert EventType.AGENT_ERROR not in event_types


def test_catcher_blocking_the_cat_cell_forfeits() -> None:
    catcher = ScriptedAgent("catcher", lambda observation: observation.cat_position)

    run = _run(MatchSimulator(), ScriptedAgent("cat", _east), catcher, InitialState("." * 25))

    assert run.status is MatchStatus.CATCHER_FAILED
    assert run.report.failure is run.report.moves[-1]
    assert run.report.move_count == 1
    assert (run.report.cat_move_score, run.report.catcher_move_score) == (24, 1)


def test_no_moves_are_requested_after_a_failure() -> None:
    cat = _FixedTimeAgent("cat", lambda _: Position(0, 0), 1.0)
    catcher = _FixedTimeAgent("catcher", _first_free, 1.0)

    run = _run(MatchSimulator(), cat, catcher, InitialState("." * 25))

    assert cat.calls == 1
    assert catcher.calls == 0
    assert run.report.failure is not None


def test_agent_execution_error_is_a_process_error() -> None:
    def crash(_: BoardObservation) -> Position:
        raise AgentExecutionError("cat", "exited with code 1")

    run = _run(MatchSimulator(), ScriptedAgent("cat", crash), ScriptedAgent("catcher", _first_free), InitialState("." * 25))

    failure = run.report.moves[0].result
    assert isinstance(failure, MoveFailure)
    assert failure.kind is FailureKind.PROCESS_ERROR
    assert failure.reason == "exited with code 1"
    assert failure.position is None
    assert EventType.AGENT_ERROR in [event.event_type for event in run.events]


def test_unexpected_exception_is_a_process_error() -> None:
    def broken(_: BoardObservation) -> Position:
        raise RuntimeError("nope")

    run = _run(MatchSimulator(), ScriptedAgent("cat", _east), ScriptedAgent("catcher", broken), InitialState("." * 25))

    assert run.status is MatchStatus.CATCHER_FAILED
    failure = run.report.moves[-1].result
    assert isinstance(failure, MoveFailure)
    assert failure.kind is FailureKind.PROCESS_ERROR
    assert "nope" in failure.reason


def test_slow_agent_times_out_exactly_once() -> None:
    async def slow(_: BoardObservation) -> Position:
        await asyncio.sleep(5)
        return Position(1, 0)

    simulator = MatchSimulator(SimulatorConfig(move_timeout_sec=0.05))
    run = _run(simulator, ScriptedAgent("cat", slow), ScriptedAgent("catcher", _first_free), InitialState("." * 25))

    assert run.status is MatchStatus.CAT_FAILED
    assert len(run.report.moves) == 1
    move = run.report.moves[0]
    assert isinstance(move.result, MoveFailure)
    assert move.result.kind is FailureKind.TIMEOUT
    assert move.result.reason == "Timeout exceeded"
    assert move.time == pytest.approx(50.0)
    assert run.report.cat_time_score == 0.0


def test_move_finishing_after_the_limit_is_still_a_timeout() -> None:
    def blocking(observation: BoardObservation) -> Position:
        time.sleep(0.12)
        return _east(observation)

    observation = BoardObservation(board="." * 12 + "C" + "." * 12, turn=Turn.CAT, side=5, cat_position=Position(0, 0), move_index=0)
    outcome, time_ms = asyncio.run(request_move(ScriptedAgent("cat", blocking), observation, 0.05))

    assert isinstance(outcome, MoveFailure)
    assert outcome.kind is FailureKind.TIMEOUT
    assert time_ms >= 50.0


def test_non_move_return_value_is_a_process_error() -> None:
    class _Chatty(Agent):
        async def act(self, observation: Any) -> Any:
            return "1,0"

    observation = BoardObservation(board="." * 12 + "C" + "." * 12, turn=Turn.CAT, side=5, cat_position=Position(0, 0), move_index=0)
    outcome, _ = asyncio.run(request_move(_Chatty("chatty"), observation, 1.0))

    assert isinstance(outcome, MoveFailure)
    assert outcome.kind is FailureKind.PROCESS_ERROR


def test_non_position_target_is_a_process_error() -> None:
    run = _run(MatchSimulator(), ScriptedAgent("cat", _east), ScriptedAgent("catcher", lambda _: (1, 1)), InitialState("." * 25))

    assert run.status is MatchStatus.CATCHER_FAILED
    failure = run.report.moves[-1].result
    assert isinstance(failure, MoveFailure)
    assert failure.kind is FailureKind.PROCESS_ERROR
    assert "tuple" in failure.reason
    assert run.report.cat_move_score + run.report.catcher_move_score == 25


def test_agent_raised_timeout_is_billed_the_limit() -> None:
    def overrun(_: BoardObservation) -> Position:
        raise AgentTimeoutError("cat", "deadline passed")

    observation = BoardObservation(board="." * 12 + "C" + "." * 12, turn=Turn.CAT, side=5, cat_position=Position(0, 0), move_index=0)
    outcome, time_ms = asyncio.run(request_move(ScriptedAgent("cat", overrun), observation, 1.5))

    assert isinstance(outcome, MoveFailure)
    assert outcome.kind is FailureKind.TIMEOUT
    assert time_ms == pytest.approx(1500.0)


def test_move_limit_stops_an_unfinished_match() -> None:
    simulator = MatchSimulator(SimulatorConfig(max_moves=1))

    run = _run(simulator, ScriptedAgent("cat", _east), ScriptedAgent("catcher", _first_free), InitialState("." * 25))

    assert run.status is MatchStatus.MOVE_LIMIT
    assert run.report.move_count == 1
    assert (run.report.cat_move_score, run.report.catcher_move_score) == (0, 0)


def test_lifecycle_hooks_receive_roles_and_report() -> None:
    cat = _FixedTimeAgent("cat", _east, 1.0)
    catcher = _FixedTimeAgent("catcher", _first_free, 1.0)

    run = _run(MatchSimulator(), cat, catcher, InitialState("." * 25))

    assert cat.roles == ["cat"]
    assert catcher.roles == ["catcher"]
    assert cat.finished == [run.report]
    assert catcher.finished == [run.report]


def test_event_log_is_written_per_match(tmp_path) -> None:
    simulator = MatchSimulator(SimulatorConfig(event_log_dir=tmp_path))

    run = _run(
        simulator,
        ScriptedAgent("runner", _east),
        ScriptedAgent("blocker", _first_free),
        InitialState("." * 25),
        match_id="edge-run",
    )

    assert run.log_path == str(tmp_path / "edge-run.jsonl")
    events = read_event_log(run.log_path)
    assert [event.event_type for event in events] == [
        EventType.MATCH_START,
        EventType.TURN,
        EventType.TURN,
        EventType.TURN,
        EventType.TERMINAL,
    ]
    assert events[1].payload["move"] == {"x": 1, "y": 0}
    assert events[1].payload["turn"] == "cat"
    assert events[-1].payload["status"] == "cat_won"
    assert events[-1].payload["cat_move_score"] == 22


@pytest.mark.parametrize("seed", [3, 4, 5, 6])
def test_move_scores_always_sum_to_the_board_area(seed: int) -> None:
    layout = generate_random_layout(9, random.Random(seed))
    simulator = MatchSimulator()

    run = _run(simulator, RandomAgent("left", seed=seed), RandomAgent("right", seed=seed + 1), InitialState(layout))

    assert run.report.failure is None
    if run.status is MatchStatus.MOVE_LIMIT:
        assert (run.report.cat_move_score, run.report.catcher_move_score) == (0, 0)
    else:
        assert run.report.cat_move_score + run.report.catcher_move_score == 81


def test_bad_layout_raises_before_any_move() -> None:
    cat = _FixedTimeAgent("cat", _east, 1.0)

    with pytest.raises(BoardConstructionError):
        _run(MatchSimulator(), cat, _FixedTimeAgent("catcher", _first_free, 1.0), InitialState("." * 24))
    assert cat.calls == 0


def test_simulator_config_validation() -> None:
    with pytest.raises(ValueError):
        SimulatorConfig(move_timeout_sec=0)
    with pytest.raises(ValueError):
        SimulatorConfig(max_moves=-1)
    with pytest.raises(ValueError):
        MatchSimulator(SimulatorConfig(time_penalty="linear"))
