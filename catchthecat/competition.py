"""Round-robin competition driver and command-line entry point."""

from __future__ import annotations

import argparse
import asyncio
import logging
import random
from dataclasses import dataclass
from pathlib import Path
from typing import Sequence

from arena.env_utils import getenv_any, getenv_float, getenv_int
from arena.errors import BoardConstructionError, MatchConfigurationError
from arena.player import Agent

from .agents import ProcessAgent, RandomAgent
from .board import Position, generate_random_layout
from .codec import write_report
from .reports import CompetitionReport, InitialState, UserScore
from .scoring import DEFAULT_TIME_PENALTY, TIME_PENALTIES, compute_user_scores
from .simulator import DEFAULT_MOVE_TIMEOUT_SEC, MatchRun, MatchSimulator, SimulatorConfig

logger = logging.getLogger(__name__)

DEFAULT_BOARD_SIDE = 21
DEFAULT_BOARD_COUNT = 10


@dataclass(frozen=True)
class CompetitionConfig:
    """Board generation settings for one competition."""

    side: int = DEFAULT_BOARD_SIDE
    board_count: int = DEFAULT_BOARD_COUNT
    seed: int | None = None
    cat_start: Position = Position(0, 0)


def generate_layouts(count: int, side: int, seed: int | None = None) -> list[str]:
    """Generate `count` random layouts from one seeded stream."""
    rng = random.Random(seed)
    return [generate_random_layout(side, rng) for _ in range(count)]


class Competition:
    """Plays every ordered pair of distinct participants on every layout."""

    def __init__(self, simulator: MatchSimulator | None = None):
        self.simulator = simulator or MatchSimulator()
        self.last_runs: list[MatchRun] = []

    async def run(
        self,
        participants: Sequence[Agent],
        layouts: Sequence[str],
        cat_start: Position = Position(0, 0),
    ) -> CompetitionReport:
        """Run all matches sequentially and score them."""
        usernames = [agent.agent_id for agent in participants]
        duplicates = sorted({name for name in usernames if usernames.count(name) > 1})
        if duplicates:
            raise MatchConfigurationError(f"Duplicate participant names: {duplicates}")

        runs: list[MatchRun] = []
        for layout_index, layout in enumerate(layouts):
            initial_state = InitialState(board=layout, cat_position=cat_start)
            for cat in participants:
                for catcher in participants:
                    if cat.agent_id == catcher.agent_id:
                        continue
                    try:
                        run = await self.simulator.run_match(
                            cat,
                            catcher,
                            initial_state,
                            match_id=f"b{layout_index}-{cat.agent_id}-vs-{catcher.agent_id}",
                        )
                    except BoardConstructionError as exc:
                        logger.error("Skipping %s vs %s on board %d: %s", cat.agent_id, catcher.agent_id, layout_index, exc)
                        continue
                    runs.append(run)

        self.last_runs = runs
        matches = [run.report for run in runs]
        return CompetitionReport(matches=matches, high_scores=compute_user_scores(matches, usernames))


def parse_agent_spec(spec: str, *, seed: int | None = None, time_unit: str = "ms") -> Agent:
    """Parse ``name=random`` or ``name=/path/to/executable``."""
    if "=" not in spec:
        raise ValueError(f"Invalid --agent entry: {spec!r}. Expected name=random or name=path.")
    name, target = (part.strip() for part in spec.split("=", 1))
    if not name or not target:
        raise ValueError(f"Invalid --agent entry: {spec!r}. Name and target must be non-empty.")
    if target.lower() == "random":
        return RandomAgent(name, seed=seed)
    executable = Path(target)
    if not executable.exists():
        raise ValueError(f"Agent executable for {name!r} not found: {target}")
    return ProcessAgent(name, executable, reported_time_unit=time_unit)


def format_high_scores(scores: Sequence[UserScore]) -> str:
    """Render the ranking as a fixed-width text table."""
    header = f"{'#':>3} {'User':<24} {'Total':>9} {'Cat':>9} {'Catcher':>9} {'CatW':>5} {'CchW':>5}"
    lines = [header, "-" * len(header)]
    for rank, score in enumerate(scores, start=1):
        lines.append(
            f"{rank:>3} {score.username:<24} {score.total_score:>9.4f} {score.cat_score:>9.4f} "
            f"{score.catcher_score:>9.4f} {score.cat_wins:>5} {score.catcher_wins:>5}"
        )
    return "\n".join(lines)


def main(argv: Sequence[str] | None = None) -> int:
    """CLI entrypoint for a full competition run."""
    parser = argparse.ArgumentParser(description="Run a Catch-the-Cat agent competition.")
    parser.add_argument("--agent", action="append", default=[], help="name=random or name=/path/to/executable")
    parser.add_argument("--boards", type=int, default=getenv_int("CATCHTHECAT_BOARD_COUNT", DEFAULT_BOARD_COUNT))
    parser.add_argument("--side", type=int, default=getenv_int("CATCHTHECAT_BOARD_SIDE", DEFAULT_BOARD_SIDE))
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument(
        "--timeout", type=float, default=getenv_float("CATCHTHECAT_MOVE_TIMEOUT_SEC", DEFAULT_MOVE_TIMEOUT_SEC)
    )
    parser.add_argument(
        "--time-penalty",
        choices=sorted(TIME_PENALTIES),
        default=getenv_any("CATCHTHECAT_TIME_PENALTY", default=DEFAULT_TIME_PENALTY),
    )
    parser.add_argument("--reported-time-unit", choices=["ms", "us", "s"], default="ms")
    parser.add_argument("--output", type=str, default=getenv_any("CATCHTHECAT_REPORT_PATH", default="competition_report.json"))
    parser.add_argument("--event-log-dir", type=str, default=None)
    parser.add_argument("--log-level", type=str, default="INFO")
    args = parser.parse_args(argv)

    logging.basicConfig(level=args.log_level.upper(), format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    if len(args.agent) < 2:
        parser.error("at least two --agent entries are required")
    participants = [parse_agent_spec(spec, seed=args.seed, time_unit=args.reported_time_unit) for spec in args.agent]

    config = CompetitionConfig(side=args.side, board_count=args.boards, seed=args.seed)
    layouts = generate_layouts(config.board_count, config.side, config.seed)
    simulator = MatchSimulator(
        SimulatorConfig(
            move_timeout_sec=args.timeout,
            time_penalty=args.time_penalty,
            event_log_dir=args.event_log_dir,
        )
    )
    logger.info("Running %d boards of side %d for %d agents", len(layouts), config.side, len(participants))
    report = asyncio.run(Competition(simulator).run(participants, layouts, config.cat_start))

    output_path = write_report(args.output, report)
    print(format_high_scores(report.ranked()))
    logger.info("Report saved to %s (%d matches)", output_path, len(report.matches))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
