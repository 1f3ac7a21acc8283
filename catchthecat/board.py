"""Hexagonal Catch-the-Cat board: geometry, legality and win detection.

Coordinates are offset-hex positions centered on (0, 0); the grid is stored
row-major starting at (-side//2, -side//2). Odd rows are shifted half a cell
to the right, so neighbor offsets depend on row parity::

     . . . . .
      # C . . .
     . . . # .
      . . . . .
     . . . . .
"""

from __future__ import annotations

import math
import random
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping

from arena.errors import BoardConstructionError, IllegalMoveError

EMPTY = "."
BLOCKED = "#"
CAT = "C"

_WHITESPACE = re.compile(r"\s+")


class Turn(str, Enum):
    """Side to move."""

    CAT = "cat"
    CATCHER = "catcher"

    @property
    def opponent(self) -> "Turn":
        return Turn.CATCHER if self is Turn.CAT else Turn.CAT


class Direction(str, Enum):
    """The six hex directions."""

    NORTH_EAST = "NE"
    NORTH_WEST = "NW"
    EAST = "E"
    WEST = "W"
    SOUTH_EAST = "SE"
    SOUTH_WEST = "SW"


@dataclass(frozen=True)
class Position:
    """Offset-hex coordinate."""

    x: int = 0
    y: int = 0

    def to_dict(self) -> dict[str, int]:
        return {"x": self.x, "y": self.y}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Position":
        return cls(x=int(data["x"]), y=int(data["y"]))

    def __str__(self) -> str:
        return f"{self.x},{self.y}"


# (is_odd_row, direction) -> (dx, dy)
NEIGHBOR_OFFSETS: dict[tuple[bool, Direction], tuple[int, int]] = {
    (True, Direction.NORTH_EAST): (1, -1),
    (True, Direction.NORTH_WEST): (0, -1),
    (True, Direction.EAST): (1, 0),
    (True, Direction.WEST): (-1, 0),
    (True, Direction.SOUTH_EAST): (0, 1),
    (True, Direction.SOUTH_WEST): (1, 1),
    (False, Direction.NORTH_EAST): (0, -1),
    (False, Direction.NORTH_WEST): (-1, -1),
    (False, Direction.EAST): (1, 0),
    (False, Direction.WEST): (-1, 0),
    (False, Direction.SOUTH_EAST): (-1, 1),
    (False, Direction.SOUTH_WEST): (0, 1),
}


def neighbor(position: Position, direction: Direction) -> Position:
    """Return the adjacent position in `direction`."""
    dx, dy = NEIGHBOR_OFFSETS[(position.y % 2 != 0, direction)]
    return Position(position.x + dx, position.y + dy)


def neighbors(position: Position) -> tuple[Position, ...]:
    """Return all six adjacent positions (NE, NW, E, W, SE, SW)."""
    return tuple(neighbor(position, direction) for direction in Direction)


def side_for_length(length: int) -> int:
    """Return the board side for a flat layout length, validating its shape."""
    side = math.isqrt(length)
    if side * side != length:
        raise BoardConstructionError(f"Invalid board: length {length} is not a perfect square.")
    if (side - 1) % 4 != 0:
        raise BoardConstructionError(f"Invalid board: side {side} is not of the form 4*k+1.")
    return side


@dataclass(frozen=True)
class GameResult:
    """Outcome check for the current position."""

    is_over: bool
    winner: Turn | None = None
    reason: str | None = None


class Board:
    """Mutable game state for one match."""

    def __init__(
        self,
        layout: str,
        cat_position: Position,
        cat_player: str = "",
        catcher_player: str = "",
        turn: Turn = Turn.CAT,
    ):
        cells = _WHITESPACE.sub("", layout).replace(CAT, EMPTY)
        invalid = set(cells) - {EMPTY, BLOCKED}
        if invalid:
            raise BoardConstructionError(f"Invalid board: unexpected characters {sorted(invalid)!r}.")

        self.side = side_for_length(len(cells))
        self.half = self.side // 2
        self._blocked = bytearray(1 if cell == BLOCKED else 0 for cell in cells)
        self.cat_position = cat_position
        self.cat_player = cat_player
        self.catcher_player = catcher_player
        self.turn = turn

        if not self.is_valid_position(cat_position):
            raise BoardConstructionError(f"Cat position {cat_position} is outside the board.")

    @property
    def area(self) -> int:
        return self.side * self.side

    @property
    def current_player(self) -> str:
        return self.cat_player if self.turn is Turn.CAT else self.catcher_player

    def is_valid_position(self, position: Position) -> bool:
        return -self.half <= position.x <= self.half and -self.half <= position.y <= self.half

    def position_to_index(self, position: Position) -> int:
        return (position.y + self.half) * self.side + position.x + self.half

    def index_to_position(self, index: int) -> Position:
        return Position(index % self.side - self.half, index // self.side - self.half)

    def is_blocked(self, position: Position) -> bool:
        """Out-of-bounds positions read as blocked."""
        if not self.is_valid_position(position):
            return True
        return bool(self._blocked[self.position_to_index(position)])

    def is_neighbor(self, origin: Position, target: Position) -> bool:
        return target in neighbors(origin)

    def validate_move(self, position: Position) -> bool:
        """Return whether `position` is a legal target for the side to move."""
        if self.turn is Turn.CAT:
            return self.is_neighbor(self.cat_position, position) and not self.is_blocked(position)
        return (
            position != self.cat_position
            and abs(position.x) <= self.half
            and abs(position.y) <= self.half
            and not self.is_blocked(position)
        )

    def move(self, position: Position) -> None:
        """Apply a legal move and pass the turn."""
        if not self.validate_move(position):
            raise IllegalMoveError(self.current_player, position, f"({position}) is not legal for {self.turn.value}")

        if self.turn is Turn.CAT:
            self.cat_position = position
        else:
            self._blocked[self.position_to_index(position)] = 1
        self.turn = self.turn.opponent

    def game_result(self) -> GameResult:
        # Edge check first: an edge cell that is also surrounded is a cat win.
        cat = self.cat_position
        if abs(cat.x) == self.half or abs(cat.y) == self.half:
            return GameResult(is_over=True, winner=Turn.CAT, reason="Cat reached the edge")
        if all(self.is_blocked(adjacent) for adjacent in neighbors(cat)):
            return GameResult(is_over=True, winner=Turn.CATCHER, reason="Cat is trapped")
        return GameResult(is_over=False)

    def valid_moves(self) -> list[Position]:
        """List every legal target for the side to move."""
        if self.turn is Turn.CAT:
            return [adjacent for adjacent in neighbors(self.cat_position) if self.validate_move(adjacent)]
        cat_index = self.position_to_index(self.cat_position)
        return [
            self.index_to_position(index)
            for index, blocked in enumerate(self._blocked)
            if not blocked and index != cat_index
        ]

    def layout(self) -> str:
        """Return the grid string without the cat marker."""
        return "".join(BLOCKED if blocked else EMPTY for blocked in self._blocked)

    def board_string(self) -> str:
        """Return the grid string with the cat cell marked `C`."""
        cells = list(self.layout())
        cells[self.position_to_index(self.cat_position)] = CAT
        return "".join(cells)

    def render(self) -> str:
        """Render the board as indented hex rows for debugging."""
        cells = self.board_string()
        rows: list[str] = []
        for row in range(self.side):
            y = row - self.half
            line = " ".join(cells[row * self.side : (row + 1) * self.side])
            rows.append((" " + line) if y % 2 != 0 else line)
        return "\n".join(rows)

    def copy(self) -> "Board":
        return Board(self.layout(), self.cat_position, self.cat_player, self.catcher_player, self.turn)

    def __repr__(self) -> str:
        return f"Board(side={self.side}, cat={self.cat_position}, turn={self.turn.value})"


def generate_random_layout(side: int, rng: random.Random | None = None) -> str:
    """Return an empty layout sprinkled with 5-10% obstacles, center kept free."""
    if side < 1 or (side - 1) % 4 != 0:
        raise BoardConstructionError(f"Invalid board: side {side} is not of the form 4*k+1.")
    rng = rng or random.Random()
    total = side * side
    center = total // 2
    cells = [EMPTY] * total

    obstacle_count = math.floor(total * 0.05 + rng.random() * total * 0.05)
    obstacle_count = min(obstacle_count, total - 1)
    for _ in range(obstacle_count):
        index = rng.randrange(total)
        while index == center or cells[index] == BLOCKED:
            index = rng.randrange(total)
        cells[index] = BLOCKED
    return "".join(cells)
