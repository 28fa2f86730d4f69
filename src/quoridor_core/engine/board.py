from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import FrozenSet, Iterable, List, Tuple

# Static geometry of the 9x9 board. Cells are addressed by (x, y): x is the
# column, y the row. Walls are anchored on the 8x8 grid of inner
# intersections and always span two cells.

BOARD_SIZE = 9
WALL_GRID = BOARD_SIZE - 1
MAX_PATH_LENGTH = 2 * BOARD_SIZE
CENTER = BOARD_SIZE // 2

# Directions: up, right, down, left
DIRS = [(0, -1), (1, 0), (0, 1), (-1, 0)]


def in_bounds(x: int, y: int) -> bool:
    return 0 <= x < BOARD_SIZE and 0 <= y < BOARD_SIZE


@dataclass(frozen=True, order=True)
class Position:
    x: int
    y: int

    def in_bounds(self) -> bool:
        return in_bounds(self.x, self.y)

    def offset(self, dx: int, dy: int) -> "Position":
        return Position(self.x + dx, self.y + dy)

    def manhattan(self, other: "Position") -> int:
        return abs(self.x - other.x) + abs(self.y - other.y)


class Orientation(str, Enum):
    HORIZONTAL = "H"
    VERTICAL = "V"


Edge = Tuple[Position, Position]


def edge(a: Position, b: Position) -> Edge:
    """Normalized (unordered) edge between two orthogonally adjacent cells."""
    return (a, b) if a < b else (b, a)


@dataclass(frozen=True)
class Wall:
    position: Position  # top-left cell of the four cells around the anchor
    orientation: Orientation
    owner: str | None = None

    def key(self) -> Tuple[int, int, Orientation]:
        return (self.position.x, self.position.y, self.orientation)

    @property
    def horizontal(self) -> bool:
        return self.orientation is Orientation.HORIZONTAL

    def edges(self) -> List[Edge]:
        x, y = self.position.x, self.position.y
        if self.horizontal:
            # blocks vertical movement between rows y and y+1 for columns x and x+1
            return [
                edge(Position(x, y), Position(x, y + 1)),
                edge(Position(x + 1, y), Position(x + 1, y + 1)),
            ]
        # blocks horizontal movement between columns x and x+1 for rows y and y+1
        return [
            edge(Position(x, y), Position(x + 1, y)),
            edge(Position(x, y + 1), Position(x + 1, y + 1)),
        ]

    def in_grid(self) -> bool:
        return 0 <= self.position.x < WALL_GRID and 0 <= self.position.y < WALL_GRID

    def on_boundary(self) -> bool:
        """Horizontal walls on the first/last wall row and vertical walls on the
        first/last wall column are edge walls and never placeable."""
        axis = self.position.y if self.horizontal else self.position.x
        return axis == 0 or axis == WALL_GRID - 1

    def conflicts_with(self, other: "Wall") -> bool:
        """Same segment, a crossing at the shared midpoint, or a half overlap."""
        if self.position == other.position:
            return True
        if self.orientation is not other.orientation:
            return False
        dx = abs(self.position.x - other.position.x)
        dy = abs(self.position.y - other.position.y)
        if self.horizontal:
            return dy == 0 and dx == 1
        return dx == 0 and dy == 1


def blocked_edges(walls: Iterable[Wall]) -> FrozenSet[Edge]:
    blocked = set()
    for w in walls:
        blocked.update(w.edges())
    return frozenset(blocked)


def walls_blocking(a: Position, b: Position) -> List[Tuple[Position, Orientation]]:
    """Anchors/orientations of every wall that would cut the a<->b edge."""
    a, b = edge(a, b)
    out: List[Tuple[Position, Orientation]] = []
    if a.x == b.x:
        for x in (a.x - 1, a.x):
            out.append((Position(x, a.y), Orientation.HORIZONTAL))
    else:
        for y in (a.y - 1, a.y):
            out.append((Position(a.x, y), Orientation.VERTICAL))
    return [(p, o) for p, o in out if 0 <= p.x < WALL_GRID and 0 <= p.y < WALL_GRID]


def all_wall_slots() -> List[Tuple[Position, Orientation]]:
    """Every anchor/orientation pair in enumeration order (row-major, H before V)."""
    slots = []
    for y in range(WALL_GRID):
        for x in range(WALL_GRID):
            for orientation in (Orientation.HORIZONTAL, Orientation.VERTICAL):
                slots.append((Position(x, y), orientation))
    return slots


@dataclass(frozen=True)
class Goal:
    axis: str  # 'row' or 'col'
    value: int

    def reached(self, pos: Position) -> bool:
        if self.axis == "row":
            return pos.y == self.value
        return pos.x == self.value

    def cells(self) -> List[Position]:
        if self.axis == "row":
            return [Position(x, self.value) for x in range(BOARD_SIZE)]
        return [Position(self.value, y) for y in range(BOARD_SIZE)]


def goal_for(index: int, player_count: int) -> Goal:
    last = BOARD_SIZE - 1
    if player_count == 2:
        return Goal("row", last) if index == 0 else Goal("row", 0)
    goals = [Goal("row", 0), Goal("col", 0), Goal("col", last), Goal("row", last)]
    if not 0 <= index < len(goals):
        raise ValueError(f"Invalid player index {index} for {player_count} players")
    return goals[index]


def start_position(index: int, player_count: int) -> Position:
    """Each pawn starts in the middle of the edge opposite its goal."""
    last = BOARD_SIZE - 1
    goal = goal_for(index, player_count)
    opposite = last - goal.value
    if goal.axis == "row":
        return Position(CENTER, opposite)
    return Position(opposite, CENTER)
