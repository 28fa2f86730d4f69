from __future__ import annotations
from collections import deque
from typing import Callable, Dict, FrozenSet, Iterable

from .board import DIRS, Edge, Goal, Position, Wall, blocked_edges, edge, in_bounds

# Raw reachability over orthogonal single steps. Pawns and jump rules are a
# pawn-move concern and are ignored here. Every call allocates its own queue
# and visited set so it is safe to call from nested search code.


def reachable_blocked(
    blocked: FrozenSet[Edge],
    start: Position,
    is_goal: Callable[[Position], bool],
) -> bool:
    if is_goal(start):
        return True
    visited = {start}
    q = deque([start])
    while q:
        cur = q.popleft()
        for dx, dy in DIRS:
            nx, ny = cur.x + dx, cur.y + dy
            if not in_bounds(nx, ny):
                continue
            nxt = Position(nx, ny)
            if nxt in visited or edge(cur, nxt) in blocked:
                continue
            if is_goal(nxt):
                return True
            visited.add(nxt)
            q.append(nxt)
    return False


def reachable(
    walls: Iterable[Wall],
    start: Position,
    is_goal: Callable[[Position], bool],
) -> bool:
    """True if some cell satisfying ``is_goal`` can be reached from ``start``."""
    return reachable_blocked(blocked_edges(walls), start, is_goal)


def goal_distances(blocked: FrozenSet[Edge], goal: Goal) -> Dict[Position, int]:
    """Step distance from every cell to the goal edge, ignoring pawns.

    Multi-source BFS seeded from the goal cells. Cells cut off from the goal
    are absent from the result.
    """
    dist: Dict[Position, int] = {}
    q = deque()
    for cell in goal.cells():
        dist[cell] = 0
        q.append(cell)
    while q:
        cur = q.popleft()
        d = dist[cur] + 1
        for dx, dy in DIRS:
            nx, ny = cur.x + dx, cur.y + dy
            if not in_bounds(nx, ny):
                continue
            nxt = Position(nx, ny)
            if nxt in dist or edge(cur, nxt) in blocked:
                continue
            dist[nxt] = d
            q.append(nxt)
    return dist
