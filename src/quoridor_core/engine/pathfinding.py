from __future__ import annotations
import logging
import math
from collections import deque
from dataclasses import dataclass
from typing import Dict, List, Tuple

from .board import Position
from .connectivity import reachable_blocked
from .errors import UnreachableGoal
from .rules import pawn_destinations
from .state import GameState

LOGGER = logging.getLogger(__name__)

INFINITY = math.inf


@dataclass(frozen=True)
class PathResult:
    distance: float  # math.inf when the goal edge cannot be reached
    first_step: Position | None
    path: Tuple[Position, ...] = ()

    @property
    def reachable(self) -> bool:
        return self.distance != INFINITY


UNREACHABLE = PathResult(INFINITY, None)


def _player_index(state: GameState, player_id: str) -> int | None:
    p = state.player(player_id)
    return None if p is None else p.index


def shortest_path(state: GameState, player_id: str) -> PathResult:
    """BFS over pawn moves (jumps and side-steps included), other pawns fixed."""
    idx = _player_index(state, player_id)
    if idx is None:
        return UNREACHABLE
    me = state.players[idx]
    goal = state.goal_of(me)
    start = me.position
    if goal.reached(start):
        return PathResult(0, None, (start,))

    prev: Dict[Position, Position | None] = {start: None}
    q = deque([start])
    while q:
        cur = q.popleft()
        for nxt in pawn_destinations(state, idx, cur):
            if nxt in prev:
                continue
            prev[nxt] = cur
            if goal.reached(nxt):
                return _result(prev, nxt)
            q.append(nxt)
    return UNREACHABLE


def _result(prev: Dict[Position, Position | None], end: Position) -> PathResult:
    path: List[Position] = []
    cur: Position | None = end
    while cur is not None:
        path.append(cur)
        cur = prev[cur]
    path.reverse()
    return PathResult(len(path) - 1, path[1], tuple(path))


def shortest_distance(state: GameState, player_id: str) -> float:
    return shortest_path(state, player_id).distance


def require_path(state: GameState, player_id: str) -> PathResult:
    """Like :func:`shortest_path` but a goal cut off by walls is an engine defect.

    A pawn hemmed in only by other pawns is not: the unreachable result is
    returned as is.
    """
    result = shortest_path(state, player_id)
    if not result.reachable:
        player = state.player(player_id)
        if player is not None and reachable_blocked(
            state.blocked, player.position, state.goal_of(player).reached
        ):
            return result
        LOGGER.error("UNREACHABLE_GOAL player=%s walls=%d", player_id, len(state.walls))
        raise UnreachableGoal(player_id)
    return result


def all_shortest_paths(
    state: GameState, player_id: str
) -> Tuple[Dict[Position, int], Dict[Position, List[Position]]]:
    """Distances to every reachable cell plus every shortest-path predecessor."""
    idx = _player_index(state, player_id)
    if idx is None:
        return {}, {}
    start = state.players[idx].position
    dist: Dict[Position, int] = {start: 0}
    preds: Dict[Position, List[Position]] = {start: []}
    q = deque([start])
    while q:
        cur = q.popleft()
        d = dist[cur] + 1
        for nxt in pawn_destinations(state, idx, cur):
            if nxt not in dist:
                dist[nxt] = d
                preds[nxt] = [cur]
                q.append(nxt)
            elif dist[nxt] == d:
                preds[nxt].append(cur)
    return dist, preds


def shortest_path_edges(state: GameState, player_id: str) -> List[Tuple[Position, Position]]:
    """Every (prev, cur) step lying on some shortest path to the goal edge."""
    player = state.player(player_id)
    if player is None:
        return []
    dist, preds = all_shortest_paths(state, player_id)
    goal = state.goal_of(player)
    reached = [p for p in dist if goal.reached(p)]
    if not reached:
        return []
    best = min(dist[p] for p in reached)
    frontier = [p for p in reached if dist[p] == best]
    seen = set(frontier)
    steps: List[Tuple[Position, Position]] = []
    while frontier:
        cur = frontier.pop()
        for prev in preds[cur]:
            steps.append((prev, cur))
            if prev not in seen:
                seen.add(prev)
                frontier.append(prev)
    return steps
