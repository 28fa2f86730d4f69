from __future__ import annotations
import logging
import random
from dataclasses import replace
from typing import Optional

from .base import Difficulty, opponents, random_move, require_turn
from ...engine import rules
from ...engine.pathfinding import INFINITY, shortest_distance
from ...engine.state import GameState, Move, Player

LOGGER = logging.getLogger(__name__)

# Opponent distance at or below which the bot spends a wall on them.
CLOSE_THRESHOLD = {
    Difficulty.EASY: 4,
    Difficulty.MEDIUM: 4,
    Difficulty.HARD: 2,
}


class GreedyBlockingStrategy:
    """Blocks the most threatening opponent once they get close, else races.

    1. Find the opponent with the shortest path to goal.
    2. If that distance is within the closeness threshold, place the wall
       that lengthens their path the most.
    3. Otherwise take the pawn move that shortens our own path.
    4. If nothing strictly helps, play a random legal move.
    """

    def __init__(self, difficulty: Difficulty = Difficulty.MEDIUM, rng: random.Random | None = None):
        self.difficulty = Difficulty.parse(difficulty)
        self.close_threshold = CLOSE_THRESHOLD[self.difficulty]
        self.rng = rng or random.Random()
        self.name = f"Greedy Bot ({self.difficulty.value})"

    def select_move(self, state: GameState, player_id: str) -> Move:
        me = require_turn(state, player_id)

        if me.walls_remaining > 0:
            threat: Optional[Player] = None
            threat_dist = INFINITY
            for opp in opponents(state, player_id):
                d = shortest_distance(state, opp.id)
                LOGGER.debug("GREEDY_OPPONENT id=%s distance=%s", opp.id, d)
                if d < threat_dist:
                    threat, threat_dist = opp, d
            if threat is not None and threat_dist <= self.close_threshold:
                wall = self._blocking_wall(state, player_id, threat, threat_dist)
                if wall is not None:
                    LOGGER.debug("GREEDY_BLOCK target=%s move=%s", threat.id, wall)
                    return wall
                LOGGER.debug("GREEDY_NO_BLOCK target=%s", threat.id)

        pawn = self._greedy_pawn_move(state, player_id)
        if pawn is not None:
            return pawn
        LOGGER.warning("GREEDY_FALLBACK player=%s reason=no_strategic_move", player_id)
        return random_move(state, player_id, self.rng)

    def _greedy_pawn_move(self, state: GameState, player_id: str) -> Optional[Move]:
        current = shortest_distance(state, player_id)
        best: Optional[Move] = None
        best_dist = current
        me = state.player(player_id)
        for move in rules.generate_pawn_moves(state, player_id):
            trial = state.with_player(replace(me, position=move.to))
            d = shortest_distance(trial, player_id)
            if d < best_dist:
                best, best_dist = move, d
        return best

    def _blocking_wall(
        self, state: GameState, player_id: str, target: Player, target_dist: float
    ) -> Optional[Move]:
        best: Optional[Move] = None
        best_gain = 0.0
        for move in rules.generate_wall_moves(state, player_id):
            d = shortest_distance(state.with_wall(move.wall), target.id)
            if d == INFINITY and target_dist != INFINITY:
                return move
            gain = d - target_dist
            if gain > best_gain:
                best, best_gain = move, gain
        return best
