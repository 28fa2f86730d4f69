from __future__ import annotations
import logging
import random
from dataclasses import replace
from typing import Optional

from .base import opponents, random_move, require_turn
from ...engine import rules
from ...engine.board import CENTER
from ...engine.pathfinding import shortest_distance
from ...engine.state import GameState, Move

LOGGER = logging.getLogger(__name__)

RIVAL_GAIN = 2  # a wall must cost the rival at least this many steps
SELF_PENALTY = 1  # ...and cost us at most this many
SPRINT_DISTANCE = 3  # at or below this, stop walling and run
BEHIND_MARGIN = 1  # how far behind we may be and still wall


class RuleBasedStrategy:
    name = "Rule Bot"

    def __init__(self, rng: random.Random | None = None):
        self.rng = rng or random.Random()

    def select_move(self, state: GameState, player_id: str) -> Move:
        me = require_turn(state, player_id)
        rivals = opponents(state, player_id)
        my_dist = shortest_distance(state, player_id)

        if rivals and me.walls_remaining > 0:
            rival = min(rivals, key=lambda p: shortest_distance(state, p.id))
            rival_dist = shortest_distance(state, rival.id)
            if my_dist - rival_dist <= BEHIND_MARGIN and min(my_dist, rival_dist) > SPRINT_DISTANCE:
                wall = self._choose_wall(state, player_id, rival.id, my_dist, rival_dist)
                if wall is not None:
                    LOGGER.debug("RULE_WALL player=%s rival=%s move=%s", player_id, rival.id, wall)
                    return wall

        pawn = self._advance(state, player_id)
        if pawn is not None:
            return pawn
        LOGGER.warning("RULE_FALLBACK player=%s reason=no_pawn_move", player_id)
        return random_move(state, player_id, self.rng)

    def _choose_wall(
        self, state: GameState, player_id: str, rival_id: str, my_dist: float, rival_dist: float
    ) -> Optional[Move]:
        best: Optional[Move] = None
        best_gain = float("-inf")
        # legal walls already keep every player connected to their goal
        for move in rules.generate_wall_moves(state, player_id):
            trial = state.with_wall(move.wall)
            rival_delta = shortest_distance(trial, rival_id) - rival_dist
            my_delta = shortest_distance(trial, player_id) - my_dist
            if rival_delta < RIVAL_GAIN or my_delta > SELF_PENALTY:
                continue
            gain = rival_delta - my_delta
            if gain > best_gain:
                best, best_gain = move, gain
        return best

    def _advance(self, state: GameState, player_id: str) -> Optional[Move]:
        me = state.player(player_id)
        ranked = []
        for move in rules.generate_pawn_moves(state, player_id):
            d = shortest_distance(state.with_player(replace(me, position=move.to)), player_id)
            ranked.append((d, abs(move.to.x - CENTER), move))
        if not ranked:
            return None
        ranked.sort(key=lambda r: (r[0], r[1]))
        return ranked[0][2]
