from __future__ import annotations
import random
from .base import random_move, require_turn
from ...engine.state import GameState, Move


class RandomStrategy:
    name = "Random Bot"

    def __init__(self, rng: random.Random | None = None):
        self.rng = rng or random.Random()

    def select_move(self, state: GameState, player_id: str) -> Move:
        require_turn(state, player_id)
        return random_move(state, player_id, self.rng)
