"""Entry points consumed by transport and session code.

Every function takes and returns plain values; nothing here keeps state
between calls. Callers own their ``GameState`` and pass in the strategy or
difficulty they want per request.
"""

from __future__ import annotations
import random
from typing import List, Optional

from .engine import game, rules
from .engine.game import MoveResult
from .engine.pathfinding import PathResult, require_path
from .engine.state import GameState, Move, Player
from .players.factory import StrategyFactory
from .players.strategies.base import Difficulty, Strategy


def create_game(player_ids: List[str], max_players: int = 2, start: bool = True) -> GameState:
    return GameState.new_game(player_ids, max_players, start=start)


def start_game(state: GameState) -> GameState:
    return game.start_game(state)


def valid_moves(state: GameState, player_id: str) -> List[Move]:
    return rules.legal_moves(state, player_id)


def validate_move(state: GameState, move: Move) -> bool:
    return rules.validate_move(state, move)


def apply_move(state: GameState, move: Move) -> MoveResult:
    return game.apply_move(state, move)


def forfeit(state: GameState, player_id: str) -> GameState:
    return game.forfeit(state, player_id)


def current_player(state: GameState) -> Player:
    return state.current_player


def is_finished(state: GameState) -> bool:
    return game.is_finished(state)


def winner(state: GameState) -> Optional[str]:
    return game.winner(state)


def shortest_path(state: GameState, player_id: str) -> PathResult:
    """Route hint for a player. A player with no route at all is an engine
    defect and raises ``UnreachableGoal``."""
    return require_path(state, player_id)


def select_move(
    state: GameState,
    player_id: str,
    difficulty: "str | Difficulty" = Difficulty.MEDIUM,
    rng: Optional[random.Random] = None,
    strategy: Optional[Strategy] = None,
) -> Move:
    """AI entry point. An explicit ``strategy`` wins over ``difficulty``."""
    if strategy is None:
        strategy = StrategyFactory.for_difficulty(difficulty, rng)
    return strategy.select_move(state, player_id)
