from __future__ import annotations
import logging
import random
from enum import Enum
from typing import List, Optional, Protocol

from ...engine import rules
from ...engine.errors import NoLegalMoves
from ...engine.pathfinding import require_path
from ...engine.state import GameState, GameStatus, Move, Player

LOGGER = logging.getLogger(__name__)


class Difficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"

    @staticmethod
    def parse(value: "str | Difficulty") -> "Difficulty":
        if isinstance(value, Difficulty):
            return value
        try:
            return Difficulty(value.strip().lower())
        except ValueError:
            raise ValueError(
                f"Unknown difficulty: {value}. Available: {[d.value for d in Difficulty]}"
            )


class Strategy(Protocol):
    """One move per call. Implementations never mutate ``state``."""

    name: str

    def select_move(self, state: GameState, player_id: str) -> Move: ...


def require_turn(state: GameState, player_id: str) -> Player:
    """The player, provided it is their move in a game being played.

    Asking for a move out of turn is a caller error, not an engine defect.
    """
    me = state.player(player_id)
    if me is None:
        raise ValueError(f"Player {player_id} not found in game state")
    if state.status is not GameStatus.PLAYING:
        raise ValueError(f"Game is not being played (status={state.status.value})")
    if state.current_player.id != player_id:
        raise ValueError(
            f"Not {player_id}'s turn (current player is {state.current_player.id})"
        )
    return me


def random_move(state: GameState, player_id: str, rng: random.Random) -> Move:
    """Last-resort fallback shared by every strategy."""
    moves = rules.legal_moves(state, player_id)
    if not moves:
        LOGGER.error("NO_LEGAL_MOVES player=%s", player_id)
        raise NoLegalMoves(player_id)
    return rng.choice(moves)


def shortest_path_move(state: GameState, player_id: str) -> Optional[Move]:
    """Pawn move one hop along the player's shortest path, if it has one."""
    player = state.player(player_id)
    if player is None:
        return None
    step = require_path(state, player_id).first_step
    if step is None:
        return None
    return Move.pawn(player_id, player.position, step)


def pure_race(state: GameState) -> bool:
    return all(p.walls_remaining == 0 for p in state.players)


def in_opening(state: GameState) -> bool:
    return len(state.history) < len(state.players)


def opponents(state: GameState, player_id: str) -> List:
    return [p for p in state.players if p.id != player_id and p.connected]
