from __future__ import annotations
from enum import Enum


class MoveRejection(str, Enum):
    """Why a move request was turned down. Recoverable, never raised."""

    INVALID_MOVE = "invalid_move"
    NOT_YOUR_TURN = "not_your_turn"
    GAME_NOT_PLAYING = "game_not_playing"
    UNKNOWN_PLAYER = "unknown_player"


class EngineInvariantError(RuntimeError):
    """An engine invariant was observed broken. Fatal for the game instance."""


class UnreachableGoal(EngineInvariantError):
    def __init__(self, player_id: str):
        super().__init__(f"Player {player_id} has no route to their goal edge")
        self.player_id = player_id


class NoLegalMoves(EngineInvariantError):
    def __init__(self, player_id: str):
        super().__init__(f"No legal moves available for player {player_id}")
        self.player_id = player_id
