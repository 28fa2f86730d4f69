from __future__ import annotations
import logging
from dataclasses import dataclass, replace
from typing import Optional

from .errors import MoveRejection
from .rules import check_move
from .state import GameState, GameStatus, Move

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class MoveResult:
    """Outcome of a move request. On rejection ``state`` is the input state."""

    state: GameState
    rejection: Optional[MoveRejection] = None

    @property
    def ok(self) -> bool:
        return self.rejection is None


def _next_active_index(state: GameState, after: int) -> int:
    n = len(state.players)
    for step in range(1, n + 1):
        idx = (after + step) % n
        if state.players[idx].connected:
            return idx
    return after


def advance(state: GameState, move: Move) -> GameState:
    """Apply a move already known to be legal for the current player.

    Search code calls this directly on moves it took from the legal-move
    generators; everything else goes through :func:`apply_move`.
    """
    mover = state.current_player
    if move.kind == "pawn":
        new_state = state.with_player(replace(mover, position=move.to))
    else:
        wall = move.wall if move.wall.owner == mover.id else replace(move.wall, owner=mover.id)
        new_state = replace(
            state.with_player(replace(mover, walls_remaining=mover.walls_remaining - 1)),
            walls=state.walls | {wall},
        )
    new_state = replace(new_state, history=state.history + (move,))
    if move.kind == "pawn" and state.goal_of(mover).reached(move.to):
        return replace(new_state, status=GameStatus.FINISHED, winner=mover.id)
    return replace(
        new_state, current_player_index=_next_active_index(state, state.current_player_index)
    )


def apply_move(state: GameState, move: Move) -> MoveResult:
    rejection = check_move(state, move)
    if rejection is not None:
        LOGGER.debug("MOVE_REJECTED move=%s reason=%s", move, rejection.value)
        return MoveResult(state, rejection)
    return MoveResult(advance(state, move))


def start_game(state: GameState) -> GameState:
    if state.status is not GameStatus.LOBBY:
        return state
    return replace(state, status=GameStatus.PLAYING)


def forfeit(state: GameState, player_id: str) -> GameState:
    """Remove a player from rotation (resignation or disconnect timeout).

    A sole remaining connected player wins; with nobody left the game ends
    without a winner.
    """
    player = state.player(player_id)
    if player is None or not player.connected or state.status is not GameStatus.PLAYING:
        return state
    new_state = state.with_player(replace(player, connected=False))
    remaining = new_state.active_players
    if len(remaining) == 1:
        LOGGER.info("FORFEIT player=%s winner=%s", player_id, remaining[0].id)
        return replace(new_state, status=GameStatus.FINISHED, winner=remaining[0].id)
    if not remaining:
        LOGGER.info("FORFEIT player=%s winner=none", player_id)
        return replace(new_state, status=GameStatus.FINISHED, winner=None)
    LOGGER.info("FORFEIT player=%s remaining=%d", player_id, len(remaining))
    if new_state.current_player_index == player.index:
        new_state = replace(
            new_state, current_player_index=_next_active_index(new_state, player.index)
        )
    return new_state


def is_finished(state: GameState) -> bool:
    return state.status is GameStatus.FINISHED


def winner(state: GameState) -> str | None:
    return state.winner
