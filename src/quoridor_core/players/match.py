from __future__ import annotations
import json
import logging
from typing import Dict, List, Optional

from ..engine import game, rules
from ..engine.errors import MoveRejection
from ..engine.state import GameState, Move
from .strategies.base import Strategy

LOGGER = logging.getLogger(__name__)


class MatchController:
    """Drives one game between strategies, seat by seat.

    The controller owns the current state value and the per-seat strategy
    map; strategies are handed in, never looked up globally.
    """

    def __init__(
        self,
        state: GameState,
        strategies: Dict[str, Strategy],
        print_snapshot: bool = False,
    ):
        missing = [p.id for p in state.players if p.id not in strategies]
        if missing:
            raise ValueError(f"No strategy for players: {missing}")
        self.state = state
        self.strategies = strategies
        self.print_snapshot = print_snapshot
        self._cached_moves: List[Move] = []
        self.turn: int = 0  # increments each time the player to move changes
        self._last_player: str = state.current_player.id
        self.last_rejection: Optional[MoveRejection] = None

    def refresh_moves(self) -> None:
        self._cached_moves = rules.legal_moves(self.state)
        if not self.state.is_terminal() and self.state.current_player.id != self._last_player:
            self.turn += 1
            self._last_player = self.state.current_player.id
        self._emit_json_snapshot()

    def _emit_json_snapshot(self) -> None:
        if not self.print_snapshot:
            return
        snapshot = {
            "schema": "quoridor.core.v1",
            "turn": self.turn,
            "state": self.state.to_dict(),
            "legal_moves": [str(m) for m in self._cached_moves],
        }
        print("TURN_STATE_BEGIN")
        print(json.dumps(snapshot, separators=(",", ":")))
        print("TURN_STATE_END")

    @property
    def legal_moves(self) -> List[Move]:
        return self._cached_moves

    def attempt_move(self, move: Move) -> bool:
        result = game.apply_move(self.state, move)
        self.last_rejection = result.rejection
        if not result.ok:
            LOGGER.info("MOVE_REJECTED move=%s reason=%s", move, result.rejection.value)
            return False
        self.state = result.state
        self.refresh_moves()
        return True

    def forfeit(self, player_id: str) -> None:
        self.state = game.forfeit(self.state, player_id)
        self.refresh_moves()

    def step(self) -> Move:
        """Ask the player to move for a move and apply it."""
        player = self.state.current_player
        strategy = self.strategies[player.id]
        move = strategy.select_move(self.state, player.id)
        LOGGER.info("MOVE turn=%d player=%s strategy=%s move=%s", self.turn, player.id, strategy.name, move)
        if not self.attempt_move(move):
            # a strategy handing back an illegal move is an engine defect
            raise RuntimeError(f"{strategy.name} produced an illegal move {move}")
        return move

    def play(self, max_plies: int = 400) -> Optional[str]:
        """Run until someone wins or ``max_plies`` moves were made."""
        self.refresh_moves()
        plies = 0
        while not self.state.is_terminal() and plies < max_plies:
            self.step()
            plies += 1
        if self.state.is_terminal():
            LOGGER.info("MATCH_OVER winner=%s plies=%d", self.state.winner, plies)
        else:
            LOGGER.info("MATCH_CAPPED plies=%d", plies)
        return self.state.winner
