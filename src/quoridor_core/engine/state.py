from __future__ import annotations
from dataclasses import dataclass, replace
from enum import Enum
from functools import cached_property
from typing import Dict, FrozenSet, List, Tuple

from .board import (
    Edge,
    Goal,
    Orientation,
    Position,
    Wall,
    blocked_edges,
    goal_for,
    start_position,
)

WALLS_PER_PLAYER = {2: 10, 4: 5}


class GameStatus(str, Enum):
    LOBBY = "lobby"
    PLAYING = "playing"
    FINISHED = "finished"


@dataclass(frozen=True)
class Move:
    kind: str  # 'pawn' or 'wall'
    player_id: str
    from_position: Position | None = None
    to: Position | None = None
    wall: Wall | None = None

    @staticmethod
    def pawn(player_id: str, from_position: Position, to: Position) -> "Move":
        return Move(kind="pawn", player_id=player_id, from_position=from_position, to=to)

    @staticmethod
    def place_wall(player_id: str, position: Position, orientation: Orientation) -> "Move":
        return Move(
            kind="wall",
            player_id=player_id,
            wall=Wall(position, orientation, owner=player_id),
        )

    @property
    def is_wall(self) -> bool:
        return self.kind == "wall"

    def __str__(self) -> str:
        if self.kind == "pawn" and self.to:
            return f"{self.player_id}:pawn({self.to.x},{self.to.y})"
        if self.wall:
            p = self.wall.position
            return f"{self.player_id}:wall({p.x},{p.y},{self.wall.orientation.value})"
        return f"{self.player_id}:{self.kind}"


@dataclass(frozen=True)
class Player:
    id: str
    index: int
    position: Position
    walls_remaining: int
    connected: bool = True


@dataclass(frozen=True)
class GameState:
    """Immutable game value. Every transition returns a new instance."""

    players: Tuple[Player, ...]
    walls: FrozenSet[Wall] = frozenset()
    current_player_index: int = 0
    status: GameStatus = GameStatus.PLAYING
    winner: str | None = None
    history: Tuple[Move, ...] = ()
    max_players: int = 2

    @staticmethod
    def new_game(player_ids: List[str], max_players: int = 2, start: bool = True) -> "GameState":
        if max_players not in WALLS_PER_PLAYER:
            raise ValueError("Only 2 or 4 players supported")
        if len(player_ids) != max_players:
            raise ValueError(
                f"Player count ({len(player_ids)}) does not match max_players ({max_players})"
            )
        if len(set(player_ids)) != len(player_ids):
            raise ValueError("Player ids must be unique")
        walls = WALLS_PER_PLAYER[max_players]
        players = tuple(
            Player(
                id=pid,
                index=i,
                position=start_position(i, max_players),
                walls_remaining=walls,
            )
            for i, pid in enumerate(player_ids)
        )
        return GameState(
            players=players,
            max_players=max_players,
            status=GameStatus.PLAYING if start else GameStatus.LOBBY,
        )

    @property
    def current_player(self) -> Player:
        return self.players[self.current_player_index]

    @cached_property
    def _by_id(self) -> Dict[str, Player]:
        return {p.id: p for p in self.players}

    def player(self, player_id: str) -> Player | None:
        return self._by_id.get(player_id)

    def goal_of(self, player: Player) -> Goal:
        return goal_for(player.index, self.max_players)

    @cached_property
    def blocked(self) -> FrozenSet[Edge]:
        return blocked_edges(self.walls)

    @cached_property
    def occupied(self) -> FrozenSet[Position]:
        return frozenset(p.position for p in self.players)

    @property
    def active_players(self) -> List[Player]:
        return [p for p in self.players if p.connected]

    def is_terminal(self) -> bool:
        return self.status is GameStatus.FINISHED

    def with_player(self, player: Player) -> "GameState":
        players = tuple(player if p.id == player.id else p for p in self.players)
        return replace(self, players=players)

    def with_wall(self, wall: Wall) -> "GameState":
        """Hypothetical state with one more wall; turn and history untouched."""
        return replace(self, walls=self.walls | {wall})

    def to_dict(self) -> dict:
        return {
            "players": [
                {
                    "id": p.id,
                    "x": p.position.x,
                    "y": p.position.y,
                    "walls_remaining": p.walls_remaining,
                    "connected": p.connected,
                }
                for p in self.players
            ],
            "walls": [
                {"x": x, "y": y, "orientation": o.value}
                for (x, y, o) in sorted(w.key() for w in self.walls)
            ],
            "current_player": self.current_player.id,
            "status": self.status.value,
            "winner": self.winner,
            "moves": len(self.history),
            "max_players": self.max_players,
        }
