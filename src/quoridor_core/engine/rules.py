from __future__ import annotations
import random
from typing import FrozenSet, List, Optional

from .board import DIRS, Edge, Position, Wall, all_wall_slots, edge, in_bounds
from .connectivity import reachable_blocked
from .errors import MoveRejection, NoLegalMoves
from .state import GameState, GameStatus, Move

# Pawn moves: a simple step, a straight jump over an adjacent pawn, or a
# side-step around that pawn when the straight jump is cut by a wall, the
# board edge or another pawn. Wall placements must stay inside the grid, away
# from the edge rows/columns, clear of other walls, and leave every active
# player a route to their goal edge.


def _destinations(
    origin: Position,
    occupied: FrozenSet[Position],
    blocked: FrozenSet[Edge],
) -> List[Position]:
    out: List[Position] = []
    for dx, dy in DIRS:
        nx, ny = origin.x + dx, origin.y + dy
        if not in_bounds(nx, ny):
            continue
        adj = Position(nx, ny)
        if edge(origin, adj) in blocked:
            continue
        if adj not in occupied:
            out.append(adj)
            continue
        # pawn adjacent; try straight jump first
        jx, jy = adj.x + dx, adj.y + dy
        jump = Position(jx, jy)
        if in_bounds(jx, jy) and edge(adj, jump) not in blocked and jump not in occupied:
            out.append(jump)
            continue
        # jump cut by a wall, the edge or a second pawn -> side-steps perpendicular to travel
        sides = [(1, 0), (-1, 0)] if dx == 0 else [(0, 1), (0, -1)]
        for sx, sy in sides:
            tx, ty = adj.x + sx, adj.y + sy
            if not in_bounds(tx, ty):
                continue
            side = Position(tx, ty)
            if side in occupied or edge(adj, side) in blocked:
                continue
            out.append(side)

    unique: List[Position] = []
    for p in out:
        if p not in unique:
            unique.append(p)
    return unique


def pawn_destinations(
    state: GameState, player_index: int, origin: Position | None = None
) -> List[Position]:
    """Cells the player's pawn may reach in one move.

    ``origin`` lets pathfinding ask "as if the pawn stood there"; the pawn's
    real cell is then treated as empty.
    """
    me = state.players[player_index]
    if origin is None or origin == me.position:
        return _destinations(me.position, state.occupied, state.blocked)
    others = frozenset(p.position for p in state.players if p.index != player_index)
    return _destinations(origin, others, state.blocked)


def is_valid_pawn_move(
    state: GameState, player_index: int, frm: Position, to: Position
) -> bool:
    if not to.in_bounds() or not frm.in_bounds():
        return False
    return to in pawn_destinations(state, player_index, frm)


def wall_fits(state: GameState, wall: Wall) -> bool:
    """Geometric checks only: grid bounds, edge rows/columns, overlaps."""
    if not wall.in_grid() or wall.on_boundary():
        return False
    return not any(wall.conflicts_with(w) for w in state.walls)


def keeps_all_paths(state: GameState, wall: Wall) -> bool:
    blocked = state.blocked | frozenset(wall.edges())
    for p in state.players:
        if not p.connected:
            continue
        if not reachable_blocked(blocked, p.position, state.goal_of(p).reached):
            return False
    return True


def is_valid_wall_placement(state: GameState, wall: Wall) -> bool:
    return wall_fits(state, wall) and keeps_all_paths(state, wall)


def _candidate_walls(state: GameState, player_id: str) -> List[Wall]:
    walls = []
    for pos, orientation in all_wall_slots():
        wall = Wall(pos, orientation, owner=player_id)
        if wall_fits(state, wall):
            walls.append(wall)
    return walls


def _turn_player(state: GameState, player_id: str | None):
    if state.status is not GameStatus.PLAYING:
        return None
    me = state.current_player
    if player_id is not None and me.id != player_id:
        return None
    return me


def generate_pawn_moves(state: GameState, player_id: str | None = None) -> List[Move]:
    me = _turn_player(state, player_id)
    if me is None:
        return []
    return [
        Move.pawn(me.id, me.position, to)
        for to in pawn_destinations(state, me.index)
    ]


def generate_wall_moves(state: GameState, player_id: str | None = None) -> List[Move]:
    """Wall placements that pass every legality check, in enumeration order."""
    me = _turn_player(state, player_id)
    if me is None or me.walls_remaining <= 0:
        return []
    moves: List[Move] = []
    for wall in _candidate_walls(state, me.id):
        if keeps_all_paths(state, wall):
            moves.append(Move(kind="wall", player_id=me.id, wall=wall))
    return moves


def legal_moves(state: GameState, player_id: str | None = None) -> List[Move]:
    return generate_pawn_moves(state, player_id) + generate_wall_moves(state, player_id)


def check_move(state: GameState, move: Move) -> Optional[MoveRejection]:
    """None when the move is legal, otherwise the reason it is not."""
    if state.status is not GameStatus.PLAYING:
        return MoveRejection.GAME_NOT_PLAYING
    mover = state.player(move.player_id)
    if mover is None:
        return MoveRejection.UNKNOWN_PLAYER
    if mover.id != state.current_player.id:
        return MoveRejection.NOT_YOUR_TURN
    if move.kind == "pawn":
        if move.to is None:
            return MoveRejection.INVALID_MOVE
        if move.from_position is not None and move.from_position != mover.position:
            return MoveRejection.INVALID_MOVE
        if not is_valid_pawn_move(state, mover.index, mover.position, move.to):
            return MoveRejection.INVALID_MOVE
        return None
    if move.kind == "wall":
        if move.wall is None or mover.walls_remaining <= 0:
            return MoveRejection.INVALID_MOVE
        if move.wall.owner is not None and move.wall.owner != mover.id:
            return MoveRejection.INVALID_MOVE
        if not is_valid_wall_placement(state, move.wall):
            return MoveRejection.INVALID_MOVE
        return None
    return MoveRejection.INVALID_MOVE


def validate_move(state: GameState, move: Move) -> bool:
    return check_move(state, move) is None


def sample_legal_move(state: GameState, rng: random.Random) -> Move:
    """Uniform draw from the current player's legal moves.

    Wall candidates are only connectivity-checked once drawn, so a playout
    step costs a handful of BFS runs instead of one per wall slot.
    """
    me = state.current_player
    pool: List[Move] = generate_pawn_moves(state)
    n_pawn = len(pool)
    walls = _candidate_walls(state, me.id) if me.walls_remaining > 0 else []
    while n_pawn or walls:
        i = rng.randrange(n_pawn + len(walls))
        if i < n_pawn:
            return pool[i]
        wall = walls.pop(i - n_pawn)
        if keeps_all_paths(state, wall):
            return Move(kind="wall", player_id=me.id, wall=wall)
    raise NoLegalMoves(me.id)
