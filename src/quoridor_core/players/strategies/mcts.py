"""Monte Carlo Tree Search strategy.

Nodes live in a flat arena addressed by index: each node keeps its parent
index and a list of child indices, so backpropagation walks indices instead
of object back-references. Game states are immutable values, so every node
can hold its own snapshot without copying.

One search per ``select_move`` call:

* selection: UCB1 plus a small path-delta bias, unvisited children first;
* expansion: pop a random untried move. The searching player's nodes try
  the full legal-move set; other players' nodes try a curated subset (the
  shortest-path step, the walls that hurt the leading rival most, walls
  next to that rival);
* simulation: biased playout, mostly greedy steps (the best pawn step, or a
  wall in front of the leading rival when that costs them more), otherwise
  a uniform legal move, cut off at a depth cap or once the race is decided;
* backpropagation: reward for the searching player, ``1 - reward`` on nodes
  entered by anyone else.
"""

from __future__ import annotations
import logging
import math
import random
from typing import Dict, FrozenSet, List, Optional, Tuple

from .base import (
    Difficulty,
    in_opening,
    opponents,
    pure_race,
    random_move,
    require_turn,
    shortest_path_move,
)
from ...engine import rules
from ...engine.board import (
    DIRS,
    MAX_PATH_LENGTH,
    Goal,
    Position,
    Wall,
    all_wall_slots,
    edge,
    walls_blocking,
)
from ...engine.connectivity import goal_distances
from ...engine.errors import NoLegalMoves
from ...engine.game import advance
from ...engine.pathfinding import INFINITY, shortest_distance, shortest_path_edges
from ...engine.state import GameState, Move

LOGGER = logging.getLogger(__name__)

# difficulty -> (iterations, UCB1 exploration constant)
TIERS = {
    Difficulty.EASY: (100, 1.5),
    Difficulty.MEDIUM: (250, math.sqrt(2)),
    Difficulty.HARD: (500, 1.0),
}

ROLLOUT_DEPTH = 30
GREEDY_PROBABILITY = 0.75
DECISIVE_DELTA = 0.6
BIAS_WEIGHT = 0.3
SIGMOID_SCALE = 2.0
MIN_WALL_WIN_RATE = 0.2
TOP_BLOCKING_WALLS = 8
NEARBY_RADIUS = 3
CURATED_CAP = 15


def _clamp(v: float) -> float:
    return max(-1.0, min(1.0, v))


def advantage(state: GameState, player_id: str) -> float:
    """Closest rival's path length minus ours (pawn-aware distances)."""
    mine = shortest_distance(state, player_id)
    rivals = [shortest_distance(state, p.id) for p in opponents(state, player_id)]
    theirs = min(rivals) if rivals else INFINITY
    if mine == INFINITY:
        return -MAX_PATH_LENGTH
    if theirs == INFINITY:
        return MAX_PATH_LENGTH
    return theirs - mine


def race_reward(state: GameState, player_id: str) -> float:
    """1/0 for a finished game, else a sigmoid of the path-length advantage."""
    if state.is_terminal():
        return 1.0 if state.winner == player_id else 0.0
    return 1.0 / (1.0 + math.exp(-advantage(state, player_id) / SIGMOID_SCALE))


class _Arena:
    def __init__(self, root: GameState):
        self.states: List[GameState] = [root]
        self.moves: List[Optional[Move]] = [None]
        self.parents: List[int] = [-1]
        self.children: List[List[int]] = [[]]
        self.untried: List[Optional[List[Move]]] = [None]
        self.visits: List[int] = [0]
        self.values: List[float] = [0.0]
        self.bias: List[float] = [0.0]

    def add(self, parent: int, move: Move, state: GameState, bias: float) -> int:
        idx = len(self.states)
        self.states.append(state)
        self.moves.append(move)
        self.parents.append(parent)
        self.children.append([])
        self.untried.append(None)
        self.visits.append(0)
        self.values.append(0.0)
        self.bias.append(bias)
        self.children[parent].append(idx)
        return idx

    def __len__(self) -> int:
        return len(self.states)


class MCTSStrategy:
    def __init__(
        self,
        difficulty: Difficulty = Difficulty.MEDIUM,
        iterations: int | None = None,
        exploration: float | None = None,
        rollout_depth: int = ROLLOUT_DEPTH,
        rng: random.Random | None = None,
        greedy_probability: float = GREEDY_PROBABILITY,
        use_bias: bool = True,
    ):
        self.difficulty = Difficulty.parse(difficulty)
        tier_iterations, tier_c = TIERS[self.difficulty]
        self.iterations = tier_iterations if iterations is None else iterations
        self.exploration = tier_c if exploration is None else exploration
        self.rollout_depth = rollout_depth
        self.greedy_probability = greedy_probability
        self.use_bias = use_bias
        self.rng = rng or random.Random()
        self.name = f"MCTS Bot ({self.difficulty.value})"

    # ------------------------------------------------------------------ entry

    def select_move(self, state: GameState, player_id: str) -> Move:
        require_turn(state, player_id)

        # search adds nothing in the opening or in a pure race
        if in_opening(state) or pure_race(state):
            move = shortest_path_move(state, player_id)
            if move is not None and rules.validate_move(state, move):
                LOGGER.debug("MCTS_SHORTCUT player=%s move=%s", player_id, move)
                return move

        if not rules.legal_moves(state, player_id):
            LOGGER.error("NO_LEGAL_MOVES player=%s", player_id)
            raise NoLegalMoves(player_id)

        search = _Search(self, state, player_id)
        search.run(self.iterations)
        best = search.best_child()
        if best is None:
            LOGGER.warning("MCTS_FALLBACK player=%s reason=empty_tree", player_id)
            return random_move(state, player_id, self.rng)

        arena = search.arena
        move = arena.moves[best]
        win_rate = arena.values[best] / arena.visits[best] if arena.visits[best] else 0.0
        LOGGER.debug(
            "MCTS_DONE player=%s iterations=%d nodes=%d best=%s visits=%d win_rate=%.3f",
            player_id,
            self.iterations,
            len(arena),
            move,
            arena.visits[best],
            win_rate,
        )
        if move.is_wall and win_rate < MIN_WALL_WIN_RATE:
            pawn = shortest_path_move(state, player_id)
            if pawn is not None:
                LOGGER.debug("MCTS_WALL_OVERRIDE win_rate=%.3f move=%s", win_rate, pawn)
                return pawn
        return move


class _Search:
    """State of one tree search. Nothing here outlives the call."""

    def __init__(self, owner: MCTSStrategy, root: GameState, player_id: str):
        self.owner = owner
        self.rng = owner.rng
        self.player_id = player_id
        self.arena = _Arena(root)
        self._advantages: Dict[Tuple[int, str], float] = {}
        self._goal_maps: Dict[Tuple[FrozenSet[Wall], Goal], Dict[Position, int]] = {}

    def run(self, iterations: int) -> None:
        for _ in range(iterations):
            node = self._select_and_expand()
            reward = self._rollout(self.arena.states[node])
            self._backpropagate(node, reward)

    def best_child(self) -> Optional[int]:
        kids = self.arena.children[0]
        if not kids:
            return None
        return max(kids, key=lambda c: self.arena.visits[c])

    # ------------------------------------------------------------- selection

    def _select_and_expand(self) -> int:
        arena = self.arena
        node = 0
        while not arena.states[node].is_terminal():
            untried = self._untried(node)
            if untried:
                return self._expand(node, untried)
            if not arena.children[node]:
                break
            node = self._best_ucb_child(node)
        return node

    def _best_ucb_child(self, node: int) -> int:
        arena = self.arena
        log_parent = math.log(max(1, arena.visits[node]))
        best, best_score = -1, -math.inf
        for c in arena.children[node]:
            n = arena.visits[c]
            if n == 0:
                return c
            score = arena.values[c] / n + self.owner.exploration * math.sqrt(log_parent / n)
            if self.owner.use_bias:
                score += BIAS_WEIGHT * arena.bias[c]
            if score > best_score:
                best, best_score = c, score
        return best

    # ------------------------------------------------------------- expansion

    def _untried(self, node: int) -> List[Move]:
        arena = self.arena
        if arena.untried[node] is None:
            state = arena.states[node]
            mover = state.current_player
            if mover.id == self.player_id:
                moves = rules.legal_moves(state)
            else:
                moves = self._curated_moves(state, mover.id) or rules.legal_moves(state)
            arena.untried[node] = moves
        return arena.untried[node]

    def _expand(self, node: int, untried: List[Move]) -> int:
        move = untried.pop(self.rng.randrange(len(untried)))
        parent_state = self.arena.states[node]
        child_state = advance(parent_state, move)
        bias = 0.0
        if self.owner.use_bias:
            before = self._node_advantage(node, move.player_id)
            after = advantage(child_state, move.player_id)
            bias = _clamp((after - before) / MAX_PATH_LENGTH)
        return self.arena.add(node, move, child_state, bias)

    def _node_advantage(self, node: int, player_id: str) -> float:
        key = (node, player_id)
        if key not in self._advantages:
            self._advantages[key] = advantage(self.arena.states[node], player_id)
        return self._advantages[key]

    def _curated_moves(self, state: GameState, mover_id: str) -> List[Move]:
        moves: List[Move] = []
        step = shortest_path_move(state, mover_id)
        if step is not None:
            moves.append(step)
        mover = state.player(mover_id)
        rivals = opponents(state, mover_id)
        if mover.walls_remaining <= 0 or not rivals:
            return moves

        target = min(rivals, key=lambda p: shortest_distance(state, p.id))
        base = shortest_distance(state, target.id)
        slots = set()
        for a, b in shortest_path_edges(state, target.id):
            if a.manhattan(b) == 1:
                slots.update(walls_blocking(a, b))

        scored = []
        for pos, orientation in sorted(slots):
            wall = Wall(pos, orientation, owner=mover_id)
            if not rules.is_valid_wall_placement(state, wall):
                continue
            impact = shortest_distance(state.with_wall(wall), target.id) - base
            if impact > 0:
                scored.append((impact, wall))
        scored.sort(key=lambda s: -s[0])
        seen = set()
        for _, wall in scored[:TOP_BLOCKING_WALLS]:
            moves.append(Move(kind="wall", player_id=mover_id, wall=wall))
            seen.add(wall.key())

        for pos, orientation in all_wall_slots():
            if len(moves) >= CURATED_CAP:
                break
            if pos.manhattan(target.position) > NEARBY_RADIUS:
                continue
            wall = Wall(pos, orientation, owner=mover_id)
            if wall.key() in seen or not rules.is_valid_wall_placement(state, wall):
                continue
            moves.append(Move(kind="wall", player_id=mover_id, wall=wall))
            seen.add(wall.key())
        return moves

    # ------------------------------------------------------------ simulation

    def _goal_map(self, state: GameState, goal: Goal) -> Dict[Position, int]:
        key = (state.walls, goal)
        dmap = self._goal_maps.get(key)
        if dmap is None:
            dmap = goal_distances(state.blocked, goal)
            self._goal_maps[key] = dmap
        return dmap

    def _raw_distance(self, state: GameState, player) -> float:
        return self._goal_map(state, state.goal_of(player)).get(player.position, INFINITY)

    def _race_delta(self, state: GameState) -> float:
        me = state.player(self.player_id)
        mine = self._raw_distance(state, me)
        rivals = [self._raw_distance(state, p) for p in opponents(state, self.player_id)]
        theirs = min(rivals) if rivals else INFINITY
        if mine == INFINITY:
            return -1.0
        if theirs == INFINITY:
            return 1.0
        return _clamp((theirs - mine) / MAX_PATH_LENGTH)

    def _greedy_step(self, state: GameState) -> Optional[Move]:
        """Move that gains the mover the most ground.

        For the searching player this maximizes its race delta; for everyone
        else it is the move that shrinks that delta the most. A wall wins over
        the best pawn step only when it costs the leading rival more than the
        step would gain.
        """
        mover = state.current_player
        dmap = self._goal_map(state, state.goal_of(mover))
        mine = dmap.get(mover.position, INFINITY)
        best, best_d = None, INFINITY
        for to in rules.pawn_destinations(state, mover.index):
            d = dmap.get(to, INFINITY)
            if d < best_d:
                best, best_d = to, d
        step_gain = mine - best_d if best is not None else -INFINITY
        wall = self._greedy_wall(state, mover, mine, step_gain)
        if wall is not None:
            return wall
        if best is None:
            return None
        return Move.pawn(mover.id, mover.position, best)

    def _greedy_wall(self, state: GameState, mover, mine: float, step_gain: float) -> Optional[Move]:
        if mover.walls_remaining <= 0 or mine == INFINITY:
            return None
        rivals = [(self._raw_distance(state, p), p) for p in opponents(state, mover.id)]
        if not rivals:
            return None
        theirs, target = min(rivals, key=lambda r: r[0])
        # already ahead on the race: keep running
        if theirs == INFINITY or theirs > mine:
            return None
        tmap = self._goal_map(state, state.goal_of(target))
        pos = target.position
        nxt = None
        for dx, dy in DIRS:
            cand = pos.offset(dx, dy)
            if not cand.in_bounds() or edge(pos, cand) in state.blocked:
                continue
            if tmap.get(cand) == theirs - 1:
                nxt = cand
                break
        if nxt is None:
            return None
        best, best_gain = None, step_gain
        for anchor, orientation in walls_blocking(pos, nxt):
            wall = Wall(anchor, orientation, owner=mover.id)
            if not rules.is_valid_wall_placement(state, wall):
                continue
            trial = state.with_wall(wall)
            gain = (self._raw_distance(trial, target) - theirs) - (
                self._raw_distance(trial, mover) - mine
            )
            if gain > best_gain:
                best, best_gain = wall, gain
        if best is None:
            return None
        return Move(kind="wall", player_id=mover.id, wall=best)

    def _rollout(self, state: GameState) -> float:
        depth = 0
        while not state.is_terminal() and depth < self.owner.rollout_depth:
            move = None
            if self.rng.random() < self.owner.greedy_probability:
                move = self._greedy_step(state)
            if move is None:
                try:
                    move = rules.sample_legal_move(state, self.rng)
                except NoLegalMoves:
                    # a stuck pawn ends the playout; score what is on the board
                    break
            state = advance(state, move)
            depth += 1
            if abs(self._race_delta(state)) > DECISIVE_DELTA:
                break
        return race_reward(state, self.player_id)

    # ------------------------------------------------------- backpropagation

    def _backpropagate(self, node: int, reward: float) -> None:
        arena = self.arena
        while node != -1:
            arena.visits[node] += 1
            move = arena.moves[node]
            if move is None or move.player_id == self.player_id:
                arena.values[node] += reward
            else:
                arena.values[node] += 1.0 - reward
            node = arena.parents[node]
