import random
import unittest
from dataclasses import replace
from unittest import mock
from quoridor_core.engine import rules
from quoridor_core.engine.board import Orientation, Position, Wall
from quoridor_core.engine.errors import NoLegalMoves
from quoridor_core.engine.game import advance
from quoridor_core.engine.pathfinding import INFINITY, shortest_distance
from quoridor_core.engine.state import GameState, GameStatus, Move
from quoridor_core.players.strategies.base import Difficulty
from quoridor_core.players.strategies.greedy import GreedyBlockingStrategy
from quoridor_core.players.strategies import mcts
from quoridor_core.players.strategies.mcts import MCTSStrategy, _Search, advantage, race_reward
from quoridor_core.players.strategies.random_strategy import RandomStrategy
from quoridor_core.players.strategies.rule_based import RuleBasedStrategy

H = Orientation.HORIZONTAL
V = Orientation.VERTICAL


def place(state, player_id, x, y, walls=None):
    p = state.player(player_id)
    p = replace(p, position=Position(x, y))
    if walls is not None:
        p = replace(p, walls_remaining=walls)
    return state.with_player(p)


def with_walls(state, *walls):
    return replace(state, walls=state.walls | frozenset(walls))


def midgame(state):
    """Pretend a couple of moves were played so opening shortcuts do not fire."""
    filler = (
        Move.pawn("a", Position(4, 0), Position(4, 0)),
        Move.pawn("b", Position(4, 8), Position(4, 8)),
    )
    return replace(state, history=filler)


def stuck_state():
    # a in the corner: down walled, b beside it with the jump walled too
    state = GameState.new_game(["a", "b"])
    state = place(state, "a", 0, 0, walls=0)
    state = place(state, "b", 1, 0)
    return with_walls(state, Wall(Position(0, 0), H), Wall(Position(1, 0), V))


def boxed_state():
    # a at (2, 2) can only step down to (2, 3)
    state = GameState.new_game(["a", "b"])
    state = place(state, "a", 2, 2, walls=0)
    return with_walls(
        state,
        Wall(Position(1, 1), H),
        Wall(Position(1, 2), V),
        Wall(Position(2, 2), V),
    )


class TestDifficulty(unittest.TestCase):
    def test_parse(self):
        self.assertEqual(Difficulty.parse("Hard"), Difficulty.HARD)
        self.assertEqual(Difficulty.parse(Difficulty.EASY), Difficulty.EASY)
        with self.assertRaises(ValueError):
            Difficulty.parse("impossible")


class TestRandomStrategy(unittest.TestCase):
    def test_returns_legal_move(self):
        state = GameState.new_game(["a", "b"])
        strategy = RandomStrategy(random.Random(0))
        for _ in range(10):
            self.assertTrue(rules.validate_move(state, strategy.select_move(state, "a")))

    def test_no_legal_moves_raises(self):
        with self.assertRaises(NoLegalMoves):
            RandomStrategy(random.Random(0)).select_move(stuck_state(), "a")


class TestGreedyStrategy(unittest.TestCase):
    def test_races_when_nobody_is_close(self):
        state = GameState.new_game(["a", "b"])
        move = GreedyBlockingStrategy(Difficulty.HARD, random.Random(0)).select_move(state, "a")
        self.assertEqual(move.to, Position(4, 1))

    def test_blocks_close_opponent(self):
        state = place(GameState.new_game(["a", "b"]), "b", 4, 2)
        before = shortest_distance(state, "b")
        move = GreedyBlockingStrategy(Difficulty.HARD, random.Random(0)).select_move(state, "a")
        self.assertTrue(move.is_wall)
        self.assertTrue(rules.validate_move(state, move))
        self.assertGreater(shortest_distance(state.with_wall(move.wall), "b"), before)

    def test_easy_threshold_is_wider(self):
        state = place(GameState.new_game(["a", "b"]), "b", 4, 4)
        hard = GreedyBlockingStrategy(Difficulty.HARD, random.Random(0)).select_move(state, "a")
        easy = GreedyBlockingStrategy(Difficulty.EASY, random.Random(0)).select_move(state, "a")
        self.assertFalse(hard.is_wall)
        self.assertTrue(easy.is_wall)

    def test_unknown_player(self):
        with self.assertRaises(ValueError):
            GreedyBlockingStrategy().select_move(GameState.new_game(["a", "b"]), "zz")


class TestRuleBasedStrategy(unittest.TestCase):
    def test_advances_when_no_wall_pays_off(self):
        state = GameState.new_game(["a", "b"])
        move = RuleBasedStrategy(random.Random(0)).select_move(state, "a")
        self.assertEqual(move.to, Position(4, 1))

    def test_sprints_near_goal(self):
        state = place(GameState.new_game(["a", "b"]), "a", 4, 6)
        state = place(state, "b", 4, 2)
        move = RuleBasedStrategy(random.Random(0)).select_move(state, "a")
        self.assertEqual(move.to, Position(4, 7))

    def test_walls_a_funnel(self):
        # b (goal row 0) must cross between rows 3 and 4 through columns 3-4
        state = GameState.new_game(["a", "b"])
        state = place(place(state, "b", 4, 5), "a", 8, 2)
        state = with_walls(state, Wall(Position(1, 3), H), Wall(Position(5, 3), H))
        my_dist = shortest_distance(state, "a")
        rival_dist = shortest_distance(state, "b")
        move = RuleBasedStrategy(random.Random(0)).select_move(state, "a")
        self.assertTrue(move.is_wall)
        trial = state.with_wall(move.wall)
        self.assertGreaterEqual(shortest_distance(trial, "b") - rival_dist, 2)
        self.assertLessEqual(shortest_distance(trial, "a") - my_dist, 1)


class TestMCTSStrategy(unittest.TestCase):
    def test_tiers(self):
        self.assertEqual(MCTSStrategy(Difficulty.EASY).iterations, 100)
        self.assertEqual(MCTSStrategy(Difficulty.MEDIUM).iterations, 250)
        hard = MCTSStrategy(Difficulty.HARD)
        self.assertEqual((hard.iterations, hard.exploration), (500, 1.0))
        self.assertEqual(MCTSStrategy(Difficulty.HARD, iterations=7).iterations, 7)

    def test_opening_takes_shortest_path(self):
        state = GameState.new_game(["a", "b"])
        move = MCTSStrategy(Difficulty.EASY, iterations=5, rng=random.Random(0)).select_move(state, "a")
        self.assertEqual(move.to, Position(4, 1))

    def test_single_legal_move(self):
        state = midgame(boxed_state())
        move = MCTSStrategy(Difficulty.EASY, iterations=1, rng=random.Random(0)).select_move(state, "a")
        self.assertEqual(move.to, Position(2, 3))

    def test_midgame_move_is_legal(self):
        state = midgame(place(place(GameState.new_game(["a", "b"]), "a", 4, 3), "b", 4, 4))
        strategy = MCTSStrategy(Difficulty.MEDIUM, iterations=20, rng=random.Random(5))
        move = strategy.select_move(state, "a")
        self.assertTrue(rules.validate_move(state, move))

    def test_four_player_move_is_legal(self):
        state = midgame(GameState.new_game(["a", "b", "c", "d"], max_players=4))
        strategy = MCTSStrategy(Difficulty.EASY, iterations=15, rng=random.Random(2))
        self.assertTrue(rules.validate_move(state, strategy.select_move(state, "a")))

    def test_no_legal_moves_raises(self):
        with self.assertRaises(NoLegalMoves):
            MCTSStrategy(iterations=5, rng=random.Random(0)).select_move(midgame(stuck_state()), "a")

    def test_reward(self):
        state = GameState.new_game(["a", "b"])
        self.assertEqual(advantage(state, "a"), 0)
        self.assertAlmostEqual(race_reward(state, "a"), 0.5)
        ahead = place(state, "a", 4, 5)
        self.assertGreater(race_reward(ahead, "a"), 0.5)
        self.assertLess(race_reward(ahead, "b"), 0.5)
        done = replace(state, status=GameStatus.FINISHED, winner="b")
        self.assertEqual(race_reward(done, "a"), 0.0)
        self.assertEqual(race_reward(done, "b"), 1.0)


class TestTurnChecks(unittest.TestCase):
    def strategies(self):
        return [
            RandomStrategy(random.Random(0)),
            GreedyBlockingStrategy(rng=random.Random(0)),
            RuleBasedStrategy(random.Random(0)),
            MCTSStrategy(iterations=5, rng=random.Random(0)),
        ]

    def test_off_turn_request_is_a_caller_error(self):
        state = midgame(GameState.new_game(["a", "b"]))
        for strategy in self.strategies():
            with self.assertRaises(ValueError):
                strategy.select_move(state, "b")

    def test_finished_game_is_a_caller_error(self):
        state = replace(GameState.new_game(["a", "b"]), status=GameStatus.FINISHED, winner="b")
        for strategy in self.strategies():
            with self.assertRaises(ValueError):
                strategy.select_move(state, "a")

    def test_unknown_player(self):
        state = GameState.new_game(["a", "b"])
        for strategy in self.strategies():
            with self.assertRaises(ValueError):
                strategy.select_move(state, "zz")


class TestGreedyFallbacks(unittest.TestCase):
    def test_random_fallback_when_no_step_helps(self):
        state = GameState.new_game(["a", "b"])
        strategy = GreedyBlockingStrategy(Difficulty.HARD, random.Random(0))
        with mock.patch.object(GreedyBlockingStrategy, "_greedy_pawn_move", return_value=None):
            with self.assertLogs("quoridor_core.players.strategies.greedy", "WARNING") as logs:
                move = strategy.select_move(state, "a")
        self.assertTrue(rules.validate_move(state, move))
        self.assertIn("GREEDY_FALLBACK", logs.output[0])

    def test_wall_that_cuts_the_route_wins_outright(self):
        state = place(GameState.new_game(["a", "b"]), "b", 4, 2)
        sealing = (6, 5, H)
        big_gain = (2, 2, H)

        def fake_distance(s, pid):
            if pid != "b":
                return 8
            keys = {w.key() for w in s.walls}
            if sealing in keys:
                return INFINITY
            if big_gain in keys:
                return 9
            return 2

        strategy = GreedyBlockingStrategy(Difficulty.HARD, random.Random(0))
        with mock.patch(
            "quoridor_core.players.strategies.greedy.shortest_distance", side_effect=fake_distance
        ):
            move = strategy.select_move(state, "a")
        self.assertEqual(move.wall.key(), sealing)


class TestRuleBasedTieBreak(unittest.TestCase):
    def test_prefers_centre_column_on_equal_distance(self):
        # (3, 3) and the jump to (6, 3) are both five steps from row 8
        state = GameState.new_game(["a", "b"])
        state = place(place(state, "a", 4, 3), "b", 5, 3)
        state = with_walls(state, Wall(Position(4, 3), H))
        move = RuleBasedStrategy(random.Random(0)).select_move(state, "a")
        self.assertEqual(move.to, Position(3, 3))


class TestMCTSBehaviour(unittest.TestCase):
    def fake_run(self, value):
        def run(search, iterations):
            root = search.arena.states[0]
            wall = Move.place_wall("a", Position(3, 3), H)
            child = search.arena.add(0, wall, advance(root, wall), 0.0)
            search.arena.visits[child] = 10
            search.arena.values[child] = value

        return run

    def test_weak_wall_is_replaced_by_path_step(self):
        state = midgame(GameState.new_game(["a", "b"]))
        strategy = MCTSStrategy(iterations=1, rng=random.Random(0))
        with mock.patch.object(_Search, "run", self.fake_run(1.0)):
            move = strategy.select_move(state, "a")
        self.assertEqual(move.to, Position(4, 1))

    def test_confident_wall_is_kept(self):
        state = midgame(GameState.new_game(["a", "b"]))
        strategy = MCTSStrategy(iterations=1, rng=random.Random(0))
        with mock.patch.object(_Search, "run", self.fake_run(5.0)):
            move = strategy.select_move(state, "a")
        self.assertTrue(move.is_wall)

    def test_pure_race_skips_search(self):
        state = GameState.new_game(["a", "b"])
        state = place(place(state, "a", 2, 3, walls=0), "b", 6, 6, walls=0)
        state = midgame(state)
        strategy = MCTSStrategy(iterations=50, rng=random.Random(0))
        with mock.patch.object(mcts, "_Search", side_effect=AssertionError("searched")):
            move = strategy.select_move(state, "a")
        self.assertEqual(move.to, Position(2, 4))

    def test_backpropagation_flips_reward_for_other_movers(self):
        state = midgame(GameState.new_game(["a", "b"]))
        search = _Search(MCTSStrategy(rng=random.Random(0)), state, "a")
        mine = Move.pawn("a", Position(4, 0), Position(4, 1))
        after_mine = advance(state, mine)
        theirs = Move.pawn("b", Position(4, 8), Position(4, 7))
        child = search.arena.add(0, mine, after_mine, 0.0)
        grandchild = search.arena.add(child, theirs, advance(after_mine, theirs), 0.0)

        search._backpropagate(grandchild, 0.8)

        self.assertEqual(search.arena.visits[:3], [1, 1, 1])
        self.assertAlmostEqual(search.arena.values[0], 0.8)
        self.assertAlmostEqual(search.arena.values[child], 0.8)
        self.assertAlmostEqual(search.arena.values[grandchild], 0.2)

    def test_rollout_step_walls_a_rival_who_is_ahead(self):
        # b (goal row 0) must funnel through columns 3-4 between rows 3 and 4
        state = GameState.new_game(["a", "b"])
        state = place(place(state, "b", 4, 5), "a", 8, 0)
        state = midgame(with_walls(state, Wall(Position(1, 3), H), Wall(Position(5, 3), H)))
        search = _Search(MCTSStrategy(rng=random.Random(0)), state, "a")
        move = search._greedy_step(state)
        self.assertTrue(move.is_wall)
        self.assertEqual(move.wall.key(), (3, 4, H))
        self.assertTrue(rules.validate_move(state, move))

    def test_rollout_step_runs_when_ahead(self):
        state = GameState.new_game(["a", "b"])
        state = midgame(place(state, "a", 4, 6))
        search = _Search(MCTSStrategy(rng=random.Random(0)), state, "a")
        self.assertEqual(search._greedy_step(state).to, Position(4, 7))


if __name__ == "__main__":
    unittest.main()
