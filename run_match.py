import argparse
import logging
import os
import random
import sys

# Ensure src layout is on path when running directly from repo root.
ROOT = os.path.dirname(os.path.abspath(__file__))
SRC = os.path.join(ROOT, "src")
if SRC not in sys.path:
    sys.path.insert(0, SRC)

from quoridor_core.config import Settings
from quoridor_core.engine.state import GameState
from quoridor_core.players.factory import StrategyFactory
from quoridor_core.players.match import MatchController


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Play a bot-vs-bot Quoridor match.")
    parser.add_argument(
        "strategies",
        nargs="+",
        help='One strategy config per seat, e.g. "greedy:hard" "mcts:easy,50". '
        "Two or four seats.",
    )
    parser.add_argument("--seed", type=int, default=None, help="RNG seed (overrides QUORIDOR_SEED)")
    parser.add_argument("--max-plies", type=int, default=400)
    parser.add_argument("--env-file", default=os.path.join(ROOT, ".env"))
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    settings = Settings.from_env(args.env_file)
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    if len(args.strategies) not in (2, 4):
        print(f"Need 2 or 4 strategies, got {len(args.strategies)}", file=sys.stderr)
        return 2

    seed = args.seed if args.seed is not None else settings.seed
    rng = random.Random(seed)
    player_ids = [f"p{i + 1}" for i in range(len(args.strategies))]
    try:
        strategies = {
            pid: StrategyFactory.create(cfg, rng=rng, settings=settings)
            for pid, cfg in zip(player_ids, args.strategies)
        }
    except ValueError as e:
        print(str(e), file=sys.stderr)
        return 2

    state = GameState.new_game(player_ids, max_players=len(player_ids))
    controller = MatchController(state, strategies, print_snapshot=settings.print_snapshot)
    winner = controller.play(args.max_plies)
    if winner is None:
        print(f"No winner after {len(controller.state.history)} moves")
    else:
        print(f"{winner} ({strategies[winner].name}) wins after {len(controller.state.history)} moves")
    return 0


if __name__ == "__main__":
    sys.exit(main())
