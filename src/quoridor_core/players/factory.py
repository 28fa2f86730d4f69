from __future__ import annotations
import random
from typing import Callable, Dict, Optional

from ..config import Settings
from .strategies.base import Difficulty, Strategy
from .strategies.greedy import GreedyBlockingStrategy
from .strategies.mcts import MCTSStrategy
from .strategies.random_strategy import RandomStrategy
from .strategies.rule_based import RuleBasedStrategy

Builder = Callable[[list, random.Random, Settings], Strategy]

# Which strategy answers a bare difficulty request.
DIFFICULTY_STRATEGY = {
    Difficulty.EASY: "greedy:easy",
    Difficulty.MEDIUM: "rule",
    Difficulty.HARD: "mcts:hard",
}


def _difficulty(args: list, default: Difficulty) -> Difficulty:
    return Difficulty.parse(args[0]) if args else default


def _build_mcts(args: list, rng: random.Random, settings: Settings) -> Strategy:
    difficulty = _difficulty(args, Difficulty.MEDIUM)
    iterations = int(args[1]) if len(args) > 1 else settings.mcts_iterations.get(difficulty.value)
    return MCTSStrategy(
        difficulty,
        iterations=iterations,
        rollout_depth=settings.rollout_depth,
        rng=rng,
    )


class StrategyFactory:
    _registry: Dict[str, Builder] = {}

    @classmethod
    def register(cls, name: str, builder: Builder) -> None:
        cls._registry[name] = builder

    @classmethod
    def available(cls) -> list:
        return sorted(cls._registry)

    @classmethod
    def create(
        cls,
        config_str: str,
        rng: Optional[random.Random] = None,
        settings: Optional[Settings] = None,
    ) -> Strategy:
        """
        Create a strategy from a configuration string.
        Format: "type:arg1,arg2" or just "type"
        Examples:
            - "random"
            - "greedy:hard"
            - "rule"
            - "mcts:easy"
            - "mcts:hard,50" (difficulty, iterations)
        """
        parts = config_str.split(":", 1)
        kind = parts[0].strip().lower()
        args_str = parts[1] if len(parts) > 1 else ""
        if kind not in cls._registry:
            raise ValueError(f"Unknown strategy type: {kind}. Available: {cls.available()}")
        args = [a.strip() for a in args_str.split(",")] if args_str else []
        try:
            return cls._registry[kind](args, rng or random.Random(), settings or Settings())
        except ValueError as e:
            raise ValueError(f"Failed to create strategy '{kind}' with args {args}: {e}")

    @classmethod
    def for_difficulty(
        cls,
        difficulty: "str | Difficulty",
        rng: Optional[random.Random] = None,
        settings: Optional[Settings] = None,
    ) -> Strategy:
        return cls.create(DIFFICULTY_STRATEGY[Difficulty.parse(difficulty)], rng, settings)


# Register default strategies
StrategyFactory.register("random", lambda args, rng, settings: RandomStrategy(rng))
StrategyFactory.register(
    "greedy",
    lambda args, rng, settings: GreedyBlockingStrategy(_difficulty(args, Difficulty.MEDIUM), rng),
)
StrategyFactory.register("rule", lambda args, rng, settings: RuleBasedStrategy(rng))
StrategyFactory.register("mcts", _build_mcts)
