from __future__ import annotations
import os
from dataclasses import dataclass, field
from typing import Dict, Optional

from dotenv import load_dotenv

_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _int_env(name: str, default: Optional[int]) -> Optional[int]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}")


@dataclass
class Settings:
    log_level: str = "WARNING"
    seed: Optional[int] = None
    mcts_iterations: Dict[str, int] = field(default_factory=dict)
    rollout_depth: int = 30
    print_snapshot: bool = False

    @staticmethod
    def from_env(env_file: str | None = ".env") -> "Settings":
        """Read settings from the environment, seeding it from ``env_file``.

        Variables already present in the environment win over the file.
        """
        if env_file and os.path.isfile(env_file):
            load_dotenv(env_file, override=False)
        level = os.getenv("QUORIDOR_LOG_LEVEL", "WARNING").upper()
        if level not in _LEVELS:
            raise ValueError(f"QUORIDOR_LOG_LEVEL must be one of {_LEVELS}, got {level!r}")
        iterations = {}
        for tier in ("easy", "medium", "hard"):
            value = _int_env(f"QUORIDOR_MCTS_ITERATIONS_{tier.upper()}", None)
            if value is not None:
                iterations[tier] = value
        return Settings(
            log_level=level,
            seed=_int_env("QUORIDOR_SEED", None),
            mcts_iterations=iterations,
            rollout_depth=_int_env("QUORIDOR_MCTS_ROLLOUT_DEPTH", 30),
            print_snapshot=os.getenv("PRINT_SNAPSHOT", "0") == "1",
        )
