"""Shuffle orchestration and run configuration."""

from segment_randomizer.randomizer.config import RandomizerConfig
from segment_randomizer.randomizer.orchestrator import (
    RandomizeResult,
    Randomizer,
    RunState,
    count_records,
    randomize,
)

__all__ = [
    "RandomizeResult",
    "Randomizer",
    "RandomizerConfig",
    "RunState",
    "count_records",
    "randomize",
]
