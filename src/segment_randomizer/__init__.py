"""Segment Randomizer - memory-bounded shuffling of chunked segment stores."""

from segment_randomizer.randomizer import RandomizerConfig, randomize

__all__ = ["RandomizerConfig", "randomize"]
