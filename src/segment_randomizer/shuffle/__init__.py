"""Shuffle phase: per-bucket permutation appended to the output store."""

from segment_randomizer.shuffle.bucket import shuffle_bucket, shuffle_buckets
from segment_randomizer.shuffle.types import ShuffleStats

__all__ = ["ShuffleStats", "shuffle_bucket", "shuffle_buckets"]
