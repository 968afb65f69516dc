"""Shared constants and metadata structures for partitioning."""

from dataclasses import dataclass, field

# Maximum number of bucket file handles to keep open at once (LRU cache limit).
MAX_OPEN_HANDLES = 128


@dataclass
class PartitionStats:
    """Statistics from partition_to_buckets operation."""

    records_read: int = 0
    records_written: int = 0
    records_per_source: list[int] = field(default_factory=list)
    bucket_sizes: list[int] = field(default_factory=list)
