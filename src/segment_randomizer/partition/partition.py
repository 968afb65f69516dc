"""Random bucket assignment for the partition phase."""

import random
from collections.abc import Sequence
from itertools import islice
from pathlib import Path

from tqdm import tqdm

from segment_randomizer.partition.buckets import BucketSet
from segment_randomizer.partition.types import PartitionStats
from segment_randomizer.storage import SegmentReader


def compute_bucket_count(total_records: int, records_per_bucket: int) -> int:
    """
    Number of buckets for a run: ``total_records // records_per_bucket + 1``.

    Always at least one, and one more than an exact fit so that no bucket is
    expected to hold more than ``records_per_bucket`` records.
    """
    if records_per_bucket < 1:
        raise ValueError(f"records_per_bucket must be >= 1, got {records_per_bucket}")
    if total_records < 0:
        raise ValueError(f"total_records must be >= 0, got {total_records}")
    return total_records // records_per_bucket + 1


def partition_to_buckets(
    input_files: Sequence[str | Path],
    bucket_set: BucketSet,
    rng: random.Random,
    read_n: int | None = None,
    progress: tqdm | None = None,
) -> PartitionStats:
    """
    Stream every input source into uniformly chosen buckets.

    Sources are read in the given order and, within a source, in native
    record order. Only the first ``read_n`` records of each source are
    considered (``None`` means all of them). One ``rng.randrange`` draw is
    made per record, so the assignments are reproducible for a fixed seed.
    """
    num_buckets = bucket_set.num_buckets
    stats = PartitionStats()

    for input_file in input_files:
        source_count = 0
        with SegmentReader(input_file) as source:
            for record in islice(source, read_n):
                bucket_set.append(rng.randrange(num_buckets), record)
                source_count += 1
                if progress is not None:
                    progress.update(1)

        stats.records_per_source.append(source_count)
        stats.records_read += source_count

    stats.bucket_sizes = bucket_set.sizes()
    stats.records_written = sum(stats.bucket_sizes)
    return stats
