"""In-memory shuffling of one bucket at a time."""

import logging
import random
from collections.abc import Iterable
from pathlib import Path

from tqdm import tqdm

from segment_randomizer.shuffle.types import ShuffleStats
from segment_randomizer.storage import SegmentReader, SegmentWriter

logger = logging.getLogger(__name__)


def shuffle_bucket(bucket_path: str | Path, rng: random.Random) -> list[bytes]:
    """
    Load all records of one bucket store and permute them in place.

    The reader is closed before shuffling. ``rng.shuffle`` is a Fisher-Yates
    shuffle, so every ordering of the bucket is reachable.
    """
    with SegmentReader(bucket_path) as reader:
        records = list(reader)

    rng.shuffle(records)
    return records


def shuffle_buckets(
    bucket_paths: Iterable[str | Path],
    rng: random.Random,
    output: SegmentWriter,
    progress: tqdm | None = None,
) -> ShuffleStats:
    """
    Shuffle each bucket and append it to the output, in the given order.

    Records of an earlier bucket always precede those of a later one; only
    the order within a bucket is randomized. At most one bucket is resident
    in memory at a time, next to fewer than one chunk of records still
    buffered by the output writer; ``peak_resident_records`` counts both.
    """
    stats = ShuffleStats()

    for bucket_path in bucket_paths:
        records = shuffle_bucket(bucket_path, rng)
        logger.debug("Bucket %s: %d records", Path(bucket_path).name, len(records))

        stats.peak_resident_records = max(
            stats.peak_resident_records, len(records) + output.records_pending
        )
        if not records:
            stats.empty_buckets += 1

        for record in records:
            output.append(record)
        stats.records_written += len(records)
        stats.buckets_processed += 1

        del records
        if progress is not None:
            progress.update(1)

    return stats
