"""Two-phase randomization of segment stores: partition, shuffle, finalize."""

import logging
import random
import shutil
import tempfile
import time
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from segment_randomizer.errors import InputError, RandomizerError, ResourceError
from segment_randomizer.partition import (
    BucketSet,
    PartitionStats,
    compute_bucket_count,
    partition_to_buckets,
)
from segment_randomizer.progress import progress_bar
from segment_randomizer.randomizer.config import RandomizerConfig
from segment_randomizer.shuffle import ShuffleStats, shuffle_buckets
from segment_randomizer.storage import (
    SegmentReader,
    SegmentWriter,
    get_basename,
    properties_path,
    segment_path,
)

logger = logging.getLogger(__name__)

TMP_DIR_PREFIX = "ssi_buckets_"


class RunState(Enum):
    INIT = "init"
    PARTITIONING = "partitioning"
    BARRIER_WAIT = "barrier-wait"
    SHUFFLING = "shuffling"
    FINALIZING = "finalizing"
    DONE = "done"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class RandomizeResult:
    """Outcome of a completed randomization run."""

    output_path: Path
    num_buckets: int
    total_records: int
    partition: PartitionStats
    shuffle: ShuffleStats


def count_records(input_files: Sequence[str | Path], read_n: int | None = None) -> int:
    """Sum of min(read_n, records) over the inputs, from chunk headers only."""
    total = 0
    for input_file in input_files:
        with SegmentReader(input_file) as source:
            count = source.total_records
        total += count if read_n is None else min(read_n, count)
    return total


def copy_companion(source_basename: str | Path, dest_basename: str | Path) -> bool:
    """
    Copy the companion properties file of a source store over the destination's.

    Returns False, leaving the destination untouched, when the source has none.
    """
    source = properties_path(source_basename)
    if not source.is_file():
        logger.warning("No companion file %s; keeping the output's own properties", source)
        return False
    shutil.copyfile(source, properties_path(dest_basename))
    return True


class Randomizer:
    """
    Drive one randomization run through its phases.

    INIT -> PARTITIONING -> BARRIER_WAIT -> SHUFFLING -> FINALIZING -> DONE,
    with FAILED reachable from any of them. A single ``random.Random`` seeded
    from the config is used for every draw: bucket assignments in
    source-then-record order, then permutations in bucket order.

    On failure the temporary bucket directory is removed (unless
    ``keep_temp`` is set) and a partially written output is deleted before
    the exception propagates.
    """

    def __init__(self, config: RandomizerConfig):
        self.config = config
        self.state = RunState.INIT
        self.tmp_dir: Path | None = None
        self._output_basename: str | None = None

    def _transition(self, state: RunState) -> None:
        logger.debug("State: %s -> %s", self.state.value, state.value)
        self.state = state

    def run(self) -> RandomizeResult:
        if self.state is not RunState.INIT:
            raise RuntimeError(f"randomizer already ran (state={self.state.value})")

        try:
            return self._run()
        except BaseException:
            self._fail()
            raise

    def _run(self) -> RandomizeResult:
        total_start = time.perf_counter()
        config = self.config
        config.validate()

        input_files = [get_basename(f) for f in config.input_files]
        for input_file in input_files:
            if not segment_path(input_file).is_file():
                raise InputError(f"input segment store not found: {segment_path(input_file)}")

        output_basename = get_basename(config.output_file)
        working_dir = Path(output_basename).parent

        total_records = count_records(input_files, config.read_n)
        num_buckets = compute_bucket_count(total_records, config.records_per_bucket)
        rng = random.Random(config.random_seed)

        logger.info(
            f"Starting: inputs={len(input_files)}, records={total_records}, "
            f"buckets={num_buckets}, records_per_bucket={config.records_per_bucket}, "
            f"seed={config.random_seed}, read_n={config.read_n}"
        )

        self.tmp_dir = self._make_tmp_dir(working_dir)

        # Phase 1: random assignment of every record to a bucket.
        self._transition(RunState.PARTITIONING)
        t1_start = time.perf_counter()
        with BucketSet(self.tmp_dir, num_buckets, config.chunk_size) as bucket_set:
            with progress_bar(
                total_records, "records", "Partitioning", config.show_progress
            ) as bar:
                partition_stats = partition_to_buckets(
                    input_files, bucket_set, rng, config.read_n, bar
                )
            # Leaving the block closes every bucket writer.
            self._transition(RunState.BARRIER_WAIT)
        t1 = time.perf_counter() - t1_start

        if partition_stats.records_read != total_records:
            logger.warning(
                "Partition read %d records, %d were expected from chunk headers",
                partition_stats.records_read,
                total_records,
            )
        logger.info(
            "Partition done: %d records into %d buckets in %.2fs",
            partition_stats.records_written,
            num_buckets,
            t1,
        )

        # Phase 2: shuffle buckets one at a time into the output.
        self._transition(RunState.SHUFFLING)
        t2_start = time.perf_counter()
        self._output_basename = output_basename
        with SegmentWriter(output_basename) as output:
            with progress_bar(num_buckets, "buckets", "Shuffling", config.show_progress) as bar:
                shuffle_stats = shuffle_buckets(bucket_set.paths(), rng, output, bar)
            self._transition(RunState.FINALIZING)
        t2 = time.perf_counter() - t2_start

        if shuffle_stats.records_written != partition_stats.records_written:
            raise RandomizerError(
                f"shuffle wrote {shuffle_stats.records_written} records, "
                f"partition wrote {partition_stats.records_written}"
            )
        logger.info(
            "Shuffle done: %d buckets (%d empty, largest %d records) in %.2fs",
            shuffle_stats.buckets_processed,
            shuffle_stats.empty_buckets,
            shuffle_stats.peak_resident_records,
            t2,
        )

        copy_companion(input_files[0], output_basename)
        shutil.rmtree(self.tmp_dir, ignore_errors=True)
        self.tmp_dir = None

        total_passes = t1 + t2
        if total_passes > 0:
            logger.debug(
                "Timing breakdown: Partition=%.2fs (%.0f%%), Shuffle=%.2fs (%.0f%%)",
                t1,
                100 * t1 / total_passes,
                t2,
                100 * t2 / total_passes,
            )

        self._transition(RunState.DONE)
        total_time = time.perf_counter() - total_start
        output_path = segment_path(output_basename)
        logger.info(
            "Result: %d records written to %s (total %.2fs)",
            shuffle_stats.records_written,
            output_path,
            total_time,
        )
        return RandomizeResult(
            output_path=output_path,
            num_buckets=num_buckets,
            total_records=total_records,
            partition=partition_stats,
            shuffle=shuffle_stats,
        )

    def _make_tmp_dir(self, working_dir: Path) -> Path:
        try:
            working_dir.mkdir(parents=True, exist_ok=True)
            return Path(tempfile.mkdtemp(prefix=TMP_DIR_PREFIX, dir=working_dir))
        except OSError as e:
            raise ResourceError(
                f"cannot create temporary bucket directory in {working_dir}: {e}"
            ) from e

    def _fail(self) -> None:
        logger.debug("Run failed in state %s", self.state.value)
        self._transition(RunState.FAILED)

        if self._output_basename is not None:
            for path in (
                segment_path(self._output_basename),
                properties_path(self._output_basename),
            ):
                path.unlink(missing_ok=True)

        if self.tmp_dir is not None:
            if self.config.keep_temp:
                logger.warning("Keeping temporary buckets in %s", self.tmp_dir)
            else:
                shutil.rmtree(self.tmp_dir, ignore_errors=True)


def randomize(config: RandomizerConfig) -> RandomizeResult:
    """Randomize the configured inputs into the output store."""
    return Randomizer(config).run()
