"""Command-line interface for the segment randomizer."""

import argparse
import logging
import sys

from segment_randomizer.errors import RandomizerError
from segment_randomizer.randomizer import RandomizerConfig, randomize
from segment_randomizer.randomizer.config import (
    DEFAULT_RANDOM_SEED,
    DEFAULT_RECORDS_PER_BUCKET,
)
from segment_randomizer.storage.types import DEFAULT_CHUNK_SIZE

logger = logging.getLogger(__name__)


def configure_logging(level: int = logging.INFO) -> None:
    """Configure logging to write to stderr."""
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s",
        stream=sys.stderr,
    )


def create_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser."""
    parser = argparse.ArgumentParser(
        prog="segment-randomizer",
        description="Randomize the record order of one or several .ssi/.ssip segment stores.",
    )

    parser.add_argument(
        "-i",
        "--input-files",
        nargs="+",
        required=True,
        help="Input segment stores in .ssi/.ssip format.",
    )

    parser.add_argument(
        "-o",
        "--output-prefix",
        required=True,
        help="Basename of the output segment store.",
    )

    parser.add_argument(
        "-b",
        "--records-per-bucket",
        type=int,
        default=DEFAULT_RECORDS_PER_BUCKET,
        help=f"Number of records to store in each bucket (default: {DEFAULT_RECORDS_PER_BUCKET})",
    )

    parser.add_argument(
        "-c",
        "--chunk-size",
        type=int,
        default=DEFAULT_CHUNK_SIZE,
        help=f"Size of chunks for each bucket writer (default: {DEFAULT_CHUNK_SIZE})",
    )

    parser.add_argument(
        "--random-seed",
        type=int,
        default=DEFAULT_RANDOM_SEED,
        help=f"Seed for the random generator used to randomize entries (default: {DEFAULT_RANDOM_SEED})",
    )

    parser.add_argument(
        "-n",
        "--read-n",
        type=int,
        default=None,
        help="Only consider the first N records of each input (default: all)",
    )

    parser.add_argument(
        "--keep-temp",
        action="store_true",
        help="Keep the temporary bucket directory when the run fails",
    )

    parser.add_argument(
        "--no-progress",
        action="store_true",
        help="Do not display progress bars",
    )

    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="INFO",
        help="Logging level (default: INFO)",
    )

    return parser


def main(argv: list[str] | None = None) -> int:
    """Entry point for CLI."""
    parser = create_parser()
    args = parser.parse_args(argv)

    # Configure logging based on --log-level
    log_level = getattr(logging, args.log_level)
    configure_logging(log_level)

    if args.records_per_bucket < 1:
        parser.error(f"--records-per-bucket must be >= 1, got {args.records_per_bucket}")
    if args.chunk_size < 1:
        parser.error(f"--chunk-size must be >= 1, got {args.chunk_size}")
    if args.read_n is not None and args.read_n < 0:
        parser.error(f"--read-n must be >= 0, got {args.read_n}")

    config = RandomizerConfig(
        input_files=args.input_files,
        output_file=args.output_prefix,
        records_per_bucket=args.records_per_bucket,
        chunk_size=args.chunk_size,
        random_seed=args.random_seed,
        read_n=args.read_n,
        keep_temp=args.keep_temp,
        show_progress=not args.no_progress,
    )

    try:
        randomize(config)
    except (RandomizerError, OSError) as e:
        logger.error("Randomization failed: %s", e)
        logger.debug("Failure details", exc_info=True)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
