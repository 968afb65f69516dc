#!/usr/bin/env python3
"""
Synthetic segment store generator for randomizer benchmarks.

Writes a .ssi/.ssip segment store of fixed-size binary records. Each record
starts with its 8-byte little-endian index, followed by pseudo-random filler,
so the order of a randomized output can be checked against the input.
"""

import argparse
import random
import struct
import sys

from segment_randomizer.storage import SegmentWriter

INDEX = struct.Struct("<Q")


def generate_synthetic_segment(
    output_basename: str,
    num_records: int,
    record_size: int,
    chunk_size: int,
    seed: int,
) -> int:
    """
    Generate a synthetic segment store.

    Records are streamed to the writer chunk by chunk to avoid memory issues.

    Args:
        output_basename: Basename of the output store (.ssi is appended).
        num_records: Number of records to write.
        record_size: Size of each record in bytes (>= 8).
        chunk_size: Records per chunk.
        seed: Random seed for the filler bytes.

    Returns:
        Total number of records written.
    """
    rng = random.Random(seed)
    filler_size = record_size - INDEX.size

    with SegmentWriter(output_basename, chunk_size) as writer:
        for i in range(num_records):
            writer.append(INDEX.pack(i) + rng.randbytes(filler_size))

            # Progress indicator every million records
            if (i + 1) % 1_000_000 == 0:
                print(f"  Generated {i + 1:,}/{num_records:,} records...", file=sys.stderr)

        return writer.records_appended


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Generate a synthetic segment store.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # 10M records of 256 bytes (~2.5 GB)
  python generate_synthetic_segments.py --out data/synthetic --records 10000000

  # Small store with tiny chunks, for debugging
  python generate_synthetic_segments.py --out data/tiny --records 1000 --chunk-size 10
""",
    )

    parser.add_argument("--out", required=True, help="Output basename")
    parser.add_argument(
        "--records",
        type=int,
        default=1_000_000,
        help="Number of records (default: 1000000)",
    )
    parser.add_argument(
        "--record-size",
        type=int,
        default=256,
        help="Bytes per record, including the 8-byte index (default: 256)",
    )
    parser.add_argument(
        "--chunk-size",
        type=int,
        default=1000,
        help="Records per chunk (default: 1000)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=1,
        help="Random seed for reproducibility (default: 1)",
    )

    args = parser.parse_args()

    if args.records < 0:
        parser.error("--records must be >= 0")
    if args.record_size < INDEX.size:
        parser.error(f"--record-size must be at least {INDEX.size}")
    if args.chunk_size < 1:
        parser.error("--chunk-size must be at least 1")

    approx_size_mb = (args.records * (args.record_size + 4)) / (1024 * 1024)

    print("=" * 60, file=sys.stderr)
    print("Synthetic Segment Store Generator", file=sys.stderr)
    print("=" * 60, file=sys.stderr)
    print(f"Output: {args.out}", file=sys.stderr)
    print(f"Records: {args.records:,}", file=sys.stderr)
    print(f"Record size: {args.record_size}", file=sys.stderr)
    print(f"Chunk size: {args.chunk_size}", file=sys.stderr)
    print(f"Seed: {args.seed}", file=sys.stderr)
    print(f"Estimated size: ~{approx_size_mb:.1f} MB", file=sys.stderr)
    print("=" * 60, file=sys.stderr)
    print(file=sys.stderr)

    print("Generating...", file=sys.stderr)
    total = generate_synthetic_segment(
        output_basename=args.out,
        num_records=args.records,
        record_size=args.record_size,
        chunk_size=args.chunk_size,
        seed=args.seed,
    )

    print(file=sys.stderr)
    print("=" * 60, file=sys.stderr)
    print(f"Done! Wrote {total:,} records to {args.out}", file=sys.stderr)
    print("=" * 60, file=sys.stderr)


if __name__ == "__main__":
    main()
