"""Metadata structures for the shuffle phase."""

from dataclasses import dataclass


@dataclass
class ShuffleStats:
    """Statistics from shuffle_buckets operation."""

    buckets_processed: int = 0
    empty_buckets: int = 0
    records_written: int = 0
    # Largest number of records held in memory at once: the loaded bucket
    # plus the records still buffered by the output writer.
    peak_resident_records: int = 0
