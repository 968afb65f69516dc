"""Partition phase: bucket sizing, random assignment and bucket stores."""

from segment_randomizer.partition.buckets import BucketSet
from segment_randomizer.partition.partition import compute_bucket_count, partition_to_buckets
from segment_randomizer.partition.types import PartitionStats

__all__ = ["BucketSet", "PartitionStats", "compute_bucket_count", "partition_to_buckets"]
