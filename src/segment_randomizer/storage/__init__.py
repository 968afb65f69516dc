"""Chunked segment store: writer, reader and companion properties file."""

from segment_randomizer.storage.basename import get_basename, properties_path, segment_path
from segment_randomizer.storage.reader import SegmentReader, read_properties
from segment_randomizer.storage.writer import SegmentWriter

__all__ = [
    "SegmentReader",
    "SegmentWriter",
    "get_basename",
    "properties_path",
    "read_properties",
    "segment_path",
]
