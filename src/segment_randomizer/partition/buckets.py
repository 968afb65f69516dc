"""Temporary per-bucket segment stores used during the partition phase."""

from collections import OrderedDict
from pathlib import Path
from types import TracebackType

from segment_randomizer.partition.types import MAX_OPEN_HANDLES
from segment_randomizer.storage import SegmentWriter
from segment_randomizer.storage.types import DEFAULT_CHUNK_SIZE


def bucket_basename(tmp_dir: Path, bucket_idx: int) -> Path:
    return tmp_dir / f"bucket_{bucket_idx:04d}"


class BucketSet:
    """
    One segment writer per bucket, with an LRU cap on open file handles.

    Writers buffer up to ``chunk_size`` records each and only touch the disk
    when a chunk is flushed. When more than ``max_handles`` writers hold an
    open handle, the least recently flushed one releases it and reopens in
    append mode on its next flush.
    """

    def __init__(
        self,
        tmp_dir: str | Path,
        num_buckets: int,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        max_handles: int = MAX_OPEN_HANDLES,
    ):
        if num_buckets < 1:
            raise ValueError(f"num_buckets must be >= 1, got {num_buckets}")

        self._tmp_dir = Path(tmp_dir)
        self._max_handles = max_handles
        self._writers = [
            SegmentWriter(bucket_basename(self._tmp_dir, i), chunk_size)
            for i in range(num_buckets)
        ]
        self._open: OrderedDict[int, SegmentWriter] = OrderedDict()
        self._closed = False

    @property
    def num_buckets(self) -> int:
        return len(self._writers)

    @property
    def closed(self) -> bool:
        """True once every bucket writer has been flushed and closed."""
        return self._closed

    def append(self, bucket_idx: int, record: bytes) -> None:
        """Append a record to the specified bucket."""
        writer = self._writers[bucket_idx]
        if bucket_idx in self._open:
            self._open.move_to_end(bucket_idx)
        elif writer.flushes_on_append:
            # Evict before the flush opens a new handle.
            while len(self._open) >= self._max_handles:
                _, old_writer = self._open.popitem(last=False)
                old_writer.release()

        writer.append(record)
        if writer.is_open and bucket_idx not in self._open:
            self._open[bucket_idx] = writer

    def sizes(self) -> list[int]:
        """Records appended so far to each bucket, flushed or pending."""
        return [w.records_appended for w in self._writers]

    def close_all(self) -> None:
        """Flush and close every bucket writer, making the buckets readable."""
        # Writers are finalized one at a time.
        for writer in self._open.values():
            writer.release()
        self._open.clear()
        for i, writer in enumerate(self._writers):
            try:
                writer.close()
            except BaseException:
                for remaining in self._writers[i:]:
                    remaining.abort()
                raise
        self._closed = True

    def abort(self) -> None:
        """Release every handle without flushing pending records."""
        self._open.clear()
        for writer in self._writers:
            writer.abort()

    def paths(self) -> list[Path]:
        """Bucket store basenames in ascending ordinal order."""
        if not self._closed:
            raise RuntimeError("bucket stores cannot be read before all writers are closed")
        return [Path(w.basename) for w in self._writers]

    def __enter__(self) -> "BucketSet":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if exc_type is None:
            self.close_all()
        else:
            self.abort()
