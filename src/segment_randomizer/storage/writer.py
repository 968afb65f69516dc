"""Append-only writer for chunked segment stores."""

from pathlib import Path
from types import TracebackType
from typing import BinaryIO

from segment_randomizer.storage.basename import get_basename, properties_path, segment_path
from segment_randomizer.storage.types import (
    BUFFER_SIZE,
    CHUNK_HEADER,
    CHUNK_MARKER,
    DEFAULT_CHUNK_SIZE,
    FILE_HEADER,
    FILE_MAGIC,
    RECORD_LENGTH,
)


class SegmentWriter:
    """
    Write records to a segment store, one fixed-capacity chunk at a time.

    Records are buffered until ``chunk_size`` of them are pending, then
    written as a single chunk. The file handle is opened lazily on the first
    flush and can be released between flushes (see ``release``), so many
    writers can coexist without holding one descriptor each.
    """

    def __init__(self, basename: str | Path, chunk_size: int = DEFAULT_CHUNK_SIZE):
        if chunk_size < 1:
            raise ValueError(f"chunk_size must be >= 1, got {chunk_size}")

        self.basename = get_basename(basename)
        self.path = segment_path(self.basename)
        self.chunk_size = chunk_size
        self.records_written = 0
        self.chunks_written = 0

        self._pending: list[bytes] = []
        self._handle: BinaryIO | None = None
        self._started = False
        self._closed = False

    @property
    def is_open(self) -> bool:
        """True while the writer holds an OS file handle."""
        return self._handle is not None

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def records_appended(self) -> int:
        """Records accepted so far, flushed or still pending."""
        return self.records_written + len(self._pending)

    @property
    def records_pending(self) -> int:
        """Records buffered in memory, not yet written as a chunk."""
        return len(self._pending)

    @property
    def flushes_on_append(self) -> bool:
        """True when the next append completes a chunk and writes it out."""
        return len(self._pending) + 1 >= self.chunk_size

    def append(self, record: bytes) -> None:
        """Append one record, flushing a chunk when the buffer is full."""
        if self._closed:
            raise ValueError(f"append to closed segment writer: {self.path}")

        self._pending.append(record)
        if len(self._pending) >= self.chunk_size:
            self._flush_chunk()

    def _open(self) -> BinaryIO:
        if self._handle is None:
            if self._started:
                self._handle = open(self.path, "ab", buffering=BUFFER_SIZE)  # noqa: SIM115
            else:
                self._handle = open(self.path, "wb", buffering=BUFFER_SIZE)  # noqa: SIM115
                self._handle.write(FILE_HEADER.pack(FILE_MAGIC))
                self._started = True
        return self._handle

    def _flush_chunk(self) -> None:
        if not self._pending:
            return

        payload = bytearray()
        for record in self._pending:
            payload += RECORD_LENGTH.pack(len(record))
            payload += record

        handle = self._open()
        handle.write(CHUNK_HEADER.pack(CHUNK_MARKER, len(self._pending), len(payload)))
        handle.write(payload)

        self.records_written += len(self._pending)
        self.chunks_written += 1
        self._pending = []

    def release(self) -> None:
        """Close the OS handle but keep the writer usable; pending records stay buffered."""
        if self._handle is not None:
            self._handle.close()
            self._handle = None

    def close(self) -> None:
        """Flush pending records, write the properties file and close the store."""
        if self._closed:
            return

        self._flush_chunk()
        # An empty store still gets a valid file header.
        self._open()
        self.release()
        self._write_properties()
        self._closed = True

    def abort(self) -> None:
        """Drop pending records and close the handle without finalizing."""
        self._pending = []
        self.release()
        self._closed = True

    def _write_properties(self) -> None:
        lines = [
            f"numRecords={self.records_written}",
            f"numChunks={self.chunks_written}",
            f"chunkSize={self.chunk_size}",
        ]
        properties_path(self.basename).write_text("\n".join(lines) + "\n", encoding="utf-8")

    def __enter__(self) -> "SegmentWriter":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if exc_type is None:
            self.close()
        else:
            self.abort()
