"""Forward-only reader for chunked segment stores."""

from collections.abc import Iterator
from pathlib import Path
from types import TracebackType
from typing import BinaryIO

from segment_randomizer.errors import CorruptSegmentError, InputError
from segment_randomizer.storage.basename import get_basename, properties_path, segment_path
from segment_randomizer.storage.types import (
    BUFFER_SIZE,
    CHUNK_HEADER,
    CHUNK_MARKER,
    FILE_HEADER,
    FILE_MAGIC,
    RECORD_LENGTH,
)


class SegmentReader:
    """
    Read records from a segment store.

    Iteration is lazy and single-pass: only one chunk is decoded at a time.
    ``total_records`` is answered from the chunk headers alone.
    """

    def __init__(self, basename: str | Path):
        self.basename = get_basename(basename)
        self.path = segment_path(self.basename)

        try:
            self._handle: BinaryIO = open(self.path, "rb", buffering=BUFFER_SIZE)  # noqa: SIM115
        except OSError as e:
            raise InputError(f"cannot open segment store {self.path}: {e}") from e

        try:
            self._size = self.path.stat().st_size
            self._check_file_header()
        except BaseException:
            self._handle.close()
            raise

        self._total_records: int | None = None
        self._consumed = False

    def _check_file_header(self) -> None:
        header = self._handle.read(FILE_HEADER.size)
        if len(header) != FILE_HEADER.size:
            raise CorruptSegmentError(f"{self.path}: truncated file header")
        (magic,) = FILE_HEADER.unpack(header)
        if magic != FILE_MAGIC:
            raise CorruptSegmentError(f"{self.path}: bad magic {magic!r}")

    def _read_chunk_header(self, handle: BinaryIO) -> tuple[int, int] | None:
        """Return (record_count, payload_length), or None at end of file."""
        header = handle.read(CHUNK_HEADER.size)
        if not header:
            return None
        if len(header) != CHUNK_HEADER.size:
            raise CorruptSegmentError(f"{self.path}: truncated chunk header")

        marker, record_count, payload_length = CHUNK_HEADER.unpack(header)
        if marker != CHUNK_MARKER:
            raise CorruptSegmentError(f"{self.path}: bad chunk marker {marker!r}")
        return record_count, payload_length

    @property
    def total_records(self) -> int:
        """Number of records in the store, summed from chunk headers."""
        if self._total_records is None:
            total = 0
            with open(self.path, "rb") as handle:
                handle.seek(FILE_HEADER.size)
                while (chunk := self._read_chunk_header(handle)) is not None:
                    record_count, payload_length = chunk
                    if handle.tell() + payload_length > self._size:
                        raise CorruptSegmentError(f"{self.path}: truncated chunk payload")
                    handle.seek(payload_length, 1)
                    total += record_count
            self._total_records = total
        return self._total_records

    def _decode_chunk(self, payload: bytes, record_count: int) -> list[bytes]:
        records = []
        offset = 0
        for _ in range(record_count):
            if offset + RECORD_LENGTH.size > len(payload):
                raise CorruptSegmentError(f"{self.path}: record length overruns chunk")
            (length,) = RECORD_LENGTH.unpack_from(payload, offset)
            offset += RECORD_LENGTH.size
            if offset + length > len(payload):
                raise CorruptSegmentError(f"{self.path}: record overruns chunk")
            records.append(payload[offset : offset + length])
            offset += length

        if offset != len(payload):
            raise CorruptSegmentError(f"{self.path}: trailing bytes in chunk")
        return records

    def __iter__(self) -> Iterator[bytes]:
        if self._consumed:
            raise ValueError(f"segment store {self.path} can only be iterated once")
        self._consumed = True
        return self._records()

    def _records(self) -> Iterator[bytes]:
        handle = self._handle
        while (chunk := self._read_chunk_header(handle)) is not None:
            record_count, payload_length = chunk
            if handle.tell() + payload_length > self._size:
                raise CorruptSegmentError(f"{self.path}: truncated chunk payload")
            payload = handle.read(payload_length)
            if len(payload) != payload_length:
                raise CorruptSegmentError(f"{self.path}: truncated chunk payload")
            yield from self._decode_chunk(payload, record_count)

    def close(self) -> None:
        self._handle.close()

    def __enter__(self) -> "SegmentReader":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()


def read_properties(basename: str | Path) -> dict[str, str]:
    """Parse the ``key=value`` companion properties file of a store."""
    properties: dict[str, str] = {}
    for line in properties_path(basename).read_text(encoding="utf-8").splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        key, sep, value = line.partition("=")
        if sep:
            properties[key.strip()] = value.strip()
    return properties
