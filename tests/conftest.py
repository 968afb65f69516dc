"""Shared fixtures for segment store tests."""

from collections.abc import Callable, Sequence
from pathlib import Path

import pytest

from segment_randomizer.storage import SegmentReader, SegmentWriter


@pytest.fixture
def make_records() -> Callable[[str, int], list[bytes]]:
    """Distinct, recognizable records: b"<prefix>-00000", b"<prefix>-00001", ..."""

    def _make(prefix: str, count: int) -> list[bytes]:
        return [f"{prefix}-{i:05d}".encode() for i in range(count)]

    return _make


@pytest.fixture
def write_store(tmp_path: Path) -> Callable[..., str]:
    """Write records to a segment store under tmp_path and return its basename."""

    def _write(name: str, records: Sequence[bytes], chunk_size: int = 3) -> str:
        basename = tmp_path / name
        with SegmentWriter(basename, chunk_size) as writer:
            for record in records:
                writer.append(record)
        return str(basename)

    return _write


@pytest.fixture
def read_store() -> Callable[[str | Path], list[bytes]]:
    def _read(basename: str | Path) -> list[bytes]:
        with SegmentReader(basename) as reader:
            return list(reader)

    return _read
