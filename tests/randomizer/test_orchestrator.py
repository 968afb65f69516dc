"""Tests for the randomization orchestrator."""

import logging
import random

import pytest

from segment_randomizer.errors import ConfigurationError, CorruptSegmentError, InputError
from segment_randomizer.randomizer import (
    Randomizer,
    RandomizerConfig,
    RunState,
    count_records,
    randomize,
)
from segment_randomizer.randomizer import orchestrator
from segment_randomizer.storage import read_properties
from segment_randomizer.storage.types import DEFAULT_CHUNK_SIZE


def expected_order(sources: list[list[bytes]], num_buckets: int, seed: int) -> list[bytes]:
    """Replay the documented draw order of a run by hand."""
    rng = random.Random(seed)
    buckets: list[list[bytes]] = [[] for _ in range(num_buckets)]
    for records in sources:
        for record in records:
            buckets[rng.randrange(num_buckets)].append(record)

    output = []
    for bucket in buckets:
        rng.shuffle(bucket)
        output.extend(bucket)
    return output


def make_config(inputs, output, **kwargs) -> RandomizerConfig:
    kwargs.setdefault("show_progress", False)
    return RandomizerConfig(input_files=list(inputs), output_file=str(output), **kwargs)


class TestRandomize:
    """End-to-end test cases for randomize."""

    def test_two_sources_example(self, tmp_path, write_store, make_records, read_store) -> None:
        """Test 5 + 7 records with 4 records per bucket: 4 buckets, 12 records out."""
        first = make_records("a", 5)
        second = make_records("b", 7)
        inputs = [write_store("a", first), write_store("b", second)]
        output = tmp_path / "out" / "shuffled"

        result = randomize(make_config(inputs, output, records_per_bucket=4, random_seed=17))

        assert result.num_buckets == 4
        assert result.total_records == 12
        assert result.output_path == output.with_suffix(".ssi")
        records = read_store(output)
        assert sorted(records) == sorted(first + second)
        assert records == expected_order([first, second], 4, 17)

    def test_same_seed_same_output(self, tmp_path, write_store, make_records, read_store) -> None:
        inputs = [write_store("a", make_records("a", 60)), write_store("b", make_records("b", 40))]

        randomize(make_config(inputs, tmp_path / "run1", records_per_bucket=8, random_seed=5))
        randomize(make_config(inputs, tmp_path / "run2", records_per_bucket=8, random_seed=5))
        randomize(make_config(inputs, tmp_path / "run3", records_per_bucket=8, random_seed=6))

        assert read_store(tmp_path / "run1") == read_store(tmp_path / "run2")
        assert read_store(tmp_path / "run1") != read_store(tmp_path / "run3")
        assert (tmp_path / "run1.ssi").read_bytes() == (tmp_path / "run2.ssi").read_bytes()

    def test_peak_memory_bounded_by_largest_bucket(self, tmp_path, write_store, make_records) -> None:
        """Test that residency never exceeds one bucket plus one output chunk."""
        inputs = [write_store("a", make_records("a", 5000), chunk_size=500)]

        result = randomize(make_config(inputs, tmp_path / "out", records_per_bucket=50, chunk_size=10))

        largest = max(result.partition.bucket_sizes)
        assert result.num_buckets == 101
        assert largest <= result.shuffle.peak_resident_records < largest + DEFAULT_CHUNK_SIZE
        assert result.shuffle.peak_resident_records < 5000

    def test_empty_input(self, tmp_path, write_store, read_store) -> None:
        inputs = [write_store("empty", [])]

        result = randomize(make_config(inputs, tmp_path / "out"))

        assert result.num_buckets == 1
        assert result.shuffle.empty_buckets == 1
        assert read_store(tmp_path / "out") == []

    def test_cap_keeps_first_records(self, tmp_path, write_store, make_records, read_store) -> None:
        """Test that records 11-100 never reach the output with read_n=10."""
        records = make_records("r", 100)
        inputs = [write_store("r", records, chunk_size=7)]

        result = randomize(make_config(inputs, tmp_path / "out", records_per_bucket=4, read_n=10))

        assert result.total_records == 10
        assert sorted(read_store(tmp_path / "out")) == records[:10]

    def test_cap_conservation_over_sources(
        self, tmp_path, write_store, make_records, read_store
    ) -> None:
        inputs = [
            write_store("a", make_records("a", 3)),
            write_store("b", make_records("b", 30)),
            write_store("c", make_records("c", 12)),
        ]

        randomize(make_config(inputs, tmp_path / "out", records_per_bucket=5, read_n=12))

        assert len(read_store(tmp_path / "out")) == 3 + 12 + 12

    def test_copies_first_source_companion(self, tmp_path, write_store, make_records) -> None:
        inputs = [write_store("a", make_records("a", 4)), write_store("b", make_records("b", 4))]
        (tmp_path / "a.ssip").write_bytes(b"source=first\nnumRecords=4\n")
        (tmp_path / "b.ssip").write_bytes(b"source=second\n")

        randomize(make_config(inputs, tmp_path / "out"))

        assert (tmp_path / "out.ssip").read_bytes() == b"source=first\nnumRecords=4\n"

    def test_missing_companion_keeps_own_properties(
        self, tmp_path, write_store, make_records, caplog
    ) -> None:
        inputs = [write_store("a", make_records("a", 4))]
        (tmp_path / "a.ssip").unlink()

        with caplog.at_level(logging.WARNING, logger=orchestrator.__name__):
            randomize(make_config(inputs, tmp_path / "out"))

        assert read_properties(tmp_path / "out")["numRecords"] == "4"
        assert "No companion file" in caplog.text

    def test_removes_temporary_buckets(self, tmp_path, write_store, make_records) -> None:
        inputs = [write_store("a", make_records("a", 20))]
        output_dir = tmp_path / "out"

        randomizer = Randomizer(make_config(inputs, output_dir / "shuffled", records_per_bucket=3))
        randomizer.run()

        assert randomizer.state is RunState.DONE
        assert randomizer.tmp_dir is None
        assert sorted(p.name for p in output_dir.iterdir()) == ["shuffled.ssi", "shuffled.ssip"]

    def test_accepts_extensions_in_paths(self, tmp_path, write_store, make_records, read_store) -> None:
        inputs = [write_store("a", make_records("a", 5)) + ".ssi"]

        randomize(make_config(inputs, tmp_path / "out.ssi"))

        assert len(read_store(tmp_path / "out")) == 5
        assert not (tmp_path / "out.ssi.ssi").exists()


class TestRandomizerFailures:
    """Failure handling of the orchestrator."""

    def test_rejects_invalid_config_before_io(self, tmp_path) -> None:
        randomizer = Randomizer(make_config(["missing"], tmp_path / "out", records_per_bucket=0))

        with pytest.raises(ConfigurationError):
            randomizer.run()

        assert randomizer.state is RunState.FAILED
        assert list(tmp_path.iterdir()) == []

    def test_missing_input(self, tmp_path, write_store, make_records) -> None:
        inputs = [write_store("a", make_records("a", 5)), str(tmp_path / "missing")]
        randomizer = Randomizer(make_config(inputs, tmp_path / "out"))

        with pytest.raises(InputError):
            randomizer.run()

        assert randomizer.state is RunState.FAILED
        assert not (tmp_path / "out.ssi").exists()

    def test_corrupt_input(self, tmp_path, write_store, make_records) -> None:
        basename = write_store("a", make_records("a", 5))
        path = tmp_path / "a.ssi"
        path.write_bytes(path.read_bytes()[:-3])

        with pytest.raises(CorruptSegmentError):
            randomize(make_config([basename], tmp_path / "out"))

    def test_failure_removes_partial_output_and_buckets(
        self, tmp_path, write_store, make_records, monkeypatch
    ) -> None:
        def broken_shuffle(bucket_paths, rng, output, progress=None):
            for _ in range(output.chunk_size + 1):
                output.append(b"partial")
            raise OSError("No space left on device")

        monkeypatch.setattr(orchestrator, "shuffle_buckets", broken_shuffle)
        inputs = [write_store("a", make_records("a", 20))]
        output_dir = tmp_path / "out"
        randomizer = Randomizer(make_config(inputs, output_dir / "shuffled", records_per_bucket=3))

        with pytest.raises(OSError, match="No space left"):
            randomizer.run()

        assert randomizer.state is RunState.FAILED
        assert list(output_dir.iterdir()) == []

    def test_keep_temp_leaves_buckets(
        self, tmp_path, write_store, make_records, monkeypatch
    ) -> None:
        def broken_shuffle(bucket_paths, rng, output, progress=None):
            raise OSError("disk failure")

        monkeypatch.setattr(orchestrator, "shuffle_buckets", broken_shuffle)
        inputs = [write_store("a", make_records("a", 20))]
        randomizer = Randomizer(
            make_config(inputs, tmp_path / "out" / "shuffled", records_per_bucket=3, keep_temp=True)
        )

        with pytest.raises(OSError):
            randomizer.run()

        assert randomizer.tmp_dir is not None
        assert randomizer.tmp_dir.name.startswith(orchestrator.TMP_DIR_PREFIX)
        buckets = sorted(p.name for p in randomizer.tmp_dir.iterdir())
        assert "bucket_0000.ssi" in buckets

    def test_cannot_run_twice(self, tmp_path, write_store, make_records) -> None:
        randomizer = Randomizer(make_config([write_store("a", make_records("a", 3))], tmp_path / "out"))
        randomizer.run()

        with pytest.raises(RuntimeError):
            randomizer.run()


def test_count_records(write_store, make_records) -> None:
    inputs = [write_store("a", make_records("a", 5)), write_store("b", make_records("b", 9))]

    assert count_records(inputs) == 14
    assert count_records(inputs, read_n=6) == 11
    assert count_records(inputs, read_n=0) == 0
