"""Run configuration for the randomizer."""

from dataclasses import dataclass, field
from pathlib import Path

from segment_randomizer.errors import ConfigurationError
from segment_randomizer.storage.basename import get_basename
from segment_randomizer.storage.types import DEFAULT_CHUNK_SIZE

DEFAULT_RECORDS_PER_BUCKET = 20000
DEFAULT_RANDOM_SEED = 232323


@dataclass
class RandomizerConfig:
    """
    Parameters of one randomization run.

    Attributes:
        input_files: Input segment stores, with or without the .ssi extension.
        output_file: Output basename; a .ssi/.ssip extension is stripped.
        records_per_bucket: Target number of records per bucket.
        chunk_size: Records per chunk for each bucket writer.
        random_seed: Seed of the single random source used for the whole run.
        read_n: Per-source cap on leading records considered, None for no cap.
        keep_temp: Leave the bucket directory behind when the run fails.
        show_progress: Display progress bars on stderr.
    """

    input_files: list[str] = field(default_factory=list)
    output_file: str = ""
    records_per_bucket: int = DEFAULT_RECORDS_PER_BUCKET
    chunk_size: int = DEFAULT_CHUNK_SIZE
    random_seed: int = DEFAULT_RANDOM_SEED
    read_n: int | None = None
    keep_temp: bool = False
    show_progress: bool = True

    def validate(self) -> None:
        """Reject invalid settings before any file is touched."""
        if not self.input_files:
            raise ConfigurationError("at least one input file is required")
        if not self.output_file:
            raise ConfigurationError("an output file is required")
        if self.records_per_bucket < 1:
            raise ConfigurationError(
                f"records_per_bucket must be >= 1, got {self.records_per_bucket}"
            )
        if self.chunk_size < 1:
            raise ConfigurationError(f"chunk_size must be >= 1, got {self.chunk_size}")
        if self.read_n is not None and self.read_n < 0:
            raise ConfigurationError(f"read_n must be >= 0, got {self.read_n}")

        output = Path(get_basename(self.output_file)).resolve()
        if any(Path(get_basename(f)).resolve() == output for f in self.input_files):
            raise ConfigurationError(f"output {self.output_file} would overwrite an input store")
