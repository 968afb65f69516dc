"""Basename helpers for segment stores and their companion files."""

from pathlib import Path

from segment_randomizer.storage.types import PROPERTIES_EXTENSION, SEGMENT_EXTENSION


def get_basename(filename: str | Path, *extensions: str) -> str:
    """
    Strip the first matching extension from a filename.

    With no explicit extensions, the segment and properties extensions are
    tried. Filenames without a matching extension are returned unchanged.
    """
    name = str(filename)
    for extension in extensions or (SEGMENT_EXTENSION, PROPERTIES_EXTENSION):
        if name.endswith(extension):
            return name[: -len(extension)]
    return name


def segment_path(basename: str | Path) -> Path:
    return Path(get_basename(basename) + SEGMENT_EXTENSION)


def properties_path(basename: str | Path) -> Path:
    return Path(get_basename(basename) + PROPERTIES_EXTENSION)
