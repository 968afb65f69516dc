"""Exception hierarchy for the randomizer."""


class RandomizerError(Exception):
    """Base class for all randomizer failures."""


class ConfigurationError(RandomizerError, ValueError):
    """Invalid run configuration, rejected before any file is touched."""


class InputError(RandomizerError):
    """An input segment store is missing or unreadable."""


class CorruptSegmentError(InputError):
    """A segment file does not follow the chunked segment layout."""


class ResourceError(RandomizerError):
    """A working resource (temporary directory) could not be acquired."""
