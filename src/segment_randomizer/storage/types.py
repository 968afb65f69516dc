"""Shared constants for the chunked segment file layout."""

import struct

SEGMENT_EXTENSION = ".ssi"
PROPERTIES_EXTENSION = ".ssip"

# File header: magic + 4 reserved bytes.
FILE_MAGIC = b"SSI1"
FILE_HEADER = struct.Struct("<4s4x")

# Chunk header: marker, record count, payload length in bytes.
CHUNK_MARKER = b"CHNK"
CHUNK_HEADER = struct.Struct("<4sIQ")

# Each record in a chunk payload is prefixed with its length.
RECORD_LENGTH = struct.Struct("<I")

DEFAULT_CHUNK_SIZE = 1000

# 1MB buffer for efficient I/O.
BUFFER_SIZE = 1024 * 1024
