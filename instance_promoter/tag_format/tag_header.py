"""Tag cache stream header parser and writer."""

import struct
from .tag_constants import CACHE_MAGIC, HEADER_FORMAT, HEADER_SIZE


class CacheHeader:
    """Represents the 16-byte header at the start of a cache stream."""

    def __init__(self, index_offset=0, flags=0):
        self.flags = flags
        self.index_offset = index_offset  # 0 = no index written yet

    @property
    def has_index(self):
        return self.index_offset != 0

    @classmethod
    def read(cls, data):
        """Parse a cache header from raw bytes.

        Raises:
            ValueError: if data is too small or the magic is wrong
        """
        if len(data) < HEADER_SIZE:
            raise ValueError(f"Data too small for cache header: {len(data)} < {HEADER_SIZE}")

        magic, flags, index_offset = struct.unpack_from(HEADER_FORMAT, data, 0)
        if magic != CACHE_MAGIC:
            raise ValueError(f"Invalid cache magic: {magic!r} (expected {CACHE_MAGIC!r})")

        return cls(index_offset=index_offset, flags=flags)

    def write(self):
        """Serialize the header to HEADER_SIZE bytes."""
        return struct.pack(HEADER_FORMAT, CACHE_MAGIC, self.flags, self.index_offset)

    def __repr__(self):
        return f"CacheHeader(flags=0x{self.flags:08x}, index_offset=0x{self.index_offset:x})"
