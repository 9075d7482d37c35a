"""Tag table and cache stream access.

A GameCache owns everything needed to interpret one cache stream: the tag
table (CachedTag entries), the string table, the resource table and the codec.
Tag payloads are appended to the stream as chunks; save_index() writes the
tables at the end of the stream and points the header at them.

Stream layout:
    Header (16 bytes)              magic, flags, index offset
    Chunk*                         'TAG!', tag index, size, encoded definition
    Index                          tags, strings, resources

A CachedTag handle is only meaningful against the GameCache that issued it.
"""

import io
import logging
import struct

from .resource_cache import ResourceCache
from .string_table import StringTable
from .tag_codec import TagCodec
from .tag_constants import (
    HEADER_SIZE, CHUNK_MAGIC, CHUNK_HEADER_FORMAT, CHUNK_HEADER_SIZE,
    INDEX_MAGIC, INDEX_HEADER_FORMAT, INDEX_HEADER_SIZE, TAG_ENTRY_FORMAT,
    NO_OFFSET,
)
from .tag_header import CacheHeader

_log = logging.getLogger("tag_cache")


class CachedTag:
    """Handle to a tag in a TagCache.

    Holds the tag identity (index, name, group) and where its most recent
    payload lives in the stream. Copying a record graph never duplicates
    a CachedTag: handles are identities, not data.
    """

    __slots__ = ('index', 'name', 'group', 'offset', 'size')

    is_tag_reference = True

    def __init__(self, index, name, group, offset=NO_OFFSET, size=0):
        self.index = index
        self.name = name
        self.group = group
        self.offset = offset  # NO_OFFSET until the tag is serialized
        self.size = size

    @property
    def is_allocated_only(self):
        return self.offset == NO_OFFSET

    def __copy__(self):
        return self

    def __deepcopy__(self, memo):
        return self

    def __repr__(self):
        return f"CachedTag({self.index}, {self.name!r}.{self.group})"


class TagCache:
    """Ordered tag table with (group, name) lookup."""

    def __init__(self):
        self.tags = []
        self._by_name = {}  # (group, name) -> CachedTag

    def __len__(self):
        return len(self.tags)

    def __iter__(self):
        return iter(self.tags)

    def _add(self, tag):
        self.tags.append(tag)
        self._by_name.setdefault((tag.group, tag.name), tag)
        return tag

    def allocate_tag(self, definition_type, name):
        """Reserve a new tag identity without content."""
        tag = self._add(CachedTag(len(self.tags), name, definition_type.GROUP_TAG))
        _log.debug("Allocated %r", tag)
        return tag

    def try_get_tag(self, definition_type, name):
        """Return the tag of the given definition type and name, or None."""
        return self._by_name.get((definition_type.GROUP_TAG, name))

    def find_tag(self, group, name):
        """Return the tag with the given group tag and name, or None."""
        return self._by_name.get((group, name))

    def owns(self, tag):
        """True if tag is a handle issued by this table."""
        return 0 <= tag.index < len(self.tags) and self.tags[tag.index] is tag

    def get_tag(self, index):
        return self.tags[index]


class GameCache:
    """A tag cache bound to a binary stream layout."""

    def __init__(self):
        self.tag_cache = TagCache()
        self.string_table = StringTable()
        self.codec = TagCodec(self.tag_cache.get_tag)
        self.resource_cache = ResourceCache(self.codec)

    def try_get_tag(self, definition_type, name):
        return self.tag_cache.try_get_tag(definition_type, name)

    # ------------------------------------------------------------------
    # Tag payloads
    # ------------------------------------------------------------------

    def serialize(self, stream, tag, definition):
        """Encode definition and append it to stream as tag's payload."""
        group = getattr(type(definition), "GROUP_TAG", None)
        if group != tag.group:
            raise ValueError(
                f"Cannot serialize {type(definition).__name__} ({group}) into {tag!r}"
            )

        payload = self.codec.encode(definition)

        stream.seek(0, io.SEEK_END)
        if stream.tell() == 0:
            stream.write(CacheHeader().write())
        offset = stream.tell()
        stream.write(struct.pack(CHUNK_HEADER_FORMAT, CHUNK_MAGIC, tag.index, len(payload)))
        stream.write(payload)

        tag.offset = offset
        tag.size = len(payload)
        _log.debug("Serialized %r at 0x%x (%d bytes)", tag, offset, len(payload))

    def deserialize(self, stream, tag):
        """Read and decode tag's payload from stream."""
        if tag.is_allocated_only:
            raise ValueError(f"{tag!r} has been allocated but never serialized")

        stream.seek(tag.offset)
        magic, tag_index, size = struct.unpack(
            CHUNK_HEADER_FORMAT, _read_exact(stream, CHUNK_HEADER_SIZE))
        if magic != CHUNK_MAGIC or tag_index != tag.index:
            raise ValueError(f"Corrupt chunk header for {tag!r} at 0x{tag.offset:x}")

        definition = self.codec.decode(_read_exact(stream, size))
        _log.debug("Deserialized %r (%s)", tag, type(definition).__name__)
        return definition

    # ------------------------------------------------------------------
    # Index
    # ------------------------------------------------------------------

    def save_index(self, stream):
        """Write tag, string and resource tables and point the header at them."""
        buf = bytearray()
        buf.extend(struct.pack(INDEX_HEADER_FORMAT, INDEX_MAGIC, len(self.tag_cache),
                               len(self.string_table) - 1, len(self.resource_cache)))
        for tag in self.tag_cache:
            buf.extend(struct.pack(TAG_ENTRY_FORMAT, tag.group.encode("ascii"),
                                   tag.offset, tag.size))
            _write_string(buf, tag.name)
        for s in self.string_table.strings[1:]:
            _write_string(buf, s)
        for payload in self.resource_cache.resources:
            buf.extend(struct.pack("<I", len(payload)))
            buf.extend(payload)

        stream.seek(0, io.SEEK_END)
        if stream.tell() == 0:
            stream.write(CacheHeader().write())
        index_offset = stream.tell()
        stream.write(bytes(buf))
        stream.seek(0)
        stream.write(CacheHeader(index_offset=index_offset).write())
        stream.seek(0, io.SEEK_END)

        _log.info("Saved index: %d tags, %d strings, %d resources",
                  len(self.tag_cache), len(self.string_table) - 1, len(self.resource_cache))

    @classmethod
    def open(cls, stream):
        """Load a GameCache from a stream previously written with save_index()."""
        stream.seek(0)
        header = CacheHeader.read(_read_exact(stream, HEADER_SIZE))
        cache = cls()
        if not header.has_index:
            return cache

        stream.seek(header.index_offset)
        magic, tag_count, string_count, resource_count = struct.unpack(
            INDEX_HEADER_FORMAT, _read_exact(stream, INDEX_HEADER_SIZE))
        if magic != INDEX_MAGIC:
            raise ValueError(f"Invalid index magic: {magic!r}")

        entry_size = struct.calcsize(TAG_ENTRY_FORMAT)
        for i in range(tag_count):
            group, offset, size = struct.unpack(TAG_ENTRY_FORMAT, _read_exact(stream, entry_size))
            name = _read_string(stream)
            cache.tag_cache._add(CachedTag(i, name, group.decode("ascii"), offset, size))
        for _ in range(string_count):
            cache.string_table.get_string_id(_read_string(stream))
        for _ in range(resource_count):
            (length,) = struct.unpack("<I", _read_exact(stream, 4))
            cache.resource_cache.resources.append(_read_exact(stream, length))

        _log.info("Opened cache: %d tags, %d strings, %d resources",
                  tag_count, string_count, resource_count)
        return cache


def _read_exact(stream, size):
    data = stream.read(size)
    if len(data) != size:
        raise ValueError(f"Unexpected end of stream: wanted {size} bytes, got {len(data)}")
    return data


def _write_string(buf, s):
    raw = s.encode("utf-8")
    buf.extend(struct.pack("<H", len(raw)))
    buf.extend(raw)


def _read_string(stream):
    (length,) = struct.unpack("<H", _read_exact(stream, 2))
    return _read_exact(stream, length).decode("utf-8")
