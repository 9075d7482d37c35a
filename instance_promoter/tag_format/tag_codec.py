"""Reflective binary codec for tag definitions.

Tag definitions are plain dataclasses registered with @tag_type. The codec
walks their fields and writes each value as a one-byte type code followed by
a struct-packed body (see tag_constants.VT_*). Nested records and enums carry
their registered type name so the decoder can rebuild the same classes.

Fields declared with ``metadata={"runtime": True}`` exist only in memory
(e.g. buffers attached to a mesh after expanding its resource) and are
skipped on both sides.
"""

import dataclasses
import enum
import logging
import struct

from .string_table import StringId
from .tag_constants import (
    VT_NONE, VT_FALSE, VT_TRUE, VT_INT, VT_FLOAT, VT_STRING, VT_BYTES,
    VT_LIST, VT_STRING_ID, VT_TAG_REF, VT_ENUM, VT_RECORD, VT_TUPLE,
    VALUE_FORMATS, NULL_TAG_INDEX,
)

_log = logging.getLogger("tag_codec")

# type name -> dataclass or enum class
TAG_TYPES = {}


def tag_type(cls):
    """Class decorator registering a dataclass or enum with the codec."""
    TAG_TYPES[cls.__qualname__] = cls
    return cls


def serialized_fields(record):
    """Fields of a record that are written to the stream (runtime ones excluded)."""
    return [f for f in dataclasses.fields(record) if not f.metadata.get("runtime")]


class TagCodec:
    """Encodes/decodes a record graph for one cache.

    Args:
        tag_resolver: callable(tag_index) -> CachedTag, used to rebuild tag
            references on decode. Tag references are written as their index
            in the owning cache's tag table.
    """

    def __init__(self, tag_resolver):
        self.tag_resolver = tag_resolver

    # ------------------------------------------------------------------
    # Encoding
    # ------------------------------------------------------------------

    def encode(self, value):
        buf = bytearray()
        self._write_value(buf, value)
        return bytes(buf)

    def _write_name(self, buf, name):
        raw = name.encode("utf-8")
        buf.extend(struct.pack("<H", len(raw)))
        buf.extend(raw)

    def _write_value(self, buf, value):
        # Order matters: bool/StringId/enums are all int subclasses
        if value is None:
            buf.append(VT_NONE)
        elif value is True:
            buf.append(VT_TRUE)
        elif value is False:
            buf.append(VT_FALSE)
        elif getattr(value, "is_tag_reference", False):
            buf.append(VT_TAG_REF)
            buf.extend(struct.pack(VALUE_FORMATS[VT_TAG_REF], value.index))
        elif isinstance(value, StringId):
            buf.append(VT_STRING_ID)
            buf.extend(struct.pack(VALUE_FORMATS[VT_STRING_ID], int(value)))
        elif isinstance(value, enum.Enum):
            buf.append(VT_ENUM)
            self._write_name(buf, type(value).__qualname__)
            buf.extend(struct.pack("<q", int(value.value)))
        elif isinstance(value, int):
            buf.append(VT_INT)
            buf.extend(struct.pack(VALUE_FORMATS[VT_INT], value))
        elif isinstance(value, float):
            buf.append(VT_FLOAT)
            buf.extend(struct.pack(VALUE_FORMATS[VT_FLOAT], value))
        elif isinstance(value, str):
            raw = value.encode("utf-8")
            buf.append(VT_STRING)
            buf.extend(struct.pack("<I", len(raw)))
            buf.extend(raw)
        elif isinstance(value, (bytes, bytearray)):
            buf.append(VT_BYTES)
            buf.extend(struct.pack("<I", len(value)))
            buf.extend(value)
        elif isinstance(value, list):
            buf.append(VT_LIST)
            buf.extend(struct.pack("<I", len(value)))
            for item in value:
                self._write_value(buf, item)
        elif isinstance(value, tuple):
            buf.append(VT_TUPLE)
            buf.extend(struct.pack("<I", len(value)))
            for item in value:
                self._write_value(buf, item)
        elif dataclasses.is_dataclass(value):
            type_name = type(value).__qualname__
            if TAG_TYPES.get(type_name) is not type(value):
                raise ValueError(f"Unregistered tag type: {type_name}")
            fields = serialized_fields(value)
            buf.append(VT_RECORD)
            self._write_name(buf, type_name)
            buf.extend(struct.pack("<H", len(fields)))
            for f in fields:
                self._write_name(buf, f.name)
                self._write_value(buf, getattr(value, f.name))
        else:
            raise ValueError(f"Cannot encode value of type {type(value).__name__}")

    # ------------------------------------------------------------------
    # Decoding
    # ------------------------------------------------------------------

    def decode(self, data):
        try:
            value, pos = self._read_value(memoryview(data), 0)
        except struct.error as exc:
            raise ValueError(f"Truncated tag payload: {exc}") from exc
        if pos != len(data):
            raise ValueError(f"Trailing data after tag payload: {len(data) - pos} bytes")
        return value

    def _read_name(self, view, pos):
        (length,) = struct.unpack_from("<H", view, pos)
        pos += 2
        return bytes(view[pos:pos + length]).decode("utf-8"), pos + length

    def _lookup_type(self, type_name):
        cls = TAG_TYPES.get(type_name)
        if cls is None:
            raise ValueError(f"Unknown tag type in stream: {type_name}")
        return cls

    def _read_value(self, view, pos):
        if pos >= len(view):
            raise ValueError(f"Truncated tag payload at offset {pos}")
        code = view[pos]
        pos += 1

        if code == VT_NONE:
            return None, pos
        if code == VT_TRUE:
            return True, pos
        if code == VT_FALSE:
            return False, pos
        if code in (VT_INT, VT_FLOAT, VT_STRING_ID, VT_TAG_REF):
            fmt = VALUE_FORMATS[code]
            (raw,) = struct.unpack_from(fmt, view, pos)
            pos += struct.calcsize(fmt)
            if code == VT_STRING_ID:
                return StringId(raw), pos
            if code == VT_TAG_REF:
                return (None if raw == NULL_TAG_INDEX else self.tag_resolver(raw)), pos
            return raw, pos
        if code in (VT_STRING, VT_BYTES):
            (length,) = struct.unpack_from("<I", view, pos)
            pos += 4
            raw = bytes(view[pos:pos + length])
            if len(raw) != length:
                raise ValueError(f"Truncated string/bytes value at offset {pos}")
            pos += length
            return (raw.decode("utf-8") if code == VT_STRING else raw), pos
        if code in (VT_LIST, VT_TUPLE):
            (count,) = struct.unpack_from("<I", view, pos)
            pos += 4
            items = []
            for _ in range(count):
                item, pos = self._read_value(view, pos)
                items.append(item)
            return (items if code == VT_LIST else tuple(items)), pos
        if code == VT_ENUM:
            type_name, pos = self._read_name(view, pos)
            (raw,) = struct.unpack_from("<q", view, pos)
            pos += 8
            return self._lookup_type(type_name)(raw), pos
        if code == VT_RECORD:
            type_name, pos = self._read_name(view, pos)
            cls = self._lookup_type(type_name)
            (field_count,) = struct.unpack_from("<H", view, pos)
            pos += 2
            record = cls()
            known = {f.name for f in serialized_fields(record)}
            for _ in range(field_count):
                name, pos = self._read_name(view, pos)
                value, pos = self._read_value(view, pos)
                if name in known:
                    setattr(record, name, value)
                else:
                    _log.debug("Dropping unknown field %s.%s", type_name, name)
            return record, pos

        raise ValueError(f"Unknown value type code 0x{code:02x} at offset {pos - 1}")
