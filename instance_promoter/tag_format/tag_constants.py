"""Constants for the tag cache container format."""

# Magic at the start of every cache stream ('TCHE' little-endian)
CACHE_MAGIC = b"TCHE"

# Header: magic:4s, flags:u32, index_offset:u64
HEADER_FORMAT = "<4sIQ"
HEADER_SIZE = 0x10  # 16 bytes

# Tag payload chunk: magic:4s, tag_index:u32, payload_size:u32
CHUNK_MAGIC = b"TAG!"
CHUNK_HEADER_FORMAT = "<4sII"
CHUNK_HEADER_SIZE = 12

# Index block: magic:4s, tag_count:u32, string_count:u32, resource_count:u32
INDEX_MAGIC = b"INDX"
INDEX_HEADER_FORMAT = "<4sIII"
INDEX_HEADER_SIZE = 16

# Tag entry in the index: group:4s, offset:u64, size:u32, then name string
TAG_ENTRY_FORMAT = "<4sQI"

# Sentinel stored for "no offset yet" (allocated but never serialized)
NO_OFFSET = 0xFFFFFFFFFFFFFFFF

# Sentinel tag index for a null tag reference
NULL_TAG_INDEX = -1

# ---------------------------------------------------------------------------
# Codec value type codes (one byte, precedes every encoded value)
# ---------------------------------------------------------------------------

VT_NONE = 0x00
VT_FALSE = 0x01
VT_TRUE = 0x02
VT_INT = 0x03        # int64
VT_FLOAT = 0x04      # float64
VT_STRING = 0x05     # u32 length + utf-8
VT_BYTES = 0x06      # u32 length + raw
VT_LIST = 0x07       # u32 count + values
VT_STRING_ID = 0x08  # u32 string id
VT_TAG_REF = 0x09    # i32 tag index (-1 = none)
VT_ENUM = 0x0A       # u16 type name length + name + int64 value
VT_RECORD = 0x0B     # u16 type name length + name + u16 field count + (name, value) pairs
VT_TUPLE = 0x0C      # u32 count + values

# struct formats for fixed-size bodies
VALUE_FORMATS = {
    VT_INT: "<q",
    VT_FLOAT: "<d",
    VT_STRING_ID: "<I",
    VT_TAG_REF: "<i",
}
