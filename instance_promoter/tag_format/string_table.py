"""Per-cache string interning.

Every GameCache owns one StringTable. A StringId is only meaningful against
the table that produced it; id 0 is reserved for the empty/invalid string.
"""

import logging

_log = logging.getLogger("tag_strings")


class StringId(int):
    """Interned string handle (an int tagged so the codec can recognise it)."""

    __slots__ = ()

    @property
    def is_valid(self):
        return self != 0

    def __copy__(self):
        return self

    def __deepcopy__(self, memo):
        return self

    def __repr__(self):
        return f"StringId(0x{int(self):08x})"


StringId.INVALID = StringId(0)


class StringTable:
    """Ordered string pool with reverse lookup."""

    def __init__(self, strings=None):
        self.strings = [""]          # id -> string, slot 0 is the invalid string
        self._lookup = {"": 0}       # string -> id
        for s in strings or ():
            self.get_string_id(s)

    def __len__(self):
        return len(self.strings)

    def get_string_id(self, name):
        """Intern name and return its StringId."""
        sid = self._lookup.get(name)
        if sid is None:
            sid = len(self.strings)
            self.strings.append(name)
            self._lookup[name] = sid
            _log.debug("Interned %r as 0x%08x", name, sid)
        return StringId(sid)

    def find_string_id(self, name):
        """Return the StringId for name without interning (INVALID if absent)."""
        return StringId(self._lookup.get(name, 0))

    def get_string(self, string_id):
        """Resolve a StringId back to its string."""
        return self.strings[string_id]
