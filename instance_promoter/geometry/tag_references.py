"""Rebind tag references copied from one cache into another.

Records cloned out of the source bsp (render materials in particular) still
hold CachedTag handles issued by the source cache. A handle is only
meaningful against its own tag table, so before such a record is written to a
different cache every source handle is looked up in the destination by
(group, name). References with no counterpart there are cleared.
"""

import dataclasses
import logging

from ..tag_format.tag_codec import serialized_fields

_log = logging.getLogger("promote_references")


class TagReferenceRebinder:
    """Walks record graphs replacing source-cache handles with destination ones.

    Args:
        source_cache: GameCache the copied records came from
        dest_cache: GameCache the records are about to be written to

    Attributes:
        unresolved: (group, name) of every reference that had to be cleared
    """

    def __init__(self, source_cache, dest_cache):
        self.source_tags = source_cache.tag_cache
        self.dest_tags = dest_cache.tag_cache
        self.unresolved = []

    def rebind(self, value):
        """Rebind value in place and return it (tag references are returned rebound)."""
        if getattr(value, "is_tag_reference", False):
            return self._resolve(value)
        if isinstance(value, list):
            for i, item in enumerate(value):
                value[i] = self.rebind(item)
        elif dataclasses.is_dataclass(value) and not isinstance(value, type):
            for f in serialized_fields(value):
                setattr(value, f.name, self.rebind(getattr(value, f.name)))
        return value

    def _resolve(self, tag):
        if not self.source_tags.owns(tag):
            return tag
        dest_tag = self.dest_tags.find_tag(tag.group, tag.name)
        if dest_tag is None:
            _log.warning("%s.%s is not in the destination cache; clearing the reference",
                         tag.name, tag.group)
            self.unresolved.append((tag.group, tag.name))
        return dest_tag
