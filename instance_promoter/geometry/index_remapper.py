"""First-seen-order index remapping.

Structure bsps keep partition-wide tables (render materials, bounding spheres,
collision materials) that every mesh indexes into. A promoted object needs its
own compact copy of just the entries it uses. IndexRemapper is the mapping
from the old, partition-wide index space to the new local one:

    - the n-th distinct old index seen becomes new index n-1
    - seeing an old index again returns the index it already got
    - iteration yields (old, new) pairs in first-seen order
"""

import copy

from ..tags.common import NONE_INDEX, get_block


class IndexRemapper:
    """Deduplicating old -> new index map with insertion-order iteration."""

    __slots__ = ('_mapping',)

    def __init__(self):
        self._mapping = {}  # old -> new, dicts keep insertion order

    def __len__(self):
        return len(self._mapping)

    def __contains__(self, old_index):
        return old_index in self._mapping

    def __iter__(self):
        return iter(self._mapping)

    def _next_index(self):
        return len(self._mapping)

    def remap(self, old_index):
        """Return (new_index, is_new) for old_index, assigning on first sight."""
        new_index = self._mapping.get(old_index)
        if new_index is not None:
            return new_index, False
        new_index = self._next_index()
        self._mapping[old_index] = new_index
        return new_index, True

    def lookup(self, old_index, default=None):
        return self._mapping.get(old_index, default)

    def items(self):
        """(old, new) pairs in first-seen order."""
        return list(self._mapping.items())

    def __repr__(self):
        return f"{type(self).__name__}({self._mapping!r})"


class CollapsingIndexRemapper(IndexRemapper):
    """Records every distinct old index but assigns them all new index 0.

    Reproduces converter output where each collision material collapsed onto
    the first local slot. Not injective; only used when a conversion profile
    asks for it.
    """

    __slots__ = ()

    def _next_index(self):
        return 0


def remap_attribute(items, attribute, source_table, remapper=None):
    """Rewrite items' ``attribute`` into a compact local table.

    Each distinct old index is copied out of source_table once, in first-seen
    order, and every item is pointed at the copy. Items whose index is
    NONE_INDEX are left untouched.

    Args:
        items: objects carrying the index attribute (e.g. mesh parts)
        attribute: name of the index attribute
        source_table: partition-wide table the old indices point into
        remapper: IndexRemapper to fill (a fresh one if omitted)

    Returns:
        (local_table, remapper)
    """
    if remapper is None:
        remapper = IndexRemapper()
    local_table = []

    for item in items:
        old_index = getattr(item, attribute)
        if old_index == NONE_INDEX:
            continue
        new_index, is_new = remapper.remap(old_index)
        if is_new:
            local_table.append(copy.deepcopy(get_block(source_table, old_index, attribute)))
        setattr(item, attribute, new_index)

    return local_table, remapper
