"""Tag definitions: the record types stored in a GameCache.

Importing this package registers every definition with the tag codec, which
GameCache.deserialize needs to rebuild records from a stream.
"""

from . import common, render_geometry, structure_bsp  # noqa: F401
from . import render_model, collision_model, model, game_object  # noqa: F401
