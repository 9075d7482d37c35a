"""Instanced geometry promotion for tag caches.

Extracts an instanced geometry instance from a structure bsp and rebuilds it
as a standalone object (scenery + model + render model + collision model)
with every bsp-wide index renumbered into the new tags' local tables.

Usage:
    from instance_promoter import GameCache, InstancedGeometryToObjectConverter

    with open("levels.cache", "r+b") as stream:
        cache = GameCache.open(stream)
        scenario = cache.deserialize(stream, cache.try_get_tag(Scenario, name))
        converter = InstancedGeometryToObjectConverter(
            cache, stream, cache, stream, scenario, 0)
        tag = converter.convert("rock_01")
        cache.save_index(stream)
"""

__version__ = "0.3.0"

from . import tags  # noqa: F401  (registers tag definitions with the codec)
from .conversion_profiles import ConversionProfile, get_profile, register_profile
from .geometry.instanced_geometry_converter import (
    InstancedGeometryToObjectConverter, sanitize_instance_name,
)
from .tag_format.tag_cache import CachedTag, GameCache
from .tags.structure_bsp import Scenario

__all__ = [
    "CachedTag",
    "ConversionProfile",
    "GameCache",
    "InstancedGeometryToObjectConverter",
    "Scenario",
    "get_profile",
    "register_profile",
    "sanitize_instance_name",
]
