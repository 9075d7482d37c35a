"""Conversion policy profiles for instanced geometry promotion.

The values written into promoted objects that cannot be derived from the
source geometry (gameplay timers, level-of-detail distances, material
classification) are policy, not data. Each profile bundles one consistent set
of them so the converter has no hardcoded constants of its own.

Profiles are registered in a global dict and selected by id, either in code
(InstancedGeometryToObjectConverter(profile=...)) or from the command line
(--profile).

Adding a profile:
    1. Create a ConversionProfile with the values the target runtime expects
    2. Call register_profile() to add it to the registry
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from .tags.game_object import GameObjectType, SceneryFlags, SweetenerSize
from .tags.model import Model


# ---------------------------------------------------------------------------
# Configuration dataclasses
# ---------------------------------------------------------------------------

@dataclass
class NamingConfig:
    """How the identifier of a promoted object is derived."""

    # objects\<scenario folder>\<folder_name>\<bsp index>_<instance name>
    root_folder: str = "objects"
    folder_name: str = "instanced"
    separator: str = "\\"

    # Zero-pad width of the structure bsp index.
    bsp_index_width: int = 2


@dataclass
class ObjectConfig:
    """Gameplay defaults for the object header."""

    object_type: GameObjectType = GameObjectType.SCENERY
    spawn_time: int = 30
    abandon_time: int = 60
    acceleration_scale: float = 1.0
    sweetener_size: SweetenerSize = SweetenerSize.LARGE
    scenery_flags: SceneryFlags = SceneryFlags.PHYSICALLY_SIMULATES

    # bounding radius = scale * largest compression extent
    bounding_radius_scale: float = 2.0


@dataclass
class ModelConfig:
    """Model defaults that are policy, not geometry."""

    reduce_to_l1_super_low: float = 300.0
    reduce_to_l2_low: float = 280.0

    # Classification given to every local collision material; the source
    # bsp only keeps the global material index.
    material_type: int = Model.Material.MaterialTypeValue.DIRT


@dataclass
class CollisionConfig:
    """Collision rebuild options."""

    # False: surfaces get compacted first-seen-order material indices.
    # True: every mapped surface material collapses onto local slot 0, which
    # matches the output of older converters.
    collapse_collision_materials: bool = False


@dataclass
class ConversionProfile:
    """Complete set of policy values for one target runtime."""

    profile_id: str = "default"
    profile_name: str = "Default"
    notes: str = ""

    naming: NamingConfig = field(default_factory=NamingConfig)
    objects: ObjectConfig = field(default_factory=ObjectConfig)
    model: ModelConfig = field(default_factory=ModelConfig)
    collision: CollisionConfig = field(default_factory=CollisionConfig)


# ---------------------------------------------------------------------------
# Profile registry
# ---------------------------------------------------------------------------

DEFAULT_PROFILE_ID = "default"

CONVERSION_PROFILES: Dict[str, ConversionProfile] = {}


def register_profile(profile: ConversionProfile) -> None:
    """Register a conversion profile in the global registry."""
    CONVERSION_PROFILES[profile.profile_id] = profile


def get_profile(profile_id: str) -> Optional[ConversionProfile]:
    """Look up a profile by its id."""
    return CONVERSION_PROFILES.get(profile_id)


def get_default_profile() -> ConversionProfile:
    return CONVERSION_PROFILES[DEFAULT_PROFILE_ID]


def get_profile_items() -> List[Tuple[str, str, str]]:
    """Return (identifier, name, description) tuples for every profile."""
    return [(pid, prof.profile_name, prof.notes) for pid, prof in CONVERSION_PROFILES.items()]


# ---------------------------------------------------------------------------
# Built-in profiles
# ---------------------------------------------------------------------------

register_profile(ConversionProfile(
    profile_id=DEFAULT_PROFILE_ID,
    profile_name="Default",
    notes="Scenery objects, compacted collision material indices",
))

register_profile(ConversionProfile(
    profile_id="legacy_collision_materials",
    profile_name="Legacy collision materials",
    collision=CollisionConfig(collapse_collision_materials=True),
    notes="Every surface material maps to local slot 0 (matches older converter output)",
))
