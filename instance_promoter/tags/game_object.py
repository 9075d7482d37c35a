"""Game object definitions (object header records)."""

import enum
from dataclasses import dataclass, field
from typing import List, Optional

from ..tag_format.tag_cache import CachedTag
from ..tag_format.tag_codec import tag_type
from .common import RealPoint3d


@tag_type
class GameObjectType(enum.IntEnum):
    BIPED = 0
    VEHICLE = 1
    WEAPON = 2
    EQUIPMENT = 3
    TERMINAL = 4
    PROJECTILE = 5
    SCENERY = 6
    MACHINE = 7
    CONTROL = 8
    SOUND_SCENERY = 9
    CRATE = 10
    CREATURE = 11
    GIANT = 12
    EFFECT_SCENERY = 13


@tag_type
class SweetenerSize(enum.IntEnum):
    SMALL = 0
    MEDIUM = 1
    LARGE = 2


@tag_type
class SceneryFlags(enum.IntFlag):
    NONE = 0
    PHYSICALLY_SIMULATES = 1 << 0
    USE_COMPLEX_ACTIVATION = 1 << 1


@tag_type
@dataclass
class MultiplayerObjectBlock:
    object_type: int = 0
    flags: int = 0
    spawn_time: int = 0
    abandon_time: int = 0
    boundary_width_radius: float = 0.0
    boundary_box_length: float = 0.0


@tag_type
@dataclass
class GameObject:
    object_type: GameObjectType = GameObjectType.SCENERY
    flags: int = 0
    bounding_radius: float = 0.0
    bounding_offset: RealPoint3d = field(default_factory=RealPoint3d)
    acceleration_scale: float = 0.0
    sweetener_size: SweetenerSize = SweetenerSize.SMALL
    model: Optional[CachedTag] = None
    multiplayer_object: List[MultiplayerObjectBlock] = field(default_factory=list)


@tag_type
@dataclass
class Scenery(GameObject):
    GROUP_TAG = "scen"

    scenery_flags: SceneryFlags = SceneryFlags.NONE
    pathfinding_policy: int = 0
    lightmapping_policy: int = 0
