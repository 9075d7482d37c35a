"""Model definition (group 'hlmt'): ties render, collision and materials together."""

import enum
from dataclasses import dataclass, field
from typing import Optional

from ..tag_format.string_table import StringId
from ..tag_format.tag_cache import CachedTag
from ..tag_format.tag_codec import tag_type
from .common import RealMatrix4x3, RealPoint3d, RealQuaternion, NONE_INDEX


@tag_type
@dataclass
class Model:
    GROUP_TAG = "hlmt"

    @tag_type
    @dataclass
    class Node:
        name: StringId = StringId.INVALID
        parent_node: int = NONE_INDEX
        first_child_node: int = NONE_INDEX
        next_sibling_node: int = NONE_INDEX
        import_node_index: int = NONE_INDEX
        default_translation: RealPoint3d = field(default_factory=RealPoint3d)
        default_rotation: RealQuaternion = field(default_factory=RealQuaternion)
        default_scale: float = 1.0
        inverse: RealMatrix4x3 = field(default_factory=RealMatrix4x3)
        distance_from_parent: float = 0.0

    @tag_type
    @dataclass
    class Material:
        @tag_type
        class MaterialTypeValue(enum.IntEnum):
            DIRT = 0
            SAND = 1
            STONE = 2
            SNOW = 3
            WOOD = 4
            METAL_HOLLOW = 5
            METAL_THIN = 6
            METAL_THICK = 7
            RUBBER = 8
            GLASS = 9
            FORCE_FIELD = 10
            GRUNT = 11
            HUNTER_ARMOR = 12
            HUNTER_SKIN = 13
            ELITE = 14
            JACKAL = 15
            JACKAL_ENERGY_SHIELD = 16
            ENGINEER_SKIN = 17
            ENGINEER_FORCE_FIELD = 18
            FLOOD_COMBAT_FORM = 19
            FLOOD_CARRIER_FORM = 20
            CYBORG_ARMOR = 21
            CYBORG_ENERGY_SHIELD = 22
            HUMAN_ARMOR = 23
            HUMAN_SKIN = 24
            SENTINEL = 25
            MONITOR = 26
            PLASTIC = 27
            WATER = 28
            LEAVES = 29
            ELITE_ENERGY_SHIELD = 30
            ICE = 31
            HUNTER_SHIELD = 32

        name: StringId = StringId.INVALID
        material_type: enum.IntEnum = MaterialTypeValue.DIRT
        damage_section_index: int = NONE_INDEX
        runtime_collision_material_index: int = NONE_INDEX
        runtime_damager_material_index: int = NONE_INDEX
        material_name: StringId = StringId.INVALID
        global_material_index: int = NONE_INDEX

    @tag_type
    @dataclass
    class CollisionPermutation:
        name: StringId = StringId.INVALID
        flags: int = 0
        collision_permutation_index: int = NONE_INDEX
        physics_permutation_index: int = NONE_INDEX

    @tag_type
    @dataclass
    class CollisionRegion:
        name: StringId = StringId.INVALID
        collision_region_index: int = NONE_INDEX
        physics_region_index: int = NONE_INDEX
        permutations: list = field(default_factory=list)

    render_model: Optional[CachedTag] = None
    collision_model: Optional[CachedTag] = None
    animation: Optional[CachedTag] = None
    physics_model: Optional[CachedTag] = None
    disappear_distance: float = 0.0
    begin_fade_distance: float = 0.0
    reduce_to_l1_super_low: float = 0.0
    reduce_to_l2_low: float = 0.0
    materials: list = field(default_factory=list)
    collision_regions: list = field(default_factory=list)
    nodes: list = field(default_factory=list)
