"""Collision model definition (group 'coll')."""

from dataclasses import dataclass, field
from typing import List

from ..tag_format.string_table import StringId
from ..tag_format.tag_codec import tag_type
from .common import NONE_INDEX
from .structure_bsp import CollisionBspPhysicsDefinition, CollisionGeometry, MoppCode


@tag_type
@dataclass
class CollisionModel:
    GROUP_TAG = "coll"

    @tag_type
    @dataclass
    class Bsp:
        node_index: int = NONE_INDEX
        geometry: CollisionGeometry = field(default_factory=CollisionGeometry)

    @tag_type
    @dataclass
    class Permutation:
        name: StringId = StringId.INVALID
        flags: int = 0
        bsps: list = field(default_factory=list)
        bsp_physics: List[CollisionBspPhysicsDefinition] = field(default_factory=list)
        bsp_mopp_codes: List[MoppCode] = field(default_factory=list)

    @tag_type
    @dataclass
    class Region:
        name: StringId = StringId.INVALID
        permutations: list = field(default_factory=list)

    flags: int = 0
    regions: list = field(default_factory=list)
