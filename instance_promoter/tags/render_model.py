"""Render model definition (group 'mode')."""

from dataclasses import dataclass, field
from typing import List

from ..tag_format.string_table import StringId
from ..tag_format.tag_codec import tag_type
from .common import RealPoint3d, RealQuaternion, RealVector3d, NONE_INDEX
from .render_geometry import RenderGeometry, RenderGeometryCompression, RenderMaterial


@tag_type
@dataclass
class RenderModel:
    GROUP_TAG = "mode"

    @tag_type
    @dataclass
    class Node:
        name: StringId = StringId.INVALID
        parent_node: int = NONE_INDEX
        first_child_node: int = NONE_INDEX
        next_sibling_node: int = NONE_INDEX
        default_translation: RealPoint3d = field(default_factory=RealPoint3d)
        default_rotation: RealQuaternion = field(default_factory=RealQuaternion)
        default_scale: float = 1.0
        inverse_forward: RealVector3d = field(default_factory=lambda: RealVector3d(1.0, 0.0, 0.0))
        inverse_left: RealVector3d = field(default_factory=lambda: RealVector3d(0.0, 1.0, 0.0))
        inverse_up: RealVector3d = field(default_factory=lambda: RealVector3d(0.0, 0.0, 1.0))
        inverse_position: RealPoint3d = field(default_factory=RealPoint3d)
        distance_from_parent: float = 0.0

    @tag_type
    @dataclass
    class Permutation:
        name: StringId = StringId.INVALID
        mesh_index: int = NONE_INDEX
        mesh_count: int = 0
        flags: int = 0

    @tag_type
    @dataclass
    class Region:
        name: StringId = StringId.INVALID
        node_map_offset: int = 0
        node_map_size: int = 0
        permutations: list = field(default_factory=list)

    @tag_type
    @dataclass
    class RuntimeNodeOrientation:
        rotation: RealQuaternion = field(default_factory=RealQuaternion)
        translation: RealPoint3d = field(default_factory=RealPoint3d)
        scale: float = 1.0

    name: StringId = StringId.INVALID
    flags: int = 0
    regions: list = field(default_factory=list)
    instance_starting_mesh_index: int = NONE_INDEX
    nodes: list = field(default_factory=list)
    materials: List[RenderMaterial] = field(default_factory=list)
    geometry: RenderGeometry = field(default_factory=RenderGeometry)
    runtime_node_orientations: list = field(default_factory=list)
    # Mirrors geometry.compression; the runtime reads either copy
    compression: List[RenderGeometryCompression] = field(default_factory=list)
