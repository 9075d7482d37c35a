"""Render geometry: meshes, parts, compression bounds and buffer resources.

A RenderGeometry block is embedded in both render models and lightmap bsp
data. Its vertex/index buffers are not stored in the tag; each mesh refers to
buffers in the geometry's resource definition by slot index. After
set_resource_buffers() the resolved buffer objects are also attached to the
mesh in runtime-only fields.
"""

import enum
from dataclasses import dataclass, field
from typing import List, Optional

from ..tag_format.resource_cache import TagResourceReference
from ..tag_format.tag_cache import CachedTag
from ..tag_format.tag_codec import tag_type
from .common import Bounds, RealPoint3d, NONE_INDEX

# Fixed slot counts per mesh
VERTEX_BUFFER_SLOTS = 8
INDEX_BUFFER_SLOTS = 2


@tag_type
class MeshFlags(enum.IntFlag):
    NONE = 0
    HAS_VERTEX_COLORS = 1 << 0
    USE_REGION_INDEX_FOR_SORTING = 1 << 1
    CAN_BE_RENDERED_IN_DRAW_BUNDLES = 1 << 2
    IS_CUSTOM_SHADOW_CASTER = 1 << 3
    MESH_IS_UNINDEXED = 1 << 4
    SHOULD_RENDER_IN_Z_PREPASS = 1 << 5
    USE_UNCOMPRESSED_VERTEX_FORMAT = 1 << 6


def _empty_slots(count, value=NONE_INDEX):
    return lambda: [value] * count


@tag_type
@dataclass
class Part:
    material_index: int = NONE_INDEX
    transparent_sorting_index: int = NONE_INDEX
    first_index: int = 0
    index_count: int = 0
    first_subpart: int = 0
    subpart_count: int = 0
    part_type: int = 0
    flags: int = 0
    vertex_count: int = 0


@tag_type
@dataclass
class SubPart:
    first_index: int = 0
    index_count: int = 0
    part_index: int = NONE_INDEX
    vertex_count: int = 0


@tag_type
@dataclass
class VertexBufferDefinition:
    count: int = 0
    format: int = 0
    vertex_size: int = 0
    data: bytes = b""


@tag_type
@dataclass
class IndexBufferDefinition:
    format: int = 0
    data: bytes = b""


@tag_type
@dataclass
class RenderGeometryApiResourceDefinition:
    """Resource payload holding the actual buffers of a RenderGeometry."""

    vertex_buffers: List[VertexBufferDefinition] = field(default_factory=list)
    index_buffers: List[IndexBufferDefinition] = field(default_factory=list)


@tag_type
@dataclass
class Mesh:
    parts: List[Part] = field(default_factory=list)
    subparts: List[SubPart] = field(default_factory=list)
    vertex_buffer_indices: List[int] = field(default_factory=_empty_slots(VERTEX_BUFFER_SLOTS))
    index_buffer_indices: List[int] = field(default_factory=_empty_slots(INDEX_BUFFER_SLOTS))
    flags: MeshFlags = MeshFlags.NONE
    rigid_node_index: int = NONE_INDEX
    vertex_type: int = 0
    prt_type: int = 0
    index_buffer_type: int = 0

    # Attached by RenderGeometry.set_resource_buffers(), never serialized
    resource_vertex_buffers: List[Optional[VertexBufferDefinition]] = field(
        default_factory=_empty_slots(VERTEX_BUFFER_SLOTS, None), metadata={"runtime": True})
    resource_index_buffers: List[Optional[IndexBufferDefinition]] = field(
        default_factory=_empty_slots(INDEX_BUFFER_SLOTS, None), metadata={"runtime": True})


@tag_type
@dataclass
class RenderGeometryCompression:
    """Per-axis quantization ranges for a mesh's compressed vertices."""

    flags: int = 0
    x: Bounds = field(default_factory=Bounds)
    y: Bounds = field(default_factory=Bounds)
    z: Bounds = field(default_factory=Bounds)
    u: Bounds = field(default_factory=Bounds)
    v: Bounds = field(default_factory=Bounds)


@tag_type
@dataclass
class BoundingSphere:
    plane: tuple = (0.0, 0.0, 0.0, 0.0)
    position: RealPoint3d = field(default_factory=RealPoint3d)
    radius: float = 0.0
    node_indices: List[int] = field(default_factory=lambda: [NONE_INDEX] * 4)
    node_weights: List[float] = field(default_factory=lambda: [0.0] * 3)


@tag_type
@dataclass
class RenderGeometry:
    runtime_flags: int = 0
    meshes: List[Mesh] = field(default_factory=list)
    compression: List[RenderGeometryCompression] = field(default_factory=list)
    bounding_spheres: List[BoundingSphere] = field(default_factory=list)
    resource: TagResourceReference = field(default_factory=TagResourceReference)

    def set_resource_buffers(self, definition):
        """Attach the buffers of an expanded resource definition to every mesh."""
        for mesh in self.meshes:
            mesh.resource_vertex_buffers = [
                _slot(definition.vertex_buffers, index) for index in mesh.vertex_buffer_indices
            ]
            # Unindexed meshes store index slots [0, 0] without owning buffer 0
            if mesh.flags & MeshFlags.MESH_IS_UNINDEXED:
                mesh.resource_index_buffers = [None] * len(mesh.index_buffer_indices)
                continue
            mesh.resource_index_buffers = [
                _slot(definition.index_buffers, index) for index in mesh.index_buffer_indices
            ]


def _slot(buffers, index):
    if 0 <= index < len(buffers):
        return buffers[index]
    return None


@tag_type
@dataclass
class RenderMaterialProperty:
    property_type: int = 0
    int_value: int = 0
    real_value: float = 0.0


@tag_type
@dataclass
class RenderMaterial:
    render_method: Optional[CachedTag] = None
    properties: List[RenderMaterialProperty] = field(default_factory=list)
    imported_material_index: int = NONE_INDEX
    lightmap_resolution_scale: float = 1.0
    lightmap_additive_transparency_color: int = 0
    lightmap_translucency_tint_color: int = 0
    lightmap_analytical_light_absorb: float = 0.0
    lightmap_normal_light_absorb: float = 0.0
    breakable_surface_index: int = NONE_INDEX
