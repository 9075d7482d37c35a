"""Scenario, structure bsp and lightmap definitions.

A scenario lists its structure bsps (the world partitions). Each bsp has a
table of instanced geometry instances, a partition-wide render material table
and a partition-wide collision material table. The mesh data of the instanced
geometry lives in the bsp's collision resource (collision graph, mopp codes)
and in the matching lightmap bsp data tag (render geometry).
"""

from dataclasses import dataclass, field
from typing import List, Optional

from ..tag_format.resource_cache import TagResourceReference
from ..tag_format.string_table import StringId
from ..tag_format.tag_cache import CachedTag
from ..tag_format.tag_codec import tag_type
from .common import RealMatrix4x3, RealPoint3d, RealQuaternion, NONE_INDEX
from .render_geometry import RenderGeometry, RenderMaterial

# Shape key written into promoted physics shapes (no static bsp addressing)
NULL_SHAPE_KEY = 0xFFFF


# ---------------------------------------------------------------------------
# Collision geometry (copied as an opaque graph; only surfaces are rewritten)
# ---------------------------------------------------------------------------

@tag_type
@dataclass
class Bsp3dNode:
    plane: int = 0
    first_child: int = NONE_INDEX
    second_child: int = NONE_INDEX


@tag_type
@dataclass
class Plane:
    value: tuple = (0.0, 0.0, 1.0, 0.0)


@tag_type
@dataclass
class Leaf:
    flags: int = 0
    bsp2d_reference_count: int = 0
    first_bsp2d_reference: int = NONE_INDEX


@tag_type
@dataclass
class Surface:
    plane_index: int = 0
    first_edge: int = NONE_INDEX
    material_index: int = NONE_INDEX
    breakable_surface_index: int = NONE_INDEX
    best_plane_calculation_vertex_index: int = NONE_INDEX
    flags: int = 0


@tag_type
@dataclass
class Edge:
    start_vertex: int = 0
    end_vertex: int = 0
    forward_edge: int = 0
    reverse_edge: int = 0
    left_surface: int = 0
    right_surface: int = 0


@tag_type
@dataclass
class Vertex:
    point: RealPoint3d = field(default_factory=RealPoint3d)
    first_edge: int = NONE_INDEX
    sink: int = 0


@tag_type
@dataclass
class CollisionGeometry:
    bsp3d_nodes: List[Bsp3dNode] = field(default_factory=list)
    planes: List[Plane] = field(default_factory=list)
    leaves: List[Leaf] = field(default_factory=list)
    surfaces: List[Surface] = field(default_factory=list)
    edges: List[Edge] = field(default_factory=list)
    vertices: List[Vertex] = field(default_factory=list)


@tag_type
@dataclass
class MoppCode:
    """Havok mopp bytecode, carried verbatim."""

    offset: RealQuaternion = field(default_factory=RealQuaternion)
    build_type: int = 0
    data: bytes = b""


# ---------------------------------------------------------------------------
# Physics
# ---------------------------------------------------------------------------

@tag_type
@dataclass
class CollisionGeometryShape:
    scale: float = 1.0
    model: Optional[CachedTag] = None
    bsp_index: int = NONE_INDEX
    collision_geometry_shape_key: int = 0
    collision_geometry_shape_type: int = 0
    center: RealQuaternion = field(default_factory=RealQuaternion)
    half_extents: RealQuaternion = field(default_factory=RealQuaternion)


@tag_type
@dataclass
class CollisionBspPhysicsDefinition:
    geometry_shape: CollisionGeometryShape = field(default_factory=CollisionGeometryShape)
    mopp_bv_tree_shape: bytes = b""  # opaque havok shape data


# ---------------------------------------------------------------------------
# Structure bsp
# ---------------------------------------------------------------------------

@tag_type
@dataclass
class StructureCollisionMaterial:
    shader: Optional[CachedTag] = None
    runtime_global_material_index: int = NONE_INDEX
    conveyor_surface_index: int = NONE_INDEX
    seam_mapping_index: int = NONE_INDEX


@tag_type
@dataclass
class InstancedGeometryInstance:
    scale: float = 1.0
    matrix: RealMatrix4x3 = field(default_factory=RealMatrix4x3)
    mesh_index: int = NONE_INDEX
    flags: int = 0
    lightmap_texcoord_block_index: int = NONE_INDEX
    world_bounding_sphere_center: RealPoint3d = field(default_factory=RealPoint3d)
    world_bounding_sphere_radius: float = 0.0
    name: StringId = StringId.INVALID
    pathfinding_policy: int = 0
    lightmapping_policy: int = 0
    bsp_physics: List[CollisionBspPhysicsDefinition] = field(default_factory=list)


@tag_type
@dataclass
class ScenarioStructureBsp:
    GROUP_TAG = "sbsp"

    flags: int = 0
    materials: List[RenderMaterial] = field(default_factory=list)
    collision_materials: List[StructureCollisionMaterial] = field(default_factory=list)
    instanced_geometry_instances: List[InstancedGeometryInstance] = field(default_factory=list)
    collision_bsp_resource: TagResourceReference = field(default_factory=TagResourceReference)


@tag_type
@dataclass
class InstancedGeometryDefinition:
    """Per-mesh instanced geometry data kept in the bsp collision resource."""

    checksum: int = 0
    bounding_sphere_offset: RealPoint3d = field(default_factory=RealPoint3d)
    bounding_sphere_radius: float = 0.0
    flags: int = 0
    mesh_index: int = NONE_INDEX
    compression_index: int = NONE_INDEX
    global_lightmap_resolution_scale: float = 1.0
    collision_info: CollisionGeometry = field(default_factory=CollisionGeometry)
    collision_mopp_codes: List[MoppCode] = field(default_factory=list)


@tag_type
@dataclass
class StructureBspTagResources:
    collision_bsps: List[CollisionGeometry] = field(default_factory=list)
    instanced_geometry: List[InstancedGeometryDefinition] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Lightmap
# ---------------------------------------------------------------------------

@tag_type
@dataclass
class ScenarioLightmapBspData:
    GROUP_TAG = "Lbsp"

    flags: int = 0
    bsp_index: int = 0
    geometry: RenderGeometry = field(default_factory=RenderGeometry)


@tag_type
@dataclass
class ScenarioLightmap:
    GROUP_TAG = "sLdT"

    lightmap_data_references: List[CachedTag] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Scenario
# ---------------------------------------------------------------------------

@tag_type
@dataclass
class ScenarioStructureBspBlock:
    structure_bsp: Optional[CachedTag] = None
    flags: int = 0
    default_sky: int = NONE_INDEX


@tag_type
@dataclass
class Scenario:
    GROUP_TAG = "scnr"

    map_type: int = 0
    structure_bsps: List[ScenarioStructureBspBlock] = field(default_factory=list)
    lightmap: Optional[CachedTag] = None
