"""Synthetic source caches shared by the tests.

Builds a small scenario with one structure bsp in an in-memory stream:

    instance 0  "Rock 01!"   def 0 -> mesh 3, compression 1, one physics block,
                             surfaces using collision materials 4, -, 2, 4, 5
    instance 1  "crate_a"    def 1 -> mesh 0, compression 0, no physics
    instance 2  "pillar"     def 2 -> mesh 1 (unindexed, slots [0, 0]), compression 0, no physics
"""

import io

from instance_promoter import tags  # noqa: F401
from instance_promoter.tag_format.tag_cache import GameCache
from instance_promoter.tags.common import Bounds, RealPoint3d
from instance_promoter.tags.render_geometry import (
    BoundingSphere, IndexBufferDefinition, Mesh, MeshFlags, Part, RenderGeometry,
    RenderGeometryApiResourceDefinition, RenderGeometryCompression, RenderMaterial,
    VertexBufferDefinition,
)
from instance_promoter.tags.structure_bsp import (
    CollisionBspPhysicsDefinition, CollisionGeometry, CollisionGeometryShape,
    InstancedGeometryDefinition, InstancedGeometryInstance, MoppCode, Plane, Scenario,
    ScenarioLightmap, ScenarioLightmapBspData, ScenarioStructureBsp, ScenarioStructureBspBlock,
    StructureBspTagResources, StructureCollisionMaterial, Surface, Vertex,
)

BSP_TAG_NAME = "levels\\test\\rock_garden\\rock_garden"
SCENARIO_TAG_NAME = "levels\\test\\rock_garden\\rock_garden"
ROCK_TAG_NAME = "objects\\levels\\test\\rock_garden\\instanced\\00_Rock01"
SHADER_TAG_NAME = "levels\\test\\rock_garden\\shaders\\rock"

INSTANCE_NAMES = ["Rock 01!", "crate_a", "pillar"]


class ShaderDefinition:
    """Render method group; only ever referenced, never serialized."""

    GROUP_TAG = "rmsh"


def _vertex_buffer(i):
    return VertexBufferDefinition(count=3, format=i, vertex_size=4, data=bytes([i]) * 12)


def _index_buffer(i):
    return IndexBufferDefinition(format=1, data=bytes([0x10 + i]) * 6)


def make_meshes():
    rock = Mesh(
        parts=[
            Part(material_index=5, transparent_sorting_index=-1, index_count=3),
            Part(material_index=2, transparent_sorting_index=3, index_count=3),
            Part(material_index=5, transparent_sorting_index=3, index_count=3),
        ],
        vertex_buffer_indices=[4, -1, 2, -1, -1, -1, -1, -1],
        index_buffer_indices=[1, -1],
    )
    crate = Mesh(
        parts=[Part(material_index=0, index_count=6)],
        vertex_buffer_indices=[0, -1, -1, -1, -1, -1, -1, -1],
        index_buffer_indices=[0, -1],
    )
    pillar = Mesh(
        parts=[Part(material_index=1, transparent_sorting_index=0)],
        vertex_buffer_indices=[1, -1, -1, -1, -1, -1, -1, -1],
        index_buffer_indices=[0, 0],
        flags=MeshFlags.MESH_IS_UNINDEXED,
    )
    unused = Mesh(
        parts=[Part(material_index=7)],
        vertex_buffer_indices=[5, -1, -1, -1, -1, -1, -1, -1],
        index_buffer_indices=[2, -1],
    )
    return [crate, pillar, unused, rock]


def make_lightmap_geometry():
    return RenderGeometry(
        meshes=make_meshes(),
        compression=[
            RenderGeometryCompression(x=Bounds(0.0, 1.0), y=Bounds(0.0, 1.0), z=Bounds(0.0, 1.0)),
            RenderGeometryCompression(x=Bounds(-5.0, 5.0), y=Bounds(0.0, 4.0), z=Bounds(1.0, 7.0)),
        ],
        bounding_spheres=[
            BoundingSphere(position=RealPoint3d(float(i), 0.0, 0.0), radius=float(i))
            for i in range(5)
        ],
    )


def make_geometry_resource():
    return RenderGeometryApiResourceDefinition(
        vertex_buffers=[_vertex_buffer(i) for i in range(6)],
        index_buffers=[_index_buffer(i) for i in range(3)],
    )


def make_rock_collision():
    return CollisionGeometry(
        planes=[Plane((0.0, 0.0, 1.0, float(i))) for i in range(5)],
        surfaces=[
            Surface(plane_index=0, material_index=4),
            Surface(plane_index=1, material_index=-1),
            Surface(plane_index=2, material_index=2),
            Surface(plane_index=3, material_index=4),
            Surface(plane_index=4, material_index=5),
        ],
        vertices=[Vertex(point=RealPoint3d(1.0, 2.0, 3.0), first_edge=0)],
    )


def make_bsp_resources():
    return StructureBspTagResources(instanced_geometry=[
        InstancedGeometryDefinition(
            mesh_index=3, compression_index=1,
            collision_info=make_rock_collision(),
            collision_mopp_codes=[MoppCode(build_type=1, data=b"\x01\x02\x03")],
        ),
        InstancedGeometryDefinition(mesh_index=0, compression_index=0),
        InstancedGeometryDefinition(mesh_index=1, compression_index=0),
    ])


def make_rock_physics():
    return CollisionBspPhysicsDefinition(
        geometry_shape=CollisionGeometryShape(
            bsp_index=0,
            collision_geometry_shape_key=7,
            collision_geometry_shape_type=2,
        ),
        mopp_bv_tree_shape=b"\xAA\xBB",
    )


def build_source_cache(reopen=False):
    """Return (cache, stream, scenario) for the synthetic rock garden scenario."""
    cache = GameCache()
    stream = io.BytesIO()
    strings = cache.string_table
    resources = cache.resource_cache

    scenario_tag = cache.tag_cache.allocate_tag(Scenario, SCENARIO_TAG_NAME)
    bsp_tag = cache.tag_cache.allocate_tag(ScenarioStructureBsp, BSP_TAG_NAME)
    lightmap_tag = cache.tag_cache.allocate_tag(ScenarioLightmap, SCENARIO_TAG_NAME)
    lbsp_tag = cache.tag_cache.allocate_tag(ScenarioLightmapBspData, BSP_TAG_NAME)
    shader_tag = cache.tag_cache.allocate_tag(ShaderDefinition, SHADER_TAG_NAME)

    geometry = make_lightmap_geometry()
    geometry.resource = resources.create_render_geometry_api_resource(make_geometry_resource())

    bsp = ScenarioStructureBsp(
        materials=[
            RenderMaterial(render_method=shader_tag, imported_material_index=i) for i in range(8)
        ],
        collision_materials=[
            StructureCollisionMaterial(runtime_global_material_index=100 + i) for i in range(6)
        ],
        instanced_geometry_instances=[
            InstancedGeometryInstance(
                name=strings.get_string_id(INSTANCE_NAMES[0]),
                mesh_index=0,
                bsp_physics=[make_rock_physics()],
            ),
            InstancedGeometryInstance(name=strings.get_string_id(INSTANCE_NAMES[1]), mesh_index=1),
            InstancedGeometryInstance(name=strings.get_string_id(INSTANCE_NAMES[2]), mesh_index=2),
        ],
        collision_bsp_resource=resources.create_structure_bsp_tag_resources(make_bsp_resources()),
    )

    scenario = Scenario(
        structure_bsps=[ScenarioStructureBspBlock(structure_bsp=bsp_tag)],
        lightmap=lightmap_tag,
    )

    cache.serialize(stream, bsp_tag, bsp)
    cache.serialize(stream, lbsp_tag, ScenarioLightmapBspData(bsp_index=0, geometry=geometry))
    cache.serialize(stream, lightmap_tag, ScenarioLightmap(lightmap_data_references=[lbsp_tag]))
    cache.serialize(stream, scenario_tag, scenario)

    if reopen:
        cache.save_index(stream)
        cache = GameCache.open(stream)
        scenario = cache.deserialize(stream, cache.tag_cache.get_tag(scenario_tag.index))

    return cache, stream, scenario
