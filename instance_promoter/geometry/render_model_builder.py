"""Builds the render model of a promoted instanced geometry instance.

Output layout:
    - one synthetic root node named "default" with an identity transform
    - one "default" region with one "default" permutation -> mesh 0
    - a copy of the instance's mesh and its compression entry (local index 0)
    - a new geometry resource holding only that mesh's buffers
    - local material and bounding sphere tables, with mesh parts renumbered
      to index them instead of the bsp-wide tables
"""

import copy
import logging

from ..tags.common import RealPoint3d, RealQuaternion, RealVector3d, NONE_INDEX, get_block
from ..tags.render_model import RenderModel
from .index_remapper import IndexRemapper, remap_attribute
from .resource_slice import get_single_mesh_resource_definition

_log = logging.getLogger("promote_render_model")


def _identity_rotation():
    return RealQuaternion(0.0, 0.0, 0.0, -1.0)


class RenderModelBuilder:
    """Creates RenderModel definitions from one structure bsp's instanced geometry.

    Args:
        dest_cache: GameCache the render model will live in
        structure_bsp: source ScenarioStructureBsp (global material table)
        lightmap_geometry: source RenderGeometry with resource buffers attached
        bsp_resources: source StructureBspTagResources (instanced geometry defs)
    """

    def __init__(self, dest_cache, structure_bsp, lightmap_geometry, bsp_resources):
        self.dest_cache = dest_cache
        self.structure_bsp = structure_bsp
        self.lightmap_geometry = lightmap_geometry
        self.bsp_resources = bsp_resources

        # Filled by build(); kept for inspection
        self.material_mapping = IndexRemapper()
        self.bounding_sphere_mapping = IndexRemapper()

    def build(self, instanced_geometry_index):
        """Build a RenderModel for bsp_resources.instanced_geometry[index]."""
        default_name = self.dest_cache.string_table.get_string_id("default")
        definition = get_block(self.bsp_resources.instanced_geometry, instanced_geometry_index,
                               "instanced geometry")

        render_model = RenderModel()
        render_model.instance_starting_mesh_index = NONE_INDEX

        # Mesh + its buffers
        mesh = copy.deepcopy(get_block(
            self.lightmap_geometry.meshes, definition.mesh_index, "mesh"))
        resource_definition = get_single_mesh_resource_definition(mesh)
        render_model.geometry.resource = \
            self.dest_cache.resource_cache.create_render_geometry_api_resource(resource_definition)
        render_model.geometry.meshes = [mesh]

        compression = copy.deepcopy(get_block(
            self.lightmap_geometry.compression, definition.compression_index, "compression"))
        render_model.geometry.compression = [compression]
        render_model.compression = render_model.geometry.compression

        render_model.nodes = [RenderModel.Node(
            name=default_name,
            parent_node=NONE_INDEX,
            first_child_node=NONE_INDEX,
            next_sibling_node=NONE_INDEX,
            default_translation=RealPoint3d(0.0, 0.0, 0.0),
            default_rotation=_identity_rotation(),
            default_scale=1.0,
            inverse_forward=RealVector3d(1.0, 0.0, 0.0),
            inverse_left=RealVector3d(0.0, 1.0, 0.0),
            inverse_up=RealVector3d(0.0, 0.0, 1.0),
            inverse_position=RealPoint3d(0.0, 0.0, 0.0),
        )]

        render_model.regions = [RenderModel.Region(
            name=default_name,
            node_map_offset=0,
            node_map_size=1,
            permutations=[RenderModel.Permutation(
                name=default_name,
                mesh_index=0,
                mesh_count=1,
            )],
        )]

        render_model.runtime_node_orientations = [RenderModel.RuntimeNodeOrientation(
            rotation=_identity_rotation(),
            translation=RealPoint3d(0.0, 0.0, 0.0),
            scale=1.0,
        )]

        # Parts index the bsp-wide tables; give them local ones
        parts = [part for m in render_model.geometry.meshes for part in m.parts]

        render_model.materials, self.material_mapping = remap_attribute(
            parts, "material_index", self.structure_bsp.materials)

        render_model.geometry.bounding_spheres, self.bounding_sphere_mapping = remap_attribute(
            parts, "transparent_sorting_index", self.lightmap_geometry.bounding_spheres)

        _log.debug("Render model for instanced geometry %d: %d part(s), %d material(s), "
                   "%d bounding sphere(s)", instanced_geometry_index, len(parts),
                   len(render_model.materials), len(render_model.geometry.bounding_spheres))
        return render_model
