"""Builds the collision model of a promoted instanced geometry instance.

Instances without physics get a collision model with no regions (the model
then synthesises a default collision region). Otherwise the output has one
"default" region/permutation holding:

    - the instance's bsp physics blocks, retargeted at the new model tag
    - the instanced geometry's mopp codes, copied verbatim
    - a copy of the collision geometry whose surface material indices are
      renumbered into the model's local collision material table
"""

import copy
import logging

from ..tags.collision_model import CollisionModel
from ..tags.common import NONE_INDEX, get_block
from ..tags.structure_bsp import NULL_SHAPE_KEY
from .index_remapper import IndexRemapper

_log = logging.getLogger("promote_collision_model")


class CollisionModelBuilder:
    """Creates CollisionModel definitions from one structure bsp's instances.

    Args:
        dest_cache: GameCache the collision model will live in
        bsp_resources: source StructureBspTagResources (collision graphs, mopps)
    """

    def __init__(self, dest_cache, bsp_resources):
        self.dest_cache = dest_cache
        self.bsp_resources = bsp_resources

    def build(self, instance, model_tag, material_mapping=None):
        """Build a CollisionModel for ``instance``.

        Args:
            instance: source InstancedGeometryInstance (not modified)
            model_tag: pre-allocated model tag the physics shapes will point at
            material_mapping: IndexRemapper collecting old -> local collision
                material indices; the model builder reads it afterwards

        Returns:
            CollisionModel
        """
        if material_mapping is None:
            material_mapping = IndexRemapper()

        collision_model = CollisionModel()
        collision_model.regions = []

        if not instance.bsp_physics:
            return collision_model

        default_name = self.dest_cache.string_table.get_string_id("default")
        definition = get_block(self.bsp_resources.instanced_geometry, instance.mesh_index,
                               "instanced geometry")

        permutation = CollisionModel.Permutation(name=default_name)
        collision_model.regions = [CollisionModel.Region(
            name=default_name,
            permutations=[permutation],
        )]

        for bsp_physics in instance.bsp_physics:
            physics = copy.deepcopy(bsp_physics)
            shape = physics.geometry_shape
            shape.model = model_tag
            shape.bsp_index = NONE_INDEX
            shape.collision_geometry_shape_key = NULL_SHAPE_KEY
            shape.collision_geometry_shape_type = 0
            permutation.bsp_physics.append(physics)

        for mopp in definition.collision_mopp_codes:
            permutation.bsp_mopp_codes.append(copy.deepcopy(mopp))

        geometry = copy.deepcopy(definition.collision_info)
        for surface in geometry.surfaces:
            if surface.material_index == NONE_INDEX:
                continue
            surface.material_index, _ = material_mapping.remap(surface.material_index)

        permutation.bsps.append(CollisionModel.Bsp(node_index=0, geometry=geometry))

        _log.debug("Collision model: %d physics block(s), %d mopp code(s), %d surface(s), "
                   "%d collision material(s)", len(permutation.bsp_physics),
                   len(permutation.bsp_mopp_codes), len(geometry.surfaces), len(material_mapping))
        return collision_model
