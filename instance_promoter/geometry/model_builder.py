"""Builds the model tag that ties a promoted object's render and collision together."""

import copy
import logging

from ..tag_format.string_table import StringId
from ..tags.common import NONE_INDEX, get_block
from ..tags.model import Model
from ..utils.math_helpers import combine_inverse_transform

_log = logging.getLogger("promote_model")


class ModelBuilder:
    """Creates Model definitions from freshly built render/collision models.

    Args:
        dest_cache: GameCache the model will live in
        structure_bsp: source ScenarioStructureBsp (global collision materials)
        model_config: ModelConfig from the active ConversionProfile
    """

    def __init__(self, dest_cache, structure_bsp, model_config):
        self.dest_cache = dest_cache
        self.structure_bsp = structure_bsp
        self.config = model_config

    def build(self, render_model, collision_model, collision_material_mapping):
        """Build a Model.

        The render/collision tag references are left empty; the converter
        fills them in once all four tags exist.

        Args:
            render_model: RenderModel built for the same instance
            collision_model: CollisionModel built for the same instance
            collision_material_mapping: remapper filled by CollisionModelBuilder
        """
        model = Model()
        model.reduce_to_l1_super_low = self.config.reduce_to_l1_super_low
        model.reduce_to_l2_low = self.config.reduce_to_l2_low

        model.collision_regions = self._build_collision_regions(collision_model)
        model.materials = self._build_materials(collision_material_mapping)
        model.nodes = [self._build_node(node) for node in render_model.nodes]

        _log.debug("Model: %d node(s), %d collision region(s), %d material(s)",
                   len(model.nodes), len(model.collision_regions), len(model.materials))
        return model

    def _build_collision_regions(self, collision_model):
        if collision_model.regions:
            regions = []
            for region_index, collision_region in enumerate(collision_model.regions):
                region = Model.CollisionRegion(
                    name=collision_region.name,
                    collision_region_index=region_index,
                    physics_region_index=region_index,
                )
                for permutation_index, permutation in enumerate(collision_region.permutations):
                    region.permutations.append(Model.CollisionPermutation(
                        name=permutation.name,
                        collision_permutation_index=permutation_index,
                        physics_permutation_index=permutation_index,
                    ))
                regions.append(region)
            return regions

        # No collision geometry: one default region with physics only
        default_name = self.dest_cache.string_table.get_string_id("default")
        return [Model.CollisionRegion(
            name=default_name,
            collision_region_index=NONE_INDEX,
            physics_region_index=0,
            permutations=[Model.CollisionPermutation(
                name=default_name,
                collision_permutation_index=NONE_INDEX,
                physics_permutation_index=0,
            )],
        )]

    def _build_materials(self, mapping):
        materials = [Model.Material() for _ in range(len(mapping))]
        for old_index, new_index in mapping.items():
            bsp_material = get_block(self.structure_bsp.collision_materials, old_index,
                                     "collision material")
            materials[new_index] = Model.Material(
                name=StringId.INVALID,
                material_type=self.config.material_type,
                damage_section_index=NONE_INDEX,
                runtime_damager_material_index=NONE_INDEX,
                runtime_collision_material_index=0,
                material_name=StringId.INVALID,
                global_material_index=bsp_material.runtime_global_material_index,
            )
        return materials

    def _build_node(self, node):
        return Model.Node(
            name=node.name,
            parent_node=node.parent_node,
            first_child_node=node.first_child_node,
            next_sibling_node=node.next_sibling_node,
            import_node_index=NONE_INDEX,
            default_translation=copy.copy(node.default_translation),
            default_rotation=copy.copy(node.default_rotation),
            default_scale=node.default_scale,
            inverse=combine_inverse_transform(
                node.inverse_forward, node.inverse_left, node.inverse_up, node.inverse_position),
            distance_from_parent=node.distance_from_parent,
        )
