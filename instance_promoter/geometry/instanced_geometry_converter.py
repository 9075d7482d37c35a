"""Promote instanced geometry instances of a structure bsp to standalone objects.

An instanced geometry instance only exists inside its bsp: its mesh lives in
the bsp's lightmap geometry, its parts index the bsp-wide material tables and
its physics addresses the bsp by index. Promotion rebuilds one instance as
four tags in the destination cache:

    scen   object header            -> hlmt
    hlmt   model                    -> mode, coll
    mode   render model (1 mesh, local materials / bounding spheres)
    coll   collision model (physics retargeted at the hlmt tag)

Pipeline (convert_instance):
    1. Derive the tag name from the bsp folder, bsp index and instance name
    2. If a scenery tag with that name exists, return it (nothing is written)
    3. Allocate all four tags up front so the builders can reference them
    4. Build render model, collision model, model, object header
    5. Point hlmt at mode/coll and scen at hlmt; when writing to another
       cache, rebind copied source tag references by (group, name)
    6. Serialize coll, hlmt, mode, scen

The converter must be the only writer of the destination cache while it runs;
the existence check and the allocation are not atomic. Tags serialized before
a failure are not rolled back.
"""

import logging
import re

from ..conversion_profiles import get_default_profile
from ..tag_format.string_table import StringId
from ..tags.collision_model import CollisionModel
from ..tags.common import get_block
from ..tags.game_object import Scenery
from ..tags.model import Model
from ..tags.render_model import RenderModel
from ..tags.structure_bsp import ScenarioLightmap, ScenarioLightmapBspData, ScenarioStructureBsp
from .collision_model_builder import CollisionModelBuilder
from .index_remapper import CollapsingIndexRemapper, IndexRemapper
from .model_builder import ModelBuilder
from .object_builder import ObjectBuilder, compute_render_model_enclosing_radius
from .render_model_builder import RenderModelBuilder
from .tag_references import TagReferenceRebinder

_log = logging.getLogger("promote")

_INVALID_NAME_CHARS = re.compile(r"[^a-zA-Z0-9_]")
_PATH_SEPARATORS = re.compile(r"[\\/]")


def sanitize_instance_name(name):
    """Strip every character outside [A-Za-z0-9_] ("Rock 01!" -> "Rock01")."""
    return _INVALID_NAME_CHARS.sub("", name)


class InstancedGeometryToObjectConverter:
    """Converts instances of one structure bsp into object tags.

    The source bsp, its lightmap data and both resources are read once here
    and never modified; every output is built from copies.

    Args:
        source_cache: GameCache holding the scenario and its bsp
        source_stream: stream backing source_cache
        dest_cache: GameCache receiving the new tags (may be source_cache)
        dest_stream: stream backing dest_cache
        scenario: deserialized Scenario definition
        structure_bsp_index: index into scenario.structure_bsps
        profile: ConversionProfile (default profile if omitted)
    """

    def __init__(self, source_cache, source_stream, dest_cache, dest_stream,
                 scenario, structure_bsp_index, profile=None):
        self.source_cache = source_cache
        self.source_stream = source_stream
        self.dest_cache = dest_cache
        self.dest_stream = dest_stream
        self.scenario = scenario
        self.structure_bsp_index = structure_bsp_index
        self.profile = profile or get_default_profile()

        bsp_tag = get_block(scenario.structure_bsps, structure_bsp_index,
                            "structure bsp").structure_bsp
        self.structure_bsp_tag = bsp_tag
        self.structure_bsp = source_cache.deserialize(source_stream, bsp_tag)
        _expect(self.structure_bsp, ScenarioStructureBsp, bsp_tag)

        lightmap = source_cache.deserialize(source_stream, scenario.lightmap)
        _expect(lightmap, ScenarioLightmap, scenario.lightmap)
        lbsp_tag = get_block(lightmap.lightmap_data_references, structure_bsp_index,
                             "lightmap bsp data")
        self.lightmap_bsp_data = source_cache.deserialize(source_stream, lbsp_tag)
        _expect(self.lightmap_bsp_data, ScenarioLightmapBspData, lbsp_tag)

        resources = source_cache.resource_cache
        geometry = self.lightmap_bsp_data.geometry
        geometry.set_resource_buffers(
            resources.get_render_geometry_api_resource_definition(geometry.resource))
        self.bsp_resources = resources.get_structure_bsp_tag_resources(
            self.structure_bsp.collision_bsp_resource)

        self.render_model_builder = RenderModelBuilder(
            dest_cache, self.structure_bsp, geometry, self.bsp_resources)
        self.collision_model_builder = CollisionModelBuilder(dest_cache, self.bsp_resources)
        self.model_builder = ModelBuilder(dest_cache, self.structure_bsp, self.profile.model)
        self.object_builder = ObjectBuilder(self.profile.objects)

        self.collision_material_mapping = self._new_collision_material_mapping()

        _log.debug("Loaded %s: %d instance(s), %d mesh(es)", bsp_tag.name,
                   len(self.structure_bsp.instanced_geometry_instances), len(geometry.meshes))

    @property
    def instance_count(self):
        return len(self.structure_bsp.instanced_geometry_instances)

    def get_instance_name(self, instance_index):
        instance = get_block(self.structure_bsp.instanced_geometry_instances, instance_index,
                             "instance")
        return self.source_cache.string_table.get_string(instance.name)

    @property
    def scenario_folder(self):
        """Folder parts of the bsp tag name ("levels\\a\\b\\b_bsp" -> levels, a, b)."""
        return [p for p in _PATH_SEPARATORS.split(self.structure_bsp_tag.name)[:-1] if p]

    def get_tag_name(self, instance_index):
        """Deterministic destination tag name for an instance."""
        naming = self.profile.naming
        cleaned = sanitize_instance_name(self.get_instance_name(instance_index))
        leaf = f"{self.structure_bsp_index:0{naming.bsp_index_width}d}_{cleaned}"
        return naming.separator.join(
            [naming.root_folder, *self.scenario_folder, naming.folder_name, leaf])

    # ------------------------------------------------------------------
    # Conversion
    # ------------------------------------------------------------------

    def convert(self, instance_name):
        """Convert the instance with the given name; None if there is none."""
        string_id = self.source_cache.string_table.find_string_id(instance_name)
        if not string_id.is_valid:
            _log.warning("No instance named %r in %s", instance_name, self.structure_bsp_tag.name)
            return None
        return self.convert_instance(string_id)

    def convert_instance(self, instance):
        """Convert an instance given either its name StringId or its index.

        Returns:
            the scenery CachedTag, or None when a StringId matches no instance
        """
        if isinstance(instance, StringId):
            return self.convert_instance_by_name_id(instance)
        return self._convert_instance_index(instance)

    def convert_instance_by_name_id(self, name_id):
        for i, instance in enumerate(self.structure_bsp.instanced_geometry_instances):
            if instance.name == name_id:
                return self._convert_instance_index(i)

        _log.warning("No instance with name id %r in %s", name_id, self.structure_bsp_tag.name)
        return None

    def _new_collision_material_mapping(self):
        if self.profile.collision.collapse_collision_materials:
            return CollapsingIndexRemapper()
        return IndexRemapper()

    def _convert_instance_index(self, instance_index):
        instance = get_block(self.structure_bsp.instanced_geometry_instances, instance_index,
                             "instance")
        tag_name = self.get_tag_name(instance_index)

        scen_tag = self.dest_cache.try_get_tag(Scenery, tag_name)
        if scen_tag is not None:
            _log.debug("%s already converted", tag_name)
            return scen_tag

        self.collision_material_mapping = self._new_collision_material_mapping()

        tag_cache = self.dest_cache.tag_cache
        scen_tag = tag_cache.allocate_tag(Scenery, tag_name)
        collision_model_tag = tag_cache.allocate_tag(CollisionModel, tag_name)
        render_model_tag = tag_cache.allocate_tag(RenderModel, tag_name)
        model_tag = tag_cache.allocate_tag(Model, tag_name)

        render_model = self.render_model_builder.build(instance.mesh_index)
        collision_model = self.collision_model_builder.build(
            instance, model_tag, self.collision_material_mapping)
        model = self.model_builder.build(
            render_model, collision_model, self.collision_material_mapping)
        game_object = self.object_builder.build(compute_render_model_enclosing_radius(
            render_model, self.profile.objects.bounding_radius_scale))

        model.collision_model = collision_model_tag
        model.render_model = render_model_tag
        game_object.model = model_tag

        if self.dest_cache is not self.source_cache:
            rebinder = TagReferenceRebinder(self.source_cache, self.dest_cache)
            rebinder.rebind(render_model)
            rebinder.rebind(collision_model)

        self.dest_cache.serialize(self.dest_stream, collision_model_tag, collision_model)
        self.dest_cache.serialize(self.dest_stream, model_tag, model)
        self.dest_cache.serialize(self.dest_stream, render_model_tag, render_model)
        self.dest_cache.serialize(self.dest_stream, scen_tag, game_object)

        _log.info("Converted instance %d -> %s (%d material(s), %d collision material(s), "
                  "radius %.3f)", instance_index, tag_name, len(render_model.materials),
                  len(model.materials), game_object.bounding_radius)
        return scen_tag


def _expect(definition, definition_type, tag):
    if not isinstance(definition, definition_type):
        raise ValueError(f"{tag!r} is a {type(definition).__name__}, "
                         f"expected {definition_type.__name__}")
