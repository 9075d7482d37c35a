import copy
import io
import unittest

from instance_promoter.conversion_profiles import get_profile
from instance_promoter.geometry.instanced_geometry_converter import (
    InstancedGeometryToObjectConverter, sanitize_instance_name,
)
from instance_promoter.geometry.tag_references import TagReferenceRebinder
from instance_promoter.tag_format.string_table import StringId
from instance_promoter.tag_format.tag_cache import GameCache
from instance_promoter.tags.collision_model import CollisionModel
from instance_promoter.tags.game_object import Scenery
from instance_promoter.tags.model import Model
from instance_promoter.tags.render_geometry import RenderMaterial
from instance_promoter.tags.render_model import RenderModel

from promoter_fixtures import ROCK_TAG_NAME, SHADER_TAG_NAME, ShaderDefinition, build_source_cache


class TestSanitizeInstanceName(unittest.TestCase):
    def test_strips_everything_outside_word_characters(self) -> None:
        self.assertEqual(sanitize_instance_name("Rock 01!"), "Rock01")
        self.assertEqual(sanitize_instance_name("crate_a"), "crate_a")
        self.assertEqual(sanitize_instance_name("a-b.c/d\\e"), "abcde")


class ConverterTestCase(unittest.TestCase):
    reopen = False

    def setUp(self) -> None:
        self.source, self.source_stream, self.scenario = build_source_cache(reopen=self.reopen)
        self.dest = GameCache()
        self.dest_stream = io.BytesIO()
        self.converter = self.make_converter()

    def make_converter(self, profile=None):
        return InstancedGeometryToObjectConverter(
            self.source, self.source_stream, self.dest, self.dest_stream,
            self.scenario, 0, profile=profile)

    def read(self, group_type, name):
        tag = self.dest.try_get_tag(group_type, name)
        self.assertIsNotNone(tag, f"missing {group_type.GROUP_TAG} {name}")
        return self.dest.deserialize(self.dest_stream, tag)


class TestConvertInstance(ConverterTestCase):
    def test_tag_name_is_derived_from_bsp_folder_index_and_name(self) -> None:
        self.assertEqual(self.converter.get_tag_name(0), ROCK_TAG_NAME)
        self.assertEqual(self.converter.get_tag_name(1),
                         "objects\\levels\\test\\rock_garden\\instanced\\00_crate_a")
        self.assertEqual(self.converter.get_tag_name(0), self.converter.get_tag_name(0))

    def test_creates_four_linked_tags(self) -> None:
        scen_tag = self.converter.convert_instance(0)

        self.assertEqual(scen_tag.name, ROCK_TAG_NAME)
        self.assertEqual(scen_tag.group, "scen")
        self.assertEqual(sorted(t.group for t in self.dest.tag_cache), ["coll", "hlmt", "mode", "scen"])

        scenery = self.dest.deserialize(self.dest_stream, scen_tag)
        model_tag = self.dest.try_get_tag(Model, ROCK_TAG_NAME)
        self.assertIs(scenery.model, model_tag)
        self.assertEqual(scenery.bounding_radius, 20.0)

        model = self.dest.deserialize(self.dest_stream, model_tag)
        self.assertIs(model.render_model, self.dest.try_get_tag(RenderModel, ROCK_TAG_NAME))
        self.assertIs(model.collision_model, self.dest.try_get_tag(CollisionModel, ROCK_TAG_NAME))

        collision_model = self.read(CollisionModel, ROCK_TAG_NAME)
        shape = collision_model.regions[0].permutations[0].bsp_physics[0].geometry_shape
        self.assertIs(shape.model, model_tag)

    def test_allocation_and_persistence_order(self) -> None:
        self.converter.convert_instance(0)
        tags = list(self.dest.tag_cache)

        self.assertEqual([t.group for t in tags], ["scen", "coll", "mode", "hlmt"])
        by_offset = sorted(tags, key=lambda t: t.offset)
        self.assertEqual([t.group for t in by_offset], ["coll", "hlmt", "mode", "scen"])

    def test_idempotent_second_call_writes_nothing(self) -> None:
        first = self.converter.convert_instance(0)
        tag_count = len(self.dest.tag_cache)
        stream_size = len(self.dest_stream.getvalue())
        resource_count = len(self.dest.resource_cache)

        second = self.converter.convert_instance(0)

        self.assertIs(first, second)
        self.assertEqual(len(self.dest.tag_cache), tag_count)
        self.assertEqual(len(self.dest_stream.getvalue()), stream_size)
        self.assertEqual(len(self.dest.resource_cache), resource_count)

    def test_idempotent_across_converters(self) -> None:
        first = self.converter.convert_instance(0)
        second = self.make_converter().convert_instance(0)
        self.assertIs(first, second)

    def test_render_model_has_local_tables(self) -> None:
        self.converter.convert_instance(0)
        render_model = self.read(RenderModel, ROCK_TAG_NAME)

        self.assertEqual([m.imported_material_index for m in render_model.materials], [5, 2])
        parts = render_model.geometry.meshes[0].parts
        self.assertEqual([p.material_index for p in parts], [0, 1, 0])
        self.assertEqual([p.transparent_sorting_index for p in parts], [-1, 0, 0])
        self.assertEqual(len(render_model.geometry.bounding_spheres), 1)

    def test_model_materials_match_collision_surfaces(self) -> None:
        self.converter.convert_instance(0)
        model = self.read(Model, ROCK_TAG_NAME)
        collision_model = self.read(CollisionModel, ROCK_TAG_NAME)

        surfaces = collision_model.regions[0].permutations[0].bsps[0].geometry.surfaces
        self.assertEqual([s.material_index for s in surfaces], [0, -1, 1, 0, 2])
        self.assertEqual([m.global_material_index for m in model.materials], [104, 102, 105])
        self.assertEqual(model.collision_regions[0].permutations[0].collision_permutation_index, 0)

    def test_instance_without_physics_gets_default_collision(self) -> None:
        name = "objects\\levels\\test\\rock_garden\\instanced\\00_crate_a"
        self.converter.convert_instance(1)

        collision_model = self.read(CollisionModel, name)
        model = self.read(Model, name)
        self.assertEqual(collision_model.regions, [])
        self.assertEqual(len(model.collision_regions), 1)
        permutation = model.collision_regions[0].permutations[0]
        self.assertEqual(permutation.collision_permutation_index, -1)
        self.assertEqual(permutation.physics_permutation_index, 0)
        self.assertEqual(model.materials, [])

    def test_unindexed_mesh_keeps_zero_index_slots(self) -> None:
        self.converter.convert_instance(2)
        render_model = self.read(RenderModel, "objects\\levels\\test\\rock_garden\\instanced\\00_pillar")
        self.assertEqual(render_model.geometry.meshes[0].index_buffer_indices, [0, 0])
        resource = self.dest.resource_cache.get_render_geometry_api_resource_definition(
            render_model.geometry.resource)
        self.assertEqual(resource.index_buffers, [])
        self.assertEqual(len(resource.vertex_buffers), 1)

    def test_mapping_state_resets_between_instances(self) -> None:
        self.converter.convert_instance(0)
        self.assertEqual(len(self.converter.collision_material_mapping), 3)
        self.converter.convert_instance(1)
        self.assertEqual(len(self.converter.collision_material_mapping), 0)

    def test_source_bsp_is_not_modified(self) -> None:
        bsp_before = copy.deepcopy(self.converter.structure_bsp)
        geometry_before = copy.deepcopy(self.converter.lightmap_bsp_data.geometry)
        resources_before = copy.deepcopy(self.converter.bsp_resources)

        for i in range(self.converter.instance_count):
            self.converter.convert_instance(i)

        self.assertEqual(self.converter.structure_bsp, bsp_before)
        self.assertEqual(self.converter.lightmap_bsp_data.geometry, geometry_before)
        self.assertEqual(self.converter.bsp_resources, resources_before)

    def test_out_of_range_index_raises(self) -> None:
        with self.assertRaises(IndexError):
            self.converter.convert_instance(99)

    def test_negative_index_raises_without_writing(self) -> None:
        with self.assertRaises(IndexError):
            self.converter.convert_instance(-1)
        self.assertEqual(len(self.dest.tag_cache), 0)
        self.assertEqual(self.dest_stream.getvalue(), b"")


class TestConvertByName(ConverterTestCase):
    def test_convert_by_name(self) -> None:
        tag = self.converter.convert("Rock 01!")
        self.assertEqual(tag.name, ROCK_TAG_NAME)

    def test_convert_by_name_id(self) -> None:
        name_id = self.source.string_table.find_string_id("crate_a")
        tag = self.converter.convert_instance(name_id)
        self.assertTrue(tag.name.endswith("00_crate_a"))

    def test_unknown_name_returns_none_without_writing(self) -> None:
        self.assertIsNone(self.converter.convert("does not exist"))
        self.assertEqual(len(self.dest.tag_cache), 0)
        self.assertEqual(self.dest_stream.getvalue(), b"")

    def test_name_id_without_instance_returns_none(self) -> None:
        orphan = self.source.string_table.get_string_id("orphan")
        self.assertIsInstance(orphan, StringId)
        self.assertIsNone(self.converter.convert_instance_by_name_id(orphan))
        self.assertIsNone(self.converter.convert_instance(orphan))


class TestConvertFromReopenedCache(ConverterTestCase):
    reopen = True

    def test_converts_after_source_round_trip(self) -> None:
        tag = self.converter.convert("Rock 01!")
        scenery = self.dest.deserialize(self.dest_stream, tag)
        self.assertEqual(scenery.bounding_radius, 20.0)

    def test_in_place_conversion(self) -> None:
        converter = InstancedGeometryToObjectConverter(
            self.source, self.source_stream, self.source, self.source_stream, self.scenario, 0)
        tag = converter.convert_instance(0)

        self.assertIs(self.source.try_get_tag(Scenery, ROCK_TAG_NAME), tag)
        self.source.save_index(self.source_stream)
        reopened = GameCache.open(self.source_stream)
        scenery = reopened.deserialize(self.source_stream, reopened.try_get_tag(Scenery, ROCK_TAG_NAME))
        self.assertEqual(scenery.model.name, ROCK_TAG_NAME)
        self.assertEqual(scenery.model.group, "hlmt")
        render_model = reopened.deserialize(
            self.source_stream, reopened.try_get_tag(RenderModel, ROCK_TAG_NAME))
        self.assertEqual(render_model.materials[0].render_method.name, SHADER_TAG_NAME)


class TestSourceTagReferences(ConverterTestCase):
    def test_missing_reference_is_cleared_in_another_cache(self) -> None:
        with self.assertLogs("promote_references", "WARNING"):
            self.converter.convert_instance(0)

        render_model = self.read(RenderModel, ROCK_TAG_NAME)
        self.assertEqual([m.render_method for m in render_model.materials], [None, None])

    def test_reference_resolves_by_group_and_name(self) -> None:
        dest_shader = self.dest.tag_cache.allocate_tag(ShaderDefinition, SHADER_TAG_NAME)
        self.converter.convert_instance(0)

        render_model = self.read(RenderModel, ROCK_TAG_NAME)
        self.assertEqual(len(render_model.materials), 2)
        for material in render_model.materials:
            self.assertIs(material.render_method, dest_shader)

    def test_dest_handles_are_left_alone(self) -> None:
        self.dest.tag_cache.allocate_tag(ShaderDefinition, SHADER_TAG_NAME)
        self.converter.convert_instance(0)

        model_tag = self.dest.try_get_tag(Model, ROCK_TAG_NAME)
        collision_model = self.read(CollisionModel, ROCK_TAG_NAME)
        shape = collision_model.regions[0].permutations[0].bsp_physics[0].geometry_shape
        self.assertIs(shape.model, model_tag)

    def test_rebinder_walks_nested_records(self) -> None:
        source_shader = self.source.tag_cache.find_tag(ShaderDefinition.GROUP_TAG, SHADER_TAG_NAME)
        dest_shader = self.dest.tag_cache.allocate_tag(ShaderDefinition, SHADER_TAG_NAME)
        materials = [RenderMaterial(render_method=source_shader), RenderMaterial()]

        rebinder = TagReferenceRebinder(self.source, self.dest)
        rebinder.rebind(materials)

        self.assertIs(materials[0].render_method, dest_shader)
        self.assertIsNone(materials[1].render_method)
        self.assertEqual(rebinder.unresolved, [])


class TestLegacyCollisionProfile(ConverterTestCase):
    def test_collapsed_collision_materials(self) -> None:
        converter = self.make_converter(get_profile("legacy_collision_materials"))
        converter.convert_instance(0)

        collision_model = self.read(CollisionModel, ROCK_TAG_NAME)
        model = self.read(Model, ROCK_TAG_NAME)
        surfaces = collision_model.regions[0].permutations[0].bsps[0].geometry.surfaces
        self.assertEqual([s.material_index for s in surfaces], [0, -1, 0, 0, 0])
        self.assertEqual(len(model.materials), 3)
        self.assertEqual(model.materials[0].global_material_index, 105)


if __name__ == "__main__":
    unittest.main()
