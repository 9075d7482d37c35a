"""Builds the object header (scenery) of a promoted instance."""

from ..tags.game_object import MultiplayerObjectBlock, Scenery
from ..utils.math_helpers import enclosing_radius


def compute_render_model_enclosing_radius(render_model, scale=2.0):
    """Bounding radius from the render model's single compression entry.

    radius = scale * max(extent x, extent y, extent z)
    """
    return enclosing_radius(render_model.geometry.compression[0], scale)


class ObjectBuilder:
    """Creates object header definitions from an ObjectConfig."""

    def __init__(self, object_config):
        self.config = object_config

    def build(self, bounding_radius):
        """Build a Scenery definition; its model reference is filled in later."""
        return Scenery(
            object_type=self.config.object_type,
            bounding_radius=bounding_radius,
            acceleration_scale=self.config.acceleration_scale,
            sweetener_size=self.config.sweetener_size,
            multiplayer_object=[MultiplayerObjectBlock(
                spawn_time=self.config.spawn_time,
                abandon_time=self.config.abandon_time,
            )],
            scenery_flags=self.config.scenery_flags,
        )
