"""Resource buffer storage for a GameCache.

Large geometry/collision payloads live outside the tag records. A tag holds a
TagResourceReference (an index into this table); the payload is a resource
definition record encoded with the cache codec and zlib-compressed.
"""

import logging
import zlib
from dataclasses import dataclass

from .tag_codec import tag_type

_log = logging.getLogger("tag_resources")


@tag_type
@dataclass
class TagResourceReference:
    """Handle to a resource owned by a ResourceCache (-1 = no resource)."""

    index: int = -1

    @property
    def is_valid(self):
        return self.index >= 0


class ResourceCache:
    """Table of compressed resource payloads."""

    def __init__(self, codec):
        self.codec = codec
        self.resources = []  # list of compressed bytes

    def __len__(self):
        return len(self.resources)

    def _expand(self, reference, expected_type):
        payload = zlib.decompress(self.resources[reference.index])
        definition = self.codec.decode(payload)
        if not isinstance(definition, expected_type):
            raise ValueError(
                f"Resource {reference.index} is {type(definition).__name__}, "
                f"expected {expected_type.__name__}"
            )
        return definition

    def _create(self, definition):
        payload = self.codec.encode(definition)
        self.resources.append(zlib.compress(payload, 9))
        reference = TagResourceReference(index=len(self.resources) - 1)
        _log.debug("Created %s resource %d (%d bytes raw)",
                   type(definition).__name__, reference.index, len(payload))
        return reference

    def get_render_geometry_api_resource_definition(self, reference):
        from ..tags.render_geometry import RenderGeometryApiResourceDefinition
        return self._expand(reference, RenderGeometryApiResourceDefinition)

    def get_structure_bsp_tag_resources(self, reference):
        from ..tags.structure_bsp import StructureBspTagResources
        return self._expand(reference, StructureBspTagResources)

    def create_render_geometry_api_resource(self, definition):
        return self._create(definition)

    def create_structure_bsp_tag_resources(self, definition):
        return self._create(definition)
