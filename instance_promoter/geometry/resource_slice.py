"""Cut one mesh's buffers out of a shared render geometry resource.

Lightmap bsp data packs the vertex/index buffers of every mesh in the bsp
into a single resource. A promoted render model owns exactly one mesh, so it
gets a new resource containing only that mesh's buffers, with the mesh's
slot indices rewritten to point into it.
"""

import copy
import logging

from ..tags.common import NONE_INDEX
from ..tags.render_geometry import MeshFlags, RenderGeometryApiResourceDefinition

_log = logging.getLogger("promote_resources")


def get_single_mesh_resource_definition(mesh):
    """Build a resource definition holding only ``mesh``'s buffers.

    ``mesh`` must already have its runtime buffers attached
    (RenderGeometry.set_resource_buffers) and is modified in place: each
    vertex/index slot is renumbered 0..k-1 in slot order, empty slots become
    NONE_INDEX. Pass a copy when the source mesh must stay intact.

    Unindexed meshes always end with index slots 0 and 1 set to 0 even though
    no index buffer backs them; the runtime loader expects exactly that.

    Returns:
        RenderGeometryApiResourceDefinition
    """
    result = RenderGeometryApiResourceDefinition()

    for i, vertex_buffer in enumerate(mesh.resource_vertex_buffers):
        if vertex_buffer is not None:
            result.vertex_buffers.append(copy.deepcopy(vertex_buffer))
            mesh.vertex_buffer_indices[i] = len(result.vertex_buffers) - 1
        else:
            mesh.vertex_buffer_indices[i] = NONE_INDEX

    for i, index_buffer in enumerate(mesh.resource_index_buffers):
        if index_buffer is not None:
            result.index_buffers.append(copy.deepcopy(index_buffer))
            mesh.index_buffer_indices[i] = len(result.index_buffers) - 1
        else:
            mesh.index_buffer_indices[i] = NONE_INDEX

    if mesh.flags & MeshFlags.MESH_IS_UNINDEXED:
        mesh.index_buffer_indices[0] = 0
        mesh.index_buffer_indices[1] = 0

    _log.debug("Sliced mesh resource: %d vertex buffer(s), %d index buffer(s)",
               len(result.vertex_buffers), len(result.index_buffers))
    return result
