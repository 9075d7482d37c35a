"""Transform and bounds helpers (numpy)."""

import numpy as np

from ..tags.common import RealMatrix4x3


def _vec(v):
    if hasattr(v, "i"):
        return (v.i, v.j, v.k)
    return (v.x, v.y, v.z)


def combine_inverse_transform(forward, left, up, position):
    """Pack an inverse basis and inverse position into one 4x3 transform.

    Rows are forward, left, up, then the translation.
    """
    return RealMatrix4x3(values=tuple(
        float(c) for v in (forward, left, up, position) for c in _vec(v)))


def compression_extents(compression):
    """Per-axis lengths (x, y, z) of a compression entry's position bounds."""
    return np.array([compression.x.length, compression.y.length, compression.z.length],
                    dtype=np.float64)


def enclosing_radius(compression, scale=2.0):
    """Bounding radius proxy: scale * largest axis extent.

    Treats the compression volume as a box and takes its longest side.
    """
    return float(np.max(compression_extents(compression)) * scale)
