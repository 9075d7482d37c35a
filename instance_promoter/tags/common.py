"""Small value types shared by the tag definitions."""

from dataclasses import dataclass
from typing import Tuple

from ..tag_format.tag_codec import tag_type

# Sentinel for "no index" in every block-index field
NONE_INDEX = -1


def get_block(blocks, index, description="block"):
    """Return blocks[index]; raises IndexError for negative or past-the-end indices."""
    if not 0 <= index < len(blocks):
        raise IndexError(f"{description} index {index} out of range (0..{len(blocks) - 1})")
    return blocks[index]


@tag_type
@dataclass
class RealPoint3d:
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0


@tag_type
@dataclass
class RealVector3d:
    i: float = 0.0
    j: float = 0.0
    k: float = 0.0


@tag_type
@dataclass
class RealQuaternion:
    i: float = 0.0
    j: float = 0.0
    k: float = 0.0
    w: float = 1.0


@tag_type
@dataclass
class RealMatrix4x3:
    """Row-major 4x3 affine transform: three basis rows then translation."""

    values: Tuple[float, ...] = (
        1.0, 0.0, 0.0,
        0.0, 1.0, 0.0,
        0.0, 0.0, 1.0,
        0.0, 0.0, 0.0,
    )

    def row(self, index):
        return self.values[index * 3:index * 3 + 3]


@tag_type
@dataclass
class Bounds:
    """Closed [lower, upper] range along one axis."""

    lower: float = 0.0
    upper: float = 0.0

    @property
    def length(self):
        return self.upper - self.lower
