"""Coloured point cloud containers."""

from dataclasses import dataclass
from typing import Iterator, List, NamedTuple, Sequence

import numpy as np


class Point3DRGB(NamedTuple):
    """A single coloured point in the colour camera frame.

    Coordinates are in metres, colour channels are normalised to [0, 1].
    """

    x: float
    y: float
    z: float
    r: float
    g: float
    b: float


@dataclass
class PointCloud:
    """Ordered set of coloured points.

    Points are stored column-wise for vectorised use.  Row ``k`` of each
    array describes the same point; the order is the row-major scan
    order of the depth pixels the points were computed from.
    """

    xyz: np.ndarray
    """Array of shape (N, 3) with coordinates in metres."""

    rgb: np.ndarray
    """Array of shape (N, 3) with red, green, blue in [0, 1]."""

    pixels: np.ndarray
    """Array of shape (N, 2) with the source depth pixel (row, col)."""

    def __post_init__(self):
        if not (len(self.xyz) == len(self.rgb) == len(self.pixels)):
            raise ValueError("xyz, rgb and pixels must have the same length")

    @classmethod
    def empty(cls) -> "PointCloud":
        return cls(
            xyz=np.empty((0, 3), dtype=float),
            rgb=np.empty((0, 3), dtype=float),
            pixels=np.empty((0, 2), dtype=int),
        )

    @classmethod
    def concatenate(cls, clouds: Sequence["PointCloud"]) -> "PointCloud":
        """Join clouds in the given order."""
        if not clouds:
            return cls.empty()
        return cls(
            xyz=np.concatenate([c.xyz for c in clouds]),
            rgb=np.concatenate([c.rgb for c in clouds]),
            pixels=np.concatenate([c.pixels for c in clouds]),
        )

    def __len__(self) -> int:
        return len(self.xyz)

    def __iter__(self) -> Iterator[Point3DRGB]:
        for (x, y, z), (r, g, b) in zip(self.xyz, self.rgb):
            yield Point3DRGB(float(x), float(y), float(z), float(r), float(g), float(b))

    def to_points(self) -> List[Point3DRGB]:
        return list(self)

    def as_array(self) -> np.ndarray:
        """Return an (N, 6) array with columns x, y, z, r, g, b."""
        return np.column_stack([self.xyz, self.rgb])
