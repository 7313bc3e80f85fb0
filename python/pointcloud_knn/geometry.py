"""Geometry data providers consumed by the neighbor index.

These are thin containers. The index only reads their 3-D positions
(``PointCloud.points``, ``TriangleMesh.vertices``) or feature columns
(``Feature.data``).
"""

from dataclasses import dataclass, field
from enum import Enum

import numpy as np
from numpy.typing import NDArray


class GeometryType(Enum):
    Unspecified = 0
    PointCloud = 1
    TriangleMesh = 2
    HalfEdgeTriangleMesh = 3
    Image = 4


def _as_positions(values) -> NDArray[np.float64]:
    array = np.asarray(values, dtype=np.float64)
    if array.size == 0:
        return np.zeros((0, 3), dtype=np.float64)
    if array.ndim != 2 or array.shape[1] != 3:
        raise ValueError(f"Positions must have shape (N, 3); got {array.shape}")
    return array


class Geometry:
    """Base geometry. Subclasses report their type through ``get_geometry_type``."""

    def get_geometry_type(self) -> GeometryType:
        return GeometryType.Unspecified

    def is_empty(self) -> bool:
        return True


@dataclass(eq=False)
class PointCloud(Geometry):
    """Point cloud with positions of shape (N, 3)."""

    points: NDArray[np.float64] = field(default_factory=lambda: np.zeros((0, 3)))

    def __post_init__(self) -> None:
        self.points = _as_positions(self.points)

    def get_geometry_type(self) -> GeometryType:
        return GeometryType.PointCloud

    def is_empty(self) -> bool:
        return len(self.points) == 0


@dataclass(eq=False)
class TriangleMesh(Geometry):
    """Triangle mesh with vertices of shape (N, 3) and triangles of shape (T, 3)."""

    vertices: NDArray[np.float64] = field(default_factory=lambda: np.zeros((0, 3)))
    triangles: NDArray[np.int32] = field(
        default_factory=lambda: np.zeros((0, 3), dtype=np.int32)
    )

    def __post_init__(self) -> None:
        self.vertices = _as_positions(self.vertices)
        self.triangles = np.asarray(self.triangles, dtype=np.int32).reshape(-1, 3)

    def get_geometry_type(self) -> GeometryType:
        return GeometryType.TriangleMesh

    def is_empty(self) -> bool:
        return len(self.vertices) == 0


@dataclass(eq=False)
class HalfEdgeTriangleMesh(TriangleMesh):
    def get_geometry_type(self) -> GeometryType:
        return GeometryType.HalfEdgeTriangleMesh


@dataclass(eq=False)
class Image(Geometry):
    """2-D image. Carries no 3-D positions."""

    data: NDArray = field(default_factory=lambda: np.zeros((0, 0)))

    def get_geometry_type(self) -> GeometryType:
        return GeometryType.Image

    def is_empty(self) -> bool:
        return np.asarray(self.data).size == 0


class Feature:
    """Feature matrix of shape (dimension, num), one column per point."""

    def __init__(self, data=None) -> None:
        if data is None:
            data = np.zeros((0, 0))
        self.data = np.asarray(data, dtype=np.float64)
        if self.data.ndim != 2:
            raise ValueError(f"Feature data must be 2-D; got shape {self.data.shape}")

    def resize(self, dim: int, n: int) -> None:
        self.data = np.zeros((dim, n), dtype=np.float64)

    def dimension(self) -> int:
        return self.data.shape[0]

    def num(self) -> int:
        return self.data.shape[1]
