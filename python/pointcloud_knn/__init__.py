"""Flat nearest-neighbor search over point clouds, meshes and features.

This module provides an exhaustive L2 index that supports:
- Fixed K nearest neighbors
- Radius-bounded neighbors
"""

from pointcloud_knn.backends import (
    DEFAULT_BACKEND,
    FaissFlatL2Backend,
    FlatIndexBackend,
    NumpyFlatL2Backend,
    make_backend,
    resolve_backend,
)
from pointcloud_knn.geometry import (
    Feature,
    Geometry,
    GeometryType,
    HalfEdgeTriangleMesh,
    Image,
    PointCloud,
    TriangleMesh,
)
from pointcloud_knn.knn_index import KnnFaiss, NeighborIndex
from pointcloud_knn.search_param import (
    KDTreeSearchParam,
    KDTreeSearchParamHybrid,
    KDTreeSearchParamKNN,
    KDTreeSearchParamRadius,
    SearchType,
)

__all__ = [
    "DEFAULT_BACKEND",
    "FaissFlatL2Backend",
    "Feature",
    "FlatIndexBackend",
    "Geometry",
    "GeometryType",
    "HalfEdgeTriangleMesh",
    "Image",
    "KDTreeSearchParam",
    "KDTreeSearchParamHybrid",
    "KDTreeSearchParamKNN",
    "KDTreeSearchParamRadius",
    "KnnFaiss",
    "NeighborIndex",
    "NumpyFlatL2Backend",
    "PointCloud",
    "SearchType",
    "TriangleMesh",
    "make_backend",
    "resolve_backend",
]
__version__ = "0.1.0"
