"""Flat nearest-neighbor index over point sets, features and geometry.

The index copies its input into an owned float32 buffer laid out column-major
(one column per point) and hands it to a flat L2 backend. Searches report
squared Euclidean distances in float32 regardless of the input precision.

Failures are reported through return values: ingestion returns ``False``
and searches return ``-1``.
"""

import logging
from typing import Optional, Tuple, Union

import numpy as np
from numpy.typing import ArrayLike, NDArray

from pointcloud_knn.backends import (
    DEFAULT_BACKEND,
    BackendFactory,
    make_backend,
    resolve_backend,
)
from pointcloud_knn.geometry import Feature, Geometry, GeometryType
from pointcloud_knn.search_param import KDTreeSearchParam, SearchType

logger = logging.getLogger(__name__)

_EMPTY_INDICES = np.zeros(0, dtype=np.int64)
_EMPTY_DISTANCES = np.zeros(0, dtype=np.float32)


def _as_query_block(query: ArrayLike) -> Optional[NDArray[np.float32]]:
    """Return queries as a (d, m) float32 block, or None if not 1-D/2-D."""
    block = np.asarray(query, dtype=np.float32)
    if block.ndim == 1:
        return block.reshape(-1, 1)
    if block.ndim == 2:
        return block
    return None


def _write(buffer, values: NDArray) -> None:
    """Write ``values`` into the front of a caller-provided buffer."""
    if isinstance(buffer, np.ndarray):
        buffer[: len(values)] = values
    else:
        buffer[: len(values)] = values.tolist()


def _replace(buffer, values: NDArray) -> None:
    """Store ``values`` in a variable-length buffer.

    Lists are cleared and refilled; arrays are filled from the front.
    """
    if isinstance(buffer, np.ndarray):
        buffer[: len(values)] = values
    else:
        buffer[:] = values.tolist()


class NeighborIndex:
    """Exhaustive nearest-neighbor index with KNN and radius queries.

    Args:
        data: Optional initial data. A dense ``(dimension, num_points)``
            matrix, a :class:`~pointcloud_knn.geometry.Geometry`, or a
            :class:`~pointcloud_knn.geometry.Feature`.
        backend: Backend name (``"faiss"`` or ``"numpy"``) or a callable
            ``dimension -> backend`` (default: ``"faiss"``).

    Raises:
        ValueError: If ``backend`` is an unknown name.

    Example:
        >>> import numpy as np
        >>> from pointcloud_knn import NeighborIndex
        >>> points = np.array([[0.0, 1.0, 5.0], [0.0, 0.0, 5.0], [0.0, 0.0, 5.0]])
        >>> index = NeighborIndex(points)
        >>> indices = np.zeros(2, dtype=np.int64)
        >>> distance2 = np.zeros(2, dtype=np.float32)
        >>> index.search_knn(np.zeros(3), 2, indices, distance2)
        2
    """

    def __init__(
        self,
        data=None,
        *,
        backend: Union[str, BackendFactory] = DEFAULT_BACKEND,
    ) -> None:
        resolve_backend(backend)
        self._backend = backend
        self._reset()

        if data is None:
            return
        if isinstance(data, Geometry):
            self.set_geometry(data)
        elif isinstance(data, Feature):
            self.set_feature(data)
        else:
            self.set_matrix_data(data)

    def _reset(self) -> None:
        self._points = np.zeros((0, 0), dtype=np.float32)
        self._index = None
        self._dimension = 0
        self._dataset_size = 0

    @property
    def dimension(self) -> int:
        return self._dimension

    @property
    def dataset_size(self) -> int:
        return self._dataset_size

    @property
    def data(self) -> NDArray[np.float32]:
        """Read-only ``(dimension, dataset_size)`` view of the stored points."""
        view = self._points.T.view()
        view.flags.writeable = False
        return view

    def is_built(self) -> bool:
        return self._index is not None and self._dataset_size > 0

    def __repr__(self) -> str:
        return (
            f"NeighborIndex(dimension={self._dimension}, "
            f"dataset_size={self._dataset_size}, backend={self._backend!r})"
        )

    # Ingestion

    def set_matrix_data(self, data: ArrayLike) -> bool:
        """Build from a dense ``(dimension, num_points)`` matrix.

        A 1-D input is taken as a single point. Any other shape that is not
        2-D fails like empty data and leaves the index unbuilt.
        """
        matrix = np.asarray(data)
        if matrix.ndim == 1:
            matrix = matrix.reshape(-1, 1)
        elif matrix.ndim != 2:
            if matrix.size != 0:
                logger.warning(
                    "[NeighborIndex.set_matrix_data] Matrix data must be 2-D; got shape %s.",
                    matrix.shape,
                )
                self._reset()
                return False
            matrix = np.zeros((0, 0))
        return self.set_raw_data(matrix)

    def set_geometry(self, geometry: Geometry) -> bool:
        """Build from the 3-D positions of a point cloud or triangle mesh.

        Other geometry types are rejected and the current data is kept.
        """
        geometry_type = geometry.get_geometry_type()
        if geometry_type == GeometryType.PointCloud:
            return self.set_raw_data(np.asarray(geometry.points).T)
        elif geometry_type in (
            GeometryType.TriangleMesh,
            GeometryType.HalfEdgeTriangleMesh,
        ):
            return self.set_raw_data(np.asarray(geometry.vertices).T)
        logger.warning("[NeighborIndex.set_geometry] Unsupported Geometry type.")
        return False

    def set_feature(self, feature: Feature) -> bool:
        return self.set_matrix_data(feature.data)

    def set_raw_data(self, data: NDArray) -> bool:
        dimension, dataset_size = data.shape
        if dimension == 0 or dataset_size == 0:
            logger.warning("[NeighborIndex.set_raw_data] Failed due to no data.")
            self._reset()
            return False

        # (n, d) row-major is the column-major (d, n) point buffer
        points = np.array(data.T, dtype=np.float32, order="C", copy=True)
        index = make_backend(self._backend, dimension)
        index.add(points)

        self._points = points
        self._index = index
        self._dimension = int(dimension)
        self._dataset_size = int(dataset_size)
        return True

    # Search

    def _query_rows(self, query: ArrayLike) -> Optional[NDArray[np.float32]]:
        """Return queries as contiguous (m, d) rows, or None if not searchable."""
        if not self.is_built():
            logger.debug("Search rejected: index is not built")
            return None
        block = _as_query_block(query)
        if block is None or block.shape[0] != self._dimension:
            logger.debug(
                "Search rejected: query shape %s does not match dimension %d",
                np.shape(query),
                self._dimension,
            )
            return None
        return np.ascontiguousarray(block.T)

    def search(self, query: ArrayLike, param: KDTreeSearchParam, indices, distance2) -> int:
        """Dispatch to :meth:`search_knn` or :meth:`search_radius` by ``param`` type.

        Returns -1 for hybrid or unknown search types.
        """
        search_type = param.get_search_type()
        if search_type == SearchType.Knn:
            return self.search_knn(query, param.knn, indices, distance2)
        elif search_type == SearchType.Radius:
            return self.search_radius(query, param.radius, indices, distance2)
        logger.debug("Search rejected: unsupported search type %s", search_type)
        return -1

    def search_knn(self, query: ArrayLike, knn: int, indices, distance2) -> int:
        """Find the ``knn`` nearest points to each query column.

        ``indices`` and ``distance2`` must hold ``count * m`` entries for ``m``
        query columns. Column ``j`` fills ``[j * count, (j + 1) * count)`` in
        ascending distance order.

        Returns:
            The number of neighbors per query, ``min(knn, dataset_size)``,
            or -1 if the index is not built, the query dimension does not
            match, or ``knn`` is negative.
        """
        if knn < 0:
            return -1
        queries = self._query_rows(query)
        if queries is None:
            return -1

        count = min(int(knn), self._dataset_size)
        if count == 0 or len(queries) == 0:
            return count
        distances, labels = self._index.search(queries, count)
        _write(indices, labels.ravel())
        _write(distance2, distances.ravel())
        return count

    def search_radius(
        self,
        query: ArrayLike,
        radius: float,
        indices,
        distance2,
        offsets=None,
    ) -> int:
        """Find every point within ``radius`` of each query column.

        Results of all query columns are concatenated in column order. Lists
        passed as ``indices`` / ``distance2`` / ``offsets`` are replaced;
        arrays must be large enough and are filled from the front. ``offsets``
        receives ``m + 1`` boundaries so column ``j`` owns
        ``offsets[j]:offsets[j + 1]``. Order within a column is backend
        defined.

        Arrays keep their stale tail past the last hit and the return value
        is not a count, so array callers must pass ``offsets`` and read the
        number of entries written from ``offsets[-1]``.

        Returns:
            1 on success, -1 if the index is not built, the query dimension
            does not match, or ``radius`` is negative.
        """
        if radius < 0:
            return -1
        queries = self._query_rows(query)
        if queries is None:
            return -1

        lims, distances, labels = self._index.range_search(queries, float(radius) ** 2)
        _replace(indices, labels)
        _replace(distance2, distances)
        if offsets is not None:
            _replace(offsets, lims)
        return 1

    # Convenience searches returning fresh arrays

    def search_vector_xd(
        self, query: ArrayLike, param: KDTreeSearchParam
    ) -> Tuple[int, NDArray[np.int64], NDArray[np.float32]]:
        search_type = param.get_search_type()
        if search_type == SearchType.Knn:
            return self.search_knn_vector_xd(query, param.knn)
        elif search_type == SearchType.Radius:
            return self.search_radius_vector_xd(query, param.radius)
        return -1, _EMPTY_INDICES.copy(), _EMPTY_DISTANCES.copy()

    def search_knn_vector_xd(
        self, query: ArrayLike, knn: int
    ) -> Tuple[int, NDArray[np.int64], NDArray[np.float32]]:
        """Return ``(count, indices, distance2)``; count is -1 on failure."""
        block = _as_query_block(query)
        columns = 0 if block is None else block.shape[1]
        size = max(min(int(knn), self._dataset_size), 0) * columns
        indices = np.full(size, -1, dtype=np.int64)
        distance2 = np.zeros(size, dtype=np.float32)
        count = self.search_knn(query, knn, indices, distance2)
        if count < 0:
            return -1, _EMPTY_INDICES.copy(), _EMPTY_DISTANCES.copy()
        return count, indices, distance2

    def search_radius_vector_xd(
        self, query: ArrayLike, radius: float
    ) -> Tuple[int, NDArray[np.int64], NDArray[np.float32]]:
        """Return ``(count, indices, distance2)``.

        ``count`` is the total number of points found, or -1 on failure.
        """
        indices = []
        distance2 = []
        if self.search_radius(query, radius, indices, distance2) < 0:
            return -1, _EMPTY_INDICES.copy(), _EMPTY_DISTANCES.copy()
        return (
            len(indices),
            np.asarray(indices, dtype=np.int64),
            np.asarray(distance2, dtype=np.float32),
        )

    search_vector_3d = search_vector_xd
    search_knn_vector_3d = search_knn_vector_xd
    search_radius_vector_3d = search_radius_vector_xd


KnnFaiss = NeighborIndex
