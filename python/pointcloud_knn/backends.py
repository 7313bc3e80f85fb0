"""Flat (exhaustive) L2 index backends.

A backend stores a row-major float32 point matrix of shape (n, d) and
answers fixed-count and range queries with squared Euclidean distances.
``NeighborIndex`` owns exactly one backend per built point set.
"""

import logging
from typing import Callable, Dict, Protocol, Tuple, Union

import numpy as np
from numpy.typing import NDArray

logger = logging.getLogger(__name__)

DEFAULT_BACKEND = "faiss"


class FlatIndexBackend(Protocol):
    """Capability surface the neighbor index relies on."""

    dimension: int

    @property
    def ntotal(self) -> int: ...

    def add(self, points: NDArray[np.float32]) -> None: ...

    def search(
        self, queries: NDArray[np.float32], k: int
    ) -> Tuple[NDArray[np.float32], NDArray[np.int64]]:
        """Return (distances, labels), both of shape (m, k).

        Slots past the number of stored points hold label -1.
        """
        ...

    def range_search(
        self, queries: NDArray[np.float32], radius2: float
    ) -> Tuple[NDArray[np.int64], NDArray[np.float32], NDArray[np.int64]]:
        """Return (lims, distances, labels) for squared distance <= radius2.

        Results of query ``i`` are ``distances[lims[i]:lims[i + 1]]``.
        """
        ...


class FaissFlatL2Backend:
    """``faiss.IndexFlatL2`` wrapper."""

    def __init__(self, dimension: int) -> None:
        try:
            import faiss
        except ImportError as exc:  # pragma: no cover - optional dep
            raise RuntimeError(
                "faiss is required for the 'faiss' backend. Install 'faiss-cpu'."
            ) from exc

        self.dimension = int(dimension)
        self._index = faiss.IndexFlatL2(self.dimension)

    @property
    def ntotal(self) -> int:
        return int(self._index.ntotal)

    def add(self, points):
        self._index.add(np.ascontiguousarray(points, dtype=np.float32))

    def search(self, queries, k):
        q = np.ascontiguousarray(queries, dtype=np.float32)
        distances, labels = self._index.search(q, int(k))
        return distances, labels.astype(np.int64, copy=False)

    def range_search(self, queries, radius2):
        q = np.ascontiguousarray(queries, dtype=np.float32)
        # faiss keeps distances strictly below the threshold. Subnormal
        # thresholds may be flushed to zero, so never go below the smallest
        # normal float32.
        threshold = max(
            float(np.nextafter(np.float32(radius2), np.float32(np.inf))),
            float(np.finfo(np.float32).tiny),
        )
        lims, distances, labels = self._index.range_search(q, threshold)
        return (
            lims.astype(np.int64, copy=False),
            distances,
            labels.astype(np.int64, copy=False),
        )


class NumpyFlatL2Backend:
    """Brute-force numpy backend. Equal distances are ordered by point index."""

    def __init__(self, dimension: int) -> None:
        self.dimension = int(dimension)
        self._points = np.zeros((0, self.dimension), dtype=np.float32)

    @property
    def ntotal(self) -> int:
        return self._points.shape[0]

    def add(self, points):
        points = np.asarray(points, dtype=np.float32).reshape(-1, self.dimension)
        self._points = np.concatenate([self._points, points], axis=0)

    def _distance2(self, query: NDArray[np.float32]) -> NDArray[np.float32]:
        diff = self._points - query
        return np.einsum("ij,ij->i", diff, diff)

    def search(self, queries, k):
        queries = np.asarray(queries, dtype=np.float32).reshape(-1, self.dimension)
        k = int(k)
        distances = np.full((len(queries), k), np.finfo(np.float32).max, dtype=np.float32)
        labels = np.full((len(queries), k), -1, dtype=np.int64)
        found = min(k, self.ntotal)
        for row, query in enumerate(queries):
            d2 = self._distance2(query)
            order = np.argsort(d2, kind="stable")[:found]
            distances[row, :found] = d2[order]
            labels[row, :found] = order
        return distances, labels

    def range_search(self, queries, radius2):
        queries = np.asarray(queries, dtype=np.float32).reshape(-1, self.dimension)
        bound = np.float32(radius2)
        lims = np.zeros(len(queries) + 1, dtype=np.int64)
        all_distances = []
        all_labels = []
        for row, query in enumerate(queries):
            d2 = self._distance2(query)
            hits = np.flatnonzero(d2 <= bound)
            all_distances.append(d2[hits])
            all_labels.append(hits.astype(np.int64))
            lims[row + 1] = lims[row] + len(hits)
        if all_distances:
            return lims, np.concatenate(all_distances), np.concatenate(all_labels)
        return lims, np.zeros(0, dtype=np.float32), np.zeros(0, dtype=np.int64)


BackendFactory = Callable[[int], FlatIndexBackend]

BACKENDS: Dict[str, BackendFactory] = {
    "faiss": FaissFlatL2Backend,
    "numpy": NumpyFlatL2Backend,
}


def resolve_backend(backend: Union[str, BackendFactory]) -> BackendFactory:
    """Return the factory for a registry name, or ``backend`` if it is callable.

    Raises:
        ValueError: If ``backend`` is an unknown name.
    """
    if not isinstance(backend, str):
        return backend
    try:
        return BACKENDS[backend.lower()]
    except KeyError:
        raise ValueError(
            f"Unknown backend {backend!r}; expected one of {sorted(BACKENDS)}"
        ) from None


def make_backend(backend: Union[str, BackendFactory], dimension: int) -> FlatIndexBackend:
    """Create an empty backend for points of the given dimension.

    Args:
        backend: Registry name (``"faiss"`` or ``"numpy"``) or a callable
            taking the dimension and returning a backend.
        dimension: Number of coordinates per point.

    Raises:
        ValueError: If ``backend`` is an unknown name.
    """
    factory = resolve_backend(backend)
    logger.debug("Creating %s backend with dimension %d", backend, dimension)
    return factory(int(dimension))
