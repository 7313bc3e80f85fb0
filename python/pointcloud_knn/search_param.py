"""Search mode parameters for neighbor queries.

A search parameter is a tagged choice of query mode. ``NeighborIndex.search``
dispatches on :meth:`KDTreeSearchParam.get_search_type`.
"""

from enum import Enum


class SearchType(Enum):
    """Tag identifying the query mode carried by a search parameter."""

    Knn = 0
    Radius = 1
    Hybrid = 2


class KDTreeSearchParam:
    """Base class for search parameters."""

    def __init__(self, search_type: SearchType) -> None:
        self._search_type = search_type

    def get_search_type(self) -> SearchType:
        return self._search_type


class KDTreeSearchParamKNN(KDTreeSearchParam):
    """Fixed-count search.

    Args:
        knn: Number of nearest neighbors to return per query (default: 30).
    """

    def __init__(self, knn: int = 30) -> None:
        super().__init__(SearchType.Knn)
        self.knn = int(knn)

    def __repr__(self) -> str:
        return f"KDTreeSearchParamKNN(knn={self.knn})"


class KDTreeSearchParamRadius(KDTreeSearchParam):
    """Radius-bounded search.

    Args:
        radius: Euclidean search radius. Points whose squared distance is
            at most ``radius ** 2`` are returned.
    """

    def __init__(self, radius: float) -> None:
        super().__init__(SearchType.Radius)
        self.radius = float(radius)

    def __repr__(self) -> str:
        return f"KDTreeSearchParamRadius(radius={self.radius})"


class KDTreeSearchParamHybrid(KDTreeSearchParam):
    """Radius search limited to ``max_nn`` neighbors.

    Not supported by :class:`~pointcloud_knn.NeighborIndex`; searching with
    it returns ``-1``.
    """

    def __init__(self, radius: float, max_nn: int) -> None:
        super().__init__(SearchType.Hybrid)
        self.radius = float(radius)
        self.max_nn = int(max_nn)

    def __repr__(self) -> str:
        return f"KDTreeSearchParamHybrid(radius={self.radius}, max_nn={self.max_nn})"
