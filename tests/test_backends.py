"""Tests for the flat L2 backends."""

import numpy as np
import pytest


def test_make_backend(backend):
    from pointcloud_knn import make_backend

    index = make_backend(backend, 3)
    assert index.dimension == 3
    assert index.ntotal == 0

    index.add(np.zeros((4, 3), dtype=np.float32))
    assert index.ntotal == 4


def test_make_backend_unknown_name():
    from pointcloud_knn import make_backend

    with pytest.raises(ValueError):
        make_backend("hnsw", 3)


def test_resolve_backend():
    """Names map to registered factories; callables pass through unchanged."""
    from pointcloud_knn import NumpyFlatL2Backend, resolve_backend

    assert resolve_backend("NumPy") is NumpyFlatL2Backend

    def factory(dimension):
        return NumpyFlatL2Backend(dimension)

    assert resolve_backend(factory) is factory
    with pytest.raises(ValueError, match="Unknown backend 'hnsw'"):
        resolve_backend("hnsw")


def test_search_shapes(backend):
    from pointcloud_knn import make_backend

    np.random.seed(0)
    index = make_backend(backend, 8)
    index.add(np.random.rand(30, 8).astype(np.float32))

    distances, labels = index.search(np.random.rand(4, 8).astype(np.float32), 3)
    assert distances.shape == (4, 3)
    assert labels.shape == (4, 3)
    assert labels.dtype == np.int64
    assert np.all(np.diff(distances, axis=1) >= 0)


def test_range_search_bound_is_inclusive(backend):
    """A point exactly at the squared radius is included."""
    from pointcloud_knn import make_backend

    index = make_backend(backend, 1)
    index.add(np.array([[0.0], [1.0], [2.0]], dtype=np.float32))

    lims, distances, labels = index.range_search(np.zeros((1, 1), dtype=np.float32), 1.0)
    assert lims.tolist() == [0, 2]
    assert sorted(labels.tolist()) == [0, 1]
    assert sorted(distances.tolist()) == [0.0, 1.0]


def test_numpy_search_pads_missing_slots():
    """Slots beyond the stored points hold label -1."""
    from pointcloud_knn import NumpyFlatL2Backend

    index = NumpyFlatL2Backend(2)
    index.add(np.array([[0.0, 0.0], [3.0, 4.0]]))

    distances, labels = index.search(np.zeros((1, 2)), 4)
    assert labels.tolist() == [[0, 1, -1, -1]]
    np.testing.assert_allclose(distances[0, :2], [0.0, 25.0])


def test_numpy_ties_follow_point_order():
    from pointcloud_knn import NumpyFlatL2Backend

    index = NumpyFlatL2Backend(1)
    index.add(np.array([[1.0], [-1.0], [1.0], [0.0]]))

    _, labels = index.search(np.zeros((1, 1)), 4)
    assert labels.tolist() == [[3, 0, 1, 2]]


def test_numpy_range_search_empty_batch():
    from pointcloud_knn import NumpyFlatL2Backend

    index = NumpyFlatL2Backend(2)
    index.add(np.ones((3, 2)))

    lims, distances, labels = index.range_search(np.zeros((0, 2)), 1.0)
    assert lims.tolist() == [0]
    assert distances.size == 0
    assert labels.size == 0
