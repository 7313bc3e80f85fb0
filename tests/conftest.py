import pytest


@pytest.fixture(params=["faiss", "numpy"])
def backend(request):
    """Name of each flat-index backend; faiss is skipped when not installed."""
    if request.param == "faiss":
        pytest.importorskip("faiss")
    return request.param
