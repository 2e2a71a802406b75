import pytest

from improveway.core.model import Point
from improveway.core.projection import IdentityProjection, LinearViewport
from improveway.core.repository import PolylineRepository


@pytest.fixture
def projection():
    # east = lon, north = lat; keeps test coordinates readable as degrees
    return IdentityProjection()


@pytest.fixture
def viewport():
    # 10 px per unit, screen y pointing down
    return LinearViewport(origin=Point(0.0, 0.0), scale=10.0)


@pytest.fixture
def straight_repo():
    """Open polyline A(0,0) - B(10,0) - C(20,0)."""
    repo = PolylineRepository([[0.0, 0.0], [10.0, 0.0], [20.0, 0.0]])
    pid = repo.add_polyline([0, 1, 2])
    return repo, pid


@pytest.fixture
def shared_edge_repo():
    """Closed square W1 and an open W2 sharing the edge A-B.

    A(0,0)=0 B(10,0)=1 C(10,10)=2 D(0,10)=3 E(0,-10)=4 F(10,-10)=5
    W1 = A B C D A, W2 = E A B F
    """
    repo = PolylineRepository([
        [0.0, 0.0], [10.0, 0.0], [10.0, 10.0], [0.0, 10.0], [0.0, -10.0], [10.0, -10.0],
    ])
    w1 = repo.add_polyline([0, 1, 2, 3, 0])
    w2 = repo.add_polyline([4, 0, 1, 5])
    return repo, w1, w2
