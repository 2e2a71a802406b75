import numpy as np
import pytest

from improveway.core.commands import (CreateVertex, DeleteVertex, EditBatch, InsertVertex, MoveVertex,
                                      NewVertex, RemoveVertexFromPolyline, ReplacePolylineVertices)
from improveway.core.model import Edge, Point, Polyline
from improveway.core.repository import BatchError, PolylineRepository


def test_referrers_are_index_queries(shared_edge_repo):
    repo, w1, w2 = shared_edge_repo
    assert repo.get_referrers(0) == [w1, w2]
    assert repo.get_referrers(2) == [w1]
    assert repo.get_referrers(4) == [w2]
    # closing duplicate counted once
    assert repo.reference_count(0) == 2
    assert repo.reference_count(2) == 1


def test_polylines_containing_edge(shared_edge_repo):
    repo, w1, w2 = shared_edge_repo
    assert repo.polylines_containing_edge(0, 1) == [w1, w2]
    assert repo.polylines_containing_edge(1, 0) == [w1, w2]
    assert repo.polylines_containing_edge(1, 2) == [w1]
    # both endpoints in W2 but not adjacent
    assert repo.polylines_containing_edge(4, 1) == []


def test_polyline_shape(shared_edge_repo):
    repo, w1, w2 = shared_edge_repo
    p1 = repo.get_polyline(w1)
    assert p1.closed and p1.real_count == 4
    assert repo.coords(p1).shape == (4, 2)
    p2 = repo.get_polyline(w2)
    assert not p2.closed and p2.real_count == 4
    assert repo.get_node_pairs(w2) == [(4, 0), (0, 1), (1, 5)]


def test_invalid_polylines_rejected():
    repo = PolylineRepository([[0, 0], [1, 0], [1, 1]])
    with pytest.raises(ValueError):
        repo.add_polyline([0])
    with pytest.raises(ValueError):
        repo.add_polyline([0, 1, 0])
    with pytest.raises(KeyError):
        repo.add_polyline([0, 7])


def test_polyline_without_keeps_closure():
    poly = Polyline(0, (0, 1, 2, 3, 0))
    assert poly.without(0) == (1, 2, 3, 1)
    assert poly.without(2) == (0, 1, 3, 0)
    assert Polyline(1, (0, 1, 2)).without(1) == (0, 2)


def test_polyline_without_first_occurrence():
    assert Polyline(0, (0, 1, 2, 1, 3)).without_first(1) == (0, 2, 1, 3)
    assert Polyline(0, (0, 1, 2, 3, 0)).without_first(0) == (1, 2, 3, 1)
    assert Polyline(0, (0, 1, 2, 3, 0)).without_first(2) == (0, 1, 3, 0)
    assert Polyline(0, (0, 1, 2)).without_first(7) == (0, 1, 2)


def test_apply_insert_shared_vertex(shared_edge_repo):
    repo, w1, w2 = shared_edge_repo
    new = NewVertex(Point(5.0, 0.0))
    batch = EditBatch('insert', 2, (
        CreateVertex(new),
        InsertVertex(Edge.of(repo.get_polyline(w1), 0), new),
        InsertVertex(Edge.of(repo.get_polyline(w2), 1), new),
    ))
    created = repo.apply(batch)
    vid = created[new]
    assert repo.get_polyline(w1).vertices == (0, vid, 1, 2, 3, 0)
    assert repo.get_polyline(w2).vertices == (4, 0, vid, 1, 5)
    assert repo.get_referrers(vid) == [w1, w2]
    assert repo.get_point(vid) == Point(5.0, 0.0)


def test_apply_is_atomic(shared_edge_repo):
    repo, w1, w2 = shared_edge_repo
    before = repo.points.copy()
    batch = EditBatch('bad', 1, (MoveVertex(2, (1.0, 1.0)), DeleteVertex(0)))
    with pytest.raises(BatchError):
        repo.apply(batch)
    np.testing.assert_array_equal(repo.points, before)
    assert repo.get_polyline(w1).vertices == (0, 1, 2, 3, 0)


def test_apply_remove_and_delete():
    repo = PolylineRepository([[0, 0], [1, 0], [2, 0], [3, 0]])
    pid = repo.add_polyline([0, 1, 2, 3])
    repo.apply(EditBatch('delete', 1, (RemoveVertexFromPolyline(pid, 1), DeleteVertex(1))))
    assert repo.get_polyline(pid).vertices == (0, 2, 3)
    assert not repo.is_live(1)
    assert repo.get_referrers(1) == []
    with pytest.raises(KeyError):
        repo.get_vertex(1)


def test_apply_replace_and_stale_edge(shared_edge_repo):
    repo, w1, w2 = shared_edge_repo
    repo.apply(EditBatch('replace', 1, (ReplacePolylineVertices(w2, (4, 0, 5)),)))
    assert repo.get_polyline(w2).vertices == (4, 0, 5)
    assert repo.get_referrers(1) == [w1]
    stale = Edge(w2, 1, 0, 1)
    with pytest.raises(BatchError):
        repo.apply(EditBatch('insert', 1, (InsertVertex(stale, 2),)))


def test_tags():
    repo = PolylineRepository()
    v = repo.add_vertex((1.0, 2.0), {'barrier': 'gate'})
    assert repo.get_vertex(v).is_tagged
    repo.set_tags(v, {})
    assert not repo.get_vertex(v).is_tagged
