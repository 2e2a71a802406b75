import math

import pytest

from improveway.core.candidate import Candidate, InteractionSnapshot, Modifiers
from improveway.core.constants import EARTH_RADIUS_M
from improveway.core.diagnostics import (arc_sweep, half_distance_line, label_angle, neighbour_links,
                                         way_diagnostics)
from improveway.core.model import Edge, Point
from improveway.core.projection import LinearViewport
from improveway.core.repository import PolylineRepository


DEG = EARTH_RADIUS_M * math.pi / 180.0


def snap_of(pid, candidate=Candidate(), **mods):
    return InteractionSnapshot(Modifiers(**mods), None, None, candidate, pid)


def test_straight_line_has_zero_turn(straight_repo, projection):
    repo, pid = straight_repo
    d = way_diagnostics(repo, snap_of(pid), projection)
    assert len(d.segments) == 2
    assert len(d.turns) == 1
    assert d.turns[0].vertex == 1
    assert d.turns[0].turn == pytest.approx(0.0, abs=1e-9)
    assert d.segments[0].heading == pytest.approx(0.0, abs=1e-9)
    assert d.segments[0].distance == pytest.approx(10 * DEG)
    assert d.total_length == pytest.approx(20 * DEG)


def test_left_turn_is_negative(projection):
    repo = PolylineRepository([[0.0, 0.0], [1.0, 0.0], [1.0, 1.0]])
    pid = repo.add_polyline([0, 1, 2])
    d = way_diagnostics(repo, snap_of(pid), projection)
    t = d.turns[0]
    assert t.turn == pytest.approx(-90.0, abs=1e-6)
    assert t.magnitude == pytest.approx(90.0, abs=1e-6)
    assert t.out_heading == pytest.approx(-90.0, abs=1e-6)


def test_closed_polyline_turn_at_every_vertex(projection):
    repo = PolylineRepository([[0.0, 0.0], [1.0, 0.0], [1.0, 1.0], [0.0, 1.0]])
    pid = repo.add_polyline([0, 1, 2, 3, 0])
    d = way_diagnostics(repo, snap_of(pid), projection)
    assert len(d.segments) == 4
    assert [t.vertex for t in d.turns] == [1, 2, 3, 0]
    for t in d.turns:
        assert abs(t.turn) == pytest.approx(90.0, abs=0.05)


def test_move_preview_replaces_vertex(straight_repo, projection):
    repo, pid = straight_repo
    snap = snap_of(pid, Candidate(vertex=1))
    d = way_diagnostics(repo, snap, projection, target=Point(10.0, 1.0))
    assert len(d.segments) == 2
    assert d.turns[0].vertex is None
    assert d.turns[0].at == Point(10.0, 1.0)
    assert d.turns[0].turn != pytest.approx(0.0, abs=1e-3)
    original = way_diagnostics(repo, snap, projection, target=Point(10.0, 1.0), use_original=True)
    assert original.turns[0].turn == pytest.approx(0.0, abs=1e-9)


def test_delete_preview_skips_vertex(straight_repo, projection):
    repo, pid = straight_repo
    d = way_diagnostics(repo, snap_of(pid, Candidate(vertex=1), delete=True), projection)
    assert len(d.segments) == 1
    assert d.turns == ()
    assert d.segments[0].distance == pytest.approx(20 * DEG)


def test_insert_preview_adds_point(straight_repo, projection):
    repo, pid = straight_repo
    edge = Edge.of(repo.get_polyline(pid), 0)
    snap = snap_of(pid, Candidate(edge=edge), insert=True)
    d = way_diagnostics(repo, snap, projection, target=Point(5.0, 1.0))
    assert len(d.segments) == 3
    assert [t.vertex for t in d.turns] == [None, 1]
    assert d.segments[0].end == Point(5.0, 1.0)
    assert d.segments[1].start == Point(5.0, 1.0)


def test_no_polyline_is_empty(straight_repo, projection):
    repo, _ = straight_repo
    d = way_diagnostics(repo, InteractionSnapshot(), projection)
    assert d.segments == () and d.turns == ()


def test_arc_and_label_directions():
    assert arc_sweep(0.0, 30.0) == (90.0, 30.0)
    assert arc_sweep(45.0, -30.0) == (-135.0, -30.0)
    assert label_angle(0.0, 30.0) == pytest.approx(105.0)
    assert label_angle(0.0, -30.0) == pytest.approx(-105.0)


def test_neighbour_links(shared_edge_repo):
    repo, w1, w2 = shared_edge_repo
    assert neighbour_links(repo, w1, 0) == [(w2, 4), (w2, 1)]
    assert neighbour_links(repo, w2, 1) == [(w1, 0), (w1, 2)]
    assert neighbour_links(repo, w1, 2) == []


def test_half_distance_line(straight_repo):
    repo, pid = straight_repo
    vp = LinearViewport(Point(0.0, 0.0), 1.0)
    edge = Edge.of(repo.get_polyline(pid), 0)
    a, b = half_distance_line(snap_of(pid, Candidate(edge=edge)), repo, vp)
    assert a == pytest.approx((5.0, 100.0))
    assert b == pytest.approx((5.0, -100.0))
    assert half_distance_line(snap_of(pid, Candidate(vertex=1), delete=True), repo, vp) is None
    # open polyline end vertex has no two neighbours
    assert half_distance_line(snap_of(pid, Candidate(vertex=0)), repo, vp) is None
