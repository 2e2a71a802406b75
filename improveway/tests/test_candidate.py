import math

import pytest

from improveway.core.candidate import (Candidate, CandidateTracker, InteractionSnapshot, Modifiers,
                                       resolve_target, resolve_target_point)
from improveway.core.config import CandidateConfig
from improveway.core.model import Edge, Point
from improveway.core.repository import PolylineRepository


def bent_repo():
    repo = PolylineRepository([[0.0, 0.0], [10.0, 0.0], [14.0, 3.0], [20.0, 10.0], [20.0, 20.0]])
    pid = repo.add_polyline([0, 1, 2, 3, 4])
    return repo, pid


class TestCandidateSearch:
    def test_nearest_vertex(self, straight_repo, viewport):
        repo, pid = straight_repo
        tracker = CandidateTracker(repo, viewport)
        snap = tracker.update((101.0, -2.0), Modifiers(), pid)
        assert snap.candidate.vertex == 1
        assert tracker.candidate_segment is None
        assert snap.pointer_point == pytest.approx((10.1, 0.2))

    def test_nearest_edge_when_no_vertex(self, straight_repo, viewport):
        repo, pid = straight_repo
        tracker = CandidateTracker(repo, viewport)
        tracker.update((50.0, -3.0), Modifiers(), pid)
        assert tracker.candidate_node is None
        assert tracker.candidate_segment == Edge(pid, 0, 0, 1)

    def test_nothing_in_range(self, straight_repo, viewport):
        repo, pid = straight_repo
        tracker = CandidateTracker(repo, viewport)
        snap = tracker.update((50.0, -50.0), Modifiers(), pid)
        assert not snap.candidate

    def test_insert_mode_targets_edges(self, straight_repo, viewport):
        repo, pid = straight_repo
        tracker = CandidateTracker(repo, viewport)
        snap = tracker.update((101.0, -2.0), Modifiers(insert=True), pid)
        assert snap.candidate.vertex is None
        assert snap.candidate.edge.index == 1

    def test_thresholds_from_config(self, straight_repo, viewport):
        repo, pid = straight_repo
        tracker = CandidateTracker(repo, viewport, CandidateConfig(node_threshold_px=1.0,
                                                                   segment_threshold_px=1.0))
        assert not tracker.update((50.0, -3.0), Modifiers(), pid).candidate
        assert tracker.update((50.0, -0.5), Modifiers(), pid).candidate.is_edge

    def test_update_is_idempotent_and_read_only(self, straight_repo, viewport):
        repo, pid = straight_repo
        before = repo.points.copy()
        tracker = CandidateTracker(repo, viewport)
        first = tracker.update((101.0, -2.0), Modifiers(), pid)
        second = tracker.update((101.0, -2.0), Modifiers(), pid)
        assert first == second
        assert (repo.points == before).all()

    def test_clear(self, straight_repo, viewport):
        repo, pid = straight_repo
        tracker = CandidateTracker(repo, viewport)
        tracker.update((101.0, -2.0), Modifiers(), pid)
        tracker.clear()
        assert tracker.snapshot == InteractionSnapshot()

    def test_candidate_is_exclusive(self):
        with pytest.raises(ValueError):
            Candidate(vertex=1, edge=Edge(0, 0, 0, 1))


class TestTargetPoint:
    def test_pointer_location(self, straight_repo, viewport):
        repo, pid = straight_repo
        tracker = CandidateTracker(repo, viewport)
        tracker.update((50.0, -3.0), Modifiers(insert=True), pid)
        assert tracker.resolve_target_point() == pytest.approx((5.0, 0.3))

    def test_snap_uses_equal_angle_point(self, viewport):
        repo, pid = bent_repo()
        tracker = CandidateTracker(repo, viewport)
        tracker.update((141.0, -30.0), Modifiers(snap=True), pid)
        assert tracker.candidate_node == 2
        p = tracker.resolve_target_point()
        k = 10.0 / (1 + math.sqrt(3))
        assert (p.east, p.north) == pytest.approx((10.0 + k * math.sqrt(3), k))
        assert resolve_target(tracker.snapshot, repo).source == 'equal_angle'

    def test_snap_falls_back_to_pointer(self, straight_repo, viewport):
        repo, pid = straight_repo
        tracker = CandidateTracker(repo, viewport)
        tracker.update((101.0, -2.0), Modifiers(snap=True), pid)
        assert tracker.find_equal_angle_point() is None
        target = resolve_target(tracker.snapshot, repo)
        assert target.source == 'fallback'
        assert target.point == pytest.approx((10.1, 0.2))

    def test_no_pointer_no_candidate(self, straight_repo, viewport):
        repo, pid = straight_repo
        tracker = CandidateTracker(repo, viewport)
        tracker.update(None, Modifiers(snap=True), pid)
        assert tracker.resolve_target_point() is None
        assert resolve_target_point(InteractionSnapshot(), repo) is None

    def test_endpoints(self, straight_repo, viewport):
        repo, pid = straight_repo
        tracker = CandidateTracker(repo, viewport)
        tracker.update((101.0, -2.0), Modifiers(), pid)
        assert tracker.endpoints() == (Point(0.0, 0.0), Point(20.0, 0.0))
        tracker.update((1.0, -1.0), Modifiers(), pid)
        assert tracker.endpoints() is None
        tracker.update((50.0, -3.0), Modifiers(), pid)
        assert tracker.endpoints() == (Point(0.0, 0.0), Point(10.0, 0.0))
