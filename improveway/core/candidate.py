"""Candidate tracking: which vertex or edge of the target polyline the pointer targets.

Every interaction frame produces a fresh immutable ``InteractionSnapshot``;
the planner works from snapshots only. Nothing here mutates the repository.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Tuple

import numpy as np
from scipy.spatial import cKDTree

from .config import CandidateConfig
from .geometry import equal_angle_point, fix_index, segment_distances
from .logging_utils import get_logger
from .model import Edge, Point, Polyline
from .projection import ScreenPoint, Viewport, screen_points

logger = get_logger('improveway.candidate')

__all__ = [
    'Modifiers', 'Candidate', 'InteractionSnapshot', 'TargetPoint', 'find_candidate',
    'find_equal_angle_point', 'resolve_target', 'resolve_target_point', 'candidate_endpoints',
    'CandidateTracker',
]


@dataclass(frozen=True)
class Modifiers:
    """Abstract interaction modifiers; the host maps raw keys onto them."""
    insert: bool = False
    delete: bool = False
    snap: bool = False

    @property
    def insert_mode(self) -> bool:
        return self.insert and not self.delete

    @property
    def delete_mode(self) -> bool:
        return self.delete and not self.insert


@dataclass(frozen=True)
class Candidate:
    """Either a vertex id or an edge, never both."""
    vertex: Optional[int] = None
    edge: Optional[Edge] = None

    def __post_init__(self):
        if self.vertex is not None and self.edge is not None:
            raise ValueError("candidate is either a vertex or an edge")

    @property
    def is_vertex(self) -> bool:
        return self.vertex is not None

    @property
    def is_edge(self) -> bool:
        return self.edge is not None

    def __bool__(self) -> bool:
        return self.is_vertex or self.is_edge


NO_CANDIDATE = Candidate()


@dataclass(frozen=True)
class InteractionSnapshot:
    modifiers: Modifiers = field(default_factory=Modifiers)
    pointer: Optional[ScreenPoint] = None
    pointer_point: Optional[Point] = None
    candidate: Candidate = NO_CANDIDATE
    polyline: Optional[int] = None


@dataclass(frozen=True)
class TargetPoint:
    point: Point
    # 'equal_angle', 'pointer' or 'fallback' (snap requested, no equal-angle point)
    source: str


def find_candidate(polyline: Polyline, coords, viewport: Viewport, pointer: ScreenPoint,
                   modifiers: Modifiers, config: CandidateConfig = CandidateConfig()) -> Candidate:
    """Nearest vertex within the node radius, else nearest edge within the segment radius.

    ``coords`` holds the projected position of every entry of
    ``polyline.vertices`` (closing duplicate included). In insert mode only
    edges are considered.
    """
    scr = screen_points(viewport, coords)
    if scr.shape[0] != len(polyline.vertices):
        raise ValueError("coords must hold one row per polyline entry")
    px = np.asarray(pointer, dtype=np.float64)
    if not modifiers.insert_mode:
        tree = cKDTree(scr[:polyline.real_count])
        dist, idx = tree.query(px, k=1, distance_upper_bound=config.node_threshold_px)
        if np.isfinite(dist):
            return Candidate(vertex=polyline.node(int(idx)))
    dists = segment_distances(px, scr[:-1], scr[1:])
    if dists.size:
        j = int(np.argmin(dists))
        if dists[j] <= config.segment_threshold_px:
            return Candidate(edge=Edge.of(polyline, j))
    return NO_CANDIDATE


def find_equal_angle_point(snapshot: InteractionSnapshot, repository) -> Optional[Point]:
    """Equal-angle point for the snapshot's candidate, or None when undefined."""
    if snapshot.polyline is None or not snapshot.candidate:
        return None
    poly = repository.get_polyline(snapshot.polyline)
    cand = snapshot.candidate
    if cand.is_vertex:
        i = poly.index_of(cand.vertex)
        if i < 0:
            return None
        index1, index2 = i - 1, i + 1
    else:
        index1, index2 = cand.edge.index, cand.edge.index + 1
    pt = equal_angle_point(repository.coords(poly), poly.closed, index1, index2)
    if pt is None:
        logger.debug("no equal-angle point for %s on polyline %s", cand, poly.id)
    return pt


def resolve_target(snapshot: InteractionSnapshot, repository) -> Optional[TargetPoint]:
    """Where an edit would place its vertex.

    The snap modifier asks for the equal-angle point and falls back to the
    pointer when there is none; otherwise the pointer location is used.
    """
    if snapshot.modifiers.snap:
        pt = find_equal_angle_point(snapshot, repository)
        if pt is not None:
            return TargetPoint(pt, 'equal_angle')
        if snapshot.pointer_point is not None:
            return TargetPoint(snapshot.pointer_point, 'fallback')
        return None
    if snapshot.pointer_point is not None:
        return TargetPoint(snapshot.pointer_point, 'pointer')
    return None


def resolve_target_point(snapshot: InteractionSnapshot, repository) -> Optional[Point]:
    target = resolve_target(snapshot, repository)
    return target.point if target is not None else None


def candidate_endpoints(snapshot: InteractionSnapshot, repository) -> Optional[Tuple[Point, Point]]:
    """Neighbours of the candidate vertex, or the candidate edge's endpoints."""
    if snapshot.polyline is None or not snapshot.candidate:
        return None
    poly = repository.get_polyline(snapshot.polyline)
    cand = snapshot.candidate
    if cand.is_edge:
        return repository.get_point(cand.edge.first), repository.get_point(cand.edge.second)
    i = poly.index_of(cand.vertex)
    if i < 0:
        return None
    n = poly.real_count
    i1 = fix_index(n, poly.closed, i - 1)
    i2 = fix_index(n, poly.closed, i + 1)
    if i1 < 0 or i2 < 0:
        return None
    return repository.get_point(poly.node(i1)), repository.get_point(poly.node(i2))


class CandidateTracker:
    """Keeps the latest interaction snapshot for one viewport.

    Parameters
    ----------
    repository : PolylineRepository-like
        Read-only access to vertices and polylines.
    viewport : Viewport
        Screen <-> projected conversion.
    config : CandidateConfig
        Pixel radii for the vertex and edge search.
    """

    def __init__(self, repository, viewport: Viewport, config: Optional[CandidateConfig] = None):
        self.repository = repository
        self.viewport = viewport
        self.config = config or CandidateConfig()
        self._snapshot = InteractionSnapshot()

    @property
    def snapshot(self) -> InteractionSnapshot:
        return self._snapshot

    @property
    def candidate_node(self) -> Optional[int]:
        return self._snapshot.candidate.vertex

    @property
    def candidate_segment(self) -> Optional[Edge]:
        return self._snapshot.candidate.edge

    def update(self, pointer: Optional[ScreenPoint], modifiers: Modifiers,
               polyline: Optional[int]) -> InteractionSnapshot:
        """Recompute the candidate for a pointer position; idempotent."""
        pointer_point = None
        candidate = NO_CANDIDATE
        if pointer is not None:
            pointer = (float(pointer[0]), float(pointer[1]))
            pointer_point = self.viewport.from_screen(pointer)
            if polyline is not None:
                poly = self.repository.get_polyline(polyline)
                coords = self.repository.points[list(poly.vertices)]
                candidate = find_candidate(poly, coords, self.viewport, pointer, modifiers, self.config)
        self._snapshot = InteractionSnapshot(modifiers, pointer, pointer_point, candidate, polyline)
        return self._snapshot

    def set_modifiers(self, modifiers: Modifiers) -> InteractionSnapshot:
        """Re-run the search with new modifiers at the last pointer position."""
        s = self._snapshot
        return self.update(s.pointer, modifiers, s.polyline)

    def clear(self) -> None:
        self._snapshot = InteractionSnapshot()

    def resolve_target_point(self) -> Optional[Point]:
        return resolve_target_point(self._snapshot, self.repository)

    def find_equal_angle_point(self) -> Optional[Point]:
        return find_equal_angle_point(self._snapshot, self.repository)

    def endpoints(self) -> Optional[Tuple[Point, Point]]:
        return candidate_endpoints(self._snapshot, self.repository)
