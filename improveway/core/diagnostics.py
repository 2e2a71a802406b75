"""Turn-angle and segment-length diagnostics along the target polyline.

The values here feed the helper overlay (arcs, labels, helper lines); drawing
them is the host's business.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Tuple

from .candidate import InteractionSnapshot, candidate_endpoints
from .config import RenderConfig
from .geometry import great_circle_distance, heading, perpendicular_bisector, turn_angle
from .logging_utils import get_logger
from .model import Point
from .projection import Projection, ScreenPoint, Viewport

logger = get_logger('improveway.diagnostics')

__all__ = [
    'SegmentInfo', 'TurnInfo', 'WayDiagnostics', 'way_diagnostics', 'arc_sweep',
    'label_angle', 'neighbour_links', 'half_distance_line',
]


def arc_sweep(out_heading: float, turn: float) -> Tuple[float, float]:
    """(start, extent) in degrees of the pie drawn at a vertex."""
    return -out_heading + (90.0 if turn >= 0 else -90.0), turn


def label_angle(in_heading: float, turn: float) -> float:
    """Direction in degrees to displace the turn label from its vertex."""
    return in_heading + turn / 2.0 + (90.0 if turn >= 0 else -90.0)


@dataclass(frozen=True)
class SegmentInfo:
    start: Point
    end: Point
    heading: float
    distance: float   # metres


@dataclass(frozen=True)
class TurnInfo:
    at: Point
    vertex: Optional[int]   # None for the preview point
    in_heading: float
    out_heading: float
    turn: float

    @property
    def magnitude(self) -> float:
        return abs(self.turn)

    @property
    def arc(self) -> Tuple[float, float]:
        return arc_sweep(self.out_heading, self.turn)

    @property
    def label_angle(self) -> float:
        return label_angle(self.in_heading, self.turn)


@dataclass(frozen=True)
class WayDiagnostics:
    segments: Tuple[SegmentInfo, ...]
    turns: Tuple[TurnInfo, ...]

    @property
    def total_length(self) -> float:
        return sum(s.distance for s in self.segments)


def way_diagnostics(repository, snapshot: InteractionSnapshot, projection: Projection,
                    target: Optional[Point] = None, use_original: bool = False) -> WayDiagnostics:
    """Headings, turns and lengths along the snapshot's polyline.

    Unless ``use_original`` is set the pending edit is previewed: ``target``
    is inserted into the candidate edge (insert), replaces the candidate
    vertex (move), or the candidate vertex is skipped (delete). Closed
    polylines revisit their second vertex so the first vertex gets a turn too.
    """
    if snapshot.polyline is None:
        return WayDiagnostics((), ())
    poly = repository.get_polyline(snapshot.polyline)
    mods = snapshot.modifiers
    cand = snapshot.candidate
    nodes_count = len(poly.vertices)
    end_loop = nodes_count + 1 if poly.closed else nodes_count
    preview = not use_original

    segments: List[SegmentInfo] = []
    turns: List[TurnInfo] = []
    inserted = False
    counter = 0
    last_coor = last_pos = last_vid = None
    last_heading = 0.0
    i = 0
    while i < end_loop:
        idx = 1 if i == nodes_count else i
        vid = poly.node(idx)
        if (preview and target is not None and mods.insert and not inserted and cand.is_edge
                and cand.edge.polyline == poly.id and idx == cand.edge.upper_index):
            pos, vid = target, None
            inserted = True
            step = 0   # visit this position again for the real vertex
        elif preview and target is not None and not mods.delete and not mods.insert and vid == cand.vertex:
            pos, vid, step = target, None, 1
        elif preview and mods.delete and not mods.insert and vid == cand.vertex:
            i += 1
            continue
        else:
            pos, step = repository.get_point(vid), 1
        coor = projection.to_geo(pos)
        if counter >= 1:
            h = heading(last_coor, coor)
            if counter >= 2:
                turns.append(TurnInfo(last_pos, last_vid, last_heading, h, turn_angle(last_heading, h)))
            # the revisit of a closed polyline only contributes a turn
            if i != nodes_count:
                segments.append(SegmentInfo(last_pos, pos, h, great_circle_distance(last_coor, coor)))
            last_heading = h
        last_coor, last_pos, last_vid = coor, pos, vid
        counter += 1
        i += step
    return WayDiagnostics(tuple(segments), tuple(turns))


def neighbour_links(repository, polyline: int, vertex: int) -> List[Tuple[int, int]]:
    """(polyline, neighbour) pairs adjacent to ``vertex`` in every other referrer."""
    links: List[Tuple[int, int]] = []
    for pid in repository.get_referrers(vertex):
        if pid == polyline:
            continue
        nodes = repository.get_polyline(pid).vertices
        for i, v in enumerate(nodes):
            if v != vertex:
                continue
            if i > 0:
                links.append((pid, nodes[i - 1]))
            if i < len(nodes) - 1:
                links.append((pid, nodes[i + 1]))
    return links


def half_distance_line(snapshot: InteractionSnapshot, repository, viewport: Viewport,
                       render: RenderConfig = RenderConfig()) -> Optional[Tuple[ScreenPoint, ScreenPoint]]:
    """Screen-space perpendicular through the midpoint of the candidate's endpoints.

    Hidden while deleting.
    """
    mods = snapshot.modifiers
    if mods.delete and not mods.insert:
        return None
    ends = candidate_endpoints(snapshot, repository)
    if ends is None:
        return None
    s1 = viewport.to_screen(ends[0])
    s2 = viewport.to_screen(ends[1])
    a, b = perpendicular_bisector(s1, s2, render.perpendicular_length_px)
    return (a.east, a.north), (b.east, b.north)
