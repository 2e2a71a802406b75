"""Edit planning: turn a committed click into a self-consistent batch of operations.

Planning functions return a ``PlanResult`` that also unpacks as
``(ok, message, batch)``. Refusals carry a user-facing message and no batch;
the repository is only ever read here.
"""
from __future__ import annotations

import time
from collections import defaultdict
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterable, List, Optional

from .candidate import InteractionSnapshot, resolve_target
from .commands import (CommandSink, CreateVertex, DeleteVertex, EditBatch, InsertVertex, MoveVertex,
                       NewVertex, RemoveVertexFromPolyline, ReplacePolylineVertices,
                       delete_label, detach_label, insert_label, move_label)
from .logging_utils import get_logger
from .model import Edge, LatLon, Point
from .projection import Projection, is_outside_world as _default_outside_world
from .repository import validate_sequence
from .stats import OpStats, format_stats_table

logger = get_logger('improveway.planner')

MSG_OUTSIDE_WORLD = "Cannot add a node outside of the world."
MSG_TAGGED = "Cannot delete node that has tags"
MSG_TOO_FEW_NODES = "Cannot remove node: the way would have too few nodes"
MSG_SEGMENT_GONE = "Segment is no longer part of the way"
MSG_NODE_GONE = "Node is no longer part of the way"

__all__ = [
    'EditState', 'PlanResult', 'find_edge_occurrences', 'plan_insert', 'plan_delete',
    'plan_move', 'EditPlanner', 'MSG_OUTSIDE_WORLD', 'MSG_TAGGED', 'MSG_TOO_FEW_NODES',
    'MSG_NODE_GONE', 'MSG_SEGMENT_GONE',
]


class EditState(str, Enum):
    SELECTING = "SELECTING"
    IMPROVING = "IMPROVING"


@dataclass(frozen=True)
class PlanResult:
    ok: bool
    message: str = ''
    batch: Optional[EditBatch] = None
    kind: str = ''

    def __iter__(self):
        return iter((self.ok, self.message, self.batch))

    @property
    def refused(self) -> bool:
        return not self.ok and bool(self.message)


NOOP = PlanResult(False)


def _refuse(kind: str, message: str) -> PlanResult:
    logger.info("%s refused: %s", kind, message)
    return PlanResult(False, message, None, kind)


def find_edge_occurrences(repository, first: int, second: int) -> List[Edge]:
    """Every occurrence of the edge {first, second} in every polyline.

    Only polylines referencing both endpoints are inspected. Within one
    polyline occurrences are listed by descending index so that inserting in
    list order never shifts a later entry.
    """
    found: List[Edge] = []
    for pid in repository.polylines_containing_edge(first, second):
        pairs = repository.get_node_pairs(pid)
        hits = [i for i, (a, b) in enumerate(pairs)
                if (a == first and b == second) or (a == second and b == first)]
        for i in reversed(hits):
            found.append(Edge(pid, i, pairs[i][0], pairs[i][1]))
    return found


def _outside(point: Point, projection: Projection, is_outside_world) -> bool:
    coord: LatLon = projection.to_geo(point)
    return bool(is_outside_world(coord))


def plan_insert(repository, edge: Edge, target: Point, projection: Projection,
                is_outside_world: Callable[[LatLon], bool] = _default_outside_world) -> PlanResult:
    """Insert one new vertex at ``target`` into every polyline containing ``edge``."""
    if _outside(target, projection, is_outside_world):
        return _refuse('insert', MSG_OUTSIDE_WORLD)
    edges = find_edge_occurrences(repository, edge.first, edge.second)
    if not edges:
        return _refuse('insert', MSG_SEGMENT_GONE)
    new = NewVertex(Point(float(target[0]), float(target[1])))
    ops = [CreateVertex(new)] + [InsertVertex(e, new) for e in edges]
    n_ways = len({e.polyline for e in edges})
    batch = EditBatch(insert_label(n_ways), n_ways, tuple(ops))
    logger.debug("insert into %d segment(s) of %d way(s)", len(edges), n_ways)
    return PlanResult(True, batch.label, batch, 'insert')


def plan_delete(repository, polyline: int, vertex: int) -> PlanResult:
    """Remove ``vertex`` from the target polyline, deleting it when nothing else uses it.

    A vertex used elsewhere (other polylines, or several positions) only loses
    its first position in the target. A vertex used exactly once is deleted
    unless it carries tags, which is refused.
    """
    target = repository.get_polyline(polyline)
    if vertex not in target.vertices:
        return _refuse('delete', MSG_NODE_GONE)
    if repository.reference_count(vertex) != 1:
        seq = target.without_first(vertex)
        try:
            validate_sequence(seq)
        except ValueError:
            return _refuse('delete', MSG_TOO_FEW_NODES)
        batch = EditBatch(detach_label(), 1, (ReplacePolylineVertices(polyline, seq),))
        return PlanResult(True, batch.label, batch, 'detach')
    if repository.get_vertex(vertex).is_tagged:
        return _refuse('delete', MSG_TAGGED)
    try:
        validate_sequence(target.without(vertex))
    except ValueError:
        return _refuse('delete', MSG_TOO_FEW_NODES)
    batch = EditBatch(delete_label(), 1, (RemoveVertexFromPolyline(polyline, vertex), DeleteVertex(vertex)))
    return PlanResult(True, batch.label, batch, 'delete')


def plan_move(repository, vertex: int, target: Point, projection: Projection,
              is_outside_world: Callable[[LatLon], bool] = _default_outside_world) -> PlanResult:
    """Move ``vertex`` onto ``target``; a zero delta still yields an operation."""
    if _outside(target, projection, is_outside_world):
        return _refuse('move', MSG_OUTSIDE_WORLD)
    if not repository.is_live(vertex) or not repository.get_referrers(vertex):
        return _refuse('move', MSG_NODE_GONE)
    p = repository.get_point(vertex)
    delta = (float(target[0]) - p.east, float(target[1]) - p.north)
    batch = EditBatch(move_label(), len(repository.get_referrers(vertex)), (MoveVertex(vertex, delta),))
    return PlanResult(True, batch.label, batch, 'move')


class EditPlanner:
    """SELECTING / IMPROVING state machine producing edit batches.

    Parameters
    ----------
    repository : PolylineRepository-like
        Read access to vertices and polylines.
    projection : Projection
        Converts planned points to geographic coordinates for the world check.
    is_outside_world : callable, optional
        Host predicate over ``LatLon``; defaults to the mercator world.
    sink : CommandSink, optional
        Receives every successful batch.
    """

    def __init__(self, repository, projection: Projection,
                 is_outside_world: Optional[Callable[[LatLon], bool]] = None,
                 sink: Optional[CommandSink] = None):
        self.logger = get_logger(f'improveway.planner.{self.__class__.__name__}')
        self.repository = repository
        self.projection = projection
        self.is_outside_world = is_outside_world or _default_outside_world
        self.sink = sink
        self.state = EditState.SELECTING
        self.target_polyline: Optional[int] = None
        self._op_stats = defaultdict(OpStats)

    # --- state machine ---
    def select(self, selection: Iterable[int]) -> EditState:
        """Report the host selection; exactly one known polyline starts IMPROVING."""
        sel = list(selection or ())
        known = set(self.repository.polyline_ids())
        if len(sel) == 1 and sel[0] in known:
            self.state = EditState.IMPROVING
            self.target_polyline = sel[0]
        else:
            self.reset()
        self.logger.debug("selection %s -> %s", sel, self.state.value)
        return self.state

    def reset(self) -> None:
        self.state = EditState.SELECTING
        self.target_polyline = None

    # --- planning ---
    def plan(self, snapshot: InteractionSnapshot) -> PlanResult:
        """Plan the edit for a committed click without submitting it."""
        if self.state is not EditState.IMPROVING or snapshot.polyline != self.target_polyline:
            return NOOP
        cand = snapshot.candidate
        mods = snapshot.modifiers
        if mods.insert_mode and cand.is_edge:
            kind = 'insert'
        elif mods.delete_mode and cand.is_vertex:
            kind = 'delete'
        elif cand.is_vertex:
            kind = 'move'
        else:
            return NOOP
        target = resolve_target(snapshot, self.repository)
        if target is None:
            return NOOP
        stats = self._op_stats[kind]
        stats.attempts += 1
        t0 = time.perf_counter()
        if target.source == 'fallback':
            stats.fallback_used += 1
        if kind == 'insert':
            res = plan_insert(self.repository, cand.edge, target.point, self.projection, self.is_outside_world)
        elif kind == 'delete':
            res = plan_delete(self.repository, self.target_polyline, cand.vertex)
        else:
            res = plan_move(self.repository, cand.vertex, target.point, self.projection, self.is_outside_world)
        if res.ok:
            stats.success += 1
            stats.operations_emitted += len(res.batch)
        elif res.refused:
            stats.refused += 1
        else:
            stats.noop += 1
        self.logger.debug("%s planned in %.3f ms: ok=%s %s", kind, (time.perf_counter() - t0) * 1000.0,
                          res.ok, res.message)
        return res

    def commit(self, snapshot: InteractionSnapshot) -> PlanResult:
        """Plan the edit and hand a successful batch to the sink."""
        res = self.plan(snapshot)
        if res.ok and self.sink is not None:
            self.sink.submit(res.batch)
        return res

    # --- stats ---
    def stats_summary(self):
        return {k: v.to_dict() for k, v in self._op_stats.items()}

    def format_stats(self) -> str:
        return format_stats_table(self.stats_summary())
