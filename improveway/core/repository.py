"""In-memory arena of vertices and polylines with an explicit referrer index.

This is the reference host collaborator: the planner reads it through
``get_vertex``, ``get_polyline``, ``get_referrers`` and ``get_node_pairs`` and
only mutates it by handing an ``EditBatch`` to :meth:`PolylineRepository.apply`.
"""
from __future__ import annotations

from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Set, Tuple

import numpy as np

from .commands import (CreateVertex, DeleteVertex, EditBatch, InsertVertex, MoveVertex,
                       NewVertex, RemoveVertexFromPolyline, ReplacePolylineVertices)
from .logging_utils import get_logger
from .model import Point, Polyline, Vertex

logger = get_logger('improveway.repository')


class BatchError(ValueError):
    """Raised when a batch cannot be applied; the repository is left unchanged."""


def validate_sequence(seq: Sequence[int]) -> None:
    """Check the polyline shape invariants, raising ValueError on violation."""
    if len(seq) < 2:
        raise ValueError("polyline needs at least 2 vertices")
    if seq[0] == seq[-1]:
        if len(set(seq)) < 3:
            raise ValueError("closed polyline needs at least 3 distinct vertices")


class PolylineRepository:
    """Vertex arena plus polylines referencing vertices by id.

    Parameters
    ----------
    points : (N,2) float array-like, optional
        Initial vertex coordinates; vertex ids are the row indices.

    Deleted vertices keep their row, filled with NaN (tombstone), so ids stay
    stable.
    """

    def __init__(self, points=None):
        self.logger = get_logger(f'improveway.repository.{self.__class__.__name__}')
        arr = np.empty((0, 2), dtype=np.float64) if points is None else np.asarray(points, dtype=np.float64)
        if arr.ndim != 2 or arr.shape[1] != 2:
            raise ValueError("points must have shape (N,2)")
        self._points = np.ascontiguousarray(arr.copy())
        self._tags: Dict[int, Dict[str, str]] = {}
        self._polylines: Dict[int, List[int]] = {}
        self._referrers: Dict[int, Set[int]] = {}
        self._next_polyline = 0

    # --- construction ---
    def add_vertex(self, point, tags: Optional[Mapping[str, str]] = None) -> int:
        p = np.asarray(point, dtype=np.float64).reshape(1, 2)
        self._points = np.ascontiguousarray(np.vstack([self._points, p]))
        vid = int(self._points.shape[0] - 1)
        if tags:
            self._tags[vid] = dict(tags)
        return vid

    def add_polyline(self, vertices: Iterable[int]) -> int:
        seq = [int(v) for v in vertices]
        validate_sequence(seq)
        for v in seq:
            self._require_live(v)
        pid = self._next_polyline
        self._next_polyline += 1
        self._polylines[pid] = seq
        self._index_polyline(pid)
        return pid

    def set_tags(self, vertex: int, tags: Mapping[str, str]) -> None:
        self._require_live(vertex)
        if tags:
            self._tags[vertex] = dict(tags)
        else:
            self._tags.pop(vertex, None)

    # --- queries ---
    @property
    def points(self) -> np.ndarray:
        return self._points

    def is_live(self, vertex: int) -> bool:
        return 0 <= vertex < self._points.shape[0] and not np.isnan(self._points[vertex, 0])

    def get_point(self, vertex: int) -> Point:
        self._require_live(vertex)
        row = self._points[vertex]
        return Point(float(row[0]), float(row[1]))

    def get_vertex(self, vertex: int) -> Vertex:
        return Vertex(vertex, self.get_point(vertex), dict(self._tags.get(vertex, {})))

    def get_polyline(self, polyline: int) -> Polyline:
        try:
            return Polyline(polyline, tuple(self._polylines[polyline]))
        except KeyError:
            raise KeyError(f"unknown polyline {polyline}") from None

    def polyline_ids(self) -> List[int]:
        return sorted(self._polylines)

    def get_referrers(self, vertex: int) -> List[int]:
        """Ids of the polylines referencing ``vertex``, ascending."""
        return sorted(self._referrers.get(vertex, ()))

    def get_node_pairs(self, polyline: int) -> List[Tuple[int, int]]:
        return self.get_polyline(polyline).node_pairs()

    def polylines_containing_edge(self, first: int, second: int) -> List[int]:
        """Polylines holding the segment first-second in either direction, ascending."""
        edge = {first, second}
        both = set(self.get_referrers(first)) & set(self.get_referrers(second))
        return [pid for pid in sorted(both)
                if any({a, b} == edge for a, b in self.get_node_pairs(pid))]

    def reference_count(self, vertex: int) -> int:
        """Occurrences of ``vertex`` over all referrers, closing duplicates counted once."""
        return sum(self.get_polyline(pid).occurrences(vertex) for pid in self.get_referrers(vertex))

    def coords(self, polyline: Polyline) -> np.ndarray:
        """(real_count, 2) positions of a polyline, closing duplicate excluded."""
        ids = np.asarray(polyline.vertices[:polyline.real_count], dtype=np.int64)
        return self._points[ids]

    # --- mutation through batches ---
    def apply(self, batch: EditBatch) -> Dict[NewVertex, int]:
        """Apply every operation of ``batch`` or none of them.

        Operations run against a staged copy which replaces the live state only
        once the whole batch succeeded. Returns the ids assigned to new vertices.
        """
        staged = self.copy()
        created: Dict[NewVertex, int] = {}
        for pos, op in enumerate(batch.operations):
            try:
                staged._apply_one(op, created)
            except (ValueError, KeyError, IndexError) as exc:
                self.logger.info("rejected batch %r at operation %d: %s", batch.label, pos, exc)
                raise BatchError(f"operation {pos} ({type(op).__name__}) failed: {exc}") from exc
        self._points = staged._points
        self._tags = staged._tags
        self._polylines = staged._polylines
        self._referrers = staged._referrers
        self.logger.debug("applied batch %r (%d ops)", batch.label, len(batch.operations))
        return created

    def copy(self) -> 'PolylineRepository':
        other = PolylineRepository.__new__(PolylineRepository)
        other.logger = self.logger
        other._points = self._points.copy()
        other._tags = {k: dict(v) for k, v in self._tags.items()}
        other._polylines = {k: list(v) for k, v in self._polylines.items()}
        other._referrers = {k: set(v) for k, v in self._referrers.items()}
        other._next_polyline = self._next_polyline
        return other

    # --- internals ---
    def _require_live(self, vertex: int) -> None:
        if not self.is_live(int(vertex)):
            raise KeyError(f"unknown vertex {vertex}")

    def _index_polyline(self, pid: int) -> None:
        for v in self._polylines[pid]:
            self._referrers.setdefault(v, set()).add(pid)

    def _unindex_polyline(self, pid: int) -> None:
        for v in set(self._polylines[pid]):
            refs = self._referrers.get(v)
            if refs is not None:
                refs.discard(pid)
                if not refs:
                    del self._referrers[v]

    def _set_sequence(self, pid: int, seq: List[int]) -> None:
        validate_sequence(seq)
        for v in seq:
            self._require_live(v)
        self._unindex_polyline(pid)
        self._polylines[pid] = seq
        self._index_polyline(pid)

    def _resolve(self, ref, created: Dict[NewVertex, int]) -> int:
        if isinstance(ref, NewVertex):
            if ref not in created:
                raise KeyError("new vertex used before its CreateVertex operation")
            return created[ref]
        return int(ref)

    def _apply_one(self, op, created: Dict[NewVertex, int]) -> None:
        if isinstance(op, CreateVertex):
            if op.vertex in created:
                raise ValueError("new vertex created twice")
            created[op.vertex] = self.add_vertex(op.vertex.point, op.vertex.tags)
        elif isinstance(op, InsertVertex):
            vid = self._resolve(op.vertex, created)
            seq = list(self._polylines[op.edge.polyline])
            i = op.edge.index
            if not 0 <= i < len(seq) - 1 or {seq[i], seq[i + 1]} != {op.edge.first, op.edge.second}:
                raise ValueError(f"edge {op.edge} no longer present in polyline {op.edge.polyline}")
            seq.insert(op.edge.upper_index, vid)
            self._set_sequence(op.edge.polyline, seq)
        elif isinstance(op, RemoveVertexFromPolyline):
            poly = self.get_polyline(op.polyline)
            if op.vertex not in poly.vertices:
                raise ValueError(f"vertex {op.vertex} not in polyline {op.polyline}")
            kept = poly.without(op.vertex)
            self._set_sequence(op.polyline, list(kept))
        elif isinstance(op, DeleteVertex):
            self._require_live(op.vertex)
            if self._referrers.get(op.vertex):
                raise ValueError(f"vertex {op.vertex} is still referenced")
            self._points[op.vertex] = np.nan
            self._tags.pop(op.vertex, None)
        elif isinstance(op, MoveVertex):
            self._require_live(op.vertex)
            self._points[op.vertex] += np.asarray(op.delta, dtype=np.float64)
        elif isinstance(op, ReplacePolylineVertices):
            self.get_polyline(op.polyline)
            self._set_sequence(op.polyline, [int(v) for v in op.vertices])
        else:
            raise ValueError(f"unsupported operation {op!r}")


__all__ = ['PolylineRepository', 'BatchError', 'validate_sequence']
