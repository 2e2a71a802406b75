"""Value types of the polyline data model.

Vertices and polylines are owned by a repository (see ``repository``); the
types here are immutable snapshots handed to the geometry and planning code.
Vertex <-> polyline relations are plain integer ids, never object pointers.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, NamedTuple, Tuple


class Point(NamedTuple):
    """Projected coordinate."""
    east: float
    north: float


class LatLon(NamedTuple):
    """Geographic coordinate in degrees."""
    lat: float
    lon: float


@dataclass(frozen=True)
class Vertex:
    id: int
    point: Point
    tags: Dict[str, str] = field(default_factory=dict, compare=False)

    @property
    def is_tagged(self) -> bool:
        return bool(self.tags)


@dataclass(frozen=True)
class Polyline:
    """Ordered vertex ids. Closed when the last id repeats the first."""
    id: int
    vertices: Tuple[int, ...]

    @property
    def closed(self) -> bool:
        return len(self.vertices) >= 3 and self.vertices[0] == self.vertices[-1]

    @property
    def real_count(self) -> int:
        """Number of vertex positions, the closing duplicate excluded."""
        n = len(self.vertices)
        return n - 1 if self.closed else n

    def node(self, index: int) -> int:
        return self.vertices[index]

    def node_pairs(self) -> List[Tuple[int, int]]:
        return [(self.vertices[i], self.vertices[i + 1]) for i in range(len(self.vertices) - 1)]

    def index_of(self, vertex: int) -> int:
        """First position of ``vertex`` or -1."""
        for i in range(self.real_count):
            if self.vertices[i] == vertex:
                return i
        return -1

    def occurrences(self, vertex: int) -> int:
        return sum(1 for i in range(self.real_count) if self.vertices[i] == vertex)

    def without(self, vertex: int) -> Tuple[int, ...]:
        """Vertex sequence with every occurrence of ``vertex`` removed.

        A closed polyline stays closed on its (possibly new) first vertex.
        """
        if self.closed:
            kept = [v for v in self.vertices[:-1] if v != vertex]
            return tuple(kept + kept[:1])
        return tuple(v for v in self.vertices if v != vertex)

    def without_first(self, vertex: int) -> Tuple[int, ...]:
        """Vertex sequence with only the first occurrence of ``vertex`` removed."""
        i = self.index_of(vertex)
        if i < 0:
            return self.vertices
        if self.closed:
            kept = list(self.vertices[:-1])
            del kept[i]
            return tuple(kept + kept[:1])
        return self.vertices[:i] + self.vertices[i + 1:]


@dataclass(frozen=True)
class Edge:
    """Segment between ``index`` and ``index + 1`` of one polyline.

    ``first`` and ``second`` are derived from the polyline when the edge is
    built with :meth:`of` and are only carried along for identity checks.
    """
    polyline: int
    index: int
    first: int
    second: int

    @classmethod
    def of(cls, polyline: Polyline, index: int) -> 'Edge':
        if not 0 <= index < len(polyline.vertices) - 1:
            raise IndexError(f"edge index {index} out of range for polyline {polyline.id}")
        return cls(polyline.id, index, polyline.vertices[index], polyline.vertices[index + 1])

    @property
    def upper_index(self) -> int:
        return self.index + 1

    def same_edge(self, other: 'Edge') -> bool:
        return {self.first, self.second} == {other.first, other.second}


__all__ = ['Point', 'LatLon', 'Vertex', 'Polyline', 'Edge']
