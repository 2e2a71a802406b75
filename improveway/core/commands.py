"""Edit operations emitted by the planner and the sink contract that receives them.

The engine only builds these values. Applying them (and recording undo
history) is the host's job; ``repository.PolylineRepository.apply`` is the
reference implementation.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from gettext import ngettext
from typing import Dict, List, Optional, Protocol, Tuple, Union

from .model import Edge, Point


@dataclass(frozen=True, eq=False)
class NewVertex:
    """Placeholder for a vertex the host creates when applying the batch.

    Compared by identity: every operation of a batch holding the same object
    refers to the same new vertex.
    """
    point: Point
    tags: Dict[str, str] = field(default_factory=dict)


VertexRef = Union[int, NewVertex]


@dataclass(frozen=True)
class CreateVertex:
    vertex: NewVertex


@dataclass(frozen=True)
class InsertVertex:
    """Insert ``vertex`` between the endpoints of ``edge`` (at ``edge.upper_index``)."""
    edge: Edge
    vertex: VertexRef


@dataclass(frozen=True)
class RemoveVertexFromPolyline:
    polyline: int
    vertex: int


@dataclass(frozen=True)
class DeleteVertex:
    """Delete an unreferenced vertex from the repository."""
    vertex: int


@dataclass(frozen=True)
class MoveVertex:
    vertex: int
    delta: Tuple[float, float]


@dataclass(frozen=True)
class ReplacePolylineVertices:
    polyline: int
    vertices: Tuple[int, ...]


EditOperation = Union[CreateVertex, InsertVertex, RemoveVertexFromPolyline,
                      DeleteVertex, MoveVertex, ReplacePolylineVertices]


@dataclass(frozen=True)
class EditBatch:
    """Ordered operations the host applies as one undoable transaction.

    ``count`` is the number of polylines the edit touches, used by hosts to
    pluralize their own messages.
    """
    label: str
    count: int
    operations: Tuple[EditOperation, ...]

    def __len__(self) -> int:
        return len(self.operations)

    def of_type(self, op_type) -> List[EditOperation]:
        return [op for op in self.operations if isinstance(op, op_type)]


def insert_label(count: int) -> str:
    return ngettext("Add a new node to way", "Add a new node to {0} ways", count).format(count)


def delete_label() -> str:
    return "Delete node"


def detach_label() -> str:
    return "Remove node from way"


def move_label() -> str:
    return "Move node"


class CommandSink(Protocol):
    def submit(self, batch: EditBatch) -> None:
        ...


class RecordingSink:
    """Sink keeping every submitted batch, optionally applying it to a repository."""

    def __init__(self, repository=None):
        self.repository = repository
        self.batches: List[EditBatch] = []

    def submit(self, batch: EditBatch) -> None:
        if self.repository is not None:
            self.repository.apply(batch)
        self.batches.append(batch)

    @property
    def last(self) -> Optional[EditBatch]:
        return self.batches[-1] if self.batches else None


__all__ = [
    'NewVertex', 'VertexRef', 'CreateVertex', 'InsertVertex', 'RemoveVertexFromPolyline',
    'DeleteVertex', 'MoveVertex', 'ReplacePolylineVertices', 'EditOperation', 'EditBatch',
    'insert_label', 'delete_label', 'detach_label', 'move_label', 'CommandSink', 'RecordingSink',
]
