"""Improve-way mode: wires candidate tracking, planning and the helper toggle together.

The host forwards its events here (selection, pointer, modifiers, clicks)
and receives edit batches through its ``CommandSink``.
"""
from __future__ import annotations

from typing import Callable, Iterable, List, Optional, Tuple

from .candidate import CandidateTracker, Modifiers, InteractionSnapshot
from .commands import CommandSink
from .config import ImproveWayConfig
from .diagnostics import WayDiagnostics, half_distance_line, neighbour_links, way_diagnostics
from .helpers_toggle import HelpersToggle
from .logging_utils import get_logger
from .model import LatLon, Point
from .planner import EditPlanner, EditState, PlanResult
from .projection import Projection, Viewport

__all__ = ['ImproveWaySession']


class ImproveWaySession:
    def __init__(self, repository, projection: Projection, viewport: Viewport,
                 sink: Optional[CommandSink] = None,
                 is_outside_world: Optional[Callable[[LatLon], bool]] = None,
                 config: Optional[ImproveWayConfig] = None,
                 redraw: Optional[Callable[[], None]] = None,
                 helpers: Optional[HelpersToggle] = None):
        self.logger = get_logger(f'improveway.session.{self.__class__.__name__}')
        self.config = config or ImproveWayConfig()
        self.repository = repository
        self.projection = projection
        self.viewport = viewport
        self.tracker = CandidateTracker(repository, viewport, self.config.candidate)
        self.planner = EditPlanner(repository, projection, is_outside_world, sink)
        self.helpers = helpers or HelpersToggle(self.config.helpers, redraw)

    @property
    def state(self) -> EditState:
        return self.planner.state

    @property
    def snapshot(self) -> InteractionSnapshot:
        return self.tracker.snapshot

    def enter_mode(self) -> None:
        self.planner.reset()
        self.tracker.clear()
        self.helpers.enter_mode()

    def exit_mode(self) -> None:
        self.planner.reset()
        self.tracker.clear()
        self.helpers.exit_mode()

    def selection_changed(self, selection: Iterable[int]) -> EditState:
        state = self.planner.select(selection)
        if state is EditState.SELECTING:
            self.tracker.clear()
        return state

    def pointer_moved(self, pointer, modifiers: Modifiers = Modifiers()) -> InteractionSnapshot:
        polyline = self.planner.target_polyline if self.state is EditState.IMPROVING else None
        return self.tracker.update(pointer, modifiers, polyline)

    def modifiers_changed(self, modifiers: Modifiers) -> InteractionSnapshot:
        return self.tracker.set_modifiers(modifiers)

    def click(self, pointer=None, modifiers: Optional[Modifiers] = None) -> PlanResult:
        """Commit the edit under the pointer (or the current snapshot)."""
        if pointer is not None or modifiers is not None:
            snap = self.tracker.snapshot
            self.pointer_moved(pointer if pointer is not None else snap.pointer,
                               modifiers if modifiers is not None else snap.modifiers)
        res = self.planner.commit(self.tracker.snapshot)
        if res.ok:
            self.logger.info("%s", res.message)
            # re-pick against the edited geometry at the same pointer
            self.tracker.set_modifiers(self.tracker.snapshot.modifiers)
        return res

    def target_point(self) -> Optional[Point]:
        return self.tracker.resolve_target_point()

    def equal_angle_point(self) -> Optional[Point]:
        return self.tracker.find_equal_angle_point()

    def diagnostics(self) -> Optional[WayDiagnostics]:
        """Diagnostics for the overlay, or None while it is hidden or idle."""
        if self.state is not EditState.IMPROVING or not self.helpers.enabled:
            return None
        return way_diagnostics(self.repository, self.tracker.snapshot, self.projection,
                               self.target_point(), self.helpers.use_original)

    def half_distance_line(self):
        if self.state is not EditState.IMPROVING or not self.helpers.enabled:
            return None
        return half_distance_line(self.tracker.snapshot, self.repository, self.viewport, self.config.render)

    def neighbour_links(self) -> List[Tuple[int, int]]:
        """(polyline, neighbour) links of the candidate vertex in the other polylines using it."""
        if self.state is not EditState.IMPROVING or not self.helpers.enabled:
            return []
        vertex = self.tracker.candidate_node
        if vertex is None or not self.repository.is_live(vertex):
            return []
        return neighbour_links(self.repository, self.planner.target_polyline, vertex)
