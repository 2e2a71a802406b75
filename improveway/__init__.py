"""Public package API for the improveway polyline editing engine.

This facade gives a flat import surface on top of the implementation
package ``improveway.core``.

Example
-------
    from improveway import PolylineRepository, ImproveWaySession, Modifiers

The deeper modules (``improveway.core.*``) are considered internal and may
change; rely on this layer for public symbols.
"""
import logging as _logging

try:
    from importlib.metadata import version as _pkg_version, PackageNotFoundError as _NotFound
    try:
        __version__ = _pkg_version("improveway")  # populated when installed
    except _NotFound:  # pragma: no cover - source checkout
        __version__ = "0.0.0+dev"
except ImportError:  # pragma: no cover
    __version__ = "0.0.0+dev"

_logging.getLogger(__name__).addHandler(_logging.NullHandler())

from .core import geometry, diagnostics, constants  # noqa: E402
from .core.model import Point, LatLon, Vertex, Polyline, Edge  # noqa: E402
from .core.repository import PolylineRepository, BatchError  # noqa: E402
from .core.commands import (NewVertex, CreateVertex, InsertVertex, RemoveVertexFromPolyline,  # noqa: E402
                            DeleteVertex, MoveVertex, ReplacePolylineVertices, EditBatch,
                            CommandSink, RecordingSink)
from .core.projection import (WebMercator, IdentityProjection, LinearViewport,  # noqa: E402
                              WorldBounds, is_outside_world)
from .core.config import CandidateConfig, HelperConfig, RenderConfig, ImproveWayConfig  # noqa: E402
from .core.candidate import Modifiers, Candidate, InteractionSnapshot, CandidateTracker  # noqa: E402
from .core.planner import EditState, PlanResult, EditPlanner, plan_insert, plan_delete, plan_move  # noqa: E402
from .core.helpers_toggle import HelpersToggle, CancellableTask  # noqa: E402
from .core.session import ImproveWaySession  # noqa: E402
from .core.logging_utils import get_logger, configure_logging  # noqa: E402

# Fine-grained geometry exports
fix_heading = geometry.fix_heading
turn_angle = geometry.turn_angle
equal_angle_point = geometry.equal_angle_point
line_line_intersection = geometry.line_line_intersection

__all__ = [
    '__version__',
    # model
    'Point', 'LatLon', 'Vertex', 'Polyline', 'Edge', 'PolylineRepository', 'BatchError',
    # operations
    'NewVertex', 'CreateVertex', 'InsertVertex', 'RemoveVertexFromPolyline', 'DeleteVertex',
    'MoveVertex', 'ReplacePolylineVertices', 'EditBatch', 'CommandSink', 'RecordingSink',
    # projection
    'WebMercator', 'IdentityProjection', 'LinearViewport', 'WorldBounds', 'is_outside_world',
    # config
    'CandidateConfig', 'HelperConfig', 'RenderConfig', 'ImproveWayConfig',
    # interaction / planning
    'Modifiers', 'Candidate', 'InteractionSnapshot', 'CandidateTracker',
    'EditState', 'PlanResult', 'EditPlanner', 'plan_insert', 'plan_delete', 'plan_move',
    'HelpersToggle', 'CancellableTask', 'ImproveWaySession',
    # geometry
    'fix_heading', 'turn_angle', 'equal_angle_point', 'line_line_intersection',
    'geometry', 'diagnostics', 'constants',
    # logging
    'get_logger', 'configure_logging',
]
