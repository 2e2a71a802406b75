"""Configuration objects for the improve-way engine and its rendering collaborator."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Tuple

from .constants import (DEFAULT_NODE_THRESHOLD_PX, DEFAULT_SEGMENT_THRESHOLD_PX,
                        DEFAULT_LONG_KEYPRESS_TIME)

RGBA = Tuple[int, int, int, int]


@dataclass(frozen=True)
class CandidateConfig:
    node_threshold_px: float = DEFAULT_NODE_THRESHOLD_PX
    segment_threshold_px: float = DEFAULT_SEGMENT_THRESHOLD_PX


@dataclass(frozen=True)
class HelperConfig:
    # seconds a key must be held before a release restores the previous state
    long_keypress_time: float = DEFAULT_LONG_KEYPRESS_TIME


@dataclass(frozen=True)
class RenderConfig:
    """Colors, strokes and pixel sizes for the helper overlay.

    The geometry core never reads these; they are handed to whatever draws the
    arcs, labels and circles.
    """
    turn_color: RGBA = (240, 240, 240, 200)
    distance_color: RGBA = (240, 240, 240, 120)
    arc_fill_color: RGBA = (200, 200, 200, 50)
    arc_stroke_color: RGBA = (240, 240, 240, 150)
    perpendicular_line_color: RGBA = (240, 240, 240, 150)
    equal_angle_circle_color: RGBA = (240, 240, 240, 150)
    arc_stroke: str = '1'
    perpendicular_line_stroke: str = '1 6'
    equal_angle_circle_stroke: str = '1'
    arc_radius_px: int = 200
    perpendicular_length_px: int = 100
    turn_text_distance_px: int = 15
    distance_text_distance_px: int = 15
    equal_angle_circle_radius_px: int = 15


# preference key -> (section, attribute, converter)
_PREFERENCE_KEYS = {
    'improvewayaccuracy.helper-arc-radius': ('render', 'arc_radius_px', int),
    'improvewayaccuracy.helper-perpendicular-line-length': ('render', 'perpendicular_length_px', int),
    'improvewayaccuracy.helper-turn-text-distance': ('render', 'turn_text_distance_px', int),
    'improvewayaccuracy.helper-distance-text-distance': ('render', 'distance_text_distance_px', int),
    'improvewayaccuracy.helper-equal-angle-circle-radius': ('render', 'equal_angle_circle_radius_px', int),
    'improvewayaccuracy.stroke.helper-arc': ('render', 'arc_stroke', str),
    'improvewayaccuracy.stroke.helper-perpendicular-line': ('render', 'perpendicular_line_stroke', str),
    'improvewayaccuracy.stroke.helper-eual-angle-circle': ('render', 'equal_angle_circle_stroke', str),
    # stored in milliseconds
    'improvewayaccuracy.long-keypress-time': ('helpers', 'long_keypress_time', lambda v: int(v) / 1000.0),
    'improvewayaccuracy.node-threshold': ('candidate', 'node_threshold_px', float),
    'improvewayaccuracy.segment-threshold': ('candidate', 'segment_threshold_px', float),
}


@dataclass(frozen=True)
class ImproveWayConfig:
    """Unified configuration.

    Attributes
    ----------
    candidate : CandidateConfig
        Pixel radii for picking the candidate vertex or edge.
    helpers : HelperConfig
        Timing of the long-press helper toggle.
    render : RenderConfig
        Values for the rendering collaborator only.
    extras : dict
        Unrecognised preference entries, kept for the host.
    """
    candidate: CandidateConfig = field(default_factory=CandidateConfig)
    helpers: HelperConfig = field(default_factory=HelperConfig)
    render: RenderConfig = field(default_factory=RenderConfig)
    extras: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_preferences(cls, prefs: Optional[Mapping[str, Any]] = None) -> 'ImproveWayConfig':
        """Build a configuration from a flat preference mapping.

        Raises ValueError when a known key carries a value that cannot be converted.
        """
        sections: Dict[str, Dict[str, Any]] = {'candidate': {}, 'helpers': {}, 'render': {}}
        extras: Dict[str, Any] = {}
        for key, value in (prefs or {}).items():
            spec = _PREFERENCE_KEYS.get(key)
            if spec is None:
                extras[key] = value
                continue
            section, attr, convert = spec
            try:
                sections[section][attr] = convert(value)
            except (TypeError, ValueError) as exc:
                raise ValueError(f"invalid value for preference {key!r}: {value!r}") from exc
        return cls(candidate=CandidateConfig(**sections['candidate']),
                   helpers=HelperConfig(**sections['helpers']),
                   render=RenderConfig(**sections['render']),
                   extras=extras)


__all__ = ['CandidateConfig', 'HelperConfig', 'RenderConfig', 'ImproveWayConfig']
