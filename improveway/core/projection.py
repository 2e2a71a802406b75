"""Coordinate conversions between geographic, projected and screen space.

Hosts provide their own implementations of the ``Projection`` and
``Viewport`` contracts; ``WebMercator`` and ``LinearViewport`` are
straightforward ones used by tests and scripts.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Protocol, Tuple

import numpy as np

from .constants import EARTH_RADIUS_M, MERCATOR_MAX_LAT
from .model import LatLon, Point

ScreenPoint = Tuple[float, float]


class Projection(Protocol):
    def to_geo(self, point: Point) -> LatLon:
        ...

    def from_geo(self, coord: LatLon) -> Point:
        ...


class Viewport(Protocol):
    def to_screen(self, point: Point) -> ScreenPoint:
        ...

    def from_screen(self, screen: ScreenPoint) -> Point:
        ...


class WebMercator:
    """Spherical mercator (EPSG:3857) in metres."""

    radius = EARTH_RADIUS_M

    def to_geo(self, point: Point) -> LatLon:
        lon = math.degrees(point[0] / self.radius)
        lat = math.degrees(2.0 * math.atan(math.exp(point[1] / self.radius)) - math.pi / 2.0)
        return LatLon(lat, lon)

    def from_geo(self, coord: LatLon) -> Point:
        lat = max(-90.0, min(90.0, coord[0]))
        east = self.radius * math.radians(coord[1])
        # poles map to +-inf; clamp so the result stays finite
        lat_r = math.radians(max(-89.999999, min(89.999999, lat)))
        north = self.radius * math.log(math.tan(math.pi / 4.0 + lat_r / 2.0))
        return Point(east, north)


class IdentityProjection:
    """Treats projected coordinates as degrees (east = lon, north = lat)."""

    def to_geo(self, point: Point) -> LatLon:
        return LatLon(float(point[1]), float(point[0]))

    def from_geo(self, coord: LatLon) -> Point:
        return Point(float(coord[1]), float(coord[0]))


@dataclass(frozen=True)
class LinearViewport:
    """Screen = (projected - origin) * scale, with the screen y axis pointing down.

    ``origin`` is the projected coordinate drawn at screen pixel (0, 0);
    ``scale`` is pixels per projected unit.
    """
    origin: Point = Point(0.0, 0.0)
    scale: float = 1.0

    def __post_init__(self):
        if not self.scale > 0:
            raise ValueError("scale must be positive")

    def to_screen(self, point: Point) -> ScreenPoint:
        return ((point[0] - self.origin[0]) * self.scale, (self.origin[1] - point[1]) * self.scale)

    def from_screen(self, screen: ScreenPoint) -> Point:
        return Point(self.origin[0] + screen[0] / self.scale, self.origin[1] - screen[1] / self.scale)

    def to_screen_array(self, points) -> np.ndarray:
        """Vectorized ``to_screen`` for an (N,2) array."""
        pts = np.asarray(points, dtype=np.float64).reshape(-1, 2)
        out = np.empty_like(pts)
        out[:, 0] = (pts[:, 0] - self.origin[0]) * self.scale
        out[:, 1] = (self.origin[1] - pts[:, 1]) * self.scale
        return out


@dataclass(frozen=True)
class WorldBounds:
    """Valid coordinate domain; calling it answers "is this coordinate outside?"."""
    min_lat: float = -MERCATOR_MAX_LAT
    max_lat: float = MERCATOR_MAX_LAT
    min_lon: float = -180.0
    max_lon: float = 180.0

    def __call__(self, coord: LatLon) -> bool:
        return is_outside_world(coord, self)


def is_outside_world(coord: LatLon, bounds: WorldBounds = WorldBounds()) -> bool:
    lat, lon = float(coord[0]), float(coord[1])
    if not (math.isfinite(lat) and math.isfinite(lon)):
        return True
    return not (bounds.min_lat <= lat <= bounds.max_lat and bounds.min_lon <= lon <= bounds.max_lon)


def screen_points(viewport: Viewport, points) -> np.ndarray:
    """Map an (N,2) array of projected points to screen space."""
    if hasattr(viewport, 'to_screen_array'):
        return viewport.to_screen_array(points)
    pts = np.asarray(points, dtype=np.float64).reshape(-1, 2)
    return np.array([viewport.to_screen(Point(float(e), float(n))) for e, n in pts],
                    dtype=np.float64).reshape(-1, 2)


__all__ = [
    'ScreenPoint', 'Projection', 'Viewport', 'WebMercator', 'IdentityProjection',
    'LinearViewport', 'WorldBounds', 'is_outside_world', 'screen_points',
]
