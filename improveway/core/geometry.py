"""Geometry kernel: headings, bearings, rotations and the equal-angle point.

All functions are pure. Points may be passed as ``Point``/``LatLon`` tuples or
any array-like of two floats; projected results are returned as ``Point``.
"""
from __future__ import annotations
import math
from typing import Optional, Sequence, Tuple

import numpy as np

from .constants import EPS_PARALLEL, EPS_LENGTH, EARTH_RADIUS_M
from .model import Point, LatLon

__all__ = [
    'fix_heading', 'fix_index', 'bearing', 'latlon_bearing', 'distance',
    'great_circle_distance', 'heading', 'turn_angle', 'segment_angle', 'rotate',
    'line_line_intersection', 'equal_angle_point', 'perpendicular_bisector',
    'point_segment_distance', 'segment_distances',
]


def fix_heading(heading: float) -> float:
    """Normalize a heading in degrees into [-180, 180)."""
    h = ((float(heading) + 180.0) % 360.0) - 180.0
    # float modulo can land exactly on the excluded upper bound
    if h >= 180.0:
        h -= 360.0
    return h


def fix_index(count: int, closed: bool, index: int) -> int:
    """Resolve ``index`` against ``count`` vertex positions.

    Closed polylines wrap around; on open polylines an out-of-range index
    yields -1.
    """
    if 0 <= index < count:
        return index
    if not closed or count <= 0:
        return -1
    return index % count


def bearing(a, b) -> float:
    """Planar bearing from ``a`` to ``b`` in radians, 0 = north, clockwise, in [0, 2pi)."""
    a = np.asarray(a, dtype=np.float64); b = np.asarray(b, dtype=np.float64)
    return math.atan2(b[0] - a[0], b[1] - a[1]) % (2.0 * math.pi)


def latlon_bearing(a: LatLon, b: LatLon) -> float:
    """Initial great-circle bearing from ``a`` to ``b`` (radians, 0 = north, clockwise)."""
    lat1 = math.radians(a[0]); lat2 = math.radians(b[0])
    dlon = math.radians(b[1] - a[1])
    y = math.sin(dlon) * math.cos(lat2)
    x = math.cos(lat1) * math.sin(lat2) - math.sin(lat1) * math.cos(lat2) * math.cos(dlon)
    return math.atan2(y, x) % (2.0 * math.pi)


def distance(a, b) -> float:
    a = np.asarray(a, dtype=np.float64); b = np.asarray(b, dtype=np.float64)
    return float(np.hypot(b[0] - a[0], b[1] - a[1]))


def great_circle_distance(a: LatLon, b: LatLon) -> float:
    """Haversine distance in metres."""
    lat1 = math.radians(a[0]); lat2 = math.radians(b[0])
    dlat = lat2 - lat1
    dlon = math.radians(b[1] - a[1])
    h = math.sin(dlat / 2.0) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlon / 2.0) ** 2
    return 2.0 * EARTH_RADIUS_M * math.asin(min(1.0, math.sqrt(h)))


def heading(a, b) -> float:
    """Screen heading of a->b in degrees: 0 = east, north = -90.

    Geographic coordinates use the great-circle bearing, anything else the
    planar one.
    """
    if isinstance(a, LatLon) and isinstance(b, LatLon):
        brg = latlon_bearing(a, b)
    else:
        brg = bearing(a, b)
    return fix_heading(-90.0 + brg * 180.0 / math.pi)


def turn_angle(prev_heading: float, next_heading: float) -> float:
    """Signed turn in degrees; the sign gives the sweep direction."""
    return fix_heading(next_heading - prev_heading)


def segment_angle(p, q) -> float:
    """Direction of p->q in radians, counter-clockwise from east."""
    p = np.asarray(p, dtype=np.float64); q = np.asarray(q, dtype=np.float64)
    return math.atan2(q[1] - p[1], q[0] - p[0])


def rotate(p, pivot, angle: float) -> Point:
    """Rotate ``p`` clockwise about ``pivot`` by ``angle`` radians."""
    p = np.asarray(p, dtype=np.float64); c = np.asarray(pivot, dtype=np.float64)
    cos_phi = math.cos(angle); sin_phi = math.sin(angle)
    x = p[0] - c[0]; y = p[1] - c[1]
    return Point(float(cos_phi * x + sin_phi * y + c[0]),
                 float(-sin_phi * x + cos_phi * y + c[1]))


def line_line_intersection(p1, p2, p3, p4) -> Optional[Point]:
    """Intersection of the infinite lines p1-p2 and p3-p4, or None when parallel."""
    p1 = np.asarray(p1, dtype=np.float64); p2 = np.asarray(p2, dtype=np.float64)
    p3 = np.asarray(p3, dtype=np.float64); p4 = np.asarray(p4, dtype=np.float64)
    d1 = p2 - p1
    d2 = p4 - p3
    n1 = float(np.hypot(d1[0], d1[1])); n2 = float(np.hypot(d2[0], d2[1]))
    if n1 <= EPS_LENGTH or n2 <= EPS_LENGTH:
        return None
    det = float(d1[0] * d2[1] - d1[1] * d2[0])
    if abs(det) <= EPS_PARALLEL * n1 * n2:
        return None
    w = p3 - p1
    t = float(w[0] * d2[1] - w[1] * d2[0]) / det
    return Point(float(p1[0] + t * d1[0]), float(p1[1] + t * d1[1]))


def equal_angle_point(coords: Sequence, closed: bool, index1: int, index2: int) -> Optional[Point]:
    """Point between positions ``index1`` and ``index2`` giving equal turns.

    ``coords`` holds the vertex positions of the polyline without the closing
    duplicate. The edges (index1-1 -> index1) and (index2 -> index2+1) are
    each rotated towards the other by one third of the heading change between
    them and intersected. The one-third split is a first-order approximation
    of an equal-arc construction.

    Returns None when an index cannot be resolved (open polyline near an end)
    or when the rotated edges are parallel.
    """
    pts = np.asarray(coords, dtype=np.float64).reshape(-1, 2)
    n = pts.shape[0]
    i11 = fix_index(n, closed, index1 - 1)
    i12 = fix_index(n, closed, index1)
    i21 = fix_index(n, closed, index2)
    i22 = fix_index(n, closed, index2 + 1)
    if i11 < 0 or i12 < 0 or i21 < 0 or i22 < 0:
        return None
    p11, p12, p21, p22 = pts[i11], pts[i12], pts[i21], pts[i22]
    a1 = segment_angle(p11, p12)
    a2 = segment_angle(p21, p22)
    a = fix_heading((a2 - a1) * 180.0 / math.pi) * math.pi / 180.0 / 3.0
    p1r = rotate(p11, p12, -a)
    p2r = rotate(p22, p21, a)
    return line_line_intersection(p1r, p12, p21, p2r)


def perpendicular_bisector(p1, p2, half_length: float) -> Tuple[Point, Point]:
    """End points of a line of length 2*half_length crossing p1-p2 at its midpoint."""
    p1 = np.asarray(p1, dtype=np.float64); p2 = np.asarray(p2, dtype=np.float64)
    mid = (p1 + p2) / 2.0
    ang = math.atan2(p2[1] - p1[1], p2[0] - p1[0]) + math.pi / 2.0
    off = np.array([math.cos(ang), math.sin(ang)]) * half_length
    return Point(*map(float, mid + off)), Point(*map(float, mid - off))


def segment_distances(p, a_pts, b_pts) -> np.ndarray:
    """Distance from point ``p`` to each segment a_pts[i]-b_pts[i].

    a_pts, b_pts : arrays of shape (M,2). Returns array of shape (M,).
    """
    c = np.asarray(p, dtype=np.float64)
    a = np.asarray(a_pts, dtype=np.float64).reshape(-1, 2)
    b = np.asarray(b_pts, dtype=np.float64).reshape(-1, 2)
    if a.shape[0] == 0:
        return np.zeros((0,), dtype=np.float64)
    d = b - a
    len2 = np.einsum('ij,ij->i', d, d)
    safe = np.where(len2 > 0.0, len2, 1.0)
    t = np.einsum('ij,ij->i', c - a, d) / safe
    # zero-length segments collapse onto their start point
    t = np.where(len2 > 0.0, np.clip(t, 0.0, 1.0), 0.0)
    closest = a + t[:, None] * d
    return np.hypot(closest[:, 0] - c[0], closest[:, 1] - c[1])


def point_segment_distance(p, a, b) -> float:
    return float(segment_distances(p, [a], [b])[0])
