"""Central numerical tolerances and small geometry constants.

Tiny thresholds used across the engine live here so they can be tuned
consistently and referenced without scattering literals.
"""
from __future__ import annotations

# Geometry tolerances
EPS_PARALLEL: float = 1e-12       # relative determinant threshold for parallel lines
EPS_LENGTH: float = 1e-12         # zero-length segment threshold (projected units)

# Earth model
EARTH_RADIUS_M: float = 6378137.0         # WGS84 semi-major axis
MERCATOR_MAX_LAT: float = 85.05112877980659

# Interaction defaults (screen pixels / seconds)
DEFAULT_NODE_THRESHOLD_PX: float = 10.0
DEFAULT_SEGMENT_THRESHOLD_PX: float = 10.0
DEFAULT_LONG_KEYPRESS_TIME: float = 0.25

__all__ = [
    'EPS_PARALLEL',
    'EPS_LENGTH',
    'EARTH_RADIUS_M',
    'MERCATOR_MAX_LAT',
    'DEFAULT_NODE_THRESHOLD_PX',
    'DEFAULT_SEGMENT_THRESHOLD_PX',
    'DEFAULT_LONG_KEYPRESS_TIME',
]
