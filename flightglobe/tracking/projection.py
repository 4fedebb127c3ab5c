"""
Geospatial projection onto the scene globe.

Converts WGS84 latitude/longitude/altitude into Cartesian scene coordinates
on a unit sphere and builds the orientation that points an aircraft model
along its heading in the local tangent plane.

Conventions:
- Globe radius 1, altitude scaled by 1/400000 (meters -> scene units)
- +Y is the north pole, longitude offset by 180 degrees
- Orientation is a unit quaternion (x, y, z, w) rotating the model's
  forward axis (0, 0, 1) onto the heading direction
"""

import math
from typing import Optional

import numpy as np

from flightglobe.config import config

GLOBAL_UP = np.array([0.0, 1.0, 0.0])
FORWARD = np.array([0.0, 0.0, 1.0])

# East vector fallback when the tangent frame degenerates at a pole
POLE_EAST = np.array([1.0, 0.0, 0.0])

EPSILON = 1e-9


def _normalize(v: np.ndarray) -> np.ndarray:
    norm = np.linalg.norm(v)
    if norm < EPSILON:
        return v
    return v / norm


def project(
    lat: float,
    lon: float,
    altitude: Optional[float] = 0.0,
    earth_radius: float = config.engine.earth_radius,
    altitude_scale: float = config.engine.altitude_scale,
) -> np.ndarray:
    """
    Spherical-to-Cartesian conversion.

    Missing or negative altitude is clamped to the surface.
    """
    altitude = altitude if altitude is not None and altitude > 0 else 0.0
    radius = earth_radius + altitude * altitude_scale
    phi = math.radians(90.0 - lat)
    theta = math.radians(lon + 180.0)

    return np.array([
        -radius * math.sin(phi) * math.cos(theta),
        radius * math.cos(phi),
        radius * math.sin(phi) * math.sin(theta),
    ])


def tangent_frame(position: np.ndarray) -> tuple:
    """
    Local (east, north, up) unit vectors at a position.

    At the poles globalUp x up vanishes; the frame then uses a fixed east
    axis so the result stays finite.
    """
    up = _normalize(np.asarray(position, dtype=float))
    east = np.cross(GLOBAL_UP, up)
    if np.linalg.norm(east) < EPSILON:
        east = POLE_EAST.copy()
    east = _normalize(east)
    north = _normalize(np.cross(up, east))
    return east, north, up


def quaternion_from_unit_vectors(v_from: np.ndarray, v_to: np.ndarray) -> np.ndarray:
    """Shortest-arc rotation taking unit vector v_from onto v_to, as (x, y, z, w)."""
    r = float(np.dot(v_from, v_to)) + 1.0

    if r < EPSILON:
        # Opposite vectors: rotate 180 degrees about any orthogonal axis
        if abs(v_from[0]) > abs(v_from[2]):
            q = np.array([-v_from[1], v_from[0], 0.0, 0.0])
        else:
            q = np.array([0.0, -v_from[2], v_from[1], 0.0])
    else:
        axis = np.cross(v_from, v_to)
        q = np.array([axis[0], axis[1], axis[2], r])

    return q / np.linalg.norm(q)


def orient(position: np.ndarray, heading: Optional[float] = 0.0) -> np.ndarray:
    """
    Orientation quaternion for an aircraft at `position` flying `heading`.

    Heading is in degrees clockwise from north; None is treated as 0.
    """
    east, north, _ = tangent_frame(position)
    h = math.radians(heading or 0.0)
    direction = _normalize(east * math.sin(h) + north * math.cos(h))
    return quaternion_from_unit_vectors(FORWARD, direction)


def compose(position: np.ndarray, orientation: np.ndarray) -> np.ndarray:
    """4x4 transform matrix (unit scale) from a position and quaternion."""
    x, y, z, w = orientation
    matrix = np.array([
        [1 - 2 * (y * y + z * z), 2 * (x * y - z * w), 2 * (x * z + y * w), position[0]],
        [2 * (x * y + z * w), 1 - 2 * (x * x + z * z), 2 * (y * z - x * w), position[1]],
        [2 * (x * z - y * w), 2 * (y * z + x * w), 1 - 2 * (x * x + y * y), position[2]],
        [0.0, 0.0, 0.0, 1.0],
    ])
    return matrix
