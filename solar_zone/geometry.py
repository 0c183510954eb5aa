"""
Geodesic measurements over rings of geographic coordinates.
Areas are in square meters, distances in meters, angles in degrees.
"""

from dataclasses import dataclass
from typing import Iterable, List, Sequence

import numpy as np

# Same sphere as the Google Maps geometry library
EARTH_RADIUS_M = 6378137.0


@dataclass(frozen=True)
class GeoPoint:
    """A WGS84 latitude/longitude pair in degrees."""
    lat: float
    lng: float


def distinct_points(points: Iterable[GeoPoint]) -> List[GeoPoint]:
    """Unique points in first-seen order."""
    seen = set()
    unique = []
    for point in points:
        if point not in seen:
            seen.add(point)
            unique.append(point)
    return unique


def _open_ring(points: Sequence[GeoPoint]) -> List[GeoPoint]:
    """Drop an explicit closing vertex so the ring is closed exactly once."""
    ring = list(points)
    if len(ring) > 1 and ring[0] == ring[-1]:
        ring.pop()
    return ring


def _is_finite(points: Sequence[GeoPoint]) -> bool:
    coords = np.array([[p.lat, p.lng] for p in points], dtype=float)
    return bool(np.all(np.isfinite(coords)))


def area(polygon: Sequence[GeoPoint]) -> float:
    """
    Surface area of a simple polygon on the sphere.

    Uses the Chamberlain-Duquette spherical polygon formula. The ring is
    implicitly closed; an explicit closing vertex is accepted and ignored.

    Args:
        polygon: Ordered vertices of a non-self-intersecting ring

    Returns:
        Area in m², 0 for degenerate input (< 3 distinct or collinear points)
    """
    if len(distinct_points(polygon)) < 3 or not _is_finite(polygon):
        return 0.0

    ring = _open_ring(polygon)
    lats = np.radians([p.lat for p in ring])
    lngs = np.radians([p.lng for p in ring])

    next_lats = np.roll(lats, -1)
    # Rings crossing the antimeridian step the short way round
    lng_steps = np.roll(lngs, -1) - lngs
    lng_steps = np.where(lng_steps > np.pi, lng_steps - 2 * np.pi, lng_steps)
    lng_steps = np.where(lng_steps < -np.pi, lng_steps + 2 * np.pi, lng_steps)

    total = np.sum(lng_steps * (2 + np.sin(lats) + np.sin(next_lats)))
    result = abs(float(total)) * EARTH_RADIUS_M ** 2 / 2
    return result if np.isfinite(result) else 0.0


def point_distance(a: GeoPoint, b: GeoPoint) -> float:
    """Great-circle (haversine) distance between two points in meters."""
    lat1, lng1, lat2, lng2 = np.radians([a.lat, a.lng, b.lat, b.lng])
    h = (
        np.sin((lat2 - lat1) / 2) ** 2
        + np.cos(lat1) * np.cos(lat2) * np.sin((lng2 - lng1) / 2) ** 2
    )
    return float(2 * EARTH_RADIUS_M * np.arcsin(np.sqrt(min(1.0, h))))


def perimeter(polygon: Sequence[GeoPoint], closed: bool = False) -> float:
    """
    Sum of great-circle distances between consecutive vertices.

    Args:
        polygon: Ordered vertices
        closed: Also count the edge from the last vertex back to the first

    Returns:
        Length in meters, 0 when fewer than 3 distinct vertices are given
    """
    if len(distinct_points(polygon)) < 3 or not _is_finite(polygon):
        return 0.0

    path = list(polygon)
    if closed and path[0] != path[-1]:
        path.append(path[0])

    return sum(point_distance(a, b) for a, b in zip(path, path[1:]))


def net_area(main: Sequence[GeoPoint], holes: Iterable[Sequence[GeoPoint]] = ()) -> float:
    """Main polygon area minus the combined hole area, floored at zero."""
    excluded = sum(area(hole) for hole in holes)
    return max(0.0, area(main) - excluded)


def within_snap_distance(point: GeoPoint, target: GeoPoint, tolerance_m: float) -> bool:
    """Whether a click lands close enough to a vertex to snap onto it."""
    return point_distance(point, target) <= tolerance_m
