#Purpose: Great-circle geometry helpers for route polylines.
#Everything works on (lng, lat) points in route order.
#Provides:
#haversine distance between two points (meters)
#initial bearing between two points (degrees, 0 = north)
#signed heading change normalized to (-180, 180]
#cumulative distance along a polyline
#fixed-interval resampling (numpy interp over cumulative distance)
#No zone or callout rules live here.

from __future__ import annotations

import math
from typing import List, Sequence, Tuple

import numpy as np

from .models import RoutePoint

EARTH_RADIUS_M = 6371000.0


def haversine_m(a: RoutePoint, b: RoutePoint) -> float:
    """Distance in meters between two (lng, lat) points."""
    lng1, lat1 = a
    lng2, lat2 = b
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lng2 - lng1)

    h = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    return 2 * EARTH_RADIUS_M * math.atan2(math.sqrt(h), math.sqrt(1 - h))


def bearing_deg(a: RoutePoint, b: RoutePoint) -> float:
    """Initial bearing from a to b in degrees [0, 360)."""
    lng1, lat1 = a
    lng2, lat2 = b
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_lambda = math.radians(lng2 - lng1)

    y = math.sin(d_lambda) * math.cos(phi2)
    x = math.cos(phi1) * math.sin(phi2) - math.sin(phi1) * math.cos(phi2) * math.cos(d_lambda)
    return (math.degrees(math.atan2(y, x)) + 360.0) % 360.0


def heading_change(prev_bearing: float, next_bearing: float) -> float:
    """
    Signed turn from one bearing to the next.
    Positive = right (clockwise), negative = left.
    """
    delta = (next_bearing - prev_bearing) % 360.0
    if delta > 180.0:
        delta -= 360.0
    return delta


def cumulative_distances(points: Sequence[RoutePoint]) -> List[float]:
    """Distance from the first point to each point, in meters."""
    if not points:
        return []
    distances = [0.0]
    for i in range(1, len(points)):
        distances.append(distances[-1] + haversine_m(points[i - 1], points[i]))
    return distances


def resample(points: Sequence[RoutePoint], interval_m: float) -> Tuple[List[RoutePoint], List[float]]:
    """
    Resample a polyline every `interval_m` meters.

    Interpolates lng and lat linearly against cumulative distance, which is
    accurate enough at the 10-50 m spacing the analyzers use.

    Returns (points, distances_from_start).
    """
    if interval_m <= 0:
        raise ValueError("interval_m must be > 0")
    if len(points) < 2:
        return list(points), [0.0] * len(points)

    cumulative = np.asarray(cumulative_distances(points), dtype=float)
    total = float(cumulative[-1])
    if total <= 0:
        return [points[0]], [0.0]

    targets = np.arange(0.0, total, interval_m)
    if targets.size == 0 or targets[-1] < total:
        targets = np.append(targets, total)

    coords = np.asarray(points, dtype=float)
    lngs = np.interp(targets, cumulative, coords[:, 0])
    lats = np.interp(targets, cumulative, coords[:, 1])

    sampled = [(float(lng), float(lat)) for lng, lat in zip(lngs, lats)]
    return sampled, [float(d) for d in targets]


def point_at_distance(points: Sequence[RoutePoint], distance_m: float) -> RoutePoint:
    """Interpolated position `distance_m` meters along the polyline."""
    if not points:
        raise ValueError("empty polyline")
    if len(points) == 1:
        return points[0]
    cumulative = np.asarray(cumulative_distances(points), dtype=float)
    coords = np.asarray(points, dtype=float)
    target = min(max(distance_m, 0.0), float(cumulative[-1]))
    return (
        float(np.interp(target, cumulative, coords[:, 0])),
        float(np.interp(target, cumulative, coords[:, 1])),
    )
