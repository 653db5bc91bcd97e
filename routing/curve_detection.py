"""
Purpose: Geometry-only curve detection (the pipeline's leaf stage).
What it does:

- walks the polyline bearings and opens a curve when the per-vertex heading
  change exceeds the start threshold
- keeps it open while changes continue in the same direction (tolerating a
  short wobble via look-ahead)
- measures angle, length, radius, apex position
- buckets severity by angle, tags modifiers, classifies GPS noise

Typical public function signature:

- detect_curves(points, policy) -> List[Curve]

Rule: Deterministic and zone-agnostic. Same-direction neighbours are NOT
merged here (that is a filter/grouping decision).
"""

from __future__ import annotations

import logging
import math
from typing import List, Optional, Sequence, Tuple

from .geo import bearing_deg, cumulative_distances, haversine_m, heading_change
from .models import Curve, CurveClass, CurveDirection, CurveModifier, RoutePoint
from .policy import CurvePolicy, default_curve_policy

logger = logging.getLogger(__name__)


def detect_curves(points: Sequence[RoutePoint], policy: Optional[CurvePolicy] = None) -> List[Curve]:
    """
    Detect curves on an ordered (lng, lat) polyline.

    Returns curves ordered by distance_from_start. Fewer than 3 usable
    points yields [].
    """
    policy = policy or default_curve_policy()

    coords = _drop_duplicate_points(points, policy.min_point_spacing_m)
    if len(coords) < 3:
        return []

    bearings = [bearing_deg(coords[i], coords[i + 1]) for i in range(len(coords) - 1)]
    distances = cumulative_distances(coords)

    # changes[k] is the turn at vertex k+1 (between segment k and k+1)
    changes = [heading_change(bearings[k], bearings[k + 1]) for k in range(len(bearings) - 1)]

    curves: List[Curve] = []
    next_id = 1
    k = 0
    while k < len(changes):
        if abs(changes[k]) <= policy.start_threshold_deg:
            k += 1
            continue

        end = _extend_curve(changes, k, policy)
        span = changes[k:end + 1]
        curves.append(_build_curve(next_id, coords, distances, span, k, end, policy))
        next_id += 1
        k = end + 1

    logger.debug("curve detection: %d curves from %d points", len(curves), len(coords))
    return curves


def severity_for_angle(angle: float, policy: Optional[CurvePolicy] = None) -> int:
    """Monotone 1..6 bucket of total angle."""
    policy = policy or default_curve_policy()
    severity = 1
    for breakpoint in policy.severity_breakpoints:
        if angle >= breakpoint:
            severity += 1
    return severity


def recommended_speed(severity: int, mode: str = "normal", policy: Optional[CurvePolicy] = None) -> int:
    """
    Suggested speed (mph) for a curve of the given severity.
    mode: cautious | normal | sport
    """
    policy = policy or default_curve_policy()
    modes = {"cautious": 0, "normal": 1, "sport": 2}
    if mode not in modes:
        raise ValueError(f"unknown speed mode: {mode}")
    clamped = min(max(int(severity), 1), 6)
    return policy.speed_table[clamped][modes[mode]]


# -------------------------
# internals
# -------------------------

def _drop_duplicate_points(points: Sequence[RoutePoint], min_spacing_m: float) -> List[RoutePoint]:
    coords: List[RoutePoint] = []
    for point in points:
        if coords and haversine_m(coords[-1], point) < min_spacing_m:
            continue
        coords.append((float(point[0]), float(point[1])))
    return coords


def _extend_curve(changes: List[float], start: int, policy: CurvePolicy) -> int:
    """Index of the last heading change that still belongs to the curve opened at `start`."""
    direction = math.copysign(1.0, changes[start])
    end = start
    while end + 1 < len(changes):
        nxt = changes[end + 1]
        same_sign = math.copysign(1.0, nxt) == direction

        if same_sign and abs(nxt) > policy.continue_threshold_deg:
            end += 1
            continue

        if abs(nxt) <= policy.continue_threshold_deg:
            # wobble: keep going only if the next few changes still turn our way
            window = changes[end + 1:end + 1 + policy.lookahead_points]
            look_ahead = sum(window)
            if window and math.copysign(1.0, look_ahead) == direction and abs(look_ahead) > policy.start_threshold_deg:
                end += 1
                continue
        break
    return end


def _build_curve(
    curve_id: int,
    coords: List[RoutePoint],
    distances: List[float],
    span: List[float],
    first_change: int,
    last_change: int,
    policy: CurvePolicy,
) -> Curve:
    # change k sits on vertex k+1, so the curve runs from vertex k to vertex last+2
    start_vertex = first_change
    end_vertex = min(last_change + 2, len(coords) - 1)

    total_change = sum(span)
    angle = abs(total_change)
    length = distances[end_vertex] - distances[start_vertex]
    radius = length / math.radians(angle) if angle > 0 else float("inf")

    apex_vertex = min((start_vertex + end_vertex + 1) // 2, len(coords) - 1)
    direction = CurveDirection.RIGHT if total_change > 0 else CurveDirection.LEFT
    severity = severity_for_angle(angle, policy)

    curve_class = CurveClass.CURVE
    if angle < policy.noise_angle_deg or length < policy.min_span_m:
        curve_class = CurveClass.NOISE

    return Curve(
        id=curve_id,
        direction=direction,
        angle=round(angle, 1),
        severity=severity,
        length=round(length, 1),
        distance_from_start=round(distances[start_vertex], 1),
        position=coords[apex_vertex],
        radius=round(radius, 1) if math.isfinite(radius) else 0.0,
        curve_class=curve_class,
        modifiers=_modifiers(span, angle, severity, length, policy),
    )


def _modifiers(span: List[float], angle: float, severity: int, length: float,
               policy: CurvePolicy) -> Tuple[CurveModifier, ...]:
    modifiers: List[CurveModifier] = []
    if angle > policy.hairpin_angle_deg:
        modifiers.append(CurveModifier.HAIRPIN)
    elif angle > policy.sharp_angle_deg or severity >= policy.sharp_min_severity:
        modifiers.append(CurveModifier.SHARP)

    if length > policy.long_min_length_m and angle > policy.long_min_angle_deg:
        modifiers.append(CurveModifier.LONG)

    if len(span) >= 2:
        half = len(span) // 2
        first = abs(sum(span[:half]))
        second = abs(sum(span[half:]))
        if first > 0 and second >= first * policy.tighten_ratio:
            modifiers.append(CurveModifier.TIGHTENING)
        elif second > 0 and first >= second * policy.tighten_ratio:
            modifiers.append(CurveModifier.OPENING)

    return tuple(modifiers)
