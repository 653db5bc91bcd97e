"""
Purpose: Road-segment -> zone classification (RoadSegmentClassifier).
What it does:

- classifies each known road segment:
    interstate / us_highway      -> transit
    state_route                  -> technical, unless sparse + gentle -> transit
    local                        -> urban if symbolrank says town/city, else technical
    unknown                      -> technical
- fills the holes between segments with explicit gap zones
  (on/off-ramp next to a highway, inherit when sandwiched, else technical)
- merges adjacent same-character zones

Typical public function signature:

- build_zones(segments, total_miles, curves, policy) -> List[Zone]

Rule: Output always tiles [0, total) with no gaps or overlaps.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from routing.models import Curve, RoadClass, RoadSegment, miles_to_meters

from .models import Zone, ZoneCharacter
from .policy import ZonePolicy, default_zone_policy

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _KnownSpan:
    start: float  # meters
    end: float
    character: ZoneCharacter
    road: str
    reason: str
    is_highway: bool


def build_zones(
    segments: Sequence[RoadSegment],
    total_miles: float,
    curves: Sequence[Curve] = (),
    policy: Optional[ZonePolicy] = None,
) -> List[Zone]:
    """
    Main classification entry point (pure algorithm).

    Parameters
    ----------
    segments:
        Sparse road segments in route miles (may be empty).
    total_miles:
        Route length; zones always end exactly here.
    curves:
        Detected curves, used for state-route density / angle stats.
    policy:
        ZonePolicy thresholds.
    """
    policy = policy or default_zone_policy()
    total_m = miles_to_meters(total_miles)

    if total_m <= 0:
        return []

    spans = _classify_segments(segments, total_m, curves, policy)
    if not spans:
        logger.debug("zone classifier: no segments, defaulting to technical")
        return [Zone(0.0, total_m, ZoneCharacter.TECHNICAL, road="[gap]", reason="no road data")]

    zones = _fill_gaps(spans, total_m, policy)
    merged = merge_adjacent(zones)
    logger.debug("zone classifier: %d segments -> %d zones", len(segments), len(merged))
    return merged


def classify_segment(
    segment: RoadSegment,
    curves: Sequence[Curve] = (),
    policy: Optional[ZonePolicy] = None,
) -> Tuple[ZoneCharacter, str]:
    """Character + human-readable reason for one road segment."""
    policy = policy or default_zone_policy()
    road_class = segment.road_class

    if road_class.is_highway:
        return ZoneCharacter.TRANSIT, f"{road_class.value} {segment.label}"

    if road_class is RoadClass.STATE_ROUTE:
        count, avg_angle, max_angle = _curve_stats(segment, curves)
        density = count / segment.length_miles if segment.length_miles > 0 else 0.0
        if (
            density < policy.state_route_transit_max_density
            and avg_angle < policy.state_route_transit_max_avg_angle
            and max_angle < policy.danger_angle_deg
        ):
            return ZoneCharacter.TRANSIT, f"gentle state route ({density:.1f} curves/mi, avg {avg_angle:.0f}°)"
        return ZoneCharacter.TECHNICAL, f"winding state route ({density:.1f} curves/mi, max {max_angle:.0f}°)"

    if road_class is RoadClass.LOCAL:
        if segment.symbolrank is not None and segment.symbolrank <= policy.urban_symbolrank_max:
            return ZoneCharacter.URBAN, f"local road in town (rank {segment.symbolrank})"
        return ZoneCharacter.TECHNICAL, "rural local road"

    return ZoneCharacter.TECHNICAL, "unclassified road"


def merge_adjacent(zones: Sequence[Zone]) -> List[Zone]:
    """
    Collapse neighbouring zones with the same character.
    The merged zone keeps a real road name over a "[gap ...]" label.
    """
    merged: List[Zone] = []
    for zone in zones:
        if merged and merged[-1].character == zone.character:
            previous = merged[-1]
            keep = previous if not previous.is_gap or zone.is_gap else zone
            merged[-1] = Zone(
                start_distance=previous.start_distance,
                end_distance=zone.end_distance,
                character=previous.character,
                road=keep.road,
                reason=keep.reason,
            )
        else:
            merged.append(zone)
    return merged


# -------------------------
# internals
# -------------------------

def _curve_stats(segment: RoadSegment, curves: Sequence[Curve]) -> Tuple[int, float, float]:
    start_m = miles_to_meters(segment.start_mile)
    end_m = miles_to_meters(segment.end_mile)
    angles = [
        curve.angle for curve in curves
        if not curve.is_noise and start_m <= curve.apex_distance < end_m
    ]
    if not angles:
        return 0, 0.0, 0.0
    return len(angles), sum(angles) / len(angles), max(angles)


def _classify_segments(
    segments: Sequence[RoadSegment],
    total_m: float,
    curves: Sequence[Curve],
    policy: ZonePolicy,
) -> List[_KnownSpan]:
    spans: List[_KnownSpan] = []
    cursor = 0.0
    for segment in sorted(segments, key=lambda s: (s.start_mile, s.end_mile)):
        start = max(miles_to_meters(segment.start_mile), cursor, 0.0)
        end = min(miles_to_meters(segment.end_mile), total_m)
        if end <= start:
            continue
        character, reason = classify_segment(segment, curves, policy)
        spans.append(_KnownSpan(start, end, character, segment.label, reason, segment.road_class.is_highway))
        cursor = end
    return spans


def _gap_character(previous: Optional[_KnownSpan], following: Optional[_KnownSpan]) -> Tuple[ZoneCharacter, str]:
    if previous is not None and previous.is_highway:
        return ZoneCharacter.TECHNICAL, "off-ramp after highway"
    if following is not None and following.is_highway:
        return ZoneCharacter.TECHNICAL, "on-ramp before highway"
    if previous is not None and following is not None and previous.character == following.character:
        return previous.character, f"gap between {previous.character.value} zones"
    if previous is not None and following is None:
        return previous.character, f"trailing gap after {previous.road}"
    return ZoneCharacter.TECHNICAL, "unclassified gap"


def _fill_gaps(spans: List[_KnownSpan], total_m: float, policy: ZonePolicy) -> List[Zone]:
    tolerance_m = miles_to_meters(policy.gap_tolerance_miles)
    zones: List[Zone] = []
    cursor = 0.0
    previous: Optional[_KnownSpan] = None

    for span in spans:
        start = span.start
        if start - cursor > tolerance_m:
            character, reason = _gap_character(previous, span)
            zones.append(Zone(cursor, start, character, road="[gap]", reason=reason))
        else:
            # tiny hole: stretch this span back over it
            start = cursor
        zones.append(Zone(start, span.end, span.character, road=span.road, reason=span.reason))
        cursor = span.end
        previous = span

    if total_m - cursor > tolerance_m:
        character, reason = _gap_character(previous, None)
        zones.append(Zone(cursor, total_m, character, road="[gap]", reason=reason))
    elif zones:
        last = zones[-1]
        zones[-1] = Zone(last.start_distance, total_m, last.character, last.road, last.reason)

    return zones
