#Purpose: Road-class parsing for road references / names.
#Turns router step metadata ("I-95", "US 1", "CA-1", "Blue Ridge Parkway")
#into a RoadClass the zone classifier understands.
#Also builds sparse RoadSegment lists from route leg steps.
#No zone decisions here - only "what kind of road is this".

from __future__ import annotations

import re
from typing import List, Optional, Sequence

from .models import RoadClass, RoadSegment, RouteLeg, meters_to_miles

_INTERSTATE = re.compile(r"^I[\s-]?\d+", re.IGNORECASE)
_US_HIGHWAY = re.compile(r"^U\.?S\.?[\s-]?\d+", re.IGNORECASE)
_STATE_ROUTE = re.compile(r"^([A-Z]{2}[\s-]?\d+|(ROUTE|RTE|RT|SR)[\s-]?\d+)", re.IGNORECASE)
_LIMITED_ACCESS_WORDS = ("TURNPIKE", "PARKWAY", "EXPRESSWAY", "FREEWAY", "THRUWAY", "INTERSTATE")


def classify_road_type(ref: Optional[str] = None, name: Optional[str] = None) -> RoadClass:
    """
    Road class from a route reference (preferred) or a road name.

    Examples:
        I-95            -> interstate
        US 1, U.S. 1    -> us_highway
        CA-1, SR 9      -> state_route
        Garden State Parkway -> us_highway
        Main Street     -> local
        (nothing)       -> unknown
    """
    # refs like "I 95;US 1" list concurrent designations - the first wins
    candidates = [part.strip() for part in (ref or "").split(";") if part.strip()]
    for candidate in candidates:
        road_class = _class_from_ref(candidate)
        if road_class is not None:
            return road_class

    if name:
        upper = name.upper()
        road_class = _class_from_ref(upper.strip())
        if road_class is not None:
            return road_class
        if any(word in upper for word in _LIMITED_ACCESS_WORDS):
            return RoadClass.US_HIGHWAY
        return RoadClass.LOCAL

    if candidates:
        return RoadClass.LOCAL
    return RoadClass.UNKNOWN


def _class_from_ref(ref: str) -> Optional[RoadClass]:
    if _INTERSTATE.match(ref):
        return RoadClass.INTERSTATE
    if _US_HIGHWAY.match(ref):
        return RoadClass.US_HIGHWAY
    if _STATE_ROUTE.match(ref):
        return RoadClass.STATE_ROUTE
    return None


def segments_from_legs(legs: Sequence[RouteLeg]) -> List[RoadSegment]:
    """
    Build sparse RoadSegments from turn-by-turn steps.

    Consecutive steps on the same road collapse into one segment; steps with
    neither ref nor name leave a gap (the classifier fills it).
    """
    segments: List[RoadSegment] = []
    cursor_m = 0.0
    for leg in legs:
        for step in leg.steps:
            start_mile = meters_to_miles(cursor_m)
            cursor_m += max(step.distance, 0.0)
            end_mile = meters_to_miles(cursor_m)
            if not (step.ref or step.name) or end_mile <= start_mile:
                continue

            road_class = classify_road_type(step.ref, step.name)
            previous = segments[-1] if segments else None
            if (
                previous is not None
                and previous.ref == step.ref
                and previous.name == step.name
                and abs(previous.end_mile - start_mile) < 1e-9
            ):
                segments[-1] = RoadSegment(
                    start_mile=previous.start_mile,
                    end_mile=end_mile,
                    road_class=previous.road_class,
                    ref=previous.ref,
                    name=previous.name,
                )
                continue

            segments.append(RoadSegment(
                start_mile=start_mile,
                end_mile=end_mile,
                road_class=road_class,
                ref=step.ref,
                name=step.name,
            ))
    return segments
