"""
Purpose: Fuse curves with zones into Events (RoadFlowEventExtractor).
What it does:

- looks up each curve's zone at its apex (bisect, O(log n) per curve)
- drops noise and curves under the zone's meaningful-curve floor
  (technical keeps everything that is not noise)
- types each event: danger (surprise spike) > significant > curve
- tags shape from angle per meter

Rule: One event per qualifying curve; curves are never modified.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from routing.models import Curve
from zones.lookup import ZoneLookup
from zones.models import Zone

from .models import Event, EventShape, EventType
from .policy import CalloutPolicy, default_callout_policy

logger = logging.getLogger(__name__)


def extract_events(
    curves: Sequence[Curve],
    zones: Sequence[Zone],
    policy: Optional[CalloutPolicy] = None,
) -> List[Event]:
    policy = policy or default_callout_policy()
    lookup = ZoneLookup(zones)

    events: List[Event] = []
    previous_angle: Optional[float] = None
    for curve in sorted(curves, key=lambda c: c.apex_distance):
        if curve.is_noise:
            continue

        zone_type = lookup.character_at(curve.apex_distance)
        if curve.angle < policy.event_floor_deg.get(zone_type, 0.0):
            continue

        event_type = classify_event(curve.angle, previous_angle, policy)
        events.append(Event(
            distance=curve.apex_distance,
            angle=curve.angle,
            direction=curve.direction,
            type=event_type,
            zone_type=zone_type,
            curve_id=curve.id,
            position=curve.position,
            shape=shape_for(curve.angle, curve.length, policy),
            length=curve.length,
            modifiers=curve.modifiers,
        ))
        previous_angle = curve.angle

    logger.debug("event extraction: %d curves -> %d events", len(curves), len(events))
    return events


def classify_event(angle: float, previous_angle: Optional[float],
                   policy: Optional[CalloutPolicy] = None) -> EventType:
    """
    danger:      angle jumps >= danger_spike_deg over the previous event and
                 lands >= danger_min_angle_deg (a surprise after a gentle run)
    significant: angle >= significant_angle_deg
    curve:       everything else
    The first event of a route has nothing to spike over.
    """
    policy = policy or default_callout_policy()
    if (
        previous_angle is not None
        and angle >= policy.danger_min_angle_deg
        and angle - previous_angle >= policy.danger_spike_deg
    ):
        return EventType.DANGER
    if angle >= policy.significant_angle_deg:
        return EventType.SIGNIFICANT
    return EventType.CURVE


def shape_for(angle: float, length: float, policy: Optional[CalloutPolicy] = None) -> EventShape:
    policy = policy or default_callout_policy()
    if length <= 0:
        return EventShape.TIGHT
    rate = angle / length
    if rate > policy.tight_angle_per_m:
        return EventShape.TIGHT
    if rate > policy.medium_angle_per_m:
        return EventShape.MEDIUM
    return EventShape.SWEEPER
