"""
Purpose: Ambient highway chatter on a time grid (ChatterTimelineGenerator).
What it does:

For each transit zone >= min_zone_miles:

- highway_enter just after the zone starts
- interval triggers on a ~2.5 mi grid (~2 min at highway speed), tagged
  milestone / long_straight / general
- notable_feature before the sharpest curve in the zone
- long_straight_start / long_straight_end around long callout gaps
- highway_exit_preview a mile before the zone ends

All candidate triggers are then thinned greedily so no two are closer than
min_interval_miles, across zones too.

Runtime helpers:
- speed_bracket(speed_mph) / pick_variant(item, speed_mph, rng)
- can_play_chatter(item, current_distance, speed_mph, callouts): chatter
  always yields to an upcoming callout.

Rule: Chatter never moves or suppresses a callout.
"""

from __future__ import annotations

import logging
import math
import random
from bisect import bisect_left
from typing import Any, Dict, List, Optional, Sequence, Tuple

from callouts.models import Callout
from routing.models import METERS_PER_MILE, Curve, miles_to_meters
from zones.models import Zone, ZoneCharacter

from .chatter_templates import template_variants
from .models import ChatterItem, ChatterTriggerType, SpeedBracket
from .policy import ChatterPolicy, default_chatter_policy

logger = logging.getLogger(__name__)

# float slack when comparing mile positions built from meter conversions
_MILE_EPSILON = 1e-6

Trigger = Tuple[float, ChatterTriggerType, Dict[str, Any]]


def generate_chatter_timeline(
    zones: Sequence[Zone],
    callouts: Sequence[Callout] = (),
    curves: Sequence[Curve] = (),
    policy: Optional[ChatterPolicy] = None,
) -> List[ChatterItem]:
    policy = policy or default_chatter_policy()

    candidates: List[Trigger] = []
    for index, zone in enumerate(zones):
        if zone.character is not ZoneCharacter.TRANSIT:
            continue
        if zone.length_miles + _MILE_EPSILON < policy.min_zone_miles:
            continue
        following = zones[index + 1] if index + 1 < len(zones) else None
        candidates.extend(_zone_triggers(zone, following, callouts, curves, policy))

    candidates.sort(key=lambda t: t[0])
    kept = space_triggers(candidates, policy)

    timeline = [
        ChatterItem(
            id=f"chatter-{index}",
            trigger_distance=miles_to_meters(mile),
            type=trigger_type,
            variants=template_variants(trigger_type, context),
            context=context,
        )
        for index, (mile, trigger_type, context) in enumerate(kept)
    ]
    logger.info("chatter timeline: %d candidates -> %d items", len(candidates), len(timeline))
    return timeline


def space_triggers(triggers: Sequence[Trigger], policy: Optional[ChatterPolicy] = None) -> List[Trigger]:
    """Greedy pass over sorted triggers keeping >= min_interval_miles between kept ones."""
    policy = policy or default_chatter_policy()
    kept: List[Trigger] = []
    for trigger in triggers:
        if not kept or trigger[0] - kept[-1][0] >= policy.min_interval_miles - _MILE_EPSILON:
            kept.append(trigger)
    return kept


# -------------------------
# per-zone triggers
# -------------------------

def _zone_triggers(
    zone: Zone,
    following: Optional[Zone],
    callouts: Sequence[Callout],
    curves: Sequence[Curve],
    policy: ChatterPolicy,
) -> List[Trigger]:
    start, end, length = zone.start_mile, zone.end_mile, zone.length_miles
    gaps = callout_gaps(zone, callouts, policy)
    next_curves = _curves_announced_in(following, callouts)

    triggers: List[Trigger] = [(
        start + policy.enter_offset_miles,
        ChatterTriggerType.HIGHWAY_ENTER,
        {
            "zone_miles": f"{length:.1f}",
            "minutes": round(length / 70 * 60),
            "next_curves": next_curves,
        },
    )]

    count = math.floor(length / policy.target_interval_miles + _MILE_EPSILON) - 1
    if count > 0:
        step = length / (count + 1)
        for i in range(1, count + 1):
            mile = start + step * i
            triggers.append((mile, ChatterTriggerType.INTERVAL, _interval_context(mile, zone, gaps, policy)))

    sharpest = _sharpest_curve(zone, curves, policy)
    if sharpest is not None:
        warning = sharpest.apex_mile - policy.notable_lead_miles
        if warning > start:
            triggers.append((warning, ChatterTriggerType.NOTABLE_FEATURE, {
                "angle": int(round(sharpest.angle)),
                "direction": sharpest.direction.word,
                "lead": "half a mile",
            }))

    for gap_start, gap_end in gaps:
        gap_length = gap_end - gap_start
        if gap_length <= policy.long_straight_miles:
            continue
        context = {"straight_miles": f"{gap_length:.1f}"}
        if gap_start > start + policy.long_straight_edge_miles:
            triggers.append((gap_start + policy.long_straight_start_offset_miles,
                             ChatterTriggerType.LONG_STRAIGHT_START, context))
        if gap_end < end - policy.long_straight_edge_miles:
            triggers.append((gap_end - policy.long_straight_end_offset_miles,
                             ChatterTriggerType.LONG_STRAIGHT_END, context))

    if length > policy.exit_preview_min_zone_miles:
        triggers.append((end - policy.exit_preview_offset_miles, ChatterTriggerType.HIGHWAY_EXIT_PREVIEW, {
            "next_curves": next_curves,
            "lead": "a mile",
        }))
    return triggers


def _interval_context(mile: float, zone: Zone, gaps: Sequence[Tuple[float, float]],
                      policy: ChatterPolicy) -> Dict[str, Any]:
    into = mile - zone.start_mile
    length = zone.length_miles

    kind = "general"
    milestone = None
    straight = next((g for g in gaps if g[0] <= mile <= g[1]), None)
    if straight is not None and straight[1] - straight[0] > policy.long_straight_context_miles:
        kind = "long_straight"
    near = [m for m in policy.milestones_miles if abs(into - m) < policy.milestone_tolerance_miles]
    if near:
        kind = "milestone"
        milestone = near[0]

    return {
        "interval_kind": kind,
        "milestone": milestone,
        "miles_into": f"{into:.1f}",
        "miles_remaining": f"{zone.end_mile - mile:.1f}",
        "percent": int(round(into / length * 100)) if length > 0 else 0,
    }


def callout_gaps(zone: Zone, callouts: Sequence[Callout],
                 policy: Optional[ChatterPolicy] = None) -> List[Tuple[float, float]]:
    """
    Stretches (start_mile, end_mile) inside the zone longer than gap_min_miles
    with no callout trigger, including the stretch from the last trigger to
    the zone end.
    """
    policy = policy or default_chatter_policy()
    triggers = sorted(
        c.trigger_mile for c in callouts
        if zone.start_distance <= c.trigger_distance <= zone.end_distance
    )
    gaps: List[Tuple[float, float]] = []
    previous = zone.start_mile
    for mile in triggers + [zone.end_mile]:
        if mile - previous > policy.gap_min_miles:
            gaps.append((previous, mile))
        previous = mile
    return gaps


def _sharpest_curve(zone: Zone, curves: Sequence[Curve], policy: ChatterPolicy) -> Optional[Curve]:
    inside = [
        c for c in curves
        if not c.is_noise and zone.contains(c.apex_distance) and c.angle > policy.notable_min_angle_deg
    ]
    if not inside:
        return None
    return max(inside, key=lambda c: c.angle)


def _curves_announced_in(zone: Optional[Zone], callouts: Sequence[Callout]) -> int:
    if zone is None:
        return 0
    return sum(
        1 for c in callouts
        if c.type.announces_curve and zone.start_distance <= c.event_distance < zone.end_distance
    )


# -------------------------
# playback
# -------------------------

def speed_bracket(speed_mph: float, policy: Optional[ChatterPolicy] = None) -> SpeedBracket:
    policy = policy or default_chatter_policy()
    brackets = [SpeedBracket.SLOW, SpeedBracket.CRUISE, SpeedBracket.SPIRITED, SpeedBracket.FAST]
    for bracket, limit in zip(brackets, policy.bracket_limits_mph):
        if speed_mph < limit:
            return bracket
    return SpeedBracket.FLYING


def pick_variant(
    item: ChatterItem,
    speed_mph: float,
    rng: Optional[random.Random] = None,
    policy: Optional[ChatterPolicy] = None,
) -> Optional[str]:
    """
    Line for the current speed bracket; an empty bracket falls back to
    cruise. Without an rng the first line of the pool is used.
    """
    pool = item.pool(speed_bracket(speed_mph, policy)) or item.pool(SpeedBracket.CRUISE)
    if not pool:
        return None
    if rng is None:
        return pool[0]
    return rng.choice(pool)


def can_play_chatter(
    item: ChatterItem,
    current_distance: float,
    speed_mph: float,
    callouts: Sequence[Callout],
    policy: Optional[ChatterPolicy] = None,
) -> bool:
    """
    False when speaking the item now would run into the buffer window
    ahead of any upcoming callout trigger.

    speak window:  [start, start + speak_seconds of travel]
    callout block: [trigger - buffer_seconds of travel, trigger]
    """
    policy = policy or default_chatter_policy()
    mph = speed_mph if speed_mph and speed_mph > 0 else policy.fallback_speed_mph
    meters_per_second = mph * METERS_PER_MILE / 3600.0

    start = max(current_distance, item.trigger_distance)
    end = start + policy.speak_seconds * meters_per_second
    buffer_m = policy.buffer_seconds * meters_per_second

    ordered = sorted(callouts, key=lambda c: c.trigger_distance)
    first = bisect_left([c.trigger_distance for c in ordered], current_distance)
    for callout in ordered[first:]:
        block_start = callout.trigger_distance - buffer_m
        if block_start > end:
            break
        if start < callout.trigger_distance:
            return False
    return True
