"""
Purpose: Build the fast / standard playback sets (CalloutGroupingService).
What it does:

- walks the deduped callout list in trigger order
- two callouts are "close" when their trigger gap is shorter than the
  distance covered in min_seconds at the profile's zone speed
- a run of close callouts becomes one coarser phrase:
    no danger     -> pattern phrase (chicane, esses, tightens, opens, series)
    one danger    -> danger phrase with the others as context
    many dangers  -> danger sequence phrase (DOUBLE HAIRPIN, ...)
- urban callouts and zone announcements pass through untouched

Runtime helpers:
- select_callout_set(grouped, speed_mph, zone)
- get_next_callout(callouts, distance, played_ids)

Rule: Pure. Every critical callout survives in both sets, either as itself
or inside a critical group that lists it in members.
"""

from __future__ import annotations

import bisect
import logging
from typing import Iterable, List, Optional, Sequence, Tuple

from routing.models import CurveDirection, miles_to_meters
from zones.models import ZoneCharacter

from .models import Callout, CalloutPriority, CalloutType, GroupedCallouts
from .policy import GroupingPolicy, SpeedProfile, default_grouping_policy

logger = logging.getLogger(__name__)

# minimum trigger separation kept between consecutive entries of a set (meters)
_MIN_TRIGGER_STEP_M = 1.0


def group_callouts(
    callouts: Sequence[Callout],
    policy: Optional[GroupingPolicy] = None,
) -> GroupedCallouts:
    policy = policy or default_grouping_policy()
    ordered = sorted(callouts, key=lambda c: c.trigger_distance)

    fast = _build_set(ordered, policy.fast, policy)
    standard = _build_set(ordered, policy.standard, policy)

    logger.debug("callout grouping: %d in -> %d fast / %d standard",
                 len(ordered), len(fast), len(standard))
    return GroupedCallouts(fast=tuple(fast), standard=tuple(standard))


def _groupable(callout: Callout) -> bool:
    return callout.zone is not ZoneCharacter.URBAN and callout.type.announces_curve


def _build_set(ordered: List[Callout], profile: SpeedProfile, policy: GroupingPolicy) -> List[Callout]:
    groups: List[List[Callout]] = []
    for callout in ordered:
        if groups and _joins(groups[-1], callout, profile):
            groups[-1].append(callout)
        else:
            groups.append([callout])

    result: List[Callout] = []
    for group in groups:
        previous_trigger = result[-1].trigger_distance if result else None
        result.append(_process_group(group, previous_trigger, policy))
    return result


def _joins(group: List[Callout], callout: Callout, profile: SpeedProfile) -> bool:
    last = group[-1]
    if not (_groupable(last) and _groupable(callout)):
        return False
    if callout.zone is not last.zone:
        return False
    gap_m = callout.trigger_distance - last.trigger_distance
    return gap_m < miles_to_meters(profile.merge_gap_miles(last.zone))


# -------------------------
# phrasing
# -------------------------

def _process_group(group: List[Callout], previous_trigger: Optional[float],
                   policy: GroupingPolicy) -> Callout:
    if len(group) == 1:
        return group[0]

    dangers = [c for c in group if _is_danger(c, policy)]
    if not dangers:
        text = _simple_text(group)
        reason = f"{len(group)} curves grouped ({detect_pattern(group)})"
        lead = policy.group_lead_miles
        id_prefix = "group"
    elif len(dangers) == 1:
        text = _danger_with_context(group, dangers[0], policy)
        reason = f"Danger curve {_angle(dangers[0]):.0f}° with {len(group) - 1} surrounding curves"
        lead = policy.group_lead_miles
        id_prefix = "danger-group"
    else:
        text = _danger_sequence(dangers, policy)
        reason = f"{len(dangers)} danger curves in {group[-1].event_mile - group[0].event_mile:.2f} miles"
        lead = policy.danger_group_lead_miles
        id_prefix = "danger-seq"

    first = group[0]
    trigger = max(0.0, first.trigger_distance - miles_to_meters(lead))
    if previous_trigger is not None:
        trigger = max(trigger, previous_trigger + _MIN_TRIGGER_STEP_M)
    trigger = min(trigger, first.trigger_distance)

    priority = CalloutPriority.highest(*(c.priority for c in group))
    if dangers:
        priority = CalloutPriority.CRITICAL
    elif max(_angle(c) for c in group) >= policy.high_priority_angle_deg:
        priority = CalloutPriority.highest(priority, CalloutPriority.HIGH)

    lead_callout = dangers[0] if dangers else first
    return Callout(
        id=f"{id_prefix}-{first.trigger_mile:.2f}",
        trigger_distance=trigger,
        event_distance=min(c.event_distance for c in group),
        text=text,
        type=CalloutType.GROUP,
        priority=priority,
        zone=first.zone,
        position=first.position,
        direction=lead_callout.direction,
        angle=max(_angle(c) for c in group),
        reason=reason,
        speed_mph=min((c.speed_mph for c in group if c.speed_mph is not None), default=None),
        members=_member_ids(group),
    )


def detect_pattern(group: Sequence[Callout]) -> str:
    """
    chicane:  two curves, alternating direction
    esses:    three or more, alternating
    tightens: strictly increasing angles
    opens:    strictly decreasing angles
    series:   same direction throughout
    sequence: anything else
    """
    directions = [_direction(c) for c in group]
    angles = [_angle(c) for c in group]

    alternating = all(a is not b for a, b in zip(directions, directions[1:]))
    if alternating and len(directions) == 2:
        return "chicane"
    if alternating and len(directions) >= 3:
        return "esses"
    if all(b > a for a, b in zip(angles, angles[1:])):
        return "tightens"
    if all(b < a for a, b in zip(angles, angles[1:])):
        return "opens"
    if len(set(directions)) == 1:
        return "series"
    return "sequence"


def _simple_text(group: List[Callout]) -> str:
    pattern = detect_pattern(group)
    words = [_direction(c).word for c in group]
    max_angle = int(round(max(_angle(c) for c in group)))
    count = len(group)

    if pattern == "chicane":
        return f"Chicane {words[0]}-{words[-1]}"
    if pattern == "esses":
        return f"Esses, {count} curves, max {max_angle}°"
    if pattern == "tightens":
        return f"{words[0].capitalize()} tightens to {max_angle}°"
    if pattern == "opens":
        return f"{words[0].capitalize()} {max_angle}°, opens up"
    if pattern == "series":
        return f"Series of {count} {words[0]}s, max {max_angle}°"
    if count <= 3:
        return f"{'-'.join(words).capitalize()}, max {max_angle}°"
    return f"Sequence of {count} curves, max {max_angle}°, stay focused"


def _danger_phrase(callout: Callout, policy: GroupingPolicy) -> str:
    word = _direction(callout).word.upper()
    if _angle(callout) >= policy.hairpin_angle_deg:
        return f"HAIRPIN {word}"
    return f"HARD {word} {_angle(callout):.0f}°"


def _danger_with_context(group: List[Callout], danger: Callout, policy: GroupingPolicy) -> str:
    index = group.index(danger)
    before, after = group[:index], group[index + 1:]
    phrase = _danger_phrase(danger, policy)
    hairpin = _angle(danger) >= policy.hairpin_angle_deg

    if before and after:
        into = _direction(before[-1]).word.capitalize()
        out = _direction(after[0]).word
        if hairpin:
            return f"{into} tightens, {phrase}, {out} out"
        return f"{into}, then {phrase}, {out}"
    if before:
        return f"{_direction(before[-1]).word.capitalize()} into {phrase}"
    if after:
        return f"{phrase}, exits {_direction(after[0]).word}"
    return phrase


def _danger_sequence(dangers: List[Callout], policy: GroupingPolicy) -> str:
    words = [_direction(c).word for c in dangers]
    hairpins = [c for c in dangers if _angle(c) >= policy.hairpin_angle_deg]

    if len(hairpins) == 2:
        first, second = (_direction(c).word for c in hairpins)
        if first != second:
            return f"DOUBLE HAIRPIN {first}-{second}"
        return f"TWO HAIRPINS {first}"
    if len(hairpins) > 2:
        return f"{len(hairpins)} HAIRPINS ahead, stay focused"

    if len(dangers) == 2:
        first, second = dangers
        if words[0] != words[1]:
            return f"{_danger_phrase(first, policy)} into {_danger_phrase(second, policy)}"
        return f"Two HARD {words[0]}s, {_angle(first):.0f}° then {_angle(second):.0f}°"

    max_angle = max(_angle(c) for c in dangers)
    return f"DANGER - {len(dangers)} hard curves ahead, max {max_angle:.0f}°"


# -------------------------
# helpers
# -------------------------

def _is_danger(callout: Callout, policy: GroupingPolicy) -> bool:
    return callout.is_critical or _angle(callout) >= policy.danger_angle_deg


def _angle(callout: Callout) -> float:
    return callout.angle if callout.angle is not None else 0.0


def _direction(callout: Callout) -> CurveDirection:
    return callout.direction or CurveDirection.RIGHT


def _member_ids(group: Iterable[Callout]) -> Tuple[str, ...]:
    ids: List[str] = []
    for callout in group:
        ids.append(callout.id)
        ids.extend(callout.members)
    return tuple(dict.fromkeys(ids))


# -------------------------
# runtime selection
# -------------------------

def select_callout_set(
    grouped: GroupedCallouts,
    speed_mph: float,
    zone: ZoneCharacter,
    policy: Optional[GroupingPolicy] = None,
) -> Tuple[Callout, ...]:
    """
    The fast set plays above the zone's speed threshold; urban always
    plays the standard set.
    """
    policy = policy or default_grouping_policy()
    threshold = policy.fast_threshold_mph.get(zone)
    if threshold is not None and speed_mph > threshold:
        return grouped.fast
    return grouped.standard


def get_next_callout(
    callouts: Sequence[Callout],
    distance: float,
    played_ids: Iterable[str] = (),
) -> Optional[Callout]:
    """
    First callout whose trigger lies ahead of `distance` and that has not
    been played. Relies on the list being sorted by trigger_distance.
    """
    played = set(played_ids)
    triggers = [c.trigger_distance for c in callouts]
    start = bisect.bisect_right(triggers, distance)
    for callout in callouts[start:]:
        if callout.id not in played:
            return callout
    return None
