"""
Purpose: Find the gentle bends a highway driver still feels (HighwayBendAnalyzer).
What it does:

- resamples the route every sample_interval_m (numpy interp)
- inside each transit zone, slides a window over the heading changes and
  grows every window that turns >= min_angle into a full bend
- pairs opposite bends that follow each other closely into S-sweeps
- folds runs of 3+ close bends into one "active section"
- thins markers to min_spacing_m, keeping the more significant one
- adds coaching: severity, target speed, throttle advice, spoken text

Typical public function signature:

- analyze_highway_bends(points, zones, policy) -> List[Bend]

Rule: Output is independent of the callout stream and sorted by distance.
"""

from __future__ import annotations

import logging
from bisect import bisect_left, bisect_right
from dataclasses import replace
from typing import List, Optional, Sequence, Set

from routing.curve_detection import severity_for_angle
from routing.geo import bearing_deg, heading_change, resample
from routing.models import CurveDirection, RoutePoint
from zones.models import Zone, ZoneCharacter

from .models import Bend, BendType
from .policy import BendPolicy, default_bend_policy

logger = logging.getLogger(__name__)


def analyze_highway_bends(
    points: Sequence[RoutePoint],
    zones: Sequence[Zone],
    policy: Optional[BendPolicy] = None,
) -> List[Bend]:
    policy = policy or default_bend_policy()
    transit = [z for z in zones if z.character is ZoneCharacter.TRANSIT]
    if len(points) < 2 or not transit:
        return []

    sampled, distances = resample(points, policy.sample_interval_m)

    bends: List[Bend] = []
    for zone in transit:
        lo = bisect_left(distances, zone.start_distance)
        hi = bisect_right(distances, zone.end_distance)
        found = detect_bends(sampled[lo:hi], distances[lo:hi], policy, first_id=len(bends) + 1)
        logger.debug("highway bends: %d in transit zone %.1f-%.1f mi",
                     len(found), zone.start_mile, zone.end_mile)
        bends.extend(found)

    bends = pair_s_sweeps(bends, policy)
    bends = consolidate_sections(bends, policy)
    bends = enforce_spacing(bends, policy)
    bends = [add_coaching(bend, policy) for bend in bends]

    logger.info("highway bend analysis: %d markers", len(bends))
    return sorted(bends, key=lambda b: b.distance_from_start)


# -------------------------
# detection
# -------------------------

def detect_bends(
    points: Sequence[RoutePoint],
    distances: Sequence[float],
    policy: Optional[BendPolicy] = None,
    first_id: int = 1,
) -> List[Bend]:
    """
    Sliding-window bend detection over evenly sampled points.

    headings[j] runs from point j to point j+1; turns[j] is the signed
    change between headings j and j+1 (positive = right).
    """
    policy = policy or default_bend_policy()
    window = policy.window_samples
    if len(points) < window + 2:
        return []

    headings = [bearing_deg(points[j], points[j + 1]) for j in range(len(points) - 1)]
    turns = [heading_change(headings[j], headings[j + 1]) for j in range(len(headings) - 1)]

    bends: List[Bend] = []
    used: Set[int] = set()
    i = 0
    while i < len(headings) - window:
        if any(j in used for j in range(i, i + window)):
            i += 1
            continue

        window_change = sum(turns[i:i + window - 1])
        if abs(window_change) < policy.min_angle_deg:
            i += 1
            continue

        sign = 1.0 if window_change > 0 else -1.0
        start, end, total = i, i + window - 1, window_change

        while start > 0 and (start - 1) not in used and _extends(turns[max(start - 2, 0):start], sign, policy):
            total += turns[start - 1]
            start -= 1
        while end < len(turns) and (end + 1) not in used and _extends(turns[end:end + 2], sign, policy):
            total += turns[end]
            end += 1

        angle = float(round(abs(total)))
        length = distances[min(end + 1, len(distances) - 1)] - distances[start]
        if policy.min_angle_deg <= angle <= policy.max_angle_deg and length >= policy.min_length_m:
            severity = angle_to_severity(angle, policy)
            bends.append(Bend(
                id=f"hwy-{first_id + len(bends)}",
                type=BendType.BEND,
                direction=CurveDirection.RIGHT if total > 0 else CurveDirection.LEFT,
                angle=angle,
                length=round(length, 1),
                distance_from_start=round(distances[start], 1),
                position=points[(start + end + 1) // 2],
                is_sweeper=is_sweeper(angle, length, policy),
                severity=severity,
            ))
            used.update(range(start, end + 1))
        i = end + 1
    return bends


def _extends(turns: Sequence[float], sign: float, policy: BendPolicy) -> bool:
    # two samples, so a flat sample between two vertices does not end the bend
    change = sum(turns)
    return change * sign > 0 and abs(change) > policy.extend_min_change_deg


def angle_to_severity(angle: float, policy: Optional[BendPolicy] = None) -> int:
    policy = policy or default_bend_policy()
    for severity, limit in enumerate(policy.severity_breakpoints, start=1):
        if angle < limit:
            return severity
    return len(policy.severity_breakpoints) + 1


def is_sweeper(angle: float, length: float, policy: Optional[BendPolicy] = None) -> bool:
    """
    Long, open bend. The severity cap is judged on the main 1..6 curve
    scale, not the bend scale used for coaching.
    """
    policy = policy or default_bend_policy()
    return (
        policy.sweeper_min_angle_deg <= angle <= policy.sweeper_max_angle_deg
        and length >= policy.sweeper_min_length_m
        and severity_for_angle(angle) <= policy.sweeper_max_severity
    )


# -------------------------
# post-processing
# -------------------------

def pair_s_sweeps(bends: Sequence[Bend], policy: Optional[BendPolicy] = None) -> List[Bend]:
    """
    Two opposite-direction sweepers with less than s_sweep_max_gap_m between
    the end of the first and the start of the second become one S-sweep.
    """
    policy = policy or default_bend_policy()
    ordered = sorted(bends, key=lambda b: b.distance_from_start)
    result: List[Bend] = []
    i = 0
    while i < len(ordered):
        current = ordered[i]
        following = ordered[i + 1] if i + 1 < len(ordered) else None
        if following is not None and _is_s_pair(current, following, policy):
            gap = following.distance_from_start - current.end_distance
            result.append(Bend(
                id=f"hwy-s-{len(result) + 1}",
                type=BendType.S_SWEEP,
                direction=current.direction,
                angle=current.angle + following.angle,
                length=following.end_distance - current.distance_from_start,
                distance_from_start=current.distance_from_start,
                position=current.position,
                is_sweeper=True,
                severity=max(current.severity, following.severity),
                parts=(current, following),
                gap_m=round(gap, 1),
            ))
            i += 2
            continue
        result.append(current)
        i += 1
    return result


def _is_s_pair(first: Bend, second: Bend, policy: BendPolicy) -> bool:
    if first.type is not BendType.BEND or second.type is not BendType.BEND:
        return False
    if not (first.is_sweeper and second.is_sweeper):
        return False
    gap = second.distance_from_start - first.end_distance
    return first.direction is not second.direction and 0 <= gap < policy.s_sweep_max_gap_m


def consolidate_sections(bends: Sequence[Bend], policy: Optional[BendPolicy] = None) -> List[Bend]:
    """
    Runs of >= section_min_bends markers whose starts are at most
    section_max_gap_m apart collapse into one section marker that keeps
    its members in parts.
    """
    policy = policy or default_bend_policy()
    ordered = sorted(bends, key=lambda b: b.distance_from_start)
    result: List[Bend] = []
    i = 0
    while i < len(ordered):
        j = i
        while (
            j + 1 < len(ordered)
            and ordered[j + 1].distance_from_start - ordered[j].distance_from_start <= policy.section_max_gap_m
        ):
            j += 1

        run = ordered[i:j + 1]
        if len(run) >= policy.section_min_bends:
            first, last = run[0], run[-1]
            result.append(Bend(
                id=f"hwy-section-{len(result) + 1}",
                type=BendType.SECTION,
                direction=first.direction,
                angle=max(b.angle for b in run),
                length=last.end_distance - first.distance_from_start,
                distance_from_start=first.distance_from_start,
                position=first.position,
                is_sweeper=all(b.is_sweeper for b in run),
                severity=max(b.severity for b in run),
                parts=tuple(run),
            ))
            i = j + 1
        else:
            result.append(ordered[i])
            i += 1
    return result


def significance(bend: Bend, policy: Optional[BendPolicy] = None) -> float:
    policy = policy or default_bend_policy()
    if bend.type is BendType.S_SWEEP:
        return bend.angle * policy.s_sweep_weight
    return bend.angle


def enforce_spacing(bends: Sequence[Bend], policy: Optional[BendPolicy] = None) -> List[Bend]:
    """
    Markers closer than min_spacing_m to the last kept one are dropped,
    unless they beat it by replace_ratio, in which case they replace it.
    """
    policy = policy or default_bend_policy()
    result: List[Bend] = []
    for bend in sorted(bends, key=lambda b: b.distance_from_start):
        if not result or bend.distance_from_start - result[-1].distance_from_start >= policy.min_spacing_m:
            result.append(bend)
        elif significance(bend, policy) > significance(result[-1], policy) * policy.replace_ratio:
            result[-1] = bend
    return result


# -------------------------
# coaching
# -------------------------

def optimal_speed(bend: Bend, policy: Optional[BendPolicy] = None) -> int:
    policy = policy or default_bend_policy()
    angle = _coaching_angle(bend)
    reduction = 0
    for above, mph in policy.speed_reductions:
        if angle > above:
            reduction = mph
            break
    if bend.type is BendType.S_SWEEP:
        reduction += policy.s_sweep_extra_reduction
    return policy.base_speed_mph - reduction


def throttle_advice(bend: Bend) -> str:
    angle = _coaching_angle(bend)
    if bend.type is BendType.S_SWEEP:
        return "Lift through the transition, power out of the second bend"
    if angle < 10:
        return "Hold the throttle"
    if angle < 15:
        return "Small lift, stay smooth"
    if angle < 25:
        return "Ease off on entry, build throttle from the apex"
    return "Brake before entry, drive out from the apex"


def add_coaching(bend: Bend, policy: Optional[BendPolicy] = None) -> Bend:
    policy = policy or default_bend_policy()
    coached = replace(
        bend,
        severity=angle_to_severity(_coaching_angle(bend), policy),
        optimal_speed_mph=optimal_speed(bend, policy),
        throttle_advice=throttle_advice(bend),
    )
    return replace(coached, text=bend_text(coached, policy))


def bend_text(bend: Bend, policy: Optional[BendPolicy] = None) -> str:
    policy = policy or default_bend_policy()
    word = bend.direction.word

    if bend.type is BendType.S_SWEEP:
        first, second = bend.parts
        text = f"S sweep, {first.direction.word} {first.angle:.0f} then {second.direction.word} {second.angle:.0f}."
        if bend.gap_m is not None and bend.gap_m < policy.quick_transition_gap_m:
            text += " Quick change."
        return text

    if bend.type is BendType.SECTION:
        phrases = [f"Active section, {len(bend.parts)} bends"]
        for index, part in enumerate(bend.parts):
            phrases.append(_section_phrase(part, index == 0, policy))
        phrases.append("Clear after")
        return ". ".join(phrases) + "."

    if bend.angle < 12:
        if bend.length > 400:
            size = "Very long gentle"
        elif bend.length > 200:
            size = "Long gentle"
        else:
            size = "Gentle"
        return f"{size} {word} sweep, {bend.angle:.0f} degrees"
    return f"{word.capitalize()} sweep, {bend.angle:.0f} degrees. Target {bend.optimal_speed_mph or optimal_speed(bend, policy)}."


def _section_phrase(part: Bend, first: bool, policy: BendPolicy) -> str:
    word = part.direction.word
    if part.type is BendType.S_SWEEP:
        a, b = part.parts
        return f"S-sweep {a.direction.word}-{b.direction.word}"
    speed = optimal_speed(part, policy)
    if first:
        return f"{word.capitalize()} in at {speed}"
    if part.angle > 20:
        return f"{word.capitalize()} {part.angle:.0f}, {speed}"
    if part.angle > 12:
        return f"{word.capitalize()} sweep, {speed}"
    return f"Easy {word}"


def _coaching_angle(bend: Bend) -> float:
    if bend.type is BendType.S_SWEEP and bend.parts:
        return max(part.angle for part in bend.parts)
    return bend.angle
