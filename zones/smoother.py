"""
Purpose: Zone clean-up pass (ZoneSmoother) + zone validation report.
What it does:

Repeats until nothing changes:
- sandwich: a short zone between two same-character zones takes their character
- very short: a zone under the minimum length joins its longer neighbour
- interior urban: urban survives only as first/last zone, unless the zone
  shows dense-grid evidence (many small curves, none sharp)
- merge adjacent same-character zones

Also: validate_zones(zones) lists the issues the pass would fix
(short zones, interior urban, A-B-A ping-pong).

Rule: smooth_zones(smooth_zones(z)) == smooth_zones(z).
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import List, Optional, Sequence

from routing.models import Curve

from .classifier import merge_adjacent
from .models import Zone, ZoneCharacter, ZoneIssue, ZoneIssueKind
from .policy import ZonePolicy, default_zone_policy

logger = logging.getLogger(__name__)


def smooth_zones(
    zones: Sequence[Zone],
    curves: Sequence[Curve] = (),
    policy: Optional[ZonePolicy] = None,
) -> List[Zone]:
    """
    Idempotent smoothing. Each applied rule removes at least one zone
    boundary, so the loop ends after at most len(zones) rounds.
    """
    policy = policy or default_zone_policy()
    current = merge_adjacent(zones)

    for _ in range(len(current) + 1):
        changed = _apply_one_rule(current, curves, policy)
        if changed is None:
            break
        current = merge_adjacent(changed)

    logger.debug("zone smoother: %d -> %d zones", len(zones), len(current))
    return current


def validate_zones(zones: Sequence[Zone], policy: Optional[ZonePolicy] = None) -> List[ZoneIssue]:
    """
    Report problems in a zone list without changing it.
    """
    policy = policy or default_zone_policy()
    issues: List[ZoneIssue] = []
    last = len(zones) - 1

    for index, zone in enumerate(zones):
        if zone.length_miles < policy.min_zone_miles and len(zones) > 1:
            issues.append(ZoneIssue(
                ZoneIssueKind.SHORT_ZONE, index,
                f"{zone.character.value} zone is only {zone.length_miles:.2f} mi",
            ))

        if zone.character is ZoneCharacter.URBAN and 0 < index < last:
            issues.append(ZoneIssue(
                ZoneIssueKind.INTERIOR_URBAN, index,
                f"urban zone in the middle of the route at mile {zone.start_mile:.1f}",
            ))

        if 0 < index < last:
            before, after = zones[index - 1], zones[index + 1]
            if (
                before.character == after.character != zone.character
                and zone.length_miles < policy.ping_pong_max_miles
            ):
                issues.append(ZoneIssue(
                    ZoneIssueKind.PING_PONG, index,
                    f"{before.character.value}-{zone.character.value}-{after.character.value} "
                    f"flip at mile {zone.start_mile:.1f}",
                ))
    return issues


# -------------------------
# rules (each returns a new list, or None if it does not apply)
# -------------------------

def _apply_one_rule(zones: List[Zone], curves: Sequence[Curve], policy: ZonePolicy) -> Optional[List[Zone]]:
    for rule in (_absorb_sandwich, _absorb_very_short, _recharacterize_interior_urban):
        result = rule(zones, curves, policy)
        if result is not None:
            return result
    return None


def _absorb_sandwich(zones: List[Zone], curves: Sequence[Curve], policy: ZonePolicy) -> Optional[List[Zone]]:
    for index in range(1, len(zones) - 1):
        zone = zones[index]
        before, after = zones[index - 1], zones[index + 1]
        if (
            before.character == after.character != zone.character
            and zone.length_miles < policy.sandwich_max_miles
        ):
            return _recharacterize(zones, index, before.character,
                                   f"absorbed short {zone.character.value} between {before.character.value} zones")
    return None


def _absorb_very_short(zones: List[Zone], curves: Sequence[Curve], policy: ZonePolicy) -> Optional[List[Zone]]:
    if len(zones) < 2:
        return None
    for index, zone in enumerate(zones):
        if zone.length_miles >= policy.min_zone_miles:
            continue
        neighbour = _longer_neighbour(zones, index)
        return _recharacterize(zones, index, neighbour.character,
                               f"absorbed {zone.length_miles:.2f} mi {zone.character.value} zone")
    return None


def _recharacterize_interior_urban(zones: List[Zone], curves: Sequence[Curve],
                                   policy: ZonePolicy) -> Optional[List[Zone]]:
    for index in range(1, len(zones) - 1):
        zone = zones[index]
        if zone.character is not ZoneCharacter.URBAN:
            continue
        if zone.length_miles >= policy.interior_urban_max_miles:
            continue
        if _has_grid_evidence(zone, curves, policy):
            continue
        neighbour = _longer_neighbour(zones, index, skip=ZoneCharacter.URBAN)
        return _recharacterize(zones, index, neighbour.character, "interior urban recharacterized to context")
    return None


# -------------------------
# helpers
# -------------------------

def _recharacterize(zones: List[Zone], index: int, character: ZoneCharacter, reason: str) -> List[Zone]:
    updated = list(zones)
    updated[index] = replace(zones[index], character=character, reason=reason)
    return updated


def _longer_neighbour(zones: List[Zone], index: int, skip: Optional[ZoneCharacter] = None) -> Zone:
    candidates = []
    if index > 0:
        candidates.append(zones[index - 1])
    if index < len(zones) - 1:
        candidates.append(zones[index + 1])
    preferred = [zone for zone in candidates if zone.character != skip] or candidates
    if len(preferred) == 1:
        return preferred[0]
    before, after = preferred
    # ties go to the zone before
    return after if after.length_m > before.length_m else before


def _has_grid_evidence(zone: Zone, curves: Sequence[Curve], policy: ZonePolicy) -> bool:
    inside = [
        curve for curve in curves
        if not curve.is_noise and zone.start_distance <= curve.apex_distance < zone.end_distance
    ]
    if not inside or zone.length_miles <= 0:
        return False
    density = len(inside) / zone.length_miles
    return (
        density >= policy.urban_grid_min_curves_per_mile
        and max(curve.angle for curve in inside) <= policy.urban_grid_max_angle
    )

