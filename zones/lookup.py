"""
Purpose: Distance -> zone lookup and the zone coverage invariant.
What it does:
- ZoneLookup: O(log n) bisect over zone starts
- check_coverage: verifies zones tile [0, total) with no gaps/overlaps;
  raises ZoneCoverageError in strict mode, otherwise self-heals with
  technical filler zones and logs the violation.

Rule: Read-only over zones; healing returns a new list.
"""

from __future__ import annotations

import logging
from bisect import bisect_right
from typing import List, Optional, Sequence

from .models import Zone, ZoneCharacter

logger = logging.getLogger(__name__)

# meters; float noise from mile <-> meter conversions stays below this
COVERAGE_EPSILON_M = 0.01


class ZoneCoverageError(Exception):
    """Zones do not cover [0, total) exactly once."""
    pass


class ZoneLookup:
    """
    Binary-search lookup over a contiguous zone list.
    """
    def __init__(self, zones: Sequence[Zone]):
        self.zones = list(zones)
        self._starts = [zone.start_distance for zone in self.zones]

    def zone_at(self, distance: float) -> Optional[Zone]:
        if not self.zones:
            return None
        return self.zones[self.index_at(distance)]

    def index_at(self, distance: float) -> int:
        index = bisect_right(self._starts, distance) - 1
        return min(max(index, 0), len(self.zones) - 1)

    def character_at(self, distance: float, default: ZoneCharacter = ZoneCharacter.TECHNICAL) -> ZoneCharacter:
        zone = self.zone_at(distance)
        return zone.character if zone is not None else default


def coverage_problems(zones: Sequence[Zone], total_distance: float) -> List[str]:
    problems: List[str] = []
    if not zones:
        return ["no zones"]
    if abs(zones[0].start_distance) > COVERAGE_EPSILON_M:
        problems.append(f"first zone starts at {zones[0].start_distance:.2f}m")
    for previous, current in zip(zones, zones[1:]):
        if current.start_distance - previous.end_distance > COVERAGE_EPSILON_M:
            problems.append(f"gap {previous.end_distance:.2f}m-{current.start_distance:.2f}m")
        elif previous.end_distance - current.start_distance > COVERAGE_EPSILON_M:
            problems.append(f"overlap at {current.start_distance:.2f}m")
    for zone in zones:
        if zone.end_distance <= zone.start_distance:
            problems.append(f"empty zone at {zone.start_distance:.2f}m")
    if abs(zones[-1].end_distance - total_distance) > COVERAGE_EPSILON_M:
        problems.append(f"last zone ends at {zones[-1].end_distance:.2f}m, route is {total_distance:.2f}m")
    return problems


def check_coverage(zones: Sequence[Zone], total_distance: float, strict: bool = False) -> List[Zone]:
    """
    Verify the coverage invariant.

    strict=True (development/tests): raise ZoneCoverageError.
    strict=False (production): log and return a healed copy.
    """
    problems = coverage_problems(zones, total_distance)
    if not problems:
        return list(zones)

    if strict:
        raise ZoneCoverageError("; ".join(problems))

    logger.error("zone coverage violated (%s); healing with filler zones", "; ".join(problems))
    return _heal(zones, total_distance)


def _heal(zones: Sequence[Zone], total_distance: float) -> List[Zone]:
    healed: List[Zone] = []
    cursor = 0.0
    for zone in sorted(zones, key=lambda z: z.start_distance):
        start = max(zone.start_distance, cursor)
        end = min(zone.end_distance, total_distance)
        if end <= start:
            continue
        if start - cursor > COVERAGE_EPSILON_M:
            healed.append(_filler(cursor, start))
        elif start != cursor:
            start = cursor
        healed.append(Zone(start, end, zone.character, zone.road, zone.reason))
        cursor = end

    if total_distance - cursor > COVERAGE_EPSILON_M or not healed:
        healed.append(_filler(cursor, total_distance))
    elif healed[-1].end_distance != total_distance:
        last = healed[-1]
        healed[-1] = Zone(last.start_distance, total_distance, last.character, last.road, last.reason)
    return healed


def _filler(start: float, end: float) -> Zone:
    return Zone(start, end, ZoneCharacter.TECHNICAL, road="[gap filler]", reason="coverage filler")
