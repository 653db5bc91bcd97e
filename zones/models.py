"""
Purpose: Domain models for the Zones capability.
What it does:
- Defines core data structures:
- Zone (start/end distance in meters, character, road label, reason)
- ZoneIssue (a validation finding about a zone list)

Defines enums/constants:
- ZoneCharacter = urban | transit | technical
- ZoneIssueKind = short_zone | interior_urban | ping_pong

Rule: No classification logic. Models only.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from routing.models import meters_to_miles


class ZoneCharacter(str, Enum):
    URBAN = "urban"
    TRANSIT = "transit"
    TECHNICAL = "technical"


class ZoneIssueKind(str, Enum):
    SHORT_ZONE = "short_zone"
    INTERIOR_URBAN = "interior_urban"
    PING_PONG = "ping_pong"


@dataclass(frozen=True)
class Zone:
    """
    A stretch of route with one driving character.

    Intervals are half-open [start_distance, end_distance); the last zone of a
    route is closed at the route's total distance.
    """
    start_distance: float
    end_distance: float
    character: ZoneCharacter
    road: str = ""
    reason: str = ""

    @property
    def length_m(self) -> float:
        return self.end_distance - self.start_distance

    @property
    def length_miles(self) -> float:
        return meters_to_miles(self.length_m)

    @property
    def start_mile(self) -> float:
        return meters_to_miles(self.start_distance)

    @property
    def end_mile(self) -> float:
        return meters_to_miles(self.end_distance)

    @property
    def is_gap(self) -> bool:
        return self.road.startswith("[gap")

    def contains(self, distance: float) -> bool:
        return self.start_distance <= distance < self.end_distance

    def to_dict(self) -> dict:
        return {
            "startDistance": self.start_distance,
            "endDistance": self.end_distance,
            "character": self.character.value,
            "road": self.road,
            "reason": self.reason,
        }


@dataclass(frozen=True)
class ZoneIssue:
    kind: ZoneIssueKind
    index: int
    message: str
