"""
Purpose: Domain models for the Callouts capability.
What it does:
- Defines core data structures:
- Event (a curve fused with the zone it sits in)
- Callout (a spoken note with a trigger distance BEFORE the feature)
- CurveSequence, WakeUp (filter diagnostics)
- GroupedCallouts (fast / standard playback sets)

Defines enums/constants:
- EventType = curve | significant | danger
- EventShape = tight | medium | sweeper
- CalloutPriority = critical | high | medium | low
- CalloutType = curve | significant | danger | sequence | transition | wake_up | zone_announce | group

Rule: No filtering or grouping logic. Models only.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from routing.models import CurveDirection, CurveModifier, RoutePoint, meters_to_miles
from zones.models import ZoneCharacter


class EventType(str, Enum):
    CURVE = "curve"
    SIGNIFICANT = "significant"
    DANGER = "danger"


class EventShape(str, Enum):
    TIGHT = "tight"
    MEDIUM = "medium"
    SWEEPER = "sweeper"


class CalloutPriority(str, Enum):
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def rank(self) -> int:
        return _PRIORITY_RANK[self]

    @staticmethod
    def highest(*priorities: "CalloutPriority") -> "CalloutPriority":
        return max(priorities, key=lambda p: p.rank)


_PRIORITY_RANK = {
    CalloutPriority.CRITICAL: 3,
    CalloutPriority.HIGH: 2,
    CalloutPriority.MEDIUM: 1,
    CalloutPriority.LOW: 0,
}


class CalloutType(str, Enum):
    CURVE = "curve"
    SIGNIFICANT = "significant"
    DANGER = "danger"
    SEQUENCE = "sequence"
    TRANSITION = "transition"
    WAKE_UP = "wake_up"
    ZONE_ANNOUNCE = "zone_announce"
    GROUP = "group"

    @property
    def announces_curve(self) -> bool:
        return self not in (CalloutType.TRANSITION, CalloutType.ZONE_ANNOUNCE)


@dataclass(frozen=True)
class Event:
    """
    One qualifying curve placed in its zone.
    distance is the curve apex (meters from route start).
    """
    distance: float
    angle: float
    direction: CurveDirection
    type: EventType
    zone_type: ZoneCharacter
    curve_id: int = 0
    position: Optional[RoutePoint] = None
    shape: EventShape = EventShape.SWEEPER
    length: float = 0.0
    modifiers: Tuple[CurveModifier, ...] = ()

    @property
    def mile(self) -> float:
        return meters_to_miles(self.distance)


@dataclass(frozen=True)
class Callout:
    """
    A spoken note. Invariant: 0 <= trigger_distance < event_distance.

    members lists the source ids folded into this callout (sequence,
    collapsed chain or speed group); empty for a plain callout.
    """
    id: str
    trigger_distance: float
    event_distance: float
    text: str
    type: CalloutType
    priority: CalloutPriority
    zone: ZoneCharacter
    position: Optional[RoutePoint] = None
    direction: Optional[CurveDirection] = None
    angle: Optional[float] = None
    reason: str = ""
    speed_mph: Optional[int] = None
    modifiers: Tuple[CurveModifier, ...] = ()
    members: Tuple[str, ...] = ()

    @property
    def trigger_mile(self) -> float:
        return meters_to_miles(self.trigger_distance)

    @property
    def event_mile(self) -> float:
        return meters_to_miles(self.event_distance)

    @property
    def is_critical(self) -> bool:
        return self.priority is CalloutPriority.CRITICAL

    def covers(self, callout_id: str) -> bool:
        return callout_id == self.id or callout_id in self.members

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "triggerDistance": self.trigger_distance,
            "triggerMile": self.trigger_mile,
            "eventDistance": self.event_distance,
            "text": self.text,
            "type": self.type.value,
            "priority": self.priority.value,
            "zone": self.zone.value,
            "position": list(self.position) if self.position else None,
            "direction": self.direction.value if self.direction else None,
            "angle": self.angle,
            "reason": self.reason,
            "speedMph": self.speed_mph,
            "members": list(self.members),
        }


@dataclass(frozen=True)
class CurveSequence:
    events: Tuple[Event, ...]
    pattern: str  # e.g. "R-L-R"
    max_angle: float

    @property
    def start_mile(self) -> float:
        return self.events[0].mile

    @property
    def end_mile(self) -> float:
        return self.events[-1].mile


@dataclass(frozen=True)
class WakeUp:
    event: Event
    straight_miles: float


@dataclass(frozen=True)
class FilterResult:
    """
    Output of the rule-based filter for one route.

    callouts is the spaced playback list; deduped is the same candidates
    after the 100 m pass only, which speed grouping works from.
    """
    callouts: List[Callout]
    sequences: List[CurveSequence] = field(default_factory=list)
    wake_ups: List[WakeUp] = field(default_factory=list)
    stats: Dict[str, int] = field(default_factory=dict)
    deduped: List[Callout] = field(default_factory=list)


@dataclass(frozen=True)
class GroupedCallouts:
    """
    Two alternate playback sets built from the same filtered list.
    """
    fast: Tuple[Callout, ...]
    standard: Tuple[Callout, ...]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "fast": [c.to_dict() for c in self.fast],
            "standard": [c.to_dict() for c in self.standard],
        }
