"""
Purpose: Domain models for the Highway capability (bends + chatter).
What it does:
- Defines core data structures:
- Bend (a gentle highway bend, S-sweep or active section inside a transit zone)
- ChatterItem (one ambient line with five speed-bracket variant pools)

Defines enums/constants:
- BendType = bend | s_sweep | section
- SpeedBracket = slow | cruise | spirited | fast | flying
- ChatterTriggerType = highway_enter | interval | notable_feature |
  long_straight_start | long_straight_end | highway_exit_preview

Rule: Independent of Callout. Nothing here is safety critical.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from routing.models import CurveDirection, RoutePoint, meters_to_miles


class BendType(str, Enum):
    BEND = "bend"
    S_SWEEP = "s_sweep"
    SECTION = "section"


@dataclass(frozen=True)
class Bend:
    """
    distance_from_start is where the bend begins (meters from route start).

    angle is the bend's own angle for a plain bend, the combined angle for
    an S-sweep and the sharpest member angle for a section. parts holds the
    two halves of an S-sweep or the members of a section.
    """
    id: str
    type: BendType
    direction: CurveDirection
    angle: float
    length: float
    distance_from_start: float
    position: RoutePoint
    is_sweeper: bool = False
    severity: int = 1
    parts: Tuple["Bend", ...] = ()
    gap_m: Optional[float] = None
    optimal_speed_mph: Optional[int] = None
    throttle_advice: str = ""
    text: str = ""

    @property
    def mile(self) -> float:
        return meters_to_miles(self.distance_from_start)

    @property
    def end_distance(self) -> float:
        return self.distance_from_start + self.length

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type.value,
            "direction": self.direction.value,
            "angle": self.angle,
            "length": self.length,
            "distanceFromStart": self.distance_from_start,
            "mile": self.mile,
            "position": list(self.position),
            "isSweeper": self.is_sweeper,
            "severity": self.severity,
            "optimalSpeed": self.optimal_speed_mph,
            "throttleAdvice": self.throttle_advice,
            "text": self.text,
            "parts": [part.to_dict() for part in self.parts],
        }


class SpeedBracket(str, Enum):
    SLOW = "slow"
    CRUISE = "cruise"
    SPIRITED = "spirited"
    FAST = "fast"
    FLYING = "flying"


class ChatterTriggerType(str, Enum):
    HIGHWAY_ENTER = "highway_enter"
    INTERVAL = "interval"
    NOTABLE_FEATURE = "notable_feature"
    LONG_STRAIGHT_START = "long_straight_start"
    LONG_STRAIGHT_END = "long_straight_end"
    HIGHWAY_EXIT_PREVIEW = "highway_exit_preview"


@dataclass(frozen=True)
class ChatterItem:
    """
    Ambient line scheduled on the transit time grid.

    context carries the numbers the templates (and the optional polish
    layer) speak about: miles into the highway, straight length, etc.
    """
    id: str
    trigger_distance: float
    type: ChatterTriggerType
    variants: Dict[SpeedBracket, Tuple[str, ...]] = field(default_factory=dict)
    context: Dict[str, Any] = field(default_factory=dict)

    @property
    def trigger_mile(self) -> float:
        return meters_to_miles(self.trigger_distance)

    def pool(self, bracket: SpeedBracket) -> Tuple[str, ...]:
        return self.variants.get(bracket, ())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "triggerMile": self.trigger_mile,
            "triggerDistance": self.trigger_distance,
            "type": self.type.value,
            "variants": {bracket.value: list(self.pool(bracket)) for bracket in SpeedBracket},
            "context": dict(self.context),
        }
