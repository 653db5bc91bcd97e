"""
Purpose: Input models for the route capability.
What it does:
- Defines the route shapes every pipeline stage reads:
- RoutePoint = (lng, lat) tuple, ordering = driving direction
- RouteStep / RouteLeg (optional turn-by-turn metadata from the router)
- Route (coordinates, distance in meters, legs, optional pre-computed curves)
- RoadSegment (start/end mile, ref/name, road class, optional symbolrank)

Defines enums/constants:
- RoadClass = interstate | us_highway | state_route | local | unknown
- METERS_PER_MILE

Rule: No geometry math, no classification. Models + normalization only.
"""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Tuple

METERS_PER_MILE = 1609.34

# Route coordinate type: (lng, lat) as delivered by the router
RoutePoint = Tuple[float, float]


def miles_to_meters(miles: float) -> float:
    return miles * METERS_PER_MILE


def meters_to_miles(meters: float) -> float:
    return meters / METERS_PER_MILE


class RoadClass(str, Enum):
    INTERSTATE = "interstate"
    US_HIGHWAY = "us_highway"
    STATE_ROUTE = "state_route"
    LOCAL = "local"
    UNKNOWN = "unknown"

    @property
    def is_highway(self) -> bool:
        return self in (RoadClass.INTERSTATE, RoadClass.US_HIGHWAY)


@dataclass(frozen=True)
class RoadSegment:
    """
    A stretch of the route covered by one road, in route miles.
    Sparse: a route's segments need not cover the whole distance.
    """
    start_mile: float
    end_mile: float
    road_class: RoadClass = RoadClass.UNKNOWN
    ref: Optional[str] = None
    name: Optional[str] = None
    symbolrank: Optional[int] = None

    @property
    def label(self) -> str:
        return self.ref or self.name or "unnamed road"

    @property
    def length_miles(self) -> float:
        return max(0.0, self.end_mile - self.start_mile)


@dataclass(frozen=True)
class RouteStep:
    distance: float  # meters
    ref: Optional[str] = None
    name: Optional[str] = None


@dataclass(frozen=True)
class RouteLeg:
    distance: float  # meters
    steps: Tuple[RouteStep, ...] = ()

    @staticmethod
    def from_dict(raw: Dict[str, Any]) -> "RouteLeg":
        steps = tuple(
            RouteStep(
                distance=float(step.get("distance", 0.0)),
                ref=step.get("ref") or None,
                name=step.get("name") or None,
            )
            for step in raw.get("steps", []) or []
        )
        return RouteLeg(distance=float(raw.get("distance", 0.0)), steps=steps)


@dataclass(frozen=True)
class Route:
    """
    The analysis input:
      { coordinates: [lng,lat][], distance: meters, legs?: RouteLeg[], curves?: Curve[] }

    Pre-computed curves may arrive as dicts; they are normalized to Curve
    here so the detector can be skipped.
    """
    coordinates: Tuple[RoutePoint, ...]
    distance: float
    legs: Tuple[RouteLeg, ...] = ()
    curves: Optional[Tuple["Curve", ...]] = None

    @property
    def total_miles(self) -> float:
        return meters_to_miles(self.distance)

    @property
    def has_geometry(self) -> bool:
        return len(self.coordinates) >= 2 and self.distance > 0

    @staticmethod
    def new(coordinates: Sequence[Sequence[float]], distance: float,
            legs: Optional[Sequence[RouteLeg]] = None,
            curves: Optional[Sequence[Any]] = None) -> "Route":
        return Route(
            coordinates=tuple((float(c[0]), float(c[1])) for c in coordinates),
            distance=float(distance or 0.0),
            legs=tuple(legs or ()),
            curves=_normalize_curves(curves),
        )

    @staticmethod
    def from_dict(raw: Dict[str, Any]) -> "Route":
        """
        Normalize the router payload once at ingestion so downstream stages
        never have to guess at optional keys.
        """
        legs = [RouteLeg.from_dict(leg) for leg in raw.get("legs", []) or []]
        return Route.new(
            coordinates=raw.get("coordinates", []) or [],
            distance=raw.get("distance", 0.0),
            legs=legs,
            curves=raw.get("curves"),
        )


@dataclass
class SegmentFetchReport:
    """
    Diagnostics from a per-segment enrichment pass (which segments degraded).
    """
    requested: int = 0
    succeeded: int = 0
    failed_labels: List[str] = field(default_factory=list)

    @property
    def degraded(self) -> bool:
        return bool(self.failed_labels)


# -------------------------
# Curves (produced once by routing.curve_detection)
# -------------------------

class CurveDirection(str, Enum):
    LEFT = "LEFT"
    RIGHT = "RIGHT"

    @property
    def word(self) -> str:
        return self.value.lower()

    @property
    def opposite(self) -> "CurveDirection":
        return CurveDirection.RIGHT if self is CurveDirection.LEFT else CurveDirection.LEFT


class CurveClass(str, Enum):
    CURVE = "curve"
    NOISE = "noise"


class CurveModifier(str, Enum):
    HAIRPIN = "HAIRPIN"
    SHARP = "SHARP"
    LONG = "LONG"
    TIGHTENING = "TIGHTENING"
    OPENING = "OPENING"


@dataclass(frozen=True)
class Curve:
    """
    A sustained heading change along the route.

    distance_from_start is where the curve begins; apex_distance is the
    midpoint used for zone lookup and callout timing.
    Overlays (e.g. a severity override) are recorded as new fields,
    never by overwriting the detected values.
    """
    id: int
    direction: CurveDirection
    angle: float
    severity: int
    length: float
    distance_from_start: float
    position: RoutePoint
    radius: float = 0.0
    curve_class: CurveClass = CurveClass.CURVE
    modifiers: Tuple[CurveModifier, ...] = ()
    original_severity: Optional[int] = None

    @property
    def apex_distance(self) -> float:
        return self.distance_from_start + self.length / 2.0

    @property
    def apex_mile(self) -> float:
        return meters_to_miles(self.apex_distance)

    @property
    def is_noise(self) -> bool:
        return self.curve_class is CurveClass.NOISE

    def with_severity(self, severity: int) -> "Curve":
        """Severity overlay that keeps the detected value under original_severity."""
        original = self.original_severity if self.original_severity is not None else self.severity
        return replace(self, severity=severity, original_severity=original)

    @staticmethod
    def from_dict(raw: Dict[str, Any], fallback_id: int = 0) -> "Curve":
        """
        Normalize a pre-computed curve payload. Accepts either our field names
        or the router's camelCase ones (totalAngle, distanceFromStart).
        """
        angle = raw.get("angle", raw.get("totalAngle", 0.0)) or 0.0
        direction = str(raw.get("direction", "RIGHT")).upper()
        modifiers = raw.get("modifiers")
        if modifiers is None:
            single = raw.get("modifier")
            modifiers = [single] if single else []
        position = raw.get("position") or (0.0, 0.0)
        curve_class = raw.get("curve_class", raw.get("curveClass", CurveClass.CURVE.value))
        return Curve(
            id=int(raw.get("id", fallback_id)),
            direction=CurveDirection(direction),
            angle=abs(float(angle)),
            severity=int(raw.get("severity", 1)),
            length=float(raw.get("length", 0.0) or 0.0),
            distance_from_start=float(raw.get("distance_from_start", raw.get("distanceFromStart", 0.0)) or 0.0),
            position=(float(position[0]), float(position[1])),
            radius=float(raw.get("radius", 0.0) or 0.0),
            curve_class=CurveClass(curve_class),
            modifiers=tuple(CurveModifier(str(m).upper()) for m in modifiers),
        )


def _normalize_curves(curves: Optional[Sequence[Any]]) -> Optional[Tuple[Curve, ...]]:
    if curves is None:
        return None
    normalized = []
    for index, curve in enumerate(curves, start=1):
        normalized.append(curve if isinstance(curve, Curve) else Curve.from_dict(curve, fallback_id=index))
    return tuple(normalized)
