#Marks routing as a package.
#Re-exports the route input models, curve detection and the road-reference
#adapters so other modules import from routing without knowing internal file names.
#No business logic.

from .models import (
    METERS_PER_MILE,
    Curve,
    CurveClass,
    CurveDirection,
    CurveModifier,
    RoadClass,
    RoadSegment,
    Route,
    RouteLeg,
    RouteStep,
    meters_to_miles,
    miles_to_meters,
)
from .policy import CurvePolicy, default_curve_policy
from .curve_detection import detect_curves, recommended_speed, severity_for_angle
from .road_types import classify_road_type, segments_from_legs
from .road_reference_client import RoadReferenceClient, RoadReferenceError
from .segment_provider import SegmentRankProvider

__all__ = [
    "METERS_PER_MILE",
    "Curve",
    "CurveClass",
    "CurveDirection",
    "CurveModifier",
    "RoadClass",
    "RoadSegment",
    "Route",
    "RouteLeg",
    "RouteStep",
    "meters_to_miles",
    "miles_to_meters",
    "CurvePolicy",
    "default_curve_policy",
    "detect_curves",
    "recommended_speed",
    "severity_for_angle",
    "classify_road_type",
    "segments_from_legs",
    "RoadReferenceClient",
    "RoadReferenceError",
    "SegmentRankProvider",
]
