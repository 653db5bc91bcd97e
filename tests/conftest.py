import math

import pytest

from routing.models import (
    Curve,
    CurveDirection,
    RoadClass,
    RoadSegment,
    miles_to_meters,
)
from zones.models import Zone, ZoneCharacter

METERS_PER_DEG_LAT = 111320.0


def walk(turns, step_m=20.0, start=(-121.0, 39.0), heading=0.0):
    """
    Polyline that moves step_m meters, then turns by each angle in `turns`
    (degrees, positive = right) before the next step.
    """
    lng, lat = start
    points = [(lng, lat)]
    h = heading
    for turn in [0.0] + list(turns):
        h += turn
        rad = math.radians(h)
        lat += math.cos(rad) * step_m / METERS_PER_DEG_LAT
        lng += math.sin(rad) * step_m / (METERS_PER_DEG_LAT * math.cos(math.radians(lat)))
        points.append((lng, lat))
    return points


def make_curve(curve_id, apex_mile, angle, direction="RIGHT", length=60.0, severity=None):
    """Curve whose apex sits at apex_mile."""
    apex_m = miles_to_meters(apex_mile)
    return Curve(
        id=curve_id,
        direction=CurveDirection(direction),
        angle=float(angle),
        severity=severity if severity is not None else min(6, 1 + int(angle // 15)),
        length=length,
        distance_from_start=apex_m - length / 2.0,
        position=(-121.0, 39.0),
    )


def make_zone(start_mile, end_mile, character, road=""):
    return Zone(
        start_distance=miles_to_meters(start_mile),
        end_distance=miles_to_meters(end_mile),
        character=ZoneCharacter(character),
        road=road,
    )


@pytest.fixture
def walk_route():
    return walk


@pytest.fixture
def curve_factory():
    return make_curve


@pytest.fixture
def zone_factory():
    return make_zone


@pytest.fixture
def interstate_segment():
    return RoadSegment(start_mile=0.0, end_mile=2.0, road_class=RoadClass.INTERSTATE, ref="I-95")
