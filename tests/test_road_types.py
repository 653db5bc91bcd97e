import pytest

from routing.models import RoadClass, RouteLeg, RouteStep, miles_to_meters
from routing.road_types import classify_road_type, segments_from_legs


@pytest.mark.parametrize("ref,name,expected", [
    ("I-95", None, RoadClass.INTERSTATE),
    ("I 80", None, RoadClass.INTERSTATE),
    ("US 1", None, RoadClass.US_HIGHWAY),
    ("U.S. 101", None, RoadClass.US_HIGHWAY),
    ("CA-1", None, RoadClass.STATE_ROUTE),
    ("SR 9", None, RoadClass.STATE_ROUTE),
    ("I 95;US 1", None, RoadClass.INTERSTATE),
    (None, "Garden State Parkway", RoadClass.US_HIGHWAY),
    (None, "Main Street", RoadClass.LOCAL),
    (None, None, RoadClass.UNKNOWN),
])
def test_classify_road_type(ref, name, expected):
    assert classify_road_type(ref, name) == expected


def test_ref_wins_over_name():
    assert classify_road_type("US 50", "Main Street") == RoadClass.US_HIGHWAY


def test_segments_from_legs_merges_same_road_and_leaves_gaps():
    """
    Two consecutive I-80 steps collapse into one segment; an unnamed step
    leaves a hole for the classifier to fill.
    """
    mile = miles_to_meters(1.0)
    leg = RouteLeg(distance=4 * mile, steps=(
        RouteStep(distance=mile, ref="I-80"),
        RouteStep(distance=mile, ref="I-80"),
        RouteStep(distance=0.5 * mile),
        RouteStep(distance=mile, name="Main Street"),
    ))

    segments = segments_from_legs([leg])

    assert len(segments) == 2
    highway, local = segments
    assert highway.road_class == RoadClass.INTERSTATE
    assert highway.start_mile == pytest.approx(0.0)
    assert highway.end_mile == pytest.approx(2.0)
    assert local.road_class == RoadClass.LOCAL
    assert local.start_mile == pytest.approx(2.5)
    assert local.end_mile == pytest.approx(3.5)
    assert local.label == "Main Street"


def test_segments_from_legs_spans_multiple_legs():
    mile = miles_to_meters(1.0)
    legs = [
        RouteLeg(distance=mile, steps=(RouteStep(distance=mile, ref="US 50"),)),
        RouteLeg(distance=mile, steps=(RouteStep(distance=mile, ref="CA-49"),)),
    ]

    segments = segments_from_legs(legs)

    assert [s.road_class for s in segments] == [RoadClass.US_HIGHWAY, RoadClass.STATE_ROUTE]
    assert segments[1].start_mile == pytest.approx(1.0)
