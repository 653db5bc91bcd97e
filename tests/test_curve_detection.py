import pytest

from routing.curve_detection import detect_curves, recommended_speed, severity_for_angle
from routing.geo import cumulative_distances, heading_change, resample
from routing.models import CurveDirection, CurveModifier, Route


def test_single_right_curve_is_measured(walk_route):
    """
    A straight, eight 10-degree right turns, then a straight again must come
    out as exactly one right curve of about 80 degrees.
    """
    points = walk_route([0.0] * 10 + [10.0] * 8 + [0.0] * 10)

    curves = detect_curves(points)

    assert len(curves) == 1
    curve = curves[0]
    assert curve.direction == CurveDirection.RIGHT
    assert abs(curve.angle - 80.0) < 1.0
    assert curve.severity == 5
    assert abs(curve.length - 180.0) < 2.0
    assert abs(curve.distance_from_start - 200.0) < 2.0
    assert CurveModifier.SHARP in curve.modifiers
    assert not curve.is_noise


def test_left_and_right_curves_are_kept_separate(walk_route):
    """
    Opposite directions never merge, even when they touch.
    """
    points = walk_route([0.0] * 5 + [-12.0] * 4 + [12.0] * 4 + [0.0] * 5)

    curves = detect_curves(points)

    assert [c.direction for c in curves] == [CurveDirection.LEFT, CurveDirection.RIGHT]
    assert curves[0].distance_from_start < curves[1].distance_from_start
    assert [c.id for c in curves] == [1, 2]


def test_short_wobble_does_not_split_a_curve(walk_route):
    """
    A near-zero change inside a curve is bridged when the look-ahead still
    turns the same way.
    """
    points = walk_route([0.0] * 5 + [10.0, 10.0, 1.0, 10.0, 10.0] + [0.0] * 5)

    curves = detect_curves(points)

    assert len(curves) == 1
    assert abs(curves[0].angle - 41.0) < 1.0


def test_too_few_points_yield_no_curves():
    assert detect_curves([]) == []
    assert detect_curves([(-121.0, 39.0), (-121.0, 39.001)]) == []
    # duplicates collapse to a single point
    assert detect_curves([(-121.0, 39.0)] * 5) == []


def test_severity_buckets_are_monotone():
    assert severity_for_angle(10) == 1
    assert severity_for_angle(15) == 2
    assert severity_for_angle(44.9) == 3
    assert severity_for_angle(60) == 5
    assert severity_for_angle(95) == 6

    angles = range(0, 180, 5)
    severities = [severity_for_angle(a) for a in angles]
    assert severities == sorted(severities)


def test_recommended_speed_modes():
    assert recommended_speed(3) == 55
    assert recommended_speed(3, "cautious") == 45
    assert recommended_speed(9, "sport") == 35  # clamped to severity 6
    with pytest.raises(ValueError):
        recommended_speed(2, "reckless")


def test_heading_change_wraps_around_north():
    assert heading_change(350.0, 10.0) == pytest.approx(20.0)
    assert heading_change(10.0, 350.0) == pytest.approx(-20.0)


def test_resample_keeps_the_end_point(walk_route):
    points = walk_route([0.0] * 9)  # 10 steps of 20 m
    total = cumulative_distances(points)[-1]

    sampled, distances = resample(points, 30.0)

    assert distances[0] == 0.0
    assert distances[-1] == pytest.approx(total)
    assert all(b > a for a, b in zip(distances, distances[1:]))
    assert len(sampled) == len(distances)


def test_route_geometry_check():
    assert not Route.new([(-121.0, 39.0)], 100.0).has_geometry
    assert not Route.new([(-121.0, 39.0), (-121.0, 39.01)], 0.0).has_geometry
    route = Route.from_dict({"coordinates": [[-121.0, 39.0], [-121.0, 39.01]], "distance": 1609.344})
    assert route.has_geometry
    assert route.total_miles == pytest.approx(1.0)
    assert route.curves is None


def test_precomputed_curves_are_normalized():
    route = Route.from_dict({
        "coordinates": [[-121.0, 39.0], [-121.0, 39.01]],
        "distance": 1000.0,
        "curves": [{"direction": "left", "totalAngle": -35, "distanceFromStart": 120, "length": 40}],
    })

    assert len(route.curves) == 1
    curve = route.curves[0]
    assert curve.direction == CurveDirection.LEFT
    assert curve.angle == 35.0
    assert curve.apex_distance == pytest.approx(140.0)
