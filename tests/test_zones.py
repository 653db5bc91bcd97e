import pytest

from routing.models import RoadClass, RoadSegment, miles_to_meters
from zones.classifier import build_zones, classify_segment
from zones.lookup import ZoneCoverageError, ZoneLookup, check_coverage, coverage_problems
from zones.models import ZoneCharacter, ZoneIssueKind
from zones.smoother import smooth_zones, validate_zones


def assert_tiles(zones, total_m):
    assert zones[0].start_distance == pytest.approx(0.0)
    assert zones[-1].end_distance == pytest.approx(total_m)
    for previous, current in zip(zones, zones[1:]):
        assert current.start_distance == pytest.approx(previous.end_distance)
    assert coverage_problems(zones, total_m) == []


# -------------------------
# classification
# -------------------------

def test_interstate_route_is_one_transit_zone(interstate_segment):
    """
    segments [{0-2 mi, interstate}] over a 2-mile route => one transit zone 0-2 mi.
    """
    zones = build_zones([interstate_segment], 2.0)

    assert len(zones) == 1
    assert zones[0].character == ZoneCharacter.TRANSIT
    assert zones[0].start_mile == pytest.approx(0.0)
    assert zones[0].end_mile == pytest.approx(2.0)


def test_no_road_data_defaults_to_technical():
    zones = build_zones([], 3.0)

    assert len(zones) == 1
    assert zones[0].character == ZoneCharacter.TECHNICAL
    assert zones[0].is_gap
    assert_tiles(zones, miles_to_meters(3.0))


def test_zero_length_route_has_no_zones():
    assert build_zones([], 0.0) == []


def test_state_route_character_depends_on_curves(curve_factory):
    segment = RoadSegment(start_mile=0.0, end_mile=4.0, road_class=RoadClass.STATE_ROUTE, ref="CA-49")

    gentle = [curve_factory(1, 1.0, 20), curve_factory(2, 3.0, 18)]
    winding = [curve_factory(i, 0.2 + i * 0.4, 30) for i in range(8)]
    one_sharp = [curve_factory(1, 2.0, 60)]

    assert classify_segment(segment, gentle)[0] == ZoneCharacter.TRANSIT
    assert classify_segment(segment, winding)[0] == ZoneCharacter.TECHNICAL
    assert classify_segment(segment, one_sharp)[0] == ZoneCharacter.TECHNICAL


def test_local_road_uses_symbolrank():
    town = RoadSegment(0.0, 1.0, RoadClass.LOCAL, name="Main Street", symbolrank=5)
    country = RoadSegment(0.0, 1.0, RoadClass.LOCAL, name="Old Mill Road", symbolrank=16)
    unknown_rank = RoadSegment(0.0, 1.0, RoadClass.LOCAL, name="Old Mill Road")

    assert classify_segment(town)[0] == ZoneCharacter.URBAN
    assert classify_segment(country)[0] == ZoneCharacter.TECHNICAL
    assert classify_segment(unknown_rank)[0] == ZoneCharacter.TECHNICAL


def test_gap_after_highway_is_technical_and_zones_tile_the_route(interstate_segment):
    local = RoadSegment(3.0, 5.0, RoadClass.LOCAL, name="Old Mill Road")

    zones = build_zones([interstate_segment, local], 5.0)

    assert [z.character for z in zones] == [ZoneCharacter.TRANSIT, ZoneCharacter.TECHNICAL]
    # the merged zone keeps the real road name over the gap label
    assert zones[1].road == "Old Mill Road"
    assert zones[1].start_mile == pytest.approx(2.0)
    assert_tiles(zones, miles_to_meters(5.0))


def test_segments_past_the_route_end_are_clipped(interstate_segment):
    zones = build_zones([interstate_segment], 1.5)

    assert len(zones) == 1
    assert zones[0].end_mile == pytest.approx(1.5)


# -------------------------
# coverage
# -------------------------

def test_coverage_gap_raises_when_strict_and_heals_otherwise(zone_factory):
    zones = [zone_factory(0, 1, "transit"), zone_factory(1.5, 3, "technical")]
    total = miles_to_meters(3.0)

    with pytest.raises(ZoneCoverageError):
        check_coverage(zones, total, strict=True)

    healed = check_coverage(zones, total, strict=False)
    assert_tiles(healed, total)
    assert [z.road for z in healed] == ["", "[gap filler]", ""]
    assert healed[1].character == ZoneCharacter.TECHNICAL


def test_lookup_finds_zone_by_distance(zone_factory):
    zones = [zone_factory(0, 1, "urban"), zone_factory(1, 5, "transit")]
    lookup = ZoneLookup(zones)

    assert lookup.character_at(0.0) == ZoneCharacter.URBAN
    assert lookup.character_at(miles_to_meters(1.0)) == ZoneCharacter.TRANSIT
    assert lookup.character_at(miles_to_meters(9.0)) == ZoneCharacter.TRANSIT
    assert [lookup.index_at(d) for d in (-5.0, 10.0, miles_to_meters(2.0), miles_to_meters(9.0))] == [0, 0, 1, 1]
    assert ZoneLookup([]).character_at(10.0) == ZoneCharacter.TECHNICAL


# -------------------------
# smoothing
# -------------------------

def test_short_sandwich_is_absorbed(zone_factory):
    zones = [
        zone_factory(0, 3, "transit"),
        zone_factory(3, 3.2, "technical"),
        zone_factory(3.2, 6, "transit"),
    ]

    smoothed = smooth_zones(zones)

    assert len(smoothed) == 1
    assert smoothed[0].character == ZoneCharacter.TRANSIT
    assert_tiles(smoothed, miles_to_meters(6.0))


def test_interior_urban_is_recharacterized_without_grid_evidence(zone_factory):
    zones = [
        zone_factory(0, 2, "technical"),
        zone_factory(2, 3, "urban"),
        zone_factory(3, 6, "technical"),
    ]

    smoothed = smooth_zones(zones)

    assert [z.character for z in smoothed] == [ZoneCharacter.TECHNICAL]


def test_interior_urban_survives_with_grid_evidence(zone_factory, curve_factory):
    zones = [
        zone_factory(0, 2, "technical"),
        zone_factory(2, 3, "urban"),
        zone_factory(3, 6, "technical"),
    ]
    grid = [curve_factory(i, 2.1 + i * 0.18, 15) for i in range(5)]

    smoothed = smooth_zones(zones, grid)

    assert [z.character for z in smoothed] == [
        ZoneCharacter.TECHNICAL, ZoneCharacter.URBAN, ZoneCharacter.TECHNICAL,
    ]


def test_urban_at_route_ends_is_kept(zone_factory):
    zones = [zone_factory(0, 3, "technical"), zone_factory(3, 4, "urban")]

    smoothed = smooth_zones(zones)

    assert [z.character for z in smoothed] == [ZoneCharacter.TECHNICAL, ZoneCharacter.URBAN]


def test_smoothing_is_idempotent(zone_factory):
    zones = [
        zone_factory(0, 0.1, "urban"),
        zone_factory(0.1, 2, "transit"),
        zone_factory(2, 2.2, "technical"),
        zone_factory(2.2, 2.4, "urban"),
        zone_factory(2.4, 5, "transit"),
        zone_factory(5, 5.6, "technical"),
        zone_factory(5.6, 8, "transit"),
        zone_factory(8, 9, "urban"),
    ]

    once = smooth_zones(zones)
    twice = smooth_zones(once)

    assert once == twice
    assert_tiles(once, miles_to_meters(9.0))
    assert all(z.length_miles >= 0.3 for z in once)


def test_validate_zones_reports_issues(zone_factory):
    zones = [
        zone_factory(0, 2, "transit"),
        zone_factory(2, 2.1, "urban"),
        zone_factory(2.1, 5, "transit"),
    ]

    kinds = {issue.kind for issue in validate_zones(zones)}

    assert kinds == {ZoneIssueKind.SHORT_ZONE, ZoneIssueKind.INTERIOR_URBAN, ZoneIssueKind.PING_PONG}
    assert validate_zones(smooth_zones(zones)) == []
