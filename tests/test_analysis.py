import pytest
import requests

from analysis import AnalysisOptions, AnalysisSession, AnalysisStatus, analyze, strict_analysis_policy
from enhancement import EnhancementError, LLMClient, PolishKind, PolishResponse
from routing.models import RoadClass, RoadSegment, Route, miles_to_meters
from routing.road_reference_client import RoadReferenceError
from routing.segment_provider import SegmentRankProvider
from scripts.generate_mock_route import generate_mock_route, route_from_frame
from zones.lookup import coverage_problems
from zones.models import ZoneCharacter

from conftest import METERS_PER_DEG_LAT, make_curve, walk


class FailingEnhancer:
    def __init__(self):
        self.calls = 0

    def polish(self, request):
        self.calls += 1
        raise EnhancementError("service down")


class EchoEnhancer:
    """Prefixes every callout text; only answers callout polish."""
    def polish(self, request):
        if request.kind is not PolishKind.CALLOUT_POLISH:
            raise EnhancementError("unsupported")
        rows = [{"id": row["id"], "text": "POLISHED " + row["text"]} for row in request.payload["callouts"]]
        return PolishResponse(kind=request.kind, payload={"callouts": rows})


class FailingRoadReference:
    def fetch_segments(self, route):
        raise RoadReferenceError("tile service unreachable")


class NorthFailingRanks:
    """Answers rank 5 south of `cutoff_lat` and fails north of it."""
    def __init__(self, cutoff_lat):
        self.cutoff_lat = cutoff_lat

    def query_place_rank(self, point):
        if point[1] < self.cutoff_lat:
            return 5
        raise RoadReferenceError("HTTP 503")


@pytest.fixture(scope="module")
def mock_frame():
    return generate_mock_route()


@pytest.fixture(scope="module")
def mock_route(mock_frame):
    return route_from_frame(mock_frame)


def straight_route(miles):
    points = walk([0.0] * int(miles_to_meters(miles) // 20.0))
    return Route.new(points, miles_to_meters(miles))


# -------------------------
# mock route generator
# -------------------------

def test_mock_route_frame_shape(mock_frame):
    assert list(mock_frame.columns) == ["lng", "lat", "distance_m", "ref", "name", "style"]
    assert mock_frame["distance_m"].iloc[0] == 0.0
    assert mock_frame["distance_m"].is_monotonic_increasing
    assert list(mock_frame["style"].unique()) == ["highway", "winding", "urban"]


def test_route_from_frame_rebuilds_router_steps(mock_route):
    steps = mock_route.legs[0].steps

    assert [(s.ref, s.name) for s in steps] == [("I-80", None), ("CA-49", None), (None, "Main Street")]
    assert sum(s.distance for s in steps) == pytest.approx(mock_route.distance)
    assert mock_route.distance == pytest.approx(16600.0)


# -------------------------
# analyze
# -------------------------

def test_full_analysis_of_the_mock_drive(mock_route):
    result = analyze(mock_route, AnalysisOptions(policy=strict_analysis_policy()), generation=3)

    assert result.status is AnalysisStatus.OK
    assert result.generation == 3
    assert result.enhanced is False
    assert coverage_problems(result.zones, mock_route.distance) == []
    assert result.zones[0].character == ZoneCharacter.TRANSIT
    assert ZoneCharacter.TECHNICAL in {z.character for z in result.zones}

    assert result.curves
    assert result.callouts
    triggers = [c.trigger_distance for c in result.callouts]
    assert all(b > a for a, b in zip(triggers, triggers[1:]))
    for playback in (result.grouped.fast, result.grouped.standard):
        assert all(c.trigger_distance < c.event_distance for c in playback)
    assert len(result.grouped.fast) <= len(result.grouped.standard)

    as_dict = result.to_dict()
    assert set(as_dict) == {
        "status", "generation", "enhanced", "zones", "callouts", "groupedCallouts",
        "highwayBends", "chatterTimeline", "zoneIssues", "stats", "message",
    }
    assert as_dict["status"] == "ok"
    assert as_dict["stats"]["callouts"] == len(result.callouts)


def test_route_dict_input_is_accepted():
    points = walk([0.0] * 100)
    result = analyze({"coordinates": [list(p) for p in points], "distance": 2020.0})

    assert result.ok
    # no road data at all: everything is technical
    assert [z.character for z in result.zones] == [ZoneCharacter.TECHNICAL]


@pytest.mark.parametrize("route", [
    {"coordinates": [[-121.0, 39.0]], "distance": 500.0},
    {"coordinates": [[-121.0, 39.0], [-121.0, 39.01]], "distance": 0.0},
    {},
])
def test_missing_geometry_gives_insufficient_data(route):
    result = analyze(route, generation=7)

    assert result.status is AnalysisStatus.INSUFFICIENT_DATA
    assert result.generation == 7
    assert result.zones == () and result.callouts == ()
    assert result.message
    assert result.to_dict()["status"] == "insufficient_data"


def test_failing_enhancer_leaves_the_deterministic_result(mock_route):
    """
    With every enhancer call failing, the result matches a run without an
    enhancer, only flagged enhanced=False.
    """
    enhancer = FailingEnhancer()

    plain = analyze(mock_route)
    degraded = analyze(mock_route, AnalysisOptions(enhancer=enhancer))

    assert enhancer.calls == 3
    assert degraded.enhanced is False
    assert degraded.enhancement == {"zone_validation": False, "callout_polish": False, "chatter_polish": False}
    assert degraded.zones == plain.zones
    assert degraded.callouts == plain.callouts
    assert degraded.grouped == plain.grouped
    assert degraded.chatter == plain.chatter


def test_failing_road_reference_degrades_to_technical():
    route = straight_route(2.0)

    result = analyze(route, AnalysisOptions(road_reference=FailingRoadReference()))

    assert result.ok
    assert result.stats["segments"] == 0
    assert {z.character for z in result.zones} == {ZoneCharacter.TECHNICAL}


def test_explicit_segments_win_over_the_router(interstate_segment):
    route = straight_route(2.0)

    result = analyze(route, AnalysisOptions(segments=[interstate_segment]))

    assert [z.character for z in result.zones] == [ZoneCharacter.TRANSIT]


# -------------------------
# symbolrank enrichment
# -------------------------

def test_rank_enrichment_degrades_per_segment():
    route = straight_route(1.0)
    cutoff = 39.0 + miles_to_meters(0.5) / METERS_PER_DEG_LAT
    segments = [
        RoadSegment(0.0, 0.5, RoadClass.LOCAL, name="Main Street"),
        RoadSegment(0.5, 1.0, RoadClass.LOCAL, name="Old Mill Road"),
    ]
    provider = SegmentRankProvider(NorthFailingRanks(cutoff), max_workers=2)

    enriched, report = provider.enrich(segments, route.coordinates)

    assert [s.symbolrank for s in enriched] == [5, None]
    assert report.requested == 2
    assert report.succeeded == 1
    assert report.failed_labels == ["Old Mill Road"]
    assert report.degraded

    result = analyze(route, AnalysisOptions(segments=segments, rank_provider=provider))
    assert result.ok
    assert result.segment_report.degraded


# -------------------------
# session
# -------------------------

def test_session_commits_current_results(mock_route):
    session = AnalysisSession()

    result = session.run(mock_route)

    assert result is not None
    assert result.generation == session.generation == 1
    assert session.last_result is result


def test_result_from_an_old_route_is_discarded(mock_route):
    session = AnalysisSession()

    class RouteChangesMidRun(FailingEnhancer):
        def polish(self, request):
            if self.calls == 0:
                session.invalidate()
            return super().polish(request)

    result = session.run(mock_route, AnalysisOptions(enhancer=RouteChangesMidRun()))

    assert result is None
    assert session.last_result is None
    assert session.generation == 2


def test_commit_rejects_stale_generations():
    session = AnalysisSession()
    first = session.begin()
    session.begin()

    stale = analyze({}, generation=first)
    current = analyze({}, generation=session.generation)

    assert session.commit(stale) is False
    assert session.commit(current) is True
    assert session.last_result is current


# -------------------------
# enhancement boundaries
# -------------------------

def two_close_highway_curves():
    """Two transit curves 0.3 mi apart: the 0.5 mi collapse folds them into one note."""
    points = walk([0.0] * int(miles_to_meters(3.0) // 20.0))
    curves = [make_curve("c1", 2.0, 30, "LEFT"), make_curve("c2", 2.3, 32, "RIGHT")]
    route = Route.new(points, miles_to_meters(3.0), curves=curves)
    segments = [RoadSegment(0.0, 3.0, RoadClass.INTERSTATE, ref="I-80")]
    return route, segments


def test_polished_collapsed_text_stays_out_of_the_grouped_sets():
    route, segments = two_close_highway_curves()
    options = dict(segments=segments, validate_zones=False, polish_chatter=False)

    plain = analyze(route, AnalysisOptions(**options))
    polished = analyze(route, AnalysisOptions(enhancer=EchoEnhancer(), **options))

    assert len(plain.callouts) == 1
    assert plain.callouts[0].members
    assert polished.enhancement == {"callout_polish": True}
    assert polished.callouts[0].text == "POLISHED " + plain.callouts[0].text

    # the grouped sets hold both curves separately; neither takes on the folded text
    assert [c.text for c in polished.grouped.standard] == [c.text for c in plain.grouped.standard]


def test_llm_request_errors_keep_the_deterministic_result(mock_route, monkeypatch):
    def redirect_loop(*args, **kwargs):
        raise requests.TooManyRedirects("Exceeded 30 redirects.")

    monkeypatch.setattr("enhancement.llm_client.requests.post", redirect_loop)

    plain = analyze(mock_route)
    degraded = analyze(mock_route, AnalysisOptions(enhancer=LLMClient(base_url="http://llm.invalid")))

    assert degraded.ok
    assert degraded.enhanced is False
    assert degraded.callouts == plain.callouts
    assert degraded.chatter == plain.chatter


def test_llm_base_url_without_a_scheme_degrades(mock_route):
    # requests refuses the URL before any network traffic (InvalidSchema)
    result = analyze(mock_route, AnalysisOptions(enhancer=LLMClient(base_url="localhost:9")))

    assert result.ok
    assert result.enhanced is False
    assert set(result.enhancement.values()) == {False}
