import pytest

from callouts.events import classify_event, extract_events, shape_for
from callouts.filter import (
    detect_sequences,
    detect_wake_ups,
    filter_events_to_callouts,
    resolve_close_callouts,
    should_callout,
)
from callouts.models import CalloutPriority, CalloutType, Event, EventShape, EventType
from callouts.policy import default_callout_policy
from routing.models import CurveDirection, miles_to_meters
from zones.models import ZoneCharacter


def make_event(mile, angle, zone="transit", direction="RIGHT", event_type=EventType.CURVE):
    return Event(
        distance=miles_to_meters(mile),
        angle=float(angle),
        direction=CurveDirection(direction),
        type=event_type,
        zone_type=ZoneCharacter(zone),
    )


def assert_playback_order(callouts):
    triggers = [c.trigger_distance for c in callouts]
    assert all(b > a for a, b in zip(triggers, triggers[1:]))
    for callout in callouts:
        assert callout.trigger_distance < callout.event_distance


# -------------------------
# event extraction
# -------------------------

def test_extract_events_applies_zone_floors_and_types(curve_factory, zone_factory):
    zones = [zone_factory(0, 2, "urban"), zone_factory(2, 6, "transit")]
    curves = [
        curve_factory(1, 0.5, 30),   # urban floor is 40 -> dropped
        curve_factory(2, 1.0, 50),   # urban, kept
        curve_factory(3, 2.5, 10),   # transit floor is 12 -> dropped
        curve_factory(4, 3.0, 15),
        curve_factory(5, 3.5, 30),   # +15 over the previous kept event -> danger
        curve_factory(6, 4.0, 35),
    ]

    events = extract_events(curves, zones)

    assert [e.curve_id for e in events] == [2, 4, 5, 6]
    assert [e.zone_type for e in events] == [
        ZoneCharacter.URBAN, ZoneCharacter.TRANSIT, ZoneCharacter.TRANSIT, ZoneCharacter.TRANSIT,
    ]
    assert [e.type for e in events] == [
        EventType.SIGNIFICANT, EventType.CURVE, EventType.DANGER, EventType.CURVE,
    ]


def test_technical_zone_keeps_every_real_curve(curve_factory, zone_factory):
    zones = [zone_factory(0, 3, "technical")]
    curves = [curve_factory(1, 0.5, 6), curve_factory(2, 1.5, 9)]

    assert len(extract_events(curves, zones)) == 2


def test_classify_event_and_shape():
    assert classify_event(30, None) == EventType.CURVE  # nothing to spike over
    assert classify_event(25, 12) == EventType.DANGER
    assert classify_event(45, 40) == EventType.SIGNIFICANT
    assert classify_event(18, 5) == EventType.CURVE  # spike, but under 20°

    assert shape_for(30, 60) == EventShape.TIGHT
    assert shape_for(30, 300) == EventShape.MEDIUM
    assert shape_for(20, 300) == EventShape.SWEEPER


# -------------------------
# thresholds
# -------------------------

@pytest.mark.parametrize("zone,angle,event_type,expected", [
    ("urban", 60, EventType.SIGNIFICANT, False),
    ("urban", 70, EventType.SIGNIFICANT, True),
    ("urban", 30, EventType.DANGER, True),
    ("transit", 20, EventType.CURVE, False),
    ("transit", 25, EventType.CURVE, True),
    ("technical", 14, EventType.CURVE, False),
    ("technical", 15, EventType.CURVE, True),
])
def test_should_callout(zone, angle, event_type, expected):
    assert should_callout(make_event(1.0, angle, zone=zone, event_type=event_type)) is expected


# -------------------------
# wake-ups and sequences
# -------------------------

def test_wake_up_fires_below_the_transit_threshold(zone_factory):
    """
    Events at miles 0, 0.5 and 7.0 with the mile-7 curve at 20°: a wake-up
    callout triggers around mile 6.7 even though 20° is under the transit
    floor of 25°.
    """
    events = [make_event(0.0, 30), make_event(0.5, 30), make_event(7.0, 20)]
    zones = [zone_factory(0, 8, "transit")]

    result = filter_events_to_callouts(events, zones, miles_to_meters(8.0))

    wake_ups = [c for c in result.callouts if c.type is CalloutType.WAKE_UP]
    assert len(wake_ups) == 1
    assert wake_ups[0].trigger_mile == pytest.approx(6.7, abs=0.01)
    assert wake_ups[0].text.startswith("Bend ahead")
    assert wake_ups[0].priority == CalloutPriority.HIGH
    assert result.stats["wake_ups"] == 1


def test_wake_up_straight_counts_all_events():
    # the 10° curve at mile 4 breaks the straight even though it is never called
    events = [make_event(0.5, 30), make_event(4.0, 10), make_event(7.0, 20)]

    assert detect_wake_ups(events) == []


def test_three_close_curves_become_one_sequence(zone_factory):
    """
    Curves at miles 2.0, 2.2 and 2.35 in a transit zone collapse into one
    sequence callout, not three.
    """
    events = [
        make_event(2.0, 30, direction="RIGHT"),
        make_event(2.2, 30, direction="LEFT"),
        make_event(2.35, 30, direction="RIGHT"),
    ]
    zones = [zone_factory(0, 5, "transit")]

    result = filter_events_to_callouts(events, zones, miles_to_meters(5.0))

    assert len(result.callouts) == 1
    sequence = result.callouts[0]
    assert sequence.type == CalloutType.SEQUENCE
    assert sequence.text == "Right-left-right, max 30°"
    assert len(sequence.members) == 3
    assert sequence.trigger_mile == pytest.approx(1.7, abs=0.01)


def test_sequences_skip_technical_and_hard_curves():
    technical = [make_event(1.0 + i * 0.1, 30, zone="technical") for i in range(4)]
    assert detect_sequences(technical) == []

    broken = [make_event(1.0, 30), make_event(1.2, 75), make_event(1.4, 30)]
    assert detect_sequences(broken) == []


# -------------------------
# ordering, spacing, critical preservation
# -------------------------

def test_callouts_are_ordered_spaced_and_fire_before_their_feature(zone_factory):
    events = [
        make_event(0.3 + i * 0.12, 20 + (i * 7) % 40, zone="technical",
                   direction="LEFT" if i % 2 else "RIGHT")
        for i in range(40)
    ]
    zones = [zone_factory(0, 6, "technical")]
    policy = default_callout_policy()

    result = filter_events_to_callouts(events, zones, miles_to_meters(6.0), policy)

    assert result.callouts
    assert_playback_order(result.callouts)
    window = miles_to_meters(policy.collapse_window_miles)
    triggers = [c.trigger_distance for c in result.callouts]
    assert all(b - a > window for a, b in zip(triggers, triggers[1:]))

    # the deduped list is ordered too and never shorter than the spaced one
    assert_playback_order(result.deduped)
    assert len(result.deduped) >= len(result.callouts)


def test_critical_callouts_are_folded_not_dropped(zone_factory):
    events = [
        make_event(1.00, 80, zone="technical", direction="RIGHT"),
        make_event(1.03, 80, zone="technical", direction="LEFT"),
    ]
    zones = [zone_factory(0, 3, "technical")]

    result = filter_events_to_callouts(events, zones, miles_to_meters(3.0))

    assert len(result.callouts) == 1
    merged = result.callouts[0]
    assert merged.is_critical
    assert "Right 80°" in merged.text
    assert "Left 80°" in merged.text
    assert " into " in merged.text


def test_higher_priority_wins_within_dedup_distance(zone_factory):
    events = [
        make_event(1.00, 20, zone="technical"),
        make_event(1.12, 75, zone="technical", direction="LEFT"),
    ]
    zones = [zone_factory(0, 3, "technical")]

    result = filter_events_to_callouts(events, zones, miles_to_meters(3.0))

    assert len(result.deduped) == 1
    survivor = result.deduped[0]
    assert survivor.priority == CalloutPriority.CRITICAL
    assert survivor.direction == CurveDirection.LEFT
    assert survivor.trigger_distance < survivor.event_distance


def test_zone_transitions_are_announced(zone_factory):
    zones = [zone_factory(0, 3, "transit"), zone_factory(3, 6, "technical")]

    result = filter_events_to_callouts([], zones, miles_to_meters(6.0))

    assert len(result.callouts) == 1
    transition = result.callouts[0]
    assert transition.type == CalloutType.TRANSITION
    assert transition.text == "Technical section ahead. Stay sharp."
    assert transition.trigger_mile == pytest.approx(2.75, abs=0.01)


def test_zero_length_route_has_no_callouts():
    assert filter_events_to_callouts([make_event(1.0, 30)], [], 0.0).callouts == []


def test_resolve_close_callouts_on_empty_input():
    assert resolve_close_callouts([]) == []
