"""
Purpose: The rule-based callout filter (deterministic, no network).
What it does:

Coordinates events -> callouts end-to-end:

- should_callout(event): zone thresholds (danger always passes)

- sequences: runs of close non-technical curves become one callout

- zone transitions: advance note when entering a technical section,
  short announcements when entering transit / urban

- wake-ups: first notable curve after a long straight (measured against ALL
  events) gets its own note even if it fails the zone threshold

- dedup: 100 m priority resolution, then a collapse window where the
  survivor absorbs the loser's text

Typical public function signature:

- filter_events_to_callouts(events, zones, total_distance, policy) -> FilterResult

Rule: Output is sorted by trigger_distance, strictly increasing, and every
trigger fires before the feature it announces.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Dict, List, Optional, Sequence, Set, Tuple

from routing.curve_detection import recommended_speed, severity_for_angle
from routing.models import CurveModifier, miles_to_meters
from zones.lookup import ZoneLookup
from zones.models import Zone, ZoneCharacter

from .models import (
    Callout,
    CalloutPriority,
    CalloutType,
    CurveSequence,
    Event,
    EventType,
    FilterResult,
    WakeUp,
)
from .policy import CalloutPolicy, default_callout_policy

logger = logging.getLogger(__name__)


def filter_events_to_callouts(
    events: Sequence[Event],
    zones: Sequence[Zone],
    total_distance: float,
    policy: Optional[CalloutPolicy] = None,
) -> FilterResult:
    """
    Main filter entry point (pure algorithm).

    Parameters
    ----------
    events:
        All extracted events for the route (wake-up detection needs the
        unfiltered list).
    zones:
        Contiguous zone list, used for exit detection and transitions.
    total_distance:
        Route length in meters.
    policy:
        CalloutPolicy thresholds.
    """
    policy = policy or default_callout_policy()
    if total_distance <= 0:
        return FilterResult(callouts=[])

    lookup = ZoneLookup(zones)
    ordered = sorted(events, key=lambda e: e.distance)

    # 1. wake-ups first: they replace the plain callout for their event
    wake_ups = detect_wake_ups(ordered, policy)
    wake_up_distances = {w.event.distance for w in wake_ups}

    # 2. zone thresholds
    filtered = [e for e in ordered if should_callout(e, policy) and e.distance not in wake_up_distances]

    # 3. sequences (never in technical zones, never with danger curves)
    sequences = detect_sequences(filtered, policy)
    in_sequence: Set[float] = {e.distance for seq in sequences for e in seq.events}

    candidates: List[Callout] = []
    for sequence in sequences:
        candidates.append(_sequence_callout(sequence, policy))
    for event in filtered:
        if event.distance in in_sequence:
            continue
        candidates.append(_event_callout(event, lookup, policy))
    for wake_up in wake_ups:
        candidates.append(_wake_up_callout(wake_up, lookup, policy))
    candidates.extend(_transition_callouts(zones, policy))

    candidates = [c for c in candidates if c.trigger_distance < c.event_distance]

    # 4. dedup + collapse; grouping works from the deduped list
    deduped = dedup_callouts(candidates, policy)
    callouts = collapse_callouts(deduped, policy)

    stats = {
        "input_events": len(events),
        "filtered_events": len(filtered),
        "sequences": len(sequences),
        "wake_ups": len(wake_ups),
        "final_callouts": len(callouts),
    }
    for zone in ZoneCharacter:
        stats[zone.value] = sum(1 for c in callouts if c.zone is zone)

    logger.debug("callout filter: %d events -> %d callouts (%d sequences, %d wake-ups)",
                 len(events), len(callouts), len(sequences), len(wake_ups))
    return FilterResult(
        callouts=callouts,
        sequences=sequences,
        wake_ups=wake_ups,
        stats=stats,
        deduped=deduped,
    )


# -------------------------
# decision rules
# -------------------------

def should_callout(event: Event, policy: Optional[CalloutPolicy] = None) -> bool:
    policy = policy or default_callout_policy()

    # danger curves are always called
    if event.type is EventType.DANGER:
        return True

    if event.zone_type is ZoneCharacter.URBAN:
        return event.angle >= policy.urban_min_angle_deg

    if event.zone_type is ZoneCharacter.TRANSIT:
        return event.angle >= policy.transit_min_angle_deg or event.type is EventType.SIGNIFICANT

    return event.angle >= policy.technical_min_angle_deg


def is_hard(event: Event, policy: CalloutPolicy) -> bool:
    return event.type is EventType.DANGER or event.angle >= policy.hard_angle_deg


def priority_for(event: Event, policy: Optional[CalloutPolicy] = None) -> CalloutPriority:
    policy = policy or default_callout_policy()
    if is_hard(event, policy):
        return CalloutPriority.CRITICAL
    if event.type is EventType.SIGNIFICANT or event.angle >= policy.significant_angle_deg:
        return CalloutPriority.HIGH
    return CalloutPriority.MEDIUM


def lead_miles_for(event: Event, policy: CalloutPolicy) -> float:
    lead = policy.lead_for(event.zone_type)
    if is_hard(event, policy):
        lead += policy.danger_extra_lead_miles
    return lead


def detect_sequences(events: Sequence[Event], policy: Optional[CalloutPolicy] = None) -> List[CurveSequence]:
    """
    Runs of consecutive filtered events with gaps <= sequence_max_gap_miles.
    Danger/hard curves break a run and are never bundled; technical-zone
    curves are always called individually.
    """
    policy = policy or default_callout_policy()
    sequences: List[CurveSequence] = []
    run: List[Event] = []

    def close_run() -> None:
        if len(run) >= policy.sequence_min_events:
            sequences.append(_make_sequence(run))
        run.clear()

    for event in events:
        bundleable = event.zone_type is not ZoneCharacter.TECHNICAL and not is_hard(event, policy)
        if not bundleable:
            close_run()
            continue
        if run and (
            event.mile - run[-1].mile > policy.sequence_max_gap_miles
            or event.zone_type is not run[-1].zone_type
        ):
            close_run()
        run.append(event)
    close_run()
    return sequences


def detect_wake_ups(events: Sequence[Event], policy: Optional[CalloutPolicy] = None) -> List[WakeUp]:
    """
    First event with angle >= wake_up_min_angle_deg after a straight of at
    least wake_up_straight_miles. Straights are measured between ALL events
    (and from the route start), not just the ones that will be called.
    """
    policy = policy or default_callout_policy()
    wake_ups: List[WakeUp] = []
    last_mile = 0.0
    armed_straight: Optional[float] = None

    for event in sorted(events, key=lambda e: e.distance):
        gap = event.mile - last_mile
        if gap >= policy.wake_up_straight_miles:
            armed_straight = gap
        if armed_straight is not None and event.angle >= policy.wake_up_min_angle_deg:
            wake_ups.append(WakeUp(event=event, straight_miles=armed_straight))
            armed_straight = None
        last_mile = event.mile
    return wake_ups


# -------------------------
# text
# -------------------------

def callout_text(event: Event, lookup: Optional[ZoneLookup] = None,
                 policy: Optional[CalloutPolicy] = None) -> str:
    policy = policy or default_callout_policy()
    word = event.direction.word
    angle = int(round(event.angle))

    if lookup is not None and _is_exit(event, lookup, policy):
        return f"HARD {word.upper()} - EXIT"

    if is_hard(event, policy):
        if event.angle >= policy.hairpin_text_angle_deg:
            text = f"CAUTION - Hard {word} {angle}°"
        else:
            text = f"CAUTION - {word.capitalize()} {angle}°"
    elif event.zone_type is ZoneCharacter.TECHNICAL and event.angle >= policy.technical_hard_angle_deg:
        text = f"Hard {word} {angle}°"
    elif event.zone_type is not ZoneCharacter.TECHNICAL and event.angle >= policy.transit_tightens_angle_deg:
        text = f"{word.capitalize()} {angle}°, tightens"
    else:
        text = f"{word.capitalize()} {angle}°"

    return text + _modifier_suffix(event, text)


def sequence_text(sequence: CurveSequence) -> str:
    count = len(sequence.events)
    words = [e.direction.word for e in sequence.events]
    max_angle = int(round(sequence.max_angle))

    if count == 3:
        return f"{'-'.join(words).capitalize()}, max {max_angle}°"
    if count <= 5:
        if len(set(words)) == 1:
            return f"{count} {words[0]}s, max {max_angle}°"
        return f"{'-'.join(words).capitalize()}, stay tight"
    return f"{count} curves ahead, max {max_angle}°, stay focused"


def _modifier_suffix(event: Event, text: str) -> str:
    parts = []
    if CurveModifier.HAIRPIN in event.modifiers:
        parts.append("hairpin")
    if CurveModifier.LONG in event.modifiers:
        parts.append("long")
    if CurveModifier.TIGHTENING in event.modifiers and "tightens" not in text:
        parts.append("tightens")
    if CurveModifier.OPENING in event.modifiers:
        parts.append("opens")
    return "".join(f", {part}" for part in parts)


def _is_exit(event: Event, lookup: ZoneLookup, policy: CalloutPolicy) -> bool:
    if event.zone_type is not ZoneCharacter.TRANSIT or event.angle < policy.hard_angle_deg:
        return False
    ahead = lookup.character_at(event.distance + miles_to_meters(policy.exit_lookahead_miles))
    return ahead is not ZoneCharacter.TRANSIT


# -------------------------
# callout builders
# -------------------------

def _trigger(event_distance: float, lead_miles: float) -> float:
    return max(0.0, event_distance - miles_to_meters(lead_miles))


def _event_callout(event: Event, lookup: ZoneLookup, policy: CalloutPolicy) -> Callout:
    callout_type = {
        EventType.DANGER: CalloutType.DANGER,
        EventType.SIGNIFICANT: CalloutType.SIGNIFICANT,
        EventType.CURVE: CalloutType.CURVE,
    }[event.type]
    return Callout(
        id=f"curve-{event.mile:.2f}",
        trigger_distance=_trigger(event.distance, lead_miles_for(event, policy)),
        event_distance=event.distance,
        text=callout_text(event, lookup, policy),
        type=callout_type,
        priority=priority_for(event, policy),
        zone=event.zone_type,
        position=event.position,
        direction=event.direction,
        angle=event.angle,
        reason=_reason(event),
        speed_mph=recommended_speed(severity_for_angle(event.angle)),
        modifiers=event.modifiers,
    )


def _sequence_callout(sequence: CurveSequence, policy: CalloutPolicy) -> Callout:
    first = sequence.events[0]
    return Callout(
        id=f"sequence-{first.mile:.2f}",
        trigger_distance=_trigger(first.distance, policy.lead_for(first.zone_type)),
        event_distance=first.distance,
        text=sequence_text(sequence),
        type=CalloutType.SEQUENCE,
        priority=CalloutPriority.HIGH,
        zone=first.zone_type,
        position=first.position,
        direction=first.direction,
        angle=sequence.max_angle,
        reason=f"Sequence of {len(sequence.events)} curves ({sequence.pattern})",
        speed_mph=recommended_speed(severity_for_angle(sequence.max_angle)),
        members=tuple(f"curve-{e.mile:.2f}" for e in sequence.events),
    )


def _wake_up_callout(wake_up: WakeUp, lookup: ZoneLookup, policy: CalloutPolicy) -> Callout:
    event = wake_up.event
    text = callout_text(event, lookup, policy)
    return Callout(
        id=f"wake-up-{event.mile:.2f}",
        trigger_distance=_trigger(event.distance, lead_miles_for(event, policy)),
        event_distance=event.distance,
        text=f"Bend ahead - {_lower_first(text)}",
        type=CalloutType.WAKE_UP,
        priority=CalloutPriority.highest(CalloutPriority.HIGH, priority_for(event, policy)),
        zone=event.zone_type,
        position=event.position,
        direction=event.direction,
        angle=event.angle,
        reason=f"First curve after {wake_up.straight_miles:.1f} miles straight",
        speed_mph=recommended_speed(severity_for_angle(event.angle)),
        modifiers=event.modifiers,
    )


_ANNOUNCEMENTS: Dict[ZoneCharacter, Tuple[str, CalloutType, CalloutPriority]] = {
    ZoneCharacter.TECHNICAL: ("Technical section ahead. Stay sharp.", CalloutType.TRANSITION, CalloutPriority.MEDIUM),
    ZoneCharacter.TRANSIT: ("Open road.", CalloutType.ZONE_ANNOUNCE, CalloutPriority.LOW),
    ZoneCharacter.URBAN: ("Urban section.", CalloutType.ZONE_ANNOUNCE, CalloutPriority.LOW),
}


def _transition_callouts(zones: Sequence[Zone], policy: CalloutPolicy) -> List[Callout]:
    callouts: List[Callout] = []
    for previous, zone in zip(zones, zones[1:]):
        if previous.character == zone.character:
            continue
        text, callout_type, priority = _ANNOUNCEMENTS[zone.character]
        if callout_type is CalloutType.ZONE_ANNOUNCE and not policy.announce_zone_changes:
            continue
        lead = policy.transition_lead_miles if callout_type is CalloutType.TRANSITION else policy.lead_for(zone.character)
        callouts.append(Callout(
            id=f"transition-{zone.start_mile:.2f}",
            trigger_distance=_trigger(zone.start_distance, lead),
            event_distance=zone.start_distance,
            text=text,
            type=callout_type,
            priority=priority,
            zone=zone.character,
            reason=f"{previous.character.value} -> {zone.character.value} at mile {zone.start_mile:.1f}",
        ))
    return callouts


def _make_sequence(run: List[Event]) -> CurveSequence:
    return CurveSequence(
        events=tuple(run),
        pattern="-".join(e.direction.value[0] for e in run),
        max_angle=max(e.angle for e in run),
    )


def _reason(event: Event) -> str:
    if event.type is EventType.DANGER:
        return f"Danger curve - {event.angle:.0f}° after gentler curves"
    if event.zone_type is ZoneCharacter.TECHNICAL:
        return "Technical zone - curves called for awareness"
    if event.type is EventType.SIGNIFICANT:
        return "Significant curve - feelable at speed"
    return f"{event.angle:.0f}° curve in {event.zone_type.value} zone"


# -------------------------
# dedup / collapse
# -------------------------

def resolve_close_callouts(candidates: Sequence[Callout], policy: Optional[CalloutPolicy] = None) -> List[Callout]:
    """
    1. Sort by trigger_distance (stable).
    2. Within dedup_distance_m: the higher priority wins (earlier on ties);
       the loser is dropped unless it is critical, in which case its text is
       folded into the survivor.
    3. Within collapse_window_miles: same resolution, but curve-announcing
       losers are folded into the survivor's text (up to max_chain phrases;
       critical phrases are always kept).

    The survivor always takes the earlier trigger, so it still fires before
    every feature it now announces.
    """
    policy = policy or default_callout_policy()
    return collapse_callouts(dedup_callouts(candidates, policy), policy)


def dedup_callouts(candidates: Sequence[Callout], policy: Optional[CalloutPolicy] = None) -> List[Callout]:
    policy = policy or default_callout_policy()
    ordered = sorted(candidates, key=lambda c: c.trigger_distance)
    return _sweep(ordered, policy.dedup_distance_m, fold_all=False, policy=policy)


def collapse_callouts(deduped: Sequence[Callout], policy: Optional[CalloutPolicy] = None) -> List[Callout]:
    policy = policy or default_callout_policy()
    ordered = sorted(deduped, key=lambda c: c.trigger_distance)
    return _sweep(ordered, miles_to_meters(policy.collapse_window_miles), fold_all=True, policy=policy)


def _sweep(ordered: List[Callout], window_m: float, fold_all: bool, policy: CalloutPolicy) -> List[Callout]:
    kept: List[Callout] = []
    chains: Dict[int, int] = {}  # index in kept -> phrases folded so far
    for candidate in ordered:
        if not kept or candidate.trigger_distance - kept[-1].trigger_distance > window_m or window_m <= 0:
            kept.append(candidate)
            chains[len(kept) - 1] = 1
            continue

        index = len(kept) - 1
        current = kept[index]
        if candidate.priority.rank > current.priority.rank:
            winner, loser = candidate, current
        else:
            winner, loser = current, candidate

        fold = loser.is_critical or (
            fold_all
            and loser.type.announces_curve
            and winner.type.announces_curve
            and chains[index] < policy.max_chain
        )
        kept[index] = _merge(winner, loser, current, fold)
        if fold:
            chains[index] += 1
    return kept


def _merge(winner: Callout, loser: Callout, earlier: Callout, fold: bool) -> Callout:
    if not fold:
        return replace(winner, trigger_distance=earlier.trigger_distance)

    first, second = (loser, winner) if loser.event_distance < winner.event_distance else (winner, loser)
    both_technical = first.zone is ZoneCharacter.TECHNICAL and second.zone is ZoneCharacter.TECHNICAL
    joiner = " into " if both_technical else ", then "

    members = tuple(dict.fromkeys(winner.members + loser.members + (winner.id, loser.id)))
    return replace(
        winner,
        trigger_distance=earlier.trigger_distance,
        event_distance=min(winner.event_distance, loser.event_distance),
        text=f"{first.text}{joiner}{_lower_first(second.text)}",
        members=members,
    )


def _lower_first(text: str) -> str:
    # shouted words ("CAUTION", "HARD LEFT") stay shouted
    first_word = text.split(" ", 1)[0]
    if first_word.isupper():
        return text
    return text[:1].lower() + text[1:]
