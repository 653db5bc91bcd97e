"""
Purpose: Central configuration for event extraction, callout filtering and grouping.
What it does:

Stores all tunable thresholds/caps:

URBAN_MIN_ANGLE = 70, TRANSIT_MIN_ANGLE = 25, TECHNICAL_MIN_ANGLE = 15

SEQUENCE_MAX_GAP_MILES = 0.3

WAKE_UP_STRAIGHT_MILES = 5

DEDUP_DISTANCE_M = 100, COLLAPSE_WINDOW_MILES = 0.5

SPEED_PROFILES (fast / standard), SPEED_THRESHOLDS

Optionally defines policy objects so you can pass thresholds explicitly.

Rule: No logic here, just thresholds and wording switches.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict

from zones.models import ZoneCharacter


@dataclass(frozen=True)
class CalloutPolicy:
    """
    Central configuration for events -> callouts.

    Notes:
    - these are empirically tuned numbers; keep them here, named, rather
      than re-deriving "better" ones in the filter.
    - lead distances scale with the speed a zone is driven at.
    """

    # --- Event extraction: per-zone "meaningful curve" floor (degrees) ---
    # technical keeps every non-noise curve
    event_floor_deg: Dict[ZoneCharacter, float] = field(default_factory=lambda: {
        ZoneCharacter.URBAN: 40.0,
        ZoneCharacter.TRANSIT: 12.0,
        ZoneCharacter.TECHNICAL: 0.0,
    })

    # --- Event typing ---
    # danger = spike of at least this many degrees over the previous event...
    danger_spike_deg: float = 10.0
    # ...landing at or above this angle
    danger_min_angle_deg: float = 20.0
    significant_angle_deg: float = 40.0

    # shape from angle per meter of curve
    tight_angle_per_m: float = 0.15
    medium_angle_per_m: float = 0.08

    # --- shouldCallout thresholds (degrees) ---
    urban_min_angle_deg: float = 70.0
    transit_min_angle_deg: float = 25.0
    technical_min_angle_deg: float = 15.0

    # at or above this an event is never bundled and is always critical
    hard_angle_deg: float = 70.0
    hairpin_text_angle_deg: float = 90.0
    technical_hard_angle_deg: float = 45.0
    transit_tightens_angle_deg: float = 40.0

    # --- Lead distances (miles before the apex) ---
    lead_miles: Dict[ZoneCharacter, float] = field(default_factory=lambda: {
        ZoneCharacter.URBAN: 0.1,
        ZoneCharacter.TECHNICAL: 0.15,
        ZoneCharacter.TRANSIT: 0.3,
    })
    danger_extra_lead_miles: float = 0.1
    transition_lead_miles: float = 0.25

    # transit curve >= hard angle followed by a non-transit zone this far ahead = exit
    exit_lookahead_miles: float = 0.5

    # --- Sequences ---
    sequence_max_gap_miles: float = 0.3
    sequence_min_events: int = 3

    # --- Wake-up ---
    wake_up_straight_miles: float = 5.0
    wake_up_min_angle_deg: float = 15.0

    # --- Dedup / spacing ---
    dedup_distance_m: float = 100.0
    collapse_window_miles: float = 0.5
    max_chain: int = 3

    # --- Zone announcements ---
    announce_zone_changes: bool = True

    def lead_for(self, zone: ZoneCharacter) -> float:
        return self.lead_miles.get(zone, self.lead_miles[ZoneCharacter.TECHNICAL])

    def validate(self) -> None:
        """
        Basic sanity checks. Call once at startup if you want.
        """
        for zone in ZoneCharacter:
            if zone not in self.lead_miles or self.lead_miles[zone] <= 0:
                raise ValueError(f"lead_miles must define a positive lead for {zone.value}")
            if zone not in self.event_floor_deg:
                raise ValueError(f"event_floor_deg must define a floor for {zone.value}")

        if self.sequence_min_events < 2:
            raise ValueError("sequence_min_events must be >= 2")

        if self.sequence_max_gap_miles <= 0:
            raise ValueError("sequence_max_gap_miles must be > 0")

        if self.wake_up_straight_miles <= 0:
            raise ValueError("wake_up_straight_miles must be > 0")

        if self.collapse_window_miles < 0 or self.dedup_distance_m < 0:
            raise ValueError("dedup / collapse distances must be >= 0")

        if self.max_chain < 1:
            raise ValueError("max_chain must be >= 1")

        if self.medium_angle_per_m > self.tight_angle_per_m:
            raise ValueError("medium_angle_per_m must be <= tight_angle_per_m")


@dataclass(frozen=True)
class SpeedProfile:
    transit_mph: float
    technical_mph: float
    min_seconds: float = 6.0

    def mph_for(self, zone: ZoneCharacter) -> float:
        return self.transit_mph if zone is ZoneCharacter.TRANSIT else self.technical_mph

    def merge_gap_miles(self, zone: ZoneCharacter) -> float:
        """Distance covered in min_seconds at this profile's zone speed."""
        return self.mph_for(zone) / 3600.0 * self.min_seconds


@dataclass(frozen=True)
class GroupingPolicy:
    """
    Central configuration for fast / standard callout grouping.
    """
    fast: SpeedProfile = SpeedProfile(transit_mph=120.0, technical_mph=70.0)
    standard: SpeedProfile = SpeedProfile(transit_mph=90.0, technical_mph=50.0)

    group_lead_miles: float = 0.3
    danger_group_lead_miles: float = 0.4

    # a member at or above this angle is treated as a danger curve in a group
    danger_angle_deg: float = 70.0
    hairpin_angle_deg: float = 90.0
    # simple groups at or above this max angle are high priority
    high_priority_angle_deg: float = 40.0

    # above these speeds (mph) the fast set is played
    fast_threshold_mph: Dict[ZoneCharacter, float] = field(default_factory=lambda: {
        ZoneCharacter.TRANSIT: 95.0,
        ZoneCharacter.TECHNICAL: 55.0,
    })

    def validate(self) -> None:
        for profile in (self.fast, self.standard):
            if profile.transit_mph <= 0 or profile.technical_mph <= 0 or profile.min_seconds <= 0:
                raise ValueError("speed profiles need positive speeds and min_seconds")

        if self.group_lead_miles < 0 or self.danger_group_lead_miles < 0:
            raise ValueError("group leads must be >= 0")


def default_callout_policy() -> CalloutPolicy:
    """
    Convenience factory for the default policy.
    """
    p = CalloutPolicy()
    p.validate()
    return p


def cautious_callout_policy() -> CalloutPolicy:
    """
    Example: more notes, earlier (new drivers, night, rain).
    """
    p = CalloutPolicy(
        transit_min_angle_deg=20.0,
        technical_min_angle_deg=12.0,
        lead_miles={
            ZoneCharacter.URBAN: 0.12,
            ZoneCharacter.TECHNICAL: 0.2,
            ZoneCharacter.TRANSIT: 0.4,
        },
        collapse_window_miles=0.35,
    )
    p.validate()
    return p


def relaxed_callout_policy() -> CalloutPolicy:
    """
    Example: fewer notes for drivers who know the road.
    """
    p = CalloutPolicy(
        transit_min_angle_deg=30.0,
        technical_min_angle_deg=20.0,
        wake_up_straight_miles=8.0,
        announce_zone_changes=False,
    )
    p.validate()
    return p


def default_grouping_policy() -> GroupingPolicy:
    p = GroupingPolicy()
    p.validate()
    return p
