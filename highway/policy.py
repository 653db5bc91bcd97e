"""
Purpose: Central configuration for highway bend analysis and chatter scheduling.
What it does:

Stores all tunable thresholds:

SAMPLE_INTERVAL_M = 10, SLIDING_WINDOW_M = 200

BEND_MIN_ANGLE = 8, BEND_MAX_ANGLE = 45, BEND_MIN_LENGTH_M = 60

SWEEPER: 8-25 deg, >= 150 m, severity <= 2

TARGET_INTERVAL_MILES = 2.5, MIN_INTERVAL_MILES = 1.5

CALLOUT_BUFFER_SECONDS = 8, CHATTER_SPEAK_SECONDS = 4

Rule: Parameters only. Bends and chatter timing are tuned here.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class BendPolicy:
    """
    Central configuration for the highway bend analyzer.

    Notes:
    - bends above max_angle_deg are real curves and belong to the callout
      stream, not here.
    - severity here is the gentle highway scale (1-4), not the curve scale.
    """

    # --- Resampling / detection ---
    sample_interval_m: float = 10.0
    sliding_window_m: float = 200.0
    min_angle_deg: float = 8.0
    max_angle_deg: float = 45.0
    min_length_m: float = 60.0
    # per-sample heading change that still extends a bend outward
    extend_min_change_deg: float = 0.2

    # --- Sweepers ---
    sweeper_min_angle_deg: float = 8.0
    sweeper_max_angle_deg: float = 25.0
    sweeper_min_length_m: float = 150.0
    sweeper_max_severity: int = 2  # on the 1..6 curve severity scale

    # angle_to_severity breakpoints: < 12 -> 1, < 18 -> 2, < 25 -> 3, else 4
    severity_breakpoints: Tuple[float, ...] = (12.0, 18.0, 25.0)

    # --- S-sweeps / sections ---
    s_sweep_max_gap_m: float = 200.0
    s_sweep_weight: float = 1.5
    quick_transition_gap_m: float = 100.0
    section_max_gap_m: float = 400.0
    section_min_bends: int = 3

    # --- Spacing ---
    min_spacing_m: float = 300.0
    replace_ratio: float = 1.3

    # --- Coaching ---
    base_speed_mph: int = 75
    # (angle above, mph reduction), checked in order
    speed_reductions: Tuple[Tuple[float, int], ...] = ((30.0, 15), (20.0, 10), (15.0, 5), (10.0, 3))
    s_sweep_extra_reduction: int = 5

    def validate(self) -> None:
        if self.sample_interval_m <= 0:
            raise ValueError("sample_interval_m must be > 0")

        if self.sliding_window_m < 2 * self.sample_interval_m:
            raise ValueError("sliding_window_m must span at least two samples")

        if not (0 < self.min_angle_deg < self.max_angle_deg):
            raise ValueError("need 0 < min_angle_deg < max_angle_deg")

        if self.section_min_bends < 2:
            raise ValueError("section_min_bends must be >= 2")

        if self.replace_ratio < 1:
            raise ValueError("replace_ratio must be >= 1")

    @property
    def window_samples(self) -> int:
        return int(self.sliding_window_m // self.sample_interval_m)


@dataclass(frozen=True)
class ChatterPolicy:
    """
    Central configuration for the ambient chatter grid.
    All distances in miles unless the name says otherwise.
    """

    min_zone_miles: float = 1.0
    enter_offset_miles: float = 0.1
    target_interval_miles: float = 2.5
    min_interval_miles: float = 1.5

    milestones_miles: Tuple[int, ...] = (10, 20, 30, 40, 50)
    milestone_tolerance_miles: float = 1.0

    # callout gaps (miles) that count as straights
    gap_min_miles: float = 2.0
    long_straight_context_miles: float = 4.0
    long_straight_miles: float = 5.0
    long_straight_start_offset_miles: float = 0.2
    long_straight_end_offset_miles: float = 1.0
    # straight start/end triggers stay this far from the zone edges
    long_straight_edge_miles: float = 1.0

    notable_min_angle_deg: float = 20.0
    notable_lead_miles: float = 0.5

    exit_preview_offset_miles: float = 1.0
    exit_preview_min_zone_miles: float = 2.0

    # --- Playback gate ---
    buffer_seconds: float = 8.0
    speak_seconds: float = 4.0
    # used by the gate when the reported speed is 0 or missing
    fallback_speed_mph: float = 55.0

    # slow < 55 <= cruise < 70 <= spirited < 85 <= fast < 100 <= flying
    bracket_limits_mph: Tuple[float, ...] = (55.0, 70.0, 85.0, 100.0)

    def validate(self) -> None:
        if self.target_interval_miles <= 0 or self.min_interval_miles <= 0:
            raise ValueError("chatter intervals must be > 0")

        if self.min_interval_miles > self.target_interval_miles:
            raise ValueError("min_interval_miles must be <= target_interval_miles")

        if len(self.bracket_limits_mph) != 4 or list(self.bracket_limits_mph) != sorted(self.bracket_limits_mph):
            raise ValueError("bracket_limits_mph must be four ascending speeds")

        if self.buffer_seconds < 0 or self.speak_seconds <= 0:
            raise ValueError("buffer_seconds must be >= 0 and speak_seconds > 0")


def default_bend_policy() -> BendPolicy:
    p = BendPolicy()
    p.validate()
    return p


def default_chatter_policy() -> ChatterPolicy:
    p = ChatterPolicy()
    p.validate()
    return p


def quiet_chatter_policy() -> ChatterPolicy:
    """
    Example: sparser chatter for drivers who prefer silence.
    """
    p = ChatterPolicy(target_interval_miles=5.0, min_interval_miles=3.0)
    p.validate()
    return p
