"""
Purpose: Central configuration for curve detection (single source of truth).
What it does:

Stores the tunable geometry thresholds:

START_THRESHOLD_DEG = 5 (per-vertex heading change that opens a curve)

CONTINUE_THRESHOLD_DEG = 3 (keeps it open)

LOOKAHEAD_POINTS = 3 (tolerated wobble before closing)

NOISE_ANGLE_DEG = 5, MIN_SPAN_M = 3 (GPS jitter classification)

SEVERITY_BREAKPOINTS = (15, 30, 45, 60, 90)

Rule: No logic here. Tune detection by changing numbers, not code.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Tuple


@dataclass(frozen=True)
class CurvePolicy:
    """
    Thresholds for turning a polyline into Curve records.

    Notes:
    - severity is a monotone bucket of total angle: an angle below
      severity_breakpoints[0] is severity 1, at or above the last breakpoint
      is severity 6 (hairpin).
    - noise curves are still returned (curve_class=NOISE) so later stages
      can elect to drop them.
    """

    # --- Opening / closing a curve ---
    start_threshold_deg: float = 5.0
    continue_threshold_deg: float = 3.0
    lookahead_points: int = 3

    # Consecutive points closer than this are treated as duplicates.
    min_point_spacing_m: float = 0.5

    # --- Noise ---
    noise_angle_deg: float = 5.0
    # A turn squeezed into less than this many meters is a GPS spike.
    min_span_m: float = 3.0

    # --- Severity buckets (degrees) ---
    severity_breakpoints: Tuple[float, ...] = (15.0, 30.0, 45.0, 60.0, 90.0)

    # --- Modifiers ---
    hairpin_angle_deg: float = 150.0
    sharp_angle_deg: float = 120.0
    sharp_min_severity: int = 5
    long_min_length_m: float = 200.0
    long_min_angle_deg: float = 45.0
    # Second-half vs first-half turn ratio that marks tightening/opening.
    tighten_ratio: float = 1.3

    # --- Speed recommendations (mph) per severity: (cautious, normal, sport) ---
    speed_table: Dict[int, Tuple[int, int, int]] = field(default_factory=lambda: {
        1: (65, 75, 85),
        2: (55, 65, 75),
        3: (45, 55, 65),
        4: (35, 45, 55),
        5: (28, 35, 45),
        6: (20, 25, 35),
    })

    def validate(self) -> None:
        if self.start_threshold_deg <= 0:
            raise ValueError("start_threshold_deg must be > 0")

        if self.continue_threshold_deg <= 0 or self.continue_threshold_deg > self.start_threshold_deg:
            raise ValueError("continue_threshold_deg must be in (0, start_threshold_deg]")

        if self.lookahead_points < 0:
            raise ValueError("lookahead_points must be >= 0")

        if len(self.severity_breakpoints) != 5:
            raise ValueError("severity_breakpoints must hold exactly 5 values (6 buckets)")

        if list(self.severity_breakpoints) != sorted(self.severity_breakpoints):
            raise ValueError("severity_breakpoints must be ascending")

        if self.noise_angle_deg < 0 or self.min_span_m < 0:
            raise ValueError("noise thresholds must be >= 0")

        if sorted(self.speed_table) != [1, 2, 3, 4, 5, 6]:
            raise ValueError("speed_table must cover severities 1..6")


def default_curve_policy() -> CurvePolicy:
    p = CurvePolicy()
    p.validate()
    return p
