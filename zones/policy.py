"""
Purpose: Central configuration for zone classification and smoothing.
What it does:

Stores all tunable thresholds:

STATE_ROUTE_TRANSIT_MAX_DENSITY = 1.5 curves/mile

STATE_ROUTE_TRANSIT_MAX_AVG_ANGLE = 25

URBAN_SYMBOLRANK_MAX = 10 (1-19 scale, lower = bigger place)

MIN_ZONE_MILES = 0.3, SANDWICH_MAX_MILES = 0.5

Rule: Parameters only; the classifier and smoother read them.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ZonePolicy:
    """
    Central configuration for turning road segments into zones.

    Notes:
    - a state route is "transit" only if it is sparse AND gentle AND has no
      danger-grade curve; otherwise technical.
    - gaps default to technical: a missed curve costs more than an
      unnecessary warning.
    """

    # --- State routes ---
    state_route_transit_max_density: float = 1.5  # curves per mile
    state_route_transit_max_avg_angle: float = 25.0
    danger_angle_deg: float = 45.0

    # --- Local roads ---
    # symbolrank <= this reads as city/town context
    urban_symbolrank_max: int = 10

    # --- Gaps ---
    # gaps shorter than this are absorbed by the neighbouring zone
    gap_tolerance_miles: float = 0.01

    # --- Smoothing ---
    # short zone between two same-character zones gets absorbed
    sandwich_max_miles: float = 0.5
    # any zone shorter than this gets absorbed into a neighbour
    min_zone_miles: float = 0.3
    # interior urban zones shorter than this are recharacterized...
    interior_urban_max_miles: float = 2.0
    # ...unless they look like a dense, curve-free grid
    urban_grid_min_curves_per_mile: float = 4.0
    urban_grid_max_angle: float = 20.0

    # --- Validation ---
    ping_pong_max_miles: float = 1.0

    def validate(self) -> None:
        """
        Basic sanity checks. Call once at startup if you want.
        """
        if self.state_route_transit_max_density < 0:
            raise ValueError("state_route_transit_max_density must be >= 0")

        if not 1 <= self.urban_symbolrank_max <= 19:
            raise ValueError("urban_symbolrank_max must be within the 1-19 rank scale")

        if self.gap_tolerance_miles < 0:
            raise ValueError("gap_tolerance_miles must be >= 0")

        if self.min_zone_miles < 0 or self.sandwich_max_miles < 0:
            raise ValueError("smoothing lengths must be >= 0")

        if self.sandwich_max_miles < self.min_zone_miles:
            raise ValueError("sandwich_max_miles must be >= min_zone_miles")


def default_zone_policy() -> ZonePolicy:
    """
    Convenience factory for the default policy.
    """
    p = ZonePolicy()
    p.validate()
    return p


def strict_smoothing_policy() -> ZonePolicy:
    """
    Example: fewer, longer zones (for long road-trip routes where
    zone flicker is more annoying than a late zone change).
    """
    p = ZonePolicy(
        sandwich_max_miles=0.8,
        min_zone_miles=0.5,
        interior_urban_max_miles=3.0,
    )
    p.validate()
    return p
