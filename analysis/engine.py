"""
Purpose: The whole route analysis as one pure function.
What it does:

analyze(route, options, generation) runs, in order:

1. geometry check (short-circuits to an insufficient_data result)
2. curves: pre-computed ones from the route, else detect_curves
3. road segments: explicit > road-reference collaborator > router legs,
   then optional symbolrank enrichment (concurrent, degrade per segment)
4. zones: build -> coverage check -> smooth -> coverage check
5. optional zone validation by the text enhancer, then re-smooth
6. events -> rule-based callouts -> fast / standard grouping
7. highway bends and the chatter timeline
8. optional callout / chatter wording pass (text only, with fallback)

Rule: No shared state. Every stage gets the previous stage's output and
returns new records; the deterministic result stands on its own if every
collaborator is missing or fails.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from callouts.events import extract_events
from callouts.filter import filter_events_to_callouts
from callouts.grouping import group_callouts
from callouts.models import Callout, Event, GroupedCallouts
from callouts.policy import CalloutPolicy, GroupingPolicy, default_callout_policy, default_grouping_policy
from enhancement.callout_polish import apply_texts, polish_callouts
from enhancement.chatter_polish import polish_chatter
from enhancement.text_enhancer import TextEnhancer
from enhancement.zone_validation import MIN_CONFIDENCE, validate_zones_with
from highway.bends import analyze_highway_bends
from highway.chatter import generate_chatter_timeline
from highway.models import Bend, ChatterItem
from highway.policy import BendPolicy, ChatterPolicy, default_bend_policy, default_chatter_policy
from routing.curve_detection import detect_curves
from routing.models import Curve, RoadSegment, Route, SegmentFetchReport
from routing.policy import CurvePolicy, default_curve_policy
from routing.road_reference_client import RoadReferenceError
from routing.road_types import segments_from_legs
from routing.segment_provider import SegmentRankProvider
from zones.classifier import build_zones
from zones.lookup import check_coverage
from zones.models import Zone, ZoneIssue
from zones.policy import ZonePolicy, default_zone_policy
from zones.smoother import smooth_zones, validate_zones

logger = logging.getLogger(__name__)


class AnalysisStatus(str, Enum):
    OK = "ok"
    INSUFFICIENT_DATA = "insufficient_data"


@dataclass(frozen=True)
class AnalysisPolicy:
    """
    Every stage's policy in one place.

    strict=True makes zone coverage violations raise (tests, development);
    strict=False heals them with filler zones and logs an error.
    """
    strict: bool = False
    curve: CurvePolicy = field(default_factory=default_curve_policy)
    zone: ZonePolicy = field(default_factory=default_zone_policy)
    callout: CalloutPolicy = field(default_factory=default_callout_policy)
    grouping: GroupingPolicy = field(default_factory=default_grouping_policy)
    bend: BendPolicy = field(default_factory=default_bend_policy)
    chatter: ChatterPolicy = field(default_factory=default_chatter_policy)
    zone_validation_min_confidence: float = MIN_CONFIDENCE

    def validate(self) -> None:
        for sub in (self.curve, self.zone, self.callout, self.grouping, self.bend, self.chatter):
            sub.validate()
        if not 0.0 <= self.zone_validation_min_confidence <= 1.0:
            raise ValueError("zone_validation_min_confidence must be within [0, 1]")


def default_analysis_policy() -> AnalysisPolicy:
    p = AnalysisPolicy()
    p.validate()
    return p


def strict_analysis_policy() -> AnalysisPolicy:
    p = AnalysisPolicy(strict=True)
    p.validate()
    return p


@dataclass(frozen=True)
class AnalysisOptions:
    """
    Collaborators for one run. All optional.

    road_reference: anything with fetch_segments(route) -> List[RoadSegment]
    rank_provider:  SegmentRankProvider for urban/rural local roads
    segments:       explicit segments (skips road_reference)
    enhancer:       TextEnhancer for zone validation and wording passes
    """
    policy: AnalysisPolicy = field(default_factory=default_analysis_policy)
    road_reference: Optional[Any] = None
    rank_provider: Optional[SegmentRankProvider] = None
    segments: Optional[Sequence[RoadSegment]] = None
    enhancer: Optional[TextEnhancer] = None
    validate_zones: bool = True
    polish_callouts: bool = True
    polish_chatter: bool = True


@dataclass(frozen=True)
class AnalysisResult:
    status: AnalysisStatus
    generation: int
    zones: Tuple[Zone, ...] = ()
    callouts: Tuple[Callout, ...] = ()
    grouped: GroupedCallouts = GroupedCallouts(fast=(), standard=())
    bends: Tuple[Bend, ...] = ()
    chatter: Tuple[ChatterItem, ...] = ()
    curves: Tuple[Curve, ...] = ()
    events: Tuple[Event, ...] = ()
    zone_issues: Tuple[ZoneIssue, ...] = ()
    segment_report: SegmentFetchReport = field(default_factory=SegmentFetchReport)
    # pass name -> whether the enhancer's answer was used
    enhancement: Dict[str, bool] = field(default_factory=dict)
    stats: Dict[str, int] = field(default_factory=dict)
    message: str = ""

    @property
    def enhanced(self) -> bool:
        return bool(self.enhancement) and all(self.enhancement.values())

    @property
    def ok(self) -> bool:
        return self.status is AnalysisStatus.OK

    @staticmethod
    def insufficient(generation: int, message: str) -> "AnalysisResult":
        return AnalysisResult(status=AnalysisStatus.INSUFFICIENT_DATA, generation=generation, message=message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status.value,
            "generation": self.generation,
            "enhanced": self.enhanced,
            "zones": [z.to_dict() for z in self.zones],
            "callouts": [c.to_dict() for c in self.callouts],
            "groupedCallouts": self.grouped.to_dict(),
            "highwayBends": [b.to_dict() for b in self.bends],
            "chatterTimeline": [item.to_dict() for item in self.chatter],
            "zoneIssues": [
                {"kind": issue.kind.value, "index": issue.index, "message": issue.message}
                for issue in self.zone_issues
            ],
            "stats": dict(self.stats),
            "message": self.message,
        }


RouteInput = Union[Route, Dict[str, Any]]


def analyze(route: RouteInput, options: Optional[AnalysisOptions] = None, generation: int = 0) -> AnalysisResult:
    options = options or AnalysisOptions()
    policy = options.policy
    if isinstance(route, dict):
        route = Route.from_dict(route)

    if not route.has_geometry:
        logger.warning("route analysis skipped: %d points, %.1f m", len(route.coordinates), route.distance)
        return AnalysisResult.insufficient(
            generation,
            f"need at least 2 points and a positive distance (got {len(route.coordinates)} points, {route.distance:.1f} m)",
        )

    # 1. curves
    if route.curves is not None:
        curves = list(route.curves)
    else:
        curves = detect_curves(route.coordinates, policy.curve)

    # 2. road segments
    segments, segment_report = fetch_road_segments(route, options)

    # 3. zones
    zones = build_zones_for(route, segments, curves, policy)

    enhancement: Dict[str, bool] = {}
    enhancer = options.enhancer
    if enhancer is not None and options.validate_zones:
        validated, ok = validate_zones_with(enhancer, zones, curves, policy.zone_validation_min_confidence)
        enhancement["zone_validation"] = ok
        if ok:
            zones = smooth_zones(validated, curves, policy.zone)
            zones = check_coverage(zones, route.distance, strict=policy.strict)
    zone_issues = validate_zones(zones, policy.zone)

    # 4. events -> callouts -> grouping
    events = extract_events(curves, zones, policy.callout)
    filtered = filter_events_to_callouts(events, zones, route.distance, policy.callout)
    callouts = list(filtered.callouts)
    grouped = group_callouts(filtered.deduped, policy.grouping)

    # 5. highway layer
    bends = analyze_highway_bends(route.coordinates, zones, policy.bend)
    chatter = generate_chatter_timeline(zones, callouts, curves, policy.chatter)

    # 6. wording
    if enhancer is not None and options.polish_callouts and callouts:
        # the grouped sets predate the collapse; a folded text must not leak into them
        plain_texts = {c.id: c.text for c in callouts}
        callouts, texts, ok = polish_callouts(enhancer, callouts)
        enhancement["callout_polish"] = ok
        if ok:
            grouped = GroupedCallouts(
                fast=tuple(apply_texts(grouped.fast, texts, plain_texts)),
                standard=tuple(apply_texts(grouped.standard, texts, plain_texts)),
            )
    if enhancer is not None and options.polish_chatter and chatter:
        chatter, ok = polish_chatter(enhancer, chatter)
        enhancement["chatter_polish"] = ok

    stats = {
        "curves": len(curves),
        "segments": len(segments),
        "zones": len(zones),
        "events": len(events),
        "callouts": len(callouts),
        "fast": len(grouped.fast),
        "standard": len(grouped.standard),
        "bends": len(bends),
        "chatter": len(chatter),
    }
    stats.update({f"filter_{key}": value for key, value in filtered.stats.items()})

    logger.info(
        "route analysis gen %d: %.1f mi, %d zones, %d callouts, %d bends, %d chatter",
        generation, route.total_miles, len(zones), len(callouts), len(bends), len(chatter),
    )
    return AnalysisResult(
        status=AnalysisStatus.OK,
        generation=generation,
        zones=tuple(zones),
        callouts=tuple(callouts),
        grouped=grouped,
        bends=tuple(bends),
        chatter=tuple(chatter),
        curves=tuple(curves),
        events=tuple(events),
        zone_issues=tuple(zone_issues),
        segment_report=segment_report,
        enhancement=enhancement,
        stats=stats,
    )


# -------------------------
# stage helpers
# -------------------------

def fetch_road_segments(route: Route, options: AnalysisOptions) -> Tuple[List[RoadSegment], SegmentFetchReport]:
    """
    Explicit segments win, then the road-reference collaborator, then the
    router's own leg steps. A failing collaborator degrades to no segments
    (all-technical) instead of failing the run.
    """
    if options.segments is not None:
        segments = list(options.segments)
    elif options.road_reference is not None:
        try:
            segments = list(options.road_reference.fetch_segments(route))
        except RoadReferenceError as exc:
            logger.warning("road reference failed, classifying without road data: %s", exc)
            segments = []
    else:
        segments = segments_from_legs(route.legs)

    report = SegmentFetchReport()
    if options.rank_provider is not None and segments:
        segments, report = options.rank_provider.enrich(segments, route.coordinates)
        if report.degraded:
            logger.warning("symbolrank missing for %d segments: %s",
                           len(report.failed_labels), ", ".join(report.failed_labels))
    return segments, report


def build_zones_for(route: Route, segments: Sequence[RoadSegment], curves: Sequence[Curve],
                    policy: AnalysisPolicy) -> List[Zone]:
    zones = build_zones(segments, route.total_miles, curves, policy.zone)
    zones = check_coverage(zones, route.distance, strict=policy.strict)
    zones = smooth_zones(zones, curves, policy.zone)
    return check_coverage(zones, route.distance, strict=policy.strict)
