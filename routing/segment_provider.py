from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import replace
from typing import Dict, List, Optional, Sequence, Tuple

from .geo import point_at_distance
from .models import RoadClass, RoadSegment, RoutePoint, SegmentFetchReport, miles_to_meters

logger = logging.getLogger(__name__)

# cache key: point rounded to ~100 m
RankKey = Tuple[float, float]


class SegmentRankProvider:
    """
    Adapts routing.road_reference_client.RoadReferenceClient into a
    per-segment symbolrank enricher with caching and concurrent fetches.

    Only LOCAL segments need a rank (urban vs rural). Each one is queried at
    its midpoint; fetches run concurrently and a failed fetch degrades that
    segment (symbolrank stays None) instead of aborting the whole pass.
    """
    def __init__(self, road_reference_client, max_workers: int = 4):
        self.client = road_reference_client
        self.max_workers = max_workers
        self._cache: Dict[RankKey, Optional[int]] = {}

    def _key(self, point: RoutePoint) -> RankKey:
        return (round(point[0], 3), round(point[1], 3))

    def prefetch(self, points: List[RoutePoint]) -> SegmentFetchReport:
        """
        Fetch ranks for all uncached points concurrently and cache them.
        Subsequent `rank_at` lookups for those points are instant.
        """
        report = SegmentFetchReport()
        missing: List[RoutePoint] = []
        seen = set()
        for point in points:
            key = self._key(point)
            if key in self._cache or key in seen:
                continue
            seen.add(key)
            missing.append(point)
        report.requested = len(missing)
        if not missing:
            return report

        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            futures = {executor.submit(self.client.query_place_rank, point): point for point in missing}
            for future in as_completed(futures):
                point = futures[future]
                try:
                    self._cache[self._key(point)] = future.result()
                    report.succeeded += 1
                except Exception as exc:
                    # degrade: leave uncached so a later run can try again
                    logger.warning("rank fetch failed at %s: %s", point, exc)
                    report.failed_labels.append(f"{point[0]:.4f},{point[1]:.4f}")
        return report

    def rank_at(self, point: RoutePoint) -> Optional[int]:
        return self._cache.get(self._key(point))

    def enrich(
        self,
        segments: Sequence[RoadSegment],
        coordinates: Sequence[RoutePoint],
    ) -> Tuple[List[RoadSegment], SegmentFetchReport]:
        """
        Return copies of `segments` with symbolrank filled for LOCAL roads.

        All-succeed-or-degrade: every segment comes back; the ones whose
        fetch failed keep symbolrank=None (treated as non-urban) and are
        listed in the report.
        """
        midpoints: Dict[int, RoutePoint] = {}
        for index, segment in enumerate(segments):
            if segment.road_class is not RoadClass.LOCAL or segment.symbolrank is not None:
                continue
            mid_m = miles_to_meters((segment.start_mile + segment.end_mile) / 2.0)
            midpoints[index] = point_at_distance(coordinates, mid_m)

        fetch = self.prefetch(list(midpoints.values()))

        report = SegmentFetchReport(requested=len(midpoints))
        enriched: List[RoadSegment] = []
        for index, segment in enumerate(segments):
            if index not in midpoints:
                enriched.append(segment)
                continue
            key = self._key(midpoints[index])
            if key in self._cache:
                report.succeeded += 1
                enriched.append(replace(segment, symbolrank=self._cache[key]))
            else:
                report.failed_labels.append(segment.label)
                enriched.append(segment)

        if fetch.degraded:
            logger.warning("segment enrichment degraded for %d of %d segments",
                           len(report.failed_labels), report.requested)
        return enriched, report
