"""
Purpose: Keep one route's analysis current while the route can change.
What it does:
- every run gets a fresh generation number
- a route change (invalidate) bumps the generation
- a finished run commits only if its generation is still current;
  a stale result is logged and dropped

Rule: analyze() itself stays pure. The session owns the only mutable state
(generation counter and last committed result) behind a lock.
"""

from __future__ import annotations

import logging
import threading
from typing import Optional

from .engine import AnalysisOptions, AnalysisResult, RouteInput, analyze

logger = logging.getLogger(__name__)


class AnalysisSession:
    def __init__(self, options: Optional[AnalysisOptions] = None):
        self.options = options or AnalysisOptions()
        self._lock = threading.Lock()
        self._generation = 0
        self._last_result: Optional[AnalysisResult] = None

    @property
    def generation(self) -> int:
        with self._lock:
            return self._generation

    @property
    def last_result(self) -> Optional[AnalysisResult]:
        with self._lock:
            return self._last_result

    def begin(self) -> int:
        with self._lock:
            self._generation += 1
            return self._generation

    def invalidate(self) -> int:
        """Route changed: anything still running is now stale."""
        with self._lock:
            self._generation += 1
            self._last_result = None
            logger.info("analysis invalidated, now generation %d", self._generation)
            return self._generation

    def commit(self, result: AnalysisResult) -> bool:
        with self._lock:
            if result.generation != self._generation:
                logger.warning(
                    "discarding stale analysis (generation %d, current %d)",
                    result.generation, self._generation,
                )
                return False
            self._last_result = result
            return True

    def run(self, route: RouteInput, options: Optional[AnalysisOptions] = None) -> Optional[AnalysisResult]:
        """
        Analyze and commit. Returns None when the route changed mid-run.
        """
        generation = self.begin()
        result = analyze(route, options or self.options, generation=generation)
        return result if self.commit(result) else None
