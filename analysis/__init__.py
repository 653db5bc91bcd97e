"""
Analysis (pipeline orchestration) package.

Public API:
- Pure pipeline: analyze, AnalysisOptions, AnalysisResult, AnalysisStatus
- Policy: AnalysisPolicy, default_analysis_policy, strict_analysis_policy
- Stateful wrapper: AnalysisSession (generation-guarded commits)
"""
from .engine import (
    AnalysisOptions,
    AnalysisPolicy,
    AnalysisResult,
    AnalysisStatus,
    analyze,
    default_analysis_policy,
    fetch_road_segments,
    strict_analysis_policy,
)
from .session import AnalysisSession

__all__ = [
    "AnalysisOptions",
    "AnalysisPolicy",
    "AnalysisResult",
    "AnalysisStatus",
    "analyze",
    "default_analysis_policy",
    "fetch_road_segments",
    "strict_analysis_policy",
    "AnalysisSession",
]
