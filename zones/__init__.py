"""
Zones domain package.

Public API:
- Domain models: Zone, ZoneCharacter, ZoneIssue, ZoneIssueKind
- Classification: build_zones, classify_segment, merge_adjacent
- Smoothing / validation: smooth_zones, validate_zones
- Lookup / invariant: ZoneLookup, check_coverage, ZoneCoverageError
"""
from .models import Zone, ZoneCharacter, ZoneIssue, ZoneIssueKind
from .policy import ZonePolicy, default_zone_policy, strict_smoothing_policy
from .classifier import build_zones, classify_segment, merge_adjacent
from .smoother import smooth_zones, validate_zones
from .lookup import ZoneCoverageError, ZoneLookup, check_coverage, coverage_problems

__all__ = [
    "Zone",
    "ZoneCharacter",
    "ZoneIssue",
    "ZoneIssueKind",
    "ZonePolicy",
    "default_zone_policy",
    "strict_smoothing_policy",
    "build_zones",
    "classify_segment",
    "merge_adjacent",
    "smooth_zones",
    "validate_zones",
    "ZoneCoverageError",
    "ZoneLookup",
    "check_coverage",
    "coverage_problems",
]
