"""
Callouts domain package.

Public API:
- Domain models: Event, Callout, CalloutPriority, CalloutType, FilterResult, GroupedCallouts
- Event extraction: extract_events
- Rule-based filter: filter_events_to_callouts, should_callout
- Speed grouping: group_callouts, select_callout_set, get_next_callout
"""
from .models import (
    Callout,
    CalloutPriority,
    CalloutType,
    CurveSequence,
    Event,
    EventShape,
    EventType,
    FilterResult,
    GroupedCallouts,
    WakeUp,
)
from .policy import (
    CalloutPolicy,
    GroupingPolicy,
    SpeedProfile,
    cautious_callout_policy,
    default_callout_policy,
    default_grouping_policy,
    relaxed_callout_policy,
)
from .events import extract_events
from .filter import filter_events_to_callouts, resolve_close_callouts, should_callout
from .grouping import get_next_callout, group_callouts, select_callout_set

__all__ = [
    "Callout",
    "CalloutPriority",
    "CalloutType",
    "CurveSequence",
    "Event",
    "EventShape",
    "EventType",
    "FilterResult",
    "GroupedCallouts",
    "WakeUp",
    "CalloutPolicy",
    "GroupingPolicy",
    "SpeedProfile",
    "cautious_callout_policy",
    "default_callout_policy",
    "default_grouping_policy",
    "relaxed_callout_policy",
    "extract_events",
    "filter_events_to_callouts",
    "resolve_close_callouts",
    "should_callout",
    "get_next_callout",
    "group_callouts",
    "select_callout_set",
]
