"""
Highway domain package.

Public API:
- Domain models: Bend, BendType, ChatterItem, ChatterTriggerType, SpeedBracket
- Bend analysis: analyze_highway_bends
- Chatter: generate_chatter_timeline, pick_variant, can_play_chatter, speed_bracket
"""
from .models import Bend, BendType, ChatterItem, ChatterTriggerType, SpeedBracket
from .policy import (
    BendPolicy,
    ChatterPolicy,
    default_bend_policy,
    default_chatter_policy,
    quiet_chatter_policy,
)
from .bends import analyze_highway_bends, angle_to_severity
from .chatter import can_play_chatter, generate_chatter_timeline, pick_variant, speed_bracket

__all__ = [
    "Bend",
    "BendType",
    "ChatterItem",
    "ChatterTriggerType",
    "SpeedBracket",
    "BendPolicy",
    "ChatterPolicy",
    "default_bend_policy",
    "default_chatter_policy",
    "quiet_chatter_policy",
    "analyze_highway_bends",
    "angle_to_severity",
    "can_play_chatter",
    "generate_chatter_timeline",
    "pick_variant",
    "speed_bracket",
]
