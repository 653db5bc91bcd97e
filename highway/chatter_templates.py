#Purpose: Deterministic text pools for highway chatter.
#One pool per speed bracket per trigger type, filled from the trigger context.
#These are the lines played when no text enhancer is configured (or it fails).
#No scheduling here.

from __future__ import annotations

from typing import Any, Callable, Dict, List, Tuple

from .models import ChatterTriggerType, SpeedBracket

Pools = Dict[SpeedBracket, Tuple[str, ...]]


def _enter(ctx: Dict[str, Any]) -> Dict[SpeedBracket, List[str]]:
    miles = ctx.get("zone_miles", "a few")
    minutes = ctx.get("minutes", "a few")
    curves = ctx.get("next_curves", 0)
    return {
        SpeedBracket.SLOW: [
            f"Highway for the next {miles} miles. Nothing to worry about.",
            f"About {minutes} minutes of highway from here.",
        ],
        SpeedBracket.CRUISE: [
            f"{miles} miles of highway. I'll keep quiet unless something matters.",
            f"Highway now, {miles} miles. {curves} curves waiting after it.",
        ],
        SpeedBracket.SPIRITED: [
            f"{miles} miles of highway. Good place to make up time.",
            f"Open highway, {miles} miles of it. Settle in.",
        ],
        SpeedBracket.FAST: [
            f"{miles} miles of highway. Watch the overpasses at this pace.",
            f"Highway for {miles} miles. Mind the mirrors.",
        ],
        SpeedBracket.FLYING: [
            f"{miles} miles of highway and you're already at triple digits.",
            f"Highway, {miles} miles. Let's arrive in one piece.",
        ],
    }


def _interval(ctx: Dict[str, Any]) -> Dict[SpeedBracket, List[str]]:
    kind = ctx.get("interval_kind", "general")
    if kind == "milestone":
        mark = ctx.get("milestone", 10)
        return {
            SpeedBracket.SLOW: [f"{mark} miles of highway behind us.", f"{mark} mile mark. Steady."],
            SpeedBracket.CRUISE: [f"{mark} miles in. Nice rhythm.", f"That's {mark} highway miles done."],
            SpeedBracket.SPIRITED: [f"{mark} miles in and ahead of schedule.", f"{mark} down. Good pace."],
            SpeedBracket.FAST: [f"{mark} miles already. Time moves quickly up here.", f"{mark} mile mark. Still clean."],
            SpeedBracket.FLYING: [f"{mark} miles in no time at all. Stay sharp.", f"{mark} down. Easy on the right foot."],
        }
    if kind == "long_straight":
        return {
            SpeedBracket.SLOW: ["Long straight. Nothing to call for a while.", "Straight road, take it easy."],
            SpeedBracket.CRUISE: ["Still straight. I'll speak up when it bends.", "Long straight, nothing on the notes."],
            SpeedBracket.SPIRITED: ["Straight for a good while yet.", "Nothing on the notes for miles."],
            SpeedBracket.FAST: ["Straight road. Classic spot for a radar gun.", "Long straight. Keep scanning ahead."],
            SpeedBracket.FLYING: ["Straight, and quick. Eyes well up the road.", "Long straight. Everything arrives fast at this speed."],
        }

    remaining = ctx.get("miles_remaining", "a few")
    percent = ctx.get("percent", 50)
    return {
        SpeedBracket.SLOW: [f"{remaining} miles of highway left.", f"{percent} percent of the highway done."],
        SpeedBracket.CRUISE: [f"{remaining} miles to go on this stretch.", f"{percent} percent through. All quiet."],
        SpeedBracket.SPIRITED: [f"{remaining} miles left. Making good time.", f"{percent} percent done, running early."],
        SpeedBracket.FAST: [f"{remaining} miles left. Stay alert at this speed.", f"{percent} percent through. Keep it tidy."],
        SpeedBracket.FLYING: [f"{remaining} miles left. That goes by quickly now.", f"{percent} percent through. Easy does it."],
    }


def _notable(ctx: Dict[str, Any]) -> Dict[SpeedBracket, List[str]]:
    angle = ctx.get("angle", "?")
    direction = ctx.get("direction", "curve")
    lead = ctx.get("lead", "half a mile")
    return {
        SpeedBracket.SLOW: [f"Sharpest bend on this highway in {lead}, {angle} degree {direction}."],
        SpeedBracket.CRUISE: [f"Heads up, {angle} degree {direction} in {lead}. Biggest one on this stretch."],
        SpeedBracket.SPIRITED: [f"{angle} degree {direction} in {lead}. Best bend on the highway."],
        SpeedBracket.FAST: [f"{angle} degree {direction} in {lead}. Shed some speed for it."],
        SpeedBracket.FLYING: [f"{angle} degree {direction} in {lead}. Not at this speed."],
    }


def _straight_start(ctx: Dict[str, Any]) -> Dict[SpeedBracket, List[str]]:
    miles = ctx.get("straight_miles", "several")
    return {
        SpeedBracket.SLOW: [f"{miles} miles of straight road now."],
        SpeedBracket.CRUISE: [f"Straight for {miles} miles. Relax your hands."],
        SpeedBracket.SPIRITED: [f"{miles} miles of straight. Enjoy it."],
        SpeedBracket.FAST: [f"{miles} straight miles. Prime speed trap country."],
        SpeedBracket.FLYING: [f"{miles} miles straight. Long way to see trouble coming, use it."],
    }


def _straight_end(ctx: Dict[str, Any]) -> Dict[SpeedBracket, List[str]]:
    return {
        SpeedBracket.SLOW: ["Straight ends soon. Bends coming back."],
        SpeedBracket.CRUISE: ["End of the straight ahead. Back to the notes."],
        SpeedBracket.SPIRITED: ["Straight's nearly done. Bends return shortly."],
        SpeedBracket.FAST: ["Straight ending. Bring the speed down a touch."],
        SpeedBracket.FLYING: ["Straight ending. Time to slow it right down."],
    }


def _exit_preview(ctx: Dict[str, Any]) -> Dict[SpeedBracket, List[str]]:
    curves = ctx.get("next_curves", 0)
    lead = ctx.get("lead", "a mile")
    return {
        SpeedBracket.SLOW: [f"Highway ends in {lead}. {curves} curves after that."],
        SpeedBracket.CRUISE: [f"Off the highway in {lead}. {curves} curves to come."],
        SpeedBracket.SPIRITED: [f"{lead} to the good part. {curves} curves next."],
        SpeedBracket.FAST: [f"Highway ends in {lead}. Start bringing it down."],
        SpeedBracket.FLYING: [f"{lead} to the exit. Brakes soon, {curves} curves after."],
    }


_BUILDERS: Dict[ChatterTriggerType, Callable[[Dict[str, Any]], Dict[SpeedBracket, List[str]]]] = {
    ChatterTriggerType.HIGHWAY_ENTER: _enter,
    ChatterTriggerType.INTERVAL: _interval,
    ChatterTriggerType.NOTABLE_FEATURE: _notable,
    ChatterTriggerType.LONG_STRAIGHT_START: _straight_start,
    ChatterTriggerType.LONG_STRAIGHT_END: _straight_end,
    ChatterTriggerType.HIGHWAY_EXIT_PREVIEW: _exit_preview,
}


def template_variants(trigger_type: ChatterTriggerType, context: Dict[str, Any]) -> Pools:
    pools = _BUILDERS[trigger_type](context)
    return {bracket: tuple(pools.get(bracket, ())) for bracket in SpeedBracket}
