"""
Purpose: Optional second opinion on zone characters from a text enhancer.
What it does:
- builds a compact request: one row per zone with curve density, average and
  max angle
- applies the sparse answer {decisions: [{segmentIndex, newClassification,
  reason, confidence}]}; no decision for an index means "no change"
- ignores low-confidence decisions and unknown characters

Rule: Only zone characters can change. Boundaries are untouched; the caller
re-smooths and re-fuses events afterwards.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, Dict, List, Optional, Sequence, Tuple

from routing.models import Curve
from zones.models import Zone, ZoneCharacter

from .text_enhancer import (
    EnhancementRejected,
    PolishKind,
    PolishRequest,
    PolishResponse,
    TextEnhancer,
    polish_with_fallback,
)

logger = logging.getLogger(__name__)

MIN_CONFIDENCE = 0.6

# answer vocabulary -> character ("highway" is what models tend to say)
_CHARACTER_WORDS = {
    "highway": ZoneCharacter.TRANSIT,
    "transit": ZoneCharacter.TRANSIT,
    "technical": ZoneCharacter.TECHNICAL,
    "urban": ZoneCharacter.URBAN,
}

INSTRUCTIONS = (
    "Each segment has a current classification (urban, transit or technical) and curve "
    "statistics. Return {\"decisions\": [...]} listing ONLY segments whose classification "
    "should change, each as {segmentIndex, newClassification, reason, confidence}."
)


def zone_stats(zone: Zone, curves: Sequence[Curve]) -> Dict[str, Any]:
    inside = [c for c in curves if not c.is_noise and zone.contains(c.apex_distance)]
    miles = zone.length_miles
    return {
        "curveCount": len(inside),
        "curvesPerMile": round(len(inside) / miles, 2) if miles > 0 else 0.0,
        "avgAngle": round(sum(c.angle for c in inside) / len(inside), 1) if inside else 0.0,
        "maxAngle": round(max((c.angle for c in inside), default=0.0), 1),
    }


def zone_validation_request(zones: Sequence[Zone], curves: Sequence[Curve]) -> PolishRequest:
    segments = []
    for index, zone in enumerate(zones):
        row = {
            "segmentIndex": index,
            "currentClassification": zone.character.value,
            "startMile": round(zone.start_mile, 2),
            "endMile": round(zone.end_mile, 2),
            "road": zone.road,
        }
        row.update(zone_stats(zone, curves))
        segments.append(row)
    return PolishRequest(kind=PolishKind.ZONE_VALIDATION, payload={"segments": segments}, instructions=INSTRUCTIONS)


def _check(response: PolishResponse) -> None:
    if not isinstance(response.payload.get("decisions", []), list):
        raise EnhancementRejected("decisions must be a list")


def apply_zone_decisions(
    zones: Sequence[Zone],
    response: PolishResponse,
    min_confidence: float = MIN_CONFIDENCE,
) -> Tuple[List[Zone], List[str]]:
    """
    Returns (zones, changes). changes are human-readable notes for logging.
    """
    decisions: Dict[int, Dict[str, Any]] = {}
    for decision in response.payload.get("decisions", []):
        if isinstance(decision, dict) and isinstance(decision.get("segmentIndex"), int):
            decisions[decision["segmentIndex"]] = decision

    result: List[Zone] = []
    changes: List[str] = []
    for index, zone in enumerate(zones):
        decision = decisions.get(index)
        character = _parse_character(decision.get("newClassification")) if decision else None
        if decision is None or character is None or character is zone.character:
            result.append(zone)
            continue

        confidence = _confidence(decision)
        if confidence < min_confidence:
            logger.debug("zone %d: ignoring %s (confidence %.2f)", index, character.value, confidence)
            result.append(zone)
            continue

        reason = str(decision.get("reason", "")).strip() or "validated"
        changes.append(f"zone {index}: {zone.character.value} -> {character.value} ({reason})")
        result.append(replace(zone, character=character, reason=f"override: {reason}"))
    return result, changes


def validate_zones_with(
    enhancer: Optional[TextEnhancer],
    zones: Sequence[Zone],
    curves: Sequence[Curve],
    min_confidence: float = MIN_CONFIDENCE,
) -> Tuple[List[Zone], bool]:
    """
    Returns (zones, enhanced). Without an enhancer, or when it fails, the
    zones come back unchanged.
    """
    request = zone_validation_request(zones, curves)
    fallback = PolishResponse(kind=PolishKind.ZONE_VALIDATION, payload={"decisions": []})
    response, enhanced = polish_with_fallback(enhancer, request, fallback, check=_check)
    if not enhanced:
        return list(zones), False

    validated, changes = apply_zone_decisions(zones, response, min_confidence)
    for change in changes:
        logger.info("zone validation: %s", change)
    return validated, True


def _parse_character(raw: Any) -> Optional[ZoneCharacter]:
    if not isinstance(raw, str):
        return None
    return _CHARACTER_WORDS.get(raw.strip().lower())


def _confidence(decision: Dict[str, Any]) -> float:
    # a decision without a stated confidence is taken at face value
    raw = decision.get("confidence", 1.0)
    try:
        return float(raw)
    except (TypeError, ValueError):
        return 0.0
