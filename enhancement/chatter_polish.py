"""
Purpose: Optional wording pass over the chatter timeline.
What it does:
- sends each item's trigger type, context and current variant pools
- expects {chatter: [{id, variants: {bracket: [lines]}}]}
- replaces the pools it gets back; a missing or empty pool keeps the
  template lines

Rule: Trigger distances and item order never change.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Any, Dict, List, Optional, Sequence, Tuple

from highway.models import ChatterItem, SpeedBracket

from .text_enhancer import (
    EnhancementRejected,
    PolishKind,
    PolishRequest,
    PolishResponse,
    TextEnhancer,
    polish_with_fallback,
)

INSTRUCTIONS = (
    "Write light, friendly co-driver chatter for each highway trigger. For every id return "
    "variants for the speed brackets slow, cruise, spirited, fast and flying, 1-3 short lines "
    "each. Return {\"chatter\": [{\"id\": ..., \"variants\": {...}}]}."
)


def chatter_polish_request(items: Sequence[ChatterItem]) -> PolishRequest:
    rows = [
        {
            "id": item.id,
            "type": item.type.value,
            "mile": round(item.trigger_mile, 1),
            "context": item.context,
            "variants": {bracket.value: list(item.pool(bracket)) for bracket in SpeedBracket},
        }
        for item in items
    ]
    return PolishRequest(kind=PolishKind.CHATTER_POLISH, payload={"chatter": rows}, instructions=INSTRUCTIONS)


def _check(response: PolishResponse) -> None:
    rows = response.payload.get("chatter")
    if not isinstance(rows, list):
        raise EnhancementRejected("chatter must be a list")


def _pools(raw: Any) -> Dict[SpeedBracket, Tuple[str, ...]]:
    pools: Dict[SpeedBracket, Tuple[str, ...]] = {}
    if not isinstance(raw, dict):
        return pools
    for bracket in SpeedBracket:
        lines = raw.get(bracket.value)
        if isinstance(lines, list):
            cleaned = tuple(line.strip() for line in lines if isinstance(line, str) and line.strip())
            if cleaned:
                pools[bracket] = cleaned
    return pools


def apply_chatter_variants(items: Sequence[ChatterItem], response: PolishResponse) -> List[ChatterItem]:
    by_id: Dict[str, Dict[SpeedBracket, Tuple[str, ...]]] = {}
    for row in response.payload.get("chatter", []):
        if isinstance(row, dict) and isinstance(row.get("id"), str):
            by_id[row["id"]] = _pools(row.get("variants"))

    result: List[ChatterItem] = []
    for item in items:
        pools = by_id.get(item.id)
        if not pools:
            result.append(item)
            continue
        merged = dict(item.variants)
        merged.update(pools)
        result.append(replace(item, variants=merged))
    return result


def polish_chatter(
    enhancer: Optional[TextEnhancer],
    items: Sequence[ChatterItem],
) -> Tuple[List[ChatterItem], bool]:
    if not items:
        return list(items), False

    request = chatter_polish_request(items)
    fallback = PolishResponse(kind=PolishKind.CHATTER_POLISH, payload={"chatter": []})
    response, enhanced = polish_with_fallback(enhancer, request, fallback, check=_check)
    if not enhanced:
        return list(items), False
    return apply_chatter_variants(items, response), True
