"""
Purpose: Optional wording pass over the filtered callouts.
What it does:
- sends {callouts: [{id, text, zone, angle, direction, type}]}
- expects {callouts: [{id, text}]} back
- replaces text by id; nothing else on a Callout can change

Rule: An answer that drops any callout or returns empty text is rejected
as a whole and the rule-based wording is kept.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Dict, List, Optional, Sequence, Tuple

from callouts.models import Callout

from .text_enhancer import (
    EnhancementRejected,
    PolishKind,
    PolishRequest,
    PolishResponse,
    TextEnhancer,
    polish_with_fallback,
)

INSTRUCTIONS = (
    "Rewrite each callout's text as a short spoken rally pace note. Keep every id, keep "
    "directions and angles correct, keep CAUTION/HARD warnings. Return "
    "{\"callouts\": [{\"id\": ..., \"text\": ...}]} with one entry per input callout."
)


def callout_polish_request(callouts: Sequence[Callout]) -> PolishRequest:
    rows = [
        {
            "id": c.id,
            "text": c.text,
            "type": c.type.value,
            "zone": c.zone.value,
            "angle": round(c.angle) if c.angle is not None else None,
            "direction": c.direction.value if c.direction else None,
        }
        for c in callouts
    ]
    return PolishRequest(kind=PolishKind.CALLOUT_POLISH, payload={"callouts": rows}, instructions=INSTRUCTIONS)


def polished_texts(response: PolishResponse) -> Dict[str, str]:
    rows = response.payload.get("callouts")
    if not isinstance(rows, list):
        raise EnhancementRejected("callouts must be a list")
    texts: Dict[str, str] = {}
    for row in rows:
        if not isinstance(row, dict) or not isinstance(row.get("id"), str):
            raise EnhancementRejected("each polished callout needs a string id")
        text = row.get("text")
        if not isinstance(text, str) or not text.strip():
            raise EnhancementRejected(f"empty text for {row['id']}")
        texts[row["id"]] = text.strip()
    return texts


def _checker(callouts: Sequence[Callout]):
    expected = {c.id for c in callouts}

    def check(response: PolishResponse) -> None:
        missing = expected - set(polished_texts(response))
        if missing:
            raise EnhancementRejected(f"answer dropped {len(missing)} callouts")
    return check


def apply_texts(
    callouts: Sequence[Callout],
    texts: Dict[str, str],
    originals: Optional[Dict[str, str]] = None,
) -> List[Callout]:
    """
    Text-only replacement by id; unknown ids are ignored.

    With originals (id -> text that was sent for polishing), a callout is
    only rewritten when its current text is the one that was polished.
    A callout whose id was reused by a collapsed note keeps its own text.
    """
    return [
        replace(c, text=texts[c.id])
        if c.id in texts and (originals is None or originals.get(c.id) == c.text)
        else c
        for c in callouts
    ]


def polish_callouts(
    enhancer: Optional[TextEnhancer],
    callouts: Sequence[Callout],
) -> Tuple[List[Callout], Dict[str, str], bool]:
    """
    Returns (callouts, texts, enhanced). texts is the accepted id -> text
    map so the caller can reuse it for the grouped sets.
    """
    if not callouts:
        return list(callouts), {}, False

    request = callout_polish_request(callouts)
    fallback = PolishResponse(kind=PolishKind.CALLOUT_POLISH, payload={"callouts": []})
    response, enhanced = polish_with_fallback(enhancer, request, fallback, check=_checker(callouts))
    if not enhanced:
        return list(callouts), {}, False

    texts = polished_texts(response)
    return apply_texts(callouts, texts), texts, True
