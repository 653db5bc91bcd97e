import pytest
import requests

from callouts.models import Callout, CalloutPriority, CalloutType
from enhancement import (
    EnhancementError,
    EnhancementTimeout,
    LLMClient,
    PolishKind,
    PolishResponse,
    apply_texts,
    polish_callouts,
    polish_chatter,
    validate_zones_with,
)
from enhancement.callout_polish import callout_polish_request
from highway.models import ChatterItem, ChatterTriggerType, SpeedBracket
from zones.models import ZoneCharacter


class ScriptedEnhancer:
    """
    Test double for TextEnhancer.
    Each call pops the next scripted step: a payload dict is answered, an
    exception instance is raised.
    """
    def __init__(self, *steps):
        self.steps = list(steps)
        self.requests = []

    def polish(self, request):
        self.requests.append(request)
        step = self.steps.pop(0)
        if isinstance(step, Exception):
            raise step
        return PolishResponse(kind=request.kind, payload=step)


@pytest.fixture(autouse=True)
def no_retry_sleep(monkeypatch):
    monkeypatch.setattr("enhancement.text_enhancer.time.sleep", lambda seconds: None)


@pytest.fixture
def callouts():
    def make(callout_id, text):
        return Callout(
            id=callout_id,
            trigger_distance=100.0,
            event_distance=340.0,
            text=text,
            type=CalloutType.CURVE,
            priority=CalloutPriority.MEDIUM,
            zone=ZoneCharacter.TECHNICAL,
        )
    return [make("curve-0.21", "Right 30°"), make("curve-0.40", "Left 45°")]


# -------------------------
# callout polish
# -------------------------

def test_polish_replaces_text_only(callouts):
    enhancer = ScriptedEnhancer({"callouts": [
        {"id": "curve-0.21", "text": "Right thirty"},
        {"id": "curve-0.40", "text": "Left forty-five"},
    ]})

    polished, texts, enhanced = polish_callouts(enhancer, callouts)

    assert enhanced is True
    assert [c.text for c in polished] == ["Right thirty", "Left forty-five"]
    assert texts == {"curve-0.21": "Right thirty", "curve-0.40": "Left forty-five"}
    # distances, ids and priorities are untouched
    for before, after in zip(callouts, polished):
        assert (after.id, after.trigger_distance, after.priority) == (before.id, before.trigger_distance, before.priority)
    assert enhancer.requests[0].kind is PolishKind.CALLOUT_POLISH


def test_answer_that_drops_a_callout_is_rejected(callouts):
    enhancer = ScriptedEnhancer({"callouts": [{"id": "curve-0.21", "text": "Right thirty"}]})

    polished, texts, enhanced = polish_callouts(enhancer, callouts)

    assert enhanced is False
    assert texts == {}
    assert polished == callouts
    # rejected answers are not retried
    assert len(enhancer.requests) == 1


def test_timeout_is_retried_once(callouts):
    answer = {"callouts": [{"id": c.id, "text": c.text.upper()} for c in callouts]}
    enhancer = ScriptedEnhancer(EnhancementTimeout("slow"), answer)

    polished, _, enhanced = polish_callouts(enhancer, callouts)

    assert enhanced is True
    assert polished[0].text == "RIGHT 30°"
    assert len(enhancer.requests) == 2


def test_two_timeouts_fall_back(callouts):
    enhancer = ScriptedEnhancer(EnhancementTimeout("slow"), EnhancementTimeout("still slow"))

    polished, _, enhanced = polish_callouts(enhancer, callouts)

    assert enhanced is False
    assert polished == callouts


def test_other_errors_fall_back_without_retry(callouts):
    enhancer = ScriptedEnhancer(EnhancementError("HTTP 500"))

    polished, _, enhanced = polish_callouts(enhancer, callouts)

    assert enhanced is False
    assert polished == callouts
    assert len(enhancer.requests) == 1


def test_no_enhancer_means_deterministic_text(callouts):
    polished, texts, enhanced = polish_callouts(None, callouts)

    assert (polished, texts, enhanced) == (callouts, {}, False)


# -------------------------
# zone validation
# -------------------------

def test_confident_decisions_change_zone_character(zone_factory):
    zones = [zone_factory(0, 2, "technical"), zone_factory(2, 5, "transit")]
    enhancer = ScriptedEnhancer({"decisions": [
        {"segmentIndex": 0, "newClassification": "highway", "reason": "divided road", "confidence": 0.9},
        {"segmentIndex": 1, "newClassification": "urban", "reason": "maybe a town", "confidence": 0.3},
    ]})

    validated, enhanced = validate_zones_with(enhancer, zones, [])

    assert enhanced is True
    assert [z.character for z in validated] == [ZoneCharacter.TRANSIT, ZoneCharacter.TRANSIT]
    assert validated[0].reason == "override: divided road"
    # boundaries never move
    assert [(z.start_distance, z.end_distance) for z in validated] == \
        [(z.start_distance, z.end_distance) for z in zones]

    payload = enhancer.requests[0].payload
    assert [row["segmentIndex"] for row in payload["segments"]] == [0, 1]


def test_failed_zone_validation_keeps_zones(zone_factory):
    zones = [zone_factory(0, 2, "technical")]

    validated, enhanced = validate_zones_with(ScriptedEnhancer(EnhancementError("boom")), zones, [])

    assert enhanced is False
    assert validated == zones


# -------------------------
# chatter polish
# -------------------------

def test_chatter_pools_are_merged_by_bracket():
    item = ChatterItem(
        id="chatter-0",
        trigger_distance=1000.0,
        type=ChatterTriggerType.INTERVAL,
        variants={SpeedBracket.CRUISE: ("Nice and easy.",), SpeedBracket.FAST: ("Keep it tidy.",)},
    )
    enhancer = ScriptedEnhancer({"chatter": [
        {"id": "chatter-0", "variants": {"cruise": ["Smooth going.", "  "], "fast": []}},
    ]})

    polished, enhanced = polish_chatter(enhancer, [item])

    assert enhanced is True
    assert polished[0].pool(SpeedBracket.CRUISE) == ("Smooth going.",)
    # an empty pool in the answer keeps the template lines
    assert polished[0].pool(SpeedBracket.FAST) == ("Keep it tidy.",)
    assert polished[0].trigger_distance == item.trigger_distance


def test_chatter_answer_in_the_wrong_shape_is_rejected():
    item = ChatterItem(id="chatter-0", trigger_distance=1000.0, type=ChatterTriggerType.INTERVAL)

    polished, enhanced = polish_chatter(ScriptedEnhancer({"chatter": "nope"}), [item])

    assert enhanced is False
    assert polished == [item]


# -------------------------
# HTTP client
# -------------------------

def test_llm_client_needs_a_base_url(monkeypatch):
    monkeypatch.setattr("enhancement.llm_client.LLM_BASE_URL", None)

    with pytest.raises(ValueError):
        LLMClient()


def test_apply_texts_skips_callouts_whose_text_was_not_polished(callouts):
    texts = {"curve-0.21": "Right thirty, then left forty-five"}
    # the polished note carried a folded text; the grouped copy still holds the plain one
    originals = {"curve-0.21": "Right 30°, then left 45°"}

    assert [c.text for c in apply_texts(callouts, texts, originals)] == ["Right 30°", "Left 45°"]
    assert apply_texts(callouts, texts, {"curve-0.21": "Right 30°"})[0].text == "Right thirty, then left forty-five"
    assert apply_texts(callouts, texts)[0].text == "Right thirty, then left forty-five"


def test_llm_client_maps_other_request_errors(monkeypatch, callouts):
    def broken_stream(*args, **kwargs):
        raise requests.exceptions.ChunkedEncodingError("connection broken")

    monkeypatch.setattr("enhancement.llm_client.requests.post", broken_stream)
    client = LLMClient(base_url="http://llm.invalid")

    with pytest.raises(EnhancementError) as excinfo:
        client.polish(callout_polish_request(callouts))
    # not retryable
    assert not isinstance(excinfo.value, EnhancementTimeout)
