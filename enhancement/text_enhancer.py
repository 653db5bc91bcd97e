"""
Purpose: The optional text layer's contract and its mandatory fallback.
What it does:
- PolishRequest / PolishResponse: kind + JSON-ready payload
- TextEnhancer: anything with polish(request) -> response (raises EnhancementError)
- polish_with_fallback: one call, at most one retry on timeout, and the
  deterministic fallback whenever the enhancer is missing, fails or its
  response is rejected.

Rule: An enhancer can change words only. Callers never get an exception
from this module; they get (response, enhanced).
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Optional, Protocol, Tuple

logger = logging.getLogger(__name__)


class EnhancementError(Exception):
    """Transport, parse or contract failure from a text enhancer."""
    pass


class EnhancementTimeout(EnhancementError):
    """The enhancer did not answer in time (retryable once)."""
    pass


class EnhancementRejected(EnhancementError):
    """The enhancer answered, but the answer breaks the contract."""
    pass


class PolishKind(str, Enum):
    ZONE_VALIDATION = "zone_validation"
    CALLOUT_POLISH = "callout_polish"
    CHATTER_POLISH = "chatter_polish"


@dataclass(frozen=True)
class PolishRequest:
    kind: PolishKind
    payload: Dict[str, Any] = field(default_factory=dict)
    instructions: str = ""


@dataclass(frozen=True)
class PolishResponse:
    kind: PolishKind
    payload: Dict[str, Any] = field(default_factory=dict)


class TextEnhancer(Protocol):
    def polish(self, request: PolishRequest) -> PolishResponse:
        ...


ResponseCheck = Callable[[PolishResponse], None]


def polish_with_fallback(
    enhancer: Optional[TextEnhancer],
    request: PolishRequest,
    fallback: PolishResponse,
    check: Optional[ResponseCheck] = None,
    retry_backoff_s: float = 0.5,
) -> Tuple[PolishResponse, bool]:
    """
    Returns (response, True) when the enhancer produced an accepted answer,
    otherwise (fallback, False).

    check(response) may raise EnhancementRejected; a rejected answer is not
    retried.
    """
    if enhancer is None:
        return fallback, False

    attempts = 0
    while True:
        attempts += 1
        try:
            response = enhancer.polish(request)
            if response.kind is not request.kind:
                raise EnhancementRejected(f"expected {request.kind.value}, got {response.kind.value}")
            if check is not None:
                check(response)
            return response, True
        except EnhancementTimeout as exc:
            if attempts > 1:
                logger.warning("%s timed out twice, keeping deterministic text: %s", request.kind.value, exc)
                return fallback, False
            logger.warning("%s timed out (%s), retrying once", request.kind.value, exc)
            time.sleep(retry_backoff_s)
        except EnhancementError as exc:
            logger.warning("%s failed, keeping deterministic text: %s", request.kind.value, exc)
            return fallback, False
