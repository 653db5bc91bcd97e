"""
Enhancement (optional text layer) package.

Public API:
- Contract: TextEnhancer, PolishRequest, PolishResponse, PolishKind, polish_with_fallback
- Errors: EnhancementError, EnhancementTimeout, EnhancementRejected
- HTTP implementation: LLMClient
- Passes: validate_zones_with, polish_callouts, polish_chatter
"""
from .text_enhancer import (
    EnhancementError,
    EnhancementRejected,
    EnhancementTimeout,
    PolishKind,
    PolishRequest,
    PolishResponse,
    TextEnhancer,
    polish_with_fallback,
)
from .llm_client import LLMClient
from .zone_validation import apply_zone_decisions, validate_zones_with, zone_validation_request
from .callout_polish import apply_texts, polish_callouts
from .chatter_polish import polish_chatter

__all__ = [
    "EnhancementError",
    "EnhancementRejected",
    "EnhancementTimeout",
    "PolishKind",
    "PolishRequest",
    "PolishResponse",
    "TextEnhancer",
    "polish_with_fallback",
    "LLMClient",
    "apply_zone_decisions",
    "validate_zones_with",
    "zone_validation_request",
    "apply_texts",
    "polish_callouts",
    "polish_chatter",
]
