#Purpose: The LLM "adapter/client".
#Sole responsibility: send a PolishRequest to a chat-completions style HTTP API and
#return the JSON object the model answers with as a PolishResponse.
#Encapsulates service-specific details:
#URL construction + auth header
#timeouts (no retry here; polish_with_fallback owns the single retry)
#mapping transport / HTTP / parse failures onto EnhancementError subclasses
#It should not contain zone rules, callout rules or fallback decisions.


from dotenv import load_dotenv
import json
import logging
import os
from typing import Any, Dict, Optional
import requests

from .text_enhancer import (
    EnhancementError,
    EnhancementRejected,
    EnhancementTimeout,
    PolishRequest,
    PolishResponse,
)

# Read the LLM endpoint from environment
# Example in .env:
# LLM_BASE_URL=https://api.openai.com
# LLM_API_KEY=sk-xxxx
# LLM_MODEL=gpt-4o-mini
load_dotenv()
LLM_BASE_URL = os.getenv("LLM_BASE_URL")
LLM_API_KEY = os.getenv("LLM_API_KEY")
LLM_MODEL = os.getenv("LLM_MODEL", "gpt-4o-mini")

SYSTEM_PROMPT = (
    "You are a rally co-driver's assistant. You receive JSON describing pace notes "
    "for a route. Answer with a single JSON object in the shape the request asks for. "
    "Never add, remove or reorder items and never change distances."
)

logger = logging.getLogger(__name__)


class LLMClient:
    """
    LLM Adapter / Client (implements TextEnhancer)

    Sole responsibility:
    - POST one chat completion per PolishRequest
    - Parse the model's JSON answer into a PolishResponse

    """
    def __init__(self, base_url: Optional[str] = None, api_key: Optional[str] = None,
                 model: Optional[str] = None, timeout: float = 20, temperature: float = 0.3):
        self.base_url = base_url or LLM_BASE_URL
        self.api_key = api_key or LLM_API_KEY
        self.model = model or LLM_MODEL
        self.timeout = timeout  # seconds; the deterministic result is already usable
        self.temperature = temperature

        if not self.base_url:
            raise ValueError("LLM base URL not set. Please set LLM_BASE_URL in the .env file.")

    #----------------
    # Internal helpers
    #----------------
    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    def _body(self, request: PolishRequest) -> Dict[str, Any]:
        user = {"task": request.kind.value, "instructions": request.instructions, "input": request.payload}
        return {
            "model": self.model,
            "temperature": self.temperature,
            "response_format": {"type": "json_object"},
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": json.dumps(user)},
            ],
        }

    #----------------
    # Public methods
    #----------------
    def polish(self, request: PolishRequest) -> PolishResponse:
        url = f"{self.base_url}/v1/chat/completions"
        try:
            response = requests.post(url, json=self._body(request), headers=self._headers(), timeout=self.timeout)
        except requests.Timeout as exc:
            raise EnhancementTimeout(f"LLM request timed out after {self.timeout}s") from exc
        except requests.ConnectionError as exc:
            raise EnhancementTimeout(f"LLM unreachable: {exc}") from exc
        except requests.RequestException as exc:
            raise EnhancementError(f"LLM request failed: {exc}") from exc

        if response.status_code != 200:
            raise EnhancementError(f"LLM HTTP {response.status_code}")

        try:
            data = response.json()
            content = data["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as exc:
            raise EnhancementError("LLM response missing choices/message/content") from exc

        try:
            payload = json.loads(content)
        except (TypeError, ValueError) as exc:
            raise EnhancementRejected("LLM answer is not valid JSON") from exc
        if not isinstance(payload, dict):
            raise EnhancementRejected("LLM answer is not a JSON object")

        logger.debug("LLM %s answered with keys %s", request.kind.value, sorted(payload))
        return PolishResponse(kind=request.kind, payload=payload)
