"""Gemini REST API integration with health checks."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx

from ..models.exceptions import GeminiException, GeminiRateLimitException

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
HEALTH_CHECK_TIMEOUT = 5.0

_RATE_LIMIT_RE = re.compile(r"rate limit|too many requests|resource_exhausted|quota", re.IGNORECASE)


@dataclass(frozen=True)
class GenerationConfig:
    temperature: float
    top_p: float
    top_k: int
    max_output_tokens: int

    def __post_init__(self):
        if not 0.0 <= self.temperature <= 1.0:
            raise ValueError(f"temperature must be within [0, 1], got {self.temperature}")

    def to_payload(self) -> Dict[str, Any]:
        return {
            "temperature": self.temperature,
            "topP": self.top_p,
            "topK": self.top_k,
            "maxOutputTokens": self.max_output_tokens,
        }


ANALYTICAL_CONFIG = GenerationConfig(temperature=0.7, top_p=0.95, top_k=40, max_output_tokens=4096)
CREATIVE_CONFIG = GenerationConfig(temperature=1.0, top_p=0.95, top_k=40, max_output_tokens=4096)


def is_rate_limit_error(exc: BaseException) -> bool:
    """True for HTTP 429 or any error whose message reads like throttling."""
    if isinstance(exc, GeminiRateLimitException):
        return True
    if isinstance(exc, httpx.HTTPStatusError) and exc.response.status_code == 429:
        return True
    if isinstance(exc, GeminiException) and exc.status_code == 429:
        return True
    return bool(_RATE_LIMIT_RE.search(str(exc)))


def _retry_after(response: httpx.Response) -> Optional[int]:
    value = response.headers.get("Retry-After")
    if not value:
        return None
    try:
        return max(0, int(float(value)))
    except ValueError:
        return None


def _extract_candidate_text(response: Dict[str, Any]) -> str:
    """Concatenate the text parts of the first candidate."""
    candidates = response.get("candidates") or []
    if not candidates:
        return ""
    content = candidates[0].get("content") or {}
    parts = content.get("parts") or []
    return "".join(p.get("text", "") for p in parts if isinstance(p, dict))


class GeminiClient:
    """Thin async client for `models/{model}:generateContent`.

    Exactly one request per `generate` call. Failures come back as
    `GeminiRateLimitException` when the upstream is throttling and
    `GeminiException` for everything else.
    """

    def __init__(self, api_key: Optional[str], model: str, http_client: httpx.AsyncClient,
                 base_url: str = DEFAULT_BASE_URL):
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self._http = http_client

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    def _headers(self) -> Dict[str, str]:
        return {"x-goog-api-key": self.api_key or "", "Content-Type": "application/json"}

    async def generate(self, prompt: str, config: GenerationConfig) -> str:
        if not self.api_key:
            raise GeminiException("Gemini API key not configured", model=self.model)

        url = f"{self.base_url}/models/{self.model}:generateContent"
        payload = {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": config.to_payload(),
        }

        try:
            resp = await self._http.post(url, headers=self._headers(), json=payload)
            resp.raise_for_status()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            body = e.response.text[:500]
            if status == 429 or _RATE_LIMIT_RE.search(body):
                raise GeminiRateLimitException(retry_after=_retry_after(e.response), model=self.model)
            raise GeminiException(f"Gemini API HTTP error {status}", status_code=status,
                                  model=self.model, details={"body": body})
        except httpx.TimeoutException:
            raise GeminiException("Gemini API request timed out", model=self.model)
        except httpx.HTTPError as e:
            if is_rate_limit_error(e):
                raise GeminiRateLimitException(model=self.model)
            raise GeminiException(f"Gemini API request failed: {e}", model=self.model)

        try:
            data = resp.json()
        except ValueError as e:
            raise GeminiException(f"Invalid JSON response from Gemini API: {e}", model=self.model)

        text = _extract_candidate_text(data)
        if not text.strip():
            block_reason = (data.get("promptFeedback") or {}).get("blockReason")
            if block_reason:
                raise GeminiException(f"Prompt blocked by Gemini: {block_reason}", model=self.model)
            raise GeminiException("Empty response from Gemini API", model=self.model)
        return text

    async def health_check(self) -> bool:
        """Check Gemini API reachability by listing models."""
        if not self.api_key:
            logger.warning("Gemini API key not configured")
            return False
        try:
            resp = await self._http.get(f"{self.base_url}/models", headers=self._headers(),
                                        timeout=HEALTH_CHECK_TIMEOUT)
            return resp.status_code == 200
        except httpx.HTTPError as e:
            logger.error(f"Gemini health check failed: {e}")
            return False
