"""
Gemini Provider — remote classifier backed by the Google Gemini API.

Uses the google.genai SDK. The client is created on first use, so the
service starts without an API key and only fails when a remote analysis
is actually requested (the caller then falls back to the heuristic engine).

- Retries transient errors with exponential backoff
- Falls back to FALLBACK_MODEL when the configured model fails
- Circuit breaker: after repeated failures, fail fast for a cool-down period
"""

from __future__ import annotations

import asyncio
import time
from typing import Optional

from google import genai
from google.genai import types

from lieanalyzer.config import settings
from lieanalyzer.llm import LLMProvider
from lieanalyzer.logging import get_logger

logger = get_logger("llm.gemini")

FALLBACK_MODEL = "gemini-2.5-flash"

_TRANSIENT_MARKERS = (
    "429", "500", "503", "rate", "quota", "timeout",
    "connection", "unavailable", "overloaded",
)


class CircuitOpenError(Exception):
    """Raised instead of calling the model while the breaker is open."""


class CircuitBreaker:
    """closed → open (after N consecutive failures) → half-open (after cool-down)."""

    def __init__(self, failure_threshold: int = 3, recovery_timeout: float = 60):
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self._failures = 0
        self._opened_at: float = 0
        self._state = "closed"

    @property
    def state(self) -> str:
        if self._state == "open" and time.monotonic() - self._opened_at >= self.recovery_timeout:
            self._state = "half-open"
        return self._state

    @property
    def is_open(self) -> bool:
        return self.state == "open"

    def record_success(self) -> None:
        self._failures = 0
        self._state = "closed"

    def record_failure(self) -> None:
        self._failures += 1
        if self._failures >= self.failure_threshold:
            self._state = "open"
            self._opened_at = time.monotonic()
            logger.warning(
                "Circuit breaker open after %d consecutive failures; "
                "remote analysis disabled for %ds",
                self._failures, self.recovery_timeout,
            )


def _is_transient(error: Exception) -> bool:
    message = str(error).lower()
    return any(marker in message for marker in _TRANSIENT_MARKERS)


class GeminiProvider(LLMProvider):
    """Google Gemini provider with retry, model fallback and circuit breaker."""

    name = "gemini"

    def __init__(self, api_key: Optional[str] = None, model: Optional[str] = None):
        self._api_key = api_key or settings.GEMINI_API_KEY
        self._model = model or settings.GEMINI_MODEL
        self._client: Optional[genai.Client] = None
        self.circuit_breaker = CircuitBreaker()

    def _get_client(self) -> genai.Client:
        if self._client is None:
            if not self._api_key:
                raise RuntimeError(
                    "GEMINI_API_KEY not set; remote analysis is unavailable."
                )
            self._client = genai.Client(api_key=self._api_key)
        return self._client

    async def _call_model(
        self,
        model: str,
        prompt: str,
        config: types.GenerateContentConfig,
        max_retries: int,
    ) -> str:
        client = self._get_client()
        for attempt in range(max_retries):
            try:
                response = await client.aio.models.generate_content(
                    model=model,
                    contents=prompt,
                    config=config,
                )
                return response.text or ""
            except Exception as e:
                if _is_transient(e) and attempt < max_retries - 1:
                    await asyncio.sleep(2 ** attempt)
                    continue
                raise
        raise RuntimeError(f"No attempts made against {model}")

    async def generate(
        self,
        prompt: str,
        system_instruction: Optional[str] = None,
        temperature: float = 0.7,
        json_mode: bool = False,
    ) -> str:
        if self.circuit_breaker.is_open:
            raise CircuitOpenError(
                "Remote classifier circuit is open; use the heuristic engine."
            )

        config = types.GenerateContentConfig(
            temperature=temperature,
            system_instruction=system_instruction,
        )
        if json_mode:
            config.response_mime_type = "application/json"

        try:
            result = await self._call_model(self._model, prompt, config, max_retries=2)
        except Exception as primary_err:
            if self._model == FALLBACK_MODEL:
                self.circuit_breaker.record_failure()
                raise
            logger.warning(
                "Model %s failed (%s), retrying with %s",
                self._model, primary_err, FALLBACK_MODEL,
            )
            try:
                result = await self._call_model(FALLBACK_MODEL, prompt, config, max_retries=1)
            except Exception as fallback_err:
                self.circuit_breaker.record_failure()
                raise fallback_err from primary_err

        self.circuit_breaker.record_success()
        return result
