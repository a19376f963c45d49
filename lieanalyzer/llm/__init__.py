"""
LLM Provider — Abstract Interface

The remote classifier is reached through this interface. Swap providers
by changing LIEANALYZER_LLM_PROVIDER in env.
"""

from __future__ import annotations

import json
import re
from abc import ABC, abstractmethod
from typing import Optional

_FENCE_RE = re.compile(r"```(?:json)?\s*([\s\S]*?)```", re.IGNORECASE)


def extract_json_content(raw: str) -> str:
    """
    Pull the JSON document out of a model reply.

    Prefers a fenced ``` block, then the outermost {...} span, and
    otherwise returns the trimmed reply unchanged.
    """
    trimmed = raw.strip()
    fence = _FENCE_RE.search(trimmed)
    if fence and fence.group(1).strip():
        return fence.group(1).strip()
    start = trimmed.find("{")
    end = trimmed.rfind("}")
    if start != -1 and end > start:
        return trimmed[start:end + 1]
    return trimmed


class LLMProvider(ABC):
    """Abstract base for LLM providers."""

    name: str = "abstract"

    @abstractmethod
    async def generate(
        self,
        prompt: str,
        system_instruction: Optional[str] = None,
        temperature: float = 0.7,
        json_mode: bool = False,
    ) -> str:
        """Generate a text response from the LLM."""
        ...

    async def generate_json(
        self,
        prompt: str,
        system_instruction: Optional[str] = None,
        temperature: float = 0.2,
    ) -> dict:
        """Generate and parse a JSON object response."""
        text = await self.generate(
            prompt=prompt,
            system_instruction=system_instruction,
            temperature=temperature,
            json_mode=True,
        )
        cleaned = extract_json_content(text)
        try:
            parsed = json.loads(cleaned)
        except json.JSONDecodeError as e:
            raise ValueError(
                f"LLM returned invalid JSON: {e}. Raw response: {text[:300]}"
            ) from e
        if not isinstance(parsed, dict):
            raise ValueError(
                f"LLM returned {type(parsed).__name__}, expected a JSON object."
            )
        return parsed
