"""
Detector Tests — local path, remote path and heuristic fallback.

No real LLM calls: remote behaviour is driven by mock providers that
return canned replies or raise.
"""

from __future__ import annotations

import json

import pytest

from lieanalyzer.detector import analyze_local, analyze_remote
from lieanalyzer.heuristic import analyze
from lieanalyzer.llm import LLMProvider, extract_json_content


# ============================================================
# MOCK LLMS
# ============================================================

VALID_PAYLOAD = {
    "lieProbability": 71,
    "confidenceScore": 64,
    "summary": "Elevated hedging around the timeline.",
    "cues": [
        {"label": "Hedging", "value": "5.2%", "risk": "Elevated", "detail": "Frequent qualifiers."},
    ],
    "metrics": [
        {"label": "Word Count", "value": "120", "hint": "Sample size."},
    ],
    "evidence": [
        {"quote": "Maybe I left around nine.", "rationale": "Vague timing."},
    ],
}


class MockLLM(LLMProvider):
    """Returns a fixed reply and records prompts."""

    def __init__(self, reply: str):
        self._reply = reply
        self.calls = []

    async def generate(self, prompt, system_instruction=None, temperature=0.7, json_mode=False):
        self.calls.append({"prompt": prompt, "system_instruction": system_instruction})
        return self._reply


class FailingLLM(LLMProvider):
    async def generate(self, prompt, system_instruction=None, temperature=0.7, json_mode=False):
        raise RuntimeError("503 unavailable")


TRANSCRIPT = "Maybe I left around nine. Honestly, I didn't take it, but I did return later."


# ============================================================
# JSON EXTRACTION
# ============================================================

class TestExtractJsonContent:
    def test_fenced_block(self):
        raw = 'Here you go:\n```json\n{"a": 1}\n```\nThanks'
        assert extract_json_content(raw) == '{"a": 1}'

    def test_fence_without_language(self):
        assert extract_json_content('```\n{"a": 1}\n```') == '{"a": 1}'

    def test_outer_braces(self):
        assert extract_json_content('Result: {"a": {"b": 2}} done') == '{"a": {"b": 2}}'

    def test_plain_passthrough(self):
        assert extract_json_content("  no json here  ") == "no json here"


# ============================================================
# LOCAL
# ============================================================

class TestAnalyzeLocal:
    @pytest.mark.asyncio
    async def test_envelope(self):
        result = await analyze_local(TRANSCRIPT, locale="en")
        assert result["success"] is True
        assert result["source"] == "heuristic"
        assert result["mode"] == "local"
        assert result["locale"] == "en"
        assert result["reason"] is None
        assert result["analysis"] == analyze(TRANSCRIPT, "en").to_dict()
        assert result["preview"] == TRANSCRIPT

    @pytest.mark.asyncio
    async def test_unsupported_locale(self):
        result = await analyze_local(TRANSCRIPT, locale="de")
        assert result["locale"] == "ko"

    @pytest.mark.asyncio
    async def test_breakdown(self):
        result = await analyze_local(TRANSCRIPT, locale="en")
        breakdown = result["score_breakdown"]
        assert breakdown["contradiction_count"] == 1
        assert breakdown["heuristic_lie_probability"] == result["analysis"]["lieProbability"]


# ============================================================
# REMOTE
# ============================================================

class TestAnalyzeRemote:
    @pytest.mark.asyncio
    async def test_valid_model_reply(self):
        llm = MockLLM(json.dumps(VALID_PAYLOAD))
        result = await analyze_remote(TRANSCRIPT, llm=llm, locale="en", file_name="call.txt")
        assert result["source"] == "model"
        assert result["reason"] is None
        assert result["analysis"]["lieProbability"] == 71
        assert result["analysis"]["cues"][0]["risk"] == "Elevated"
        assert result["mode"] == "remote"

    @pytest.mark.asyncio
    async def test_prompt_contents(self):
        llm = MockLLM(json.dumps(VALID_PAYLOAD))
        await analyze_remote(TRANSCRIPT, llm=llm, locale="ko", file_name="call.txt")
        prompt = llm.calls[0]["prompt"]
        assert "File Name: call.txt" in prompt
        assert TRANSCRIPT in prompt
        assert "Korean" in prompt
        assert "strict JSON" in llm.calls[0]["system_instruction"]

    @pytest.mark.asyncio
    async def test_fenced_reply_accepted(self):
        llm = MockLLM("```json\n" + json.dumps(VALID_PAYLOAD) + "\n```")
        result = await analyze_remote(TRANSCRIPT, llm=llm, locale="en")
        assert result["source"] == "model"

    @pytest.mark.asyncio
    async def test_breakdown_reports_heuristic_next_to_model(self):
        llm = MockLLM(json.dumps(VALID_PAYLOAD))
        result = await analyze_remote(TRANSCRIPT, llm=llm, locale="en")
        expected = analyze(TRANSCRIPT, "en").lie_probability
        assert result["score_breakdown"]["heuristic_lie_probability"] == expected

    @pytest.mark.asyncio
    async def test_invalid_json_falls_back(self):
        llm = MockLLM("I think the speaker is lying.")
        result = await analyze_remote(TRANSCRIPT, llm=llm, locale="en")
        assert result["source"] == "heuristic"
        assert "not valid JSON" in result["reason"]
        assert result["analysis"] == analyze(TRANSCRIPT, "en").to_dict()

    @pytest.mark.asyncio
    async def test_out_of_range_score_falls_back(self):
        payload = {**VALID_PAYLOAD, "lieProbability": 150}
        result = await analyze_remote(TRANSCRIPT, llm=MockLLM(json.dumps(payload)), locale="en")
        assert result["source"] == "heuristic"
        assert "schema validation" in result["reason"]

    @pytest.mark.asyncio
    async def test_bad_risk_label_falls_back(self):
        cues = [{**VALID_PAYLOAD["cues"][0], "risk": "Severe"}]
        payload = {**VALID_PAYLOAD, "cues": cues}
        result = await analyze_remote(TRANSCRIPT, llm=MockLLM(json.dumps(payload)), locale="en")
        assert result["source"] == "heuristic"

    @pytest.mark.asyncio
    async def test_missing_field_falls_back(self):
        payload = {k: v for k, v in VALID_PAYLOAD.items() if k != "evidence"}
        result = await analyze_remote(TRANSCRIPT, llm=MockLLM(json.dumps(payload)), locale="en")
        assert result["source"] == "heuristic"

    @pytest.mark.asyncio
    async def test_json_array_falls_back(self):
        result = await analyze_remote(TRANSCRIPT, llm=MockLLM("[1, 2, 3]"), locale="en")
        assert result["source"] == "heuristic"

    @pytest.mark.asyncio
    async def test_provider_error_falls_back(self):
        result = await analyze_remote(TRANSCRIPT, llm=FailingLLM(), locale="ko")
        assert result["source"] == "heuristic"
        assert "RuntimeError" in result["reason"]
        assert result["analysis"] == analyze(TRANSCRIPT, "ko").to_dict()

    @pytest.mark.asyncio
    async def test_fallback_on_empty_text(self):
        result = await analyze_remote("", llm=FailingLLM(), locale="en")
        assert result["analysis"]["lieProbability"] == 42
        assert len(result["analysis"]["evidence"]) == 1
