"""
Detector — Analysis Orchestrator

Coordinates the two report producers:
  - local:   Heuristic engine only. Zero API cost. Deterministic.
  - remote:  Remote classifier (LLM), validated against the AnalysisResult
             schema. Any failure falls back to the heuristic engine.

Both paths return the same envelope:
    {success, analysis, preview, source, reason, locale, mode,
     engine_version, score_breakdown}
"""

from __future__ import annotations

from typing import Optional

from pydantic import ValidationError

from lieanalyzer.extractor import create_preview
from lieanalyzer.heuristic import (
    ENGINE_VERSION,
    SignalProfile,
    confidence_score,
    heuristic_engine,
    lie_probability,
)
from lieanalyzer.llm import LLMProvider
from lieanalyzer.locales import resolve_locale
from lieanalyzer.logging import get_logger
from lieanalyzer.schemas.analysis import AnalysisPayload

logger = get_logger("detector")

SOURCE_MODEL = "model"
SOURCE_HEURISTIC = "heuristic"


# ============================================================
# REMOTE CLASSIFIER PROMPT
# ============================================================

SYSTEM_INSTRUCTION = (
    "You are a forensic deception analysis model that only returns strict JSON."
)

ANALYSIS_PROMPT = """You are a senior forensic linguistics engine assisting investigation teams.

Analyze the conversation transcript below and estimate its deception risk.
Respond in strict JSON matching this schema:

{{
  "lieProbability": integer 0-100, deception likelihood,
  "confidenceScore": integer 0-100, your confidence in the estimate,
  "summary": 2-3 sentence forensic overview,
  "cues": [{{"label": short cue name, "value": formatted measurement,
            "risk": "Baseline" | "Elevated" | "Critical", "detail": one sentence rationale}}],
  "evidence": [{{"quote": verbatim quote from the transcript, "rationale": why it indicates risk}}],
  "metrics": [{{"label": string, "value": string, "hint": string}}]
}}

Guidelines:
- Include 3-5 cues, prioritising hedging, contradictions, pressure language,
  temporal drift and numeric inconsistencies.
- The evidence array must contain 2-4 verbatim quotes, trimmed for brevity.
- Write every human-readable field in {language}.
- lieProbability and confidenceScore must be integers.
- If the transcript is too short to analyze, set lieProbability to 12 and
  describe the limitation in the summary.
- Never add fields or any text outside the JSON object.

File Name: {file_name}
Transcript:
\"\"\"
{transcript}
\"\"\""""

_LANGUAGE_NAMES = {"ko": "Korean", "en": "English"}


# ============================================================
# ANALYSIS FUNCTIONS
# ============================================================

async def analyze_local(text: str, locale: Optional[str] = None) -> dict:
    """Heuristic-only analysis. Deterministic, never raises."""
    locale = resolve_locale(locale)
    profile = heuristic_engine.measure(text)
    result = heuristic_engine.build_result(profile, locale)

    return _build_envelope(
        text=text,
        analysis=result.to_dict(),
        source=SOURCE_HEURISTIC,
        locale=locale,
        mode="local",
        profile=profile,
    )


async def analyze_remote(
    text: str,
    llm: LLMProvider,
    locale: Optional[str] = None,
    file_name: str = "transcript.txt",
) -> dict:
    """
    Remote classifier analysis with heuristic fallback.

    The heuristic profile is always computed: it backs the fallback and
    is reported next to the model's answer in score_breakdown.
    """
    locale = resolve_locale(locale)
    profile = heuristic_engine.measure(text)

    prompt = ANALYSIS_PROMPT.format(
        language=_LANGUAGE_NAMES[locale],
        file_name=file_name,
        transcript=text,
    )

    reason = None
    try:
        raw = await llm.generate_json(
            prompt, system_instruction=SYSTEM_INSTRUCTION, temperature=0.2,
        )
        payload = AnalysisPayload.model_validate(raw)
    except ValidationError as e:
        reason = f"Remote result failed schema validation ({e.error_count()} error(s))."
    except ValueError as e:
        reason = f"Remote result was not valid JSON: {e}"
    except Exception as e:
        reason = f"Remote classifier unavailable: {type(e).__name__}: {e}"
    else:
        return _build_envelope(
            text=text,
            analysis=payload.model_dump(),
            source=SOURCE_MODEL,
            locale=locale,
            mode="remote",
            profile=profile,
        )

    logger.warning(
        "Remote classifier failed, using heuristic engine",
        extra={"reason": reason, "locale": locale, "file_name": file_name},
    )
    result = heuristic_engine.build_result(profile, locale)
    return _build_envelope(
        text=text,
        analysis=result.to_dict(),
        source=SOURCE_HEURISTIC,
        locale=locale,
        mode="remote",
        profile=profile,
        reason=reason,
    )


# ============================================================
# ENVELOPE BUILDER
# ============================================================

def _build_envelope(
    text: str,
    analysis: dict,
    source: str,
    locale: str,
    mode: str,
    profile: SignalProfile,
    reason: Optional[str] = None,
) -> dict:
    breakdown = profile.to_breakdown()
    breakdown["heuristic_lie_probability"] = lie_probability(profile)
    breakdown["heuristic_confidence_score"] = confidence_score(profile)

    return {
        "success": True,
        "analysis": analysis,
        "preview": create_preview(text),
        "source": source,
        "reason": reason,
        "locale": locale,
        "mode": mode,
        "engine_version": ENGINE_VERSION,
        "score_breakdown": breakdown,
    }
