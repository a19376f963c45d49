"""
API Schemas — Request and Response Models

Pydantic models for the LieAnalyzer API. The AnalysisPayload family mirrors
the engine's camelCase wire contract and doubles as the validator for
remote classifier output.
"""

from __future__ import annotations

from typing import Literal, Optional
from pydantic import BaseModel, Field


# ============================================================
# ANALYSIS RESULT (wire contract)
# ============================================================

class CuePayload(BaseModel):
    label: str
    value: str
    risk: Literal["Baseline", "Elevated", "Critical"]
    detail: str


class MetricPayload(BaseModel):
    label: str
    value: str
    hint: str


class EvidencePayload(BaseModel):
    quote: str
    rationale: str


class AnalysisPayload(BaseModel):
    """The AnalysisResult shape, produced locally or by the remote classifier."""
    lieProbability: int = Field(..., ge=0, le=100)
    confidenceScore: int = Field(..., ge=0, le=100)
    summary: str
    cues: list[CuePayload] = Field(..., min_length=1)
    metrics: list[MetricPayload]
    evidence: list[EvidencePayload] = Field(..., min_length=1)


# ============================================================
# ANALYZE
# ============================================================

class AnalyzeTextRequest(BaseModel):
    """POST /analyze/text request body."""
    text: str = Field(..., min_length=1, max_length=200_000,
                      description="Transcript text to profile.")
    locale: str = Field("ko", max_length=16,
                        description="Copy language: ko or en. Anything else falls back to ko.")
    mode: str = Field("remote", pattern="^(local|remote)$",
                      description="local (heuristic only) or remote (classifier with heuristic fallback).")

    model_config = {"json_schema_extra": {"examples": [
        {"text": "Honestly, I never touched it. Maybe I moved it, but I didn't take it.",
         "locale": "en", "mode": "local"},
    ]}}


class AnalyzeResponse(BaseModel):
    """POST /analyze and /analyze/text response body."""
    success: bool = True
    analysis: AnalysisPayload
    preview: str
    source: str
    reason: Optional[str] = None
    locale: str
    mode: str
    engine_version: str
    file_name: Optional[str] = None
    media_type: Optional[str] = None
    truncated: bool = False
    cached: bool = False
    score_breakdown: Optional[dict] = None


# ============================================================
# KEYWORDS / HEALTH
# ============================================================

class KeywordsResponse(BaseModel):
    engine_version: str
    hedging: list[str]
    pressure: list[str]
    negation: list[str]
    contrast_joiners: list[str]
    denial_markers: list[str]


class HealthResponse(BaseModel):
    status: str
    version: str
    engine_version: str
    llm_provider: str
    locales: list[str]
    supported_types: list[str]
    cache: dict
