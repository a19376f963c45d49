"""
LieAnalyzer — Deception Risk Profiler for Transcripts

Extracts text from uploaded documents and reports deception risk as a
probability, a confidence score, labeled linguistic cues, evidence quotes
and diagnostic metrics.

Public API:
  - analyze:            Heuristic engine, pure function of (text, locale)
  - heuristic_engine:   Engine singleton (measure / build_result / analyze)
  - analyze_local:      Heuristic-only analysis envelope
  - analyze_remote:     Remote classifier with heuristic fallback
  - extract_document:   Document bytes to normalised transcript text
  - LLMProvider:        Abstract LLM interface for provider swapping

Usage:
    from lieanalyzer import analyze
    result = analyze("Honestly, I never touched it.", "en")
    result.to_dict()["lieProbability"]
"""

__version__ = "1.0.0"

from lieanalyzer.heuristic import (
    analyze,
    heuristic_engine,
    HeuristicEngine,
    AnalysisResult,
    CueInsight,
    MetricInsight,
    EvidenceInsight,
    SignalProfile,
    ENGINE_VERSION,
)
from lieanalyzer.locales import (
    SUPPORTED_LOCALES,
    DEFAULT_LOCALE,
    LocaleConfigError,
    resolve_locale,
)
from lieanalyzer.extractor import (
    extract_document,
    ExtractedDocument,
    ExtractionError,
    UnsupportedDocumentError,
    EmptyDocumentError,
)
from lieanalyzer.detector import analyze_local, analyze_remote
from lieanalyzer.llm import LLMProvider
from lieanalyzer.llm.factory import get_provider

__all__ = [
    "analyze",
    "heuristic_engine",
    "HeuristicEngine",
    "AnalysisResult",
    "CueInsight",
    "MetricInsight",
    "EvidenceInsight",
    "SignalProfile",
    "ENGINE_VERSION",
    "SUPPORTED_LOCALES",
    "DEFAULT_LOCALE",
    "LocaleConfigError",
    "resolve_locale",
    "extract_document",
    "ExtractedDocument",
    "ExtractionError",
    "UnsupportedDocumentError",
    "EmptyDocumentError",
    "analyze_local",
    "analyze_remote",
    "LLMProvider",
    "get_provider",
]
