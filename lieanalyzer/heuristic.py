"""
Heuristic Engine — Local Deception Risk Profiler

Computes a complete AnalysisResult from lexical analysis alone:
  1. Keyword density for hedging, pressure and negation language
  2. Conflicting-clause detection (contrast joiner + denial marker)
  3. Sentence highlighting for evidence quotes
  4. Score synthesis and clamping

The engine is a pure function of (text, locale). It performs no I/O,
holds no mutable state and never raises for string input: empty or
non-linguistic text degrades to a minimal-signal result. This is what
lets it stand in for the remote classifier when that call fails.

Keyword tables and their compiled patterns are module-level constants,
built once at import.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from lieanalyzer.locales import CopyTable, get_copy

# --- Engine Version (reported by the API alongside every result) ---
ENGINE_VERSION = "1.0.0"


# ============================================================
# DATA STRUCTURES
# ============================================================

RISK_BASELINE = "Baseline"
RISK_ELEVATED = "Elevated"
RISK_CRITICAL = "Critical"
RISK_LEVELS = (RISK_BASELINE, RISK_ELEVATED, RISK_CRITICAL)


@dataclass(frozen=True)
class CueInsight:
    """A single labeled risk indicator."""
    label: str
    value: str      # "4.0%" for densities, "2" for the conflict count
    risk: str       # "Baseline" | "Elevated" | "Critical"
    detail: str


@dataclass(frozen=True)
class MetricInsight:
    label: str
    value: str
    hint: str


@dataclass(frozen=True)
class EvidenceInsight:
    quote: str
    rationale: str


@dataclass(frozen=True)
class AnalysisResult:
    """Result of a heuristic evaluation. Serialises to the camelCase wire shape."""
    lie_probability: int        # 5 to 96
    confidence_score: int       # 38 to 94
    summary: str
    cues: tuple[CueInsight, ...]
    metrics: tuple[MetricInsight, ...]
    evidence: tuple[EvidenceInsight, ...]

    def to_dict(self) -> dict:
        return {
            "lieProbability": self.lie_probability,
            "confidenceScore": self.confidence_score,
            "summary": self.summary,
            "cues": [
                {"label": c.label, "value": c.value, "risk": c.risk, "detail": c.detail}
                for c in self.cues
            ],
            "metrics": [
                {"label": m.label, "value": m.value, "hint": m.hint}
                for m in self.metrics
            ],
            "evidence": [
                {"quote": e.quote, "rationale": e.rationale}
                for e in self.evidence
            ],
        }


@dataclass(frozen=True)
class SignalProfile:
    """Lexical measurements of one transcript, before any copy is applied."""
    word_count: int
    sentence_count: int
    hedging_hits: int
    pressure_hits: int
    negation_hits: int
    hedging_signals: list[str] = field(default_factory=list)
    pressure_signals: list[str] = field(default_factory=list)
    conflicting_clauses: list[str] = field(default_factory=list)
    highlighted_sentences: list[str] = field(default_factory=list)

    @property
    def hedging_density(self) -> float:
        return self.hedging_hits / max(self.word_count, 1)

    @property
    def pressure_density(self) -> float:
        return self.pressure_hits / max(self.word_count, 1)

    @property
    def negation_density(self) -> float:
        return self.negation_hits / max(self.word_count, 1)

    @property
    def contradiction_count(self) -> int:
        return len(self.conflicting_clauses)

    def to_breakdown(self) -> dict:
        """Flat view of the measurements, reported as score_breakdown."""
        return {
            "word_count": self.word_count,
            "sentence_count": self.sentence_count,
            "hedging_hits": self.hedging_hits,
            "pressure_hits": self.pressure_hits,
            "negation_hits": self.negation_hits,
            "hedging_density": round(self.hedging_density, 4),
            "pressure_density": round(self.pressure_density, 4),
            "negation_density": round(self.negation_density, 4),
            "contradiction_count": self.contradiction_count,
            "highlighted_count": len(self.highlighted_sentences),
            "base_score": round(base_score(self), 3),
        }


# ============================================================
# KEYWORD TABLES (process-wide constants)
# ============================================================

HEDGING_KEYWORDS: tuple[str, ...] = (
    "maybe",
    "perhaps",
    "possibly",
    "might",
    "guess",
    "around",
    "roughly",
    "seems",
    "kind of",
    "sort of",
    "probably",
    "i think",
    "i believe",
    "could be",
)

PRESSURE_KEYWORDS: tuple[str, ...] = (
    "honestly",
    "trust me",
    "believe me",
    "truth",
    "swear",
    "definitely",
    "absolutely",
    "never",
    "always",
    "promise",
    "100%",
)

NEGATION_KEYWORDS: tuple[str, ...] = ("not", "didn't", "don't", "no", "never")

CONTRAST_JOINERS: tuple[str, ...] = ("but", "however", "yet", "though", "nevertheless")

DENIAL_MARKERS: tuple[str, ...] = ("didn't", "did", "never", "no")


# ASCII word boundaries: Hangul or other non-ASCII letters next to an
# English keyword do not block the match.
_BEFORE = r"(?<![A-Za-z0-9_])"
_AFTER = r"(?![A-Za-z0-9_])"


def _keyword_pattern(keyword: str) -> re.Pattern:
    # Lookarounds instead of \b so keywords ending in symbols ("100%") still
    # need a non-word neighbour on both sides.
    return re.compile(_BEFORE + re.escape(keyword) + _AFTER)


def _compile(keywords: tuple[str, ...]) -> tuple[tuple[str, re.Pattern], ...]:
    return tuple((kw, _keyword_pattern(kw)) for kw in keywords)


HEDGING_PATTERNS = _compile(HEDGING_KEYWORDS)
PRESSURE_PATTERNS = _compile(PRESSURE_KEYWORDS)
NEGATION_PATTERNS = _compile(NEGATION_KEYWORDS)
HIGHLIGHT_PATTERNS = HEDGING_PATTERNS + PRESSURE_PATTERNS

_JOINER_RE = re.compile(
    _BEFORE + "(?:" + "|".join(re.escape(j) for j in CONTRAST_JOINERS) + ")" + _AFTER
)
_DENIAL_RE = re.compile(
    _BEFORE + "(?:" + "|".join(re.escape(m) for m in DENIAL_MARKERS) + ")" + _AFTER
)
_SENTENCE_BOUNDARY_RE = re.compile(r"(?<=[.!?])\s+")


# ============================================================
# SCORING CONSTANTS
# ============================================================

BASE_SCORE = 42
HEDGING_WEIGHT = 520
PRESSURE_WEIGHT = 360
NEGATION_WEIGHT = 180
CONTRADICTION_WEIGHT = 4
LIE_PROBABILITY_BOUNDS = (5, 96)

CONFIDENCE_BASE = 58
COVERAGE_WEIGHT = 32
COVERAGE_SATURATION_WORDS = 320
STABILITY_WEIGHT = 120
CONFIDENCE_BOUNDS = (38, 94)

MAX_CONFLICTS = 3
MAX_EVIDENCE = 3
MAX_SIGNALS = 4


# ============================================================
# TOKENISATION / MATCHING
# ============================================================

def split_words(text: str) -> list[str]:
    return text.split()


def split_sentences(text: str) -> list[str]:
    """Split after ., ! or ? followed by whitespace. Terminators stay attached."""
    segments = _SENTENCE_BOUNDARY_RE.split(text)
    return [s.strip() for s in segments if s.strip()]


def count_hits(text: str, patterns: tuple[tuple[str, re.Pattern], ...]) -> int:
    return sum(len(regex.findall(text)) for _, regex in patterns)


def keyword_signals(
    text: str,
    patterns: tuple[tuple[str, re.Pattern], ...],
    limit: int = MAX_SIGNALS,
) -> list[str]:
    """Top keywords by hit count, formatted "keyword(count)". Ties keep table order."""
    counts = [(kw, len(regex.findall(text))) for kw, regex in patterns]
    ranked = sorted(
        (item for item in counts if item[1] > 0),
        key=lambda item: item[1],
        reverse=True,
    )
    return [f"{kw}({count})" for kw, count in ranked[:limit]]


def find_conflicting_clauses(sentences: list[str]) -> list[str]:
    conflicts = []
    for sentence in sentences:
        normalized = sentence.lower()
        if _JOINER_RE.search(normalized) and _DENIAL_RE.search(normalized):
            conflicts.append(sentence)
            if len(conflicts) == MAX_CONFLICTS:
                break
    return conflicts


def highlight_sentences(sentences: list[str]) -> list[str]:
    """Sentences with the most hedging + pressure hits, best first."""
    scored = [
        (sentence, count_hits(sentence.lower(), HIGHLIGHT_PATTERNS))
        for sentence in sentences
    ]
    ranked = sorted(
        (item for item in scored if item[1] > 0),
        key=lambda item: item[1],
        reverse=True,
    )
    return [sentence for sentence, _ in ranked[:MAX_EVIDENCE]]


# ============================================================
# NUMERIC HELPERS
# ============================================================

def round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def clamp(value: int, bounds: tuple[int, int]) -> int:
    low, high = bounds
    return max(low, min(high, value))


def format_percent(ratio: float) -> str:
    """0.04 -> "4.0%". Half-up on the exact binary value."""
    value = Decimal(ratio * 100).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)
    return f"{value}%"


def base_score(profile: SignalProfile) -> float:
    return (
        BASE_SCORE
        + profile.hedging_density * HEDGING_WEIGHT
        + profile.pressure_density * PRESSURE_WEIGHT
        + profile.negation_density * NEGATION_WEIGHT
        + profile.contradiction_count * CONTRADICTION_WEIGHT
    )


def lie_probability(profile: SignalProfile) -> int:
    return clamp(round_half_up(base_score(profile)), LIE_PROBABILITY_BOUNDS)


def confidence_score(profile: SignalProfile) -> int:
    """
    Longer transcripts earn trust up to the saturation point; a large gap
    between hedging and pressure densities costs trust.
    """
    coverage = min(1.0, profile.word_count / COVERAGE_SATURATION_WORDS)
    stability_penalty = abs(profile.hedging_density - profile.pressure_density) * STABILITY_WEIGHT
    raw = CONFIDENCE_BASE + coverage * COVERAGE_WEIGHT - stability_penalty
    return clamp(round_half_up(raw), CONFIDENCE_BOUNDS)


# ============================================================
# RISK TIERS
# ============================================================

def hedging_risk(density: float) -> str:
    return RISK_ELEVATED if density > 0.035 else RISK_BASELINE


def pressure_risk(density: float) -> str:
    if density > 0.03:
        return RISK_CRITICAL
    if density > 0.015:
        return RISK_ELEVATED
    return RISK_BASELINE


def negation_risk(density: float) -> str:
    return RISK_ELEVATED if density > 0.025 else RISK_BASELINE


def conflict_risk(count: int) -> str:
    return RISK_CRITICAL if count > 1 else RISK_ELEVATED


# ============================================================
# THE ENGINE
# ============================================================

class HeuristicEngine:
    """
    Deterministic local profiler. Zero API cost.

    Instantiated once as a singleton. Holds references to the
    module-level keyword tables and nothing else.
    """

    def measure(self, text: str) -> SignalProfile:
        """Run every lexical measurement on a transcript."""
        text = (text or "").strip()
        lower = text.lower()
        words = split_words(lower)
        sentences = split_sentences(text)

        return SignalProfile(
            word_count=len(words),
            sentence_count=len(sentences),
            hedging_hits=count_hits(lower, HEDGING_PATTERNS),
            pressure_hits=count_hits(lower, PRESSURE_PATTERNS),
            negation_hits=count_hits(lower, NEGATION_PATTERNS),
            hedging_signals=keyword_signals(lower, HEDGING_PATTERNS),
            pressure_signals=keyword_signals(lower, PRESSURE_PATTERNS),
            conflicting_clauses=find_conflicting_clauses(sentences),
            highlighted_sentences=highlight_sentences(sentences),
        )

    def analyze(self, text: str, locale: Optional[str] = None) -> AnalysisResult:
        """
        Evaluate a transcript.

        Args:
            text: Extracted, control-character-free transcript text.
            locale: "ko" | "en". Anything else falls back to "ko".

        Returns:
            A fully populated AnalysisResult.
        """
        return self.build_result(self.measure(text), locale)

    def build_result(
        self, profile: SignalProfile, locale: Optional[str] = None,
    ) -> AnalysisResult:
        copy = get_copy(locale)
        score = lie_probability(profile)

        return AnalysisResult(
            lie_probability=score,
            confidence_score=confidence_score(profile),
            summary=copy.summary(
                format_percent(profile.hedging_density),
                format_percent(profile.pressure_density),
                score,
            ),
            cues=tuple(self._build_cues(profile, copy)),
            metrics=tuple(self._build_metrics(profile, copy)),
            evidence=tuple(self._build_evidence(profile, copy)),
        )

    def _build_cues(self, profile: SignalProfile, copy: CopyTable) -> list[CueInsight]:
        cues = [
            CueInsight(
                label=copy.hedging_label,
                value=format_percent(profile.hedging_density),
                risk=hedging_risk(profile.hedging_density),
                detail=copy.hedging_signals(profile.hedging_signals),
            ),
            CueInsight(
                label=copy.pressure_label,
                value=format_percent(profile.pressure_density),
                risk=pressure_risk(profile.pressure_density),
                detail=copy.pressure_signals(profile.pressure_signals),
            ),
            CueInsight(
                label=copy.negation_label,
                value=format_percent(profile.negation_density),
                risk=negation_risk(profile.negation_density),
                detail=copy.negation_detail,
            ),
        ]

        if profile.contradiction_count > 0:
            cues.append(CueInsight(
                label=copy.conflict_label,
                value=str(profile.contradiction_count),
                risk=conflict_risk(profile.contradiction_count),
                detail=copy.conflict_detail,
            ))

        return cues

    def _build_metrics(self, profile: SignalProfile, copy: CopyTable) -> list[MetricInsight]:
        coverage = round_half_up(
            len(profile.highlighted_sentences) / max(profile.sentence_count, 1) * 100
        )
        return [
            MetricInsight(
                label=copy.metrics.word_count_label,
                value=f"{profile.word_count:,}",
                hint=copy.metrics.word_count_hint,
            ),
            MetricInsight(
                label=copy.metrics.coverage_label,
                value=f"{coverage}%",
                hint=copy.metrics.coverage_hint,
            ),
            MetricInsight(
                label=copy.metrics.negation_label,
                value=format_percent(profile.negation_density),
                hint=copy.metrics.negation_hint,
            ),
        ]

    def _build_evidence(self, profile: SignalProfile, copy: CopyTable) -> list[EvidenceInsight]:
        evidence_copy = copy.evidence

        if not profile.highlighted_sentences:
            return [EvidenceInsight(
                quote=evidence_copy.no_data_quote,
                rationale=evidence_copy.no_data_detail,
            )]

        evidence = []
        for index, sentence in enumerate(profile.highlighted_sentences):
            parts = []
            # Signal lists are transcript-wide; the n-th quote is paired with
            # the n-th strongest signal of each category.
            if index < len(profile.hedging_signals):
                parts.append(f"{evidence_copy.hedge_prefix}: {profile.hedging_signals[index]}")
            if index < len(profile.pressure_signals):
                parts.append(f"{evidence_copy.pressure_prefix}: {profile.pressure_signals[index]}")
            evidence.append(EvidenceInsight(
                quote=sentence,
                rationale=" | ".join(parts) if parts else evidence_copy.default_detail,
            ))
        return evidence

    def get_keywords(self) -> dict[str, list[str]]:
        """Keyword inventory, exposed by GET /keywords."""
        return {
            "hedging": list(HEDGING_KEYWORDS),
            "pressure": list(PRESSURE_KEYWORDS),
            "negation": list(NEGATION_KEYWORDS),
            "contrast_joiners": list(CONTRAST_JOINERS),
            "denial_markers": list(DENIAL_MARKERS),
        }


# ============================================================
# SINGLETON — instantiated once, never mutated
# ============================================================

heuristic_engine = HeuristicEngine()


def analyze(text: str, locale: Optional[str] = None) -> AnalysisResult:
    """Module-level shortcut for heuristic_engine.analyze()."""
    return heuristic_engine.analyze(text, locale)
