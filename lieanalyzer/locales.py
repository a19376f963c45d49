"""
Locale Copy Tables

Every string the heuristic engine puts into a result comes from here.
Two locales are supported: Korean ("ko", the default) and English ("en").

Each table is a frozen dataclass, so a locale cannot be constructed with a
missing field. check_copy_tables() runs at import and additionally rejects
absent locales and blank strings, so a broken table fails at startup rather
than inside a request.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Optional

SUPPORTED_LOCALES: tuple[str, ...] = ("ko", "en")
DEFAULT_LOCALE = "ko"


class LocaleConfigError(RuntimeError):
    """Raised when a copy table is missing or incomplete."""


# ============================================================
# COPY TABLE STRUCTURE
# ============================================================

@dataclass(frozen=True)
class MetricCopy:
    word_count_label: str
    word_count_hint: str
    coverage_label: str
    coverage_hint: str
    negation_label: str
    negation_hint: str


@dataclass(frozen=True)
class EvidenceCopy:
    no_data_quote: str
    no_data_detail: str
    hedge_prefix: str
    pressure_prefix: str
    default_detail: str


@dataclass(frozen=True)
class CopyTable:
    """All locale-dependent text used by the engine."""
    # Placeholders: {hedging}, {pressure} (percent strings), {score} (int)
    summary_template: str
    hedging_label: str
    # Placeholder: {signals}
    hedging_detail: str
    hedging_detail_none: str
    pressure_label: str
    pressure_detail: str
    pressure_detail_none: str
    negation_label: str
    negation_detail: str
    conflict_label: str
    conflict_detail: str
    metrics: MetricCopy
    evidence: EvidenceCopy

    def summary(self, hedging: str, pressure: str, score: int) -> str:
        return self.summary_template.format(
            hedging=hedging, pressure=pressure, score=score,
        )

    def hedging_signals(self, signals: list[str]) -> str:
        if not signals:
            return self.hedging_detail_none
        return self.hedging_detail.format(signals=", ".join(signals))

    def pressure_signals(self, signals: list[str]) -> str:
        if not signals:
            return self.pressure_detail_none
        return self.pressure_detail.format(signals=", ".join(signals))


# ============================================================
# TABLES
# ============================================================

COPY_TABLES: dict[str, CopyTable] = {
    "ko": CopyTable(
        summary_template=(
            "휴리스틱 오프라인 분석 결과: 헤징 {hedging}, 압박 {pressure} "
            "→ 추정 위험도 {score}%."
        ),
        hedging_label="헤징 밀도",
        hedging_detail="불확실성 지표 탐지: {signals}",
        hedging_detail_none="뚜렷한 헤징 표현은 없으며 다른 지표가 위험도를 구성합니다.",
        pressure_label="압박 언어",
        pressure_detail="보증성 어휘 관측: {signals}",
        pressure_detail_none="직접적인 압박 언어는 낮은 수준으로 관측됩니다.",
        negation_label="부정 진술 빈도",
        negation_detail="연속된 부정 진술은 방어적 진술 패턴과 상관 관계가 있습니다.",
        conflict_label="상충 구문",
        conflict_detail="상반된 서술이 연속적으로 등장해 맥락 변동성이 상승했습니다.",
        metrics=MetricCopy(
            word_count_label="단어 수",
            word_count_hint="샘플 분량은 점수 안정성에 직접 영향을 줍니다.",
            coverage_label="문장 플래그 비율",
            coverage_hint="위험 지표에 반응한 문장의 비율입니다.",
            negation_label="부정 빈도",
            negation_hint="집중된 부정 진술은 내러티브 조정 전조일 수 있습니다.",
        ),
        evidence=EvidenceCopy(
            no_data_quote="증거 인용을 생성하기에 충분한 문장이 없습니다.",
            no_data_detail="추가 발화를 확보한 뒤 재분석하는 것이 좋습니다.",
            hedge_prefix="헤징 지표",
            pressure_prefix="압박 지표",
            default_detail="휴리스틱 점수가 높은 문장.",
        ),
    ),
    "en": CopyTable(
        summary_template=(
            "Heuristic offline profile: hedging {hedging}, pressure {pressure} "
            "→ deception score {score}%."
        ),
        hedging_label="Hedging Density",
        hedging_detail="Uncertainty markers detected: {signals}",
        hedging_detail_none="Minimal hedging observed; other cues drive the score.",
        pressure_label="Pressure Language",
        pressure_detail="Reassurance pressure phrases: {signals}",
        pressure_detail_none="Low use of reassurance language detected.",
        negation_label="Negation Burst",
        negation_detail="Frequent denials correlate with defensive narrative posture.",
        conflict_label="Conflicting Clauses",
        conflict_detail="Sequential reversals flagged for contextual volatility.",
        metrics=MetricCopy(
            word_count_label="Word Count",
            word_count_hint="Sample volume directly impacts scoring stability.",
            coverage_label="Sentence Coverage",
            coverage_hint="Share of the transcript triggering risk markers.",
            negation_label="Negation Frequency",
            negation_hint="Dense denial clusters often precede narrative adjustments.",
        ),
        evidence=EvidenceCopy(
            no_data_quote="Not enough material to generate defensible evidence quotes.",
            no_data_detail="Gather more utterances and rerun the profiler.",
            hedge_prefix="Hedge cue",
            pressure_prefix="Pressure cue",
            default_detail="High scoring sentence from heuristic engine.",
        ),
    ),
}


# ============================================================
# VALIDATION / LOOKUP
# ============================================================

def _blank_fields(obj, prefix: str = "") -> list[str]:
    """Return dotted names of empty string fields, recursing into sub-tables."""
    blank = []
    for f in fields(obj):
        value = getattr(obj, f.name)
        name = f"{prefix}{f.name}"
        if isinstance(value, str):
            if not value.strip():
                blank.append(name)
        else:
            blank.extend(_blank_fields(value, prefix=f"{name}."))
    return blank


def check_copy_tables(tables: Optional[dict[str, CopyTable]] = None) -> None:
    """
    Verify every supported locale has a complete copy table.

    Raises:
        LocaleConfigError: a locale is missing, or a field is blank.
    """
    tables = COPY_TABLES if tables is None else tables

    missing = [loc for loc in SUPPORTED_LOCALES if loc not in tables]
    if missing:
        raise LocaleConfigError(f"Missing copy tables for: {', '.join(missing)}")

    for locale in SUPPORTED_LOCALES:
        blank = _blank_fields(tables[locale])
        if blank:
            raise LocaleConfigError(
                f"Copy table '{locale}' has blank fields: {', '.join(blank)}"
            )


def resolve_locale(locale: Optional[str]) -> str:
    """Map any value to a supported locale. Unknown values get the default."""
    if isinstance(locale, str):
        normalized = locale.strip().lower()
        if normalized in SUPPORTED_LOCALES:
            return normalized
    return DEFAULT_LOCALE


def get_copy(locale: Optional[str]) -> CopyTable:
    return COPY_TABLES[resolve_locale(locale)]


check_copy_tables()
