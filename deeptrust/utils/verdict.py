"""Maps a scalar AI-likelihood score to a verdict, signals and a summary."""
from deeptrust.dtos.analysis_dto import (
    AnalysisResultDTO,
    ProviderVerdictDTO,
    Severity,
    SignalDTO,
    Verdict,
)

_STRONG_THRESHOLD = 0.7
_LEANING_THRESHOLD = 0.55
_DETECTED_THRESHOLD = 0.5


def _clamp(score: float) -> float:
    return min(max(float(score), 0.0), 1.0)


def classify(ai_score: float) -> Verdict:
    """Bucket an AI-likelihood score in [0, 1] into one of five verdicts.

    AI thresholds are checked before the mirrored REAL thresholds, so threshold
    order is the only tie-break.
    """
    ai = _clamp(ai_score)
    real = 1.0 - ai

    if ai > _STRONG_THRESHOLD:
        return Verdict.AI_GENERATED
    if ai > _LEANING_THRESHOLD:
        return Verdict.LIKELY_AI
    if real > _STRONG_THRESHOLD:
        return Verdict.REAL
    if real > _LEANING_THRESHOLD:
        return Verdict.LIKELY_REAL
    return Verdict.UNCERTAIN


def severity_for(score: float) -> Severity:
    if score > _STRONG_THRESHOLD:
        return Severity.HIGH
    if score > _DETECTED_THRESHOLD:
        return Severity.MEDIUM
    return Severity.LOW


def confidence_percent(ai_score: float) -> float:
    """Confidence in the winning side, as a percentage with one decimal."""
    ai = _clamp(ai_score)
    return round(max(ai, 1.0 - ai) * 100, 1)


def describe(verdict: Verdict) -> str:
    return verdict.value.replace("_", " ").lower()


def build_result(outcome: ProviderVerdictDTO) -> AnalysisResultDTO:
    """Turn a provider outcome into the user-facing analysis result.

    The two score-derived signals always come first, followed by whatever
    extra signals the provider reported.
    """
    ai = _clamp(outcome.ai_score)
    real = 1.0 - ai
    verdict = classify(ai)
    confidence = confidence_percent(ai)

    signals = [
        SignalDTO(
            name="AI Pattern Detection",
            detected=ai > _DETECTED_THRESHOLD,
            severity=severity_for(ai),
            description=(
                f"{outcome.model_used} detected {ai * 100:.1f}% "
                "AI-generated characteristics"
            ),
        ),
        SignalDTO(
            name="Authenticity Score",
            detected=real > _DETECTED_THRESHOLD,
            severity=severity_for(real),
            description=f"{real * 100:.1f}% authenticity indicators detected",
        ),
        *outcome.signals,
    ]

    summary = outcome.summary or (
        f"Based on multimodal AI analysis, this image is {describe(verdict)}. "
        f"Confidence: {confidence:.1f}%"
    )

    return AnalysisResultDTO(
        confidence=confidence,
        verdict=verdict,
        signals=signals,
        summary=summary,
    )
