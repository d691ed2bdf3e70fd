# src/decision/orchestrator.py — v1
"""Decision orchestrator: fold duplicate, relevance, quality and security
signals into one score and an accept / warn / reject recommendation.

Rules, first match wins:
  1. exact duplicate                        → reject
  2. relevance warning level "error"        → reject
  3. any error-severity flag                → reject
  4. >1 warning-severity flag or score<0.4  → warn
  5. high-confidence potential duplicate    → warn
  6. relevance warning level "warning"      → warn
  7. otherwise                              → accept
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence

from docintel.core.similarity import clamp
from docintel.decision.models import DocumentWarning, IntelligenceDecision, Recommendation
from docintel.duplicates.models import DuplicateDetectionResult
from docintel.relevance.models import RelevanceResult

logger = logging.getLogger(__name__)

DEFAULT_HIGH_CONFIDENCE = 0.9

EXACT_DUPLICATE_SUGGESTION = "This appears to be an exact duplicate of an existing document"
SIMILAR_DUPLICATE_SUGGESTION = "Similar documents found - verify this is not a duplicate"


def has_high_confidence_duplicate(
    duplicates: DuplicateDetectionResult, threshold: float = DEFAULT_HIGH_CONFIDENCE
) -> bool:
    """Any potential match >= threshold that is not a likely recurring bill."""
    return any(
        m.similarity.overall >= threshold
        and not m.similarity.temporal.is_recurring_bill_likely
        for m in duplicates.potential
    )


def decide(
    duplicates: DuplicateDetectionResult,
    relevance: RelevanceResult,
    security_flags: Sequence[DocumentWarning] = (),
    content_confidence: float | None = None,
    quality_flags: Sequence[DocumentWarning] = (),
    high_confidence: float = DEFAULT_HIGH_CONFIDENCE,
) -> IntelligenceDecision:
    """Combine sub-results into an IntelligenceDecision.

    Args:
        duplicates: Duplicate detection result.
        relevance: Relevance scoring result.
        security_flags: Externally supplied security warnings.
        content_confidence: Extraction confidence; None leaves it out of the score.
        quality_flags: Content quality warnings (low confidence, little text).
        high_confidence: Potential-duplicate score treated as high confidence.

    Returns:
        IntelligenceDecision with de-duplicated suggestions in first-seen order.
    """
    exact = bool(duplicates.exact)
    high = has_high_confidence_duplicate(duplicates, high_confidence)

    duplicate_warnings = _duplicate_warnings(duplicates, exact, high)
    relevance_warnings = _relevance_warnings(relevance)
    warnings = [
        *quality_flags, *duplicate_warnings, *relevance_warnings, *security_flags,
    ]

    score = _overall_score(duplicates, relevance, content_confidence, exact, high)
    recommendation, reason = _recommend(score, exact, high, relevance, warnings)

    suggestions = _merge_suggestions(
        (w.suggestion for w in quality_flags),
        (w.suggestion for w in duplicate_warnings),
        relevance.suggestions,
        (w.suggestion for w in security_flags),
    )

    logger.info(
        "Decision: %s (score=%.3f, %d warnings) - %s",
        recommendation, score, len(warnings), reason,
    )
    return IntelligenceDecision(
        overall_score=score,
        recommendation=recommendation,
        warnings=warnings,
        suggestions=suggestions,
        reasoning=[reason, *duplicates.reasoning, relevance.message],
    )


def _duplicate_warnings(
    duplicates: DuplicateDetectionResult, exact: bool, high: bool
) -> list[DocumentWarning]:
    if not duplicates.has_duplicates:
        return []
    severity = "error" if exact else "warning" if high else "info"
    return [DocumentWarning(
        type="duplicate",
        severity=severity,
        message="; ".join(duplicates.reasoning),
        details={
            "match_count": len(duplicates.exact) + len(duplicates.potential),
            "exact_match": exact,
            "high_confidence": high,
        },
        suggestion=EXACT_DUPLICATE_SUGGESTION if exact else SIMILAR_DUPLICATE_SUGGESTION,
    )]


def _relevance_warnings(relevance: RelevanceResult) -> list[DocumentWarning]:
    if relevance.warning_level == "none":
        return []
    return [DocumentWarning(
        type="relevance",
        severity=relevance.warning_level,
        message=relevance.message,
        details={
            "score": relevance.overall_score,
            "context_match": relevance.context_match,
            "business_relevance": relevance.business_relevance,
        },
    )]


def _overall_score(
    duplicates: DuplicateDetectionResult,
    relevance: RelevanceResult,
    content_confidence: float | None,
    exact: bool,
    high: bool,
) -> float:
    score = 0.5
    if content_confidence is not None:
        score += content_confidence * 0.3
    score += relevance.overall_score * 0.4
    if exact:
        score -= 0.6
    elif high:
        score -= 0.3
    elif duplicates.has_duplicates:
        score -= 0.1
    return clamp(score)


def _recommend(
    score: float,
    exact: bool,
    high: bool,
    relevance: RelevanceResult,
    warnings: list[DocumentWarning],
) -> tuple[Recommendation, str]:
    if exact:
        return "reject", "Exact duplicate of an existing document"
    if relevance.warning_level == "error":
        return "reject", "Document is not relevant for this upload context"

    errors = sum(1 for w in warnings if w.severity == "error")
    if errors:
        return "reject", f"{errors} blocking issue(s) found"

    cautions = sum(1 for w in warnings if w.severity == "warning")
    if cautions > 1:
        return "warn", f"{cautions} warnings raised"
    if score < 0.4:
        return "warn", f"Low overall score ({score:.2f})"
    if high:
        return "warn", "High-confidence potential duplicate"
    if relevance.warning_level == "warning":
        return "warn", "Relevance for this context is questionable"
    return "accept", "No blocking issues found"


def _merge_suggestions(*groups: Iterable[str | None]) -> list[str]:
    merged: dict[str, None] = {}
    for group in groups:
        for suggestion in group:
            if suggestion:
                merged.setdefault(suggestion, None)
    return list(merged)
