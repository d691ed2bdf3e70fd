# tests/unit/decision/test_unit_orchestrator.py — v1
"""Tests for decision/orchestrator.py — combined recommendation."""

from __future__ import annotations

import pytest

from docintel.decision.models import DocumentWarning
from docintel.decision.orchestrator import (
    EXACT_DUPLICATE_SUGGESTION,
    SIMILAR_DUPLICATE_SUGGESTION,
    decide,
    has_high_confidence_duplicate,
)
from docintel.duplicates.models import (
    DuplicateDetectionResult,
    DuplicateMatch,
    SimilarityResult,
    TemporalFactor,
)
from docintel.relevance.models import RelevanceResult


def _make_relevance(score: float = 0.9, level: str = "none", **kwargs) -> RelevanceResult:
    defaults = dict(
        overall_score=score,
        warning_level=level,
        message=f"relevance {level}",
        context_match=True,
    )
    defaults.update(kwargs)
    return RelevanceResult(**defaults)


def _make_match(candidate, overall: float, recurring: bool = False) -> DuplicateMatch:
    return DuplicateMatch.from_candidate(
        candidate,
        SimilarityResult(
            overall=overall,
            temporal=TemporalFactor(is_recurring_bill_likely=recurring),
            matched_by="visual",
        ),
    )


def _make_duplicates(exact=(), potential=(), reasoning=None) -> DuplicateDetectionResult:
    return DuplicateDetectionResult(
        has_duplicates=bool(exact or potential),
        exact=list(exact),
        potential=list(potential),
        reasoning=reasoning or ["No duplicates detected"],
    )


def _make_flag(severity: str, type: str = "security", suggestion: str | None = None) -> DocumentWarning:
    return DocumentWarning(type=type, severity=severity, message=f"{severity} flag", suggestion=suggestion)


class TestHighConfidence:
    def test_above_threshold(self, make_candidate):
        dups = _make_duplicates(potential=[_make_match(make_candidate(), 0.95)])
        assert has_high_confidence_duplicate(dups)

    def test_recurring_excluded(self, make_candidate):
        dups = _make_duplicates(potential=[_make_match(make_candidate(), 0.95, recurring=True)])
        assert not has_high_confidence_duplicate(dups)

    def test_threshold_argument(self, make_candidate):
        dups = _make_duplicates(potential=[_make_match(make_candidate(), 0.85)])
        assert not has_high_confidence_duplicate(dups)
        assert has_high_confidence_duplicate(dups, threshold=0.8)


class TestRecommendation:
    def test_exact_duplicate_rejects_despite_relevance(self, make_candidate):
        exact = _make_match(make_candidate(checksum="abc123"), 1.0)
        dups = _make_duplicates(
            exact=[exact], reasoning=["Found 1 identical document(s) with same checksum"]
        )
        decision = decide(dups, _make_relevance(0.95))
        assert decision.recommendation == "reject"
        assert decision.reasoning[0] == "Exact duplicate of an existing document"
        assert decision.warnings[0].type == "duplicate"
        assert decision.warnings[0].severity == "error"
        assert EXACT_DUPLICATE_SUGGESTION in decision.suggestions
        assert decision.overall_score == pytest.approx(0.5 + 0.95 * 0.4 - 0.6)

    def test_irrelevant_rejects(self):
        decision = decide(_make_duplicates(), _make_relevance(0.2, "error"))
        assert decision.recommendation == "reject"
        assert decision.reasoning[0] == "Document is not relevant for this upload context"

    def test_error_flag_rejects(self):
        decision = decide(
            _make_duplicates(), _make_relevance(), security_flags=[_make_flag("error")]
        )
        assert decision.recommendation == "reject"
        assert decision.reasoning[0] == "1 blocking issue(s) found"
        assert len(decision.errors) == 1

    def test_two_warnings_warn(self):
        flags = [_make_flag("warning"), _make_flag("warning")]
        decision = decide(_make_duplicates(), _make_relevance(), security_flags=flags)
        assert decision.recommendation == "warn"
        assert decision.reasoning[0] == "2 warnings raised"

    def test_single_warning_accepts(self):
        decision = decide(
            _make_duplicates(), _make_relevance(), security_flags=[_make_flag("warning")]
        )
        assert decision.recommendation == "accept"

    def test_low_score_warns(self, make_candidate):
        dups = _make_duplicates(potential=[_make_match(make_candidate(), 0.95)])
        decision = decide(dups, _make_relevance(0.0, "info"), content_confidence=0.0)
        assert decision.overall_score == pytest.approx(0.2)
        assert decision.recommendation == "warn"
        assert decision.reasoning[0] == "Low overall score (0.20)"

    def test_high_confidence_duplicate_warns(self, make_candidate):
        dups = _make_duplicates(
            potential=[_make_match(make_candidate(), 0.95)],
            reasoning=["Found 1 very similar document(s) - please verify this is not a duplicate"],
        )
        decision = decide(dups, _make_relevance())
        assert decision.recommendation == "warn"
        assert decision.reasoning[0] == "High-confidence potential duplicate"
        assert decision.warnings[0].severity == "warning"
        assert decision.warnings[0].message == dups.reasoning[0]

    def test_questionable_relevance_warns(self):
        decision = decide(_make_duplicates(), _make_relevance(0.5, "warning"))
        assert decision.recommendation == "warn"
        assert decision.reasoning[0] == "Relevance for this context is questionable"

    def test_clean_accepts(self):
        decision = decide(_make_duplicates(), _make_relevance(), content_confidence=0.9)
        assert decision.recommendation == "accept"
        assert decision.reasoning == [
            "No blocking issues found", "No duplicates detected", "relevance none",
        ]
        assert decision.warnings == []

    def test_recurring_potential_is_info(self, make_candidate):
        dups = _make_duplicates(potential=[_make_match(make_candidate(), 0.7, recurring=True)])
        decision = decide(dups, _make_relevance())
        assert decision.warnings[0].severity == "info"
        assert decision.recommendation == "accept"
        assert SIMILAR_DUPLICATE_SUGGESTION in decision.suggestions


class TestScore:
    def test_clamped_to_one(self):
        decision = decide(_make_duplicates(), _make_relevance(0.9), content_confidence=0.8)
        assert decision.overall_score == 1.0

    def test_formula(self):
        decision = decide(_make_duplicates(), _make_relevance(0.5, "warning"), content_confidence=0.5)
        assert decision.overall_score == pytest.approx(0.85)

    def test_without_content_confidence(self):
        decision = decide(_make_duplicates(), _make_relevance(0.5, "warning"))
        assert decision.overall_score == pytest.approx(0.7)

    def test_minor_duplicate_penalty(self, make_candidate):
        dups = _make_duplicates(potential=[_make_match(make_candidate(), 0.7)])
        decision = decide(dups, _make_relevance(0.5, "warning"))
        assert decision.overall_score == pytest.approx(0.6)


class TestWarningsAndSuggestions:
    def test_warning_order(self, make_candidate):
        dups = _make_duplicates(potential=[_make_match(make_candidate(), 0.7)])
        decision = decide(
            dups,
            _make_relevance(0.5, "warning"),
            security_flags=[_make_flag("info")],
            quality_flags=[_make_flag("warning", type="quality")],
        )
        assert [w.type for w in decision.warnings] == ["quality", "duplicate", "relevance", "security"]

    def test_suggestions_deduplicated_in_order(self, make_candidate):
        dups = _make_duplicates(potential=[_make_match(make_candidate(), 0.7)])
        decision = decide(
            dups,
            _make_relevance(suggestions=["Check the context", "Retake the photo"]),
            security_flags=[_make_flag("info", suggestion="Retake the photo")],
            quality_flags=[_make_flag("warning", type="quality", suggestion="Retake the photo")],
        )
        assert decision.suggestions == [
            "Retake the photo", SIMILAR_DUPLICATE_SUGGESTION, "Check the context",
        ]

    def test_no_relevance_warning_when_none(self):
        decision = decide(_make_duplicates(), _make_relevance())
        assert not any(w.type == "relevance" for w in decision.warnings)
