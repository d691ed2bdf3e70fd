# tests/unit/relevance/test_unit_scorer.py — v1
"""Tests for relevance/scorer.py — context relevance scoring."""

from __future__ import annotations

import logging

import pytest

from docintel.config.settings import Settings
from docintel.core.models import BusinessEntities, ContentAnalysis, FileInfo, VendorEntity
from docintel.extraction.content_analyzer import analyze_content
from docintel.relevance.models import RelevanceRule, ScoringOptions
from docintel.relevance.scorer import RelevanceScorer, warning_level_for


def _make_scorer(rules, **overrides) -> RelevanceScorer:
    return RelevanceScorer(rules, Settings(_env_file=None, **overrides))


def _make_file(name: str = "notes.txt", mime: str = "text/plain", size: int = 0) -> FileInfo:
    return FileInfo(original_name=name, mime_type=mime, size=size)


class TestWarningLevel:
    @pytest.mark.parametrize(
        ("score", "level"),
        [(1.0, "none"), (0.8, "none"), (0.79, "info"), (0.6, "info"),
         (0.59, "warning"), (0.4, "warning"), (0.39, "error"), (0.0, "error")],
    )
    def test_bands(self, score, level):
        assert warning_level_for(score)[0] == level

    def test_error_message(self):
        _, message = warning_level_for(0.1)
        assert message.startswith("Document appears inappropriate for this context")


class TestScore:
    def test_good_receipt(self, rules, receipt_text, receipt_file_info):
        content = analyze_content(receipt_text, rules)
        result = _make_scorer(rules).score(content, receipt_file_info, "expense_receipt")
        assert result.context_match
        assert result.overall_score >= 0.6
        assert result.warning_level in ("none", "info")
        assert 0.0 <= result.business_relevance <= 1.0
        assert 0.0 <= result.technical_quality <= 1.0

    def test_receipt_missing_amount_and_date(self, rules, receipt_file_info):
        content = ContentAnalysis(
            extracted_text="Acme Services LLC thanks you",
            entities=BusinessEntities(vendors=[VendorEntity(name="Acme Services LLC", confidence=0.8)]),
        )
        result = _make_scorer(rules).score(content, receipt_file_info, "expense_receipt")
        assert not result.context_match
        missing = [i.description for i in result.indicators if i.factor == "missing_required"]
        assert missing == ["Missing required element: amount", "Missing required element: date"]
        assert (
            "The document appears to be missing key information required for this context."
            in result.suggestions
        )

    def test_empty_generic_document_is_error(self, rules):
        result = _make_scorer(rules).score(ContentAnalysis(), _make_file(), "generic_business")
        assert result.overall_score == 0.0
        assert result.warning_level == "error"
        assert not result.context_match
        assert "Ensure the document is appropriate for generic business uploads." in result.suggestions

    def test_score_bounded(self, rules):
        content = ContentAnalysis(extracted_text="selfie vacation family pet party " * 5)
        result = _make_scorer(rules).score(
            content, _make_file("selfie_vacation.jpg", "image/jpeg", 5), "contract"
        )
        assert 0.0 <= result.overall_score <= 1.0
        assert all(-1.0 <= i.score <= 1.0 for i in result.indicators)

    def test_unknown_context(self, rules):
        with pytest.raises(KeyError):
            _make_scorer(rules).score(ContentAnalysis(), _make_file(), "bogus")  # type: ignore[arg-type]

    def test_deterministic(self, rules, receipt_text, receipt_file_info):
        content = analyze_content(receipt_text, rules)
        scorer = _make_scorer(rules)
        first = scorer.score(content, receipt_file_info, "invoice")
        second = scorer.score(content, receipt_file_info, "invoice")
        assert first.model_dump() == second.model_dump()


class TestFileFactors:
    def test_small_file(self, rules):
        result = _make_scorer(rules).score(ContentAnalysis(), _make_file(size=100), "generic_business")
        sizes = [i for i in result.indicators if i.factor == "file_size"]
        assert sizes[0].score == pytest.approx(-0.3)

    def test_large_file(self, rules):
        result = _make_scorer(rules, large_file_mb=1).score(
            ContentAnalysis(), _make_file(size=2 * 1024 * 1024), "generic_business"
        )
        sizes = [i for i in result.indicators if i.factor == "file_size"]
        assert sizes[0].score == pytest.approx(-0.1)

    def test_non_preferred_type(self, rules):
        result = _make_scorer(rules).score(
            ContentAnalysis(), _make_file("card.pdf", "application/pdf", 20_000), "business_card"
        )
        file_type = [i for i in result.indicators if i.factor == "file_type"][0]
        assert file_type.type == "negative"

    def test_personal_filename(self, rules):
        result = _make_scorer(rules).score(
            ContentAnalysis(), _make_file("family_selfie.png", "image/png", 20_000), "business_card"
        )
        name = [i for i in result.indicators if i.factor == "filename"][0]
        assert name.score == pytest.approx(-0.3)


class TestStrictMode:
    def test_strict_penalises_context_mismatch(self, rules, receipt_text, receipt_file_info):
        content = analyze_content(receipt_text, rules)
        lenient = _make_scorer(rules).score(content, receipt_file_info, "contract")
        strict = _make_scorer(rules).score(
            content, receipt_file_info, "contract", ScoringOptions(strict=True)
        )
        assert not lenient.context_match
        assert strict.overall_score == pytest.approx(lenient.overall_score - 0.2)

    def test_settings_default_used(self, rules, receipt_text, receipt_file_info):
        content = analyze_content(receipt_text, rules)
        from_settings = _make_scorer(rules, strict_relevance=True).score(
            content, receipt_file_info, "contract"
        )
        from_options = _make_scorer(rules).score(
            content, receipt_file_info, "contract", ScoringOptions(strict=True)
        )
        assert from_settings.overall_score == pytest.approx(from_options.overall_score)

    def test_options_override_settings(self, rules, receipt_text, receipt_file_info):
        content = analyze_content(receipt_text, rules)
        lenient = _make_scorer(rules).score(content, receipt_file_info, "contract")
        overridden = _make_scorer(rules, strict_relevance=True).score(
            content, receipt_file_info, "contract", ScoringOptions(strict=False)
        )
        assert overridden.overall_score == pytest.approx(lenient.overall_score)


class TestCustomRules:
    def _rule(self, condition, **kwargs) -> RelevanceRule:
        defaults = dict(name="rule", condition=condition, score=0.5, message="Custom rule fired")
        defaults.update(kwargs)
        return RelevanceRule(**defaults)

    def test_firing_rule_adds_indicator(self, rules):
        rule = self._rule(lambda content, file_info: True)
        result = _make_scorer(rules).score(
            ContentAnalysis(), _make_file(), "generic_business", ScoringOptions(custom_rules=[rule])
        )
        custom = [i for i in result.indicators if i.factor == "custom_rule"]
        assert len(custom) == 1
        assert custom[0].score == 0.5
        assert custom[0].description == "Custom rule fired"
        assert result.rule_outcomes[0].fired

    def test_not_fired(self, rules):
        rule = self._rule(lambda content, file_info: False)
        result = _make_scorer(rules).score(
            ContentAnalysis(), _make_file(), "generic_business", ScoringOptions(custom_rules=[rule])
        )
        assert not any(i.factor == "custom_rule" for i in result.indicators)
        assert result.rule_outcomes[0].ok
        assert not result.rule_outcomes[0].fired

    def test_raising_rule_is_ignored(self, rules, caplog):
        def boom(content, file_info):
            raise ValueError("bad rule")

        rule = self._rule(boom, name="exploding")
        scorer = _make_scorer(rules)
        baseline = scorer.score(ContentAnalysis(), _make_file(), "generic_business")
        with caplog.at_level(logging.WARNING, logger="docintel.relevance.scorer"):
            result = scorer.score(
                ContentAnalysis(), _make_file(), "generic_business",
                ScoringOptions(custom_rules=[rule]),
            )
        outcome = result.rule_outcomes[0]
        assert not outcome.ok
        assert "ValueError" in outcome.error
        assert result.overall_score == baseline.overall_score
        assert "exploding" in caplog.text

    def test_rule_scoped_to_other_context(self, rules):
        rule = self._rule(lambda content, file_info: True, contexts=["invoice"])
        result = _make_scorer(rules).score(
            ContentAnalysis(), _make_file(), "generic_business", ScoringOptions(custom_rules=[rule])
        )
        assert result.rule_outcomes == []

    def test_negative_rule(self, rules):
        rule = self._rule(lambda content, file_info: True, score=-0.4)
        result = _make_scorer(rules).score(
            ContentAnalysis(), _make_file(), "generic_business", ScoringOptions(custom_rules=[rule])
        )
        assert any(i.factor == "custom_rule" for i in result.negative_indicators)


class TestSuggestions:
    def test_personal_photo_suggestion(self, rules):
        result = _make_scorer(rules).score(
            ContentAnalysis(), _make_file("IMG_0042.jpg", "image/jpeg", 300_000), "business_card"
        )
        assert (
            "This appears to be personal content. Business documents are recommended."
            in result.suggestions
        )

    def test_context_hint_when_low(self, rules):
        result = _make_scorer(rules).score(
            ContentAnalysis(), _make_file("x.pdf", "application/pdf", 100), "expense_receipt"
        )
        assert result.overall_score < 0.6
        assert result.suggestions[-1].startswith("For expense receipts")

    def test_no_hint_for_generic(self, rules):
        result = _make_scorer(rules).score(ContentAnalysis(), _make_file(), "generic_business")
        assert not any(s.startswith("For ") for s in result.suggestions)
