# src/relevance/scorer.py — v1
"""Relevance scorer: is this document appropriate for its upload context?

Four independent sub-scorers pool their indicators:
  1. File type, size and filename (→ technical_quality)
  2. Business content: entities, keywords, structure (→ business_relevance)
  3. Context requirements: required and forbidden elements (→ context_match)
  4. Caller-supplied custom rules

overall = business*0.6 + technical*0.2 + context bonus + Σindicators*0.1,
with an extra strict-mode penalty, clamped to [0, 1].
"""

from __future__ import annotations

import logging

from docintel.config.rules import RuleTables, default_rule_tables
from docintel.config.settings import Settings
from docintel.core.models import ContentAnalysis, DocumentContext, FileInfo
from docintel.core.similarity import clamp
from docintel.relevance.elements import check_forbidden, check_required
from docintel.relevance.models import (
    RelevanceIndicator,
    RelevanceResult,
    RelevanceRule,
    RuleOutcome,
    ScoringOptions,
    WarningLevel,
)

logger = logging.getLogger(__name__)

_WARNING_BANDS: tuple[tuple[float, WarningLevel, str], ...] = (
    (0.8, "none", "Document appears highly relevant for this context."),
    (0.6, "info", "Document appears relevant, but could be improved."),
    (0.4, "warning", "Document may not be appropriate for this context. Please review."),
)
_ERROR_MESSAGE = (
    "Document appears inappropriate for this context. Consider uploading a different file."
)


def _indicator(factor: str, score: float, confidence: float, description: str) -> RelevanceIndicator:
    kind = "positive" if score > 0 else "negative" if score < 0 else "neutral"
    return RelevanceIndicator(
        type=kind,
        factor=factor,
        score=score,
        confidence=clamp(confidence),
        description=description,
    )


def warning_level_for(score: float) -> tuple[WarningLevel, str]:
    """Map an overall score to its warning level and message."""
    for threshold, level, message in _WARNING_BANDS:
        if score >= threshold:
            return level, message
    return "error", _ERROR_MESSAGE


class RelevanceScorer:
    """Score content against the requirement row of an upload context."""

    def __init__(self, rules: RuleTables | None = None, settings: Settings | None = None) -> None:
        self._rules = rules or default_rule_tables()
        self._settings = settings or Settings()

    def score(
        self,
        content: ContentAnalysis,
        file_info: FileInfo,
        context: DocumentContext,
        options: ScoringOptions | None = None,
    ) -> RelevanceResult:
        """Score one document.

        Raises:
            KeyError: If the rule tables have no row for the context.
        """
        options = options or ScoringOptions()
        strict = self._settings.strict_relevance if options.strict is None else options.strict

        file_indicators, technical = self._score_file(file_info, context)
        business_indicators, business = self._score_business_content(content)
        context_indicators, context_match, personal_photo = self._score_context(
            content, file_info, context
        )
        rule_indicators, outcomes = self._apply_custom_rules(
            content, file_info, context, options.custom_rules
        )
        indicators = file_indicators + business_indicators + context_indicators + rule_indicators

        overall = business * 0.6 + technical * 0.2
        if context_match:
            overall += 0.2
        else:
            overall -= 0.3 if strict else 0.1
        overall += sum(i.score for i in indicators) * 0.1
        if strict and sum(1 for i in indicators if i.type == "negative") > 2:
            overall -= 0.2
        overall = clamp(overall)

        level, message = warning_level_for(overall)
        suggestions = self._suggestions(
            overall, context_match, business, context, indicators, personal_photo
        )

        logger.info(
            "Relevance for %s: overall=%.3f level=%s context_match=%s",
            context, overall, level, context_match,
        )
        return RelevanceResult(
            overall_score=overall,
            warning_level=level,
            message=message,
            indicators=indicators,
            suggestions=suggestions,
            context_match=context_match,
            business_relevance=business,
            technical_quality=technical,
            rule_outcomes=outcomes,
        )

    # --- Sub-scorers ---

    def _score_file(
        self, file_info: FileInfo, context: DocumentContext
    ) -> tuple[list[RelevanceIndicator], float]:
        requirements = self._rules.requirements_for(context)
        indicators: list[RelevanceIndicator] = []

        if file_info.mime_type in requirements.preferred_mime_types:
            indicators.append(_indicator(
                "file_type", 0.3, 0.9,
                f"File type {file_info.mime_type} is appropriate for {context}",
            ))
        else:
            indicators.append(_indicator(
                "file_type", -0.2, 0.7,
                f"File type {file_info.mime_type} is not preferred for {context}",
            ))

        if file_info.size < self._settings.small_file_bytes:
            indicators.append(_indicator(
                "file_size", -0.3, 0.8,
                "File appears to be too small to contain meaningful business content",
            ))
        elif file_info.size > self._settings.large_file_mb * 1024 * 1024:
            indicators.append(_indicator(
                "file_size", -0.1, 0.6,
                "File is unusually large for typical business documents",
            ))

        filename = file_info.original_name.lower()
        filename_score = 0.1 * sum(1 for k in self._rules.business_keywords if k in filename)
        filename_score -= 0.2 * sum(1 for k in self._rules.personal_keywords if k in filename)
        if filename_score > 0:
            indicators.append(_indicator(
                "filename", min(filename_score, 0.3), 0.6,
                "Filename suggests business-related content",
            ))
        elif filename_score < 0:
            indicators.append(_indicator(
                "filename", max(filename_score, -0.3), 0.7,
                "Filename suggests personal or non-business content",
            ))

        technical = clamp(0.5 + sum(i.score for i in indicators))
        return indicators, technical

    def _score_business_content(
        self, content: ContentAnalysis
    ) -> tuple[list[RelevanceIndicator], float]:
        entities = content.entities
        indicators: list[RelevanceIndicator] = []
        score = 0.0

        if entities.amounts:
            conf = min(sum(a.confidence for a in entities.amounts) / len(entities.amounts), 1.0)
            indicators.append(_indicator(
                "financial_amounts", 0.3 * conf, conf,
                f"Found {len(entities.amounts)} monetary amount(s)",
            ))
            score += 0.2

        if entities.dates:
            conf = min(sum(d.confidence for d in entities.dates) / len(entities.dates), 1.0)
            indicators.append(_indicator(
                "dates", 0.2 * conf, conf, f"Found {len(entities.dates)} date(s)",
            ))
            score += 0.1

        contacts = entities.contact_count
        if contacts:
            indicators.append(_indicator(
                "business_entities", min(contacts * 0.1, 0.4), 0.8,
                f"Found {contacts} business-related entities",
            ))
            score += min(contacts * 0.05, 0.3)

        text = content.extracted_text.lower()
        business_hits = sum(1 for k in self._rules.business_keywords if k in text)
        personal_hits = sum(1 for k in self._rules.personal_keywords if k in text)

        if business_hits:
            indicators.append(_indicator(
                "business_keywords", min(business_hits * 0.05, 0.3), 0.7,
                f"Found {business_hits} business-related keywords",
            ))
            score += min(business_hits * 0.02, 0.2)

        if personal_hits:
            indicators.append(_indicator(
                "personal_keywords", -min(personal_hits * 0.1, 0.4), 0.8,
                f"Found {personal_hits} personal/non-business keywords",
            ))
            score -= min(personal_hits * 0.05, 0.3)

        structure = content.structure
        if structure.has_table:
            indicators.append(_indicator(
                "document_structure", 0.2, 0.7, "Document contains structured data (tables)",
            ))
            score += 0.1
        if structure.has_header and structure.has_footer:
            indicators.append(_indicator(
                "document_structure", 0.15, 0.6,
                "Document has professional structure (header/footer)",
            ))
            score += 0.05

        return indicators, clamp(score)

    def _score_context(
        self, content: ContentAnalysis, file_info: FileInfo, context: DocumentContext
    ) -> tuple[list[RelevanceIndicator], bool, bool]:
        """Returns (indicators, context_match, personal_photo_detected)."""
        requirements = self._rules.requirements_for(context)
        indicators: list[RelevanceIndicator] = []
        found_required = 0
        found_forbidden = 0
        personal_photo = False

        for tag in requirements.required_elements:
            check = check_required(tag, content, file_info, self._rules)
            if check.present:
                found_required += 1
                indicators.append(_indicator(
                    "required_elements", 0.2, check.confidence,
                    f"Required element '{tag}' found",
                ))
            else:
                indicators.append(_indicator(
                    "missing_required", -0.3, 0.8, f"Missing required element: {tag}",
                ))

        for tag in requirements.forbidden_elements:
            check = check_forbidden(tag, content, file_info, self._rules)
            if check.present:
                found_forbidden += 1
                personal_photo = personal_photo or tag == "personal_photo"
                indicators.append(_indicator(
                    "forbidden_elements", -0.5, check.confidence,
                    f"Forbidden element '{tag}' detected",
                ))

        required_total = len(requirements.required_elements)
        ratio = found_required / required_total if required_total else 1.0
        match = ratio >= 0.5 and found_forbidden == 0
        return indicators, match, personal_photo

    def _apply_custom_rules(
        self,
        content: ContentAnalysis,
        file_info: FileInfo,
        context: DocumentContext,
        rules: list[RelevanceRule],
    ) -> tuple[list[RelevanceIndicator], list[RuleOutcome]]:
        indicators: list[RelevanceIndicator] = []
        outcomes: list[RuleOutcome] = []

        for rule in rules:
            if not rule.applies_to(context):
                continue
            outcome = rule.evaluate(content, file_info)
            outcomes.append(outcome)
            if not outcome.ok:
                logger.warning("Custom rule %r failed, ignoring: %s", rule.name, outcome.error)
                continue
            if outcome.fired:
                indicators.append(RelevanceIndicator(
                    type="positive" if rule.score > 0 else "negative",
                    factor="custom_rule",
                    score=rule.score,
                    confidence=0.8,
                    description=rule.message,
                ))

        return indicators, outcomes

    # --- Suggestions ---

    def _suggestions(
        self,
        overall: float,
        context_match: bool,
        business: float,
        context: DocumentContext,
        indicators: list[RelevanceIndicator],
        personal_photo: bool,
    ) -> list[str]:
        suggestions: list[str] = []
        negatives = [i for i in indicators if i.type == "negative"]

        if not context_match:
            suggestions.append(
                f"Ensure the document is appropriate for {context.replace('_', ' ')} uploads."
            )
        if business < 0.5:
            suggestions.append(
                "Consider uploading a business document rather than personal content."
            )
        if any(i.factor == "missing_required" for i in indicators):
            suggestions.append(
                "The document appears to be missing key information required for this context."
            )
        if personal_photo or any(i.factor == "personal_keywords" for i in negatives):
            suggestions.append(
                "This appears to be personal content. Business documents are recommended."
            )
        if any(i.factor == "file_size" for i in negatives):
            suggestions.append(
                "Check that the file size is appropriate and the document is complete."
            )

        context_hint = self._rules.requirements_for(context).suggestion
        if context_hint and overall < 0.6:
            suggestions.append(context_hint)
        return suggestions
