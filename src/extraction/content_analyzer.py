# src/extraction/content_analyzer.py — v1
"""Turn extracted document text into a ContentAnalysis.

Combines entity extraction, structure detection, keyword indicators and a
billing-periodicity classification, plus an overall extraction confidence.
"""

from __future__ import annotations

import logging

from docintel.config.rules import RuleTables
from docintel.core.models import (
    BusinessEntities,
    BusinessIndicators,
    ContentAnalysis,
    DocumentStructureFlags,
    TemporalClassification,
)
from docintel.extraction.entity_extractor import extract_entities
from docintel.extraction.structure_detector import detect_structure

logger = logging.getLogger(__name__)


def analyze_content(text: str, rules: RuleTables) -> ContentAnalysis:
    """Analyze extracted text. Empty text yields a valid, empty analysis."""
    text = text or ""
    entities = extract_entities(text, rules)
    structure = detect_structure(text)

    analysis = ContentAnalysis(
        extracted_text=text,
        confidence=content_confidence(entities, structure),
        entities=entities,
        structure=structure,
        indicators=identify_indicators(text, rules),
        temporal=classify_temporal(text, entities),
    )
    logger.debug(
        "Content analysis: confidence=%.2f, temporal=%s",
        analysis.confidence, analysis.temporal.type,
    )
    return analysis


def content_confidence(
    entities: BusinessEntities, structure: DocumentStructureFlags
) -> float:
    """Base 0.5 raised by each kind of entity and structural cue, capped at 1."""
    confidence = 0.5
    if entities.amounts:
        confidence += 0.2
    if entities.dates:
        confidence += 0.1
    if entities.vendors:
        confidence += 0.1
    if entities.emails or entities.phone_numbers:
        confidence += 0.1
    if structure.has_table:
        confidence += 0.1
    if structure.has_header:
        confidence += 0.05
    if structure.has_footer:
        confidence += 0.05
    return min(1.0, confidence)


def identify_indicators(text: str, rules: RuleTables) -> BusinessIndicators:
    lower = text.lower()
    categories = rules.keyword_categories

    def hits(keywords: tuple[str, ...]) -> list[str]:
        return [k for k in keywords if k in lower]

    return BusinessIndicators(
        invoice_keywords=hits(categories.invoice),
        receipt_keywords=hits(categories.receipt),
        business_card_keywords=hits(categories.business_card),
        contract_keywords=hits(categories.contract),
        personal_photo_indicators=hits(categories.personal_photo),
    )


def classify_temporal(text: str, entities: BusinessEntities) -> TemporalClassification:
    """Classify billing periodicity from wording and date count.

    Monthly language wins over annual, annual over quarterly. Any other
    indicator alone gives "unknown"; no indicator gives "one_time".
    """
    lower = text.lower()
    indicators: list[str] = []

    if any(k in lower for k in ("monthly", "month", "billing cycle")):
        indicators.append("monthly_billing_language")
    if any(k in lower for k in ("annual", "yearly", "year")):
        indicators.append("annual_billing_language")
    if "quarter" in lower:
        indicators.append("quarterly_billing_language")
    if "service period" in lower or "billing period" in lower:
        indicators.append("service_period_detected")
    if len(entities.dates) >= 2:
        indicators.append("multiple_dates_found")

    if "monthly_billing_language" in indicators:
        return TemporalClassification(type="monthly", confidence=0.8, indicators=indicators)
    if "annual_billing_language" in indicators:
        return TemporalClassification(type="annual", confidence=0.8, indicators=indicators)
    if "quarterly_billing_language" in indicators:
        return TemporalClassification(type="quarterly", confidence=0.8, indicators=indicators)
    if indicators:
        return TemporalClassification(type="unknown", confidence=0.6, indicators=indicators)
    return TemporalClassification(type="one_time", confidence=0.3, indicators=indicators)
