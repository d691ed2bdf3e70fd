# src/api/facade.py — v1
"""Public API facade — single entry point for document intelligence.

Usage:
    from docintel.api.facade import analyze_document
    report = analyze_document(data, file_info, "expense_receipt", candidates)
"""

from __future__ import annotations

import logging
import time
import uuid
from collections.abc import Iterable, Sequence
from concurrent.futures import Executor
from datetime import datetime, timezone
from typing import TYPE_CHECKING

from docintel.api.models import AnalysisOptions, IntelligenceReport, QuickCheckResult
from docintel.catalog.base_catalog import BaseCandidateCatalog, CandidateFilters
from docintel.config.rules import RuleTables, load_rule_tables
from docintel.config.settings import Settings
from docintel.core.models import (
    BusinessEntities,
    ContentAnalysis,
    DocumentContext,
    DocumentFingerprint,
    FileInfo,
)
from docintel.decision.models import DocumentWarning, IntelligenceDecision
from docintel.decision.orchestrator import decide
from docintel.decision.security import collect_security_flags
from docintel.duplicates.detector import Clock, DuplicateDetector
from docintel.duplicates.models import DuplicateCandidate, DuplicateDetectionResult
from docintel.extraction.content_analyzer import analyze_content
from docintel.fingerprint.builder import compute_checksum, compute_fingerprint
from docintel.logging.context import clear_context, set_document_context, set_stage
from docintel.relevance.models import RelevanceResult, ScoringOptions
from docintel.relevance.scorer import RelevanceScorer

if TYPE_CHECKING:
    from docintel.extraction.text_provider import BaseTextExtractor

logger = logging.getLogger(__name__)

LOW_CONFIDENCE_THRESHOLD = 0.3
MIN_TEXT_LENGTH = 10


def analyze_document(
    file_bytes: bytes,
    file_info: FileInfo,
    context: DocumentContext,
    candidates: Iterable[DuplicateCandidate] | None = None,
    options: AnalysisOptions | None = None,
    settings: Settings | None = None,
    rules: RuleTables | None = None,
    fingerprint: DocumentFingerprint | None = None,
    entities: BusinessEntities | None = None,
    text: str | None = None,
    text_extractor: BaseTextExtractor | None = None,
    catalog: BaseCandidateCatalog | None = None,
    security_flags: Sequence[DocumentWarning] | None = None,
    clock: Clock | None = None,
    executor: Executor | None = None,
) -> IntelligenceReport:
    """Analyze one upload end-to-end and return a report with a decision.

    Orchestrates:
      1. Fingerprint (unless precomputed)
      2. Text (precomputed, extractor, or empty) → content analysis
      3. Duplicate detection against candidates (or the catalog)
      4. Relevance scoring for the declared context
      5. Security checks (unless flags are supplied)
      6. Decision

    Any unexpected error yields a safe "reject" report rather than raising.

    Args:
        file_bytes: Raw upload bytes.
        file_info: Upload metadata.
        context: Declared upload context.
        candidates: Catalog candidates. None queries `catalog` if given.
        options: Per-call options. Defaults if None.
        settings: Global settings. Loaded from .env if None.
        rules: Rule tables. Loaded from settings.rules_file if None.
        fingerprint: Precomputed fingerprint.
        entities: Precomputed entities; replace those extracted from the text.
        text: Precomputed extracted text.
        text_extractor: Text provider used when `text` is None.
        catalog: Candidate source used when `candidates` is None.
        security_flags: Externally computed security flags.
        clock: "now" source for temporal scoring.
        executor: Executor for per-candidate duplicate scoring.

    Returns:
        IntelligenceReport with every intermediate result.

    Raises:
        ConfigurationError: If settings overrides are inconsistent.
    """
    started = time.perf_counter()
    options = options or AnalysisOptions()
    settings = _apply_overrides(settings or Settings(), options)
    document_id = options.document_id or _generate_document_id()

    set_document_context(document_id, options.company_id or None)
    try:
        rules = rules or load_rule_tables(settings.rules_file)

        set_stage("fingerprint")
        fingerprint = fingerprint or compute_fingerprint(
            file_bytes, file_info.mime_type, settings.perceptual_grid_size
        )

        set_stage("content")
        quality_flags: list[DocumentWarning] = []
        if options.enable_content_analysis:
            if text is None:
                text = _extract_text(text_extractor, file_bytes, file_info)
            content = analyze_content(text, rules)
            quality_flags = _quality_flags(content)
        else:
            content = ContentAnalysis(extracted_text=text or "")
        if entities is not None:
            content = content.model_copy(update={"entities": entities})

        set_stage("duplicates")
        if options.enable_duplicate_detection:
            if candidates is None:
                candidates = _fetch_candidates(catalog, options, settings)
            detector = DuplicateDetector(settings, rules, clock=clock, executor=executor)
            duplicates = detector.detect(
                fingerprint,
                content.entities,
                candidates,
                options=options.detection,
                text=content.extracted_text,
            )
        else:
            duplicates = DuplicateDetectionResult(reasoning=["Duplicate detection disabled"])

        set_stage("relevance")
        if options.enable_relevance_analysis:
            relevance = RelevanceScorer(rules, settings).score(
                content,
                file_info,
                context,
                ScoringOptions(custom_rules=options.custom_rules),
            )
        else:
            relevance = _disabled_relevance()

        set_stage("decision")
        if security_flags is None:
            security_flags = collect_security_flags(file_bytes, file_info, settings)
        decision = decide(
            duplicates,
            relevance,
            security_flags=security_flags,
            content_confidence=content.confidence if options.enable_content_analysis else None,
            quality_flags=quality_flags,
            high_confidence=settings.high_confidence_duplicate,
        )

        report = IntelligenceReport(
            document_id=document_id,
            file_name=file_info.original_name,
            file_size=file_info.size,
            mime_type=file_info.mime_type,
            fingerprint=fingerprint,
            content=content,
            duplicates=duplicates,
            relevance=relevance,
            decision=decision,
            processing_time_ms=_elapsed_ms(started),
            analyzed_at=datetime.now(timezone.utc),
        )
        logger.info(
            "Analysis complete: %s -> %s (score=%.3f, %.1f ms)",
            file_info.original_name, decision.recommendation,
            decision.overall_score, report.processing_time_ms,
        )
        return report

    except Exception:
        logger.exception("Document analysis failed for %s", file_info.original_name)
        return _fallback_report(document_id, file_bytes, file_info, started)
    finally:
        clear_context()


def quick_check(
    file_bytes: bytes,
    file_info: FileInfo,
    candidates: Iterable[DuplicateCandidate] | None = None,
    settings: Settings | None = None,
    catalog: BaseCandidateCatalog | None = None,
    company_id: str = "",
    user_id: str = "",
) -> QuickCheckResult:
    """Pre-upload check: size limit, allowed type, checksum-only duplicate."""
    settings = settings or Settings()

    if file_info.size > settings.max_upload_bytes:
        return QuickCheckResult(
            can_upload=False,
            warnings=[f"File size exceeds maximum allowed ({settings.max_upload_mb}MB)"],
        )

    if file_info.mime_type not in settings.allowed_mime_types_list:
        return QuickCheckResult(
            can_upload=False,
            warnings=[f"File type {file_info.mime_type} is not supported"],
            suggestions=["Please upload PDF, image, or text files only"],
        )

    try:
        if candidates is None:
            options = AnalysisOptions(company_id=company_id, user_id=user_id)
            candidates = _fetch_candidates(catalog, options, settings)
        checksum = compute_checksum(file_bytes)
        duplicate = any(c.checksum == checksum for c in candidates)
    except Exception:
        logger.exception("Quick check failed for %s", file_info.original_name)
        return QuickCheckResult(
            can_upload=False,
            warnings=["Unable to analyze file - please try again"],
            suggestions=["Contact support if the problem persists"],
        )

    if duplicate:
        return QuickCheckResult(
            can_upload=True,
            warnings=["A file with identical content was already uploaded"],
            suggestions=["Verify this is not a duplicate before proceeding"],
        )
    return QuickCheckResult(can_upload=True)


def _apply_overrides(settings: Settings, options: AnalysisOptions) -> Settings:
    """Apply per-document config overrides if provided."""
    if options.config_overrides is None:
        return settings
    overrides = options.config_overrides.model_dump(exclude_none=True)
    if not overrides:
        return settings
    current = settings.model_dump()
    current.update(overrides)
    return Settings(**current)


def _generate_document_id() -> str:
    """Generate a document ID: yyyymmdd_hhmmss_{uuid4_short}."""
    ts = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")
    return f"{ts}_{uuid.uuid4().hex[:8]}"


def _extract_text(
    extractor: BaseTextExtractor | None, file_bytes: bytes, file_info: FileInfo
) -> str:
    """Run the text provider; any provider failure degrades to empty text."""
    if extractor is None or not extractor.supports(file_info.mime_type):
        return ""
    try:
        return extractor.extract_text(file_bytes, file_info.mime_type, file_info.original_name)
    except Exception:
        logger.warning(
            "Text extraction failed for %s, continuing with empty text",
            file_info.original_name, exc_info=True,
        )
        return ""


def _fetch_candidates(
    catalog: BaseCandidateCatalog | None, options: AnalysisOptions, settings: Settings
) -> list[DuplicateCandidate]:
    if catalog is None:
        return []
    return catalog.find_candidates(
        options.company_id,
        options.user_id,
        CandidateFilters(limit=settings.max_candidates),
    )


def _quality_flags(content: ContentAnalysis) -> list[DocumentWarning]:
    flags: list[DocumentWarning] = []
    if content.confidence < LOW_CONFIDENCE_THRESHOLD:
        flags.append(DocumentWarning(
            type="quality",
            severity="warning",
            message="Low OCR confidence - document may be unclear or damaged",
            details={"confidence": content.confidence},
            suggestion="Consider uploading a clearer image or higher quality scan",
        ))
    if len(content.extracted_text) < MIN_TEXT_LENGTH:
        flags.append(DocumentWarning(
            type="quality",
            severity="warning",
            message="Very little text found in document",
            details={"text_length": len(content.extracted_text)},
            suggestion="Ensure the document contains readable text content",
        ))
    return flags


def _disabled_relevance() -> RelevanceResult:
    return RelevanceResult(
        overall_score=0.5,
        warning_level="none",
        message="Relevance analysis disabled",
        context_match=True,
        business_relevance=0.5,
        technical_quality=0.5,
    )


def _elapsed_ms(started: float) -> float:
    return (time.perf_counter() - started) * 1000


def _fallback_report(
    document_id: str, file_bytes: bytes, file_info: FileInfo, started: float
) -> IntelligenceReport:
    """Safe default when analysis fails: reject with a retry message."""
    return IntelligenceReport(
        document_id=document_id,
        file_name=file_info.original_name,
        file_size=file_info.size,
        mime_type=file_info.mime_type,
        fingerprint=DocumentFingerprint(checksum=compute_checksum(file_bytes)),
        content=ContentAnalysis(confidence=0.0),
        duplicates=DuplicateDetectionResult(reasoning=["Analysis failed"]),
        relevance=RelevanceResult(
            overall_score=0.0, warning_level="error", message="Analysis failed"
        ),
        decision=IntelligenceDecision(
            overall_score=0.0,
            recommendation="reject",
            warnings=[DocumentWarning(
                type="quality",
                severity="error",
                message="Document analysis failed - please try again",
            )],
            suggestions=[
                "Try uploading the document again or contact support if the problem persists"
            ],
            reasoning=["Analysis failed"],
        ),
        processing_time_ms=_elapsed_ms(started),
        analyzed_at=datetime.now(timezone.utc),
        failed=True,
    )
