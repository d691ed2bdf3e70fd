# src/api/models.py — v1
"""API-level models: AnalysisOptions, ConfigOverrides, IntelligenceReport, QuickCheckResult."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from docintel.core.models import ContentAnalysis, DocumentFingerprint
from docintel.decision.models import IntelligenceDecision
from docintel.duplicates.models import DetectionOptions, DuplicateDetectionResult
from docintel.relevance.models import RelevanceResult, RelevanceRule


class ConfigOverrides(BaseModel):
    """Per-document overrides, a validated subset of Settings."""

    visual_similarity_threshold: float | None = None
    content_similarity_threshold: float | None = None
    temporal_tolerance_days: int | None = None
    recurring_downweight: float | None = None
    min_potential_score: float | None = None
    strict_relevance: bool | None = None
    max_candidates: int | None = None


class AnalysisOptions(BaseModel):
    """Execution options for one analysis call."""

    document_id: str | None = None
    company_id: str = ""
    user_id: str = ""
    enable_content_analysis: bool = True
    enable_duplicate_detection: bool = True
    enable_relevance_analysis: bool = True
    detection: DetectionOptions = Field(default_factory=DetectionOptions)
    custom_rules: list[RelevanceRule] = Field(default_factory=list)
    config_overrides: ConfigOverrides | None = None


class IntelligenceReport(BaseModel):
    """Return value of facade.analyze_document()."""

    document_id: str
    file_name: str
    file_size: int
    mime_type: str
    fingerprint: DocumentFingerprint
    content: ContentAnalysis
    duplicates: DuplicateDetectionResult
    relevance: RelevanceResult
    decision: IntelligenceDecision
    processing_time_ms: float = 0.0
    analyzed_at: datetime
    failed: bool = False


class QuickCheckResult(BaseModel):
    """Return value of facade.quick_check()."""

    can_upload: bool
    warnings: list[str] = Field(default_factory=list)
    suggestions: list[str] = Field(default_factory=list)
