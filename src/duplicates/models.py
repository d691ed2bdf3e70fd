# src/duplicates/models.py — v1
"""Duplicate detection models: candidates, per-factor similarity, detection result.

Candidates are read-only catalog summaries. Similarity and detection results
are rebuilt on every detection call and never persisted.
"""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from docintel.core.models import BusinessEntities


class DuplicateCandidate(BaseModel):
    """A catalog document visible to the requesting user."""

    id: str
    original_file_name: str = ""
    smart_file_name: str = ""
    uploaded_by: str = ""
    company_id: str = ""
    created_at: datetime
    document_category: str | None = None
    checksum: str = ""
    perceptual_hash: str | None = None
    entities: BusinessEntities | None = None
    file_size: int = 0
    relevance_score: float = 0.0


class DetectionOptions(BaseModel):
    """Per-call detection options. None fields fall back to Settings."""

    exact_only: bool = False
    visual_threshold: float | None = Field(default=None, ge=0.0, le=1.0)
    content_threshold: float | None = Field(default=None, ge=0.0, le=1.0)
    temporal_tolerance_days: int | None = Field(default=None, ge=0)


# === SIMILARITY FACTORS ===


class ChecksumFactor(BaseModel):
    match: bool = False
    score: float = 0.0


class PerceptualHashFactor(BaseModel):
    match: bool = False
    score: float = 0.0
    distance: int = 0


class ContentFactor(BaseModel):
    similarity: float = 0.0
    vendor_match: bool = False
    amount_match: bool = False
    email_match: bool = False
    categories_compared: int = 0


class TemporalFactor(BaseModel):
    days_since_candidate: int = 0
    is_recurring_bill_likely: bool = False
    time_difference: str = ""


class SimilarityResult(BaseModel):
    """Per-candidate similarity breakdown."""

    overall: float = Field(ge=0.0, le=1.0)
    checksum: ChecksumFactor = Field(default_factory=ChecksumFactor)
    perceptual_hash: PerceptualHashFactor = Field(default_factory=PerceptualHashFactor)
    content: ContentFactor = Field(default_factory=ContentFactor)
    temporal: TemporalFactor = Field(default_factory=TemporalFactor)
    matched_by: Literal["checksum", "visual", "content"] = "checksum"


class DuplicateMatch(BaseModel):
    """A candidate surfaced as exact or potential duplicate."""

    id: str
    original_file_name: str
    smart_file_name: str
    uploaded_by: str
    created_at: datetime
    document_category: str | None = None
    file_size: int = 0
    checksum: str = ""
    relevance_score: float = 0.0
    similarity: SimilarityResult

    @classmethod
    def from_candidate(
        cls, candidate: DuplicateCandidate, similarity: SimilarityResult
    ) -> DuplicateMatch:
        return cls(
            id=candidate.id,
            original_file_name=candidate.original_file_name,
            smart_file_name=candidate.smart_file_name,
            uploaded_by=candidate.uploaded_by,
            created_at=candidate.created_at,
            document_category=candidate.document_category,
            file_size=candidate.file_size,
            checksum=candidate.checksum,
            relevance_score=candidate.relevance_score,
            similarity=similarity,
        )


# === RESULT ===


class TemporalSummary(BaseModel):
    recurring_pattern: bool = False
    date_variance_acceptable: bool = True


class DetectionSummary(BaseModel):
    total_checked: int = 0
    checksum_matches: int = 0
    visual_matches: int = 0
    content_matches: int = 0
    temporal: TemporalSummary = Field(default_factory=TemporalSummary)


class DuplicateDetectionResult(BaseModel):
    """Outcome of one detection call."""

    has_duplicates: bool = False
    exact: list[DuplicateMatch] = Field(default_factory=list)
    potential: list[DuplicateMatch] = Field(default_factory=list)
    recommendation: Literal["proceed", "warn", "block"] = "proceed"
    reasoning: list[str] = Field(default_factory=list)
    summary: DetectionSummary = Field(default_factory=DetectionSummary)
