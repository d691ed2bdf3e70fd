# src/duplicates/detector.py — v1
"""Duplicate detector: exact, visual, content and temporal matching against catalog candidates.

Decision flow per call:
  1. Exact checksum match → overall 1.0 (exact_only short-circuits to block)
  2. Visual: perceptual-hash Hamming distance, kept at >= visual threshold
  3. Content: vendor / amount / email comparison, kept at >= content threshold
  4. Union (visual hits first, first occurrence per id wins), then temporal
     down-weighting of likely recurring bills, cut at min_potential_score
     and sorted by descending overall score.

Per-candidate scoring is a pure function of (new document, candidate), so it
can be mapped over an Executor; results keep candidate order either way.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from concurrent.futures import Executor
from datetime import datetime, timezone
from functools import partial

from docintel.config.rules import RuleTables, default_rule_tables
from docintel.config.settings import Settings
from docintel.core.models import BusinessEntities, DocumentFingerprint
from docintel.core.similarity import clamp, string_similarity
from docintel.duplicates.models import (
    ChecksumFactor,
    ContentFactor,
    DetectionOptions,
    DetectionSummary,
    DuplicateCandidate,
    DuplicateDetectionResult,
    DuplicateMatch,
    PerceptualHashFactor,
    SimilarityResult,
    TemporalFactor,
    TemporalSummary,
)
from docintel.duplicates.temporal import (
    days_between,
    format_time_difference,
    has_recurring_indicators,
    in_recurring_window,
)
from docintel.fingerprint.builder import hash_similarity

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]

_VENDOR_WEIGHT = 0.4
_AMOUNT_EXACT_WEIGHT = 0.3
_AMOUNT_NEAR_WEIGHT = 0.2
_EMAIL_WEIGHT = 0.3
_DATE_VARIANCE_LIMIT_DAYS = 45


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def content_similarity(
    new: BusinessEntities,
    other: BusinessEntities,
    vendor_threshold: float = 0.8,
    exact_tolerance: float = 0.01,
    relative_tolerance: float = 0.05,
) -> ContentFactor:
    """Compare two entity sets category by category.

    Each category's accumulated credit is capped at its weight (vendor 0.4,
    amount 0.3, email 0.3) before the sum is divided by the number of
    categories present on both sides, so the result always lies in [0, 1].
    """
    score = 0.0
    categories = 0
    vendor_match = amount_match = email_match = False

    if new.vendors and other.vendors:
        categories += 1
        vendor_match = any(
            string_similarity(a.name, b.name) > vendor_threshold
            for a in new.vendors
            for b in other.vendors
        )
        if vendor_match:
            score += _VENDOR_WEIGHT

    if new.amounts and other.amounts:
        categories += 1
        credit = 0.0
        for a in new.amounts:
            for b in other.amounts:
                diff = abs(a.value - b.value)
                largest = max(abs(a.value), abs(b.value))
                if diff < exact_tolerance:
                    credit += _AMOUNT_EXACT_WEIGHT
                    amount_match = True
                elif largest > 0 and diff / largest < relative_tolerance:
                    credit += _AMOUNT_NEAR_WEIGHT
        score += min(credit, _AMOUNT_EXACT_WEIGHT)

    if new.emails and other.emails:
        categories += 1
        theirs = {e.email.lower() for e in other.emails}
        hits = sum(1 for e in new.emails if e.email.lower() in theirs)
        if hits:
            email_match = True
            score += min(hits * _EMAIL_WEIGHT, _EMAIL_WEIGHT)

    similarity = clamp(score / categories) if categories else 0.0
    return ContentFactor(
        similarity=similarity,
        vendor_match=vendor_match,
        amount_match=amount_match,
        email_match=email_match,
        categories_compared=categories,
    )


class DuplicateDetector:
    """Score catalog candidates against a new document."""

    def __init__(
        self,
        settings: Settings | None = None,
        rules: RuleTables | None = None,
        clock: Clock | None = None,
        executor: Executor | None = None,
    ) -> None:
        self._settings = settings or Settings()
        self._rules = rules or default_rule_tables()
        self._clock = clock or _utc_now
        self._executor = executor

    def detect(
        self,
        fingerprint: DocumentFingerprint,
        entities: BusinessEntities,
        candidates: Iterable[DuplicateCandidate],
        options: DetectionOptions | None = None,
        text: str = "",
    ) -> DuplicateDetectionResult:
        """Find exact and potential duplicates among candidates.

        Args:
            fingerprint: New document's checksum and perceptual hash.
            entities: New document's extracted entities.
            candidates: Catalog documents visible to the uploader.
            options: Per-call thresholds; unset fields use Settings.
            text: New document's extracted text (recurring-bill keywords).

        Returns:
            DuplicateDetectionResult with exact and potential matches.
        """
        options = options or DetectionOptions()
        s = self._settings
        visual_threshold = _pick(options.visual_threshold, s.visual_similarity_threshold)
        content_threshold = _pick(options.content_threshold, s.content_similarity_threshold)
        tolerance = _pick(options.temporal_tolerance_days, s.temporal_tolerance_days)

        candidates = list(candidates)
        now = self._clock()

        # Stage 1: exact checksum
        exact = [
            DuplicateMatch.from_candidate(c, self._exact_similarity(c, now))
            for c in candidates
            if c.checksum and c.checksum == fingerprint.checksum
        ]
        if options.exact_only and exact:
            logger.info("Exact duplicate found (%d), exact-only check", len(exact))
            return self._build_result(
                candidates, exact, [], "block",
                ["Exact duplicate found (identical file checksum)"],
            )

        # Stages 2-3: per-candidate visual and content scoring
        exact_ids = {m.id for m in exact}
        remaining = [c for c in candidates if c.id not in exact_ids]
        score = partial(
            self._score_candidate,
            fingerprint=fingerprint,
            entities=entities,
            visual_threshold=visual_threshold,
            content_threshold=content_threshold,
        )
        mapper = self._executor.map if self._executor is not None else map
        scored = [
            (c, sim) for c, sim in zip(remaining, mapper(score, remaining)) if sim is not None
        ]

        # Stage 4: union (visual before content), dedup by id, temporal pass
        ordered = [p for p in scored if p[1].matched_by == "visual"] + [
            p for p in scored if p[1].matched_by == "content"
        ]
        seen: set[str] = set()
        union: list[tuple[DuplicateCandidate, SimilarityResult]] = []
        for candidate, sim in ordered:
            if candidate.id in seen:
                continue
            seen.add(candidate.id)
            union.append((candidate, sim))

        potential = self._apply_temporal(union, text, tolerance, now)

        action, reasons = self._recommend(exact, potential)
        result = self._build_result(candidates, exact, potential, action, reasons)
        logger.info(
            "Duplicate detection: %d candidates, %d exact, %d potential -> %s",
            len(candidates), len(exact), len(potential), action,
        )
        return result

    # --- Scoring ---

    def _exact_similarity(self, candidate: DuplicateCandidate, now: datetime) -> SimilarityResult:
        days = days_between(now, candidate.created_at)
        return SimilarityResult(
            overall=1.0,
            checksum=ChecksumFactor(match=True, score=1.0),
            content=ContentFactor(similarity=1.0, vendor_match=True, amount_match=True),
            temporal=TemporalFactor(
                days_since_candidate=days,
                time_difference=format_time_difference(days),
            ),
            matched_by="checksum",
        )

    def _score_candidate(
        self,
        candidate: DuplicateCandidate,
        *,
        fingerprint: DocumentFingerprint,
        entities: BusinessEntities,
        visual_threshold: float,
        content_threshold: float,
    ) -> SimilarityResult | None:
        """Visual and content factors for one candidate; None if neither passes."""
        s = self._settings

        visual = PerceptualHashFactor()
        new_hash = fingerprint.perceptual_hash
        if new_hash and candidate.perceptual_hash:
            distance, visual_score = hash_similarity(new_hash, candidate.perceptual_hash)
            eligible = candidate.perceptual_hash != new_hash
            visual = PerceptualHashFactor(
                match=eligible and visual_score >= visual_threshold,
                score=visual_score,
                distance=distance,
            )

        content = ContentFactor()
        if candidate.entities is not None and not candidate.entities.is_empty():
            content = content_similarity(
                entities,
                candidate.entities,
                vendor_threshold=s.vendor_similarity_threshold,
                exact_tolerance=s.amount_exact_tolerance,
                relative_tolerance=s.amount_relative_tolerance,
            )
        content_hit = content.categories_compared > 0 and content.similarity >= content_threshold

        if visual.match:
            overall, matched_by = visual.score, "visual"
        elif content_hit:
            overall, matched_by = content.similarity, "content"
        else:
            return None

        return SimilarityResult(
            overall=overall,
            perceptual_hash=visual,
            content=content,
            matched_by=matched_by,
        )

    def _apply_temporal(
        self,
        union: list[tuple[DuplicateCandidate, SimilarityResult]],
        text: str,
        tolerance_days: int,
        now: datetime,
    ) -> list[DuplicateMatch]:
        """Mark likely recurring bills, down-weight same-vendor ones, cut and sort."""
        s = self._settings
        recurring_text = has_recurring_indicators(text, self._rules.recurring_keywords)
        kept: list[DuplicateMatch] = []

        for candidate, sim in union:
            days = days_between(now, candidate.created_at)
            recurring = recurring_text and in_recurring_window(
                days, s.recurring_period_days, tolerance_days
            )
            overall = sim.overall
            if recurring and sim.content.vendor_match:
                overall *= s.recurring_downweight

            if overall < s.min_potential_score:
                logger.debug(
                    "Dropping %s after temporal pass (%.3f < %.2f)",
                    candidate.id, overall, s.min_potential_score,
                )
                continue

            updated = sim.model_copy(
                update={
                    "overall": overall,
                    "temporal": TemporalFactor(
                        days_since_candidate=days,
                        is_recurring_bill_likely=recurring,
                        time_difference=format_time_difference(days),
                    ),
                }
            )
            kept.append(DuplicateMatch.from_candidate(candidate, updated))

        # sorted() is stable: equal scores keep union order
        return sorted(kept, key=lambda m: m.similarity.overall, reverse=True)

    # --- Result assembly ---

    def _recommend(
        self, exact: list[DuplicateMatch], potential: list[DuplicateMatch]
    ) -> tuple[str, list[str]]:
        if exact:
            return "block", [
                f"Found {len(exact)} identical document(s) with same checksum"
            ]

        high = [
            m for m in potential
            if m.similarity.overall >= self._settings.high_confidence_duplicate
            and not m.similarity.temporal.is_recurring_bill_likely
        ]
        if high:
            return "warn", [
                f"Found {len(high)} very similar document(s) - "
                "please verify this is not a duplicate"
            ]

        if potential:
            reasons: list[str] = []
            recurring = sum(1 for m in potential if m.similarity.temporal.is_recurring_bill_likely)
            if recurring:
                reasons.append(
                    f"Found {recurring} potentially similar recurring document(s) - "
                    "this may be a monthly bill"
                )
            others = len(potential) - recurring
            if others:
                reasons.append(f"Found {others} similar document(s) that may be duplicates")
            return "warn", reasons

        return "proceed", ["No duplicates detected"]

    def _build_result(
        self,
        candidates: list[DuplicateCandidate],
        exact: list[DuplicateMatch],
        potential: list[DuplicateMatch],
        recommendation: str,
        reasoning: list[str],
    ) -> DuplicateDetectionResult:
        summary = DetectionSummary(
            total_checked=len(candidates),
            checksum_matches=len(exact),
            visual_matches=sum(1 for m in potential if m.similarity.perceptual_hash.match),
            content_matches=sum(1 for m in potential if m.similarity.matched_by == "content"),
            temporal=TemporalSummary(
                recurring_pattern=any(
                    m.similarity.temporal.is_recurring_bill_likely for m in potential
                ),
                date_variance_acceptable=all(
                    m.similarity.temporal.days_since_candidate < _DATE_VARIANCE_LIMIT_DAYS
                    for m in potential
                ),
            ),
        )
        return DuplicateDetectionResult(
            has_duplicates=bool(exact or potential),
            exact=exact,
            potential=potential,
            recommendation=recommendation,  # type: ignore[arg-type]
            reasoning=reasoning,
            summary=summary,
        )


def _pick(value, default):
    return default if value is None else value
