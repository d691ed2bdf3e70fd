# src/relevance/elements.py — v1
"""Per-tag predicates for required and forbidden context elements.

Each predicate sees the content analysis, the file info and the rule tables
and returns an ElementCheck. Unknown tags are never present.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from typing import NamedTuple

from docintel.config.rules import RuleTables
from docintel.core.models import ContentAnalysis, FileInfo


class ElementCheck(NamedTuple):
    present: bool
    confidence: float


ElementPredicate = Callable[[ContentAnalysis, FileInfo, RuleTables], ElementCheck]

_ABSENT = ElementCheck(False, 0.0)


def _average(confidences: list[float]) -> float:
    return sum(confidences) / len(confidences) if confidences else 0.0


# === REQUIRED ===


def _amount(content: ContentAnalysis, file_info: FileInfo, rules: RuleTables) -> ElementCheck:
    amounts = content.entities.amounts
    return ElementCheck(bool(amounts), _average([a.confidence for a in amounts]))


def _date(content: ContentAnalysis, file_info: FileInfo, rules: RuleTables) -> ElementCheck:
    dates = content.entities.dates
    return ElementCheck(bool(dates), _average([d.confidence for d in dates]))


def _business_name(content: ContentAnalysis, file_info: FileInfo, rules: RuleTables) -> ElementCheck:
    vendors = content.entities.vendors
    text = content.extracted_text.lower()
    present = bool(vendors) or any(s in text for s in ("llc", "inc", "ltd"))
    confidence = _average([v.confidence for v in vendors]) if vendors else 0.5
    return ElementCheck(present, confidence)


def _contact_info(content: ContentAnalysis, file_info: FileInfo, rules: RuleTables) -> ElementCheck:
    e = content.entities
    return ElementCheck(bool(e.emails or e.phone_numbers or e.addresses), 0.8)


def _name(content: ContentAnalysis, file_info: FileInfo, rules: RuleTables) -> ElementCheck:
    text = content.extracted_text.lower()
    present = len(text) > 10 and (" " in text or bool(content.entities.vendors))
    return ElementCheck(present, 0.6)


def _invoice_number(content: ContentAnalysis, file_info: FileInfo, rules: RuleTables) -> ElementCheck:
    text = content.extracted_text.lower()
    present = re.search(rules.invoice_number_pattern, text, re.IGNORECASE) is not None
    return ElementCheck(present, 0.7)


def _legal_terms(content: ContentAnalysis, file_info: FileInfo, rules: RuleTables) -> ElementCheck:
    text = content.extracted_text.lower()
    found = [t for t in rules.legal_terms if t in text]
    confidence = len(found) / len(rules.legal_terms) if rules.legal_terms else 0.0
    return ElementCheck(len(found) >= 2, confidence)


def _parties(content: ContentAnalysis, file_info: FileInfo, rules: RuleTables) -> ElementCheck:
    text = content.extracted_text.lower()
    present = len(content.entities.vendors) >= 2 or "party" in text or "parties" in text
    return ElementCheck(present, 0.6)


def _business_content(content: ContentAnalysis, file_info: FileInfo, rules: RuleTables) -> ElementCheck:
    length = len(content.extracted_text)
    return ElementCheck(length > 50, min(length / 200, 1.0))


REQUIRED_ELEMENTS: dict[str, ElementPredicate] = {
    "amount": _amount,
    "date": _date,
    "vendor_or_merchant": _business_name,
    "business_name": _business_name,
    "contact_info": _contact_info,
    "name": _name,
    "invoice_number": _invoice_number,
    "legal_terms": _legal_terms,
    "parties": _parties,
    "business_content": _business_content,
}


# === FORBIDDEN ===


def _personal_photo(content: ContentAnalysis, file_info: FileInfo, rules: RuleTables) -> ElementCheck:
    text = content.extracted_text.lower()
    filename = file_info.original_name.lower()
    if any(k in filename or k in text for k in rules.personal_photo_keywords):
        return ElementCheck(True, 0.8)
    if file_info.is_image and len(text) < 20:
        return ElementCheck(True, 0.6)
    return _ABSENT


def _social_media(content: ContentAnalysis, file_info: FileInfo, rules: RuleTables) -> ElementCheck:
    text = content.extracted_text.lower()
    return ElementCheck(any(k in text for k in rules.social_media_keywords), 0.7)


FORBIDDEN_ELEMENTS: dict[str, ElementPredicate] = {
    "personal_photo": _personal_photo,
    "social_media": _social_media,
}


def check_required(
    tag: str, content: ContentAnalysis, file_info: FileInfo, rules: RuleTables
) -> ElementCheck:
    predicate = REQUIRED_ELEMENTS.get(tag)
    return predicate(content, file_info, rules) if predicate else _ABSENT


def check_forbidden(
    tag: str, content: ContentAnalysis, file_info: FileInfo, rules: RuleTables
) -> ElementCheck:
    predicate = FORBIDDEN_ELEMENTS.get(tag)
    return predicate(content, file_info, rules) if predicate else _ABSENT
