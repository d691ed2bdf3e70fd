# src/extraction/entity_extractor.py — v1
"""Pattern-based business entity extraction from raw document text.

Amounts, dates, emails and phones come from the ordered regex lists in the
rule tables. Vendor names come from a scan of the first few lines for
legal-entity suffixes, since letterhead lines carry the vendor name.
Overlapping matches from different patterns are all kept: consumers treat
the result as a bag of signals.
"""

from __future__ import annotations

import logging
import re
from functools import lru_cache

from docintel.config.rules import RuleTables
from docintel.core.models import (
    AddressEntity,
    AmountEntity,
    BusinessEntities,
    DateEntity,
    EmailEntity,
    PhoneEntity,
    TextPosition,
    VendorEntity,
)

logger = logging.getLogger(__name__)

_PHONE_CONFIDENCE = 0.9
_EMAIL_CONFIDENCE = 0.95
_ADDRESS_CONFIDENCE = 0.7
_VENDOR_CONFIDENCE = 0.8


@lru_cache(maxsize=256)
def _compile(pattern: str) -> re.Pattern[str]:
    return re.compile(pattern, re.IGNORECASE)


def extract_entities(text: str, rules: RuleTables) -> BusinessEntities:
    """Extract all business entities from text.

    Never raises; empty or entity-free text yields empty lists.
    """
    if not text:
        return BusinessEntities()

    entities = BusinessEntities(
        amounts=extract_amounts(text, rules),
        dates=extract_dates(text, rules),
        vendors=extract_vendors(text, rules),
        addresses=extract_addresses(text, rules),
        phone_numbers=extract_phone_numbers(text, rules),
        emails=extract_emails(text, rules),
    )
    logger.debug(
        "Extracted entities: %d amounts, %d dates, %d vendors, %d contacts",
        len(entities.amounts),
        len(entities.dates),
        len(entities.vendors),
        entities.contact_count - len(entities.vendors),
    )
    return entities


def extract_amounts(text: str, rules: RuleTables) -> list[AmountEntity]:
    amounts: list[AmountEntity] = []
    for rule in rules.amount_patterns:
        for match in _compile(rule.pattern).finditer(text):
            raw = match.group(1).replace(",", "")
            try:
                value = float(raw)
            except ValueError:
                continue
            amounts.append(
                AmountEntity(
                    value=value,
                    currency=rule.currency,
                    confidence=rule.confidence,
                    position=TextPosition(start=match.start(), end=match.end()),
                )
            )
    return amounts


def extract_dates(text: str, rules: RuleTables) -> list[DateEntity]:
    dates: list[DateEntity] = []
    for rule in rules.date_patterns:
        for match in _compile(rule.pattern).finditer(text):
            value = match.group(1) if match.groups() else match.group(0)
            dates.append(
                DateEntity(
                    value=value,
                    format=detect_date_format(match.group(0)),
                    confidence=rule.confidence,
                    position=TextPosition(start=match.start(), end=match.end()),
                )
            )
    return dates


def extract_vendors(text: str, rules: RuleTables) -> list[VendorEntity]:
    """Letterhead scan: short lines near the top carrying a legal-entity suffix."""
    vendors: list[VendorEntity] = []
    lines = text.split("\n")
    for i, line in enumerate(lines[: rules.vendor_scan_lines]):
        stripped = line.strip()
        if not 3 < len(stripped) < 50:
            continue
        if any(suffix in stripped for suffix in rules.vendor_suffixes):
            vendors.append(
                VendorEntity(
                    name=stripped,
                    confidence=_VENDOR_CONFIDENCE,
                    position=TextPosition(line=i),
                )
            )
    return vendors


def extract_addresses(text: str, rules: RuleTables) -> list[AddressEntity]:
    pattern = _compile(rules.address_pattern)
    return [
        AddressEntity(
            address=line.strip(),
            confidence=_ADDRESS_CONFIDENCE,
            position=TextPosition(line=i),
        )
        for i, line in enumerate(text.split("\n"))
        if pattern.search(line)
    ]


def extract_phone_numbers(text: str, rules: RuleTables) -> list[PhoneEntity]:
    return [
        PhoneEntity(
            number=match.group(1),
            confidence=_PHONE_CONFIDENCE,
            position=TextPosition(start=match.start(), end=match.end()),
        )
        for match in _compile(rules.phone_pattern).finditer(text)
    ]


def extract_emails(text: str, rules: RuleTables) -> list[EmailEntity]:
    return [
        EmailEntity(
            email=match.group(1).lower(),
            confidence=_EMAIL_CONFIDENCE,
            position=TextPosition(start=match.start(), end=match.end()),
        )
        for match in _compile(rules.email_pattern).finditer(text)
    ]


def detect_date_format(date_str: str) -> str:
    """Tag a matched date string with its layout."""
    if "/" in date_str:
        return "MM/DD/YYYY"
    if "-" in date_str and re.match(r"^\d{4}", date_str):
        return "YYYY-MM-DD"
    if "-" in date_str:
        return "MM-DD-YYYY"
    if re.search(r"[A-Za-z]", date_str):
        return "DD Month YYYY" if date_str[:1].isdigit() else "Month DD, YYYY"
    return "Unknown"
