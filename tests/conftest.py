# tests/conftest.py — v1
"""Shared test fixtures for all unit tests.

Provides settings isolated from .env, the default rule tables, a fixed
clock, and sample documents (receipt text, entities, candidates).
No external I/O beyond pytest's tmp_path.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from docintel.config.rules import RuleTables, default_rule_tables
from docintel.config.settings import Settings
from docintel.core.models import (
    AmountEntity,
    BusinessEntities,
    EmailEntity,
    FileInfo,
    VendorEntity,
)
from docintel.duplicates.models import DuplicateCandidate
from docintel.logging.context import clear_context

FIXED_NOW = datetime(2026, 3, 15, 12, 0, 0, tzinfo=timezone.utc)


# === FIXTURES: Configuration ===


@pytest.fixture
def settings() -> Settings:
    """Default settings, ignoring any local .env file."""
    return Settings(_env_file=None)


@pytest.fixture
def rules() -> RuleTables:
    return default_rule_tables()


@pytest.fixture
def fixed_now() -> datetime:
    return FIXED_NOW


@pytest.fixture
def clock():
    """Deterministic clock returning FIXED_NOW."""
    return lambda: FIXED_NOW


@pytest.fixture(autouse=True)
def _clean_log_context():
    clear_context()
    yield
    clear_context()


# === FIXTURES: Sample documents ===


@pytest.fixture
def receipt_text() -> str:
    """Monthly utility bill with vendor, amounts, date, email and phone."""
    return (
        "Acme Services LLC\n"
        "Monthly statement - service period March 2026\n"
        "Invoice #INV1042\n"
        "Date: 03/01/2026\n"
        "Item      Qty      Price\n"
        "Power     1        $120.50\n"
        "Tax       1        $9.64\n"
        "Total due: $130.14\n"
        "Contact billing@acme-services.com or (555) 123-4567\n"
        "Thank you for your business\n"
    )


@pytest.fixture
def acme_entities() -> BusinessEntities:
    return BusinessEntities(
        vendors=[VendorEntity(name="Acme LLC", confidence=0.8)],
        amounts=[AmountEntity(value=100.0, currency="USD", confidence=0.9)],
    )


@pytest.fixture
def receipt_file_info() -> FileInfo:
    return FileInfo(
        original_name="acme_invoice_march.pdf",
        mime_type="application/pdf",
        size=48_000,
        extension=".pdf",
    )


@pytest.fixture
def make_candidate():
    """Factory for DuplicateCandidate with sensible defaults."""

    def _make(
        id: str = "doc_1",
        *,
        checksum: str = "other",
        perceptual_hash: str | None = None,
        entities: BusinessEntities | None = None,
        days_ago: float = 3,
        uploaded_by: str = "user_1",
        company_id: str = "company_1",
        document_category: str | None = None,
    ) -> DuplicateCandidate:
        return DuplicateCandidate(
            id=id,
            original_file_name=f"{id}.pdf",
            smart_file_name=f"{id}_smart.pdf",
            uploaded_by=uploaded_by,
            company_id=company_id,
            created_at=FIXED_NOW - timedelta(days=days_ago),
            document_category=document_category,
            checksum=checksum,
            perceptual_hash=perceptual_hash,
            entities=entities,
            file_size=1024,
        )

    return _make


@pytest.fixture
def sample_email_entities() -> BusinessEntities:
    return BusinessEntities(emails=[EmailEntity(email="billing@acme.com", confidence=0.95)])
