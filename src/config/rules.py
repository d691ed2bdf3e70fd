# src/config/rules.py — v1
"""Immutable rule tables: keyword sets, extraction patterns, per-context requirements.

Built once at process start (`default_rule_tables()`) or loaded from a JSON
file, then passed explicitly into every extractor and scorer call so tests
can substitute their own tables.
"""

from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path

from pydantic import BaseModel, ConfigDict, ValidationError

from docintel.config.settings import ConfigurationError
from docintel.core.models import DocumentContext

logger = logging.getLogger(__name__)


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


class AmountPattern(_Frozen):
    """Currency pattern; group 1 must capture the numeric part."""

    pattern: str
    currency: str
    confidence: float = 0.9


class DatePattern(_Frozen):
    pattern: str
    confidence: float = 0.8


class ContextRequirements(_Frozen):
    """Admission rules for one upload context."""

    context: DocumentContext
    required_elements: tuple[str, ...]
    forbidden_elements: tuple[str, ...]
    min_business_score: float
    preferred_mime_types: tuple[str, ...]
    suggestion: str | None = None


class KeywordCategories(_Frozen):
    """Keyword hits recorded by the content analyzer, per document category."""

    invoice: tuple[str, ...]
    receipt: tuple[str, ...]
    business_card: tuple[str, ...]
    contract: tuple[str, ...]
    personal_photo: tuple[str, ...]


_AMOUNT_NUMBER = r"(?<![\d,.])(\d{1,3}(?:,\d{3})+(?:\.\d{2})?|\d+(?:\.\d{2})?)"
_MONTHS = r"(?:Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sep|Oct|Nov|Dec)"

_DEFAULT_CONTEXTS: tuple[ContextRequirements, ...] = (
    ContextRequirements(
        context="expense_receipt",
        required_elements=("amount", "date", "vendor_or_merchant"),
        forbidden_elements=("personal_photo", "social_media"),
        min_business_score=0.7,
        preferred_mime_types=("application/pdf", "image/jpeg", "image/png"),
        suggestion=(
            "For expense receipts, ensure the document shows the amount, "
            "date, and merchant name."
        ),
    ),
    ContextRequirements(
        context="vendor_document",
        required_elements=("business_name", "contact_info"),
        forbidden_elements=("personal_photo", "social_media"),
        min_business_score=0.8,
        preferred_mime_types=("application/pdf", "image/jpeg", "image/png", "text/plain"),
        suggestion=(
            "For vendor documents, include business cards, invoices, or "
            "documents with contact information."
        ),
    ),
    ContextRequirements(
        context="customer_document",
        required_elements=("business_name", "contact_info"),
        forbidden_elements=("personal_photo", "social_media"),
        min_business_score=0.8,
        preferred_mime_types=("application/pdf", "image/jpeg", "image/png", "text/plain"),
    ),
    ContextRequirements(
        context="business_card",
        required_elements=("name", "contact_info"),
        forbidden_elements=("personal_photo",),
        min_business_score=0.6,
        preferred_mime_types=("image/jpeg", "image/png", "image/gif"),
        suggestion=(
            "For business cards, upload a clear image that shows the name "
            "and contact details."
        ),
    ),
    ContextRequirements(
        context="invoice",
        required_elements=("amount", "date", "invoice_number", "business_name"),
        forbidden_elements=("personal_photo", "social_media"),
        min_business_score=0.9,
        preferred_mime_types=("application/pdf", "image/jpeg", "image/png"),
        suggestion=(
            "For invoices, ensure the document includes invoice number, "
            "amounts, dates, and business details."
        ),
    ),
    ContextRequirements(
        context="contract",
        required_elements=("legal_terms", "parties", "date"),
        forbidden_elements=("personal_photo", "social_media"),
        min_business_score=0.9,
        preferred_mime_types=("application/pdf", "text/plain"),
        suggestion=(
            "For contracts, upload the full agreement including the parties, "
            "terms, and effective date."
        ),
    ),
    ContextRequirements(
        context="generic_business",
        required_elements=("business_content",),
        forbidden_elements=("personal_photo",),
        min_business_score=0.5,
        preferred_mime_types=("application/pdf", "image/jpeg", "image/png", "text/plain"),
    ),
)


class RuleTables(_Frozen):
    """Every static table the extractors and scorers consult."""

    amount_patterns: tuple[AmountPattern, ...] = (
        AmountPattern(pattern=r"\$\s*" + _AMOUNT_NUMBER, currency="USD"),
        AmountPattern(pattern=_AMOUNT_NUMBER + r"\s*USD", currency="USD"),
        AmountPattern(pattern=r"USD\s*" + _AMOUNT_NUMBER, currency="USD"),
        AmountPattern(pattern="£\\s*" + _AMOUNT_NUMBER, currency="GBP"),
        AmountPattern(pattern="€\\s*" + _AMOUNT_NUMBER, currency="EUR"),
    )
    date_patterns: tuple[DatePattern, ...] = (
        DatePattern(pattern=r"(\d{1,2}/\d{1,2}/\d{2,4})"),
        DatePattern(pattern=r"(\d{1,2}-\d{1,2}-\d{2,4})"),
        DatePattern(pattern=r"(\d{4}-\d{1,2}-\d{1,2})"),
        DatePattern(pattern=r"(" + _MONTHS + r"\s+\d{1,2},?\s+\d{4})"),
        DatePattern(pattern=r"(\d{1,2}\s+" + _MONTHS + r"\s+\d{4})"),
    )
    email_pattern: str = r"([a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,})"
    phone_pattern: str = r"(\(?\d{3}\)?[-.\s]?\d{3}[-.\s]?\d{4})"
    address_pattern: str = r"\d+.*\w+.*\w+.*\d{5}"
    invoice_number_pattern: str = r"(?:invoice|inv|#)\s*[:\-#]?\s*[a-z0-9]+"

    vendor_suffixes: tuple[str, ...] = ("LLC", "Inc", "Corp", "Ltd", "Company", "Services")
    vendor_scan_lines: int = 5

    business_keywords: tuple[str, ...] = (
        "invoice", "receipt", "bill", "statement", "purchase", "payment",
        "vendor", "supplier", "customer", "client", "company", "business",
        "tax", "vat", "gst", "total", "amount", "due", "balance",
        "date", "address", "phone", "email", "website", "www",
        "ltd", "llc", "inc", "corp", "corporation", "limited",
        "contract", "agreement", "terms", "conditions", "service",
        "product", "item", "quantity", "price", "cost", "expense",
    )
    personal_keywords: tuple[str, ...] = (
        "selfie", "vacation", "holiday", "family", "personal",
        "pet", "cat", "dog", "animal", "friend", "birthday",
        "party", "wedding", "celebration", "photo", "picture",
        "memories", "fun", "love", "smile", "happy", "cute",
    )
    recurring_keywords: tuple[str, ...] = (
        "monthly", "month", "billing cycle", "service period",
        "subscription", "recurring", "bill", "statement",
    )
    legal_terms: tuple[str, ...] = (
        "agreement", "contract", "terms", "conditions", "parties", "whereas", "therefore",
    )
    personal_photo_keywords: tuple[str, ...] = (
        "selfie", "photo", "pic", "img_", "dsc_", "vacation", "family", "pet",
    )
    social_media_keywords: tuple[str, ...] = (
        "facebook", "twitter", "instagram", "snapchat", "tiktok",
        "social", "post", "like", "share",
    )
    keyword_categories: KeywordCategories = KeywordCategories(
        invoice=(
            "invoice", "bill", "payment due", "amount due", "subtotal", "total", "tax",
            "invoice number", "invoice date", "due date", "remit to", "pay to",
            "billing address", "service period", "line item", "quantity", "rate",
        ),
        receipt=(
            "receipt", "transaction", "purchase", "sale", "paid", "change due",
            "credit card", "cash", "debit", "item", "qty", "price", "discount",
            "store", "cashier", "register", "pos", "thank you for your business",
        ),
        business_card=(
            "phone", "email", "website", "address", "director", "manager", "president",
            "ceo", "cfo", "llc", "inc", "corp", "ltd", "company", "business",
            "office", "mobile", "fax", "consultant", "services",
        ),
        contract=(
            "agreement", "contract", "terms", "conditions", "party", "whereas",
            "effective date", "term", "renewal", "termination", "liability",
            "confidential", "signature", "witness", "notary", "exhibit",
        ),
        personal_photo=(
            "selfie", "vacation", "family", "pet", "food", "landscape", "portrait",
            "no text detected", "social media", "personal",
        ),
    )

    contexts: tuple[ContextRequirements, ...] = _DEFAULT_CONTEXTS

    def requirements_for(self, context: DocumentContext) -> ContextRequirements:
        """Look up the requirement row for a context.

        Raises:
            KeyError: If the table has no row for the context.
        """
        for row in self.contexts:
            if row.context == context:
                return row
        raise KeyError(f"No context requirements for {context!r}")


@lru_cache(maxsize=1)
def default_rule_tables() -> RuleTables:
    """Built-in tables, constructed once per process."""
    return RuleTables()


def load_rule_tables(path: Path | None = None) -> RuleTables:
    """Load rule tables from a JSON file, or return the built-in defaults.

    Fields missing from the file keep their default values.

    Raises:
        ConfigurationError: If the file cannot be read or does not validate.
    """
    if path is None:
        return default_rule_tables()

    path = Path(path).expanduser()
    try:
        raw = path.read_text(encoding="utf-8")
        tables = RuleTables.model_validate_json(raw)
    except (OSError, ValidationError) as exc:
        raise ConfigurationError(f"Invalid rule tables file {path}: {exc}") from exc

    logger.info("Loaded rule tables from %s (%d contexts)", path, len(tables.contexts))
    return tables
