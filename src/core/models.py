# src/core/models.py — v1
"""Shared Pydantic domain models used across modules.

Extraction output (entities, structure, content analysis) and the document
fingerprint. Detection, relevance and decision results live next to the
component that produces them.
"""

from __future__ import annotations

from typing import Literal, get_args

from pydantic import BaseModel, ConfigDict, Field

DocumentContext = Literal[
    "expense_receipt",
    "vendor_document",
    "customer_document",
    "business_card",
    "invoice",
    "contract",
    "generic_business",
]

DOCUMENT_CONTEXTS: tuple[str, ...] = get_args(DocumentContext)


# === ENTITIES ===


class TextPosition(BaseModel):
    """Where an entity was found: character span, or line index for line scans."""

    start: int | None = None
    end: int | None = None
    line: int | None = None


class AmountEntity(BaseModel):
    value: float
    currency: str = "USD"
    confidence: float = Field(ge=0.0, le=1.0)
    position: TextPosition = Field(default_factory=TextPosition)


class DateEntity(BaseModel):
    value: str
    format: str
    confidence: float = Field(ge=0.0, le=1.0)
    position: TextPosition = Field(default_factory=TextPosition)


class VendorEntity(BaseModel):
    name: str
    confidence: float = Field(ge=0.0, le=1.0)
    position: TextPosition = Field(default_factory=TextPosition)


class AddressEntity(BaseModel):
    address: str
    type: str = "mailing"
    confidence: float = Field(ge=0.0, le=1.0)
    position: TextPosition = Field(default_factory=TextPosition)


class PhoneEntity(BaseModel):
    number: str
    confidence: float = Field(ge=0.0, le=1.0)
    position: TextPosition = Field(default_factory=TextPosition)


class EmailEntity(BaseModel):
    email: str
    confidence: float = Field(ge=0.0, le=1.0)
    position: TextPosition = Field(default_factory=TextPosition)


class BusinessEntities(BaseModel):
    """Structured entities for one document. Absent categories are empty lists."""

    amounts: list[AmountEntity] = Field(default_factory=list)
    dates: list[DateEntity] = Field(default_factory=list)
    vendors: list[VendorEntity] = Field(default_factory=list)
    addresses: list[AddressEntity] = Field(default_factory=list)
    phone_numbers: list[PhoneEntity] = Field(default_factory=list)
    emails: list[EmailEntity] = Field(default_factory=list)

    def is_empty(self) -> bool:
        return not (
            self.amounts
            or self.dates
            or self.vendors
            or self.addresses
            or self.phone_numbers
            or self.emails
        )

    @property
    def contact_count(self) -> int:
        """Vendors, addresses, phones and emails taken together."""
        return (
            len(self.vendors)
            + len(self.addresses)
            + len(self.phone_numbers)
            + len(self.emails)
        )


# === DOCUMENT CONTENT ===


class DocumentStructureFlags(BaseModel):
    """Layout cues detected from the extracted text."""

    has_table: bool = False
    has_header: bool = False
    has_footer: bool = False
    has_signature: bool = False
    has_logo: bool = False


class BusinessIndicators(BaseModel):
    """Keyword hits per document category."""

    invoice_keywords: list[str] = Field(default_factory=list)
    receipt_keywords: list[str] = Field(default_factory=list)
    business_card_keywords: list[str] = Field(default_factory=list)
    contract_keywords: list[str] = Field(default_factory=list)
    personal_photo_indicators: list[str] = Field(default_factory=list)


class TemporalClassification(BaseModel):
    """Billing periodicity inferred from the document text."""

    type: Literal["one_time", "monthly", "quarterly", "annual", "unknown"] = "one_time"
    confidence: float = 0.3
    indicators: list[str] = Field(default_factory=list)


class ContentAnalysis(BaseModel):
    """Everything derived from a document's extracted text."""

    extracted_text: str = ""
    confidence: float = 0.5
    entities: BusinessEntities = Field(default_factory=BusinessEntities)
    structure: DocumentStructureFlags = Field(default_factory=DocumentStructureFlags)
    indicators: BusinessIndicators = Field(default_factory=BusinessIndicators)
    temporal: TemporalClassification = Field(default_factory=TemporalClassification)


# === FINGERPRINT ===


class DocumentFingerprint(BaseModel):
    """Checksum + perceptual hash pair identifying a document for comparison."""

    model_config = ConfigDict(frozen=True)

    checksum: str
    perceptual_hash: str | None = None
    algorithm: Literal["ahash", "sha256_prefix", "none"] = "none"


class FileInfo(BaseModel):
    """Upload metadata supplied by the caller."""

    original_name: str
    mime_type: str
    size: int = Field(ge=0)
    extension: str = ""

    @property
    def is_image(self) -> bool:
        return self.mime_type.startswith("image/")
