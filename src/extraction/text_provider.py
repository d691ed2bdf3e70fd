# src/extraction/text_provider.py — v1
"""Text extraction port.

OCR and AI extraction providers live outside this package; they plug in by
implementing BaseTextExtractor. Provider failures are the caller's concern:
the facade catches them and continues with empty text.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


class TextExtractionError(Exception):
    """Raised by a provider that cannot extract text from a payload."""


class BaseTextExtractor(ABC):
    """Unified interface for text extraction providers."""

    @abstractmethod
    def extract_text(self, content: bytes, mime_type: str, filename: str) -> str:
        """Return the document's raw text, or raise TextExtractionError."""

    def supports(self, mime_type: str) -> bool:
        """Whether this provider handles the MIME type. Defaults to all."""
        return True


class PlainTextExtractor(BaseTextExtractor):
    """Decodes text/* payloads as UTF-8. Other types yield empty text."""

    def supports(self, mime_type: str) -> bool:
        return mime_type.startswith("text/")

    def extract_text(self, content: bytes, mime_type: str, filename: str) -> str:
        if not self.supports(mime_type):
            return ""
        return content.decode("utf-8", errors="replace")
