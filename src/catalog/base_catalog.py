# src/catalog/base_catalog.py — v1
"""Abstract candidate catalog interface.

The catalog owns the visibility rule: a document is visible to a request
if it was uploaded by the requesting user or belongs to the same company.
The detector only consumes whatever list the catalog returns.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from pydantic import BaseModel, Field

from docintel.duplicates.models import DuplicateCandidate


class CatalogError(Exception):
    """Raised when a catalog backend cannot be read."""


class CandidateFilters(BaseModel):
    """Optional narrowing applied after the visibility rule."""

    document_category: str | None = None
    limit: int = Field(default=200, ge=1)


class BaseCandidateCatalog(ABC):
    """Unified interface for candidate catalog backends."""

    @abstractmethod
    def find_candidates(
        self,
        company_id: str,
        user_id: str,
        filters: CandidateFilters | None = None,
    ) -> list[DuplicateCandidate]:
        """Return visible candidates, newest first, at most filters.limit."""

    @staticmethod
    def is_visible(candidate: DuplicateCandidate, company_id: str, user_id: str) -> bool:
        return (bool(user_id) and candidate.uploaded_by == user_id) or (
            bool(company_id) and candidate.company_id == company_id
        )
