# src/catalog/json_catalog.py — v1
"""JSON file-backed candidate catalog.

The file holds either a list of candidate objects or an object with a
"documents" list. It is re-read on every query so external writers are
picked up without a restart.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from pydantic import ValidationError

from docintel.catalog.base_catalog import BaseCandidateCatalog, CandidateFilters, CatalogError
from docintel.duplicates.models import DuplicateCandidate

logger = logging.getLogger(__name__)


class JsonCandidateCatalog(BaseCandidateCatalog):
    """Catalog reading DuplicateCandidate records from one JSON file."""

    def __init__(self, path: Path) -> None:
        self._path = Path(path).expanduser()

    @property
    def path(self) -> Path:
        return self._path

    def find_candidates(
        self,
        company_id: str,
        user_id: str,
        filters: CandidateFilters | None = None,
    ) -> list[DuplicateCandidate]:
        filters = filters or CandidateFilters()
        visible = [
            c for c in self.list_all()
            if self.is_visible(c, company_id, user_id)
            and (
                filters.document_category is None
                or c.document_category == filters.document_category
            )
        ]
        visible.sort(key=lambda c: c.created_at, reverse=True)
        logger.debug(
            "Catalog %s: %d visible candidates for user=%s company=%s",
            self._path.name, len(visible), user_id, company_id,
        )
        return visible[: filters.limit]

    def list_all(self) -> list[DuplicateCandidate]:
        """Load every record in the file.

        Raises:
            CatalogError: If the file is missing, not JSON, or a record is invalid.
        """
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise CatalogError(f"Cannot read catalog {self._path}: {e}") from e

        records = data.get("documents", []) if isinstance(data, dict) else data
        if not isinstance(records, list):
            raise CatalogError(f"Catalog {self._path} must hold a list of documents")

        try:
            return [DuplicateCandidate.model_validate(r) for r in records]
        except ValidationError as e:
            raise CatalogError(f"Invalid candidate record in {self._path}: {e}") from e
