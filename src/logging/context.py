# src/logging/context.py — v1
"""Contextual logging support: attach document_id, company_id and stage to log records."""

from __future__ import annotations

import contextvars
from dataclasses import dataclass
from typing import Any

# Set once per analyzed document, stage updated as the pipeline advances.
_document_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "document_id", default=None
)
_company_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "company_id", default=None
)
_stage: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "stage", default=None
)


@dataclass
class LogContext:
    """Immutable snapshot of current logging context."""

    document_id: str | None = None
    company_id: str | None = None
    stage: str | None = None

    def as_dict(self) -> dict[str, Any]:
        """Return non-None fields as dict for JSON log injection."""
        return {k: v for k, v in self.__dict__.items() if v is not None}


def get_context() -> LogContext:
    """Snapshot current context variables."""
    return LogContext(
        document_id=_document_id.get(),
        company_id=_company_id.get(),
        stage=_stage.get(),
    )


def set_document_context(document_id: str, company_id: str | None = None) -> None:
    """Set document-level context (called once per analyzed document)."""
    _document_id.set(document_id)
    _company_id.set(company_id)


def set_stage(stage: str | None) -> None:
    """Set the current pipeline stage (fingerprint, duplicates, relevance, ...)."""
    _stage.set(stage)


def clear_context() -> None:
    """Reset all context variables."""
    _document_id.set(None)
    _company_id.set(None)
    _stage.set(None)
