# src/decision/models.py — v1
"""Decision models: user-facing warnings and the combined recommendation."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field

Severity = Literal["info", "warning", "error"]
Recommendation = Literal["accept", "warn", "reject"]


class DocumentWarning(BaseModel):
    """One warning shown to the uploader, optionally with a remedy."""

    type: Literal["duplicate", "relevance", "quality", "security"]
    severity: Severity
    message: str
    details: dict[str, Any] = Field(default_factory=dict)
    actionable: bool = True
    suggestion: str | None = None


class IntelligenceDecision(BaseModel):
    """Combined verdict over duplicate, relevance, quality and security signals."""

    overall_score: float = Field(ge=0.0, le=1.0)
    recommendation: Recommendation
    warnings: list[DocumentWarning] = Field(default_factory=list)
    suggestions: list[str] = Field(default_factory=list)
    reasoning: list[str] = Field(default_factory=list)

    @property
    def errors(self) -> list[DocumentWarning]:
        return [w for w in self.warnings if w.severity == "error"]
