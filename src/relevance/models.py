# src/relevance/models.py — v1
"""Relevance scoring models: indicators, custom rules, result."""

from __future__ import annotations

from collections.abc import Callable
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from docintel.core.models import ContentAnalysis, DocumentContext, FileInfo

WarningLevel = Literal["none", "info", "warning", "error"]


class RelevanceIndicator(BaseModel):
    """One signed, weighted and explained scoring factor."""

    type: Literal["positive", "negative", "neutral"]
    factor: str
    score: float = Field(ge=-1.0, le=1.0)
    confidence: float = Field(ge=0.0, le=1.0)
    description: str


class RuleOutcome(BaseModel):
    """Result of evaluating one custom rule: fired, not fired, or failed."""

    rule: str
    ok: bool = True
    fired: bool = False
    error: str | None = None


RuleCondition = Callable[[ContentAnalysis, FileInfo], bool]


class RelevanceRule(BaseModel):
    """Caller-supplied predicate with a score and message.

    An empty `contexts` list applies the rule to every context.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    name: str
    contexts: list[DocumentContext] = Field(default_factory=list)
    condition: RuleCondition
    score: float = Field(ge=-1.0, le=1.0)
    message: str
    severity: WarningLevel = "info"

    def applies_to(self, context: DocumentContext) -> bool:
        return not self.contexts or context in self.contexts

    def evaluate(self, content: ContentAnalysis, file_info: FileInfo) -> RuleOutcome:
        """Run the predicate, turning any exception into an error outcome."""
        try:
            fired = bool(self.condition(content, file_info))
        except Exception as e:
            return RuleOutcome(rule=self.name, ok=False, error=f"{type(e).__name__}: {e}")
        return RuleOutcome(rule=self.name, fired=fired)


class ScoringOptions(BaseModel):
    """Per-call relevance options. strict=None falls back to Settings."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    strict: bool | None = None
    custom_rules: list[RelevanceRule] = Field(default_factory=list)


class RelevanceResult(BaseModel):
    """Relevance of one document for its declared upload context."""

    overall_score: float = Field(ge=0.0, le=1.0)
    warning_level: WarningLevel
    message: str
    indicators: list[RelevanceIndicator] = Field(default_factory=list)
    suggestions: list[str] = Field(default_factory=list)
    context_match: bool = False
    business_relevance: float = Field(default=0.0, ge=0.0, le=1.0)
    technical_quality: float = Field(default=0.0, ge=0.0, le=1.0)
    rule_outcomes: list[RuleOutcome] = Field(default_factory=list)

    @property
    def negative_indicators(self) -> list[RelevanceIndicator]:
        return [i for i in self.indicators if i.type == "negative"]
