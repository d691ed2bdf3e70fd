# src/config/settings.py — v1
"""Typed configuration loaded from .env via pydantic-settings.

Single source of truth for thresholds, file limits and logging. Rule tables
(keywords, patterns, per-context requirements) live in config/rules.py.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ConfigurationError(Exception):
    """Raised when configuration is internally inconsistent."""


class Settings(BaseSettings):
    """Application settings loaded from .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # === Duplicate detection ===
    visual_similarity_threshold: float = 0.85
    content_similarity_threshold: float = 0.8
    temporal_tolerance_days: int = 35
    recurring_period_days: int = 30
    recurring_downweight: float = 0.7
    min_potential_score: float = 0.6
    high_confidence_duplicate: float = 0.9
    vendor_similarity_threshold: float = 0.8
    amount_exact_tolerance: float = 0.01
    amount_relative_tolerance: float = 0.05
    max_candidates: int = 200

    # === Fingerprint ===
    perceptual_grid_size: int = 8

    # === Relevance ===
    strict_relevance: bool = False
    small_file_bytes: int = 10 * 1024
    large_file_mb: int = 50

    # === Upload validation ===
    max_upload_mb: int = 50
    min_upload_bytes: int = 100
    allowed_mime_types: str = (
        "application/pdf,image/jpeg,image/jpg,image/png,image/gif,text/plain,text/csv"
    )
    blocked_extensions: str = ".exe,.bat,.scr,.com,.cmd,.pif"

    # === Rule tables ===
    rules_file: Path | None = None

    # === Logging ===
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["json", "text"] = "json"
    log_file: Path | None = None
    log_rotation: str = "10MB"
    log_retention: int = 5

    # --- Validators ---

    @field_validator(
        "visual_similarity_threshold",
        "content_similarity_threshold",
        "recurring_downweight",
        "min_potential_score",
        "high_confidence_duplicate",
        "vendor_similarity_threshold",
        "amount_relative_tolerance",
    )
    @classmethod
    def validate_unit_interval(cls, v: float, info) -> float:  # noqa: N805
        if not 0.0 <= v <= 1.0:
            raise ValueError(f"{info.field_name} must be within [0, 1]")
        return v

    @field_validator("perceptual_grid_size")
    @classmethod
    def validate_grid_size(cls, v: int) -> int:  # noqa: N805
        """Grid must pack into whole hex digits (grid² divisible by 4)."""
        if v < 2 or (v * v) % 4 != 0:
            raise ValueError("perceptual_grid_size must be >= 2 with grid² divisible by 4")
        return v

    @model_validator(mode="after")
    def validate_config_consistency(self) -> Settings:
        """Validate cross-field consistency rules."""
        errors: list[str] = []

        if self.temporal_tolerance_days < 0:
            errors.append("TEMPORAL_TOLERANCE_DAYS must be >= 0")

        if self.temporal_tolerance_days / 2 > self.recurring_period_days:
            errors.append(
                "TEMPORAL_TOLERANCE_DAYS/2 must not exceed RECURRING_PERIOD_DAYS"
            )

        if self.min_upload_bytes >= self.max_upload_mb * 1024 * 1024:
            errors.append("MIN_UPLOAD_BYTES must be < MAX_UPLOAD_MB")

        if not self.allowed_mime_types_list:
            errors.append("ALLOWED_MIME_TYPES must not be empty")

        if errors:
            raise ConfigurationError("; ".join(errors))

        return self

    # --- Helpers ---

    @property
    def allowed_mime_types_list(self) -> list[str]:
        """Parse comma-separated allowed MIME types."""
        return [m.strip() for m in self.allowed_mime_types.split(",") if m.strip()]

    @property
    def blocked_extensions_list(self) -> list[str]:
        """Parse comma-separated blocked extensions (lower-cased)."""
        return [
            e.strip().lower() for e in self.blocked_extensions.split(",") if e.strip()
        ]

    @property
    def max_upload_bytes(self) -> int:
        return self.max_upload_mb * 1024 * 1024


def load_settings(**overrides: object) -> Settings:
    """Load settings from .env with optional overrides.

    Raises:
        ConfigurationError: If configuration is internally inconsistent.
    """
    return Settings(**overrides)  # type: ignore[arg-type]
