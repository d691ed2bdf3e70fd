# src/duplicates/temporal.py — v1
"""Temporal helpers for recurring-bill recognition."""

from __future__ import annotations

import math
from datetime import datetime, timezone

_SECONDS_PER_DAY = 86_400


def days_between(now: datetime, then: datetime) -> int:
    """Absolute whole-day difference, rounded up. Naive datetimes are taken as UTC."""
    now = _as_utc(now)
    then = _as_utc(then)
    seconds = abs((now - then).total_seconds())
    return math.ceil(seconds / _SECONDS_PER_DAY)


def in_recurring_window(days: int, period_days: int, tolerance_days: int) -> bool:
    """True when days falls within [period - tol/2, period + tol/2]."""
    half = tolerance_days / 2
    return period_days - half <= days <= period_days + half


def has_recurring_indicators(text: str, keywords: tuple[str, ...]) -> bool:
    lower = text.lower()
    return any(k in lower for k in keywords)


def format_time_difference(days: int) -> str:
    """Human-readable delta: days, weeks, months or years."""
    if days < 1:
        return "Less than 1 day"
    if days == 1:
        return "1 day"
    if days < 7:
        return f"{days} days"
    if days < 30:
        return f"{_round_half_up(days / 7)} weeks"
    if days < 365:
        return f"{_round_half_up(days / 30)} months"
    return f"{_round_half_up(days / 365)} years"


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)
